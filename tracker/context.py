# tracker/context.py
import asyncio
import atexit
import logging
import signal

from .backup import BackupManager
from .cache import MetadataCache
from .config import Settings
from .events import process_event
from .persistence import PersistenceEngine
from .scheduler import RecurringTask
from .write_buffer import WriteBuffer


class TrackerContext:
    """
    Owns the live datasets, the metadata cache, the flush engines and the
    two background timers. Built once at startup and passed to the handlers.
    """

    def __init__(self, settings: Settings = None):
        self.settings = settings or Settings()
        s = self.settings

        self.buffer = WriteBuffer(s.group_data_path, s.user_data_path)
        self.metadata = MetadataCache(ttl=s.metadata_ttl, maxsize=s.metadata_cache_size)
        self.backups = BackupManager(s.backup_dir, retention_seconds=s.backup_retention)
        self.group_engine = PersistenceEngine(self.buffer.group, self.backups)
        self.user_engine = PersistenceEngine(self.buffer.user, self.backups)

        self.flush_task = RecurringTask("FlushTimer", s.flush_interval, self.flush_all)
        self.sweep_task = RecurringTask("BackupSweeper", s.backup_sweep_interval, self.backups.sweep)
        self._started = False
        self._closed = False
        self._shutdown_task = None

    @property
    def engines(self):
        return (self.group_engine, self.user_engine)

    async def process_event(self, event, client):
        await process_event(self, event, client)

    def invalidate_group(self, group_id):
        """Drop cached metadata after membership changes."""
        self.metadata.invalidate(str(group_id))

    # --- LIFECYCLE ---------------------------------------

    def start(self):
        if self._started:
            return
        self.buffer.load_group_data()
        self.buffer.load_user_data()
        self.flush_task.start()
        self.sweep_task.start()
        atexit.register(self.flush_blocking)
        self._started = True

    async def flush_all(self):
        results = await asyncio.gather(*(e.flush() for e in self.engines), return_exceptions=True)
        for engine, result in zip(self.engines, results):
            if isinstance(result, Exception):
                logging.error(f"❌ {engine.name} flush raised: {result}")
        return results

    def flush_blocking(self):
        """atexit fallback when the loop is already gone."""
        if self._closed:
            return
        for engine in self.engines:
            try:
                engine.flush_blocking()
            except Exception as e:
                logging.error(f"❌ Final {engine.name} flush failed: {e}")

    async def shutdown(self):
        """Stop timers, wait for any in-flight flush, then flush everything once more."""
        if self._closed:
            return
        logging.info("🛑 Shutting down tracker, flushing pending data...")
        await self.flush_task.stop()
        await self.sweep_task.stop()
        try:
            await self.flush_all()
        except Exception as e:
            logging.error(f"❌ Final flush failed: {e}")
        self._closed = True
        atexit.unregister(self.flush_blocking)

    def install_signal_handlers(self, loop, on_shutdown=None):
        """SIGINT/SIGTERM run shutdown() and then `on_shutdown` (e.g. disconnect the client)."""

        async def _handle(sig):
            logging.info(f"📴 Received {sig.name}")
            await self.shutdown()
            if on_shutdown is not None:
                await on_shutdown()

        def _on_done(task):
            if not task.cancelled() and task.exception() is not None:
                logging.error(f"❌ Signal shutdown failed: {task.exception()}")

        def _schedule(sig):
            if self._shutdown_task is not None and not self._shutdown_task.done():
                return
            self._shutdown_task = loop.create_task(_handle(sig))
            self._shutdown_task.add_done_callback(_on_done)

        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, _schedule, sig)
            except (NotImplementedError, RuntimeError):
                # Windows loops have no signal handlers; atexit still covers a clean exit
                pass

    def status(self):
        return {
            "datasets": {
                e.name: {
                    "state": e.state.value,
                    "last_flush": e.last_flush,
                    "last_error": e.last_error,
                }
                for e in self.engines
            },
            "metadata_cache": len(self.metadata),
            "backups": len(self.backups.list_backups()),
        }
