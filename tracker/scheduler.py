# tracker/scheduler.py
import asyncio
import logging
from typing import Awaitable, Callable


class RecurringTask:
    """Runs a coroutine function every `interval` seconds until stopped."""

    def __init__(self, name: str, interval: float, func: Callable[[], Awaitable]):
        self.name = name
        self.interval = interval
        self.func = func
        self._task = None

    @property
    def running(self):
        return self._task is not None and not self._task.done()

    def start(self):
        """Start the background loop"""
        if self._task is None:
            self._task = asyncio.create_task(self._loop(), name=self.name)
            logging.info(f"🚀 {self.name} started (interval: {self.interval}s)")

    async def _loop(self):
        while True:
            try:
                await asyncio.sleep(self.interval)
                # in-flight runs finish even when the loop is cancelled
                await asyncio.shield(self.func())
            except asyncio.CancelledError:
                break
            except Exception as e:
                logging.error(f"⚠️ {self.name} loop error: {e}")

    async def stop(self):
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logging.info(f"🛑 {self.name} stopped")
