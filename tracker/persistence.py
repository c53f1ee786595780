# tracker/persistence.py
import asyncio
import json
import logging
import os
import time
from enum import Enum
from typing import Any, Dict, Optional

from .backup import BackupManager
from .merge import MergeDepthError, merge_deep
from .write_buffer import CorruptDataError, Dataset, read_json_file


class FlushState(Enum):
    CLEAN = "clean"
    DIRTY = "dirty"
    FLUSHING = "flushing"


def write_json_atomic(path: str, payload: str):
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    tmp = f"{path}.tmp"
    with open(tmp, "w", encoding="utf-8") as f:
        f.write(payload)
    os.replace(tmp, path)


class PersistenceEngine:
    """
    Write-back flusher for one dataset.

    read disk -> validate -> merge memory over disk -> backup -> write.
    A failed step leaves the dataset dirty so the next tick retries it.
    """

    def __init__(self, dataset: Dataset, backups: BackupManager):
        self.dataset = dataset
        self.backups = backups
        self._lock = asyncio.Lock()
        self._flushing = False
        self.last_flush: Optional[float] = None
        self.last_error: Optional[str] = None

    @property
    def name(self):
        return self.dataset.name

    @property
    def state(self) -> FlushState:
        if self._flushing:
            return FlushState.FLUSHING
        return FlushState.DIRTY if self.dataset.dirty else FlushState.CLEAN

    # --- steps -------------------------------------------------------

    def _read_disk(self) -> Dict[str, Any]:
        try:
            data = read_json_file(self.dataset.path, self.dataset.validator)
        except CorruptDataError as e:
            logging.error(f"❌ {self.name}: {e}. Merging against an empty default.")
            data = None
        return self.dataset.default() if data is None else data

    def _reconcile(self, on_disk: Dict[str, Any]) -> str:
        """Merge memory over the disk snapshot and adopt the result. Must not suspend."""
        merged = merge_deep(on_disk, self.dataset.snapshot())
        payload = json.dumps(merged, ensure_ascii=False, indent=2)
        self.dataset.adopt(merged)
        self.dataset.dirty = False
        return payload

    def _fail(self, stage: str, error: Exception) -> bool:
        self.dataset.dirty = True
        self.last_error = f"{stage}: {error}"
        logging.error(f"❌ {self.name} flush failed during {stage}: {error}")
        return False

    def _done(self) -> bool:
        self.last_flush = time.time()
        self.last_error = None
        logging.info(f"✅ {self.name} merged and persisted to {self.dataset.path}")
        return True

    # --- public ------------------------------------------------------

    async def flush(self) -> bool:
        """Flush if dirty. Returns True when a write happened."""
        async with self._lock:
            if not self.dataset.dirty:
                return False
            self._flushing = True
            try:
                try:
                    on_disk = await asyncio.to_thread(self._read_disk)
                except OSError as e:
                    return self._fail("read", e)

                try:
                    payload = self._reconcile(on_disk)
                except (MergeDepthError, TypeError, ValueError) as e:
                    return self._fail("merge", e)

                if not await self.backups.backup(self.dataset.path):
                    return self._fail("backup", OSError("backup copy failed"))

                try:
                    await asyncio.to_thread(write_json_atomic, self.dataset.path, payload)
                except OSError as e:
                    return self._fail("write", e)
                return self._done()
            finally:
                self._flushing = False

    def flush_blocking(self) -> bool:
        """Same as flush() without the event loop, for atexit hooks."""
        if not self.dataset.dirty:
            return False
        try:
            payload = self._reconcile(self._read_disk())
        except (OSError, MergeDepthError, TypeError, ValueError) as e:
            return self._fail("merge", e)
        if not self.backups.backup_sync(self.dataset.path):
            return self._fail("backup", OSError("backup copy failed"))
        try:
            write_json_atomic(self.dataset.path, payload)
        except OSError as e:
            return self._fail("write", e)
        return self._done()
