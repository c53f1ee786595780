# tracker/backup.py
import asyncio
import logging
import os
import shutil
import time
from typing import Callable, List, Optional


class BackupManager:
    """Timestamped copies of data files taken before each overwrite, plus a retention sweep."""

    def __init__(self, backup_dir: str, retention_seconds: float = 300, clock: Callable[[], float] = time.time):
        self.backup_dir = backup_dir
        self.retention = retention_seconds
        self.clock = clock

    def _ensure_dir(self):
        if not os.path.isdir(self.backup_dir):
            os.makedirs(self.backup_dir, exist_ok=True)
            logging.info(f"📁 Backup folder created: {self.backup_dir}")

    def backup_path_for(self, file_path: str) -> str:
        millis = int(self.clock() * 1000)
        return os.path.join(self.backup_dir, f"{os.path.basename(file_path)}.bak.{millis}")

    def backup_sync(self, file_path: str) -> bool:
        """
        Copy `file_path` into the backup folder if it exists.
        Returns False only when a copy was needed and failed; the caller must
        not overwrite the file in that case.
        """
        if not os.path.exists(file_path):
            return True
        try:
            self._ensure_dir()
            target = self.backup_path_for(file_path)
            # copyfile gives the copy a fresh mtime, which the sweep relies on
            shutil.copyfile(file_path, target)
            logging.info(f"💾 Backup created: {target}")
            return True
        except OSError as e:
            logging.error(f"❌ Failed to back up {file_path}: {e}")
            return False

    async def backup(self, file_path: str) -> bool:
        return await asyncio.to_thread(self.backup_sync, file_path)

    def list_backups(self) -> List[str]:
        try:
            return sorted(os.listdir(self.backup_dir))
        except FileNotFoundError:
            return []

    def sweep_sync(self, now: Optional[float] = None) -> List[str]:
        """Delete backups older than the retention window. Returns the removed paths."""
        now = self.clock() if now is None else now
        removed = []
        try:
            self._ensure_dir()
            names = os.listdir(self.backup_dir)
        except OSError as e:
            logging.error(f"❌ Failed to list backups in {self.backup_dir}: {e}")
            return removed

        for name in names:
            path = os.path.join(self.backup_dir, name)
            try:
                if now - os.stat(path).st_mtime > self.retention:
                    os.remove(path)
                    removed.append(path)
                    logging.info(f"🧹 Expired backup removed: {path}")
            except OSError as e:
                logging.error(f"❌ Failed to process backup {path}: {e}")
        return removed

    async def sweep(self) -> List[str]:
        return await asyncio.to_thread(self.sweep_sync)
