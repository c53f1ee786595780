import os
import shutil
import tempfile
import unittest
from unittest import mock

from tracker.backup import BackupManager


class TestBackupManager(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.tmp = tempfile.mkdtemp()
        self.backup_dir = os.path.join(self.tmp, "temp")
        self.manager = BackupManager(self.backup_dir, retention_seconds=300)

    def tearDown(self):
        shutil.rmtree(self.tmp, ignore_errors=True)

    def make_backup(self, name, age, now):
        os.makedirs(self.backup_dir, exist_ok=True)
        path = os.path.join(self.backup_dir, name)
        with open(path, "w") as f:
            f.write("{}")
        os.utime(path, (now - age, now - age))
        return path

    async def test_backup_copies_existing_file(self):
        target = os.path.join(self.tmp, "groupData.json")
        with open(target, "w", encoding="utf-8") as f:
            f.write('{"g1": {}}')

        self.assertTrue(await self.manager.backup(target))
        names = os.listdir(self.backup_dir)
        self.assertEqual(len(names), 1)
        self.assertRegex(names[0], r"^groupData\.json\.bak\.\d+$")
        with open(os.path.join(self.backup_dir, names[0]), encoding="utf-8") as f:
            self.assertEqual(f.read(), '{"g1": {}}')

    async def test_backup_of_missing_file_is_noop(self):
        self.assertTrue(await self.manager.backup(os.path.join(self.tmp, "missing.json")))
        self.assertEqual(self.manager.list_backups(), [])

    async def test_backup_name_embeds_epoch_millis(self):
        manager = BackupManager(self.backup_dir, clock=lambda: 1700000000.5)
        path = manager.backup_path_for("/data/userData.json")
        self.assertEqual(os.path.basename(path), "userData.json.bak.1700000000500")

    async def test_copy_failure_is_logged_not_raised(self):
        target = os.path.join(self.tmp, "groupData.json")
        with open(target, "w") as f:
            f.write("{}")
        with mock.patch("tracker.backup.shutil.copyfile", side_effect=PermissionError("denied")):
            with self.assertLogs(level="ERROR"):
                self.assertFalse(await self.manager.backup(target))

    def test_sweep_removes_only_expired(self):
        now = 1_700_000_000
        old = self.make_backup("groupData.json.bak.1", 600, now)
        recent = self.make_backup("groupData.json.bak.2", 60, now)

        removed = self.manager.sweep_sync(now=now)

        self.assertEqual(removed, [old])
        self.assertFalse(os.path.exists(old))
        self.assertTrue(os.path.exists(recent))

    def test_sweep_continues_after_individual_error(self):
        now = 1_700_000_000
        first = self.make_backup("a.bak.1", 600, now)
        second = self.make_backup("b.bak.1", 600, now)
        real_remove = os.remove

        def flaky_remove(path):
            if path == first:
                raise PermissionError("locked")
            real_remove(path)

        with mock.patch("tracker.backup.os.remove", side_effect=flaky_remove):
            with self.assertLogs(level="ERROR"):
                removed = self.manager.sweep_sync(now=now)
        self.assertEqual(removed, [second])
        self.assertTrue(os.path.exists(first))

    async def test_sweep_creates_missing_folder(self):
        self.assertEqual(await self.manager.sweep(), [])
        self.assertTrue(os.path.isdir(self.backup_dir))


if __name__ == '__main__':
    unittest.main()
