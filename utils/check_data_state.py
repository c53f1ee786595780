import sys

from tracker.config import Settings
from tracker.metrics import group_metrics
from tracker.records import GroupDataset, UserDataset
from tracker.write_buffer import CorruptDataError, read_json_file, validate_group_data, validate_user_data
from tracker.backup import BackupManager


def _read(path, validator, parse):
    """Read one data file without creating or repairing it."""
    try:
        data = read_json_file(path, validator)
    except CorruptDataError as e:
        print(f"⚠️ {e}")
        return parse({})
    if data is None:
        print(f"⚠️ {path} does not exist yet")
        return parse({})
    return parse(data)


def main(settings=None):
    settings = settings or Settings.from_env()
    groups = _read(settings.group_data_path, validate_group_data, GroupDataset.from_dict)
    users = _read(settings.user_data_path, validate_user_data, UserDataset.from_dict)

    print("--- DATA FILES ---")
    print(settings.group_data_path)
    print(settings.user_data_path)

    print("\n--- GROUPS ---")
    for gid, group in groups.items():
        m = group_metrics(group, top=3)
        print(f"{gid} | {group.name} | size {group.size} | messages {m['total_messages']} | active {m['active_participants']}")

    print("\n--- USERS (COUNT) ---")
    print(len(users.users))

    print("\n--- BACKUPS ---")
    print(BackupManager(settings.backup_dir).list_backups())


if __name__ == "__main__":
    sys.exit(main())
