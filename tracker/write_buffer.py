# tracker/write_buffer.py
import json
import logging
import os
from typing import Any, Callable, Dict

from .records import GroupDataset, UserDataset


class CorruptDataError(ValueError):
    """On-disk dataset could not be parsed or has the wrong shape."""


def validate_group_data(data):
    if not isinstance(data, dict):
        raise CorruptDataError("groupData must be a JSON object")
    return data


def validate_user_data(data):
    if not isinstance(data, dict) or not isinstance(data.get("users"), dict):
        raise CorruptDataError("userData must be a JSON object with a 'users' object")
    return data


def read_json_file(path: str, validator: Callable[[Any], Any]):
    """Read and validate one dataset file. Returns None when the file is absent."""
    if not os.path.exists(path):
        return None
    with open(path, "rb") as f:
        raw = f.read()
    try:
        data = json.loads(raw.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise CorruptDataError(f"invalid UTF-8 in {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise CorruptDataError(f"invalid JSON in {path}: {e}") from e
    return validator(data)


class Dataset:
    """One lazily loaded dataset plus its dirty flag."""

    def __init__(self, name: str, path: str, default: Callable[[], Dict[str, Any]],
                 validator: Callable[[Any], Any], parse: Callable[[Dict[str, Any]], Any]):
        self.name = name
        self.path = path
        self.default = default
        self.validator = validator
        self.parse = parse
        self.dirty = False
        self._data = None

    @property
    def loaded(self):
        return self._data is not None

    def load(self):
        """Read-through accessor: disk on first access, memory afterwards."""
        if self._data is None:
            self._data = self.parse(self._read_initial())
        return self._data

    def _read_initial(self) -> Dict[str, Any]:
        try:
            data = read_json_file(self.path, self.validator)
        except CorruptDataError as e:
            logging.error(f"❌ {self.name}: {e}. Starting from an empty dataset.")
            return self.default()
        except OSError as e:
            logging.error(f"❌ {self.name}: could not read {self.path}: {e}. Starting from an empty dataset.")
            return self.default()

        if data is None:
            self._create_file()
            return self.default()
        return data

    def _create_file(self):
        try:
            os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(self.default(), f, indent=2)
            logging.info(f"📄 Created data file: {self.path}")
        except OSError as e:
            logging.error(f"❌ Could not create {self.path}: {e}")

    def replace(self, data):
        """Swap the in-memory dataset and mark it dirty. Never writes to disk."""
        if not hasattr(data, "to_dict"):
            data = self.parse(data)
        self._data = data
        self.dirty = True

    def mark_dirty(self):
        self.dirty = True

    def snapshot(self) -> Dict[str, Any]:
        return self.load().to_dict()

    def adopt(self, merged: Dict[str, Any]):
        """Make a reconciled tree the new in-memory baseline."""
        self._data = self.parse(merged)


class WriteBuffer:
    """Holds the live group and user datasets between flushes."""

    def __init__(self, group_path: str, user_path: str):
        self.group = Dataset(
            "groupData", group_path,
            default=dict,
            validator=validate_group_data,
            parse=GroupDataset.from_dict,
        )
        self.user = Dataset(
            "userData", user_path,
            default=lambda: {"users": {}},
            validator=validate_user_data,
            parse=UserDataset.from_dict,
        )

    @property
    def datasets(self):
        return (self.group, self.user)

    def load_group_data(self) -> GroupDataset:
        return self.group.load()

    def load_user_data(self) -> UserDataset:
        return self.user.load()

    def save_group_data(self, data: GroupDataset):
        self.group.replace(data)

    def save_user_data(self, data: UserDataset):
        self.user.replace(data)

    def mark_group_dirty(self):
        self.group.mark_dirty()

    def mark_user_dirty(self):
        self.user.mark_dirty()

    @property
    def group_dirty(self):
        return self.group.dirty

    @property
    def user_dirty(self):
        return self.user.dirty
