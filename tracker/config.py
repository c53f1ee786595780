# tracker/config.py
import os

from dotenv import load_dotenv


def _ms_env(name: str, default_ms: int) -> float:
    """Read a millisecond option and return seconds."""
    raw = os.getenv(name)
    try:
        value = int(raw) if raw not in (None, "") else default_ms
    except ValueError:
        value = default_ms
    return max(value, 0) / 1000


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


class Settings:
    """Runtime options. Intervals and windows are in seconds."""

    def __init__(self, data_dir="data", backup_dir=None, flush_interval=5.0, backup_retention=300.0,
                 backup_sweep_interval=60.0, metadata_ttl=30.0, metadata_cache_size=1000,
                 log_level="INFO", log_dir="logs", port=8080,
                 api_id=None, api_hash=None, bot_token=None, bot_session=None):
        self.data_dir = data_dir
        self.backup_dir = backup_dir or os.path.join(data_dir, "temp")
        self.flush_interval = flush_interval
        self.backup_retention = backup_retention
        self.backup_sweep_interval = backup_sweep_interval
        self.metadata_ttl = metadata_ttl
        self.metadata_cache_size = metadata_cache_size
        self.log_level = log_level
        self.log_dir = log_dir
        self.port = port
        self.api_id = api_id
        self.api_hash = api_hash
        self.bot_token = bot_token
        self.bot_session = bot_session

    @property
    def group_data_path(self):
        return os.path.join(self.data_dir, "groupData.json")

    @property
    def user_data_path(self):
        return os.path.join(self.data_dir, "userData.json")

    @classmethod
    def from_env(cls, dotenv=True) -> "Settings":
        if dotenv:
            load_dotenv()
        api_id = os.getenv("API_ID")
        return cls(
            data_dir=os.getenv("DATA_DIR", "data"),
            backup_dir=os.getenv("BACKUP_DIR") or None,
            flush_interval=_ms_env("FLUSH_INTERVAL_MS", 5000),
            backup_retention=_ms_env("BACKUP_RETENTION_MS", 300000),
            backup_sweep_interval=_ms_env("BACKUP_SWEEP_INTERVAL_MS", 60000),
            metadata_ttl=_ms_env("METADATA_CACHE_TTL_MS", 30000),
            metadata_cache_size=_int_env("METADATA_CACHE_SIZE", 1000),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            log_dir=os.getenv("LOG_DIR", "logs"),
            port=_int_env("PORT", 8080),
            api_id=int(api_id) if api_id and api_id.isdigit() else None,
            api_hash=os.getenv("API_HASH"),
            bot_token=os.getenv("BOT_TOKEN"),
            bot_session=os.getenv("BOT_STRING_SESSION"),
        )

    def validate_transport(self):
        """Names of the transport options that are missing."""
        missing = []
        for key in ("api_id", "api_hash", "bot_token"):
            if not getattr(self, key):
                missing.append(key.upper())
        return missing
