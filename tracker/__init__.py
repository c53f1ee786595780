"""
Core modules for the group activity tracker
"""

from .cache import MetadataCache
from .write_buffer import WriteBuffer
from .backup import BackupManager
from .persistence import PersistenceEngine, FlushState
from .context import TrackerContext
from .config import Settings
from .events import process_event

__all__ = [
    'MetadataCache',
    'WriteBuffer',
    'BackupManager',
    'PersistenceEngine',
    'FlushState',
    'TrackerContext',
    'Settings',
    'process_event'
]
