"""Client-local persistence."""

from functools import lru_cache

from config import get_settings
from storage.kv import (
    DataCorruptionError,
    FileKeyValueStore,
    KeyValueStore,
    MemoryKeyValueStore,
)
from storage.profile import PROFILE_KEY, ProfileStore
from storage.reports import REPORTS_KEY, ReportArchive
from storage.sessions import SESSION_KEY, SessionScratchpad

__all__ = [
    "DataCorruptionError",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "FileKeyValueStore",
    "ProfileStore",
    "ReportArchive",
    "SessionScratchpad",
    "PROFILE_KEY",
    "REPORTS_KEY",
    "SESSION_KEY",
    "get_key_value_store",
]


@lru_cache
def get_key_value_store() -> KeyValueStore:
    """Get the process-wide store rooted at the configured directory."""
    return FileKeyValueStore(get_settings().storage_dir)
