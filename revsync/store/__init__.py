"""Persistence for change records.

Provides the store interfaces the tracker and diff engine depend on, plus
SQLite and in-memory implementations.
"""

from .base import ChangeStore, CheckpointSource
from .memory_store import MemoryChangeStore
from .sqlite_store import SQLiteChangeStore

__all__ = [
    "ChangeStore",
    "CheckpointSource",
    "MemoryChangeStore",
    "SQLiteChangeStore",
]
