"""revsync: change tracking and conflict detection for offline-first replicas.

Each tracked model instance has one change record holding the fingerprint of
its current state (rev) and of its previous state (prev). Comparing a remote
change set against local records after a checkpoint tells which remote
changes are safe forward updates (deltas) and which diverged (conflicts).
"""

from .change import Change, ChangeType, classify_type, equals, is_based_on
from .config import Config, load_config
from .diff import DiffEngine, DiffResult
from .errors import (
    ConfigError,
    InvalidChangeError,
    RevsyncError,
    SerializationError,
    StoreError,
    UnknownModelError,
)
from .feed import ChangeFeed
from .hashing import Hasher, canonical_serialize, id_for_model, revision_for_instance
from .rectifier import Rectifier
from .registry import EntityAccessor, MappingAccessor, ModelRegistry, SQLiteTableAccessor
from .store import ChangeStore, CheckpointSource, MemoryChangeStore, SQLiteChangeStore
from .tracker import ChangeTracker

__version__ = "0.1.0"

__all__ = [
    # Change records
    "Change",
    "ChangeType",
    "classify_type",
    "equals",
    "is_based_on",
    # Hashing
    "Hasher",
    "canonical_serialize",
    "id_for_model",
    "revision_for_instance",
    # Pipeline
    "ChangeFeed",
    "ChangeTracker",
    "Rectifier",
    "DiffEngine",
    "DiffResult",
    # Stores and accessors
    "ChangeStore",
    "CheckpointSource",
    "MemoryChangeStore",
    "SQLiteChangeStore",
    "EntityAccessor",
    "MappingAccessor",
    "ModelRegistry",
    "SQLiteTableAccessor",
    # Config
    "Config",
    "load_config",
    # Errors
    "RevsyncError",
    "StoreError",
    "UnknownModelError",
    "InvalidChangeError",
    "SerializationError",
    "ConfigError",
]
