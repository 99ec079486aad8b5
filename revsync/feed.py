"""ChangeFeed: one object wiring the store, tracker and diff engine."""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from .change import Change, normalize_checkpoint
from .config import Config
from .diff import DiffEngine, DiffResult
from .hashing import Hasher, get_default_hasher
from .logging_utils import setup_logging_from_config
from .rectifier import Rectifier
from .registry import ModelRegistry
from .store import ChangeStore, CheckpointSource, SQLiteChangeStore
from .tracker import ChangeTracker

logger = logging.getLogger(__name__)


class ChangeFeed:
    """Change tracking and diffing for one local replica.

    Usage:
        feed = ChangeFeed.from_config(load_config("revsync.yaml"), registry)
        async with feed:
            await feed.track("Note", ["1", "2"])
            result = await feed.diff("Note", since, remote_changes)
    """

    def __init__(
        self,
        store: ChangeStore,
        registry: ModelRegistry,
        hasher: Hasher | None = None,
        checkpoints: CheckpointSource | None = None,
    ):
        """Initialize the feed.

        Args:
            store: Change record store.
            registry: Entity accessors by model name.
            hasher: Hasher for ids and revisions.
            checkpoints: Checkpoint source; defaults to the store itself when
                it implements CheckpointSource.
        """
        self.store = store
        self.registry = registry
        self.hasher = hasher or get_default_hasher()
        if checkpoints is None and isinstance(store, CheckpointSource):
            checkpoints = store
        self.checkpoints = checkpoints

        self.rectifier = Rectifier(store, registry, self.hasher, checkpoints)
        self.tracker = ChangeTracker(store, self.rectifier)
        self.differ = DiffEngine(store, self.hasher)

    @classmethod
    def from_config(
        cls,
        config: Config,
        registry: ModelRegistry,
        configure_logging: bool = False,
    ) -> "ChangeFeed":
        """Build a SQLite-backed feed from configuration.

        Args:
            config: Loaded configuration.
            registry: Entity accessors by model name.
            configure_logging: Also install the handler described by
                ``config.logging`` on the revsync logger.
        """
        if configure_logging:
            setup_logging_from_config(config.logging)

        hasher = config.hashing.build_hasher()
        store = SQLiteChangeStore(config.store.db_path, hasher=hasher)
        logger.info(
            f"ChangeFeed using {config.store.db_path} ({hasher.algorithm})"
        )
        return cls(store, registry, hasher=hasher)

    async def track(self, model_name: str, model_ids: Iterable[str]) -> list[Change]:
        return await self.tracker.track(model_name, model_ids)

    async def diff(
        self,
        model_name: str,
        since: int | None,
        remote_changes: Iterable[Change | Mapping[str, Any]],
    ) -> DiffResult:
        return await self.differ.diff(model_name, since, remote_changes)

    async def changes(self, model_name: str, since: int | None = None) -> list[Change]:
        """Get local changes of a model after a checkpoint, oldest first."""
        return await self.store.find_since(model_name, normalize_checkpoint(since))

    async def create_checkpoint(self) -> int:
        """Start a new checkpoint, so later changes sort after it."""
        create = getattr(self.checkpoints, "create_checkpoint", None)
        if create is None:
            raise TypeError("Checkpoint source does not support creating checkpoints")
        return await create()

    def connect(self) -> None:
        if isinstance(self.store, SQLiteChangeStore):
            self.store.connect()

    def close(self) -> None:
        if isinstance(self.store, SQLiteChangeStore):
            self.store.close()

    async def __aenter__(self) -> "ChangeFeed":
        self.connect()
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.close()
