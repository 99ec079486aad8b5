"""Recomputes a change record's revision from current entity state."""

import logging

from .change import Change
from .errors import StoreError
from .hashing import Hasher, get_default_hasher
from .registry import ModelRegistry
from .store import ChangeStore, CheckpointSource

logger = logging.getLogger(__name__)


class Rectifier:
    """Brings change records up to date with the entities they describe."""

    def __init__(
        self,
        store: ChangeStore,
        registry: ModelRegistry,
        hasher: Hasher | None = None,
        checkpoints: CheckpointSource | None = None,
    ):
        """Initialize the rectifier.

        Args:
            store: Where updated change records are saved.
            registry: Resolves model names to entity accessors.
            hasher: Computes revision fingerprints.
            checkpoints: If set, stamps each rectified record with the
                current checkpoint.
        """
        self.store = store
        self.registry = registry
        self.hasher = hasher or get_default_hasher()
        self.checkpoints = checkpoints

    async def current_revision(self, change: Change) -> str | None:
        """Get the revision of the entity as it is now.

        Returns:
            The fingerprint, or None if the entity doesn't exist.

        Raises:
            StoreError: If the entity accessor fails.
        """
        accessor = self.registry.lookup(change.model_name)
        try:
            entity = await accessor.find_by_id(change.model_id)
        except StoreError:
            raise
        except Exception as e:
            raise StoreError(
                f"Failed to load {change.model_name}/{change.model_id}: {e}"
            ) from e

        if entity is None:
            return None
        return self.hasher.revision_for_instance(entity)

    async def rectify(self, change: Change) -> Change:
        """Update the change with the current revision and save it."""
        change.prev = change.rev
        change.rev = await self.current_revision(change)

        if self.checkpoints is not None:
            checkpoint = await self.checkpoints.current()
            if change.checkpoint is None or checkpoint > change.checkpoint:
                change.checkpoint = checkpoint

        logger.debug(
            f"Rectified {change.model_name}/{change.model_id}: "
            f"{change.prev} -> {change.rev} ({change.type.value})"
        )
        return await self.store.save(change)
