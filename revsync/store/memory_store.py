"""In-memory change store, for tests and ephemeral replicas."""

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import replace

from ..change import Change
from ..errors import StoreError
from .base import ChangeStore, CheckpointSource

logger = logging.getLogger(__name__)


class MemoryChangeStore(ChangeStore, CheckpointSource):
    """Change records held in a dict keyed by derived id.

    Records are copied on the way in and out so callers never share state
    with the store.
    """

    def __init__(self, changes: Iterable[Change] | None = None):
        self._changes: dict[str, Change] = {}
        self._checkpoint = 0
        self._lock = asyncio.Lock()
        for change in changes or []:
            self._changes[change.id] = replace(change)

    async def find_by_id(self, change_id: str) -> Change | None:
        change = self._changes.get(change_id)
        return replace(change) if change else None

    async def find(
        self, model_name: str, model_ids: Iterable[str], since: int
    ) -> list[Change]:
        ids = {str(i) for i in model_ids}
        return [
            replace(c)
            for c in self._changes.values()
            if c.model_name == model_name
            and c.model_id in ids
            and c.checkpoint is not None
            and c.checkpoint > since
        ]

    async def find_since(self, model_name: str, since: int) -> list[Change]:
        matches = [
            replace(c)
            for c in self._changes.values()
            if c.model_name == model_name
            and c.checkpoint is not None
            and c.checkpoint > since
        ]
        return sorted(matches, key=lambda c: c.checkpoint)

    async def save(self, change: Change) -> Change:
        if change.id is None:
            raise StoreError("Cannot save a change without modelName and modelId")
        async with self._lock:
            self._changes[change.id] = replace(change)
        return change

    async def current(self) -> int:
        if self._checkpoint == 0:
            return await self.create_checkpoint()
        return self._checkpoint

    async def create_checkpoint(self) -> int:
        async with self._lock:
            self._checkpoint += 1
        logger.debug(f"Created checkpoint {self._checkpoint}")
        return self._checkpoint

    def __len__(self) -> int:
        return len(self._changes)
