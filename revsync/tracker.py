"""Tracks the latest change of batches of model instances."""

import asyncio
import logging
from collections.abc import Iterable

from .change import Change
from .rectifier import Rectifier
from .store import ChangeStore

logger = logging.getLogger(__name__)


class ChangeTracker:
    """Finds or creates a change record per id and rectifies it."""

    def __init__(self, store: ChangeStore, rectifier: Rectifier):
        self.store = store
        self.rectifier = rectifier

    async def find_or_create(self, model_name: str, model_id: str) -> Change:
        """Get the change record for a model instance, creating it if absent.

        A new record starts with rev, prev and checkpoint all None. The store
        is trusted to serialize concurrent creates of the same id.
        """
        change = Change(
            model_name=model_name,
            model_id=model_id,
            hasher=self.rectifier.hasher,
        )
        existing = await self.store.find_by_id(change.id)
        if existing is not None:
            return existing

        logger.debug(f"Creating change record for {model_name}/{model_id}")
        return await self.store.save(change)

    async def _track_one(self, model_name: str, model_id: str) -> Change:
        change = await self.find_or_create(model_name, model_id)
        return await self.rectifier.rectify(change)

    async def track(self, model_name: str, model_ids: Iterable[str]) -> list[Change]:
        """Track the recent change of the given model ids.

        Every id is processed concurrently. If any of them fails, the first
        error is raised and no changes are returned; the remaining tasks are
        left to finish on their own rather than being cancelled.

        Args:
            model_name: Model the ids belong to.
            model_ids: Ids of the mutated instances.

        Returns:
            The rectified change records, in no guaranteed order.
        """
        ids = list(dict.fromkeys(str(i) for i in model_ids))
        if not ids:
            return []

        tasks = [self._track_one(model_name, model_id) for model_id in ids]
        try:
            changes = await asyncio.gather(*tasks)
        except Exception as e:
            logger.error(f"Tracking {len(ids)} {model_name} changes failed: {e}")
            raise

        logger.info(f"Tracked {len(changes)} {model_name} changes")
        return list(changes)
