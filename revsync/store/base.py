"""Interfaces for change record persistence and checkpoint allocation."""

from abc import ABC, abstractmethod
from collections.abc import Iterable

from ..change import Change


class ChangeStore(ABC):
    """Keyed store for change records.

    Implementations must make a single save appear atomic to concurrent
    callers and must not create two records for the same id.
    """

    @abstractmethod
    async def find_by_id(self, change_id: str) -> Change | None:
        """Get a change record by its derived id, or None if absent."""
        pass

    @abstractmethod
    async def find(
        self, model_name: str, model_ids: Iterable[str], since: int
    ) -> list[Change]:
        """Find change records of a model.

        Args:
            model_name: Model the records belong to.
            model_ids: Only records for these model ids.
            since: Only records with checkpoint strictly greater than this.

        Returns:
            Matching records, in no particular order.
        """
        pass

    @abstractmethod
    async def find_since(self, model_name: str, since: int) -> list[Change]:
        """Get every record of a model with checkpoint greater than since."""
        pass

    @abstractmethod
    async def save(self, change: Change) -> Change:
        """Insert or update a change record.

        Raises:
            StoreError: If the record could not be persisted.
        """
        pass


class CheckpointSource(ABC):
    """Supplies the current synchronization checkpoint."""

    @abstractmethod
    async def current(self) -> int:
        pass
