"""Compares local and remote change sets across a checkpoint boundary."""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from .change import Change, equals, is_based_on, normalize_checkpoint
from .errors import InvalidChangeError
from .hashing import Hasher, get_default_hasher
from .store import ChangeStore

logger = logging.getLogger(__name__)


@dataclass
class DiffResult:
    """Outcome of a diff.

    ``deltas`` holds remote changes that advance directly from the local
    state. ``conflicts`` holds the local changes whose remote counterparts
    diverged from them.
    """

    deltas: list[Change] = field(default_factory=list)
    conflicts: list[Change] = field(default_factory=list)

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)

    def to_dict(self) -> dict[str, Any]:
        return {
            "deltas": [c.to_dict() for c in self.deltas],
            "conflicts": [c.to_dict() for c in self.conflicts],
        }


class DiffEngine:
    """Classifies differences between local and remote changes."""

    def __init__(self, store: ChangeStore, hasher: Hasher | None = None):
        self.store = store
        self.hasher = hasher or get_default_hasher()

    def _index_remote(
        self, model_name: str, remote_changes: Iterable[Change | Mapping[str, Any]]
    ) -> dict[str, Change]:
        index: dict[str, Change] = {}
        for raw in remote_changes:
            if isinstance(raw, Change):
                change = raw
                if not change.model_id:
                    raise InvalidChangeError(f"Change is missing a modelId: {raw!r}")
            elif isinstance(raw, Mapping):
                change = Change.from_dict(raw, hasher=self.hasher, model_name=model_name)
            else:
                raise InvalidChangeError(f"Unsupported change type: {type(raw).__name__}")

            # Duplicate ids: the last occurrence wins
            if change.model_id in index:
                logger.warning(
                    f"Duplicate remote change for {model_name}/{change.model_id}, "
                    "using the last one"
                )
            index[change.model_id] = change
        return index

    async def diff(
        self,
        model_name: str,
        since: int | None,
        remote_changes: Iterable[Change | Mapping[str, Any]],
    ) -> DiffResult:
        """Determine the differences for a model since a checkpoint.

        Args:
            model_name: Model to compare.
            since: Only local changes after this checkpoint (exclusive) are
                compared; None means 0.
            remote_changes: Remote change records, as Change objects or
                dicts with ``rev``, ``prev`` and ``modelId``.

        Returns:
            DiffResult with deltas (remote changes based on the local state)
            and conflicts (local changes the remote diverged from).

        Raises:
            InvalidChangeError: If a remote change or ``since`` is malformed.
            StoreError: If the local query fails.
        """
        since = normalize_checkpoint(since)
        remote_index = self._index_remote(model_name, remote_changes)
        result = DiffResult()
        if not remote_index:
            return result

        local_changes = await self.store.find(model_name, list(remote_index), since)

        for local in local_changes:
            remote = remote_index.get(local.model_id)
            if remote is None or equals(local, remote):
                continue
            if is_based_on(remote, local):
                result.deltas.append(remote)
            else:
                result.conflicts.append(local)

        logger.info(
            f"Diff {model_name} since {since}: {len(remote_index)} remote, "
            f"{len(local_changes)} local, {len(result.deltas)} deltas, "
            f"{len(result.conflicts)} conflicts"
        )
        return result
