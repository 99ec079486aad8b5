"""Change records: the latest known state transition of one entity."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .errors import InvalidChangeError
from .hashing import Hasher, get_default_hasher


class ChangeType(Enum):
    """Kind of transition a change record describes."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    UNKNOWN = "unknown"


@dataclass
class Change:
    """Change list entry for one model instance.

    The ``id`` is derived from ``model_name`` and ``model_id`` on every read,
    so it can never drift out of sync with them.
    """

    model_name: str
    model_id: str
    rev: str | None = None
    prev: str | None = None
    checkpoint: int | None = None
    hasher: Hasher = field(
        default_factory=get_default_hasher, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        if self.model_id is not None and not isinstance(self.model_id, str):
            self.model_id = str(self.model_id)

    @property
    def id(self) -> str | None:
        """Hash of the model name and model id."""
        if not (self.model_name and self.model_id):
            return None
        return self.hasher.id_for_model(self.model_name, self.model_id)

    @property
    def type(self) -> ChangeType:
        """Type of this change, see classify_type()."""
        return classify_type(self)

    def equals(self, other: "Change") -> bool:
        return equals(self, other)

    def is_based_on(self, other: "Change") -> bool:
        return is_based_on(self, other)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for exchange with another replica."""
        return {
            "id": self.id,
            "rev": self.rev,
            "prev": self.prev,
            "checkpoint": self.checkpoint,
            "modelName": self.model_name,
            "modelId": self.model_id,
        }

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        hasher: Hasher | None = None,
        model_name: str | None = None,
    ) -> "Change":
        """Create from dictionary.

        Accepts camelCase (``modelName``) or snake_case (``model_name``) keys.
        Any ``id`` in the data is ignored; it is always derived.

        Args:
            data: Change record fields.
            hasher: Hasher used to derive the id.
            model_name: Model name to use when the data carries none.

        Raises:
            InvalidChangeError: If the model id or model name is missing.
        """
        model_id = data.get("modelId", data.get("model_id"))
        if model_id is None or model_id == "":
            raise InvalidChangeError(f"Change is missing a modelId: {data!r}")

        name = data.get("modelName", data.get("model_name")) or model_name
        if not name:
            raise InvalidChangeError(f"Change is missing a modelName: {data!r}")

        checkpoint = data.get("checkpoint")
        if checkpoint is not None:
            try:
                checkpoint = int(checkpoint)
            except (TypeError, ValueError) as e:
                raise InvalidChangeError(
                    f"Invalid checkpoint {checkpoint!r} for {name}/{model_id}"
                ) from e

        return cls(
            model_name=name,
            model_id=model_id,
            rev=data.get("rev"),
            prev=data.get("prev"),
            checkpoint=checkpoint,
            hasher=hasher or get_default_hasher(),
        )


def classify_type(change: Change) -> ChangeType:
    """Get a change's type from which of rev/prev are set."""
    if change.rev and change.prev:
        return ChangeType.UPDATE
    if change.rev and not change.prev:
        return ChangeType.CREATE
    if not change.rev and change.prev:
        return ChangeType.DELETE
    return ChangeType.UNKNOWN


def equals(a: Change, b: Change) -> bool:
    """Two changes are equal when their revisions match."""
    return a.rev == b.rev


def is_based_on(remote: Change, local: Change) -> bool:
    """True if ``remote`` was derived directly from ``local``'s current state."""
    return remote.prev == local.rev


def normalize_checkpoint(since: Any) -> int:
    """Coerce a ``since`` checkpoint to int; None means 0.

    Raises:
        InvalidChangeError: If the value is not an integer checkpoint.
    """
    if since is None:
        return 0
    if isinstance(since, bool):
        raise InvalidChangeError(f"Invalid checkpoint: {since!r}")
    try:
        return int(since)
    except (TypeError, ValueError) as e:
        raise InvalidChangeError(f"Invalid checkpoint: {since!r}") from e
