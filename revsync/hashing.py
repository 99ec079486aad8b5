"""Content hashing and identity for change records.

Revisions are fingerprints of an entity's canonical JSON form. Two replicas
must serialize equal states to identical bytes, otherwise every entity looks
conflicted, so key order and whitespace are fixed here.
"""

import dataclasses
import hashlib
import json
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Callable

from .errors import ConfigError, SerializationError

DEFAULT_ALGORITHM = "sha1"


def _to_plain(entity: Any) -> Any:
    """Convert dataclasses and to_dict()-capable objects to plain data."""
    if dataclasses.is_dataclass(entity) and not isinstance(entity, type):
        return dataclasses.asdict(entity)
    to_dict = getattr(entity, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    return entity


def _json_default(value: Any) -> Any:
    """Encode values json can't handle natively."""
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).hex()
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=repr)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def canonical_serialize(entity: Any) -> str:
    """Serialize an entity to canonical JSON.

    Keys are sorted and separators carry no whitespace, so semantically equal
    entities produce identical strings regardless of field insertion order.

    Args:
        entity: A mapping, dataclass instance, or object with ``to_dict()``.
            Dates and times become ISO strings, Decimals strings, and bytes
            lowercase hex.

    Returns:
        Canonical JSON string.

    Raises:
        SerializationError: If the entity contains non-JSON values.
    """
    try:
        return json.dumps(
            _to_plain(entity),
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False,
            default=_json_default,
        )
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Cannot serialize entity: {e}") from e


class Hasher:
    """Digest helper bound to one hash algorithm and serializer."""

    def __init__(
        self,
        algorithm: str = DEFAULT_ALGORITHM,
        serializer: Callable[[Any], str] = canonical_serialize,
    ):
        """Initialize the hasher.

        Args:
            algorithm: hashlib algorithm name (default sha1, a 160-bit digest).
            serializer: Function producing the canonical form of an entity.

        Raises:
            ConfigError: If the algorithm is not available.
        """
        if not isinstance(algorithm, str):
            raise ConfigError(f"Hash algorithm must be a string, got {algorithm!r}")
        algorithm = algorithm.lower()
        if algorithm not in hashlib.algorithms_available:
            raise ConfigError(f"Unsupported hash algorithm: {algorithm}")
        try:
            hashlib.new(algorithm).hexdigest()
        except TypeError as e:
            # shake_* digests need an explicit length
            raise ConfigError(f"Unsupported hash algorithm: {algorithm}") from e

        self.algorithm = algorithm
        self.serializer = serializer

    def hash(self, data: str | bytes) -> str:
        """Return the hex digest of a string or bytes value."""
        if isinstance(data, str):
            data = data.encode("utf-8")
        return hashlib.new(self.algorithm, data).hexdigest()

    def id_for_model(self, model_name: str, model_id: Any) -> str:
        """Get the change record id for a model instance."""
        return self.hash(f"{model_name}-{model_id}")

    def revision_for_instance(self, entity: Any) -> str:
        """Get the revision fingerprint of an entity's current state."""
        return self.hash(self.serializer(entity))


_default_hasher = Hasher()


def get_default_hasher() -> Hasher:
    """Return the shared hasher using the default algorithm."""
    return _default_hasher


def id_for_model(model_name: str, model_id: Any) -> str:
    """Change record id using the default algorithm."""
    return _default_hasher.id_for_model(model_name, model_id)


def revision_for_instance(entity: Any) -> str:
    """Revision fingerprint using the default algorithm."""
    return _default_hasher.revision_for_instance(entity)
