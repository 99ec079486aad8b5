"""Entity accessors and the registry that maps model names to them."""

import logging
import re
import sqlite3
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from .errors import StoreError, UnknownModelError

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class EntityAccessor(ABC):
    """Read access to the current state of one model's entities."""

    @abstractmethod
    async def find_by_id(self, model_id: str) -> dict[str, Any] | None:
        """Get an entity's current state.

        Args:
            model_id: The identifier within this model.

        Returns:
            The entity data, or None if it doesn't exist.
        """
        pass


class MappingAccessor(EntityAccessor):
    """Accessor backed by an in-memory dict of model_id -> entity."""

    def __init__(self, entities: dict[str, Any] | None = None):
        self.entities: dict[str, Any] = entities if entities is not None else {}

    async def find_by_id(self, model_id: str) -> dict[str, Any] | None:
        return self.entities.get(model_id)


class SQLiteTableAccessor(EntityAccessor):
    """Accessor reading rows of a SQLite table as entity dicts."""

    def __init__(
        self,
        conn: sqlite3.Connection,
        table: str,
        id_column: str = "id",
    ):
        """Initialize the accessor.

        Args:
            conn: Open SQLite connection.
            table: Table holding the entities.
            id_column: Column holding the model id.
        """
        for name in (table, id_column):
            if not _IDENTIFIER.match(name):
                raise ValueError(f"Invalid SQL identifier: {name!r}")
        self._conn = conn
        self.table = table
        self.id_column = id_column

    @classmethod
    def open(
        cls, db_path: str | Path, table: str, id_column: str = "id"
    ) -> "SQLiteTableAccessor":
        """Open a connection to db_path and build an accessor over it."""
        conn = sqlite3.connect(str(Path(db_path).expanduser()), check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return cls(conn, table, id_column)

    def _fetch(self, model_id: str) -> dict[str, Any] | None:
        cursor = self._conn.execute(
            f"SELECT * FROM {self.table} WHERE {self.id_column} = ?",
            (model_id,),
        )
        row = cursor.fetchone()
        if row is None:
            return None
        columns = [d[0] for d in cursor.description]
        return dict(zip(columns, tuple(row)))

    async def find_by_id(self, model_id: str) -> dict[str, Any] | None:
        try:
            return self._fetch(model_id)
        except sqlite3.Error as e:
            raise StoreError(
                f"Failed to read {self.table}/{model_id}: {e}"
            ) from e


class ModelRegistry:
    """Maps model names to entity accessors.

    Passed explicitly to the rectifier; there is no global registry.
    """

    def __init__(self, accessors: dict[str, EntityAccessor] | None = None):
        self._accessors: dict[str, EntityAccessor] = dict(accessors or {})

    def register(self, model_name: str, accessor: EntityAccessor) -> None:
        """Register (or replace) the accessor for a model."""
        if model_name in self._accessors:
            logger.debug(f"Replacing accessor for model {model_name}")
        self._accessors[model_name] = accessor

    def unregister(self, model_name: str) -> None:
        self._accessors.pop(model_name, None)

    def lookup(self, model_name: str) -> EntityAccessor:
        """Get the accessor for a model.

        Raises:
            UnknownModelError: If nothing is registered under model_name.
        """
        try:
            return self._accessors[model_name]
        except KeyError:
            raise UnknownModelError(model_name) from None

    @property
    def model_names(self) -> list[str]:
        return sorted(self._accessors)

    def __contains__(self, model_name: str) -> bool:
        return model_name in self._accessors
