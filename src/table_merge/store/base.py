"""
Store contract used by the merge engine.

The engine only talks to a ``TableStore``; the PostgreSQL implementation
lives in ``postgres.py`` and tests substitute an in-memory store.
"""

from collections.abc import Sequence

from ..models import ColumnDescriptor

ValueTuple = tuple[str | None, ...]


class TableStore:
    """
    Base class for schema and row stores.

    Subclasses implement introspection, full-table reads, output table
    recreation and multi-row inserts. Values cross this boundary as text or
    ``None`` for NULL.
    """

    def connect(self) -> None:
        """Open the underlying connection. Raises ConnectivityError."""
        raise NotImplementedError

    def close(self) -> None:
        """Release the underlying connection."""
        raise NotImplementedError

    def get_columns(self, table: str) -> list[ColumnDescriptor]:
        """Columns of ``table`` in ordinal order (empty if the table is missing)."""
        raise NotImplementedError

    def select_all(self, table: str, fields: Sequence[str]) -> list[ValueTuple]:
        """All rows of ``table`` projected onto ``fields``, values as text."""
        raise NotImplementedError

    def recreate_table(
        self,
        table: str,
        columns: Sequence[ColumnDescriptor],
        surrogate_key: str | None = "id",
    ) -> None:
        """
        Drop ``table`` if present and create it with ``columns``, all
        nullable, preceded by an auto-increment ``surrogate_key`` if given.
        """
        raise NotImplementedError

    def insert_rows(self, table: str, fields: Sequence[str], rows: Sequence[ValueTuple]) -> None:
        """Insert ``rows`` with a single statement."""
        raise NotImplementedError

    def __enter__(self) -> "TableStore":
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
