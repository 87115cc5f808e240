"""
Stores the merge engine reads from and writes to.
"""

from .base import TableStore, ValueTuple
from .postgres import PostgresStore, column_definition, table_identifier

__all__ = [
    "TableStore",
    "ValueTuple",
    "PostgresStore",
    "column_definition",
    "table_identifier",
]
