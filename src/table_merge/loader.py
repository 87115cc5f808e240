"""
Full-table row loading.
"""

import logging
from collections.abc import Sequence

from opentelemetry import trace

from utils.tracing import add_span_attributes, trace_operation

from .errors import ReadError
from .models import Row
from .store import TableStore

logger = logging.getLogger(__name__)


class TableLoader:
    """Materializes a table's rows in memory, keeping NULL distinct from ''."""

    def __init__(self, store: TableStore):
        self.store = store

    def load(self, table: str, fields: Sequence[str]) -> list[Row]:
        """
        Read every row of ``table`` for exactly ``fields``.

        Rows keep the order the store returns them in.

        Raises:
            ReadError: On any query or decoding failure; nothing is returned
        """
        with trace_operation("load_table", kind=trace.SpanKind.INTERNAL, table=table):
            try:
                records = self.store.select_all(table, fields)
                rows = [Row.from_sequence(fields, _decode(record, len(fields))) for record in records]
            except Exception as e:
                logger.error(f"Failed to read rows of {table}: {e}")
                raise ReadError(f"Cannot read rows: {e}", table=table, operation="select_all") from e

            add_span_attributes(rows=len(rows))
            logger.info(f"Loaded {len(rows)} rows from {table}")
            return rows


def _decode(record: Sequence, width: int) -> list[str | None]:
    if len(record) != width:
        raise ValueError(f"expected {width} values, got {len(record)}")
    values = []
    for value in record:
        if value is None or isinstance(value, str):
            values.append(value)
        elif isinstance(value, (bytes, bytearray, memoryview)):
            values.append(bytes(value).decode("utf-8"))
        else:
            values.append(str(value))
    return values
