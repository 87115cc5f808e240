"""
Batched output to table C.
"""

import logging
from collections.abc import Iterator, Sequence

from opentelemetry import trace

from utils.tracing import trace_operation

from .errors import WriteError
from .models import DEFAULT_BATCH_SIZE, MergedRecord
from .schema import UnifiedSchema
from .store import TableStore

logger = logging.getLogger(__name__)

SURROGATE_KEY = "id"


def batched(records: Sequence[MergedRecord], size: int) -> Iterator[tuple[int, Sequence[MergedRecord]]]:
    """Yield (offset, batch) slices of at most ``size`` records."""
    for start in range(0, len(records), size):
        yield start, records[start:start + size]


class Writer:
    """
    Writes merged records to the output table, one insert per batch.

    A failed batch aborts the write. Batches written before it stay
    committed; nothing is retried or rolled back.
    """

    def __init__(
        self,
        store: TableStore,
        table: str,
        schema: UnifiedSchema,
        batch_size: int = DEFAULT_BATCH_SIZE,
        metrics=None,
    ):
        self.store = store
        self.table = table
        self.schema = schema
        self.batch_size = batch_size if batch_size and batch_size > 0 else DEFAULT_BATCH_SIZE
        self.metrics = metrics

    def recreate(self) -> None:
        """
        Drop and create the output table.

        The surrogate key is skipped when A already has a column of that name.

        Raises:
            WriteError: If the table cannot be recreated
        """
        surrogate = None if SURROGATE_KEY in self.schema.output_fields else SURROGATE_KEY
        try:
            self.store.recreate_table(self.table, self.schema.table_columns, surrogate_key=surrogate)
        except Exception as e:
            logger.error(f"Failed to recreate output table {self.table}: {e}")
            raise WriteError(f"Cannot recreate output table: {e}", table=self.table,
                             operation="recreate_table") from e

    def write(self, records: Sequence[MergedRecord]) -> int:
        """
        Insert ``records`` in batches.

        Returns:
            Number of records written

        Raises:
            WriteError: On the first failing batch; ``rows_written`` holds
                the count already committed
        """
        if not records:
            logger.info("No records to write")
            return 0

        output_fields = self.schema.output_fields
        record_fields = self.schema.record_fields
        total = len(records)
        written = 0

        with trace_operation("write_records", kind=trace.SpanKind.INTERNAL, table=self.table, rows=total):
            for start, batch in batched(records, self.batch_size):
                rows = [record.as_output_row(output_fields) for record in batch]
                try:
                    self.store.insert_rows(self.table, record_fields, rows)
                except Exception as e:
                    end = start + len(batch)
                    logger.error(
                        f"Batch insert into {self.table} failed (rows {start + 1}-{end}): {e}",
                        extra={"rows_written": written},
                    )
                    raise WriteError(
                        f"Batch insert failed for rows {start + 1}-{end}: {e}",
                        table=self.table,
                        rows_written=written,
                    ) from e

                written += len(batch)
                if self.metrics is not None:
                    self.metrics.record_batch(self.table)
                logger.debug(f"Wrote {written}/{total} records to {self.table}")

        logger.info(f"Wrote {written} records to {self.table}")
        return written
