"""
Schema discovery and unification.

The output schema is table A's column list with the provenance columns
appended. B contributes only the knowledge of which output fields it also
carries.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from opentelemetry import trace

from utils.tracing import trace_operation

from .errors import SchemaError
from .models import PROVENANCE_FIELDS, ColumnDescriptor, MergeConfig
from .store import TableStore

logger = logging.getLogger(__name__)

PROVENANCE_COLUMNS = (
    ColumnDescriptor(name=PROVENANCE_FIELDS[0], ordinal=0, nullable=True,
                     data_type="character varying", column_type="VARCHAR(10)"),
    ColumnDescriptor(name=PROVENANCE_FIELDS[1], ordinal=0, nullable=True,
                     data_type="smallint", column_type="SMALLINT", default="0"),
    ColumnDescriptor(name=PROVENANCE_FIELDS[2], ordinal=0, nullable=True,
                     data_type="text", column_type="TEXT"),
)


@dataclass(frozen=True)
class UnifiedSchema:
    """Field lists derived from both input schemas."""

    output_columns: tuple[ColumnDescriptor, ...]
    fields_a: tuple[str, ...]
    fields_b: tuple[str, ...]
    comparison_fields: tuple[str, ...]
    in_b: dict[str, bool]
    key_fields: tuple[str, ...]
    ignore_fields_b: frozenset[str]

    @property
    def output_fields(self) -> tuple[str, ...]:
        return tuple(c.name for c in self.output_columns)

    @property
    def record_fields(self) -> tuple[str, ...]:
        """Output fields followed by the provenance columns."""
        return self.output_fields + PROVENANCE_FIELDS

    @property
    def table_columns(self) -> tuple[ColumnDescriptor, ...]:
        """Column definitions for the output table."""
        return self.output_columns + PROVENANCE_COLUMNS


class SchemaResolver:
    """Reads and normalizes the column lists of the input tables."""

    def __init__(self, store: TableStore):
        self.store = store

    def resolve(self, table: str) -> list[ColumnDescriptor]:
        """
        Usable columns of ``table`` in ordinal order.

        The auto-increment ``id`` column is a storage surrogate, not business
        data, and is left out.

        Raises:
            SchemaError: If introspection fails or no usable column remains
        """
        with trace_operation("resolve_schema", kind=trace.SpanKind.INTERNAL, table=table):
            try:
                columns = self.store.get_columns(table)
            except Exception as e:
                logger.error(f"Failed to read columns of {table}: {e}")
                raise SchemaError(f"Cannot read columns: {e}", table=table, operation="get_columns") from e

            usable = [c for c in sorted(columns, key=lambda c: c.ordinal) if not c.is_auto_increment_id]
            if not usable:
                logger.error(f"Table {table} has no usable columns (or does not exist)")
                raise SchemaError("No usable columns found (or table does not exist)",
                                  table=table, operation="get_columns")

            logger.debug(f"Table {table} columns ({len(usable)}): {', '.join(c.name for c in usable)}")
            return usable

    @staticmethod
    def unify(
        columns_a: Sequence[ColumnDescriptor],
        columns_b: Sequence[ColumnDescriptor],
        config: MergeConfig,
    ) -> UnifiedSchema:
        """
        Build the output schema and the comparison field set.

        Raises:
            SchemaError: If a key field is missing from either table, or an
                A column collides with a provenance column
        """
        fields_a = tuple(c.name for c in columns_a)
        fields_b = tuple(c.name for c in columns_b)
        b_set = set(fields_b)

        for table, fields in ((config.table_a, fields_a), (config.table_b, fields_b)):
            missing = [k for k in config.key_fields if k not in fields]
            if missing:
                raise SchemaError(f"Key fields missing: {', '.join(missing)}", table=table, operation="unify")

        clashing = [f for f in fields_a if f in PROVENANCE_FIELDS]
        if clashing:
            raise SchemaError(f"Columns clash with provenance columns: {', '.join(clashing)}",
                              table=config.table_a, operation="unify")

        excluded = set(config.key_fields) | set(config.ignore_fields_a)
        comparison_fields = tuple(f for f in fields_a if f not in excluded)

        schema = UnifiedSchema(
            output_columns=tuple(columns_a),
            fields_a=fields_a,
            fields_b=fields_b,
            comparison_fields=comparison_fields,
            in_b={f: f in b_set for f in fields_a},
            key_fields=tuple(config.key_fields),
            ignore_fields_b=frozenset(config.ignore_fields_b),
        )
        logger.info(
            f"Output schema: {len(fields_a)} fields, {len(comparison_fields)} compared, "
            f"{sum(schema.in_b.values())} shared with {config.table_b}"
        )
        return schema
