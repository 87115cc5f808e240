"""
Provenance-tagged record assembly.

Records always start from A's values over the output schema. Auto-fill
and auto-keep outcomes are applied before, and independently of, the
decision on contested fields.
"""

import logging
from collections.abc import Mapping

from .diff import Comparison, display_value
from .models import MergedRecord, Row, Side, Source
from .schema import UnifiedSchema

logger = logging.getLogger(__name__)


class RecordAssembler:
    """Builds output records for one unified schema."""

    def __init__(self, schema: UnifiedSchema):
        self.schema = schema

    def _from_a_values(self, row_a: Mapping[str, str | None]) -> dict[str, str | None]:
        return {f: row_a.get(f) for f in self.schema.output_fields}

    def from_a(self, row_a: Mapping[str, str | None]) -> MergedRecord:
        """Record for a row only present in A, or an exact match."""
        return MergedRecord(values=Row(self._from_a_values(row_a)), source=Source.A)

    def from_b(self, row_b: Mapping[str, str | None]) -> MergedRecord:
        """
        Record for a row only present in B.

        A field is populated only if it exists in B's schema and is not
        ignored for B; every other output field is NULL.
        """
        values = {}
        for name in self.schema.output_fields:
            if self.schema.in_b[name] and name not in self.schema.ignore_fields_b:
                values[name] = row_b.get(name)
            else:
                values[name] = None
        return MergedRecord(values=Row(values), source=Source.B)

    def merge(
        self,
        row_a: Mapping[str, str | None],
        row_b: Mapping[str, str | None],
        comparison: Comparison,
        winner: Side | None = None,
    ) -> MergedRecord:
        """
        Record for a matched pair.

        Args:
            row_a: Row from A
            row_b: Row from B with the same key
            comparison: Classified differences of the pair
            winner: Side chosen for contested fields; required when the
                comparison has contested fields
        """
        if comparison.is_exact:
            return self.from_a(row_a)

        values = self._from_a_values(row_a)
        for name in comparison.auto_filled:
            values[name] = row_b[name]
            logger.debug(f"Auto-filled {name} from B: {display_value(row_b[name])}")

        source = Source.MERGE_A
        if comparison.needs_decision:
            if winner is None:
                raise ValueError("A winner is required when contested fields exist")
            if winner is Side.B:
                source = Source.MERGE_B
                for diff in comparison.contested:
                    values[diff.name] = diff.value_b

        # conflict marks any divergence, including fully auto-resolved ones
        return MergedRecord(
            values=Row(values),
            source=source,
            conflict=True,
            diff_fields=comparison.diff_fields,
        )
