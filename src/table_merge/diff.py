"""
Field-by-field comparison of matched rows.

Two values are equal when both are NULL, or both are non-NULL and textually
identical. NULL never equals the empty string.

Each differing field is classified on its own:

- auto-fill: A is NULL or empty and B is not; B's value is taken
- auto-keep: B is NULL or empty and A is not; A's value stays
- contested: anything else, including NULL against '', which needs a policy
  decision because neither side is "more empty" than the other
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum

from .schema import UnifiedSchema

logger = logging.getLogger(__name__)


class DiffKind(str, Enum):
    AUTO_FILL = "auto_fill"
    AUTO_KEEP = "auto_keep"
    CONTESTED = "contested"


def values_equal(a: str | None, b: str | None) -> bool:
    if a is None and b is None:
        return True
    if a is None or b is None:
        return False
    return a == b


def is_null_or_empty(value: str | None) -> bool:
    return value is None or value == ""


def classify_field(a: str | None, b: str | None) -> DiffKind:
    """Classify a pair already known to differ."""
    a_empty = is_null_or_empty(a)
    b_empty = is_null_or_empty(b)
    if a_empty and not b_empty:
        return DiffKind.AUTO_FILL
    if b_empty and not a_empty:
        return DiffKind.AUTO_KEEP
    return DiffKind.CONTESTED


def display_value(value: str | None) -> str:
    """Render a value for humans, making NULL and '' visible."""
    if value is None:
        return "<NULL>"
    if value == "":
        return "<empty>"
    return value


@dataclass(frozen=True)
class FieldDiff:
    """One differing field with both values and its classification."""

    name: str
    value_a: str | None
    value_b: str | None
    kind: DiffKind


@dataclass(frozen=True)
class Comparison:
    """Outcome of comparing a matched pair."""

    diffs: tuple[FieldDiff, ...] = field(default_factory=tuple)

    @property
    def is_exact(self) -> bool:
        return not self.diffs

    @property
    def diff_fields(self) -> tuple[str, ...]:
        return tuple(d.name for d in self.diffs)

    def fields_of(self, kind: DiffKind) -> tuple[str, ...]:
        return tuple(d.name for d in self.diffs if d.kind is kind)

    @property
    def auto_filled(self) -> tuple[str, ...]:
        return self.fields_of(DiffKind.AUTO_FILL)

    @property
    def auto_kept(self) -> tuple[str, ...]:
        return self.fields_of(DiffKind.AUTO_KEEP)

    @property
    def contested(self) -> tuple[FieldDiff, ...]:
        return tuple(d for d in self.diffs if d.kind is DiffKind.CONTESTED)

    @property
    def needs_decision(self) -> bool:
        return bool(self.contested)


class DiffEngine:
    """Compares matched rows over the comparison fields of a unified schema."""

    def __init__(self, schema: UnifiedSchema):
        self.schema = schema
        # B-ignored fields never take part in comparison
        self.fields = tuple(
            f for f in schema.comparison_fields if f not in schema.ignore_fields_b
        )

    def differing_fields(
        self, row_a: Mapping[str, str | None], row_b: Mapping[str, str | None]
    ) -> list[str]:
        """
        Names of comparison fields whose values differ.

        Fields absent from row B are skipped: a field B does not have can
        never count as a difference.
        """
        differing = []
        for name in self.fields:
            if name not in row_b:
                continue
            if not values_equal(row_a.get(name), row_b[name]):
                differing.append(name)
        return differing

    def compare(
        self, row_a: Mapping[str, str | None], row_b: Mapping[str, str | None]
    ) -> Comparison:
        """Compare and classify every differing field independently."""
        diffs = []
        for name in self.differing_fields(row_a, row_b):
            a, b = row_a.get(name), row_b[name]
            kind = classify_field(a, b)
            diffs.append(FieldDiff(name=name, value_a=a, value_b=b, kind=kind))
            logger.debug(
                f"Field {name} differs ({kind.value}): "
                f"A={display_value(a)} B={display_value(b)}"
            )
        return Comparison(diffs=tuple(diffs))
