"""
Composite keys and the key index over table B.
"""

import logging
from collections.abc import Iterable, Mapping, Sequence

from .models import KEY_SEPARATOR, NULL_KEY_SENTINEL, Row

logger = logging.getLogger(__name__)


def build_key(row: Mapping[str, str | None], key_fields: Sequence[str]) -> str:
    """Join key-field values; NULL and missing values become the sentinel."""
    parts = []
    for name in key_fields:
        value = row.get(name)
        parts.append(NULL_KEY_SENTINEL if value is None else value)
    return KEY_SEPARATOR.join(parts)


class KeyIndexer:
    """
    Key to row lookup for one side.

    A later row with an already indexed key replaces the earlier one, so
    earlier duplicates are silently dropped from matching. ``duplicates``
    counts how many rows were replaced that way.
    """

    def __init__(self, key_fields: Sequence[str]):
        self.key_fields = tuple(key_fields)
        self.duplicates = 0

    def key(self, row: Row) -> str:
        return build_key(row, self.key_fields)

    def build(self, rows: Iterable[Row]) -> dict[str, Row]:
        index: dict[str, Row] = {}
        self.duplicates = 0
        for row in rows:
            key = self.key(row)
            if key in index:
                self.duplicates += 1
            index[key] = row

        if self.duplicates:
            logger.warning(
                f"{self.duplicates} row(s) share a key with a later row; "
                f"only the last row per key is matched",
                extra={"key_fields": ",".join(self.key_fields)},
            )
        return index
