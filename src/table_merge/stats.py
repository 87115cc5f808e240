"""
Run-level counters.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime

from .models import MergeReport, Side


@dataclass
class StatsCollector:
    """
    Accumulates merge counters and finalizes them into a ``MergeReport``.

    One collector is created per run and passed explicitly through the
    matching passes.
    """

    total_a: int = 0
    total_b: int = 0
    total_c: int = 0
    exact_match: int = 0
    only_in_a: int = 0
    only_in_b: int = 0
    conflict: int = 0
    null_auto_filled: int = 0
    conflict_use_a: int = 0
    conflict_use_b: int = 0
    started_at: datetime | None = None
    _report: MergeReport | None = field(default=None, init=False, repr=False)

    def start(self) -> "StatsCollector":
        self.started_at = datetime.now(UTC)
        return self

    def record_total_a(self, count: int) -> None:
        self.total_a = count

    def record_total_b(self, count: int) -> None:
        self.total_b = count

    def record_exact(self) -> None:
        self.exact_match += 1

    def record_only_a(self) -> None:
        self.only_in_a += 1

    def record_only_b(self) -> None:
        self.only_in_b += 1

    def record_conflict(self) -> int:
        """Count a matched pair with differences; returns its ordinal."""
        self.conflict += 1
        return self.conflict

    def record_auto_fill(self, fields: int = 1) -> None:
        self.null_auto_filled += fields

    def record_resolution(self, side: Side) -> None:
        if side is Side.A:
            self.conflict_use_a += 1
        else:
            self.conflict_use_b += 1

    def record_written(self, count: int) -> None:
        self.total_c += count

    @property
    def finalized(self) -> bool:
        return self._report is not None

    def finalize(self) -> MergeReport:
        """
        Freeze the counters. Can only be called once.

        Raises:
            RuntimeError: If the collector was already finalized
        """
        if self._report is not None:
            raise RuntimeError("Merge statistics already finalized")

        finished = datetime.now(UTC)
        self._report = MergeReport(
            total_a=self.total_a,
            total_b=self.total_b,
            total_c=self.total_c,
            exact_match=self.exact_match,
            only_in_a=self.only_in_a,
            only_in_b=self.only_in_b,
            conflict=self.conflict,
            null_auto_filled=self.null_auto_filled,
            conflict_use_a=self.conflict_use_a,
            conflict_use_b=self.conflict_use_b,
            started_at=self.started_at or finished,
            finished_at=finished,
        )
        return self._report
