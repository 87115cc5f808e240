"""
Merge engine.

Runs the whole reconciliation sequentially: resolve both schemas, recreate
the output table, load A and B in full, index B by key, match every A row
against the index, collect the B rows nobody matched, then write the
records in batches.
"""

import logging
import time
from collections.abc import Sequence

from opentelemetry import trace

from utils.logging import ContextLogger
from utils.tracing import add_span_attributes, trace_operation

from .assembler import RecordAssembler
from .diff import Comparison, DiffEngine, display_value
from .keys import KeyIndexer
from .loader import TableLoader
from .models import MergeConfig, MergedRecord, MergeReport, Row
from .resolution import InputChannel, ResolutionPolicy, printable_key
from .schema import SchemaResolver, UnifiedSchema
from .stats import StatsCollector
from .store import PostgresStore, TableStore
from .writer import Writer

logger = logging.getLogger(__name__)


class MergeEngine:
    """Reconciles table A with table B into table C."""

    def __init__(
        self,
        config: MergeConfig,
        store: TableStore | None = None,
        channel: InputChannel | None = None,
        metrics=None,
    ):
        """
        Args:
            config: Validated merge configuration
            store: Schema and row store (default: PostgreSQL at ``config.dsn``)
            channel: Input channel for the interactive strategy (default: stdin)
            metrics: Optional ``MergeMetrics``
        """
        self.config = config
        self.store = store if store is not None else PostgresStore(config.dsn)
        self.policy = ResolutionPolicy(config.strategy, channel)
        self.metrics = metrics
        self.log = ContextLogger(
            __name__, table_a=config.table_a, table_b=config.table_b, table_c=config.table_c
        )

    def run(self) -> MergeReport:
        """
        Execute the merge.

        Returns:
            Finalized report of the run

        Raises:
            ConnectivityError, SchemaError, ReadError, WriteError: All fatal;
                the output table may be partially written after a WriteError
        """
        config = self.config
        stats = StatsCollector().start()
        started = time.monotonic()
        success = False

        self.log.info(
            f"Merging {config.table_a} with {config.table_b} into {config.table_c} "
            f"(conflicts: {config.strategy.description})",
            key_fields=",".join(config.key_fields),
            strategy=config.strategy.value,
        )
        if config.ignore_fields_a:
            self.log.info(f"Ignored for comparison in A: {', '.join(config.ignore_fields_a)}")
        if config.ignore_fields_b:
            self.log.info(f"Ignored in B: {', '.join(config.ignore_fields_b)}")

        try:
            with trace_operation(
                "merge_run",
                kind=trace.SpanKind.INTERNAL,
                table_a=config.table_a,
                table_b=config.table_b,
                table_c=config.table_c,
            ):
                self.store.connect()
                try:
                    self._execute(stats)
                finally:
                    self.store.close()

            report = stats.finalize()
            success = True
        finally:
            if self.metrics is not None:
                self.metrics.record_run(config.table_c, success, time.monotonic() - started)

        if self.metrics is not None:
            self.metrics.record_report(config.table_c, report)
        self.log.info(
            f"Merge complete: {report.total_c} records written in {report.duration_seconds:.2f}s",
            **report.counts(),
        )
        return report

    def _execute(self, stats: StatsCollector) -> None:
        config = self.config
        resolver = SchemaResolver(self.store)
        columns_a = resolver.resolve(config.table_a)
        columns_b = resolver.resolve(config.table_b)
        schema = resolver.unify(columns_a, columns_b, config)

        writer = Writer(self.store, config.table_c, schema, config.batch_size, metrics=self.metrics)
        writer.recreate()

        loader = TableLoader(self.store)
        rows_a = loader.load(config.table_a, schema.fields_a)
        stats.record_total_a(len(rows_a))
        rows_b = loader.load(config.table_b, schema.fields_b)
        stats.record_total_b(len(rows_b))

        records = self.reconcile(rows_a, rows_b, schema, stats)

        self.log.info(f"Writing {len(records)} records")
        stats.record_written(writer.write(records))

    def reconcile(
        self,
        rows_a: Sequence[Row],
        rows_b: Sequence[Row],
        schema: UnifiedSchema,
        stats: StatsCollector,
    ) -> list[MergedRecord]:
        """
        Match A against B in memory and assemble one record per entity.

        A rows come first in load order, followed by B rows whose key no A
        row matched.
        """
        with trace_operation("reconcile_rows", kind=trace.SpanKind.INTERNAL):
            indexer = KeyIndexer(schema.key_fields)
            index = indexer.build(rows_b)
            diff_engine = DiffEngine(schema)
            assembler = RecordAssembler(schema)

            records: list[MergedRecord] = []
            matched: set[str] = set()

            for row_a in rows_a:
                key = indexer.key(row_a)
                row_b = index.get(key)
                if row_b is None:
                    stats.record_only_a()
                    records.append(assembler.from_a(row_a))
                    continue

                matched.add(key)
                comparison = diff_engine.compare(row_a, row_b)
                records.append(self._merge_pair(key, row_a, row_b, comparison, assembler, stats))

            for row_b in rows_b:
                if indexer.key(row_b) not in matched:
                    stats.record_only_b()
                    records.append(assembler.from_b(row_b))

            add_span_attributes(records=len(records), duplicates_b=indexer.duplicates)
            return records

    def _merge_pair(
        self,
        key: str,
        row_a: Row,
        row_b: Row,
        comparison: Comparison,
        assembler: RecordAssembler,
        stats: StatsCollector,
    ) -> MergedRecord:
        if comparison.is_exact:
            stats.record_exact()
            return assembler.from_a(row_a)

        ordinal = stats.record_conflict()
        self.log.info(
            f"Conflict #{ordinal} for key [{printable_key(key)}]: "
            f"{len(comparison.diffs)} field(s) differ",
            diff_fields=",".join(comparison.diff_fields),
        )
        for diff in comparison.diffs:
            self.log.debug(
                f"  {diff.name}: A={display_value(diff.value_a)} B={display_value(diff.value_b)} "
                f"({diff.kind.value})"
            )

        stats.record_auto_fill(len(comparison.auto_filled))

        winner = None
        if comparison.needs_decision:
            winner = self.policy.decide(key, comparison.contested)
            stats.record_resolution(winner)
            self.log.info(
                f"Conflict #{ordinal}: {len(comparison.contested)} contested field(s) "
                f"resolved toward {winner.value}"
            )

        return assembler.merge(row_a, row_b, comparison, winner)
