"""
Table merge: reconcile two snapshots of the same dataset

Compares table A with table B by key, resolves field-level conflicts and
writes a provenance-tagged result to table C.

Components:
- schema: column discovery and output schema unification
- loader: null-aware full-table loading
- keys: composite keys and the key index
- diff: field comparison and classification
- resolution: conflict strategies and interactive input
- assembler: output record construction
- writer: batched inserts into the output table
- stats: run counters and the final report
- engine: the end-to-end run

Usage:
    from table_merge import MergeConfig, MergeEngine

    config = MergeConfig(dsn=..., table_a="a", table_b="b", table_c="c", key_fields=("code",))
    report = MergeEngine(config.validate()).run()
"""

from .engine import MergeEngine
from .errors import (
    ConfigError,
    ConnectivityError,
    InputError,
    MergeError,
    ReadError,
    SchemaError,
    WriteError,
)
from .models import (
    ColumnDescriptor,
    ConflictStrategy,
    MergeConfig,
    MergedRecord,
    MergeReport,
    Row,
    Side,
    Source,
)

__version__ = "1.0.0"
__all__ = [
    "MergeEngine",
    "MergeConfig",
    "MergeReport",
    "MergedRecord",
    "ColumnDescriptor",
    "ConflictStrategy",
    "Row",
    "Side",
    "Source",
    "MergeError",
    "ConfigError",
    "ConnectivityError",
    "SchemaError",
    "ReadError",
    "WriteError",
    "InputError",
]
