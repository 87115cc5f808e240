"""
Data model shared by every merge stage.

Values are carried as text. ``None`` is SQL NULL and is never conflated with
the empty string; a field missing from a ``Row`` means the field does not
exist in that side's schema.
"""

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any

from utils.sql_safety import validate_identifier, validate_schema_table

from .errors import ConfigError

DEFAULT_BATCH_SIZE = 500

KEY_SEPARATOR = "\x01@@\x01"
NULL_KEY_SENTINEL = "\x00<NULL>\x00"

SOURCE_FIELD = "_source"
CONFLICT_FIELD = "_conflict"
DIFF_FIELDS_FIELD = "_diff_fields"
PROVENANCE_FIELDS = (SOURCE_FIELD, CONFLICT_FIELD, DIFF_FIELDS_FIELD)


class Source(str, Enum):
    """Provenance code written to the output table."""

    A = "A"
    B = "B"
    MERGE_A = "MERGE_A"
    MERGE_B = "MERGE_B"


class Side(str, Enum):
    """Winning side of a contested comparison."""

    A = "A"
    B = "B"


class ConflictStrategy(str, Enum):
    """How contested fields are resolved."""

    PREFER_A = "prefer-a"
    PREFER_B = "prefer-b"
    INTERACTIVE = "interactive"

    @classmethod
    def parse(cls, value: "str | ConflictStrategy") -> "ConflictStrategy":
        if isinstance(value, cls):
            return value
        aliases = {
            "prefer-a": cls.PREFER_A,
            "prefera": cls.PREFER_A,
            "use-a": cls.PREFER_A,
            "a": cls.PREFER_A,
            "prefer-b": cls.PREFER_B,
            "preferb": cls.PREFER_B,
            "use-b": cls.PREFER_B,
            "b": cls.PREFER_B,
            "interactive": cls.INTERACTIVE,
            "ask": cls.INTERACTIVE,
        }
        normalized = str(value).strip().lower().replace("_", "-")
        if normalized not in aliases:
            raise ConfigError(f"Unknown conflict strategy: {value!r}")
        return aliases[normalized]

    @property
    def description(self) -> str:
        return {
            ConflictStrategy.PREFER_A: "prefer table A",
            ConflictStrategy.PREFER_B: "prefer table B",
            ConflictStrategy.INTERACTIVE: "ask interactively",
        }[self]


@dataclass(frozen=True)
class ColumnDescriptor:
    """A column as reported by the schema store."""

    name: str
    ordinal: int
    nullable: bool
    data_type: str
    column_type: str | None = None
    default: str | None = None
    extra: str = ""

    @property
    def declared_type(self) -> str:
        return self.column_type or self.data_type

    @property
    def is_auto_increment_id(self) -> bool:
        """True for the conventional surrogate key column."""
        return self.name.lower() == "id" and "auto_increment" in self.extra.lower()


class Row(Mapping[str, str | None]):
    """Read-only mapping of field name to text value or ``None`` (NULL)."""

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[str, str | None] | Iterable[tuple[str, str | None]] = ()):
        self._values = MappingProxyType(dict(values))

    @classmethod
    def from_sequence(cls, fields: Iterable[str], values: Iterable[str | None]) -> "Row":
        return cls(zip(fields, values))

    def __getitem__(self, name: str) -> str | None:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def has_field(self, name: str) -> bool:
        return name in self._values

    def __repr__(self) -> str:
        return f"Row({dict(self._values)!r})"


@dataclass(frozen=True)
class MergedRecord:
    """One output row: values over the output fields plus provenance."""

    values: Row
    source: Source
    conflict: bool = False
    diff_fields: tuple[str, ...] = ()

    def as_output_row(self, fields: Iterable[str]) -> tuple[str | None, ...]:
        """Positional values for ``fields`` followed by the provenance columns."""
        data = [self.values.get(f) for f in fields]
        data.append(self.source.value)
        data.append("1" if self.conflict else "0")
        data.append(",".join(self.diff_fields) if self.diff_fields else None)
        return tuple(data)


@dataclass(frozen=True)
class MergeReport:
    """Run-level counters, finalized once at the end of a run."""

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
    finished_at: datetime | None = None

    @property
    def duration_seconds(self) -> float:
        if self.started_at is None or self.finished_at is None:
            return 0.0
        return (self.finished_at - self.started_at).total_seconds()

    def counts(self) -> dict[str, int]:
        """Counters only; equal across runs over unchanged inputs."""
        data = asdict(self)
        data.pop("started_at")
        data.pop("finished_at")
        return data

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = self.counts()
        data["started_at"] = self.started_at.isoformat() if self.started_at else None
        data["finished_at"] = self.finished_at.isoformat() if self.finished_at else None
        data["duration_seconds"] = self.duration_seconds
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MergeReport":
        started = data.get("started_at")
        finished = data.get("finished_at")
        return cls(
            **{name: int(data.get(name, 0)) for name in cls().counts()},
            started_at=datetime.fromisoformat(started) if started else None,
            finished_at=datetime.fromisoformat(finished) if finished else None,
        )


def _normalize_fields(fields: Iterable[str] | str | None) -> tuple[str, ...]:
    if fields is None:
        return ()
    if isinstance(fields, str):
        fields = fields.split(",")
    return tuple(f.strip() for f in fields if f and f.strip())


@dataclass
class MergeConfig:
    """
    Merge job configuration.

    Attributes:
        dsn: libpq connection string for the store
        table_a: Primary table; its schema defines the output schema
        table_b: Table compared against A
        table_c: Output table, dropped and recreated on every run
        key_fields: Fields whose values identify the same entity on both sides
        ignore_fields_a: A fields excluded from comparison (still written)
        ignore_fields_b: B fields excluded from comparison and never written
        strategy: How contested fields are resolved
        batch_size: Rows per insert statement (non-positive means default)
    """

    dsn: str
    table_a: str
    table_b: str
    table_c: str
    key_fields: tuple[str, ...]
    ignore_fields_a: tuple[str, ...] = field(default_factory=tuple)
    ignore_fields_b: tuple[str, ...] = field(default_factory=tuple)
    strategy: ConflictStrategy = ConflictStrategy.PREFER_A
    batch_size: int = DEFAULT_BATCH_SIZE

    def __post_init__(self) -> None:
        self.key_fields = _normalize_fields(self.key_fields)
        self.ignore_fields_a = _normalize_fields(self.ignore_fields_a)
        self.ignore_fields_b = _normalize_fields(self.ignore_fields_b)
        self.strategy = ConflictStrategy.parse(self.strategy)
        if not self.batch_size or self.batch_size <= 0:
            self.batch_size = DEFAULT_BATCH_SIZE

    def validate(self) -> "MergeConfig":
        """
        Check table and field names.

        Raises:
            ConfigError: If a name is missing or not a valid identifier
        """
        if not self.key_fields:
            raise ConfigError("At least one key field is required")

        for label, table in (("table A", self.table_a), ("table B", self.table_b), ("table C", self.table_c)):
            if not table:
                raise ConfigError(f"{label} name is required")
            try:
                validate_schema_table(table)
            except ValueError as e:
                raise ConfigError(str(e), table=table) from e

        if self.table_c in (self.table_a, self.table_b):
            raise ConfigError("Output table must differ from the input tables", table=self.table_c)

        for name in (*self.key_fields, *self.ignore_fields_a, *self.ignore_fields_b):
            try:
                validate_identifier(name)
            except ValueError as e:
                raise ConfigError(str(e)) from e

        return self
