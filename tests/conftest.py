"""
Pytest configuration and fixtures for table merge tests.

Provides an in-memory store standing in for PostgreSQL, plus factories for
configurations and unified schemas.
"""

from collections.abc import Sequence

import pytest

from table_merge.models import ColumnDescriptor, MergeConfig, Row
from table_merge.schema import SchemaResolver, UnifiedSchema
from table_merge.store import TableStore


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "slow: mark test as slow running")


def make_columns(names: Sequence[str], with_id: bool = True) -> list[ColumnDescriptor]:
    columns = []
    ordinal = 1
    if with_id:
        columns.append(ColumnDescriptor(name="id", ordinal=ordinal, nullable=False,
                                        data_type="integer", extra="auto_increment"))
        ordinal += 1
    for name in names:
        columns.append(ColumnDescriptor(name=name, ordinal=ordinal, nullable=True,
                                        data_type="text", column_type="text"))
        ordinal += 1
    return columns


class InMemoryStore(TableStore):
    """Dict-backed store recording every call the engine makes."""

    def __init__(self):
        self.tables: dict[str, dict] = {}
        self.connected = False
        self.connect_count = 0
        self.insert_calls: list[int] = []
        self.fail_insert_on_call: int | None = None
        self.fail_select_on: str | None = None
        self.recreated: list[tuple[str, list[str], str | None]] = []

    def add_table(self, name: str, fields: Sequence[str], rows: Sequence[dict], with_id: bool = True):
        columns = make_columns(fields, with_id=with_id)
        stored = []
        for i, row in enumerate(rows, start=1):
            data = {f: row.get(f) for f in fields}
            if with_id:
                data["id"] = str(i)
            stored.append(data)
        self.tables[name] = {"columns": columns, "rows": stored}

    def rows_of(self, name: str) -> list[dict]:
        return self.tables[name]["rows"]

    def connect(self) -> None:
        self.connected = True
        self.connect_count += 1

    def close(self) -> None:
        self.connected = False

    def get_columns(self, table: str) -> list[ColumnDescriptor]:
        if table not in self.tables:
            return []
        return list(self.tables[table]["columns"])

    def select_all(self, table: str, fields: Sequence[str]):
        if table == self.fail_select_on:
            raise RuntimeError(f"relation {table} is locked")
        return [tuple(row.get(f) for f in fields) for row in self.tables[table]["rows"]]

    def recreate_table(self, table, columns, surrogate_key="id") -> None:
        self.recreated.append((table, [c.name for c in columns], surrogate_key))
        self.tables[table] = {"columns": list(columns), "rows": []}

    def insert_rows(self, table, fields, rows) -> None:
        self.insert_calls.append(len(rows))
        if self.fail_insert_on_call == len(self.insert_calls):
            raise RuntimeError("value too long for type character varying(10)")
        for row in rows:
            self.tables[table]["rows"].append(dict(zip(fields, row)))


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def make_config():
    """Factory for merge configurations over tables a, b and c."""
    def factory(**overrides) -> MergeConfig:
        values = {
            "dsn": "postgresql://localhost/test",
            "table_a": "table_a",
            "table_b": "table_b",
            "table_c": "table_c",
            "key_fields": ("code",),
        }
        values.update(overrides)
        return MergeConfig(**values)
    return factory


@pytest.fixture
def make_schema(make_config):
    """Factory for unified schemas from plain field name lists."""
    def factory(fields_a, fields_b, **overrides) -> UnifiedSchema:
        config = make_config(**overrides)
        return SchemaResolver.unify(
            make_columns(fields_a, with_id=False),
            make_columns(fields_b, with_id=False),
            config,
        )
    return factory


@pytest.fixture
def row():
    """Shortcut for building rows: row(code="1", name=None)."""
    def factory(**values) -> Row:
        return Row(values)
    return factory
