"""
Unit tests for the PostgreSQL store, with psycopg2 mocked out.
"""

from unittest.mock import MagicMock, patch

import psycopg2
import pytest
from psycopg2 import sql

from table_merge.engine import MergeEngine
from table_merge.errors import ConnectivityError
from table_merge.models import ColumnDescriptor
from table_merge.store.postgres import (
    COLUMNS_QUERY,
    PostgresStore,
    _column_from_catalog,
    table_identifier,
)


def identifiers(composable):
    """All quoted names inside a composed statement."""
    if isinstance(composable, sql.Identifier):
        return {composable.strings}
    if isinstance(composable, sql.Composed):
        found = set()
        for part in composable.seq:
            found |= identifiers(part)
        return found
    return set()


@pytest.fixture
def cursor():
    return MagicMock()


@pytest.fixture
def connection(cursor):
    conn = MagicMock()
    conn.closed = 0
    conn.cursor.return_value.__enter__.return_value = cursor
    return conn


@pytest.fixture
def connected_store(connection, cursor):
    with patch("table_merge.store.postgres.psycopg2.connect", return_value=connection):
        store = PostgresStore("postgresql://localhost/test")
        store.connect()
    # Forget the connect-time ping so tests only see their own statements
    cursor.reset_mock()
    return store


class TestConnection:
    """Test connection handling."""

    def test_connect_enables_autocommit_and_pings(self, connection, cursor):
        with patch("table_merge.store.postgres.psycopg2.connect", return_value=connection) as connect:
            PostgresStore("postgresql://localhost/test", connect_timeout=3).connect()

        connect.assert_called_once_with("postgresql://localhost/test", connect_timeout=3)
        connection.set_session.assert_called_once_with(autocommit=True)
        cursor.execute.assert_called_once_with("SELECT 1")

    def test_connect_failure_raises_connectivity_error(self):
        with patch("table_merge.store.postgres.psycopg2.connect",
                   side_effect=psycopg2.OperationalError("could not connect to server")):
            with pytest.raises(ConnectivityError) as exc_info:
                PostgresStore("postgresql://localhost/test").connect()

        assert exc_info.value.operation == "connect"

    def test_failed_ping_closes_connection(self, connection, cursor):
        cursor.execute.side_effect = psycopg2.OperationalError("server closed the connection unexpectedly")

        with patch("table_merge.store.postgres.psycopg2.connect", return_value=connection):
            with pytest.raises(ConnectivityError):
                PostgresStore("postgresql://localhost/test").connect()

        connection.close.assert_called_once()

    def test_use_before_connect(self):
        with pytest.raises(ConnectivityError):
            PostgresStore("postgresql://localhost/test").get_columns("customers")

    def test_close(self, connected_store, connection):
        connected_store.close()

        connection.close.assert_called_once()
        with pytest.raises(ConnectivityError):
            connected_store.connection


class TestIntrospection:
    """Test column discovery."""

    def test_get_columns(self, connected_store, cursor):
        cursor.fetchall.return_value = [
            ("id", 1, "NO", "nextval('customers_id_seq'::regclass)", "integer", "integer", "NO"),
            ("name", 2, "YES", None, "character varying", "character varying(50)", "NO"),
        ]

        columns = connected_store.get_columns("sales.customers")

        cursor.execute.assert_called_with(COLUMNS_QUERY, ("sales", "customers"))
        assert columns[0].is_auto_increment_id
        assert columns[1] == ColumnDescriptor(
            name="name", ordinal=2, nullable=True, data_type="character varying",
            column_type="character varying(50)", default=None, extra="",
        )

    def test_unqualified_table_uses_current_schema(self, connected_store, cursor):
        cursor.fetchall.return_value = []

        assert connected_store.get_columns("customers") == []
        cursor.execute.assert_called_with(COLUMNS_QUERY, (None, "customers"))

    def test_identity_column(self):
        column = _column_from_catalog(("id", 1, "NO", None, "bigint", "bigint", "YES"))

        assert column.is_auto_increment_id


class TestStatements:
    """Test reads and writes."""

    def test_select_all_returns_tuples(self, connected_store, cursor):
        cursor.fetchall.return_value = [["1", None], ["2", ""]]

        assert connected_store.select_all("customers", ["code", "name"]) == [("1", None), ("2", "")]

    def test_select_quotes_unusual_column_names(self, connected_store, cursor):
        cursor.fetchall.return_value = [("1", "x", "y")]

        rows = connected_store.select_all("customers", ["code", "order date", "名称"])

        query = cursor.execute.call_args[0][0]
        assert rows == [("1", "x", "y")]
        assert {("order date",), ("名称",)} <= identifiers(query)

    def test_insert_rows_single_statement(self, connected_store, cursor):
        connected_store.insert_rows("merged", ["code", "_source"], [("1", "A"), ("2", None)])

        cursor.execute.assert_called_once()
        query, params = cursor.execute.call_args[0]
        assert isinstance(query, sql.Composed)
        assert params == ["1", "A", "2", None]

    def test_insert_nothing(self, connected_store, cursor):
        connected_store.insert_rows("merged", ["code"], [])

        cursor.execute.assert_not_called()

    def test_recreate_drops_then_creates(self, connected_store, cursor):
        columns = [ColumnDescriptor(name="code", ordinal=1, nullable=True, data_type="text", column_type="text")]

        connected_store.recreate_table("merged", columns)

        assert cursor.execute.call_count == 2

    def test_recreate_quotes_unusual_column_names(self, connected_store, cursor):
        columns = [
            ColumnDescriptor(name="code", ordinal=1, nullable=False, data_type="text"),
            ColumnDescriptor(name="unit-price", ordinal=2, nullable=True, data_type="numeric"),
            ColumnDescriptor(name="名称", ordinal=3, nullable=True, data_type="text"),
        ]

        connected_store.recreate_table("merged", columns)

        create = cursor.execute.call_args_list[-1][0][0]
        assert {("unit-price",), ("名称",)} <= identifiers(create)

    def test_insert_quotes_unusual_column_names(self, connected_store, cursor):
        connected_store.insert_rows("merged", ["code", "order date"], [("1", "2024-01-01")])

        query, params = cursor.execute.call_args[0]
        assert ("order date",) in identifiers(query)
        assert params == ["1", "2024-01-01"]

    def test_table_identifier(self):
        assert table_identifier("sales.customers") == sql.Identifier("sales", "customers")
        assert table_identifier("customers") == sql.Identifier("customers")
        with pytest.raises(ValueError):
            table_identifier("bad name")


def test_merge_run_with_non_ascii_columns(connection, cursor, make_config):
    """A full run over tables whose column names need quoting."""
    catalog = [
        ("code", 1, "YES", None, "text", "text", "NO"),
        ("名称", 2, "YES", None, "text", "text", "NO"),
    ]
    cursor.fetchall.side_effect = [
        catalog,
        catalog,
        [("1", "甲"), ("2", None)],
        [("1", "乙")],
    ]

    with patch("table_merge.store.postgres.psycopg2.connect", return_value=connection):
        report = MergeEngine(make_config(strategy="prefer-b"), PostgresStore("postgresql://localhost/test")).run()

    assert report.total_c == 2
    assert report.conflict_use_b == 1
    query, params = cursor.execute.call_args[0]
    assert ("名称",) in identifiers(query)
    assert params[:5] == ["1", "乙", "MERGE_B", "1", "名称"]
