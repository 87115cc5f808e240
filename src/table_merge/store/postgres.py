"""PostgreSQL store implementation."""

import logging
from collections.abc import Sequence

import psycopg2
import psycopg2.extensions
from opentelemetry import trace
from psycopg2 import sql

from utils.sql_safety import split_schema_table
from utils.tracing import trace_operation

from ..errors import ConnectivityError
from ..models import ColumnDescriptor
from .base import TableStore, ValueTuple

logger = logging.getLogger(__name__)

COLUMNS_QUERY = """
    SELECT
        c.column_name, c.ordinal_position, c.is_nullable, c.column_default,
        c.data_type, format_type(a.atttypid, a.atttypmod), c.is_identity
    FROM information_schema.columns c
    JOIN pg_catalog.pg_namespace n ON n.nspname = c.table_schema
    JOIN pg_catalog.pg_class r ON r.relnamespace = n.oid AND r.relname = c.table_name
    JOIN pg_catalog.pg_attribute a ON a.attrelid = r.oid AND a.attname = c.column_name
    WHERE c.table_schema = COALESCE(%s, current_schema()) AND c.table_name = %s
    ORDER BY c.ordinal_position
"""


def table_identifier(table: str) -> sql.Identifier:
    """Quote a possibly schema-qualified table name."""
    schema, name = split_schema_table(table)
    if schema:
        return sql.Identifier(schema, name)
    return sql.Identifier(name)


def column_identifier(name: str) -> sql.Identifier:
    """
    Quote a column name read from the catalog.

    Catalog names may contain spaces or non-ASCII characters; quoting
    alone makes them safe.
    """
    return sql.Identifier(name)


def _column_from_catalog(record: tuple) -> ColumnDescriptor:
    name, ordinal, is_nullable, default, data_type, column_type, is_identity = record
    extra = ""
    if is_identity == "YES" or (default or "").startswith("nextval("):
        extra = "auto_increment"
    return ColumnDescriptor(
        name=name,
        ordinal=int(ordinal),
        nullable=is_nullable == "YES",
        data_type=data_type,
        column_type=column_type,
        default=default,
        extra=extra,
    )


def column_definition(column: ColumnDescriptor) -> sql.Composed:
    """
    DDL for one output column. Every column is nullable; sequence defaults
    belong to the input table and are dropped.
    """
    parts = [column_identifier(column.name), sql.SQL(column.declared_type), sql.SQL("NULL")]
    if column.default is not None and not column.default.startswith("nextval("):
        parts.append(sql.SQL("DEFAULT {}").format(sql.SQL(column.default)))
    return sql.SQL(" ").join(parts)


class PostgresStore(TableStore):
    """Schema and row store backed by a single psycopg2 connection."""

    def __init__(self, dsn: str, connect_timeout: int = 10):
        """
        Args:
            dsn: libpq connection string or URI
            connect_timeout: Seconds to wait for the server
        """
        self.dsn = dsn
        self.connect_timeout = connect_timeout
        self._conn: psycopg2.extensions.connection | None = None

    @property
    def connection(self) -> psycopg2.extensions.connection:
        if self._conn is None or self._conn.closed:
            raise ConnectivityError("Store is not connected", operation="connection")
        return self._conn

    def connect(self) -> None:
        with trace_operation("postgres_connect", kind=trace.SpanKind.CLIENT):
            conn = None
            try:
                conn = psycopg2.connect(self.dsn, connect_timeout=self.connect_timeout)
                # Each batch commits on its own
                conn.set_session(autocommit=True)
                with conn.cursor() as cursor:
                    cursor.execute("SELECT 1")
                    cursor.fetchone()
            except psycopg2.Error as e:
                if conn is not None:
                    conn.close()
                logger.error(f"Failed to connect to PostgreSQL: {e}")
                raise ConnectivityError(f"Cannot connect to store: {e}", operation="connect") from e

        self._conn = conn
        logger.info("Connected to PostgreSQL")

    def close(self) -> None:
        if self._conn is not None and not self._conn.closed:
            self._conn.close()
        self._conn = None

    def get_columns(self, table: str) -> list[ColumnDescriptor]:
        schema, name = split_schema_table(table)
        with trace_operation("get_columns", kind=trace.SpanKind.CLIENT, table=table):
            with self.connection.cursor() as cursor:
                cursor.execute(COLUMNS_QUERY, (schema, name))
                return [_column_from_catalog(record) for record in cursor.fetchall()]

    def select_all(self, table: str, fields: Sequence[str]) -> list[ValueTuple]:
        # Cast to text so values compare exactly as the server renders them
        columns = sql.SQL(", ").join(
            sql.SQL("{}::text").format(column_identifier(f)) for f in fields
        )
        query = sql.SQL("SELECT {} FROM {}").format(columns, table_identifier(table))
        with trace_operation("select_all", kind=trace.SpanKind.CLIENT, table=table):
            with self.connection.cursor() as cursor:
                cursor.execute(query)
                return [tuple(record) for record in cursor.fetchall()]

    def recreate_table(
        self,
        table: str,
        columns: Sequence[ColumnDescriptor],
        surrogate_key: str | None = "id",
    ) -> None:
        definitions = []
        if surrogate_key:
            definitions.append(
                sql.SQL("{} BIGINT GENERATED ALWAYS AS IDENTITY PRIMARY KEY").format(
                    column_identifier(surrogate_key)
                )
            )
        definitions.extend(column_definition(c) for c in columns)

        drop = sql.SQL("DROP TABLE IF EXISTS {}").format(table_identifier(table))
        create = sql.SQL("CREATE TABLE {} ({})").format(
            table_identifier(table), sql.SQL(", ").join(definitions)
        )
        with trace_operation("recreate_table", kind=trace.SpanKind.CLIENT, table=table):
            with self.connection.cursor() as cursor:
                cursor.execute(drop)
                cursor.execute(create)
        logger.info(f"Recreated output table {table} with {len(columns)} columns")

    def insert_rows(self, table: str, fields: Sequence[str], rows: Sequence[ValueTuple]) -> None:
        if not rows:
            return
        row_placeholder = sql.SQL("({})").format(sql.SQL(", ").join(sql.Placeholder() * len(fields)))
        query = sql.SQL("INSERT INTO {} ({}) VALUES {}").format(
            table_identifier(table),
            sql.SQL(", ").join(column_identifier(f) for f in fields),
            sql.SQL(", ").join([row_placeholder] * len(rows)),
        )
        params = [value for row in rows for value in row]
        with trace_operation("insert_rows", kind=trace.SpanKind.CLIENT, table=table, rows=len(rows)):
            with self.connection.cursor() as cursor:
                cursor.execute(query, params)
