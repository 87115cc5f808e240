"""
SQL safety utilities for preventing SQL injection.

Table and column names reach the store through configuration, so they are
validated before any statement is composed from them.
"""

import re


# Strict ASCII-only patterns for SQL identifiers
VALID_IDENTIFIER = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")
VALID_SCHEMA_TABLE = re.compile(
    r"^[a-zA-Z_][a-zA-Z0-9_]*(\.[a-zA-Z_][a-zA-Z0-9_]*)?$"
)


def validate_identifier(identifier: str) -> None:
    """
    Validate a SQL identifier (column name, key field, etc.).

    Args:
        identifier: The identifier to validate

    Raises:
        ValueError: If the identifier contains invalid characters
    """
    if not identifier:
        raise ValueError("SQL identifier cannot be empty")

    if not VALID_IDENTIFIER.match(identifier):
        raise ValueError(
            f"Invalid SQL identifier: {identifier!r}. "
            "Only ASCII letters, digits, and underscores are allowed, "
            "and must start with a letter or underscore."
        )


def validate_schema_table(schema_table: str) -> None:
    """
    Validate a table name, optionally schema-qualified.

    Raises:
        ValueError: If the identifier format is invalid
    """
    if not schema_table:
        raise ValueError("Table name cannot be empty")

    if not VALID_SCHEMA_TABLE.match(schema_table):
        raise ValueError(
            f"Invalid table name: {schema_table!r}. "
            "Only ASCII letters, digits, and underscores are allowed."
        )


def split_schema_table(schema_table: str) -> tuple[str | None, str]:
    """
    Split ``schema.table`` into its parts after validation.

    Returns:
        (schema, table); schema is None for unqualified names
    """
    validate_schema_table(schema_table)
    if "." in schema_table:
        schema, table = schema_table.split(".", 1)
        return schema, table
    return None, schema_table
