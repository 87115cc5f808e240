"""
Exception hierarchy for table merging.

Every fatal error carries the table and operation it happened on so the
caller can diagnose a failed run without digging through logs.
"""


class MergeError(Exception):
    """Base exception for merge errors."""

    def __init__(self, message: str, table: str | None = None, operation: str | None = None):
        super().__init__(message)
        self.table = table
        self.operation = operation

    def __str__(self) -> str:
        message = super().__str__()
        context = []
        if self.operation:
            context.append(f"operation={self.operation}")
        if self.table:
            context.append(f"table={self.table}")
        if context:
            return f"{message} ({', '.join(context)})"
        return message


class ConfigError(MergeError):
    """Raised when the merge configuration is invalid or incomplete."""

    pass


class ConnectivityError(MergeError):
    """Raised when the store cannot be reached."""

    pass


class SchemaError(MergeError):
    """Raised when a table is missing, has no usable columns, or lacks key fields."""

    pass


class ReadError(MergeError):
    """Raised when reading or decoding rows from a table fails."""

    pass


class WriteError(MergeError):
    """Raised when a batch insert into the output table fails."""

    def __init__(
        self,
        message: str,
        table: str | None = None,
        operation: str | None = "insert_batch",
        rows_written: int = 0,
    ):
        super().__init__(message, table=table, operation=operation)
        self.rows_written = rows_written


class InputError(MergeError):
    """Raised by an input channel that can no longer be read. Non-fatal."""

    pass
