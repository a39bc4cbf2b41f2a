"""Exception classes raised by the tabulous table pipeline."""


class TableError(Exception):
    """Base exception for all table processing errors."""

    pass


class TableSchemaError(TableError):
    """Exception raised when a table source violates the table schema."""

    pass


class EnumerationError(TableSchemaError):
    """Exception raised for duplicate or unknown enumeration names."""

    pass


class UnitError(TableError, ValueError):
    """Exception raised when a unit string cannot be resolved."""

    pass


class TableLookupError(TableError, KeyError):
    """Exception raised when a required table or entity does not exist."""

    pass


class FileTypeError(TableError):
    """Exception raised for unsupported table source file types."""

    pass
