"""Exception classes raised while reading, resolving and exporting workbooks.

All exceptions derive from XlsxrefError so that callers (e.g. the CLI) can
handle every expected failure in one place. Each class keeps the context of
the failure as attributes and renders it in the message.
"""

from typing import Any


class XlsxrefError(Exception):
    pass


class ValueParseError(XlsxrefError):
    """Raised when a raw cell string cannot be converted to its column type."""

    def __init__(
        self,
        column_type: str,
        raw: str,
        sheet: str | None = None,
        row: int | None = None,
        column: str | None = None,
        reason: str | None = None,
    ):
        self.column_type = column_type
        self.raw = raw
        self.sheet = sheet
        self.row = row
        self.column = column
        self.reason = reason
        msg = reason or f"cannot parse value '{raw}' as type '{column_type}'"
        if sheet is not None:
            msg = f"sheet:{sheet} row:{row} column:{column} {msg}"
        super().__init__(msg)


class ColumnNotFoundError(XlsxrefError):
    def __init__(self, sheet: str, column: str):
        self.sheet = sheet
        self.column = column
        super().__init__(f"sheet:{sheet} column:{column} not found")


class AliasNotFoundError(XlsxrefError):
    """Raised when a polymorphic row names a reference_name nobody defines."""

    def __init__(self, sheet: str, row: int, column: str, alias: str):
        self.sheet = sheet
        self.row = row
        self.column = column
        self.alias = alias
        super().__init__(
            f"sheet:{sheet} row:{row} column:{column} reference_name:{alias} not found"
        )


class ValueNotFoundError(XlsxrefError):
    """Raised when a raw key is missing from the value map of a reference."""

    def __init__(
        self,
        sheet: str,
        row: int,
        column: str,
        raw: str,
        reference_sheet: str,
        reference_key: str,
    ):
        self.sheet = sheet
        self.row = row
        self.column = column
        self.raw = raw
        self.reference_sheet = reference_sheet
        self.reference_key = reference_key
        super().__init__(
            f"sheet:{sheet} row:{row} column:{column} reference:{raw} "
            f"value not found from {reference_sheet}:{reference_key}"
        )


class TypeMismatchError(XlsxrefError):
    def __init__(self, sheet: str, row: int, column: str, expected: Any, actual: Any):
        self.sheet = sheet
        self.row = row
        self.column = column
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"sheet:{sheet} row:{row} column:{column} "
            f"value type mismatch: {expected}, {actual}"
        )


class DefinitionError(XlsxrefError):
    """Raised for malformed rows of the reference definition sheet."""


class SourceOpenError(XlsxrefError):
    """Raised when a workbook or one of its sheets cannot be read.

    The lower-level cause is chained as ``__cause__``.
    """

    def __init__(self, path: Any, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f'{reason}: "{path}"')


class ExportError(XlsxrefError):
    pass
