"""Column types and conversion of raw cell strings to typed values."""

import re
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Union

from xlsxref.errors import ValueParseError

CellValue = Union[str, int, float, bool, datetime]

ZERO_DATETIME = datetime(1, 1, 1, tzinfo=timezone.utc)
UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_INT_PATTERN = re.compile(r"[+-]?[0-9]+")
_DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")
_RFC3339_PATTERN = re.compile(
    r"\d{4}-\d{2}-\d{2}[Tt]\d{2}:\d{2}:\d{2}(\.\d+)?([Zz]|[+-]\d{2}:\d{2})"
)
_BOOL_LITERALS = {
    "1": True,
    "t": True,
    "T": True,
    "TRUE": True,
    "true": True,
    "True": True,
    "0": False,
    "f": False,
    "F": False,
    "FALSE": False,
    "false": False,
    "False": False,
}


class ColumnType(Enum):
    """Type tags of the first header row of a data sheet.

    UNSET marks a column without type. Such columns are read but never
    exported. Columns of type REF get their real type when references are
    resolved.
    """

    UNSET = ""
    STRING = "string"
    INT = "int"
    FLOAT = "float"
    BOOL = "bool"
    DATETIME = "datetime"
    DATE = "date"
    UNIXTIME = "unixtime"
    REF = "ref"

    def __str__(self):
        return self.value

    @classmethod
    def parse(cls, tag: str) -> "ColumnType":
        try:
            return cls(tag)
        except ValueError:
            raise ValueParseError(tag, "", reason=f"unmatched type:{tag}") from None


def parse_datetime(raw: str) -> datetime:
    """Parse an RFC 3339 timestamp. A UTC offset (or "Z") is mandatory."""
    if not _RFC3339_PATTERN.fullmatch(raw):
        msg = f"not an RFC 3339 timestamp: {raw}"
        raise ValueError(msg)
    text = raw.upper()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    # fromisoformat of Python < 3.11 accepts only 3 or 6 fractional digits
    head, offset = text[:-6], text[-6:]
    if "." in head:
        seconds, fraction = head.split(".")
        head = f"{seconds}.{fraction[:6].ljust(6, '0')}"
    return datetime.fromisoformat(head + offset)


def format_datetime(value: datetime) -> str:
    """Render a datetime as RFC 3339, using "Z" for UTC and naive values."""
    if value.tzinfo is None or value.utcoffset().total_seconds() == 0:
        text = value.replace(tzinfo=None).isoformat()
        return text + "Z"
    return value.isoformat()


def _parse_non_empty(column_type: ColumnType, raw: str) -> CellValue:
    if column_type in (ColumnType.STRING, ColumnType.REF):
        return raw
    if column_type == ColumnType.INT:
        if not _INT_PATTERN.fullmatch(raw):
            msg = f"invalid integer literal: {raw}"
            raise ValueError(msg)
        return int(raw)
    if column_type == ColumnType.FLOAT:
        if raw != raw.strip():
            msg = f"invalid float literal: {raw!r}"
            raise ValueError(msg)
        return float(raw)
    if column_type == ColumnType.BOOL:
        return _BOOL_LITERALS[raw]
    if column_type == ColumnType.DATETIME:
        return parse_datetime(raw)
    if column_type == ColumnType.DATE:
        if not _DATE_PATTERN.fullmatch(raw):
            msg = f"not a YYYY-MM-DD date: {raw}"
            raise ValueError(msg)
        return date.fromisoformat(raw).isoformat()
    if column_type == ColumnType.UNIXTIME:
        # whole seconds, rounded down also before the epoch
        return (parse_datetime(raw) - UNIX_EPOCH) // timedelta(seconds=1)
    msg = f"unmatched type: {column_type}"
    raise ValueError(msg)


def zero_value(column_type: ColumnType) -> CellValue:
    """Return the value of an empty cell of the given type."""
    if column_type in (ColumnType.UNSET, ColumnType.STRING, ColumnType.REF):
        return ""
    if column_type in (ColumnType.INT, ColumnType.UNIXTIME):
        return 0
    if column_type == ColumnType.FLOAT:
        return 0.0
    if column_type == ColumnType.BOOL:
        return False
    if column_type == ColumnType.DATETIME:
        return ZERO_DATETIME
    if column_type == ColumnType.DATE:
        return date(1, 1, 1).isoformat()
    raise ValueParseError(str(column_type), "")


def parse_value(column_type: ColumnType | str, raw: str) -> CellValue:
    """Convert the raw string of a cell to the value for the column type.

    Columns without type keep the raw string. Empty strings yield the zero
    value of the type. Raises ValueParseError for literals that do not match
    the type and for unknown type tags.
    """
    if not isinstance(column_type, ColumnType):
        column_type = ColumnType.parse(column_type)
    if column_type == ColumnType.UNSET:
        return raw
    if raw == "":
        return zero_value(column_type)
    try:
        return _parse_non_empty(column_type, raw)
    except (ValueError, KeyError, OverflowError) as err:
        raise ValueParseError(str(column_type), raw) from err
