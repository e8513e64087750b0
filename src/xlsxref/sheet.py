"""
Typed in-memory model of the sheets of a workbook.

Data sheets follow a fixed layout:

- row 0: column type tags (see ColumnType)
- row 1: column names
- row 2: column descriptions
- row 3 and following: data

Reference definition sheets have a single header row with column names and
all cells are plain strings.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from openpyxl.utils import get_column_letter

from xlsxref import config
from xlsxref.errors import ColumnNotFoundError, ValueParseError
from xlsxref.values import CellValue, ColumnType, parse_value

if TYPE_CHECKING:
    from xlsxref.reference import ReferenceDefinition

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class Column:
    name: str = ""
    type: ColumnType = ColumnType.UNSET
    index: int = 0
    description: str = ""

    def is_exportable(self) -> bool:
        """Columns without name or without type are excluded from all output."""
        return bool(self.name) and self.type != ColumnType.UNSET


@dataclass(eq=False)
class Cell:
    column: Column
    value: CellValue
    raw: str = ""


class Row(list):
    """Cells of one data row. ``row[column.index]`` is the cell of a column."""

    def cells(self, *names: str) -> list[Cell]:
        return [cell for cell in self if cell.column.name in names]


@dataclass(eq=False)
class Sheet:
    name: str
    columns: list[Column] = field(default_factory=list)
    rows: list[Row] = field(default_factory=list)

    def column(self, name: str) -> Column:
        for column in self.columns:
            if column.name == name:
                return column
        raise ColumnNotFoundError(self.name, name)

    def exportable_columns(self) -> list[Column]:
        return [column for column in self.columns if column.is_exportable()]

    def to_records(self) -> list[dict[str, Any]]:
        """Return one mapping of column name to value per row.

        This is the shape consumed by exporters. Non-exportable columns are
        skipped.
        """
        columns = self.exportable_columns()
        return [
            {column.name: row[column.index].value for column in columns}
            for row in self.rows
        ]

    def validation_ranges(self, definition: ReferenceDefinition) -> tuple[str, str]:
        """Return the cell ranges for the data validation of a definition.

        The first range covers the data rows of the consuming column in this
        sheet (e.g. "B4:B9999"). The second one is the absolute range of the
        definition's column in the reference data sheet (e.g. "$A$1:$A$9999").
        """
        column = self.column(definition.column)
        last_row = config.SETTINGS.validation_row_limit

        dst_letter = get_column_letter(column.index + 1)
        dst = f"{dst_letter}{config.DATA_SHEET_INDEX_BODY + 1}:{dst_letter}{last_row}"

        src_letter = get_column_letter(definition.index + 1)
        src = f"${src_letter}$1:${src_letter}${last_row}"
        return dst, src


def _nth_or_empty(values: list[str], index: int) -> str:
    return values[index] if index < len(values) else ""


def parse_data_sheet(name: str, rows: list[list[str]]) -> Sheet:
    """Parse the rows of a data sheet into a typed Sheet.

    The number of columns is given by the type row. Cells missing at the end
    of a physical row are read as empty strings.
    """
    sheet = Sheet(name=name)
    for i, values in enumerate(rows):
        if i == config.DATA_SHEET_INDEX_COLUMN_TYPE:
            for j, tag in enumerate(values):
                try:
                    column_type = ColumnType.parse(tag)
                except ValueParseError as err:
                    raise ValueParseError(
                        tag,
                        "",
                        sheet=name,
                        row=0,
                        column=get_column_letter(j + 1),
                        reason=err.reason,
                    ) from err
                sheet.columns.append(Column(type=column_type, index=j))
        elif i == config.DATA_SHEET_INDEX_COLUMN_NAME:
            for column in sheet.columns:
                column.name = _nth_or_empty(values, column.index)
        elif i == config.DATA_SHEET_INDEX_COLUMN_DESCRIPTION:
            for column in sheet.columns:
                column.description = _nth_or_empty(values, column.index)
        else:
            row = Row()
            for column in sheet.columns:
                raw = _nth_or_empty(values, column.index)
                try:
                    value = parse_value(column.type, raw)
                except ValueParseError as err:
                    raise ValueParseError(
                        str(column.type),
                        raw,
                        sheet=name,
                        row=i - config.DATA_SHEET_INDEX_BODY + 1,
                        column=column.name,
                    ) from err
                row.append(Cell(column=column, value=value, raw=raw))
            sheet.rows.append(row)
    logger.debug(
        'Parsed data sheet "%s": %i columns, %i rows',
        name,
        len(sheet.columns),
        len(sheet.rows),
    )
    return sheet


def parse_reference_definition_sheet(name: str, rows: list[list[str]]) -> Sheet:
    """Parse the reference definition sheet; blank headers create no column."""
    sheet = Sheet(name=name)
    for i, values in enumerate(rows):
        if i == config.REFERENCE_DEFINITION_SHEET_INDEX_COLUMN_NAME:
            for j, header in enumerate(values):
                if header == "":
                    continue
                sheet.columns.append(
                    Column(name=header, type=ColumnType.STRING, index=j)
                )
        else:
            row = Row()
            for column in sheet.columns:
                raw = _nth_or_empty(values, column.index)
                row.append(Cell(column=column, value=raw, raw=raw))
            sheet.rows.append(row)
    return sheet
