"""
Workbook files and the updates xlsxref writes into them.

A Workbook wraps an openpyxl workbook, owns the cache of its parsed sheets and
the reference resolver built from its "_references" sheet. Reference source
files are opened through an XLSXReader owned by the workbook and are closed
together with it.
"""

from __future__ import annotations

import logging
import re
from collections import defaultdict
from datetime import date, datetime, time, timedelta
from pathlib import Path
from typing import TYPE_CHECKING
from zipfile import BadZipFile

from openpyxl import load_workbook
from openpyxl.utils import get_column_letter
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.workbook.defined_name import DefinedName
from openpyxl.worksheet.datavalidation import DataValidation

from xlsxref import config
from xlsxref.errors import SourceOpenError, XlsxrefError
from xlsxref.metadata import MetadataExporter
from xlsxref.reader import SheetCache, SheetReader
from xlsxref.reference import ReferenceResolver
from xlsxref.sheet import Sheet, parse_data_sheet, parse_reference_definition_sheet
from xlsxref.values import format_datetime

if TYPE_CHECKING:
    from xlsxref.exporter import Exporter
    from xlsxref.generator import Generator

logger = logging.getLogger(__name__)

# Excel's limit for data validation messages
EXCEL_DV_MESSAGE_LIMIT = 255

_QUOTED_TEXT = re.compile(r'"[^"]*"|\[[^\]]*\]')


def _has_time_part(number_format: str) -> bool:
    fmt = _QUOTED_TEXT.sub("", number_format or "").lower()
    return "h" in fmt or "s" in fmt


def cell_to_string(value, number_format: str = "General") -> str:
    """Render a cell value the way it is used as raw string of a Cell."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, datetime):
        if value.time() == time(0) and not _has_time_part(number_format):
            return value.date().isoformat()
        return format_datetime(value)
    if isinstance(value, (date, time)):
        return value.isoformat()
    if isinstance(value, timedelta):
        return str(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _trim(values: list[str]) -> list[str]:
    while values and values[-1] == "":
        values.pop()
    return values


def _trim_rows(rows: list[list[str]]) -> list[list[str]]:
    # styled or cleared cells below the data come back as empty rows
    while rows and not rows[-1]:
        rows.pop()
    return rows


class Workbook:
    def __init__(self, path: Path, xlsx, writable: bool = False):
        self.path = Path(path)
        self.xlsx = xlsx
        self.writable = writable
        self.sheets = SheetCache()
        self._reader: XLSXReader | None = None
        self._resolver: ReferenceResolver | None = None

    @classmethod
    def open(cls, path: Path | str, writable: bool = False) -> Workbook:
        """Open an xlsx file.

        Read-only workbooks see the cached results of formulas. Writable
        workbooks keep formulas so that saving them does not lose anything.
        """
        path = Path(path)
        logger.debug('Opening workbook "%s" (writable=%s)', path, writable)
        try:
            xlsx = load_workbook(path, read_only=not writable, data_only=not writable)
        except (OSError, InvalidFileException, BadZipFile, KeyError) as err:
            raise SourceOpenError(path, "Cannot open workbook") from err
        return cls(path, xlsx, writable)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    @property
    def name(self) -> str:
        return self.path.stem

    @property
    def sheet_names(self) -> list[str]:
        return list(self.xlsx.sheetnames)

    @property
    def data_sheet_names(self) -> list[str]:
        """Names of the sheets holding data; helper sheets start with "_"."""
        return [name for name in self.xlsx.sheetnames if not name.startswith("_")]

    def save(self) -> None:
        self._require_writable("save")
        self.xlsx.save(self.path)
        logger.info('-> Saved workbook "%s"', self.path)

    def close(self) -> None:
        if self._reader is not None:
            self._reader.close()
        self.xlsx.close()

    def _require_writable(self, operation: str) -> None:
        if not self.writable:
            msg = f'Cannot {operation} "{self.path}": workbook was opened read-only.'
            raise XlsxrefError(msg)

    def rows(self, sheet_name: str) -> list[list[str]]:
        """Return the cell strings of a sheet without trailing empty cells/rows."""
        if sheet_name not in self.xlsx.sheetnames:
            raise SourceOpenError(self.path, f'Sheet "{sheet_name}" not found in')
        rows = []
        for row in self.xlsx[sheet_name].iter_rows():
            values = [
                cell_to_string(cell.value, getattr(cell, "number_format", "General"))
                for cell in row
            ]
            rows.append(_trim(values))
        return _trim_rows(rows)

    def data_sheet(self, name: str) -> Sheet:
        return self.sheets.get_or_parse(
            name, lambda sheet_name: parse_data_sheet(sheet_name, self.rows(sheet_name))
        )

    def reference_definition_sheet(self) -> Sheet:
        name = config.SETTINGS.reference_definition_sheet
        if name not in self.xlsx.sheetnames:
            logger.debug('-> no sheet "%s" in "%s"', name, self.path)
            return parse_reference_definition_sheet(name, [])
        return parse_reference_definition_sheet(name, self.rows(name))

    def reference_resolver(self) -> ReferenceResolver:
        if self._resolver is None:
            self._reader = XLSXReader()
            self._resolver = ReferenceResolver.from_definition_sheet(
                self.reference_definition_sheet(),
                self.path.parent,
                self._reader,
                source_file=self.path.name,
            )
        return self._resolver

    # === reference data and defined names ===

    def delete_reference_data(self) -> None:
        name = config.SETTINGS.reference_data_sheet
        if name in self.xlsx.sheetnames:
            del self.xlsx[name]
        ws = self.xlsx.create_sheet(name)
        if config.SETTINGS.hide_reference_data:
            ws.sheet_state = "hidden"

    def delete_defined_names(self) -> None:
        for name in list(self.xlsx.defined_names):
            if name.startswith("_"):
                continue
            del self.xlsx.defined_names[name]
            logger.debug("-> deleted defined name %s", name)

    def update_reference_data(self) -> None:
        """Write the keys of all direct references to the reference data sheet.

        Each definition uses the column of its ordinal. Definitions with a
        reference_name get a defined name covering their keys.
        """
        self._require_writable("update reference data of")
        self.delete_reference_data()
        self.delete_defined_names()

        sheet_name = config.SETTINGS.reference_data_sheet
        ws = self.xlsx[sheet_name]
        for reference in self.reference_resolver().references():
            definition = reference.definition
            if definition.is_polymorphic:
                continue

            keys = reference.raw_keys
            col_idx = definition.index + 1
            for row_idx, key in enumerate(keys, start=1):
                ws.cell(row=row_idx, column=col_idx, value=key)

            if definition.reference_name:
                letter = get_column_letter(col_idx)
                # A range of one cell is kept when the source has no rows.
                last_row = max(len(keys), 1)
                refers_to = f"'{sheet_name}'!${letter}$1:${letter}${last_row}"
                self.xlsx.defined_names[definition.reference_name] = DefinedName(
                    name=definition.reference_name, attr_text=refers_to
                )
                logger.debug(
                    "-> defined name %s = %s", definition.reference_name, refers_to
                )
        logger.info("-> Updated reference data of %s", self.path.name)

    # === data validations ===

    def delete_data_validations(self) -> None:
        """Remove the data validations on the target ranges of all definitions."""
        self._require_writable("delete data validations of")
        targets = defaultdict(set)
        for definition in self.reference_resolver().definitions:
            if not definition.sheet:
                continue
            dst, _ = self.data_sheet(definition.sheet).validation_ranges(definition)
            targets[definition.sheet].add(dst)

        for sheet_name, ranges in targets.items():
            validations = self.xlsx[sheet_name].data_validations
            kept = [
                dv
                for dv in validations.dataValidation
                if not ranges & {cell_range.coord for cell_range in dv.sqref.ranges}
            ]
            removed = len(validations.dataValidation) - len(kept)
            validations.dataValidation = kept
            logger.debug("-> deleted %i data validations of %s", removed, sheet_name)

    def update_data_validations(self) -> None:
        """Add a dropdown list to every column that holds reference keys.

        Direct references list the keys in the reference data sheet.
        Polymorphic ones use INDIRECT on the reference_name given in the same
        row, which is a defined name created by update_reference_data.
        """
        self.delete_data_validations()

        for reference in self.reference_resolver().references():
            definition = reference.definition
            if not definition.sheet:
                continue
            dst, src = self.data_sheet(definition.sheet).validation_ranges(definition)
            if definition.is_polymorphic:
                letter = get_column_letter(reference.key_column.index + 1)
                formula = f"INDIRECT(${letter}{config.DATA_SHEET_INDEX_BODY + 1})"
            else:
                formula = f"'{config.SETTINGS.reference_data_sheet}'!{src}"

            dv = DataValidation(type="list", formula1=formula, allow_blank=True)
            error_msg = (
                f"Invalid value. Must be a key of "
                f"{definition.reference_sheet}:{definition.reference_key}"
            )
            if len(error_msg) > EXCEL_DV_MESSAGE_LIMIT:
                error_msg = "Invalid value. Please select from the dropdown list."
            dv.error = error_msg
            dv.errorTitle = "Invalid Reference"

            self.xlsx[definition.sheet].add_data_validation(dv)
            dv.add(dst)
            logger.debug(
                "-> data validation %s!%s = %s", definition.sheet, dst, formula
            )

    # === consumers of resolved sheets ===

    def export(self, exporter: Exporter) -> None:
        resolver = self.reference_resolver()
        for name in self.data_sheet_names:
            sheet = self.data_sheet(name)
            resolver.resolve(sheet)
            exporter.export(sheet)

    def generate(self, generator: Generator) -> None:
        resolver = self.reference_resolver()
        for name in self.data_sheet_names:
            sheet = self.data_sheet(name)
            resolver.resolve(sheet)
            generator.generate(sheet)

    def export_metadata(self, outdir: Path) -> None:
        MetadataExporter(outdir).export(self)


class XLSXReader(SheetReader):
    """Opens reference source files once and keeps them open until closed."""

    def __init__(self):
        self.files: dict[Path, Workbook] = {}

    def open(self, path: Path | str, sheet_name: str) -> Sheet:
        path = Path(path).resolve()
        if path not in self.files:
            logger.debug('-> opening reference file "%s"', path)
            self.files[path] = Workbook.open(path)
        return self.files[path].data_sheet(sheet_name)

    def close(self) -> None:
        for workbook in self.files.values():
            workbook.close()
        self.files.clear()
