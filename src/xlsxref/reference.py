"""
Reference definitions and their resolution into data sheets.

A reference definition (one row of the "_references" sheet) states that the
cells of ``sheet``/``column`` hold keys of ``reference_key`` in the sheet
``reference_sheet`` of ``reference_file``. There are two kinds:

- direct: ``reference_value`` names the column whose cell replaces the key.
- polymorphic: ``reference_value`` is empty. The key column lives in the
  consuming sheet itself and holds, per row, the ``reference_name`` of the
  (direct) reference to use for that row.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from xlsxref import config
from xlsxref.errors import (
    AliasNotFoundError,
    DefinitionError,
    TypeMismatchError,
    ValueNotFoundError,
)
from xlsxref.reader import SheetReader
from xlsxref.sheet import Cell, Column, Sheet
from xlsxref.values import ColumnType

logger = logging.getLogger(__name__)

DEFINITION_FIELDS = (
    "sheet",
    "column",
    "reference_file",
    "reference_sheet",
    "reference_key",
    "reference_value",
    "reference_name",
)


@dataclass
class ReferenceDefinition:
    index: int = 0
    base_dir: Path = Path(".")
    sheet: str = ""
    column: str = ""
    reference_file: str = ""
    reference_sheet: str = ""
    reference_key: str = ""
    reference_value: str = ""
    reference_name: str = ""
    # File that holds the definition; used when reference_file is empty.
    source_file: str = ""

    @property
    def reference_file_name(self) -> str:
        reference_file = self.reference_file or self.source_file
        if Path(reference_file).suffix:
            return reference_file
        return reference_file + config.SETTINGS.default_extension

    @property
    def reference_file_path(self) -> Path:
        return Path(self.base_dir) / self.reference_file_name

    @property
    def is_polymorphic(self) -> bool:
        return self.reference_value == ""


@dataclass(eq=False)
class Reference:
    definition: ReferenceDefinition
    key_column: Column
    value_column: Column | None = None
    keys: list[Cell] = field(default_factory=list)
    values: list[Cell] = field(default_factory=list)
    value_map: dict[str, Cell] = field(default_factory=dict)

    @property
    def raw_keys(self) -> list[str]:
        return [cell.raw for cell in self.keys]


class ReferenceResolver:
    """Resolves the references of one workbook into its data sheets.

    The lookup tables are built once, on first use, and kept for the life of
    the resolver. Resolving a sheet rewrites its cells in place and is not
    idempotent: a second call looks up already substituted values.
    """

    def __init__(
        self,
        reader: SheetReader,
        definitions: list[ReferenceDefinition] | None = None,
    ):
        self.reader = reader
        self.definitions = [] if definitions is None else definitions
        self._references: list[Reference] | None = None

    @classmethod
    def from_definition_sheet(
        cls,
        sheet: Sheet,
        base_dir: Path | str,
        reader: SheetReader,
        source_file: str = "",
    ) -> ReferenceResolver:
        definitions = []
        for i, row in enumerate(sheet.rows):
            definition = ReferenceDefinition(
                index=i, base_dir=Path(base_dir), source_file=source_file
            )
            for cell in row:
                if cell.column.name not in DEFINITION_FIELDS:
                    msg = f"unknown column: {cell.column.name}"
                    raise DefinitionError(msg)
                setattr(definition, cell.column.name, cell.raw)
            if (
                definition.is_polymorphic
                and definition.sheet != definition.reference_sheet
            ):
                msg = (
                    f"Polymorphic reference sheet ({definition.sheet}) and "
                    f"reference_sheet ({definition.reference_sheet}) must match"
                )
                raise DefinitionError(msg)
            definitions.append(definition)
        logger.debug("Loaded %i reference definitions", len(definitions))
        return cls(reader, definitions)

    def references(self) -> list[Reference]:
        if self._references is not None:
            return self._references

        references = []
        for definition in self.definitions:
            reference_sheet = self.reader.open(
                definition.reference_file_path, definition.reference_sheet
            )
            key_column = reference_sheet.column(definition.reference_key)
            if definition.is_polymorphic:
                references.append(Reference(definition, key_column))
                continue

            value_column = reference_sheet.column(definition.reference_value)
            reference = Reference(definition, key_column, value_column)
            for row in reference_sheet.rows:
                key, value = row[key_column.index], row[value_column.index]
                reference.keys.append(key)
                reference.values.append(value)
                reference.value_map[key.raw] = value
            logger.debug(
                "-> reference %s:%s -> %s:%s with %i keys",
                definition.sheet,
                definition.column,
                definition.reference_sheet,
                definition.reference_value,
                len(reference.keys),
            )
            references.append(reference)
        self._references = references
        return self._references

    def _targets(self, sheet: Sheet, references: list[Reference], polymorphic: bool):
        for reference in references:
            definition = reference.definition
            if definition.sheet != sheet.name:
                continue
            if definition.is_polymorphic != polymorphic:
                continue
            for column in sheet.columns:
                if column.name == definition.column:
                    yield reference, column

    def resolve(self, sheet: Sheet) -> None:
        """Replace the reference keys in ``sheet`` by their values.

        Polymorphic references are resolved first because their key column
        may itself be the target of a direct reference.
        """
        references = self.references()
        logger.debug('Resolving references of sheet "%s"', sheet.name)

        names = {
            reference.definition.reference_name: reference
            for reference in references
            if reference.definition.reference_name
        }
        for reference, column in self._targets(sheet, references, polymorphic=True):
            self._resolve_polymorphic(sheet, reference, column, names)

        for reference, column in self._targets(sheet, references, polymorphic=False):
            self._resolve_direct(sheet, reference, column)

    def _resolve_polymorphic(
        self,
        sheet: Sheet,
        reference: Reference,
        column: Column,
        names: dict[str, Reference],
    ) -> None:
        definition = reference.definition
        for i, row in enumerate(sheet.rows, start=1):
            alias = row[reference.key_column.index].raw
            target = names.get(alias)
            if target is None or target.value_column is None:
                raise AliasNotFoundError(sheet.name, i, column.name, alias)

            raw = row[column.index].raw
            if raw not in target.value_map:
                raise ValueNotFoundError(
                    sheet.name,
                    i,
                    column.name,
                    raw,
                    definition.reference_sheet,
                    definition.reference_key,
                )
            row[column.index] = _copy_cell(target.value_map[raw], column)

            value_type = target.value_column.type
            if column.type in (ColumnType.UNSET, ColumnType.REF):
                column.type = value_type
            elif column.type != value_type:
                raise TypeMismatchError(
                    sheet.name, i, column.name, column.type, value_type
                )

    def _resolve_direct(self, sheet: Sheet, reference: Reference, column: Column):
        definition = reference.definition
        for i, row in enumerate(sheet.rows, start=1):
            raw = row[column.index].raw
            if raw == "":
                continue
            if raw not in reference.value_map:
                raise ValueNotFoundError(
                    sheet.name,
                    i,
                    column.name,
                    raw,
                    definition.reference_sheet,
                    definition.reference_key,
                )
            row[column.index] = _copy_cell(reference.value_map[raw], column)
        # TODO: check the type per row like the polymorphic pass once it is
        # confirmed that one column may not mix value types.
        column.type = reference.value_column.type


def _copy_cell(source: Cell, column: Column) -> Cell:
    """Copy raw and value of a reference cell into the consuming column."""
    return Cell(column=column, value=source.value, raw=source.raw)
