"""Export of the schema of a workbook (columns and references) as YAML files."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

import yaml
from pydantic import BaseModel

from xlsxref import config
from xlsxref.values import ColumnType

if TYPE_CHECKING:
    from xlsxref.workbook import Workbook

logger = logging.getLogger(__name__)


class MetadataRefSpec(BaseModel):
    file: str
    sheet: str
    key: str
    value: str


class MetadataColumnSchema(BaseModel):
    name: str
    type: str
    display_name: str
    ref: MetadataRefSpec | None = None


class MetadataDataYAML(BaseModel):
    sheet: str
    columns: list[MetadataColumnSchema] = []

    def dump(self) -> dict:
        return {
            "sheet": self.sheet,
            "schema": [
                column.model_dump(exclude_none=True) for column in self.columns
            ],
        }


class MetadataReference(BaseModel):
    sheet: str
    column: str
    reference_file: str
    reference_sheet: str
    reference_key: str
    reference_value: str
    reference_name: str


class MetadataExporter:
    def __init__(self, outdir: Path):
        self.outdir = Path(outdir)

    def _write(self, name: str, data: dict) -> Path:
        outfile = self.outdir / name
        with open(outfile, "w", encoding="utf-8") as fp:
            yaml.safe_dump(data, fp, allow_unicode=True, sort_keys=False)
        logger.info("-> wrote metadata %s", outfile)
        return outfile

    def export(self, workbook: Workbook) -> list[Path]:
        resolver = workbook.reference_resolver()
        references = [
            MetadataReference(
                sheet=definition.sheet,
                column=definition.column,
                reference_file=definition.reference_file,
                reference_sheet=definition.reference_sheet,
                reference_key=definition.reference_key,
                reference_value=definition.reference_value,
                reference_name=definition.reference_name,
            )
            for definition in resolver.definitions
        ]

        data_yamls = []
        for name in workbook.sheet_names:
            if name == config.TYPES_SHEET_NAME:
                data_yaml = MetadataDataYAML(sheet=f"{workbook.name}{name}")
            elif name.startswith("_"):
                continue
            else:
                data_yaml = MetadataDataYAML(sheet=name)

            sheet = workbook.data_sheet(name)
            for column in sheet.columns:
                schema = MetadataColumnSchema(
                    name=column.name,
                    type=str(column.type),
                    display_name=column.description,
                )
                if column.type == ColumnType.REF:
                    for reference in references:
                        if (reference.sheet, reference.column) != (
                            sheet.name,
                            column.name,
                        ):
                            continue
                        schema.ref = MetadataRefSpec(
                            file=reference.reference_file,
                            sheet=reference.reference_sheet,
                            key=reference.reference_key,
                            value=reference.reference_value,
                        )
                data_yaml.columns.append(schema)
            data_yamls.append(data_yaml)

        written = [
            self._write(
                f"{workbook.name}{config.SETTINGS.reference_definition_sheet}.yaml",
                {"references": [reference.model_dump() for reference in references]},
            )
        ]
        for data_yaml in data_yamls:
            written.append(self._write(f"{data_yaml.sheet}.yaml", data_yaml.dump()))
        return written
