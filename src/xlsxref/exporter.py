"""Exporters writing resolved sheets to CSV, JSON or YAML files."""

import csv
import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any

import yaml

from xlsxref.errors import ExportError
from xlsxref.sheet import Sheet
from xlsxref.values import format_datetime

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("csv", "json", "yaml")


class Exporter(ABC):
    extension = ""

    def __init__(self, outdir: Path, prefix: str = ""):
        self.outdir = Path(outdir)
        self.prefix = prefix

    def output_path(self, sheet: Sheet) -> Path:
        return self.outdir / f"{self.prefix}{sheet.name}.{self.extension}"

    def export(self, sheet: Sheet) -> Path:
        outfile = self.output_path(sheet)
        with open(outfile, "w", encoding="utf-8", newline="") as fp:
            self.write(sheet, fp)
        logger.info("-> exported %s to %s", sheet.name, outfile)
        return outfile

    @abstractmethod
    def write(self, sheet: Sheet, fp) -> None:
        pass


def to_csv_string(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return format_datetime(value)
    if isinstance(value, (str, int, float)):
        return str(value)
    msg = f"unmatched type: {value!r}"
    raise ExportError(msg)


class CSVExporter(Exporter):
    extension = "csv"

    def write(self, sheet: Sheet, fp) -> None:
        columns = sheet.exportable_columns()
        writer = csv.writer(fp, lineterminator="\n")
        writer.writerow([column.name for column in columns])
        for row in sheet.rows:
            writer.writerow(
                [to_csv_string(row[column.index].value) for column in columns]
            )


def _json_default(value: Any) -> str:
    if isinstance(value, datetime):
        return format_datetime(value)
    msg = f"Object of type {type(value).__name__} is not JSON serializable"
    raise TypeError(msg)


class JSONExporter(Exporter):
    extension = "json"

    def write(self, sheet: Sheet, fp) -> None:
        try:
            json.dump(sheet.to_records(), fp, ensure_ascii=False, default=_json_default)
        except TypeError as err:
            raise ExportError(str(err)) from err
        fp.write("\n")


class YAMLExporter(Exporter):
    extension = "yaml"

    def write(self, sheet: Sheet, fp) -> None:
        try:
            yaml.safe_dump(
                sheet.to_records(), fp, allow_unicode=True, sort_keys=False
            )
        except yaml.YAMLError as err:
            raise ExportError(str(err)) from err


def build_exporter(format: str, outdir: Path, prefix: str = "") -> Exporter:
    """Return the exporter for the format; unknown formats fall back to CSV."""
    if format == "json":
        return JSONExporter(outdir, prefix)
    if format == "yaml":
        return YAMLExporter(outdir, prefix)
    return CSVExporter(outdir, prefix)
