"""Code generation of model classes for the exportable columns of sheets."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path

import inflection
from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError

from xlsxref.errors import ExportError
from xlsxref.sheet import Sheet
from xlsxref.values import ColumnType

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "templates"
GENERATOR_LANGUAGES = ("go", "csharp", "generic")


@dataclass
class GenerateOption:
    outdir: Path = Path(".")
    prefix: str = ""
    template_path: Path | None = None
    go_package_name: str = "model"
    go_tag_names: list[str] = field(default_factory=lambda: ["json"])


@dataclass
class Field:
    name: str
    column_name: str
    type: str


def camelize(name: str) -> str:
    return inflection.camelize(name, uppercase_first_letter=True)


def model_name(name: str) -> str:
    """Class name for a sheet, e.g. "item_types" -> "ItemType"."""
    return camelize(inflection.singularize(name))


class Generator(ABC):
    default_template: str | None = None

    def __init__(self, option: GenerateOption):
        self.option = option

    def _load_template(self):
        if self.option.template_path is not None:
            template_path = Path(self.option.template_path)
        elif self.default_template is not None:
            template_path = TEMPLATES_DIR / self.default_template
        else:
            msg = "A template file is required for this generator."
            raise ExportError(msg)
        if not template_path.is_file():
            msg = f"Template file not found: {template_path}"
            raise ExportError(msg)

        env = Environment(
            loader=FileSystemLoader(template_path.parent),
            keep_trailing_newline=True,
            undefined=StrictUndefined,
        )
        env.filters["camelize"] = camelize
        env.filters["singularize"] = inflection.singularize
        return env.get_template(template_path.name)

    def fields(self, sheet: Sheet) -> list[Field]:
        return [
            Field(
                name=camelize(column.name),
                column_name=column.name,
                type=self.field_type(column.type),
            )
            for column in sheet.exportable_columns()
        ]

    def field_type(self, column_type: ColumnType) -> str:
        return str(column_type)

    def context(self, sheet: Sheet, fields: list[Field]) -> dict:
        return {
            "name": model_name(self.option.prefix + sheet.name),
            "sheet": sheet.name,
            "fields": fields,
        }

    @abstractmethod
    def output_name(self, sheet: Sheet) -> str:
        pass

    def generate(self, sheet: Sheet) -> Path:
        template = self._load_template()
        try:
            content = template.render(**self.context(sheet, self.fields(sheet)))
        except TemplateError as err:
            msg = f"Cannot render template for sheet {sheet.name}: {err}"
            raise ExportError(msg) from err

        outfile = Path(self.option.outdir) / self.output_name(sheet)
        with open(outfile, "w", encoding="utf-8") as fp:
            fp.write(content)
        logger.info("-> generated %s from sheet %s", outfile, sheet.name)
        return outfile


class TemplateGenerator(Generator):
    """Renders a user supplied template; column types are passed as tags."""

    def output_name(self, sheet: Sheet) -> str:
        return model_name(self.option.prefix + sheet.name) + ".gen"


class GoGenerator(Generator):
    default_template = "go.go.j2"

    GO_TYPES = {
        ColumnType.STRING: "string",
        ColumnType.FLOAT: "float64",
        ColumnType.INT: "int64",
        ColumnType.UNIXTIME: "int64",
        ColumnType.BOOL: "bool",
        ColumnType.DATETIME: "time.Time",
        ColumnType.DATE: "civil.Date",
    }
    GO_IMPORTS = {
        "time.Time": "time",
        "civil.Date": "cloud.google.com/go/civil",
    }

    def field_type(self, column_type: ColumnType) -> str:
        return self.GO_TYPES.get(column_type, "any")

    def context(self, sheet: Sheet, fields: list[Field]) -> dict:
        imports = {
            self.GO_IMPORTS[f.type] for f in fields if f.type in self.GO_IMPORTS
        }
        return {
            **super().context(sheet, fields),
            "imports": sorted(imports),
            "package_name": self.option.go_package_name,
            "tag_names": self.option.go_tag_names,
        }

    def output_name(self, sheet: Sheet) -> str:
        return f"{self.option.prefix}{sheet.name}.gen.go"


class CsharpGenerator(Generator):
    default_template = "csharp.cs.j2"

    CSHARP_TYPES = {
        ColumnType.STRING: "string",
        ColumnType.FLOAT: "double",
        ColumnType.INT: "int",
        ColumnType.UNIXTIME: "int",
        ColumnType.BOOL: "bool",
        ColumnType.DATETIME: "DateTime",
        ColumnType.DATE: "DateOnly",
    }

    def field_type(self, column_type: ColumnType) -> str:
        return self.CSHARP_TYPES.get(column_type, "object")

    def output_name(self, sheet: Sheet) -> str:
        return model_name(self.option.prefix + sheet.name) + ".cs"


def build_generator(lang: str, option: GenerateOption) -> Generator:
    if lang == "go":
        return GoGenerator(option)
    if lang == "csharp":
        return CsharpGenerator(option)
    return TemplateGenerator(option)
