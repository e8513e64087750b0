"""Config module to share a configuration across all modules in xlsxref."""

import logging
import sys
from pathlib import Path
from typing import Annotated, Literal

from pydantic import BaseModel, Field, field_validator

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

logger = logging.getLogger(__name__)

# === Configuration that is not imported from the config file ===

# Data sheet layout: row 0 types, row 1 names, row 2 descriptions, then data.
DATA_SHEET_INDEX_COLUMN_TYPE = 0
DATA_SHEET_INDEX_COLUMN_NAME = 1
DATA_SHEET_INDEX_COLUMN_DESCRIPTION = 2
DATA_SHEET_INDEX_BODY = 3

REFERENCE_DEFINITION_SHEET_INDEX_COLUMN_NAME = 0

# Sheet holding the column types shared by all sheets of a workbook.
TYPES_SHEET_NAME = "_types"

# === Configuration imported from the config file stored as pydantic model ===


class ExportConfig(BaseModel):
    format: Literal["csv", "json", "yaml"] = "csv"
    prefix: str = ""


class GenerateConfig(BaseModel):
    lang: Literal["go", "csharp", "generic"] = "go"
    prefix: str = ""
    template: Path | None = None
    go_package_name: str = "model"
    go_tag_names: list[str] = ["json"]

    @field_validator("template", mode="before")
    @classmethod
    def handle_empty_template(cls, value):
        # None cannot be expressed in toml, so an empty string means no template.
        if value == "":
            return None
        return value


class XlsxrefConfig(BaseModel):
    # Extension appended to a reference_file given without one.
    default_extension: Annotated[str, Field(pattern=r"^\.[A-Za-z0-9]+$")] = ".xlsx"
    reference_definition_sheet: Annotated[str, Field(min_length=1, max_length=31)] = (
        "_references"
    )
    reference_data_sheet: Annotated[str, Field(min_length=1, max_length=31)] = (
        "_reference_data"
    )
    # Last row covered by data validations ("rest of the sheet").
    validation_row_limit: Annotated[
        int, Field(gt=DATA_SHEET_INDEX_BODY, le=1048576)
    ] = 9999
    hide_reference_data: bool = True
    export: ExportConfig = ExportConfig()
    generate: GenerateConfig = GenerateConfig()
    default_config: bool = False


# These parameters will be updated/set by load_config.
SETTINGS = XlsxrefConfig(default_config=True)
SETTINGS_PATH: Path | None = None


def load_config(config_file: Path | None = None, config: XlsxrefConfig | None = None):
    new_conf = {}
    new_conf["SETTINGS_PATH"] = None
    if config_file is not None and not config_file.exists():
        logger.warning('Configuration file "%s" not found.', config_file)
    if (True if config_file is None else not config_file.exists()) and config is None:
        new_conf["SETTINGS"] = XlsxrefConfig(default_config=True)
        logger.debug("Initializing default config.")
    elif config_file and config is None:
        with config_file.open(mode="rb") as fp:
            conf = tomllib.load(fp)
        logger.debug("Config loaded from: %s", config_file)
        new_conf["SETTINGS"] = XlsxrefConfig(**conf)
        new_conf["SETTINGS_PATH"] = config_file.resolve()
    else:
        new_conf["SETTINGS"] = XlsxrefConfig.model_validate_json(
            config.model_dump_json()
        )
        logger.debug("Refreshing global state of config.")

    for name, value in new_conf.items():
        globals()[name] = value
