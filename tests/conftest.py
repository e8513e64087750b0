# Common pytest fixtures for all test modules
from pathlib import Path

import pytest
from openpyxl import Workbook

from xlsxref import config
from xlsxref.reader import MemoryReader
from xlsxref.reference import DEFINITION_FIELDS
from xlsxref.sheet import parse_data_sheet

REFERENCE_HEADER = list(DEFINITION_FIELDS)

STATUS_ROWS = [
    ["string", "string", "int"],
    ["code", "label", "rank"],
    ["Code", "Label", "Rank"],
    ["A", "Active", "1"],
    ["I", "Inactive", "2"],
]

ITEM_ROWS = [
    ["int", "ref", "string"],
    ["id", "status", "title"],
    ["ID", "Status", "Title"],
    ["1", "A", "first"],
    ["2", "I", "second"],
    ["3", "", "third"],
]


def write_xlsx(path: Path, sheets: dict[str, list[list]]) -> Path:
    """Write a workbook with one worksheet per entry of ``sheets``."""
    wb = Workbook()
    wb.remove(wb.active)
    for name, rows in sheets.items():
        ws = wb.create_sheet(name)
        for row in rows:
            ws.append(row)
    wb.save(path)
    return path


@pytest.fixture(scope="session")
def datadir():
    return Path(__file__).parent / "data"


@pytest.fixture
def temp_config():
    """
    Provides a temporary config that can be safely changed in test functions.

    After the test the config will be reset to default.
    """
    yield config

    # Reset the globally changed config to default.
    config.load_config()


@pytest.fixture
def status_sheet():
    return parse_data_sheet("Status", STATUS_ROWS)


@pytest.fixture
def items_sheet():
    return parse_data_sheet("Items", ITEM_ROWS)


@pytest.fixture
def memory_reader(status_sheet):
    return MemoryReader({"Status": status_sheet})


@pytest.fixture
def master_xlsx(tmp_path) -> Path:
    """Reference source workbook "master.xlsx" with a Status sheet."""
    return write_xlsx(tmp_path / "master.xlsx", {"Status": STATUS_ROWS})


@pytest.fixture
def items_xlsx(tmp_path, master_xlsx) -> Path:
    """Workbook with an Items sheet referencing the Status sheet of master.xlsx."""
    return write_xlsx(
        tmp_path / "items.xlsx",
        {
            "Items": ITEM_ROWS,
            "_references": [
                REFERENCE_HEADER,
                ["Items", "status", "master", "Status", "code", "label", "status"],
            ],
        },
    )


@pytest.fixture
def polymorphic_xlsx(tmp_path) -> Path:
    """Self-contained workbook with a polymorphic reference.

    Each row of Events names (column "kind") the reference used to resolve
    its "target" column.
    """
    return write_xlsx(
        tmp_path / "events.xlsx",
        {
            "Events": [
                ["string", "ref", "int"],
                ["kind", "target", "id"],
                ["Kind", "Target", "ID"],
                ["color", "r", "1"],
                ["size", "s", "2"],
            ],
            "Colors": [
                ["string", "string"],
                ["code", "name"],
                ["Code", "Name"],
                ["r", "red"],
                ["g", "green"],
            ],
            "Sizes": [
                ["string", "string"],
                ["code", "name"],
                ["Code", "Name"],
                ["s", "small"],
                ["l", "large"],
            ],
            "_references": [
                REFERENCE_HEADER,
                ["Events", "target", "", "Events", "kind", "", ""],
                ["", "", "", "Colors", "code", "name", "color"],
                ["", "", "", "Sizes", "code", "name", "size"],
            ],
        },
    )


@pytest.fixture
def make_xlsx(tmp_path):
    """Factory writing a workbook named ``name`` into tmp_path."""

    def _make(name: str, sheets: dict[str, list[list]]) -> Path:
        return write_xlsx(tmp_path / name, sheets)

    return _make
