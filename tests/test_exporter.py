import json
from datetime import datetime, timezone

import pytest
import yaml
from xlsxref.errors import ExportError
from xlsxref.exporter import (
    CSVExporter,
    JSONExporter,
    YAMLExporter,
    build_exporter,
    to_csv_string,
)
from xlsxref.sheet import parse_data_sheet


@pytest.fixture
def typed_sheet():
    return parse_data_sheet(
        "Typed",
        [
            ["string", "int", "float", "bool", "datetime", "date", ""],
            ["name", "count", "ratio", "flag", "at", "day", "memo"],
            ["", "", "", "", "", "", ""],
            ["ä, b", "3", "0.5", "true", "2023-04-05T06:07:08Z", "2023-04-05", "x"],
        ],
    )


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("text", "text"),
        (True, "true"),
        (False, "false"),
        (7, "7"),
        (1.25, "1.25"),
        (datetime(2023, 4, 5, 6, 7, 8, tzinfo=timezone.utc), "2023-04-05T06:07:08Z"),
    ],
)
def test_to_csv_string(value, expected):
    assert to_csv_string(value) == expected


def test_to_csv_string_unsupported():
    with pytest.raises(ExportError, match="unmatched type"):
        to_csv_string([1, 2])


def test_build_exporter(tmp_path):
    assert isinstance(build_exporter("csv", tmp_path), CSVExporter)
    assert isinstance(build_exporter("json", tmp_path), JSONExporter)
    assert isinstance(build_exporter("yaml", tmp_path), YAMLExporter)
    assert isinstance(build_exporter("unknown", tmp_path), CSVExporter)


def test_csv_export(typed_sheet, tmp_path, caplog):
    with caplog.at_level("INFO"):
        outfile = CSVExporter(tmp_path, prefix="x_").export(typed_sheet)
    assert outfile == tmp_path / "x_Typed.csv"
    assert outfile.read_text(encoding="utf-8") == (
        "name,count,ratio,flag,at,day\n"
        '"ä, b",3,0.5,true,2023-04-05T06:07:08Z,2023-04-05\n'
    )
    assert "-> exported Typed" in caplog.text


def test_json_export(typed_sheet, tmp_path):
    outfile = JSONExporter(tmp_path).export(typed_sheet)
    assert outfile.name == "Typed.json"
    assert json.loads(outfile.read_text(encoding="utf-8")) == [
        {
            "name": "ä, b",
            "count": 3,
            "ratio": 0.5,
            "flag": True,
            "at": "2023-04-05T06:07:08Z",
            "day": "2023-04-05",
        }
    ]


def test_yaml_export(typed_sheet, tmp_path):
    outfile = YAMLExporter(tmp_path).export(typed_sheet)
    assert outfile.name == "Typed.yaml"
    text = outfile.read_text(encoding="utf-8")
    assert text.index("name:") < text.index("count:") < text.index("day:")
    (record,) = yaml.safe_load(text)
    assert record["name"] == "ä, b"
    assert record["flag"] is True
    assert record["at"] == datetime(2023, 4, 5, 6, 7, 8, tzinfo=timezone.utc)


def test_export_empty_sheet(tmp_path):
    sheet = parse_data_sheet("Empty", [["string"], ["name"]])
    outfile = CSVExporter(tmp_path).export(sheet)
    assert outfile.read_text(encoding="utf-8") == "name\n"
    outfile = JSONExporter(tmp_path).export(sheet)
    assert outfile.read_text(encoding="utf-8") == "[]\n"
