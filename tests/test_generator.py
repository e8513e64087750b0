import pytest
from xlsxref.errors import ExportError
from xlsxref.generator import (
    CsharpGenerator,
    GenerateOption,
    GoGenerator,
    TemplateGenerator,
    build_generator,
    camelize,
    model_name,
)
from xlsxref.sheet import parse_data_sheet


@pytest.fixture
def user_sheet():
    return parse_data_sheet(
        "users",
        [
            ["int", "string", "datetime", "date", "bool", "", "ref"],
            ["user_id", "name", "created_at", "birthday", "active", "memo", "group"],
        ],
    )


def test_names():
    assert camelize("user_id") == "UserId"
    assert camelize("name") == "Name"
    assert model_name("users") == "User"
    assert model_name("item_categories") == "ItemCategory"


def test_build_generator():
    option = GenerateOption()
    assert isinstance(build_generator("go", option), GoGenerator)
    assert isinstance(build_generator("csharp", option), CsharpGenerator)
    assert isinstance(build_generator("generic", option), TemplateGenerator)


def test_fields(user_sheet):
    fields = GoGenerator(GenerateOption()).fields(user_sheet)
    assert [(f.name, f.column_name, f.type) for f in fields] == [
        ("UserId", "user_id", "int64"),
        ("Name", "name", "string"),
        ("CreatedAt", "created_at", "time.Time"),
        ("Birthday", "birthday", "civil.Date"),
        ("Active", "active", "bool"),
        ("Group", "group", "any"),
    ]


def test_go_generate(user_sheet, tmp_path):
    option = GenerateOption(
        outdir=tmp_path,
        prefix="m_",
        go_package_name="data",
        go_tag_names=["json", "db"],
    )
    outfile = GoGenerator(option).generate(user_sheet)
    assert outfile == tmp_path / "m_users.gen.go"
    code = outfile.read_text(encoding="utf-8")
    assert code.startswith(
        '// Code generated by xlsxref from sheet "users". DO NOT EDIT.'
    )
    assert "package data\n" in code
    assert 'import (\n\t"cloud.google.com/go/civil"\n\t"time"\n)' in code
    assert "type MUser struct {" in code
    assert '\tUserId int64 `json:"user_id" db:"user_id"`' in code
    assert '\tCreatedAt time.Time `json:"created_at" db:"created_at"`' in code
    assert "memo" not in code


def test_go_generate_without_imports(tmp_path):
    sheet = parse_data_sheet("tags", [["string"], ["label"]])
    code = GoGenerator(GenerateOption(outdir=tmp_path)).generate(sheet).read_text()
    assert "import" not in code
    assert "type Tag struct {" in code
    assert '\tLabel string `json:"label"`' in code


def test_csharp_generate(user_sheet, tmp_path):
    outfile = CsharpGenerator(GenerateOption(outdir=tmp_path)).generate(user_sheet)
    assert outfile == tmp_path / "User.cs"
    code = outfile.read_text(encoding="utf-8")
    assert "public class User" in code
    assert "    public int UserId { get; set; }" in code
    assert "    public DateTime CreatedAt { get; set; }" in code
    assert "    public DateOnly Birthday { get; set; }" in code
    assert "    public object Group { get; set; }" in code


def test_template_generate(user_sheet, tmp_path):
    template = tmp_path / "model.txt.j2"
    template.write_text(
        "{{ name }} from {{ sheet }}\n"
        "{% for f in fields %}{{ f.column_name | camelize }}:{{ f.type }}\n{% endfor %}"
    )
    option = GenerateOption(outdir=tmp_path, template_path=template)
    outfile = TemplateGenerator(option).generate(user_sheet)
    assert outfile == tmp_path / "User.gen"
    assert outfile.read_text() == (
        "User from users\n"
        "UserId:int\nName:string\nCreatedAt:datetime\n"
        "Birthday:date\nActive:bool\nGroup:ref\n"
    )


def test_template_generate_requires_template(user_sheet, tmp_path):
    with pytest.raises(ExportError, match="template file is required"):
        TemplateGenerator(GenerateOption(outdir=tmp_path)).generate(user_sheet)


def test_template_not_found(user_sheet, tmp_path):
    option = GenerateOption(outdir=tmp_path, template_path=tmp_path / "missing.j2")
    with pytest.raises(ExportError, match="Template file not found"):
        GoGenerator(option).generate(user_sheet)


def test_template_render_error(user_sheet, tmp_path):
    template = tmp_path / "broken.j2"
    template.write_text("{{ no_such_variable }}")
    option = GenerateOption(outdir=tmp_path, template_path=template)
    with pytest.raises(ExportError, match="Cannot render template for sheet users"):
        TemplateGenerator(option).generate(user_sheet)
