import csv
import json

import pytest
from openpyxl import load_workbook

from sql_schema_compare.core.comparator import SchemaComparator
from sql_schema_compare.core.model import Database, Dialect, MySqlColumn, Table
from sql_schema_compare.utils.report_generator import export_report


@pytest.fixture
def results():
    def table(name, column_type):
        return Table(name=name, schema="shop",
                     columns=(MySqlColumn(name="id", data_type="int", column_type=column_type),))

    source = Database(name="a", dialect=Dialect.MYSQL, tables=(table("same", "int"), table("changed", "int"),
                                                               table("<new>", "int")))
    target = Database(name="b", dialect=Dialect.MYSQL, tables=(table("same", "int"), table("changed", "bigint")))
    return SchemaComparator(source, target).compare()


def test_csv(tmp_path, results):
    path = tmp_path / "out" / "report.csv"
    export_report(results, path)

    with path.open(newline="", encoding="utf-8") as f:
        rows = list(csv.reader(f))
    assert rows[0] == ["Type", "Name", "Status"]
    assert ["tables", "shop.changed", "DIFFERENT"] in rows
    assert ["tables", "shop.same", "IDENTICAL"] in rows


def test_html_escapes_names(tmp_path, results):
    path = tmp_path / "report.html"
    export_report(results, path)

    page = path.read_text(encoding="utf-8")
    assert "<tr class='MISSING_IN_TARGET'>" in page
    assert "shop.&lt;new&gt;" in page


def test_json_includes_diff(tmp_path, results):
    path = tmp_path / "report.json"
    export_report(results, path)

    data = json.loads(path.read_text(encoding="utf-8"))
    changed = next(item for item in data["tables"] if item["name"] == "shop.changed")
    assert changed["status"] == "DIFFERENT"
    assert changed["diff"]


def test_excel(tmp_path, results):
    path = tmp_path / "report.xlsx"
    export_report(results, path)

    sheet = load_workbook(path)["Objects"]
    rows = list(sheet.iter_rows(values_only=True))
    assert rows[0] == ("Type", "Name", "Status")
    assert len(rows) == 4


def test_pdf(tmp_path, results):
    path = tmp_path / "report.pdf"
    export_report(results, path)
    assert path.read_bytes().startswith(b"%PDF")


def test_unknown_format(tmp_path, results):
    with pytest.raises(ValueError):
        export_report(results, tmp_path / "report.docx")
