from __future__ import annotations

import csv
import html
import json
from pathlib import Path
from typing import Any, Callable, Dict, List, Tuple

from openpyxl import Workbook
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer

from sql_schema_compare.core.comparator import ComparisonItem
from sql_schema_compare.utils.logger import get_logger

logger = get_logger(__name__)

Results = Dict[str, List[ComparisonItem]]


def _rows(results: Results) -> List[Tuple[str, str, str]]:
    return [(kind, item.name, item.status) for kind, items in results.items() for item in items]


def export_csv(results: Results, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["Type", "Name", "Status"])
        for row in _rows(results):
            writer.writerow(row)


def export_html(results: Results, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    page = [
        "<!DOCTYPE html>",
        "<html><head><meta charset='utf-8'><title>SQL Schema Compare Report</title>",
        "<style>table{border-collapse:collapse;width:100%;}th,td{border:1px solid #ccc;padding:6px;} .IDENTICAL{background:#f2f2f2;} .DIFFERENT{background:#fffacd;} .MISSING_IN_TARGET{background:#e6ffe6;} .MISSING_IN_SOURCE{background:#ffe6e6;}</style>",
        "</head><body>",
        "<h2>SQL Schema Compare Report</h2>",
        "<table><tr><th>Type</th><th>Name</th><th>Status</th></tr>",
    ]
    for kind, name, status in _rows(results):
        st = html.escape(status)
        page.append(f"<tr class='{st}'><td>{html.escape(kind)}</td><td>{html.escape(name)}</td><td>{st}</td></tr>")
    page.append("</table></body></html>")

    path.write_text("\n".join(page), encoding="utf-8")


def export_json(results: Results, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = {
        kind: [
            {"name": item.name, "status": item.status, "diff": json.loads(item.diff) if item.diff else None}
            for item in items
        ]
        for kind, items in results.items()
    }
    path.write_text(json.dumps(payload, indent=2, default=str), encoding="utf-8")


def export_excel(results: Results, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    wb = Workbook()
    ws = wb.active
    ws.title = "Objects"
    ws.append(["Type", "Name", "Status"])
    for row in _rows(results):
        ws.append(list(row))
    wb.save(path)


def export_pdf(results: Results, path: Path) -> None:
    """Export comparison results to a simple PDF report.

    The PDF contains a title and a single table with Type/Name/Status
    columns.
    """

    path.parent.mkdir(parents=True, exist_ok=True)

    doc = SimpleDocTemplate(str(path), pagesize=landscape(A4))
    styles = getSampleStyleSheet()

    elements: list[Any] = []
    title = Paragraph("SQL Schema Compare Report", styles["Heading1"])
    elements.append(title)
    elements.append(Spacer(1, 12))

    data: list[list[str]] = [["Type", "Name", "Status"]]
    data.extend([list(row) for row in _rows(results)])

    table = Table(data, repeatRows=1)
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.black),
                ("ALIGN", (0, 0), (-1, -1), "LEFT"),
                ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("FONTSIZE", (0, 0), (-1, 0), 10),
                ("FONTSIZE", (0, 1), (-1, -1), 8),
            ]
        )
    )

    elements.append(table)
    doc.build(elements)


EXPORTERS: Dict[str, Callable[[Results, Path], None]] = {
    ".csv": export_csv,
    ".html": export_html,
    ".htm": export_html,
    ".json": export_json,
    ".xlsx": export_excel,
    ".pdf": export_pdf,
}


def export_report(results: Results, path: Path) -> None:
    """Export comparison results in the format given by the file suffix."""
    path = Path(path)
    exporter = EXPORTERS.get(path.suffix.lower())
    if exporter is None:
        raise ValueError(f"Unsupported report format: {path.suffix or '(none)'}")
    exporter(results, path)
    logger.info(f"Comparison report written to {path}")
