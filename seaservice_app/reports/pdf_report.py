"""
PDF report generation for a Sea Service record.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import cm
from reportlab.platypus import (
    BaseDocTemplate,
    Frame,
    PageTemplate,
    Paragraph,
    Spacer,
    Table,
    TableStyle,
)

from seaservice_app.config.sections import SECTION_DEFINITIONS, is_gate_marker
from seaservice_app.config.ship_types import get_ship_type, is_section_applicable
from seaservice_app.models import SeaServiceRecord
from seaservice_app.services.finalization import summarize
from seaservice_app.services.section_status import derive_section_status, has_value

_HEADER_TABLE_STYLE = [
    ("BACKGROUND", (0, 0), (-1, 0), "#4472C4"),
    ("TEXTCOLOR", (0, 0), (-1, 0), "white"),
    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
    ("FONTSIZE", (0, 0), (-1, 0), 10),
    ("BACKGROUND", (0, 1), (-1, -1), "#F5F5F5"),
    ("GRID", (0, 0), (-1, -1), 0.4, "#BBBBBB"),
    ("FONTNAME", (0, 1), (0, -1), "Helvetica-Bold"),
    ("FONTSIZE", (0, 1), (-1, -1), 9),
    ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
    ("LEFTPADDING", (0, 0), (-1, -1), 6),
    ("RIGHTPADDING", (0, 0), (-1, -1), 6),
    ("TOPPADDING", (0, 0), (-1, -1), 3),
    ("BOTTOMPADDING", (0, 0), (-1, -1), 3),
]

_STATUS_COLOURS = {
    "COMPLETED": "#C6EFCE",
    "IN_PROGRESS": "#FFEB9C",
    "NOT_STARTED": "#FFC7CE",
}


def _fmt(value: Any) -> str:
    """Format a form value for a table cell."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, (list, tuple, set)):
        return ", ".join(str(v) for v in value)
    return str(value)


def _section_title(text: str, styles) -> Paragraph:
    return Paragraph(f"<b>{text}</b>", styles["Heading3"])


def _styled_table(rows: list[list[str]], col_widths: list[float]) -> Table:
    table = Table(rows, colWidths=col_widths, repeatRows=1)
    table.setStyle(TableStyle(_HEADER_TABLE_STYLE))
    return table


def _section_field_rows(data: Any) -> list[list[str]]:
    if not isinstance(data, dict):
        return []
    return [
        [str(key), _fmt(value)]
        for key, value in data.items()
        if not is_gate_marker(str(key)) and has_value(value)
    ]


def export_record_to_pdf(record: SeaServiceRecord, filepath: Path) -> None:
    """
    Generate a PDF report for one Sea Service record.

    Layout: record header, service period, section status overview with
    progress, then one field table per section that holds data.
    """
    payload = record.payload
    ship_type = get_ship_type(payload.ship_type)

    doc = BaseDocTemplate(
        str(filepath),
        pagesize=A4,
        rightMargin=2.2 * cm,
        leftMargin=2.2 * cm,
        topMargin=2.0 * cm,
        bottomMargin=2.0 * cm,
    )
    doc.title = "Sea Service Record"
    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        "CustomTitle",
        parent=styles["Heading1"],
        fontSize=16,
        leading=20,
        spaceAfter=6,
    )
    styles["Heading3"].spaceBefore = 6
    styles["Heading3"].spaceAfter = 2

    def _draw_page_frame(canvas, _doc) -> None:
        canvas.setTitle("Sea Service Record")
        width, height = canvas._pagesize
        margin = 0.7 * cm
        canvas.saveState()
        canvas.setStrokeColor(colors.HexColor("#000000"))
        canvas.setLineWidth(0.7)
        canvas.rect(margin, margin, width - 2 * margin, height - 2 * margin, stroke=1, fill=0)
        canvas.restoreState()

    frame = Frame(doc.leftMargin, doc.bottomMargin, doc.width, doc.height, id="portrait_frame")
    doc.addPageTemplates([PageTemplate(id="Portrait", frames=[frame], onPage=_draw_page_frame, pagesize=A4)])

    story = []
    story.append(Paragraph("Sea Service Record", title_style))
    story.append(Spacer(1, 0.3 * cm))
    story.append(
        Paragraph(
            f"Ship: {record.ship_name or '-'} (IMO: {record.imo_number or '-'})",
            styles["Normal"],
        )
    )
    story.append(
        Paragraph(
            f"Ship type: {ship_type.label if ship_type else (payload.ship_type or '-')}",
            styles["Normal"],
        )
    )
    story.append(Paragraph(f"Record: {record.id} ({record.status.value})", styles["Normal"]))
    story.append(Spacer(1, 0.5 * cm))

    # --- Service period ---
    period = payload.service_period
    story.append(_section_title("Service Period", styles))
    story.append(
        _styled_table(
            [
                ["", "Date", "Port"],
                ["Sign-on", _fmt(period.sign_on_date), _fmt(period.sign_on_port)],
                ["Sign-off", _fmt(period.sign_off_date), _fmt(period.sign_off_port)],
            ],
            [4 * cm, 5 * cm, 7 * cm],
        )
    )
    story.append(Spacer(1, 0.5 * cm))

    # --- Section overview ---
    story.append(_section_title("Section Status", styles))
    status_rows = [["Section", "Status"]]
    status_colours = []
    for row_idx, definition in enumerate(SECTION_DEFINITIONS, start=1):
        if not is_section_applicable(definition.key, payload.ship_type):
            status_rows.append([definition.title, "Not applicable"])
            continue
        status = derive_section_status(definition.key, payload.sections.get(definition.key), payload.ship_type)
        status_rows.append([definition.title, status.value.replace("_", " ").title()])
        status_colours.append(("BACKGROUND", (1, row_idx), (1, row_idx), _STATUS_COLOURS[status.value]))

    status_table = _styled_table(status_rows, [10 * cm, 6 * cm])
    status_table.setStyle(TableStyle(status_colours))
    story.append(status_table)

    summary = summarize(payload.sections, payload.ship_type)
    story.append(Spacer(1, 0.2 * cm))
    story.append(
        Paragraph(
            f"Completed {summary.completed_sections} of {summary.total_sections} sections "
            f"({summary.percent_complete:.0f}%).",
            styles["Normal"],
        )
    )

    # --- Section details ---
    for definition in SECTION_DEFINITIONS:
        rows = _section_field_rows(payload.sections.get(definition.key))
        if not rows:
            continue
        story.append(Spacer(1, 0.4 * cm))
        story.append(_section_title(definition.title, styles))
        story.append(_styled_table([["Field", "Value"]] + rows, [8 * cm, 8 * cm]))

    doc.build(story)
