"""
Excel export of Sea Service history.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

import pandas as pd
from openpyxl.styles import Alignment, Font, PatternFill

from seaservice_app.config.sections import SECTION_DEFINITIONS
from seaservice_app.config.ship_types import get_ship_type, is_section_applicable
from seaservice_app.models import SeaServiceRecord
from seaservice_app.services.finalization import summarize
from seaservice_app.services.section_status import derive_section_status

HISTORY_COLUMNS = [
    "Record",
    "Status",
    "Ship",
    "IMO",
    "Ship Type",
    "Sign-on Date",
    "Sign-on Port",
    "Sign-off Date",
    "Sign-off Port",
    "Completed Sections",
    "Total Sections",
]


def _style_header(ws) -> None:
    header_fill = PatternFill(fill_type="solid", fgColor="4472C4")
    header_font = Font(bold=True, color="FFFFFF")
    header_alignment = Alignment(horizontal="center", vertical="center")
    for cell in ws[1]:
        cell.fill = header_fill
        cell.font = header_font
        cell.alignment = header_alignment


def _style_body_table(ws, *, start_row: int = 2, stripe: bool = True) -> None:
    stripe_fill = PatternFill(fill_type="solid", fgColor="F5F5F5")
    for row in ws.iter_rows(min_row=start_row, max_row=ws.max_row, min_col=1, max_col=ws.max_column):
        if row and row[0].value not in (None, ""):
            row[0].font = Font(bold=True)
        for cell in row:
            if stripe and cell.row % 2 == 0:
                cell.fill = stripe_fill
            if cell.column == 1:
                cell.alignment = Alignment(horizontal="left", vertical="center")


def _history_row(record: SeaServiceRecord) -> dict:
    payload = record.payload
    ship_type = get_ship_type(payload.ship_type)
    period = payload.service_period
    summary = summarize(payload.sections, payload.ship_type)
    return {
        "Record": record.id,
        "Status": record.status.value,
        "Ship": record.ship_name or "",
        "IMO": record.imo_number or "",
        "Ship Type": ship_type.label if ship_type else (payload.ship_type or ""),
        "Sign-on Date": period.sign_on_date or "",
        "Sign-on Port": period.sign_on_port or "",
        "Sign-off Date": period.sign_off_date or "",
        "Sign-off Port": period.sign_off_port or "",
        "Completed Sections": summary.completed_sections,
        "Total Sections": summary.total_sections,
    }


def _status_row(record: SeaServiceRecord) -> dict:
    payload = record.payload
    row = {"Record": record.id}
    for definition in SECTION_DEFINITIONS:
        if not is_section_applicable(definition.key, payload.ship_type):
            row[definition.title] = "NOT_APPLICABLE"
            continue
        status = derive_section_status(definition.key, payload.sections.get(definition.key), payload.ship_type)
        row[definition.title] = status.value
    return row


def export_history_to_excel(records: Iterable[SeaServiceRecord], filepath: Path) -> None:
    """
    Write Sea Service records to a two-sheet workbook.

    "History" has one row per record; "Section Status" has the derived
    status of every section per record.
    """
    records = list(records)
    df_history = pd.DataFrame([_history_row(r) for r in records], columns=HISTORY_COLUMNS)
    status_columns = ["Record"] + [d.title for d in SECTION_DEFINITIONS]
    df_status = pd.DataFrame([_status_row(r) for r in records], columns=status_columns)

    with pd.ExcelWriter(str(filepath), engine="openpyxl") as writer:
        df_history.to_excel(writer, sheet_name="History", index=False)
        ws_history = writer.sheets["History"]
        for idx, column in enumerate(HISTORY_COLUMNS):
            ws_history.column_dimensions[chr(ord("A") + idx)].width = max(14, len(column) + 4)
        _style_header(ws_history)
        _style_body_table(ws_history)
        ws_history.freeze_panes = "A2"

        df_status.to_excel(writer, sheet_name="Section Status", index=False)
        ws_status = writer.sheets["Section Status"]
        ws_status.column_dimensions["A"].width = 24
        _style_header(ws_status)
        _style_body_table(ws_status)
        ws_status.freeze_panes = "B2"
