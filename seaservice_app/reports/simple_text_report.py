"""
Simple text-based summary of a Sea Service record.
"""

from __future__ import annotations

from seaservice_app.config.sections import SECTION_DEFINITIONS
from seaservice_app.config.ship_types import get_ship_type, is_section_applicable
from seaservice_app.models import SeaServiceRecord
from seaservice_app.services.finalization import is_service_period_complete, summarize
from seaservice_app.services.section_status import derive_section_status


def _or_dash(value: object) -> str:
    if value is None or str(value).strip() == "":
        return "-"
    return str(value)


def build_record_summary_text(record: SeaServiceRecord) -> str:
    payload = record.payload
    ship_type = get_ship_type(payload.ship_type)
    period = payload.service_period

    lines: list[str] = []
    lines.append(f"Ship: {_or_dash(record.ship_name)} (IMO: {_or_dash(record.imo_number)})")
    lines.append(f"Ship type: {ship_type.label if ship_type else _or_dash(payload.ship_type)}")
    lines.append(f"Record: {record.id} [{record.status.value}]")
    lines.append("")
    lines.append(f"Sign-on: {_or_dash(period.sign_on_date)} at {_or_dash(period.sign_on_port)}")
    lines.append(f"Sign-off: {_or_dash(period.sign_off_date)} at {_or_dash(period.sign_off_port)}")
    if not is_service_period_complete(period):
        lines.append("Service period: incomplete")
    lines.append("")

    for definition in SECTION_DEFINITIONS:
        if not is_section_applicable(definition.key, payload.ship_type):
            status_text = "NOT APPLICABLE"
        else:
            status = derive_section_status(
                definition.key, payload.sections.get(definition.key), payload.ship_type
            )
            status_text = status.value.replace("_", " ")
        lines.append(f"{definition.title}: {status_text}")

    summary = summarize(payload.sections, payload.ship_type)
    lines.append("")
    lines.append(
        f"Progress: {summary.completed_sections}/{summary.total_sections} completed "
        f"({summary.percent_complete:.0f}%), {summary.in_progress_sections} in progress, "
        f"{summary.not_started_sections} not started"
    )
    if payload.last_updated_at:
        lines.append(f"Last updated: {payload.last_updated_at.isoformat(timespec='seconds')}")
    return "\n".join(lines)
