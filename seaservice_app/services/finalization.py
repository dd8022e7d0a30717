"""
Sea Service progress summary and finalization authority.

A record may move from DRAFT to FINAL only when the service period is
complete and every finalize-required section that applies to the ship
type is COMPLETED. Sections that do not apply (IGS on a non-tanker)
never block finalization, whatever their stored status.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, List, Mapping

from seaservice_app.config.sections import SECTION_DEFINITIONS, SectionKey
from seaservice_app.config.ship_types import is_section_applicable
from seaservice_app.models import SeaServicePayload, SectionStatus, ServicePeriod
from seaservice_app.services.section_status import derive_section_status

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def is_valid_date_value(value: Any) -> bool:
    """True for a date object or an ISO ``YYYY-MM-DD`` string naming a real day."""
    if isinstance(value, (date, datetime)):
        return True
    if not isinstance(value, str):
        return False
    text = value.strip()
    if not _ISO_DATE.match(text):
        return False
    try:
        date.fromisoformat(text)
    except ValueError:
        return False
    return True


def _is_port(value: Any) -> bool:
    return isinstance(value, str) and len(value.strip()) > 0


def is_service_period_complete(period: ServicePeriod | Mapping[str, Any] | None) -> bool:
    """Sign-on and sign-off are both mandatory: valid dates and non-blank ports."""
    if period is None:
        return False
    if isinstance(period, Mapping):
        period = ServicePeriod.from_dict(period)
    return (
        is_valid_date_value(period.sign_on_date)
        and _is_port(period.sign_on_port)
        and is_valid_date_value(period.sign_off_date)
        and _is_port(period.sign_off_port)
    )


@dataclass(slots=True)
class SeaServiceSummary:
    total_sections: int
    completed_sections: int
    in_progress_sections: int
    not_started_sections: int

    @property
    def percent_complete(self) -> float:
        if self.total_sections <= 0:
            return 0.0
        return 100.0 * self.completed_sections / self.total_sections

    def to_dict(self) -> Dict[str, int]:
        return {
            "totalSections": self.total_sections,
            "completedSections": self.completed_sections,
            "inProgressSections": self.in_progress_sections,
            "notStartedSections": self.not_started_sections,
        }


def summarize(sections: Mapping[SectionKey, Any] | None, ship_type: str | None = None) -> SeaServiceSummary:
    """Tally derived statuses over every section definition."""
    sections = sections or {}
    completed = in_progress = not_started = 0
    for definition in SECTION_DEFINITIONS:
        status = derive_section_status(definition.key, sections.get(definition.key), ship_type)
        if status == SectionStatus.COMPLETED:
            completed += 1
        elif status == SectionStatus.IN_PROGRESS:
            in_progress += 1
        else:
            not_started += 1
    return SeaServiceSummary(
        total_sections=len(SECTION_DEFINITIONS),
        completed_sections=completed,
        in_progress_sections=in_progress,
        not_started_sections=not_started,
    )


@dataclass(slots=True)
class FinalizationBlocker:
    code: str
    message: str
    section_key: SectionKey | None = None


def _as_payload(payload: SeaServicePayload | Mapping[str, Any] | None) -> SeaServicePayload | None:
    if payload is None:
        return None
    if isinstance(payload, SeaServicePayload):
        return payload
    if isinstance(payload, Mapping):
        return SeaServicePayload.from_dict(payload)
    return None


def finalization_blockers(
    payload: SeaServicePayload | Mapping[str, Any] | None,
    ship_type: str | None = None,
) -> List[FinalizationBlocker]:
    """
    Everything that currently prevents finalization, in wizard order.

    ``ship_type`` defaults to the payload's own ship type.
    """
    resolved = _as_payload(payload)
    if resolved is None:
        return [FinalizationBlocker("NO_PAYLOAD", "No Sea Service record to finalize.")]
    if ship_type is None:
        ship_type = resolved.ship_type

    blockers: List[FinalizationBlocker] = []
    if not is_service_period_complete(resolved.service_period):
        blockers.append(
            FinalizationBlocker(
                "SERVICE_PERIOD_INCOMPLETE",
                "Sign-On and Sign-Off details (dates and ports) are mandatory.",
            )
        )

    for definition in SECTION_DEFINITIONS:
        if not definition.finalize_required:
            continue
        if not is_section_applicable(definition.key, ship_type):
            continue
        status = derive_section_status(definition.key, resolved.sections.get(definition.key), ship_type)
        if status != SectionStatus.COMPLETED:
            blockers.append(
                FinalizationBlocker(
                    "SECTION_INCOMPLETE",
                    f"{definition.title} is not completed.",
                    section_key=definition.key,
                )
            )
    return blockers


def can_finalize(
    payload: SeaServicePayload | Mapping[str, Any] | None,
    ship_type: str | None = None,
) -> bool:
    return not finalization_blockers(payload, ship_type)
