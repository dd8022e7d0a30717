from __future__ import annotations

import logging
from copy import deepcopy
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, Mapping

from seaservice_app.config.sections import SECTION_DEFINITIONS, SectionKey

logger = logging.getLogger(__name__)

SectionData = Dict[str, Any]


def _utc_now() -> datetime:
    """Return current UTC time (timezone-aware)."""
    return datetime.now(timezone.utc)


class SectionStatus(str, Enum):
    NOT_STARTED = "NOT_STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"

    @property
    def rank(self) -> int:
        return _STATUS_RANK[self]

    @classmethod
    def parse(cls, value: Any) -> "SectionStatus":
        """Parse stored status text; older records used COMPLETE/INCOMPLETE."""
        if isinstance(value, cls):
            return value
        text = str(value or "").strip().upper()
        if text == "COMPLETE":
            return cls.COMPLETED
        try:
            return cls(text)
        except ValueError:
            return cls.NOT_STARTED


_STATUS_RANK = {
    SectionStatus.NOT_STARTED: 0,
    SectionStatus.IN_PROGRESS: 1,
    SectionStatus.COMPLETED: 2,
}


class RecordStatus(str, Enum):
    DRAFT = "DRAFT"
    FINAL = "FINAL"


def _date_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    text = str(value).strip()
    return text or None


def _port_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text if text.strip() else None


_PERIOD_KEYS = {
    "signOnDate": "signOnDate",
    "signOnPort": "signOnPort",
    "signOffDate": "signOffDate",
    "signOffPort": "signOffPort",
    "sign_on_date": "signOnDate",
    "sign_on_port": "signOnPort",
    "sign_off_date": "signOffDate",
    "sign_off_port": "signOffPort",
}


@dataclass(slots=True)
class ServicePeriod:
    """Sign-on / sign-off details. Dates are ISO ``YYYY-MM-DD`` strings."""

    sign_on_date: str | None = None
    sign_on_port: str | None = None
    sign_off_date: str | None = None
    sign_off_port: str | None = None

    def merged(self, patch: Mapping[str, Any]) -> "ServicePeriod":
        """Shallow merge; accepts snake_case or the stored camelCase keys."""
        values = self.to_dict()
        for key, value in patch.items():
            stored_key = _PERIOD_KEYS.get(key)
            if stored_key is None:
                raise KeyError(f"Unknown service period field: {key}")
            values[stored_key] = value
        return ServicePeriod.from_dict(values)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "signOnDate": self.sign_on_date,
            "signOnPort": self.sign_on_port,
            "signOffDate": self.sign_off_date,
            "signOffPort": self.sign_off_port,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "ServicePeriod":
        if not isinstance(data, Mapping):
            return cls()
        return cls(
            sign_on_date=_date_text(data.get("signOnDate")),
            sign_on_port=_port_text(data.get("signOnPort")),
            sign_off_date=_date_text(data.get("signOffDate")),
            sign_off_port=_port_text(data.get("signOffPort")),
        )


def _empty_sections() -> Dict[SectionKey, SectionData]:
    return {d.key: {} for d in SECTION_DEFINITIONS}


def _empty_statuses() -> Dict[SectionKey, SectionStatus]:
    return {d.key: SectionStatus.NOT_STARTED for d in SECTION_DEFINITIONS}


@dataclass(slots=True)
class SeaServicePayload:
    """
    Full content of one Sea Service record.

    ``sections`` and ``section_status`` always hold an entry for every
    SectionKey; an untouched section is an empty dict.
    """

    ship_type: str | None = None
    service_period: ServicePeriod = field(default_factory=ServicePeriod)
    sections: Dict[SectionKey, SectionData] = field(default_factory=_empty_sections)
    section_status: Dict[SectionKey, SectionStatus] = field(default_factory=_empty_statuses)
    last_updated_at: datetime | None = None

    def __post_init__(self) -> None:
        for definition in SECTION_DEFINITIONS:
            self.sections.setdefault(definition.key, {})
            self.section_status.setdefault(definition.key, SectionStatus.NOT_STARTED)

    def copy(self) -> "SeaServicePayload":
        return SeaServicePayload(
            ship_type=self.ship_type,
            service_period=ServicePeriod(
                self.service_period.sign_on_date,
                self.service_period.sign_on_port,
                self.service_period.sign_off_date,
                self.service_period.sign_off_port,
            ),
            sections={k: deepcopy(v) for k, v in self.sections.items()},
            section_status=dict(self.section_status),
            last_updated_at=self.last_updated_at,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "shipType": self.ship_type,
            "servicePeriod": self.service_period.to_dict(),
            "lastUpdatedAt": self.last_updated_at.isoformat() if self.last_updated_at else None,
            "sectionStatus": {k.value: v.value for k, v in self.section_status.items()},
            "sections": {k.value: v for k, v in self.sections.items()},
        }

    @classmethod
    def from_dict(cls, data: Any) -> "SeaServicePayload":
        """Build a payload from stored JSON data, filling anything missing."""
        if not isinstance(data, Mapping):
            return default_payload()

        sections = _empty_sections()
        raw_sections = data.get("sections")
        if isinstance(raw_sections, Mapping):
            for raw_key, value in raw_sections.items():
                key = SectionKey.parse(raw_key)
                if key is None:
                    logger.warning("Ignoring unknown section %r in stored payload", raw_key)
                    continue
                sections[key] = dict(value) if isinstance(value, Mapping) else {}

        statuses = _empty_statuses()
        raw_status = data.get("sectionStatus")
        if isinstance(raw_status, Mapping):
            for raw_key, value in raw_status.items():
                key = SectionKey.parse(raw_key)
                if key is not None:
                    statuses[key] = SectionStatus.parse(value)

        ship_type = data.get("shipType")
        return cls(
            ship_type=str(ship_type) if ship_type else None,
            service_period=ServicePeriod.from_dict(data.get("servicePeriod")),
            sections=sections,
            section_status=statuses,
            last_updated_at=_parse_timestamp(data.get("lastUpdatedAt")),
        )


def _parse_timestamp(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)):
        # Epoch milliseconds in older records.
        try:
            return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        return None


def default_payload() -> SeaServicePayload:
    return SeaServicePayload()


@dataclass(slots=True)
class SeaServiceRecord:
    """
    A persisted payload with identity and lifecycle fields.

    ship_name, imo_number, sign_on_date and sign_off_date are read-only
    projections of the payload kept for listing.
    """

    id: str
    status: RecordStatus = RecordStatus.DRAFT
    payload: SeaServicePayload = field(default_factory=default_payload)
    ship_name: str | None = None
    imo_number: str | None = None
    sign_on_date: str | None = None
    sign_off_date: str | None = None
    created_at: datetime = field(default_factory=_utc_now)
    updated_at: datetime = field(default_factory=_utc_now)

    @property
    def is_draft(self) -> bool:
        return self.status == RecordStatus.DRAFT

    @property
    def is_final(self) -> bool:
        return self.status == RecordStatus.FINAL
