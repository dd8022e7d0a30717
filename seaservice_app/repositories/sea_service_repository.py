"""
Repository for Sea Service records (DRAFT and FINAL).

At most one DRAFT row exists at a time; a partial unique index enforces
this at the storage layer. Every write is guarded by
``status = 'DRAFT'`` so FINAL rows are immutable and cannot be deleted.
"""

from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import DateTime, Index, String, Text, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Mapped, Session, mapped_column

from seaservice_app.config.sections import SectionKey
from seaservice_app.models import (
    RecordStatus,
    SeaServicePayload,
    SeaServiceRecord,
    ServicePeriod,
    default_payload,
)
from seaservice_app.repositories.database import Base

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    """Return current UTC time (timezone-aware)."""
    return datetime.now(timezone.utc)


def _generate_id() -> str:
    return f"ss_{uuid.uuid4().hex[:16]}"


class SeaServiceRepositoryError(Exception):
    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class DraftAlreadyExistsError(SeaServiceRepositoryError):
    pass


class SeaServiceRecordORM(Base):
    __tablename__ = "sea_service_records"
    __table_args__ = (
        Index(
            "ux_sea_service_single_draft",
            "status",
            unique=True,
            sqlite_where=text("status = 'DRAFT'"),
        ),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    ship_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    imo_number: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    sign_on_date: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    sign_off_date: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    payload_json: Mapped[str] = mapped_column(Text, default="{}")
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=RecordStatus.DRAFT.value)
    last_updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_utc_now)


def _clean_text(value: Any) -> str | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, str)):
        text_value = str(value).strip()
        return text_value or None
    return None


def derive_ship_identity(payload: SeaServicePayload) -> Dict[str, str | None]:
    """Ship name / IMO number for listing, read from General Identity."""
    identity = payload.sections.get(SectionKey.GENERAL_IDENTITY) or {}
    return {
        "ship_name": _clean_text(identity.get("shipName")),
        "imo_number": _clean_text(identity.get("imoNumber")),
    }


def derive_service_dates(payload: SeaServicePayload) -> Dict[str, str | None]:
    period = payload.service_period
    return {
        "sign_on_date": period.sign_on_date or None,
        "sign_off_date": period.sign_off_date or None,
    }


class SeaServiceRepository:
    """Persistence adapter for Sea Service records."""

    def __init__(self, db: Session) -> None:
        self._db = db

    def _parse_payload(self, json_str: str | None, record_id: str) -> SeaServicePayload:
        try:
            if not json_str:
                return default_payload()
            return SeaServicePayload.from_dict(json.loads(json_str))
        except (json.JSONDecodeError, TypeError, ValueError):
            logger.warning("Corrupt payload for Sea Service record %s; using defaults", record_id)
            return default_payload()

    def _serialize_payload(self, payload: SeaServicePayload) -> str:
        return json.dumps(payload.to_dict(), default=str)

    def _to_record(self, obj: SeaServiceRecordORM) -> SeaServiceRecord:
        return SeaServiceRecord(
            id=obj.id,
            status=RecordStatus(obj.status),
            payload=self._parse_payload(obj.payload_json, obj.id),
            ship_name=obj.ship_name,
            imo_number=obj.imo_number,
            sign_on_date=obj.sign_on_date,
            sign_off_date=obj.sign_off_date,
            created_at=obj.created_at,
            updated_at=obj.updated_at,
        )

    def _projections(self, payload: SeaServicePayload) -> Dict[str, Any]:
        values: Dict[str, Any] = {}
        values.update(derive_ship_identity(payload))
        values.update(derive_service_dates(payload))
        return values

    def _commit(self) -> None:
        try:
            self._db.commit()
        except SQLAlchemyError:
            self._db.rollback()
            raise

    def _draft_query(self, record_id: str):
        return self._db.query(SeaServiceRecordORM).filter(
            SeaServiceRecordORM.id == record_id,
            SeaServiceRecordORM.status == RecordStatus.DRAFT.value,
        )

    def create(self, ship_type: str, sign_on_date: str, sign_on_port: str) -> SeaServiceRecord:
        """Insert a new DRAFT. Raises DraftAlreadyExistsError if one exists."""
        if self.get_active_draft() is not None:
            raise DraftAlreadyExistsError("An active Sea Service draft already exists.")

        now = _utc_now()
        payload = default_payload()
        payload.ship_type = ship_type
        payload.service_period = ServicePeriod(sign_on_date=sign_on_date, sign_on_port=sign_on_port)
        payload.last_updated_at = now

        obj = SeaServiceRecordORM(
            id=_generate_id(),
            payload_json=self._serialize_payload(payload),
            status=RecordStatus.DRAFT.value,
            last_updated_at=now,
            created_at=now,
            updated_at=now,
            **self._projections(payload),
        )
        self._db.add(obj)
        try:
            self._db.commit()
        except IntegrityError as exc:
            self._db.rollback()
            raise DraftAlreadyExistsError("An active Sea Service draft already exists.") from exc
        self._db.refresh(obj)
        logger.info("Created Sea Service draft %s", obj.id)
        return self._to_record(obj)

    def get_by_id(self, record_id: str) -> Optional[SeaServiceRecord]:
        obj = self._db.get(SeaServiceRecordORM, record_id)
        if not obj:
            return None
        return self._to_record(obj)

    def get_active_draft(self) -> Optional[SeaServiceRecord]:
        obj = (
            self._db.query(SeaServiceRecordORM)
            .filter(SeaServiceRecordORM.status == RecordStatus.DRAFT.value)
            .order_by(SeaServiceRecordORM.updated_at.desc())
            .first()
        )
        if obj is None:
            return None
        return self._to_record(obj)

    def get_final_history(self) -> List[SeaServiceRecord]:
        """FINAL records, most recent sign-on first."""
        return [
            self._to_record(obj)
            for obj in (
                self._db.query(SeaServiceRecordORM)
                .filter(SeaServiceRecordORM.status == RecordStatus.FINAL.value)
                .order_by(
                    SeaServiceRecordORM.sign_on_date.desc(),
                    SeaServiceRecordORM.updated_at.desc(),
                )
                .all()
            )
        ]

    def list_all(self) -> List[SeaServiceRecord]:
        return [
            self._to_record(obj)
            for obj in (
                self._db.query(SeaServiceRecordORM)
                .order_by(SeaServiceRecordORM.created_at.desc())
                .all()
            )
        ]

    def upsert_draft(self, record_id: str, payload: SeaServicePayload) -> bool:
        """Store the payload of a DRAFT. No-op (returns False) if not a DRAFT."""
        now = _utc_now()
        last_updated_at = payload.last_updated_at or now
        stored = payload.copy()
        stored.last_updated_at = last_updated_at

        values: Dict[str, Any] = {
            "payload_json": self._serialize_payload(stored),
            "last_updated_at": last_updated_at,
            "updated_at": now,
        }
        values.update(self._projections(stored))
        count = self._draft_query(record_id).update(values, synchronize_session=False)
        self._commit()
        return count > 0

    def finalize(self, record_id: str) -> bool:
        """DRAFT -> FINAL. No-op (returns False) if the row is not a DRAFT."""
        count = self._draft_query(record_id).update(
            {"status": RecordStatus.FINAL.value, "updated_at": _utc_now()},
            synchronize_session=False,
        )
        self._commit()
        if count:
            logger.info("Finalized Sea Service record %s", record_id)
        return count > 0

    def discard(self, record_id: str) -> bool:
        """Delete a DRAFT. FINAL records are never deleted."""
        count = self._draft_query(record_id).delete(synchronize_session=False)
        self._commit()
        if count:
            logger.info("Discarded Sea Service draft %s", record_id)
        return count > 0
