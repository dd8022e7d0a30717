"""
Lifecycle of Sea Service records: start, edit, finalize, discard.

The lifecycle owns the single active draft and the list of finalized
records. Every mutation is applied in memory first, statuses are
recomputed, and the whole payload is then written through the
repository. Persistence failures are reported, never raised, and do not
roll back the in-memory change.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, List, Mapping, Optional, Tuple, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from seaservice_app.config.sections import SectionKey
from seaservice_app.config.ship_types import canonical_ship_type
from seaservice_app.models import SeaServicePayload, SeaServiceRecord, default_payload
from seaservice_app.repositories.sea_service_repository import (
    DraftAlreadyExistsError,
    SeaServiceRepository,
    SeaServiceRepositoryError,
)
from seaservice_app.services.finalization import (
    FinalizationBlocker,
    SeaServiceSummary,
    finalization_blockers,
    is_valid_date_value,
    summarize,
)
from seaservice_app.services.section_status import derive_all_statuses, derive_section_status
from seaservice_app.services.section_validation import validate_section

logger = logging.getLogger(__name__)

_PERSISTENCE_ERRORS = (SQLAlchemyError, SeaServiceRepositoryError)

NO_DRAFT_MESSAGE = "No active Sea Service draft."


class NotificationLevel(Enum):
    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(slots=True)
class Notification:
    level: NotificationLevel
    message: str


@dataclass(frozen=True, slots=True)
class NoDraft:
    """No record is being edited."""


@dataclass(slots=True)
class Draft:
    record: SeaServiceRecord


LifecycleState = Union[NoDraft, Draft]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SeaServiceLifecycle:
    """
    Holds the current ``LifecycleState`` and applies user actions to it.

    Every public action returns True when it took effect and False when
    it was refused or failed; the reason is delivered as a Notification
    to ``notify`` (or kept in ``notifications`` when no callback is given).
    """

    def __init__(
        self,
        db: Session | None = None,
        *,
        repository: SeaServiceRepository | None = None,
        notify: Callable[[Notification], None] | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        if repository is None:
            if db is None:
                raise ValueError("SeaServiceLifecycle needs a database session or a repository.")
            repository = SeaServiceRepository(db)
        self._repo = repository
        self._notify = notify
        self._clock = clock
        self._state: LifecycleState = NoDraft()
        self._final_history: List[SeaServiceRecord] = []
        self.notifications: List[Notification] = []

    # --- read-only views -------------------------------------------------

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def active_record(self) -> Optional[SeaServiceRecord]:
        if isinstance(self._state, Draft):
            return self._state.record
        return None

    @property
    def active_record_id(self) -> Optional[str]:
        record = self.active_record
        return record.id if record else None

    @property
    def payload(self) -> SeaServicePayload:
        """The draft payload, or an empty default when there is no draft."""
        record = self.active_record
        return record.payload if record else default_payload()

    @property
    def final_history(self) -> Tuple[SeaServiceRecord, ...]:
        return tuple(self._final_history)

    @property
    def summary(self) -> SeaServiceSummary:
        payload = self.payload
        return summarize(payload.sections, payload.ship_type)

    @property
    def blockers(self) -> List[FinalizationBlocker]:
        if self.active_record is None:
            return [FinalizationBlocker("NO_PAYLOAD", NO_DRAFT_MESSAGE)]
        payload = self.payload
        blockers: List[FinalizationBlocker] = []
        if not payload.ship_type:
            blockers.append(FinalizationBlocker("SHIP_TYPE_MISSING", "Please select the ship type."))
        blockers.extend(finalization_blockers(payload))
        return blockers

    @property
    def can_finalize(self) -> bool:
        return not self.blockers

    # --- notifications ---------------------------------------------------

    def _report(self, level: NotificationLevel, message: str) -> None:
        notification = Notification(level=level, message=message)
        if self._notify is not None:
            self._notify(notification)
        else:
            self.notifications.append(notification)

    def _error(self, message: str) -> bool:
        self._report(NotificationLevel.ERROR, message)
        return False

    def _require_draft(self) -> Optional[SeaServiceRecord]:
        record = self.active_record
        if record is None:
            self._error(NO_DRAFT_MESSAGE)
        return record

    # --- loading ---------------------------------------------------------

    def load(self) -> bool:
        """Hydrate the active draft and final history from storage."""
        try:
            draft = self._repo.get_active_draft()
            history = self._repo.get_final_history()
        except _PERSISTENCE_ERRORS:
            logger.exception("Failed to load Sea Service records")
            self._state = NoDraft()
            self._final_history = []
            return self._error("Failed to load Sea Service records.")

        self._state = Draft(draft) if draft is not None else NoDraft()
        self._final_history = history
        logger.info(
            "Loaded Sea Service state: draft=%s, final records=%d",
            draft.id if draft else None,
            len(history),
        )
        return True

    def refresh_final_history(self) -> bool:
        try:
            self._final_history = self._repo.get_final_history()
        except _PERSISTENCE_ERRORS:
            logger.exception("Failed to load Sea Service history")
            return self._error("Failed to load Sea Service history.")
        return True

    # --- transitions -----------------------------------------------------

    def start(self, ship_type: str | None, sign_on_date: Any, sign_on_port: str | None) -> bool:
        """Create a new DRAFT. Only valid while there is no active draft."""
        if isinstance(self._state, Draft):
            return self._error("An active Sea Service draft already exists.")

        code = canonical_ship_type(ship_type)
        if code is None:
            return self._error("Please select the ship type.")
        if not is_valid_date_value(sign_on_date):
            return self._error("Please enter a valid sign-on date (YYYY-MM-DD).")
        if not sign_on_port or not str(sign_on_port).strip():
            return self._error("Please enter the sign-on port.")

        on_date = sign_on_date.isoformat()[:10] if hasattr(sign_on_date, "isoformat") else sign_on_date.strip()
        try:
            record = self._repo.create(code, on_date, str(sign_on_port).strip())
        except DraftAlreadyExistsError as exc:
            logger.warning("Refused to start Sea Service: %s", exc.message)
            return self._error(exc.message)
        except _PERSISTENCE_ERRORS:
            logger.exception("Failed to start Sea Service")
            return self._error("Failed to start Sea Service.")

        self._state = Draft(record)
        logger.info("Started Sea Service draft %s (%s)", record.id, code)
        self._report(NotificationLevel.SUCCESS, "Sea Service started.")
        return True

    def update_section(self, section_key: SectionKey | str, patch: Mapping[str, Any]) -> bool:
        """Shallow-merge ``patch`` into a section and recompute its status."""
        record = self._require_draft()
        if record is None:
            return False
        key = SectionKey.parse(section_key)
        if key is None:
            return self._error(f"Unknown Sea Service section: {section_key}")
        if not isinstance(patch, Mapping):
            return self._error("Section data must be a set of named fields.")

        payload = record.payload
        merged = {**payload.sections.get(key, {}), **patch}
        payload.sections[key] = merged
        payload.section_status[key] = derive_section_status(key, merged, payload.ship_type)
        payload.last_updated_at = self._clock()
        return self._persist(record)

    def save_section(self, section_key: SectionKey | str, data: Mapping[str, Any]) -> bool:
        """Validate the merged section data, then apply it with update_section."""
        record = self._require_draft()
        if record is None:
            return False
        key = SectionKey.parse(section_key)
        if key is None:
            return self._error(f"Unknown Sea Service section: {section_key}")
        if not isinstance(data, Mapping):
            return self._error("Section data must be a set of named fields.")

        merged = {**record.payload.sections.get(key, {}), **data}
        result = validate_section(key, merged, record.payload.ship_type)
        issue = result.first_error
        if issue is not None:
            return self._error(issue.message)
        return self.update_section(key, data)

    def update_service_period(self, patch: Mapping[str, Any]) -> bool:
        record = self._require_draft()
        if record is None:
            return False
        if not isinstance(patch, Mapping):
            return self._error("Service period data must be a set of named fields.")
        try:
            period = record.payload.service_period.merged(patch)
        except KeyError as exc:
            return self._error(str(exc.args[0]) if exc.args else "Unknown service period field.")

        record.payload.service_period = period
        record.payload.last_updated_at = self._clock()
        return self._persist(record)

    def set_ship_type(self, ship_type: str | None) -> bool:
        """Change the ship type and recompute every section status under it."""
        record = self._require_draft()
        if record is None:
            return False
        code = canonical_ship_type(ship_type)
        if code is None:
            return self._error("Please select the ship type.")

        payload = record.payload
        payload.ship_type = code
        payload.section_status = derive_all_statuses(payload.sections, code)
        payload.last_updated_at = self._clock()
        return self._persist(record)

    def finalize(self) -> bool:
        """DRAFT -> FINAL. Blocked while anything in ``blockers`` remains."""
        record = self._require_draft()
        if record is None:
            return False
        blockers = self.blockers
        if blockers:
            logger.info("Finalize blocked for %s: %s", record.id, [b.code for b in blockers])
            return self._error(blockers[0].message)

        try:
            # Make sure the stored payload is the one that was checked.
            self._repo.upsert_draft(record.id, record.payload)
            self._repo.finalize(record.id)
            stored = self._repo.get_by_id(record.id)
        except _PERSISTENCE_ERRORS:
            logger.exception("Failed to finalize Sea Service record %s", record.id)
            return self._error("Failed to finalize Sea Service.")

        if stored is None or not stored.is_final:
            return self._error("Sea Service record could not be finalized.")

        self._state = NoDraft()
        if not self.refresh_final_history():
            # Newest first, as the repository returns it.
            self._final_history.insert(0, stored)
        logger.info("Sea Service record %s finalized", record.id)
        self._report(NotificationLevel.SUCCESS, "Sea Service finalized.")
        return True

    def discard(self) -> bool:
        """Delete the active draft entirely and return to NO_DRAFT."""
        record = self._require_draft()
        if record is None:
            return False
        try:
            self._repo.discard(record.id)
        except _PERSISTENCE_ERRORS:
            logger.exception("Failed to discard Sea Service draft %s", record.id)
            return self._error("Failed to discard Sea Service draft.")

        self._state = NoDraft()
        logger.info("Sea Service draft %s discarded", record.id)
        self._report(NotificationLevel.INFO, "Sea Service draft discarded.")
        return True

    # --- persistence -----------------------------------------------------

    def _persist(self, record: SeaServiceRecord) -> bool:
        try:
            saved = self._repo.upsert_draft(record.id, record.payload)
        except _PERSISTENCE_ERRORS:
            logger.exception("Failed to save Sea Service draft %s", record.id)
            return self._error("Failed to save Sea Service draft.")
        if not saved:
            return self._error("Sea Service record is no longer a draft and cannot be changed.")
        return True
