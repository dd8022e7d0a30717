"""Tests for the Sea Service lifecycle (start, edit, finalize, discard)."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from sqlalchemy.exc import OperationalError

from seaservice_app.config.sections import SectionKey
from seaservice_app.models import RecordStatus, SectionStatus
from seaservice_app.repositories.sea_service_repository import SeaServiceRecordORM, SeaServiceRepository
from seaservice_app.services.sea_service import (
    Draft,
    NoDraft,
    NotificationLevel,
    SeaServiceLifecycle,
)

FIXED_NOW = datetime(2024, 5, 1, 8, 30, tzinfo=timezone.utc)


class FailingSaveRepository(SeaServiceRepository):
    """Repository whose draft writes fail as if the disk were full."""

    def upsert_draft(self, record_id, payload):
        raise OperationalError("UPDATE sea_service_records", {}, Exception("disk I/O error"))


class FailingHistoryRepository(SeaServiceRepository):
    """Repository whose history query fails after records are written."""

    def get_final_history(self):
        raise OperationalError("SELECT sea_service_records", {}, Exception("database is locked"))


@pytest.fixture
def lifecycle(db_session):
    return SeaServiceLifecycle(db_session, clock=lambda: FIXED_NOW)


@pytest.fixture
def started(lifecycle):
    assert lifecycle.start("General Cargo", "2024-01-10", "Rotterdam")
    lifecycle.notifications.clear()
    return lifecycle


def _fill_sections(lifecycle, sections):
    for key, data in sections.items():
        assert lifecycle.update_section(key, data)


def _messages(lifecycle, level=NotificationLevel.ERROR):
    return [n.message for n in lifecycle.notifications if n.level == level]


class TestStart:
    def test_start_creates_draft(self, lifecycle, db_session):
        assert isinstance(lifecycle.state, NoDraft)
        assert lifecycle.start("general cargo", "2024-01-10", " Rotterdam ")

        assert isinstance(lifecycle.state, Draft)
        assert lifecycle.payload.ship_type == "GENERAL_CARGO"
        assert lifecycle.payload.service_period.sign_on_port == "Rotterdam"
        assert _messages(lifecycle, NotificationLevel.SUCCESS) == ["Sea Service started."]
        assert db_session.query(SeaServiceRecordORM).count() == 1

    def test_start_twice_keeps_single_draft(self, started, db_session):
        first_id = started.active_record_id
        assert not started.start("OIL_TANKER", "2024-02-01", "Houston")
        assert started.active_record_id == first_id
        assert _messages(started) == ["An active Sea Service draft already exists."]
        assert db_session.query(SeaServiceRecordORM).count() == 1

    def test_second_manager_cannot_start(self, started, db_session):
        other = SeaServiceLifecycle(db_session)
        assert not other.start("OIL_TANKER", "2024-02-01", "Houston")
        assert _messages(other) == ["An active Sea Service draft already exists."]
        assert isinstance(other.state, NoDraft)

    @pytest.mark.parametrize(
        "ship_type, sign_on_date, port",
        [
            ("", "2024-01-10", "Rotterdam"),
            ("GENERAL_CARGO", "10/01/2024", "Rotterdam"),
            ("GENERAL_CARGO", "2024-01-10", "  "),
        ],
    )
    def test_start_rejects_bad_input(self, lifecycle, ship_type, sign_on_date, port):
        assert not lifecycle.start(ship_type, sign_on_date, port)
        assert isinstance(lifecycle.state, NoDraft)
        assert len(_messages(lifecycle)) == 1


class TestNoDraft:
    def test_mutations_are_reported_and_ignored(self, lifecycle):
        assert not lifecycle.update_section(SectionKey.GENERAL_IDENTITY, {"shipName": "X"})
        assert not lifecycle.update_service_period({"signOffDate": "2024-06-30"})
        assert not lifecycle.set_ship_type("OIL_TANKER")
        assert not lifecycle.finalize()
        assert not lifecycle.discard()
        assert _messages(lifecycle) == ["No active Sea Service draft."] * 5
        assert lifecycle.payload.sections[SectionKey.GENERAL_IDENTITY] == {}

    def test_views_without_draft(self, lifecycle):
        assert lifecycle.active_record_id is None
        assert not lifecycle.can_finalize
        assert lifecycle.summary.total_sections == 11
        assert lifecycle.summary.in_progress_sections == 0


class TestUpdateSection:
    def test_merge_and_status(self, started, db_session):
        assert started.update_section(SectionKey.PROPULSION_PERFORMANCE, {"mainEngineMakeModel": "MAN", "mcrPower": None})
        assert started.payload.section_status[SectionKey.PROPULSION_PERFORMANCE] == SectionStatus.IN_PROGRESS

        assert started.update_section("PROPULSION_PERFORMANCE", {"mcrPower": 9480})
        payload = started.payload
        assert payload.sections[SectionKey.PROPULSION_PERFORMANCE] == {"mainEngineMakeModel": "MAN", "mcrPower": 9480}
        assert payload.section_status[SectionKey.PROPULSION_PERFORMANCE] == SectionStatus.COMPLETED
        assert payload.last_updated_at == FIXED_NOW

        stored = SeaServiceRepository(db_session).get_by_id(started.active_record_id)
        assert stored.payload.sections[SectionKey.PROPULSION_PERFORMANCE]["mcrPower"] == 9480
        assert stored.payload.section_status[SectionKey.PROPULSION_PERFORMANCE] == SectionStatus.COMPLETED

    def test_identity_projection(self, started, db_session):
        started.update_section(SectionKey.GENERAL_IDENTITY, {"shipName": "MV Aurora", "imoNumber": "9123456"})
        stored = SeaServiceRepository(db_session).get_by_id(started.active_record_id)
        assert stored.ship_name == "MV Aurora"
        assert stored.imo_number == "9123456"

    def test_unknown_section(self, started):
        assert not started.update_section("ENGINE_ROOM", {"a": 1})
        assert _messages(started) == ["Unknown Sea Service section: ENGINE_ROOM"]

    def test_non_mapping_patch(self, started):
        assert not started.update_section(SectionKey.GENERAL_IDENTITY, ["shipName"])
        assert started.payload.sections[SectionKey.GENERAL_IDENTITY] == {}


class TestSaveSection:
    def test_rejects_unanswered_questions(self, started):
        assert not started.save_section(SectionKey.POLLUTION_PREVENTION, {"annex1_owsFitted": True})
        assert "Annex I" in _messages(started)[0]
        assert started.payload.sections[SectionKey.POLLUTION_PREVENTION] == {}

    def test_saves_when_valid(self, started, pollution_answers):
        assert started.save_section(SectionKey.POLLUTION_PREVENTION, pollution_answers)
        assert started.payload.section_status[SectionKey.POLLUTION_PREVENTION] == SectionStatus.COMPLETED

    def test_igs_not_fitted_needs_reason(self, started):
        assert not started.save_section(SectionKey.INERT_GAS_SYSTEM, {"igsFitted": False})
        assert started.save_section(SectionKey.INERT_GAS_SYSTEM, {"igsFitted": False, "igsNotFittedReason": "N/A"})


class TestServicePeriod:
    def test_merge(self, started):
        assert started.update_service_period({"signOffDate": "2024-06-30", "sign_off_port": "Singapore"})
        period = started.payload.service_period
        assert period.sign_on_date == "2024-01-10"
        assert period.sign_off_port == "Singapore"
        assert started.payload.last_updated_at == FIXED_NOW

    def test_unknown_field(self, started):
        assert not started.update_service_period({"signOffTime": "12:00"})
        assert _messages(started) == ["Unknown service period field: signOffTime"]


class TestSetShipType:
    def test_recomputes_statuses(self, started):
        started.update_section(SectionKey.INERT_GAS_SYSTEM, {"igsFitted": False, "igsNotFittedReason": "Not applicable"})
        assert started.payload.section_status[SectionKey.INERT_GAS_SYSTEM] == SectionStatus.COMPLETED

        assert started.set_ship_type("oil-tanker")
        assert started.payload.ship_type == "OIL_TANKER"
        assert started.payload.section_status[SectionKey.INERT_GAS_SYSTEM] == SectionStatus.IN_PROGRESS

    def test_blank_rejected(self, started):
        assert not started.set_ship_type("  ")
        assert started.payload.ship_type == "GENERAL_CARGO"


class TestFinalize:
    def test_blocked_by_incomplete_period(self, started, complete_sections, db_session):
        _fill_sections(started, complete_sections)
        started.notifications.clear()

        assert not started.finalize()
        assert _messages(started) == ["Sign-On and Sign-Off details (dates and ports) are mandatory."]
        assert isinstance(started.state, Draft)
        stored = SeaServiceRepository(db_session).get_by_id(started.active_record_id)
        assert stored.status == RecordStatus.DRAFT

    def test_blocked_by_incomplete_section(self, started):
        started.update_service_period({"signOffDate": "2024-06-30", "signOffPort": "Singapore"})
        assert not started.finalize()
        assert isinstance(started.state, Draft)

    def test_tanker_needs_igs(self, started, complete_sections, complete_igs_data):
        _fill_sections(started, complete_sections)
        started.update_service_period({"signOffDate": "2024-06-30", "signOffPort": "Singapore"})
        started.set_ship_type("OIL_TANKER")
        assert not started.can_finalize

        started.update_section(SectionKey.INERT_GAS_SYSTEM, complete_igs_data)
        assert started.can_finalize
        assert started.finalize()

    def test_success(self, started, complete_sections, db_session):
        _fill_sections(started, complete_sections)
        started.update_service_period({"signOffDate": "2024-06-30", "signOffPort": "Singapore"})
        record_id = started.active_record_id
        assert started.can_finalize

        assert started.finalize()
        assert isinstance(started.state, NoDraft)
        assert [r.id for r in started.final_history] == [record_id]
        assert started.final_history[0].status == RecordStatus.FINAL
        assert _messages(started, NotificationLevel.SUCCESS)[-1] == "Sea Service finalized."

        stored = SeaServiceRepository(db_session).get_by_id(record_id)
        assert stored.status == RecordStatus.FINAL
        assert stored.ship_name == "MV Test Vessel"
        assert stored.sign_off_date == "2024-06-30"

    def test_new_draft_after_finalize(self, started, complete_sections):
        _fill_sections(started, complete_sections)
        started.update_service_period({"signOffDate": "2024-06-30", "signOffPort": "Singapore"})
        assert started.finalize()
        assert started.start("GENERAL_CARGO", "2024-08-01", "Hamburg")
        assert len(started.final_history) == 1


class TestDiscard:
    def test_discard(self, started, db_session):
        record_id = started.active_record_id
        assert started.discard()
        assert isinstance(started.state, NoDraft)
        assert SeaServiceRepository(db_session).get_by_id(record_id) is None
        assert started.start("GENERAL_CARGO", "2024-02-01", "Antwerp")


class TestPersistenceFailure:
    def test_error_reported_and_memory_kept(self, db_session):
        notifications = []
        lifecycle = SeaServiceLifecycle(
            repository=FailingSaveRepository(db_session),
            notify=notifications.append,
        )
        assert lifecycle.start("GENERAL_CARGO", "2024-01-10", "Rotterdam")

        assert not lifecycle.update_section(SectionKey.GENERAL_IDENTITY, {"shipName": "MV Aurora"})
        assert notifications[-1].level == NotificationLevel.ERROR
        assert notifications[-1].message == "Failed to save Sea Service draft."
        assert lifecycle.notifications == []
        # In-memory state is not rolled back.
        assert lifecycle.payload.sections[SectionKey.GENERAL_IDENTITY] == {"shipName": "MV Aurora"}
        assert lifecycle.payload.section_status[SectionKey.GENERAL_IDENTITY] == SectionStatus.COMPLETED

    def test_finalize_failure_keeps_draft(self, db_session, complete_sections):
        lifecycle = SeaServiceLifecycle(repository=FailingSaveRepository(db_session))
        lifecycle.start("GENERAL_CARGO", "2024-01-10", "Rotterdam")
        for key, data in complete_sections.items():
            lifecycle.update_section(key, data)
        lifecycle.update_service_period({"signOffDate": "2024-06-30", "signOffPort": "Singapore"})
        lifecycle.notifications.clear()

        assert lifecycle.can_finalize
        assert not lifecycle.finalize()
        assert _messages(lifecycle) == ["Failed to finalize Sea Service."]
        assert isinstance(lifecycle.state, Draft)

    def test_history_refresh_failure_still_lists_record(self, db_session, complete_sections):
        lifecycle = SeaServiceLifecycle(repository=FailingHistoryRepository(db_session))
        lifecycle.start("GENERAL_CARGO", "2024-01-10", "Rotterdam")
        _fill_sections(lifecycle, complete_sections)
        lifecycle.update_service_period({"signOffDate": "2024-06-30", "signOffPort": "Singapore"})
        record_id = lifecycle.active_record_id
        lifecycle.notifications.clear()

        assert lifecycle.finalize()
        assert isinstance(lifecycle.state, NoDraft)
        assert [r.id for r in lifecycle.final_history] == [record_id]
        assert lifecycle.final_history[0].status == RecordStatus.FINAL
        assert _messages(lifecycle) == ["Failed to load Sea Service history."]
        assert _messages(lifecycle, NotificationLevel.SUCCESS) == ["Sea Service finalized."]


class TestLoad:
    def test_hydrates_existing_draft(self, started, db_session):
        started.update_section(SectionKey.GENERAL_IDENTITY, {"shipName": "MV Aurora"})

        fresh = SeaServiceLifecycle(db_session)
        assert fresh.load()
        assert fresh.active_record_id == started.active_record_id
        assert fresh.payload.sections[SectionKey.GENERAL_IDENTITY] == {"shipName": "MV Aurora"}
        assert fresh.final_history == ()

    def test_empty_store(self, lifecycle):
        assert lifecycle.load()
        assert isinstance(lifecycle.state, NoDraft)

    def test_needs_session_or_repository(self):
        with pytest.raises(ValueError):
            SeaServiceLifecycle()
