"""Pytest configuration and fixtures."""

from __future__ import annotations

import sys
import tempfile
from pathlib import Path

import pytest

# Ensure project root is on path when running tests
_project_root = Path(__file__).resolve().parents[2]
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from seaservice_app.config.sections import SectionKey
from seaservice_app.models import SeaServicePayload, ServicePeriod


@pytest.fixture
def temp_db():
    """Create a temporary SQLite database and return its path."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        path = Path(f.name)
    yield path
    try:
        path.unlink(missing_ok=True)
    except OSError:
        pass  # Windows may hold file; ignore cleanup failure


@pytest.fixture
def db_session(temp_db):
    """Provide a database session with initialized schema."""
    from sqlalchemy import create_engine
    from sqlalchemy.orm import sessionmaker
    from seaservice_app.repositories.database import Base
    from seaservice_app.repositories.sea_service_repository import SeaServiceRecordORM  # noqa: F401

    engine = create_engine(f"sqlite:///{temp_db}", future=True)
    Base.metadata.create_all(bind=engine)
    SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


def _complete_sections() -> dict:
    """Section data that derives COMPLETED everywhere except IGS."""
    return {
        SectionKey.GENERAL_IDENTITY: {
            "shipName": "MV Test Vessel",
            "imoNumber": "9123456",
            "flagState": "Liberia",
            "portOfRegistry": "Monrovia",
        },
        SectionKey.DIMENSIONS_TONNAGE: {"loa": 180.5, "breadth": 30.2, "grossTonnage": 25000},
        SectionKey.PROPULSION_PERFORMANCE: {"mainEngineMakeModel": "MAN B&W 6S50MC", "mcrPower": 9480},
        SectionKey.AUX_MACHINERY_ELECTRICAL: {
            "mainGeneratorsFitted": True,
            "mainGeneratorsMakeModel": "Yanmar 6EY18",
            "numberOfGenerators": 3,
            "generatorPowerOutput": "3 x 600 kW",
            "shaftGeneratorFitted": False,
            "shaftGeneratorDetails": "",
        },
        SectionKey.DECK_MACHINERY_MANEUVERING: {
            "bowThrusterFitted": False,
            "bowThrusterPowerMake": "",
            "windlassType": "Electro-hydraulic",
        },
        SectionKey.CARGO_CAPABILITIES: {
            "cargoPumpsFitted": True,
            "cargoPumpCentrifugal": True,
            "strippingPumpFitted": False,
        },
        SectionKey.NAVIGATION_COMMUNICATION: {"radarCount": 2, "ecdisFitted": True},
        SectionKey.LIFE_SAVING_APPLIANCES: {"lifeboatsAvailable": True, "lifeboatCapacity": 30},
        SectionKey.FIRE_FIGHTING_APPLIANCES: {"engineRoomFixedAvailable": True},
        SectionKey.POLLUTION_PREVENTION: {"annex1_owsFitted": True},
        SectionKey.INERT_GAS_SYSTEM: {},
    }


@pytest.fixture
def complete_sections():
    return _complete_sections()


@pytest.fixture
def complete_igs_data():
    return {
        "igsFitted": True,
        "igsSourceType": "Flue gas",
        "scrubberAvailable": True,
        "blowerAvailable": True,
        "blowerCount": 2,
        "deckSealAvailable": True,
        "deckSealType": "Wet type",
        "oxygenAnalyzerAvailable": True,
        "igPressureAlarmAvailable": False,
    }


@pytest.fixture
def complete_period():
    return ServicePeriod(
        sign_on_date="2024-01-10",
        sign_on_port="Rotterdam",
        sign_off_date="2024-06-30",
        sign_off_port="Singapore",
    )


@pytest.fixture
def complete_payload(complete_period):
    """A general cargo payload that satisfies every finalization rule."""
    return SeaServicePayload(
        ship_type="GENERAL_CARGO",
        service_period=complete_period,
        sections=_complete_sections(),
    )


@pytest.fixture
def pollution_answers():
    """All mandatory MARPOL answers for a non-chemical ship."""
    return {
        "annex1_owsFitted": True,
        "annex1_bilgeSludgeTanksPresent": True,
        "annex1_oilRecordBookPartI": True,
        "annex3_imdgDocsOnboard": False,
        "annex3_cargoSecuringPlanAvailable": True,
        "annex3_dgManifestProcedureUsed": False,
        "annex4_stpFitted": True,
        "annex4_holdingTankAvailable": True,
        "annex4_dischargeProcedureKnown": True,
        "annex5_garbageManagementPlanOnboard": True,
        "annex5_garbageRecordBookOnboard": True,
        "annex5_segregationProcedureFollowed": True,
        "annex6_iappCertificateOnboard": True,
        "annex6_fuelChangeoverProcedure": True,
        "annex6_odsRecordMaintained": False,
    }
