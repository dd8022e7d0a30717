"""
Repository layer for persistence (SQLite via SQLAlchemy).
"""

from seaservice_app.repositories.database import SessionLocal, Base, init_database
from seaservice_app.repositories.sea_service_repository import (
    DraftAlreadyExistsError,
    SeaServiceRepository,
    SeaServiceRepositoryError,
)

__all__ = [
    "SessionLocal",
    "Base",
    "init_database",
    "DraftAlreadyExistsError",
    "SeaServiceRepository",
    "SeaServiceRepositoryError",
]
