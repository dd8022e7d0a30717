"""
Basic settings and logging configuration for the Sea Service app.
"""

from __future__ import annotations

import logging
import os
import shutil
import sys
from dataclasses import dataclass
from pathlib import Path

DATA_DIR_ENV = "SEASERVICE_DATA_DIR"
LOG_LEVEL_ENV = "SEASERVICE_LOG_LEVEL"


def _get_resource_root() -> Path:

    if getattr(sys, "frozen", False) and hasattr(sys, "_MEIPASS"):
        return Path(sys._MEIPASS)
    return Path(__file__).resolve().parents[2]


def _get_user_data_dir(resource_root: Path) -> Path:

    override = os.environ.get(DATA_DIR_ENV, "").strip()
    if override:
        return Path(override).expanduser()
    if getattr(sys, "frozen", False):
        exe_path = Path(getattr(sys, "executable", resource_root))
        return exe_path.parent / "seaservice_app_data"
    return resource_root / "seaservice_app_data"


@dataclass(slots=True)
class Settings:
    """Application-level settings."""

    project_root: Path
    data_dir: Path
    db_path: Path
    log_level: str = "INFO"

    @classmethod
    def default(cls) -> "Settings":
        resource_root = _get_resource_root()
        data_dir = _get_user_data_dir(resource_root)
        data_dir.mkdir(parents=True, exist_ok=True)

        db_path = data_dir / "seaservice.db"

        # First run: seed the writable DB from a bundled copy if present.
        if not db_path.exists():
            bundled_db = resource_root / "seaservice_app_data" / "seaservice.db"
            if bundled_db.exists() and bundled_db != db_path:
                try:
                    shutil.copy2(bundled_db, db_path)
                except OSError:
                    logging.getLogger(__name__).warning("Could not seed database from %s", bundled_db)

        log_level = os.environ.get(LOG_LEVEL_ENV, "INFO").strip().upper() or "INFO"
        return cls(project_root=resource_root, data_dir=data_dir, db_path=db_path, log_level=log_level)


def init_logging(settings: Settings) -> None:
    """Configure logging to a file in the data directory."""
    log_file = settings.data_dir / "seaservice.log"
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        handlers=[
            logging.FileHandler(log_file, encoding="utf-8"),
        ],
    )

    logging.getLogger(__name__).info("Logging initialized. DB at %s", settings.db_path)
