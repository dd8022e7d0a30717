"""
Application entry point for the Sea Service record book.

Sets up settings, logging and the database, then runs one command:

    python -m seaservice_app.main status
    python -m seaservice_app.main history
    python -m seaservice_app.main export-pdf RECORD_ID OUT.pdf
    python -m seaservice_app.main export-excel OUT.xlsx
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from seaservice_app.config.settings import Settings, init_logging
from seaservice_app.repositories import database
from seaservice_app.repositories.database import init_database
from seaservice_app.repositories.sea_service_repository import SeaServiceRepository
from seaservice_app.reports import (
    build_record_summary_text,
    export_history_to_excel,
    export_record_to_pdf,
)
from seaservice_app.services.sea_service import SeaServiceLifecycle


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="seaservice", description="Sea Service record book")
    sub = parser.add_subparsers(dest="command")
    sub.add_parser("status", help="Show progress of the active draft")
    sub.add_parser("history", help="List finalized Sea Service records")
    pdf = sub.add_parser("export-pdf", help="Write one record to a PDF file")
    pdf.add_argument("record_id")
    pdf.add_argument("path", type=Path)
    xlsx = sub.add_parser("export-excel", help="Write the final history to an Excel workbook")
    xlsx.add_argument("path", type=Path)
    return parser


def _print_status(lifecycle: SeaServiceLifecycle) -> int:
    record = lifecycle.active_record
    if record is None:
        print("No active Sea Service draft.")
        return 0
    print(build_record_summary_text(record))
    blockers = lifecycle.blockers
    if blockers:
        print("")
        print("Cannot finalize yet:")
        for blocker in blockers:
            print(f"  - {blocker.message}")
    else:
        print("")
        print("Ready to finalize.")
    return 0


def _print_history(lifecycle: SeaServiceLifecycle) -> int:
    history = lifecycle.final_history
    if not history:
        print("No finalized Sea Service records.")
        return 0
    for record in history:
        period = record.payload.service_period
        print(
            f"{record.id}  {record.ship_name or '-':<24} IMO {record.imo_number or '-':<10} "
            f"{period.sign_on_date or '?'} -> {period.sign_off_date or '?'}"
        )
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Bootstraps the application and runs the requested command."""
    args = _build_parser().parse_args(argv)

    settings = Settings.default()
    init_logging(settings)
    init_database(settings.db_path)

    with database.SessionLocal() as db:
        lifecycle = SeaServiceLifecycle(db)
        if not lifecycle.load():
            for notification in lifecycle.notifications:
                print(notification.message, file=sys.stderr)
            return 1

        if args.command == "history":
            return _print_history(lifecycle)
        if args.command == "export-pdf":
            record = SeaServiceRepository(db).get_by_id(args.record_id)
            if record is None:
                print(f"Sea Service record not found: {args.record_id}", file=sys.stderr)
                return 1
            export_record_to_pdf(record, args.path)
            print(f"Wrote {args.path}")
            return 0
        if args.command == "export-excel":
            export_history_to_excel(lifecycle.final_history, args.path)
            print(f"Wrote {args.path}")
            return 0
        return _print_status(lifecycle)


if __name__ == "__main__":
    # Allow running as a script from the project root
    project_root = Path(__file__).resolve().parents[1]
    if project_root.exists():
        sys.path.insert(0, str(project_root))
    sys.exit(main())
