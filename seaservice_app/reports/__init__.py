"""
Reporting utilities (text/PDF/Excel) for Sea Service records.
"""

from seaservice_app.reports.simple_text_report import build_record_summary_text
from seaservice_app.reports.pdf_report import export_record_to_pdf
from seaservice_app.reports.excel_report import export_history_to_excel

__all__ = [
    "build_record_summary_text",
    "export_record_to_pdf",
    "export_history_to_excel",
]
