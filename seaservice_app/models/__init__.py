"""
Domain models for Sea Service records.

These are pure Python/domain classes, separate from ORM mappings.
"""

from seaservice_app.models.sea_service import (
    RecordStatus,
    SeaServicePayload,
    SeaServiceRecord,
    SectionData,
    SectionStatus,
    ServicePeriod,
    default_payload,
)

__all__ = [
    "RecordStatus",
    "SeaServicePayload",
    "SeaServiceRecord",
    "SectionData",
    "SectionStatus",
    "ServicePeriod",
    "default_payload",
]
