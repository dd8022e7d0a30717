"""
Save-time validation for Sea Service sections.

Runs before a section patch is accepted. Errors block the save;
warnings are informational only. Status derivation relies on these
checks for Pollution Prevention, where any saved data counts as
complete.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Mapping

from seaservice_app.config.sections import (
    ANNEX_II_LABEL,
    IGS_FITTED,
    IGS_NOT_FITTED_REASON,
    SectionKey,
    get_section_schema,
)
from seaservice_app.config.ship_types import is_chemical_tanker, is_tanker
from seaservice_app.services.section_status import has_value


class ValidationSeverity(Enum):
    OK = "ok"
    WARNING = "warning"
    ERROR = "error"


@dataclass(slots=True)
class ValidationIssue:
    code: str
    severity: ValidationSeverity
    message: str
    field: str | None = None


@dataclass(slots=True)
class SectionValidationResult:
    section_key: SectionKey
    issues: List[ValidationIssue] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return any(i.severity == ValidationSeverity.ERROR for i in self.issues)

    @property
    def has_warnings(self) -> bool:
        return any(i.severity == ValidationSeverity.WARNING for i in self.issues)

    @property
    def valid(self) -> bool:
        return not self.has_errors

    @property
    def first_error(self) -> ValidationIssue | None:
        for issue in self.issues:
            if issue.severity == ValidationSeverity.ERROR:
                return issue
        return None


def _validate_mandatory_answers(
    section_key: SectionKey,
    data: Mapping[str, Any],
    ship_type: str | None,
) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []
    schema = get_section_schema(section_key)
    for label, keys in schema.mandatory_answers.items():
        # Annex II applies to chemical tankers only.
        if label == ANNEX_II_LABEL and not is_chemical_tanker(ship_type):
            continue
        missing = [k for k in keys if data.get(k) is None]
        if missing:
            issues.append(
                ValidationIssue(
                    code="ANSWER_REQUIRED",
                    severity=ValidationSeverity.ERROR,
                    message=f"Please answer all mandatory Yes/No questions in {label}.",
                    field=missing[0],
                )
            )
    return issues


def _validate_inert_gas(data: Mapping[str, Any], ship_type: str | None) -> List[ValidationIssue]:
    fitted = IGS_FITTED.read(data)
    if fitted is not False:
        return []
    if is_tanker(ship_type):
        return [
            ValidationIssue(
                code="IGS_REQUIRED_ON_TANKER",
                severity=ValidationSeverity.ERROR,
                message="An Inert Gas System is mandatory on tankers and cannot be recorded as not fitted.",
                field=IGS_FITTED.key,
            )
        ]
    if not has_value(IGS_NOT_FITTED_REASON.read(data)):
        return [
            ValidationIssue(
                code="IGS_REASON_REQUIRED",
                severity=ValidationSeverity.ERROR,
                message="Please state why the Inert Gas System is not fitted.",
                field=IGS_NOT_FITTED_REASON.key,
            )
        ]
    return []


def _validate_feature_gates(section_key: SectionKey, data: Mapping[str, Any]) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []
    for gate in get_section_schema(section_key).feature_gates:
        if not gate.is_enabled(data):
            continue
        if gate.subtypes and not gate.has_any_subtype(data):
            issues.append(
                ValidationIssue(
                    code="GATE_SUBTYPE_MISSING",
                    severity=ValidationSeverity.WARNING,
                    message=f"{gate.name} fitted: select at least one type.",
                    field=gate.enabled_by.key,
                )
            )
        empty = [k for k in gate.fields if not has_value(data.get(k))]
        if empty:
            issues.append(
                ValidationIssue(
                    code="GATE_DETAILS_MISSING",
                    severity=ValidationSeverity.WARNING,
                    message=f"{gate.name} fitted: details are still missing.",
                    field=empty[0],
                )
            )
    return issues


def validate_section(
    section_key: SectionKey | str,
    data: Mapping[str, Any] | None,
    ship_type: str | None = None,
) -> SectionValidationResult:
    """Validate a section's data as it is about to be saved."""
    key = SectionKey.parse(section_key)
    if key is None:
        raise KeyError(f"Unknown Sea Service section: {section_key}")
    result = SectionValidationResult(section_key=key)
    if not isinstance(data, Mapping):
        result.issues.append(
            ValidationIssue(
                code="INVALID_DATA",
                severity=ValidationSeverity.ERROR,
                message="Section data must be a set of named fields.",
            )
        )
        return result

    if key == SectionKey.POLLUTION_PREVENTION:
        result.issues.extend(_validate_mandatory_answers(key, data, ship_type))
    elif key == SectionKey.INERT_GAS_SYSTEM:
        result.issues.extend(_validate_inert_gas(data, ship_type))
    result.issues.extend(_validate_feature_gates(key, data))
    return result
