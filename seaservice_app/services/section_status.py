"""
Section status engine.

Derives NOT_STARTED / IN_PROGRESS / COMPLETED for one section from its
loosely-typed form data. Pure functions only: no I/O, no hidden state,
and malformed input degrades to NOT_STARTED instead of raising.

Rules shared by every section:
- Boolean answers are valid whether True or False.
- Fields behind a gate that is switched off are not applicable.
- Fields behind a gate that is switched on are required.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Callable, Dict, Mapping, Optional

from seaservice_app.config.sections import (
    IGS_FITTED,
    IGS_NOT_FITTED_REASON,
    SECTION_DEFINITIONS,
    SectionKey,
    SectionSchema,
    discover_feature_gates,
    discover_group_gates,
    get_section_schema,
    is_gate_marker,
)
from seaservice_app.config.ship_types import is_tanker
from seaservice_app.models import SectionStatus


def has_value(value: Any) -> bool:
    """
    True when a form value counts as answered.

    None is missing; booleans and numbers are always answers; strings
    must be non-blank; collections must be non-empty.
    """
    if value is None:
        return False
    if isinstance(value, bool):
        return True
    if isinstance(value, (int, float)):
        return True
    if isinstance(value, str):
        return len(value.strip()) > 0
    if isinstance(value, date):
        return True
    if isinstance(value, Mapping):
        return len(value) > 0
    if isinstance(value, (list, tuple, set, frozenset)):
        return len(value) > 0
    return False


def has_any_data(section_data: Mapping[str, Any]) -> bool:
    return any(has_value(v) for v in section_data.values())


_YES_TEXT = frozenset({"true", "yes", "y", "1"})


def _is_yes(value: Any) -> bool:
    """True, a non-zero number, or a yes-like string (older records stored these)."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in _YES_TEXT
    return False


def _primary_equipment_rule(schema: SectionSchema, data: Mapping[str, Any], ship_type: str | None) -> SectionStatus:
    if any(_is_yes(data.get(k)) for k in schema.primary_equipment):
        return SectionStatus.COMPLETED
    return SectionStatus.IN_PROGRESS


def _any_data_rule(schema: SectionSchema, data: Mapping[str, Any], ship_type: str | None) -> SectionStatus:
    # Mandatory answers are enforced when the section is saved
    # (see section_validation); anything stored counts as complete.
    return SectionStatus.COMPLETED


def _inert_gas_rule(schema: SectionSchema, data: Mapping[str, Any], ship_type: str | None) -> SectionStatus:
    fitted = IGS_FITTED.read(data)

    if fitted is False and not is_tanker(ship_type):
        reason = IGS_NOT_FITTED_REASON.read(data)
        if isinstance(reason, str) and reason.strip():
            return SectionStatus.COMPLETED
        return SectionStatus.IN_PROGRESS

    if fitted is True:
        core_ok = all(has_value(data.get(k)) for k in schema.core_fields)
        conditional_ok = all(
            has_value(data.get(c.field))
            for c in schema.conditional_fields
            if c.is_required(data)
        )
        if core_ok and conditional_ok:
            return SectionStatus.COMPLETED

    return SectionStatus.IN_PROGRESS


def _cargo_rule(schema: SectionSchema, data: Mapping[str, Any], ship_type: str | None) -> SectionStatus:
    # A fitted pump gate needs at least one pump type answered Yes.
    for gate in schema.feature_gates:
        if gate.subtypes and gate.is_enabled(data) and not gate.has_any_subtype(data):
            return SectionStatus.IN_PROGRESS
    return SectionStatus.COMPLETED


def _default_rule(schema: SectionSchema, data: Mapping[str, Any], ship_type: str | None) -> SectionStatus:
    declared = schema.feature_gates
    gates = declared + discover_feature_gates(data, declared) + discover_group_gates(data)
    disabled = [g for g in gates if g.is_disabled(data)]
    optional = set(schema.optional_fields)
    for gate in gates:
        optional.update(gate.optional_fields)

    relevant = []
    for key, value in data.items():
        if isinstance(value, bool):
            continue
        name = str(key)
        if is_gate_marker(name) or name in optional:
            continue
        if any(g.covers(name) for g in disabled):
            continue
        relevant.append(value)

    # Details of a switched-on gate are required even when the form left them out.
    for gate in declared:
        if gate.is_enabled(data):
            relevant.extend(None for f in gate.fields if f not in data)

    if not relevant:
        return SectionStatus.COMPLETED
    if all(has_value(v) for v in relevant):
        return SectionStatus.COMPLETED
    return SectionStatus.IN_PROGRESS


Rule = Callable[[SectionSchema, Mapping[str, Any], Optional[str]], SectionStatus]

_RULES: Dict[SectionKey, Rule] = {
    SectionKey.LIFE_SAVING_APPLIANCES: _primary_equipment_rule,
    SectionKey.FIRE_FIGHTING_APPLIANCES: _primary_equipment_rule,
    SectionKey.POLLUTION_PREVENTION: _any_data_rule,
    SectionKey.INERT_GAS_SYSTEM: _inert_gas_rule,
    SectionKey.CARGO_CAPABILITIES: _cargo_rule,
}

# Gate-driven sections count as started as soon as they exist.
_ALWAYS_STARTED = frozenset({SectionKey.CARGO_CAPABILITIES})


def derive_section_status(
    section_key: SectionKey | str,
    section_data: Any,
    ship_type: str | None = None,
) -> SectionStatus:
    """Derive the completion status of one section."""
    if not isinstance(section_data, Mapping):
        return SectionStatus.NOT_STARTED

    key = SectionKey.parse(section_key)
    if key not in _ALWAYS_STARTED and not has_any_data(section_data):
        return SectionStatus.NOT_STARTED

    if key is None:
        return _default_rule(SectionSchema(key=None), section_data, ship_type)

    rule = _RULES.get(key, _default_rule)
    return rule(get_section_schema(key), section_data, ship_type)


def derive_all_statuses(
    sections: Mapping[SectionKey, Any] | None,
    ship_type: str | None = None,
) -> Dict[SectionKey, SectionStatus]:
    """Statuses for every defined section, in wizard order."""
    sections = sections or {}
    return {
        d.key: derive_section_status(d.key, sections.get(d.key), ship_type)
        for d in SECTION_DEFINITIONS
    }
