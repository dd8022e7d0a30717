"""
Ship type vocabulary and section applicability.

canonical_ship_type() is the only place where free-form ship type input
is normalized; every other module works with the canonical code.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, FrozenSet, Tuple

from .sections import SECTION_DEFINITIONS, SectionKey


@dataclass(frozen=True, slots=True)
class ShipType:
    code: str
    label: str
    tanker: bool = False
    chemical: bool = False


SHIP_TYPES: Tuple[ShipType, ...] = (
    ShipType("GENERAL_CARGO", "General Cargo"),
    ShipType("BULK_CARRIER", "Bulk Carrier"),
    ShipType("CAR_CARRIER", "Car Carrier"),
    ShipType("CONTAINER", "Container"),
    ShipType("RO_RO", "Ro-Ro"),
    ShipType("PASSENGER", "Passenger"),
    ShipType("OIL_TANKER", "Oil Tanker", tanker=True),
    ShipType("CHEMICAL_TANKER", "Chemical Tanker", tanker=True, chemical=True),
    ShipType("GAS_TANKER", "Gas Tanker", tanker=True),
    ShipType("AHTS", "Anchor Handling Tug Supply (AHTS)"),
)

SHIP_TYPES_BY_CODE: Dict[str, ShipType] = {t.code: t for t in SHIP_TYPES}

# Spellings seen in older records, mapped onto table codes.
SHIP_TYPE_SYNONYMS: Dict[str, str] = {
    "TANKER": "OIL_TANKER",
    "PRODUCT_TANKER": "OIL_TANKER",
    "CRUDE_TANKER": "OIL_TANKER",
    "LPG_TANKER": "GAS_TANKER",
    "LNG_TANKER": "GAS_TANKER",
    "GAS_CARRIER": "GAS_TANKER",
    "RORO": "RO_RO",
    "GENERAL": "GENERAL_CARGO",
    "BULK": "BULK_CARRIER",
    "CONTAINER_SHIP": "CONTAINER",
}

# Tanker names that are not in the table keep tanker semantics.
_TANKER_SUFFIX = "_TANKER"

ALL_SECTIONS: FrozenSet[SectionKey] = frozenset(d.key for d in SECTION_DEFINITIONS)
TANKER_ONLY_SECTIONS: FrozenSet[SectionKey] = frozenset({SectionKey.INERT_GAS_SYSTEM})


def canonical_ship_type(value: object) -> str | None:
    """
    Normalize a ship type code: upper case, hyphens and whitespace to
    underscores, known synonyms resolved. Returns None for blank input.
    Unknown codes are returned normalized but otherwise unchanged.
    """
    if value is None:
        return None
    text = re.sub(r"[\s\-]+", "_", str(value).strip().upper())
    if not text:
        return None
    return SHIP_TYPE_SYNONYMS.get(text, text)


def get_ship_type(value: object) -> ShipType | None:
    code = canonical_ship_type(value)
    if code is None:
        return None
    return SHIP_TYPES_BY_CODE.get(code)


def is_tanker(value: object) -> bool:
    code = canonical_ship_type(value)
    if code is None:
        return False
    known = SHIP_TYPES_BY_CODE.get(code)
    if known is not None:
        return known.tanker
    return code == "TANKER" or code.endswith(_TANKER_SUFFIX)


def is_chemical_tanker(value: object) -> bool:
    known = get_ship_type(value)
    return bool(known and known.chemical)


def applicable_sections(value: object) -> FrozenSet[SectionKey]:
    """Sections that apply to a ship type. Only IGS depends on the type."""
    if is_tanker(value):
        return ALL_SECTIONS
    return ALL_SECTIONS - TANKER_ONLY_SECTIONS


def is_section_applicable(section_key: SectionKey, value: object) -> bool:
    return section_key in applicable_sections(value)
