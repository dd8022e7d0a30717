"""
Sea Service section definitions and per-section field schemas.

The order of SECTION_DEFINITIONS is the official wizard order. New
sections may only be appended; existing entries are never reordered
or removed.

Gates are declared explicitly here: each gate names the boolean field
that controls it and the fields it covers. Group gates are the one
exception, since their marker key (``groupEnabled:<GroupKey>``) carries
the group name itself and is written by the cargo forms at runtime.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Tuple


class SectionKey(str, Enum):
    GENERAL_IDENTITY = "GENERAL_IDENTITY"
    DIMENSIONS_TONNAGE = "DIMENSIONS_TONNAGE"
    PROPULSION_PERFORMANCE = "PROPULSION_PERFORMANCE"
    AUX_MACHINERY_ELECTRICAL = "AUX_MACHINERY_ELECTRICAL"
    DECK_MACHINERY_MANEUVERING = "DECK_MACHINERY_MANEUVERING"
    CARGO_CAPABILITIES = "CARGO_CAPABILITIES"
    NAVIGATION_COMMUNICATION = "NAVIGATION_COMMUNICATION"
    LIFE_SAVING_APPLIANCES = "LIFE_SAVING_APPLIANCES"
    FIRE_FIGHTING_APPLIANCES = "FIRE_FIGHTING_APPLIANCES"
    POLLUTION_PREVENTION = "POLLUTION_PREVENTION"
    INERT_GAS_SYSTEM = "INERT_GAS_SYSTEM"

    @classmethod
    def parse(cls, value: Any) -> "SectionKey | None":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value))
        except ValueError:
            return None


@dataclass(frozen=True, slots=True)
class SectionDefinition:
    key: SectionKey
    title: str
    description: str
    # Every section is mandatory for finalization today. Setting this to
    # False makes a section optional without touching the ordering.
    finalize_required: bool = True


SECTION_DEFINITIONS: Tuple[SectionDefinition, ...] = (
    SectionDefinition(
        SectionKey.GENERAL_IDENTITY,
        "General Identity & Registry",
        "Basic vessel identity, registry, ownership, and classification details.",
    ),
    SectionDefinition(
        SectionKey.DIMENSIONS_TONNAGE,
        "Dimensions & Tonnages",
        "Principal dimensions, drafts, tonnages, and hull-related particulars.",
    ),
    SectionDefinition(
        SectionKey.PROPULSION_PERFORMANCE,
        "Main Propulsion & Performance",
        "Main engine details, propulsion arrangement, and vessel performance data.",
    ),
    SectionDefinition(
        SectionKey.AUX_MACHINERY_ELECTRICAL,
        "Auxiliary Machinery & Electrical",
        "Generators, boilers, electrical systems, and engine room auxiliaries.",
    ),
    SectionDefinition(
        SectionKey.DECK_MACHINERY_MANEUVERING,
        "Deck Machinery & Maneuvering",
        "Anchoring, mooring, steering gear, and maneuvering equipment.",
    ),
    SectionDefinition(
        SectionKey.CARGO_CAPABILITIES,
        "Cargo Capabilities",
        "Cargo systems, capacities, cargo handling equipment, and ballast systems.",
    ),
    SectionDefinition(
        SectionKey.NAVIGATION_COMMUNICATION,
        "Navigation & Communication",
        "Bridge navigation equipment, communication systems, and GMDSS details.",
    ),
    SectionDefinition(
        SectionKey.LIFE_SAVING_APPLIANCES,
        "Life Saving Appliances (LSA)",
        "Survival craft, personal life-saving equipment, and distress systems.",
    ),
    SectionDefinition(
        SectionKey.FIRE_FIGHTING_APPLIANCES,
        "Fire Fighting Appliances (FFA)",
        "Fixed and portable fire fighting systems and breathing apparatus.",
    ),
    SectionDefinition(
        SectionKey.POLLUTION_PREVENTION,
        "Pollution Prevention (MARPOL)",
        "MARPOL Annex I-VI pollution prevention equipment and procedures.",
    ),
    SectionDefinition(
        SectionKey.INERT_GAS_SYSTEM,
        "Inert Gas System (IGS)",
        "Inert gas generation, distribution, and cargo tank safety systems.",
    ),
)


def get_section_definition(key: SectionKey) -> SectionDefinition:
    for definition in SECTION_DEFINITIONS:
        if definition.key == key:
            return definition
    raise KeyError(key)


# ---------------------------------------------------------------------------
# Gates
# ---------------------------------------------------------------------------

GROUP_GATE_PREFIX = "groupEnabled:"


@dataclass(frozen=True, slots=True)
class FieldRef:
    """Reference to a single key inside a section's data."""

    key: str

    def read(self, data: Mapping[str, Any]) -> Any:
        return data.get(self.key)


@dataclass(frozen=True, slots=True)
class Gate:
    """
    A boolean control field and the sibling fields it makes applicable.

    ``enabled_by`` False  -> covered fields are not applicable.
    ``enabled_by`` True   -> ``fields`` are required; if ``subtypes`` is
                             set, at least one of them must be True.
                             ``optional_fields`` are covered but never required.
    ``enabled_by`` unset  -> no effect.
    """

    name: str
    enabled_by: FieldRef
    fields: Tuple[str, ...] = ()
    prefix: str | None = None
    subtypes: Tuple[str, ...] = ()
    optional_fields: Tuple[str, ...] = ()

    def is_enabled(self, data: Mapping[str, Any]) -> bool:
        return self.enabled_by.read(data) is True

    def is_disabled(self, data: Mapping[str, Any]) -> bool:
        return self.enabled_by.read(data) is False

    def covers(self, key: str) -> bool:
        if key == self.enabled_by.key:
            return False
        if key in self.fields or key in self.subtypes or key in self.optional_fields:
            return True
        return self.prefix is not None and key.startswith(self.prefix)

    def has_any_subtype(self, data: Mapping[str, Any]) -> bool:
        return any(data.get(k) is True for k in self.subtypes)


def group_gate_key(group_key: str) -> str:
    return f"{GROUP_GATE_PREFIX}{group_key}"


def group_gate(group_key: str) -> Gate:
    return Gate(
        name=group_key,
        enabled_by=FieldRef(group_gate_key(group_key)),
        prefix=group_key,
    )


def is_gate_marker(key: str) -> bool:
    if key.startswith(GROUP_GATE_PREFIX):
        return True
    return len(key) > 4 and key.startswith("__") and key.endswith("__")


def discover_group_gates(data: Mapping[str, Any]) -> Tuple[Gate, ...]:
    """Group gates present in ``data`` (any ``groupEnabled:<GroupKey>`` marker)."""
    gates = []
    for key in data:
        if isinstance(key, str) and key.startswith(GROUP_GATE_PREFIX):
            group_key = key[len(GROUP_GATE_PREFIX):]
            if group_key:
                gates.append(group_gate(group_key))
    return tuple(gates)


FEATURE_GATE_SUFFIX = "Fitted"


def discover_feature_gates(data: Mapping[str, Any], declared: Tuple[Gate, ...] = ()) -> Tuple[Gate, ...]:
    """
    Prefix gates for boolean ``<feature>Fitted`` fields not declared in a schema.

    ``cctvFitted: False`` makes every ``cctv*`` sibling not applicable.
    """
    known = {g.enabled_by.key for g in declared}
    gates = []
    for key, value in data.items():
        if not isinstance(key, str) or not isinstance(value, bool) or key in known:
            continue
        if key.endswith(FEATURE_GATE_SUFFIX) and len(key) > len(FEATURE_GATE_SUFFIX):
            feature = key[: -len(FEATURE_GATE_SUFFIX)]
            gates.append(Gate(name=feature, enabled_by=FieldRef(key), prefix=feature))
    return tuple(gates)


@dataclass(frozen=True, slots=True)
class ConditionalField:
    """``field`` is required only when ``required_when`` is True."""

    field: str
    required_when: FieldRef

    def is_required(self, data: Mapping[str, Any]) -> bool:
        return self.required_when.read(data) is True


# ---------------------------------------------------------------------------
# Per-section schemas
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SectionSchema:
    key: SectionKey | None
    feature_gates: Tuple[Gate, ...] = ()
    # Section is complete once any of these equipment flags is True.
    primary_equipment: Tuple[str, ...] = ()
    # Fixed checklist; each entry must be answered.
    core_fields: Tuple[str, ...] = ()
    conditional_fields: Tuple[ConditionalField, ...] = ()
    # Free-form remarks; never required.
    optional_fields: Tuple[str, ...] = ()
    # Save-time mandatory Yes/No questions grouped by label.
    mandatory_answers: Dict[str, Tuple[str, ...]] = field(default_factory=dict)


STRIPPING_PUMP_GATE = Gate(
    name="Stripping pump",
    enabled_by=FieldRef("strippingPumpFitted"),
    prefix="strippingPump",
    subtypes=(
        "strippingPumpEductor",
        "strippingPumpCentrifugal",
        "strippingPumpReciprocating",
        "strippingPumpPortable",
        "strippingPumpIntegrated",
        "strippingPumpOther",
    ),
)

CARGO_PUMPS_GATE = Gate(
    name="Cargo pumps",
    enabled_by=FieldRef("cargoPumpsFitted"),
    prefix="cargoPump",
    subtypes=(
        "cargoPumpCentrifugal",
        "cargoPumpReciprocating",
        "cargoPumpEductor",
        "cargoPumpOther",
    ),
)

IGS_FITTED = FieldRef("igsFitted")
IGS_NOT_FITTED_REASON = FieldRef("igsNotFittedReason")

ANNEX_II_LABEL = "Annex II (Noxious Liquid Substances)"


SECTION_SCHEMAS: Dict[SectionKey, SectionSchema] = {
    SectionKey.AUX_MACHINERY_ELECTRICAL: SectionSchema(
        key=SectionKey.AUX_MACHINERY_ELECTRICAL,
        feature_gates=(
            Gate(
                "Main generators",
                FieldRef("mainGeneratorsFitted"),
                fields=("mainGeneratorsMakeModel", "numberOfGenerators", "generatorPowerOutput"),
            ),
            Gate(
                "Emergency generator",
                FieldRef("emergencyGeneratorFitted"),
                fields=("emergencyGeneratorMakeModel", "emergencyGeneratorPowerOutput"),
            ),
            Gate("Shaft generator", FieldRef("shaftGeneratorFitted"), fields=("shaftGeneratorDetails",)),
            Gate("Boiler", FieldRef("boilerFitted"), fields=("boilerMakeType", "boilerWorkingPressure")),
            Gate(
                "Fresh water generator",
                FieldRef("freshWaterGeneratorFitted"),
                fields=("freshWaterGeneratorType",),
            ),
            Gate(
                "Oily water separator",
                FieldRef("oilyWaterSeparatorFitted"),
                fields=("oilyWaterSeparatorMakeModel",),
            ),
            Gate(
                "Sewage treatment plant",
                FieldRef("sewageTreatmentPlantFitted"),
                fields=("sewageTreatmentPlantMakeModel",),
            ),
            Gate("Incinerator", FieldRef("incineratorFitted"), fields=("incineratorMake",)),
            Gate("Purifiers", FieldRef("purifiersFitted"), fields=("purifiersMake",)),
            Gate("Air compressors", FieldRef("airCompressorsFitted"), fields=("airCompressorsMakePressure",)),
        ),
    ),
    SectionKey.DECK_MACHINERY_MANEUVERING: SectionSchema(
        key=SectionKey.DECK_MACHINERY_MANEUVERING,
        feature_gates=(
            Gate("Anchor windlass", FieldRef("anchorWindlassFitted"), fields=("anchorWindlassMakeType",)),
            Gate("Mooring winches", FieldRef("mooringWinchesFitted"), fields=("mooringWinchesNumberType",)),
            Gate(
                "Anchors and chains",
                FieldRef("anchorsAndChainsFitted"),
                fields=(
                    "anchorPortTypeWeight",
                    "anchorStarboardTypeWeight",
                    "chainLengthPortShackles",
                    "chainLengthStarboardShackles",
                ),
            ),
            Gate("Bow thruster", FieldRef("bowThrusterFitted"), fields=("bowThrusterPowerMake",)),
            Gate("Stern thruster", FieldRef("sternThrusterFitted"), fields=("sternThrusterPowerMake",)),
        ),
    ),
    SectionKey.NAVIGATION_COMMUNICATION: SectionSchema(
        key=SectionKey.NAVIGATION_COMMUNICATION,
        feature_gates=(
            Gate(
                "SATCOM",
                FieldRef("satcomFitted"),
                fields=("satcomType",),
                optional_fields=("satcomProvider", "satcomNotes"),
            ),
            Gate("VHF DSC", FieldRef("vhfDscFitted"), fields=("vhfDscMakeModel",)),
            Gate("MF/HF", FieldRef("mfHfFitted"), fields=("mfHfMakeModel",)),
            Gate("NAVTEX", FieldRef("navtexFitted"), fields=("navtexMakeModel",)),
            Gate("X-band radar", FieldRef("radarXBandFitted"), fields=("radarXBandMakeModel",)),
            Gate("S-band radar", FieldRef("radarSBandFitted"), fields=("radarSBandMakeModel",)),
            Gate("ARPA", FieldRef("radarArpaFitted"), optional_fields=("radarArpaNotes",)),
            Gate(
                "Primary ECDIS",
                FieldRef("ecdisPrimaryFitted"),
                fields=("ecdisPrimaryMakeModel", "ecdisChartsType"),
                optional_fields=("ecdisNotes",),
            ),
            Gate("Backup ECDIS", FieldRef("ecdisBackupFitted"), fields=("ecdisBackupMakeModel",)),
            Gate("Gyro compass", FieldRef("gyroCompassFitted"), fields=("gyroMakeModel",)),
            Gate("Magnetic compass", FieldRef("magneticCompassFitted"), fields=("magneticMakeModel",)),
            Gate("Autopilot", FieldRef("autopilotFitted"), fields=("autopilotMakeModel",)),
            Gate("Rate of turn indicator", FieldRef("rateOfTurnIndicatorFitted"), fields=("rotMakeModel",)),
            Gate("GPS", FieldRef("gpsFitted"), fields=("gpsMakeModel",)),
            Gate("Speed log", FieldRef("speedLogFitted"), fields=("speedLogType", "speedLogMakeModel")),
            Gate("Echo sounder", FieldRef("echoSounderFitted"), fields=("echoSounderMakeModel",)),
            Gate("VDR", FieldRef("vdrFitted"), fields=("vdrType", "vdrMakeModel")),
            Gate("AIS", FieldRef("aisFitted"), fields=("aisMakeModel",)),
            Gate("BNWAS", FieldRef("bnwmsFitted"), fields=("bnwmsMakeModel",)),
        ),
        optional_fields=("bridgeNotes",),
    ),
    SectionKey.CARGO_CAPABILITIES: SectionSchema(
        key=SectionKey.CARGO_CAPABILITIES,
        feature_gates=(STRIPPING_PUMP_GATE, CARGO_PUMPS_GATE),
    ),
    SectionKey.LIFE_SAVING_APPLIANCES: SectionSchema(
        key=SectionKey.LIFE_SAVING_APPLIANCES,
        # Both raft spellings exist in stored records.
        primary_equipment=(
            "lifeboatsAvailable",
            "liferaftsAvailable",
            "lifeRaftsAvailable",
            "lifeJacketsAvailable",
        ),
    ),
    SectionKey.FIRE_FIGHTING_APPLIANCES: SectionSchema(
        key=SectionKey.FIRE_FIGHTING_APPLIANCES,
        primary_equipment=("engineRoomFixedAvailable", "portableExtinguishersAvailable"),
    ),
    SectionKey.POLLUTION_PREVENTION: SectionSchema(
        key=SectionKey.POLLUTION_PREVENTION,
        mandatory_answers={
            "Annex I (Oil Pollution)": (
                "annex1_owsFitted",
                "annex1_bilgeSludgeTanksPresent",
                "annex1_oilRecordBookPartI",
            ),
            ANNEX_II_LABEL: (
                "annex2_paManualOnboard",
                "annex2_cargoRecordBookOnboard",
                "annex2_prewashSupported",
                "annex2_nlsDischargeAwareness",
            ),
            "Annex III (IMDG / Dangerous Goods)": (
                "annex3_imdgDocsOnboard",
                "annex3_cargoSecuringPlanAvailable",
                "annex3_dgManifestProcedureUsed",
            ),
            "Annex IV (Sewage)": (
                "annex4_stpFitted",
                "annex4_holdingTankAvailable",
                "annex4_dischargeProcedureKnown",
            ),
            "Annex V (Garbage)": (
                "annex5_garbageManagementPlanOnboard",
                "annex5_garbageRecordBookOnboard",
                "annex5_segregationProcedureFollowed",
            ),
            "Annex VI (Air Pollution)": (
                "annex6_iappCertificateOnboard",
                "annex6_fuelChangeoverProcedure",
                "annex6_odsRecordMaintained",
            ),
        },
    ),
    SectionKey.INERT_GAS_SYSTEM: SectionSchema(
        key=SectionKey.INERT_GAS_SYSTEM,
        core_fields=(
            "igsSourceType",
            "scrubberAvailable",
            "blowerAvailable",
            "deckSealAvailable",
            "oxygenAnalyzerAvailable",
            "igPressureAlarmAvailable",
        ),
        conditional_fields=(
            ConditionalField("blowerCount", FieldRef("blowerAvailable")),
            ConditionalField("deckSealType", FieldRef("deckSealAvailable")),
        ),
    ),
}


def get_section_schema(key: SectionKey) -> SectionSchema:
    return SECTION_SCHEMAS.get(key) or SectionSchema(key=key)
