"""Tests for ship type normalization and section applicability."""

from __future__ import annotations

import pytest

from seaservice_app.config.sections import SECTION_DEFINITIONS, SectionKey
from seaservice_app.config.ship_types import (
    applicable_sections,
    canonical_ship_type,
    get_ship_type,
    is_chemical_tanker,
    is_section_applicable,
    is_tanker,
)


class TestCanonicalShipType:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("general cargo", "GENERAL_CARGO"),
            ("Oil-Tanker", "OIL_TANKER"),
            ("  chemical  tanker ", "CHEMICAL_TANKER"),
            ("tanker", "OIL_TANKER"),
            ("Ro-Ro", "RO_RO"),
            ("RORO", "RO_RO"),
            ("lng tanker", "GAS_TANKER"),
            ("AHTS", "AHTS"),
            ("dredger", "DREDGER"),
        ],
    )
    def test_normalizes(self, raw, expected):
        assert canonical_ship_type(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "   "])
    def test_blank_is_none(self, raw):
        assert canonical_ship_type(raw) is None

    def test_lookup(self):
        assert get_ship_type("bulk carrier").label == "Bulk Carrier"
        assert get_ship_type("dredger") is None


class TestTankers:
    @pytest.mark.parametrize("code", ["OIL_TANKER", "CHEMICAL_TANKER", "GAS_TANKER", "product tanker", "BITUMEN_TANKER"])
    def test_tankers(self, code):
        assert is_tanker(code)

    @pytest.mark.parametrize("code", ["GENERAL_CARGO", "CONTAINER", "AHTS", "dredger", None])
    def test_non_tankers(self, code):
        assert not is_tanker(code)

    def test_chemical(self):
        assert is_chemical_tanker("chemical-tanker")
        assert not is_chemical_tanker("OIL_TANKER")


class TestApplicability:
    def test_igs_only_for_tankers(self):
        assert SectionKey.INERT_GAS_SYSTEM not in applicable_sections("GENERAL_CARGO")
        assert SectionKey.INERT_GAS_SYSTEM in applicable_sections("OIL_TANKER")
        assert SectionKey.INERT_GAS_SYSTEM not in applicable_sections(None)

    def test_other_sections_always_apply(self):
        for definition in SECTION_DEFINITIONS:
            if definition.key == SectionKey.INERT_GAS_SYSTEM:
                continue
            for code in ("GENERAL_CARGO", "OIL_TANKER", "AHTS", "unknown", None):
                assert is_section_applicable(definition.key, code)

    def test_section_order_fixed(self):
        assert [d.key for d in SECTION_DEFINITIONS] == list(SectionKey)
        assert len(SECTION_DEFINITIONS) == 11
        assert SECTION_DEFINITIONS[0].key == SectionKey.GENERAL_IDENTITY
        assert SECTION_DEFINITIONS[-1].key == SectionKey.INERT_GAS_SYSTEM
        assert all(d.finalize_required for d in SECTION_DEFINITIONS)
