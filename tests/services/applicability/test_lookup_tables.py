"""
Lookup Table Tests
==================

Tests for the versioned sector, jurisdiction, role and threshold tables.

Version: 0.1.0
"""

import json

import pytest
from pydantic import ValidationError

from services.applicability.errors import LookupTableError
from services.applicability.tables import (
    DEFAULT_TABLES_PATH,
    LookupTables,
    SizeThresholdRule,
    family_base,
    load_lookup_tables,
)
from shared.models.regulation import GeoExtent


@pytest.fixture
def raw_tables() -> dict:
    """Bundled tables as plain JSON."""
    return json.loads(DEFAULT_TABLES_PATH.read_text(encoding="utf-8"))


class TestLoading:
    """Tests for loading and validation."""

    def test_bundled_tables_load(self, tables):
        assert tables.version == "2025.07.1"
        assert "construction" in tables.sector_families

    def test_loaded_once(self):
        assert load_lookup_tables() is load_lookup_tables()

    def test_missing_file(self, tmp_path):
        with pytest.raises(LookupTableError):
            load_lookup_tables(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "tables.json"
        path.write_text("{not json")
        with pytest.raises(LookupTableError):
            load_lookup_tables(path)

    def test_unknown_jurisdiction_rejected(self, tmp_path, raw_tables):
        raw_tables["jurisdiction_containment"]["Atlantis"] = ["United Kingdom"]
        path = tmp_path / "tables.json"
        path.write_text(json.dumps(raw_tables))
        with pytest.raises(LookupTableError):
            load_lookup_tables(path)

    def test_sic_division_to_unknown_sector_rejected(self, raw_tables):
        raw_tables["sic_divisions"]["99"] = "space_tourism"
        with pytest.raises(ValueError):
            LookupTables.model_validate(raw_tables)

    def test_threshold_rule_needs_threshold(self):
        with pytest.raises(ValueError):
            SizeThresholdRule(name="empty", keywords=("anything",))

    def test_tables_immutable(self, tables):
        with pytest.raises(ValidationError):
            tables.version = "other"


class TestSectorMapping:
    """Tests for sector to family lookups."""

    def test_industry_sector(self, tables, make_profile):
        assert tables.families_for(make_profile()) == frozenset({"CONSTRUCTION"})

    def test_sic_code(self, tables, make_profile):
        profile = make_profile(industry_sector=None, sector_code="86.10")
        assert tables.sectors_for(profile) == frozenset({"healthcare"})

    def test_unmapped(self, tables, make_profile):
        profile = make_profile(industry_sector="space_tourism", sector_code="99000")
        assert tables.families_for(profile) == frozenset()

    def test_group_of_sub_family(self, tables):
        assert tables.group_of("OH&S: DANGEROUS AND EXPLOSIVE SUBSTANCES") == "HEALTH AND SAFETY"

    def test_group_of_unknown_family_is_its_base(self, tables):
        assert tables.group_of("MARINE: PORTS") == "MARINE"

    def test_family_base(self):
        assert family_base("OH&S: FIRE") == "OH&S"
        assert family_base("FIRE") == "FIRE"


class TestJurisdictions:
    """Tests for jurisdiction containment."""

    def test_components(self, tables):
        assert tables.components(GeoExtent.GREAT_BRITAIN) == frozenset(
            {GeoExtent.ENGLAND, GeoExtent.WALES, GeoExtent.SCOTLAND}
        )
        assert tables.components(GeoExtent.ENGLAND) == frozenset({GeoExtent.ENGLAND})

    @pytest.mark.parametrize(
        ("outer", "inner", "expected"),
        [
            (GeoExtent.ENGLAND_AND_WALES, GeoExtent.ENGLAND, True),
            (GeoExtent.UNITED_KINGDOM, GeoExtent.NORTHERN_IRELAND, True),
            (GeoExtent.GREAT_BRITAIN, GeoExtent.NORTHERN_IRELAND, False),
            (GeoExtent.ENGLAND, GeoExtent.ENGLAND_AND_WALES, False),
        ],
    )
    def test_contains(self, tables, outer, inner, expected):
        assert tables.contains(outer, inner) is expected

    def test_overlaps(self, tables):
        assert tables.overlaps(GeoExtent.WALES, frozenset({GeoExtent.GREAT_BRITAIN}))
        assert not tables.overlaps(GeoExtent.SCOTLAND, frozenset({GeoExtent.ENGLAND_AND_WALES}))


class TestRoleHierarchy:
    """Tests for role generalization."""

    def test_transitive_closure(self, tables):
        """Facilities Manager -> Occupier -> Person in Control."""
        assert tables.generalizations("Facilities Manager") == frozenset(
            {"manager", "person in control", "occupier"}
        )

    def test_unknown_role(self, tables):
        assert tables.generalizations("Astronaut") == frozenset()

    def test_cycle_safe(self, raw_tables):
        raw_tables["role_hierarchy"] = {"A": ["B"], "B": ["C"], "C": ["A"]}
        tables = LookupTables.model_validate(raw_tables)
        assert tables.generalizations("A") == frozenset({"b", "c"})


class TestThresholdRules:
    """Tests for threshold rule matching."""

    def test_family_scoped_rule(self, tables, make_record):
        record = make_record(family="EMPLOYMENT", title="Gender Pay Gap Information Regulations")
        assert [r.name for r in tables.threshold_rules_for(record)] == ["gender_pay_gap"]

    def test_family_mismatch(self, tables, make_record):
        record = make_record(family="CONSTRUCTION", title="Gender Pay Gap Information Regulations")
        assert tables.threshold_rules_for(record) == []

    def test_unscoped_rule(self, tables, make_record):
        record = make_record(family="FOOD", description="Transparency in supply chains: modern slavery.")
        assert [r.name for r in tables.threshold_rules_for(record)] == ["modern_slavery_statement"]
