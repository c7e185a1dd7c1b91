"""
Tests for the applicability resolver: cumulative category matching, CASS
gating, payments categories and orphan detection.
"""
import pytest

from smcr_builder.applicability import (
    applicable_for_profile,
    applicable_responsibilities,
    applicable_roles,
    category_matches,
    firm_regime,
    orphaned_selections,
    suggested_responsibilities_for_role,
)
from smcr_builder.smcr_catalog import PRESCRIBED_RESPONSIBILITIES, SMCR_FIRM_TYPES


def refs(entries):
    return {e["ref"] for e in entries}


# =============================================================================
# Category matching
# =============================================================================

class TestCategoryMatching:

    @pytest.mark.parametrize("entry_cat,category,expected", [
        ("all", "limited", True),
        ("all", "enhanced", True),
        ("core", "core", True),
        ("core", "enhanced", True),
        ("core", "limited", False),
        ("enhanced", "enhanced", True),
        ("enhanced", "core", False),
        ("limited", "limited", True),
        ("limited", "core", False),
        ("limited", "enhanced", False),
    ])
    def test_cumulative_matching(self, entry_cat, category, expected):
        assert category_matches(entry_cat, category) is expected

    def test_category_is_case_insensitive(self):
        assert category_matches("core", " Enhanced ")

    @pytest.mark.parametrize("firm_type", SMCR_FIRM_TYPES)
    def test_core_inherited_by_enhanced_but_not_reverse(self, firm_type):
        core = refs(applicable_responsibilities(firm_type, "core", True))
        enhanced = refs(applicable_responsibilities(firm_type, "enhanced", True))
        catalog = {r["ref"]: r for r in PRESCRIBED_RESPONSIBILITIES}

        for ref in core:
            if catalog[ref]["cat"] == "core":
                assert ref in enhanced
        for ref in enhanced:
            if catalog[ref]["cat"] == "enhanced":
                assert ref not in core

    def test_limited_scope_is_disjoint(self):
        limited = refs(applicable_responsibilities("Investment", "limited"))
        assert limited == {"A", "B", "L"}


# =============================================================================
# Resolver
# =============================================================================

class TestApplicableResponsibilities:

    def test_enhanced_bank_with_cass(self):
        result = refs(applicable_responsibilities("Bank", "enhanced", True))
        assert {"A", "B", "B1", "C", "D", "E", "K", "O1", "O2"} <= result
        assert "L" not in result
        assert "Z" not in result

    def test_cass_only_requires_flag(self):
        assert "E" not in refs(applicable_responsibilities("Investment", "core", False))
        assert "E" in refs(applicable_responsibilities("Investment", "core", True))

    def test_firm_type_must_be_listed(self):
        # CASS responsibility is not listed for insurers
        assert "E" not in refs(applicable_responsibilities("Insurance", "core", True))
        assert "Z" in refs(applicable_responsibilities("Investment", "core"))
        assert "Z" not in refs(applicable_responsibilities("Bank", "core"))

    def test_payments_blank_category(self):
        assert refs(applicable_responsibilities("Payments", "")) == {"P1", "P2", "P3", "P4", "P5", "P6"}

    def test_payments_scheme_category(self):
        assert refs(applicable_responsibilities("Payments", "EMI")) == {"P1", "P2", "P3", "P4", "P5", "P6"}

    @pytest.mark.parametrize("firm_type,category", [
        ("Crypto", "core"),
        (None, "core"),
        ("Bank", "platinum"),
        ("Bank", ""),
        ("Bank", None),
        ("Payments", "enhanced"),
    ])
    def test_unknown_profile_is_empty(self, firm_type, category):
        assert applicable_responsibilities(firm_type, category) == []
        assert applicable_roles(firm_type, category) == []

    def test_preserves_catalog_order(self):
        result = [r["ref"] for r in applicable_responsibilities("Bank", "enhanced", True)]
        catalog_order = [r["ref"] for r in PRESCRIBED_RESPONSIBILITIES if r["ref"] in result]
        assert result == catalog_order


class TestApplicableRoles:

    def test_core_firm_roles(self):
        roles = refs(applicable_roles("Investment", "core"))
        assert {"SMF1", "SMF3", "SMF9", "SMF16", "SMF17", "SMF27"} == roles

    def test_enhanced_bank_roles_include_core(self):
        roles = refs(applicable_roles("Bank", "enhanced"))
        assert {"SMF1", "SMF2", "SMF4", "SMF24"} <= roles
        assert "SMF29" not in roles
        assert "SMF27" not in roles

    def test_payments_roles(self):
        roles = refs(applicable_roles("Payments", "spi"))
        assert all(r.startswith("PSD-") for r in roles)
        assert len(roles) == 6


# =============================================================================
# Profile helpers
# =============================================================================

class TestProfileHelpers:

    def test_firm_regime(self):
        assert firm_regime("Bank") == "SMCR"
        assert firm_regime("Payments") == "PSD"
        assert firm_regime("Unknown") is None

    def test_applicable_for_profile(self):
        profile = {"firmType": "Investment", "smcrCategory": "core", "isCASSFirm": True}
        assert "E" in refs(applicable_for_profile(profile))

    def test_orphaned_selections_after_downgrade(self):
        profile = {"firmType": "Bank", "smcrCategory": "core"}
        assignments = {"A": True, "C": True, "K": True, "O2": False}
        assert sorted(orphaned_selections(profile, assignments)) == ["C", "K"]

    def test_orphaned_selections_after_firm_type_change(self):
        profile = {"firmType": "Payments", "smcrCategory": "api"}
        assert orphaned_selections(profile, {"A": True, "P1": True}) == ["A"]

    def test_suggested_responsibilities_for_role(self):
        assert suggested_responsibilities_for_role("SMF16") == ["B", "B1", "E", "L"]
        assert suggested_responsibilities_for_role("SMF99") == []
