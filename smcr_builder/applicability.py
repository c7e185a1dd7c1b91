"""
Applicability rules: which prescribed responsibilities and senior manager
roles are visible to a given firm profile.

Category matching is cumulative, not exact:
- "all"      matches every category
- "enhanced" matches only enhanced firms
- "core"     matches core and enhanced firms (enhanced inherits core)
- "limited"  matches only limited scope firms
"""

from smcr_builder.smcr_catalog import (
    FIRM_TYPES,
    PAYMENTS_CATEGORIES,
    PRESCRIBED_RESPONSIBILITIES,
    SMCR_CATEGORIES,
    SMF_RESPONSIBILITY_MAP,
    SMF_ROLES,
)

_SMCR_CATEGORY_KEYS = {c["key"] for c in SMCR_CATEGORIES}
_PAYMENTS_CATEGORY_KEYS = {c["key"] for c in PAYMENTS_CATEGORIES}

# entry tag -> firm categories it applies to
_CATEGORY_MATCHES = {
    "enhanced": {"enhanced"},
    "core": {"core", "enhanced"},
    "limited": {"limited"},
}


def firm_regime(firm_type):
    """Return "SMCR", "PSD" or None for an unknown firm type."""
    firm = FIRM_TYPES.get(firm_type)
    return firm["regime"] if firm else None


def normalize_category(category):
    if not category or not isinstance(category, str):
        return ""
    return category.strip().lower()


def category_matches(entry_cat, category):
    if entry_cat == "all":
        return True
    return normalize_category(category) in _CATEGORY_MATCHES.get(entry_cat, set())


def _resolve_category(firm_type, category):
    """Normalise the firm's category, or return None when the combination is unknown."""
    regime = firm_regime(firm_type)
    cat = normalize_category(category)
    if regime == "SMCR":
        return cat if cat in _SMCR_CATEGORY_KEYS else None
    if regime == "PSD":
        # Payments schemes do not tier obligations; blank is allowed
        return cat if (not cat or cat in _PAYMENTS_CATEGORY_KEYS) else None
    return None


def _is_applicable(entry, firm_type, category):
    if firm_type not in entry["firm_types"]:
        return False
    return category_matches(entry["cat"], category)


def applicable_responsibilities(firm_type, category, is_cass_firm=False):
    """
    Filter the catalog down to the responsibilities that apply to a firm.

    Unknown firm types or categories resolve to an empty list.
    """
    cat = _resolve_category(firm_type, category)
    if cat is None:
        return []
    out = []
    for r in PRESCRIBED_RESPONSIBILITIES:
        if r.get("cass_only") and not is_cass_firm:
            continue
        if _is_applicable(r, firm_type, cat):
            out.append(r)
    return out


def applicable_roles(firm_type, category):
    cat = _resolve_category(firm_type, category)
    if cat is None:
        return []
    return [role for role in SMF_ROLES if _is_applicable(role, firm_type, cat)]


def applicable_for_profile(firm_profile):
    """Applicable responsibilities for a firm profile dict (camelCase keys)."""
    firm_profile = firm_profile or {}
    return applicable_responsibilities(
        firm_profile.get("firmType"),
        firm_profile.get("smcrCategory"),
        bool(firm_profile.get("isCASSFirm")),
    )


def orphaned_selections(firm_profile, responsibility_assignments):
    """
    Selected responsibility refs that no longer apply under the current profile.

    These stay in storage; callers surface them so the user can clear them.
    """
    applicable_refs = {r["ref"] for r in applicable_for_profile(firm_profile)}
    return [
        ref for ref, selected in (responsibility_assignments or {}).items()
        if selected and ref not in applicable_refs
    ]


def suggested_responsibilities_for_role(role_ref):
    return list(SMF_RESPONSIBILITY_MAP.get(role_ref, []))
