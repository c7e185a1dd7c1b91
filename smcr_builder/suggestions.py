"""
Owner suggestions for selected responsibilities, based on the SMF / PSD
roles each individual holds.
"""

from smcr_builder.smcr_catalog import get_role_by_ref
from smcr_builder.applicability import suggested_responsibilities_for_role


def extract_role_ref(raw):
    # Roles are stored either as "SMF1" or "SMF1 - Chief Executive"
    trimmed = (raw or "").strip()
    if not trimmed:
        return trimmed
    return trimmed.split(" - ")[0].strip()


def _role_refs(individual):
    return [extract_role_ref(r) for r in individual.get("smfRoles") or [] if extract_role_ref(r)]


def build_suggested_responsibility_ref_set(individuals):
    """Every responsibility ref suggested by any role held across the individuals."""
    refs = set()
    for ind in individuals or []:
        for role_ref in _role_refs(ind):
            refs.update(suggested_responsibilities_for_role(role_ref))
    return refs


def _format_reason(role_ref):
    role = get_role_by_ref(role_ref)
    return f"{role_ref} ({role['label']})" if role else role_ref


def build_owner_suggestions(assigned_responsibilities, individuals, responsibility_owners):
    """
    Suggest an owner for every selected responsibility that has none.

    Candidates hold at least one role that maps to the responsibility. The
    best candidate has the most matching roles, then the fewest responsibilities
    already owned, then sorts first by name.

    Args:
        assigned_responsibilities: list of catalog entries (ref, text, mandatory)
        individuals: list of individual dicts (id, name, smfRoles)
        responsibility_owners: dict of {ref: individual_id}

    Returns:
        list of dicts with ref, title, mandatory, suggestedOwnerId,
        suggestedOwnerName and reasons.
    """
    owners = responsibility_owners or {}
    if not assigned_responsibilities or not individuals:
        return []

    load = {}
    for owner_id in owners.values():
        if owner_id:
            load[owner_id] = load.get(owner_id, 0) + 1

    suggestions = []
    for resp in assigned_responsibilities:
        if owners.get(resp["ref"]):
            continue

        candidates = []
        for ind in individuals:
            matched = [
                role_ref for role_ref in _role_refs(ind)
                if resp["ref"] in suggested_responsibilities_for_role(role_ref)
            ]
            if matched:
                candidates.append((ind, matched))
        if not candidates:
            continue

        candidates.sort(key=lambda c: (-len(c[1]), load.get(c[0]["id"], 0), c[0].get("name") or ""))
        best, matched = candidates[0]
        suggestions.append({
            "ref": resp["ref"],
            "title": resp["text"],
            "mandatory": resp["mandatory"],
            "suggestedOwnerId": best["id"],
            "suggestedOwnerName": best.get("name") or "",
            "reasons": [_format_reason(r) for r in matched],
        })

    return suggestions
