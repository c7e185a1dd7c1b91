"""
Identity reconciliation for draft saves.

The wizard works with client-local individual ids ("temp-1", or a durable id
it loaded earlier). On every save those ids are mapped to durable ids:
- an id that already exists for the firm is kept as-is
- anything else gets a freshly minted UUID

Every record that points at an individual (responsibility owners, fitness
response keys, reporting lines) is rewritten through the same map before the
draft is persisted, so nothing is left referencing a stale id.
"""

import logging
import uuid

from smcr_builder.fitness_keys import FitnessKeyError, decode_fitness_key, encode_fitness_key
from smcr_builder.smcr_catalog import get_responsibility_by_ref
from smcr_builder.validation import DraftValidationError, validate_draft_payload

logger = logging.getLogger(__name__)


def _mint_id(taken):
    while True:
        new_id = str(uuid.uuid4())
        if new_id not in taken:
            return new_id


def _clean_str(value):
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def normalize_individual(raw):
    """Coerce a submitted individual into the canonical shape."""
    roles = raw.get("smfRoles")
    if roles is None and raw.get("smfRole"):
        # older clients sent a single role string
        roles = [raw["smfRole"]]
    if isinstance(roles, str):
        roles = [roles]
    roles = [r.strip() for r in (roles or []) if isinstance(r, str) and r.strip()]

    return {
        "id": _clean_str(raw.get("id")),
        "name": (raw.get("name") or "").strip(),
        "smfRoles": roles,
        "email": _clean_str(raw.get("email")),
        "roleTitle": _clean_str(raw.get("roleTitle")),
        "department": _clean_str(raw.get("department")),
        "reportsTo": _clean_str(raw.get("reportsTo")),
    }


def build_identity_map(existing_ids, submitted_individuals):
    """
    Map every client-local individual id to a durable id.

    Args:
        existing_ids: durable ids currently persisted for the firm
        submitted_individuals: individuals from the payload, each with an "id"

    Returns:
        dict of {client_id: durable_id}; injective.

    Raises:
        DraftValidationError: missing or duplicate client ids.
    """
    existing = set(existing_ids or [])
    errors = []
    seen = set()
    for idx, ind in enumerate(submitted_individuals):
        client_id = ind.get("id")
        if not client_id:
            errors.append(f"Individual #{idx + 1} has no identifier")
        elif client_id in seen:
            errors.append(f"Duplicate individual identifier: {client_id}")
        else:
            seen.add(client_id)
    if errors:
        raise DraftValidationError(errors)

    id_map = {}
    taken = set(existing)
    for ind in submitted_individuals:
        client_id = ind["id"]
        if client_id in existing:
            id_map[client_id] = client_id
        else:
            id_map[client_id] = _mint_id(taken)
            taken.add(id_map[client_id])
    return id_map


def rewrite_owners(owners, id_map):
    """
    Rewrite responsibility owners through the identity map.

    Returns (owners, cleared_refs); owners whose individual was dropped from
    this edit become unset rather than dangling.
    """
    rewritten = {}
    cleared = []
    for ref, owner_id in (owners or {}).items():
        if not owner_id:
            continue
        durable = id_map.get(owner_id)
        if durable:
            rewritten[ref] = durable
        else:
            cleared.append(ref)
    return rewritten, cleared


def rewrite_fitness_responses(responses, id_map):
    """
    Rewrite the individual segment of each fitness response key.

    Returns (rows, dropped). Rows carry the rewritten composite ``questionId``
    plus the split ``individualId`` / ``sectionId`` / ``question``. Responses
    whose individual has no mapping are dropped and logged.

    Raises:
        DraftValidationError: malformed or duplicate composite keys.
    """
    rows = []
    dropped = []
    errors = []
    seen_keys = set()

    for item in responses or []:
        if not isinstance(item, dict):
            errors.append("Fitness response must be an object")
            continue
        key = item.get("questionId")
        try:
            client_id, section_id, question = decode_fitness_key(key)
        except FitnessKeyError as e:
            errors.append(str(e))
            continue

        if key in seen_keys:
            errors.append(f"Duplicate fitness response: {key}")
            continue
        seen_keys.add(key)

        durable = id_map.get(client_id)
        if not durable:
            logger.warning(f"Dropping fitness response {key}: individual {client_id} is not in this draft")
            dropped.append(key)
            continue

        rows.append({
            "questionId": encode_fitness_key(durable, section_id, question),
            "individualId": durable,
            "sectionId": section_id,
            "question": question,
            "response": item.get("response") if isinstance(item.get("response"), str) else "",
            "details": _clean_str(item.get("details")),
            "date": _clean_str(item.get("date")),
            "evidence": _clean_str(item.get("evidence")),
        })

    if errors:
        raise DraftValidationError(errors)
    return rows, dropped


def selected_refs_from_payload(payload):
    """Selected responsibility refs, from either responsibilityAssignments or responsibilityRefs."""
    assignments = payload.get("responsibilityAssignments")
    if isinstance(assignments, dict):
        return [ref for ref, selected in assignments.items() if selected]
    return [ref for ref in (payload.get("responsibilityRefs") or []) if isinstance(ref, str) and ref]


def normalize_firm_profile(profile, default_jurisdictions=("UK",)):
    jurisdictions = [j for j in (profile.get("jurisdictions") or []) if isinstance(j, str) and j.strip()]
    return {
        "firmName": (profile.get("firmName") or "").strip(),
        "firmType": profile.get("firmType"),
        "smcrCategory": _clean_str(profile.get("smcrCategory")),
        "jurisdictions": jurisdictions or list(default_jurisdictions),
        "isCASSFirm": bool(profile.get("isCASSFirm")),
        "optUp": bool(profile.get("optUp")),
    }


def reconcile_draft(existing_ids, payload, default_jurisdictions=("UK",)):
    """
    Validate a submitted draft and rewrite it onto durable identifiers.

    Nothing is persisted here; the result is handed to the draft store,
    which applies it as a single unit of work.

    Returns dict with:
        - firmProfile: normalised profile
        - individuals: individuals carrying durable ids
        - responsibilities: assignment rows (reference, title, selected, ownerId, evidence)
        - fitnessResponses: rows keyed to durable ids
        - idMap: {client_id: durable_id}
        - warnings: consistency warnings for the user
    """
    validate_draft_payload(payload)

    individuals = [normalize_individual(ind) for ind in payload.get("individuals") or []]
    id_map = build_identity_map(existing_ids, individuals)

    for ind in individuals:
        ind["id"] = id_map[ind["id"]]
    for ind in individuals:
        if ind["reportsTo"]:
            manager = id_map.get(ind["reportsTo"])
            ind["reportsTo"] = manager if manager != ind["id"] else None

    owners, cleared_owners = rewrite_owners(payload.get("responsibilityOwners"), id_map)
    fitness_rows, dropped = rewrite_fitness_responses(payload.get("fitnessResponses"), id_map)

    evidence = {
        ref: text.strip()
        for ref, text in (payload.get("responsibilityEvidence") or {}).items()
        if isinstance(text, str) and text.strip()
    }
    selected = selected_refs_from_payload(payload)

    refs = []
    for ref in list(selected) + list(owners) + list(evidence):
        if ref not in refs:
            refs.append(ref)

    selected_set = set(selected)
    responsibilities = []
    for ref in refs:
        entry = get_responsibility_by_ref(ref)
        responsibilities.append({
            "reference": ref,
            "title": entry["text"] if entry else ref,
            "selected": ref in selected_set,
            "ownerId": owners.get(ref),
            "evidence": evidence.get(ref),
        })

    warnings = []
    if dropped:
        warnings.append({
            "id": "fitness-dropped",
            "detail": f"{len(dropped)} fitness response(s) referenced individuals that are not in this draft and were not saved.",
            "keys": dropped,
        })
    if cleared_owners:
        logger.info(f"Cleared owners for {len(cleared_owners)} responsibilities whose individual was removed")

    return {
        "firmProfile": normalize_firm_profile(payload["firmProfile"], default_jurisdictions),
        "individuals": individuals,
        "responsibilities": responsibilities,
        "fitnessResponses": fitness_rows,
        "idMap": id_map,
        "warnings": warnings,
    }
