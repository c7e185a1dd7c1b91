"""
Wizard state as a plain dict with pure reducer functions.

Every reducer takes a state and returns a new state; the input is never
mutated. Step statuses are recomputed after each change.
"""

import copy

from smcr_builder.applicability import applicable_for_profile, orphaned_selections
from smcr_builder.board_readiness import round_half_up
from smcr_builder.fitness_keys import try_decode_fitness_key
from smcr_builder.smcr_catalog import JOURNEY_STEPS, PRESCRIBED_RESPONSIBILITIES
from smcr_builder.validation import get_step_status, get_step_validation

STEP_IDS = [s["id"] for s in JOURNEY_STEPS]


def _default_assignments():
    return {r["ref"]: False for r in PRESCRIBED_RESPONSIBILITIES}


def initial_state(default_jurisdictions=("UK",)):
    state = {
        "activeStep": "firm",
        "steps": [dict(step, status="pending") for step in JOURNEY_STEPS],
        "firmProfile": {"jurisdictions": list(default_jurisdictions)},
        "responsibilityAssignments": _default_assignments(),
        "responsibilityOwners": {},
        "responsibilityEvidence": {},
        "individuals": [],
        "fitnessResponses": [],
        "draftId": None,
    }
    return _refresh(state)


def _evolve(state, **changes):
    new_state = copy.deepcopy(state)
    new_state.update(copy.deepcopy(changes))
    return _refresh(new_state)


def step_statuses(state):
    """{step_id: "active" | "done" | "partial" | "pending"} for the current state."""
    statuses = {}
    for step_id in STEP_IDS:
        validation = get_step_validation(step_id, state)
        statuses[step_id] = get_step_status(step_id, state["activeStep"], validation)
    return statuses


def _refresh(state):
    statuses = step_statuses(state)
    state["steps"] = [dict(step, status=statuses[step["id"]]) for step in state["steps"]]
    return state


def set_active_step(state, step_id):
    if step_id not in STEP_IDS:
        raise ValueError(f"Unknown step: {step_id}")
    return _evolve(state, activeStep=step_id)


def update_firm_profile(state, **updates):
    profile = dict(state["firmProfile"])
    profile.update(updates)
    return _evolve(state, firmProfile=profile)


def set_responsibility_assignment(state, ref, selected):
    assignments = dict(state["responsibilityAssignments"])
    assignments[ref] = bool(selected)
    return _evolve(state, responsibilityAssignments=assignments)


def set_responsibility_owner(state, ref, individual_id):
    owners = dict(state["responsibilityOwners"])
    if individual_id:
        owners[ref] = individual_id
    else:
        owners.pop(ref, None)
    return _evolve(state, responsibilityOwners=owners)


def set_responsibility_evidence(state, ref, text):
    evidence = dict(state["responsibilityEvidence"])
    if text and text.strip():
        evidence[ref] = text
    else:
        evidence.pop(ref, None)
    return _evolve(state, responsibilityEvidence=evidence)


def add_individual(state, individual):
    return _evolve(state, individuals=state["individuals"] + [dict(individual)])


def update_individual(state, individual_id, **updates):
    individuals = [
        dict(ind, **updates) if ind["id"] == individual_id else ind
        for ind in state["individuals"]
    ]
    return _evolve(state, individuals=individuals)


def remove_individual(state, individual_id):
    """Remove an individual together with the ownerships and answers that point at them."""
    individuals = [
        dict(ind, reportsTo=None) if ind.get("reportsTo") == individual_id else ind
        for ind in state["individuals"]
        if ind["id"] != individual_id
    ]
    owners = {
        ref: owner for ref, owner in state["responsibilityOwners"].items()
        if owner != individual_id
    }
    fitness = []
    for r in state["fitnessResponses"]:
        decoded = try_decode_fitness_key(r.get("questionId"))
        if decoded and decoded[0] == individual_id:
            continue
        fitness.append(r)
    return _evolve(state, individuals=individuals, responsibilityOwners=owners, fitnessResponses=fitness)


def set_fitness_response(state, response):
    """Insert or replace the response with the same section and composite key."""
    responses = list(state["fitnessResponses"])
    for idx, existing in enumerate(responses):
        if (existing.get("sectionId") == response.get("sectionId")
                and existing.get("questionId") == response.get("questionId")):
            responses[idx] = dict(response)
            break
    else:
        responses.append(dict(response))
    return _evolve(state, fitnessResponses=responses)


def remove_fitness_response(state, section_id, question_id):
    responses = [
        r for r in state["fitnessResponses"]
        if r.get("sectionId") != section_id or r.get("questionId") != question_id
    ]
    return _evolve(state, fitnessResponses=responses)


def clear_orphaned_selections(state):
    """Deselect refs that do not apply to the current profile and drop their owners and evidence."""
    orphaned = set(orphaned_selections(state["firmProfile"], state["responsibilityAssignments"]))
    if not orphaned:
        return state
    assignments = {
        ref: (False if ref in orphaned else selected)
        for ref, selected in state["responsibilityAssignments"].items()
    }
    owners = {ref: o for ref, o in state["responsibilityOwners"].items() if ref not in orphaned}
    evidence = {ref: e for ref, e in state["responsibilityEvidence"].items() if ref not in orphaned}
    return _evolve(
        state,
        responsibilityAssignments=assignments,
        responsibilityOwners=owners,
        responsibilityEvidence=evidence,
    )


def load_draft(state, draft):
    """Replace the working data with a draft as returned by the draft store."""
    assignments = _default_assignments()
    assignments.update(draft.get("responsibilityAssignments") or {})
    return _evolve(
        state,
        draftId=draft.get("id"),
        firmProfile=draft.get("firmProfile") or {},
        responsibilityAssignments=assignments,
        responsibilityOwners=draft.get("responsibilityOwners") or {},
        responsibilityEvidence=draft.get("responsibilityEvidence") or {},
        individuals=draft.get("individuals") or [],
        fitnessResponses=draft.get("fitnessResponses") or [],
    )


def to_payload(state):
    """The body a client submits to save this state."""
    return copy.deepcopy({
        "firmProfile": state["firmProfile"],
        "responsibilityAssignments": state["responsibilityAssignments"],
        "responsibilityOwners": state["responsibilityOwners"],
        "responsibilityEvidence": state["responsibilityEvidence"],
        "individuals": state["individuals"],
        "fitnessResponses": state["fitnessResponses"],
    })


def responsibility_coverage(state):
    """Percent of applicable responsibilities selected, rounded half up."""
    profile = state["firmProfile"]
    if profile.get("firmType") and profile.get("smcrCategory"):
        applicable = applicable_for_profile(profile)
    else:
        applicable = PRESCRIBED_RESPONSIBILITIES
    if not applicable:
        return 0
    assignments = state["responsibilityAssignments"]
    complete = sum(1 for r in applicable if assignments.get(r["ref"]))
    return round_half_up(complete / len(applicable) * 100)
