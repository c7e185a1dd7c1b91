"""
Prioritised next actions for a draft.

Each action is {id, severity, title, detail, ctaStep}; blockers come first,
then warnings, then info.
"""

from smcr_builder.applicability import applicable_for_profile, firm_regime
from smcr_builder.smcr_catalog import count_fit_questions
from smcr_builder.suggestions import build_suggested_responsibility_ref_set

SEVERITY_ORDER = {"blocker": 0, "warning": 1, "info": 2}


def pluralize(count, singular, plural=None):
    if count == 1:
        return singular
    return plural or f"{singular}s"


def _has_text(value):
    return isinstance(value, str) and value.strip() != ""


def _action(action_id, severity, title, detail, cta_step):
    return {
        "id": action_id,
        "severity": severity,
        "title": title,
        "detail": detail,
        "ctaStep": cta_step,
    }


def _responsibility_actions(regime, applicable, individuals, assignments, owners, evidence):
    actions = []

    def label(ref):
        return ref if regime == "PSD" else f"PR {ref}"

    applicable_refs = [r["ref"] for r in applicable]
    applicable_set = set(applicable_refs)
    selected = [ref for ref in applicable_refs if assignments.get(ref)]
    missing_owners = [ref for ref in selected if not owners.get(ref)]

    if not selected:
        actions.append(_action(
            "select-responsibilities", "blocker", "Select responsibilities",
            "Select at least one responsibility to begin ownership mapping.",
            "responsibilities",
        ))
    elif missing_owners and individuals:
        n = len(missing_owners)
        actions.append(_action(
            "assign-owners", "blocker", "Assign responsibility owners",
            f"{n} selected {pluralize(n, 'responsibility', 'responsibilities')} still need an owner.",
            "responsibilities",
        ))

    orphaned = [ref for ref, on in assignments.items() if on and ref not in applicable_set]
    if orphaned:
        n = len(orphaned)
        actions.append(_action(
            "orphaned", "warning", "Clean up non-applicable responsibilities",
            f"{n} selected {pluralize(n, 'responsibility', 'responsibilities')} "
            f"no longer match the current firm profile.",
            "responsibilities",
        ))

    missing_optional = [r for r in applicable if not r["mandatory"] and not assignments.get(r["ref"])]
    if missing_optional:
        suggested = build_suggested_responsibility_ref_set(individuals)
        recommended = [r for r in missing_optional if r["ref"] in suggested]
        highlight = " | ".join(
            f"{label(r['ref'])}: {r['text'].strip()}"
            for r in (recommended or missing_optional)[:2]
        )
        n = len(missing_optional)
        prefix = f"{n} optional {pluralize(n, 'responsibility', 'responsibilities')} are not selected."
        if recommended:
            detail = f"{prefix} Suggested based on selected roles: {highlight}."
        else:
            detail = f"{prefix} Consider: {highlight}."
        actions.append(_action("optional-coverage", "info", "Optional coverage", detail, "responsibilities"))

    mandatory_refs = {r["ref"] for r in applicable if r["mandatory"]}
    missing_mandatory_evidence = [
        r["ref"] for r in applicable
        if r["mandatory"] and assignments.get(r["ref"]) and not _has_text(evidence.get(r["ref"]))
    ]
    if missing_mandatory_evidence:
        n = len(missing_mandatory_evidence)
        listed = ", ".join(label(ref) for ref in missing_mandatory_evidence[:3])
        if n > 3:
            listed += ", ..."
        actions.append(_action(
            "evidence-mandatory", "warning", "Add evidence for mandatory responsibilities",
            f"{n} mandatory {pluralize(n, 'responsibility', 'responsibilities')} "
            f"have no evidence reference yet ({listed}).",
            "responsibilities",
        ))

    missing_assigned_evidence = [
        ref for ref in selected
        if owners.get(ref) and ref not in mandatory_refs and not _has_text(evidence.get(ref))
    ]
    if missing_assigned_evidence:
        n = len(missing_assigned_evidence)
        actions.append(_action(
            "evidence-assigned", "info", "Capture evidence for assigned responsibilities",
            f"{n} assigned {pluralize(n, 'responsibility', 'responsibilities')} "
            f"are missing evidence links/references.",
            "responsibilities",
        ))

    return actions


def _fitness_actions(individuals, fitness_responses):
    actions = []
    answered = [r for r in fitness_responses if _has_text(r.get("response"))]
    per_individual = count_fit_questions()

    if individuals and per_individual:
        expected = len(individuals) * per_individual
        outstanding = max(0, expected - len(answered))
        people = f"{len(individuals)} {pluralize(len(individuals), 'individual')}"
        if not answered:
            actions.append(_action(
                "fit-start", "blocker", "Start FIT assessments",
                f"Complete FIT 2.1 to 2.3 for {people}.", "fitness",
            ))
        elif outstanding:
            actions.append(_action(
                "fit-complete", "blocker", "Complete FIT assessments",
                f"{outstanding} FIT {pluralize(outstanding, 'question')} remaining across {people}.",
                "fitness",
            ))

    if answered:
        missing = [r for r in answered if not _has_text(r.get("evidence"))]
        missing_yes = [r for r in missing if r.get("response") == "yes"]
        if missing_yes:
            n = len(missing_yes)
            actions.append(_action(
                "fit-evidence-yes", "warning", "Add evidence for FIT 'yes' answers",
                f'{n} FIT {pluralize(n, "answer")} marked "yes" are missing an evidence link/reference.',
                "fitness",
            ))
        elif missing:
            n = len(missing)
            actions.append(_action(
                "fit-evidence", "info", "Add evidence for FIT responses",
                f"{n} FIT {pluralize(n, 'answer')} are missing an evidence link/reference.",
                "fitness",
            ))

    return actions


def build_next_actions(firm_profile, individuals, responsibility_assignments,
                       responsibility_owners, responsibility_evidence=None, fitness_responses=None):
    """Build the ordered to-do list shown beside the wizard."""
    firm_profile = firm_profile or {}
    individuals = individuals or []
    assignments = responsibility_assignments or {}
    owners = responsibility_owners or {}
    evidence = responsibility_evidence or {}
    fitness_responses = fitness_responses or []

    actions = []
    if not (firm_profile.get("firmName") or "").strip():
        actions.append(_action(
            "firm-name", "blocker", "Add firm name",
            "Set a firm name so exports and board packs are clearly labeled.", "firm",
        ))

    firm_type = firm_profile.get("firmType")
    if not firm_type:
        actions.append(_action(
            "firm-type", "blocker", "Select firm type",
            "Choose your regulatory perimeter so the builder can load the right responsibilities.",
            "firm",
        ))
        return actions

    regime = firm_regime(firm_type)
    category = firm_profile.get("smcrCategory")

    if regime == "SMCR" and not category:
        actions.append(_action(
            "smcr-category", "blocker", "Select SMCR category",
            "Choose Limited/Core/Enhanced to determine your applicable responsibilities and roles.",
            "firm",
        ))
    if regime == "PSD" and not category:
        actions.append(_action(
            "payments-category", "warning", "Select Payments category",
            "Set SPI/API/AISP/EMI/SEMI for reporting clarity and consistent drafts.",
            "firm",
        ))

    if not individuals:
        actions.append(_action(
            "individuals", "blocker", "Add individuals",
            "Add at least one individual so responsibilities can be owned.",
            "responsibilities",
        ))

    applicable = applicable_for_profile(firm_profile) if (regime == "PSD" or category) else []
    if applicable:
        actions.extend(_responsibility_actions(regime, applicable, individuals, assignments, owners, evidence))

    actions.extend(_fitness_actions(individuals, fitness_responses))

    # sort is stable, so insertion order holds within a severity
    actions.sort(key=lambda a: SEVERITY_ORDER[a["severity"]])
    return actions
