"""
Validation for the governance pack wizard.

Two layers:
- Step validation (firm / responsibilities / fitness / reports): advisory,
  returns errors and warnings used to drive step status and next actions.
- Draft payload validation: blocking, raises DraftValidationError before
  anything is persisted.
"""

from smcr_builder.smcr_catalog import count_fit_questions


class DraftValidationError(ValueError):
    """A submitted draft is invalid. ``errors`` lists every problem found."""

    def __init__(self, errors):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


def _result(is_valid, is_partial, errors, warnings):
    return {
        "isValid": is_valid,
        "isPartial": is_partial,
        "errors": errors,
        "warnings": warnings,
    }


def _answered(response):
    value = (response or {}).get("response")
    return isinstance(value, str) and value.strip() != ""


def validate_firm_profile(profile):
    """Step 01: firm name and firm type required, category recommended."""
    profile = profile or {}
    errors = []
    warnings = []

    firm_name = (profile.get("firmName") or "").strip()
    firm_type = profile.get("firmType")

    if not firm_name:
        errors.append("Firm name is required")
    if not firm_type:
        errors.append("Firm type must be selected")
    if not profile.get("smcrCategory"):
        warnings.append("SMCR category not specified")

    is_valid = not errors
    is_partial = not is_valid and bool(firm_name or firm_type)
    return _result(is_valid, is_partial, errors, warnings)


def validate_responsibilities(assignments, individuals, responsibility_owners=None):
    """Step 02: at least one responsibility selected, every selected one owned."""
    assignments = assignments or {}
    errors = []
    warnings = []

    assigned_refs = [ref for ref, selected in assignments.items() if selected]
    assigned_count = len(assigned_refs)
    total_count = len(assignments)

    if assigned_count == 0:
        errors.append("At least one prescribed responsibility must be selected")
    if not individuals:
        errors.append("Add at least one SMF individual to assign responsibilities")

    if responsibility_owners is not None and individuals:
        owned = sum(1 for ref in assigned_refs if responsibility_owners.get(ref))
        unassigned = assigned_count - owned
        if unassigned > 0:
            plural = "responsibility needs" if unassigned == 1 else "responsibilities need"
            errors.append(f"{unassigned} {plural} an assigned owner")

    is_valid = not errors and assigned_count > 0
    is_partial = 0 < assigned_count < total_count
    return _result(is_valid, is_partial, errors, warnings)


def validate_fitness_assessment(individuals, fitness_responses):
    """Step 03: every individual answers every FIT question."""
    errors = []
    warnings = []

    if not individuals:
        errors.append("Add at least one SMF individual to assess")
        return _result(False, False, errors, warnings)

    fitness_responses = fitness_responses or []
    answered = sum(1 for r in fitness_responses if _answered(r))
    expected = len(individuals) * count_fit_questions()

    if answered == 0:
        errors.append("No fitness assessment responses recorded")
    elif answered < expected:
        errors.append(f"{expected - answered} assessment questions remain incomplete")

    with_evidence = sum(1 for r in fitness_responses if (r.get("evidence") or "").strip())
    if with_evidence == 0 and answered > 0:
        warnings.append("Consider adding evidence links to strengthen your assessment")

    is_valid = not errors and answered >= expected
    is_partial = 0 < answered < expected
    return _result(is_valid, is_partial, errors, warnings)


def validate_reports_readiness(firm_valid, responsibilities_valid, fitness_valid):
    """Step 04: previous steps complete."""
    errors = []
    warnings = []
    if not firm_valid:
        errors.append("Complete firm profile before generating reports")
    if not responsibilities_valid:
        errors.append("Assign all prescribed responsibilities before generating reports")
    if not fitness_valid:
        warnings.append("Fitness assessment incomplete - reports may lack detail")

    return _result(
        firm_valid and responsibilities_valid,
        firm_valid or responsibilities_valid,
        errors,
        warnings,
    )


def get_step_validation(step_id, data):
    """
    Validate a single wizard step.

    Args:
        step_id: "firm", "responsibilities", "fitness" or "reports"
        data: dict with firmProfile, responsibilityAssignments,
            responsibilityOwners, individuals, fitnessResponses
    """
    if step_id == "firm":
        return validate_firm_profile(data.get("firmProfile"))
    if step_id == "responsibilities":
        return validate_responsibilities(
            data.get("responsibilityAssignments"),
            data.get("individuals"),
            data.get("responsibilityOwners"),
        )
    if step_id == "fitness":
        return validate_fitness_assessment(data.get("individuals"), data.get("fitnessResponses"))
    if step_id == "reports":
        firm = get_step_validation("firm", data)
        resp = get_step_validation("responsibilities", data)
        fit = get_step_validation("fitness", data)
        return validate_reports_readiness(firm["isValid"], resp["isValid"], fit["isValid"])
    return _result(False, False, [], [])


def get_step_status(step_id, active_step, validation):
    if step_id == active_step:
        return "active"
    if validation["isValid"]:
        return "done"
    if validation["isPartial"]:
        return "partial"
    return "pending"


def validate_draft_payload(payload):
    """
    Blocking checks on a submitted draft. Raises DraftValidationError.

    Identifier-level checks (duplicate ids, malformed fitness keys) run in
    the reconciliation step, which raises the same error type.
    """
    if not isinstance(payload, dict):
        raise DraftValidationError("Draft payload must be a JSON object")

    errors = []
    profile = payload.get("firmProfile")
    if not isinstance(profile, dict):
        errors.append("firmProfile is required")
    else:
        firm_name = profile.get("firmName")
        if firm_name is not None and not isinstance(firm_name, str):
            errors.append("firmName must be a string")
        elif not (firm_name or "").strip():
            errors.append("firmName is required")
        # Unknown firm types are accepted; they resolve to no applicable entries
        firm_type = profile.get("firmType")
        if firm_type is not None and not isinstance(firm_type, str):
            errors.append("firmType must be a string")
        elif not firm_type:
            errors.append("firmType is required")
        category = profile.get("smcrCategory")
        if category is not None and not isinstance(category, str):
            errors.append("smcrCategory must be a string")
        jurisdictions = profile.get("jurisdictions")
        if jurisdictions is not None and not isinstance(jurisdictions, list):
            errors.append("jurisdictions must be a list")

    individuals = payload.get("individuals") or []
    if not isinstance(individuals, list):
        errors.append("individuals must be a list")
    else:
        for idx, ind in enumerate(individuals):
            if not isinstance(ind, dict):
                continue
            name = ind.get("name")
            if name is not None and not isinstance(name, str):
                errors.append(f"Individual #{idx + 1} name must be a string")
            elif not (name or "").strip():
                errors.append(f"Individual #{idx + 1} is missing a name")

    for field in ("responsibilityOwners", "responsibilityEvidence", "responsibilityAssignments"):
        value = payload.get(field)
        if value is not None and not isinstance(value, dict):
            errors.append(f"{field} must be an object")

    # owners and evidence map a ref to a string or null
    for field in ("responsibilityOwners", "responsibilityEvidence"):
        value = payload.get(field)
        if isinstance(value, dict):
            for ref, item in value.items():
                if item is not None and not isinstance(item, str):
                    errors.append(f"{field}.{ref} must be a string")

    refs = payload.get("responsibilityRefs")
    if refs is not None and not isinstance(refs, list):
        errors.append("responsibilityRefs must be a list")

    fitness = payload.get("fitnessResponses")
    if fitness is not None and not isinstance(fitness, list):
        errors.append("fitnessResponses must be a list")

    if errors:
        raise DraftValidationError(errors)
