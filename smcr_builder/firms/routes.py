from flask import Blueprint, Response, request, jsonify, current_app
from flask_login import login_required, current_user

from smcr_builder.applicability import applicable_for_profile, applicable_responsibilities, applicable_roles
from smcr_builder.board_readiness import calculate_board_readiness
from smcr_builder.csv_export import generate_csv_filename, generate_responsibilities_csv
from smcr_builder.draft_store import (
    DraftNotFoundError, DraftPersistenceError,
    clear_orphaned_selections, create_draft, delete_draft, delete_individual,
    get_firm, list_drafts, load_draft, save_draft,
)
from smcr_builder.fitness_risk import calculate_all_risks, firm_risk_summary, fitness_data_from_responses
from smcr_builder.next_actions import build_next_actions
from smcr_builder.presentation import firm_type_icon, readiness_badge, risk_badge, severity_badge
from smcr_builder.smcr_catalog import (
    FIRM_TYPES, FIT_SECTIONS, JOURNEY_STEPS, PAYMENTS_CATEGORIES, SMCR_CATEGORIES,
)
from smcr_builder.suggestions import build_owner_suggestions
from smcr_builder.validation import DraftValidationError
from smcr_builder import wizard_state

firms_bp = Blueprint("firms", __name__, url_prefix="/api")

RETRY_MESSAGE = "The draft could not be saved. Nothing was changed; please try again."


class AccessDenied(Exception):
    pass


@firms_bp.errorhandler(DraftValidationError)
def _validation_error(e):
    return jsonify({"error": "Invalid draft", "details": e.errors}), 400


@firms_bp.errorhandler(DraftNotFoundError)
def _not_found(e):
    return jsonify({"error": str(e)}), 404


@firms_bp.errorhandler(AccessDenied)
def _access_denied(e):
    return jsonify({"error": "Access denied"}), 403


@firms_bp.errorhandler(DraftPersistenceError)
def _persistence_error(e):
    current_app.logger.error(f"Persistence failure: {e}")
    return jsonify({"error": RETRY_MESSAGE}), 500


def _require_access(firm_id):
    """Load a draft the current user may work on, or raise."""
    firm = get_firm(firm_id)
    if not firm.user_can(current_user):
        current_app.logger.warning(f"User {current_user.username} denied access to draft {firm_id}")
        raise AccessDenied()
    return firm


def _payload():
    payload = request.get_json(silent=True)
    if payload is None:
        raise DraftValidationError("Request body must be JSON")
    return payload


def _default_jurisdictions():
    return current_app.config.get("DEFAULT_JURISDICTIONS", ["UK"])


@firms_bp.route("/catalog")
@login_required
def catalog():
    return jsonify({
        "firmTypes": [dict(ft, icon=firm_type_icon(key)) for key, ft in FIRM_TYPES.items()],
        "smcrCategories": SMCR_CATEGORIES,
        "paymentsCategories": PAYMENTS_CATEGORIES,
        "fitSections": FIT_SECTIONS,
        "steps": JOURNEY_STEPS,
    })


@firms_bp.route("/catalog/applicable")
@login_required
def applicable():
    firm_type = request.args.get("firmType", "")
    category = request.args.get("category", "")
    is_cass = request.args.get("cass", "").lower() in ("1", "true", "yes")
    return jsonify({
        "responsibilities": applicable_responsibilities(firm_type, category, is_cass),
        "roles": applicable_roles(firm_type, category),
    })


@firms_bp.route("/firms", methods=["GET"])
@login_required
def list_firms():
    return jsonify({
        "drafts": [
            {
                "id": f.id,
                "firmName": f.name,
                "firmType": f.firm_type,
                "smcrCategory": f.smcr_category,
                "updatedAt": f.updated_at.isoformat() if f.updated_at else None,
            }
            for f in list_drafts(current_user)
        ]
    })


@firms_bp.route("/firms", methods=["POST"])
@login_required
def create_firm():
    firm, reconciled = create_draft(current_user, _payload(), _default_jurisdictions())
    current_app.logger.info(f"Draft {firm.id} created by {current_user.username}")
    return jsonify({
        "id": firm.id,
        "idMap": reconciled["idMap"],
        "warnings": reconciled["warnings"],
        "draft": load_draft(firm),
    }), 201


@firms_bp.route("/firms/<int:firm_id>", methods=["GET"])
@login_required
def get_draft(firm_id):
    return jsonify(load_draft(_require_access(firm_id)))


@firms_bp.route("/firms/<int:firm_id>", methods=["PUT"])
@login_required
def update_draft(firm_id):
    firm = _require_access(firm_id)
    reconciled = save_draft(firm, _payload(), _default_jurisdictions())
    return jsonify({
        "id": firm.id,
        "idMap": reconciled["idMap"],
        "warnings": reconciled["warnings"],
        "draft": load_draft(firm),
    })


@firms_bp.route("/firms/<int:firm_id>", methods=["DELETE"])
@login_required
def remove_draft(firm_id):
    firm = _require_access(firm_id)
    delete_draft(firm)
    current_app.logger.info(f"Draft {firm_id} deleted by {current_user.username}")
    return jsonify({"ok": True})


@firms_bp.route("/firms/<int:firm_id>/individuals/<string:individual_id>", methods=["DELETE"])
@login_required
def remove_individual(firm_id, individual_id):
    firm = _require_access(firm_id)
    delete_individual(firm, individual_id)
    return jsonify({"ok": True, "draft": load_draft(firm)})


@firms_bp.route("/firms/<int:firm_id>/orphaned/clear", methods=["POST"])
@login_required
def clear_orphaned(firm_id):
    firm = _require_access(firm_id)
    cleared = clear_orphaned_selections(firm)
    return jsonify({"cleared": cleared, "draft": load_draft(firm)})


@firms_bp.route("/firms/<int:firm_id>/insights")
@login_required
def insights(firm_id):
    """Everything derived from a draft: risk, readiness, next actions, suggestions."""
    draft = load_draft(_require_access(firm_id))
    profile = draft["firmProfile"]
    individuals = draft["individuals"]
    assignments = draft["responsibilityAssignments"]
    owners = draft["responsibilityOwners"]

    applicable_resps = applicable_for_profile(profile)
    selected = [r for r in applicable_resps if assignments.get(r["ref"])]

    assessments = calculate_all_risks(individuals, fitness_data_from_responses(draft["fitnessResponses"]))
    for a in assessments:
        a["badge"] = risk_badge(a["riskLevel"])["badge"]

    readiness = calculate_board_readiness(
        profile, individuals, assignments, owners,
        draft["responsibilityEvidence"], draft["fitnessResponses"],
    )
    actions = build_next_actions(
        profile, individuals, assignments, owners,
        draft["responsibilityEvidence"], draft["fitnessResponses"],
    )
    for action in actions:
        action["badge"] = severity_badge(action["severity"])

    state = wizard_state.load_draft(wizard_state.initial_state(_default_jurisdictions()), draft)
    step = request.args.get("step")
    if step in wizard_state.STEP_IDS:
        state = wizard_state.set_active_step(state, step)

    return jsonify({
        "applicableResponsibilities": applicable_resps,
        "applicableRoles": applicable_roles(profile.get("firmType"), profile.get("smcrCategory")),
        "riskAssessments": assessments,
        "riskSummary": firm_risk_summary(assessments),
        "readiness": dict(readiness, badge=readiness_badge(readiness)["badge"]),
        "nextActions": actions,
        "ownerSuggestions": build_owner_suggestions(selected, individuals, owners),
        "orphanedResponsibilities": draft["orphanedResponsibilities"],
        "responsibilityCoverage": wizard_state.responsibility_coverage(state),
        "stepStatuses": wizard_state.step_statuses(state),
    })


@firms_bp.route("/firms/<int:firm_id>/export/responsibilities.csv")
@login_required
def export_responsibilities(firm_id):
    draft = load_draft(_require_access(firm_id))
    assignments = draft["responsibilityAssignments"]
    selected = [r for r in applicable_for_profile(draft["firmProfile"]) if assignments.get(r["ref"])]
    content = generate_responsibilities_csv(selected, draft["responsibilityOwners"], draft["individuals"])
    filename = generate_csv_filename(draft["firmProfile"]["firmName"])
    # BOM so spreadsheet tools pick up UTF-8
    return Response(
        "\ufeff" + content,
        mimetype="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
