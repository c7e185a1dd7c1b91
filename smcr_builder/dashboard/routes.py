from flask import Blueprint, jsonify
from flask_login import login_required, current_user

from smcr_builder.board_readiness import calculate_board_readiness
from smcr_builder.draft_store import list_drafts, load_draft
from smcr_builder.models import User
from smcr_builder.presentation import firm_type_icon, readiness_badge

dashboard_bp = Blueprint("dashboard", __name__)


def _draft_summary(firm):
    draft = load_draft(firm)
    readiness = calculate_board_readiness(
        draft["firmProfile"],
        draft["individuals"],
        draft["responsibilityAssignments"],
        draft["responsibilityOwners"],
        draft["responsibilityEvidence"],
        draft["fitnessResponses"],
    )
    return {
        "id": firm.id,
        "firmName": firm.name,
        "firmType": firm.firm_type,
        "icon": firm_type_icon(firm.firm_type),
        "smcrCategory": firm.smcr_category,
        "individuals": len(draft["individuals"]),
        "orphanedResponsibilities": len(draft["orphanedResponsibilities"]),
        "readiness": readiness_badge(readiness),
        "updatedAt": draft["updatedAt"],
    }


@dashboard_bp.route("/")
@login_required
def index():
    firms = list_drafts(current_user)
    drafts = [_draft_summary(f) for f in firms]

    stats = {
        "total_drafts": len(drafts),
        "not_started": sum(1 for d in drafts if d["readiness"]["label"] == "Not started"),
        "in_progress": sum(1 for d in drafts if d["readiness"]["label"] == "In progress"),
        "board_ready": sum(1 for d in drafts if d["readiness"]["label"] == "Board-ready"),
        "total_users": User.query.count() if current_user.is_admin else None,
    }

    return jsonify({"drafts": drafts, "stats": stats})
