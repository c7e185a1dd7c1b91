"""
Display metadata kept apart from the rule catalog: icons and Bootstrap badge
colours for firm types, risk levels, readiness labels and step statuses.
"""

FIRM_TYPE_ICONS = {
    "Bank": "bi-bank",
    "Investment": "bi-graph-up",
    "Insurance": "bi-shield-check",
    "Payments": "bi-credit-card",
}

RISK_LEVEL_BADGES = {
    "High": "danger",
    "Medium": "warning",
    "Low": "info",
    "Clear": "success",
}

READINESS_BADGES = {
    "Board-ready": "success",
    "In progress": "warning",
    "Not started": "secondary",
}

STEP_STATUS_BADGES = {
    "active": "primary",
    "done": "success",
    "partial": "warning",
    "pending": "secondary",
}

SEVERITY_BADGES = {
    "blocker": "danger",
    "warning": "warning",
    "info": "info",
}


def firm_type_icon(firm_type):
    return FIRM_TYPE_ICONS.get(firm_type, "bi-building")


def risk_badge(risk_level):
    """Badge for a risk level; unknown levels render neutral."""
    return {"label": risk_level or "Not Assessed", "badge": RISK_LEVEL_BADGES.get(risk_level, "secondary")}


def readiness_badge(readiness):
    label = readiness.get("label", "Not started")
    return {
        "label": label,
        "badge": READINESS_BADGES.get(label, "secondary"),
        "score": readiness.get("score", 0),
    }


def step_badge(status):
    return STEP_STATUS_BADGES.get(status, "secondary")


def severity_badge(severity):
    return SEVERITY_BADGES.get(severity, "secondary")
