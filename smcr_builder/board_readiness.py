"""
Board readiness score for a governance pack draft.

Four weighted components, 100 points in total:
- Mandatory ownership (40): applicable mandatory responsibilities selected and owned
- FIT completion (30): answered questions over individuals x FIT questions
- Evidence completeness (20): responsibility evidence and FIT evidence, averaged
- Risk flags (10): 10 less 5 per High and 2 per Medium individual

Percentages and points round half up, so 0.5 always goes to the next integer.
"""

import math

from smcr_builder.applicability import applicable_for_profile
from smcr_builder.fitness_risk import (
    calculate_all_risks,
    firm_risk_summary,
    fitness_data_from_responses,
)
from smcr_builder.smcr_catalog import count_fit_questions

MAX_SCORE = 100
MANDATORY_MAX_POINTS = 40
FIT_MAX_POINTS = 30
EVIDENCE_MAX_POINTS = 20
RISK_MAX_POINTS = 10

BOARD_READY_THRESHOLD = 85


def round_half_up(value):
    return int(math.floor(value + 0.5))


def clamp(n, lo, hi):
    return max(lo, min(hi, n))


def safe_ratio(numerator, denominator):
    if not denominator:
        return 0
    return clamp(numerator / denominator, 0, 1)


def round_percent(value):
    return round_half_up(clamp(value, 0, 1) * 100)


def _points(percent, max_points):
    return round_half_up(percent / 100 * max_points)


def _has_text(value):
    return isinstance(value, str) and value.strip() != ""


def _component(label, percent, points, max_points, detail):
    return {
        "label": label,
        "percent": percent,
        "points": points,
        "maxPoints": max_points,
        "detail": detail,
    }


def calculate_board_readiness(firm_profile, individuals, responsibility_assignments,
                              responsibility_owners, responsibility_evidence, fitness_responses):
    """
    Score how close a draft is to being board-ready.

    Returns:
        dict with score, maxScore, label ("Not started", "In progress" or
        "Board-ready") and components (mandatoryOwnership, fitCompletion,
        evidenceCompleteness, riskFlags).
    """
    firm_profile = firm_profile or {}
    individuals = individuals or []
    assignments = responsibility_assignments or {}
    owners = responsibility_owners or {}
    evidence = responsibility_evidence or {}
    fitness_responses = fitness_responses or []

    applicable = applicable_for_profile(firm_profile) if firm_profile.get("firmType") else []

    # Mandatory ownership
    mandatory = [r for r in applicable if r["mandatory"]]
    mandatory_owned = sum(1 for r in mandatory if assignments.get(r["ref"]) and owners.get(r["ref"]))
    mandatory_percent = round_percent(safe_ratio(mandatory_owned, len(mandatory))) if mandatory else 0
    mandatory_points = _points(mandatory_percent, MANDATORY_MAX_POINTS)

    # FIT completion
    expected_fit = len(individuals) * count_fit_questions()
    answered = [r for r in fitness_responses if _has_text(r.get("response"))]
    fit_percent = round_percent(safe_ratio(len(answered), expected_fit)) if expected_fit else 0
    fit_points = _points(fit_percent, FIT_MAX_POINTS)

    # Evidence completeness
    selected_refs = [r["ref"] for r in applicable if assignments.get(r["ref"])]
    resp_evidence = sum(1 for ref in selected_refs if _has_text(evidence.get(ref)))
    fit_evidence = sum(1 for r in answered if _has_text(r.get("evidence")))

    parts = []
    if selected_refs:
        parts.append(round_percent(safe_ratio(resp_evidence, len(selected_refs))))
    if answered:
        parts.append(round_percent(safe_ratio(fit_evidence, len(answered))))
    evidence_percent = round_half_up(sum(parts) / len(parts)) if parts else 0
    evidence_points = _points(evidence_percent, EVIDENCE_MAX_POINTS)

    # Risk flags
    can_score_risk = bool(individuals) and bool(answered)
    if can_score_risk:
        summary = firm_risk_summary(
            calculate_all_risks(individuals, fitness_data_from_responses(fitness_responses))
        )
        penalty = clamp(summary["high"] * 5 + summary["medium"] * 2, 0, RISK_MAX_POINTS)
        risk_points = max(0, RISK_MAX_POINTS - penalty)
        risk_percent = round_half_up(risk_points / RISK_MAX_POINTS * 100)
    else:
        summary = {"total": 0, "high": 0, "medium": 0, "low": 0, "clear": 0}
        risk_points = 0
        risk_percent = 0

    score = clamp(mandatory_points + fit_points + evidence_points + risk_points, 0, MAX_SCORE)

    if (score >= BOARD_READY_THRESHOLD and mandatory_percent == 100
            and fit_percent == 100 and summary["high"] == 0):
        label = "Board-ready"
    elif score == 0:
        label = "Not started"
    else:
        label = "In progress"

    if mandatory:
        mandatory_detail = f"{mandatory_owned}/{len(mandatory)} mandatory responsibilities owned."
    else:
        mandatory_detail = "No mandatory responsibilities detected for this profile."

    if expected_fit:
        fit_detail = f"{len(answered)}/{expected_fit} FIT answers recorded."
    else:
        fit_detail = "No FIT questions expected yet."

    resp_part = f"Responsibilities: {resp_evidence}/{len(selected_refs)}" if selected_refs else "Responsibilities: -"
    fit_part = f"FIT: {fit_evidence}/{len(answered)}" if answered else "FIT: -"

    if can_score_risk:
        risk_detail = (
            f"High {summary['high']} · Medium {summary['medium']} · "
            f"Low {summary['low']} · Clear {summary['clear']}"
        )
    else:
        risk_detail = "Risk scoring not available until FIT answers are recorded."

    return {
        "score": score,
        "maxScore": MAX_SCORE,
        "label": label,
        "components": {
            "mandatoryOwnership": _component(
                "Mandatory ownership", mandatory_percent, mandatory_points,
                MANDATORY_MAX_POINTS, mandatory_detail,
            ),
            "fitCompletion": _component(
                "FIT completion", fit_percent, fit_points, FIT_MAX_POINTS, fit_detail,
            ),
            "evidenceCompleteness": _component(
                "Evidence completeness", evidence_percent, evidence_points,
                EVIDENCE_MAX_POINTS, f"{resp_part} · {fit_part}",
            ),
            "riskFlags": _component(
                "Risk flags", risk_percent, risk_points, RISK_MAX_POINTS, risk_detail,
            ),
        },
    }
