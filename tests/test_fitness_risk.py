"""
Tests for fitness & propriety risk scoring.
"""
import pytest

from smcr_builder.fitness_risk import (
    RISK_WEIGHTS,
    calculate_all_risks,
    calculate_risk_level,
    firm_risk_summary,
    fitness_data_from_responses,
    score_individual,
)
from smcr_builder.smcr_catalog import FIT_SECTIONS

from tests.conftest import make_response


def yes(*question_ids):
    return {q: {"response": "yes", "details": None, "date": None} for q in question_ids}


@pytest.mark.parametrize("score,level", [
    (0, "Clear"), (1, "Low"), (4, "Low"), (5, "Medium"), (9, "Medium"), (10, "High"), (27, "High"),
])
def test_risk_level_boundaries(score, level):
    assert calculate_risk_level(score) == level


def test_criminal_conviction_and_ccj():
    result = score_individual("ind-1", yes("ccj_orders", "criminal_convictions"), "Ana")

    assert result["overallScore"] == 15
    assert result["riskLevel"] == "High"
    by_section = {s["sectionId"]: s["score"] for s in result["sectionBreakdown"]}
    assert by_section == {"honesty": 10, "competence": 0, "financial": 5}
    assert [f["questionId"] for f in result["allFlaggedQuestions"]] == ["criminal_convictions", "ccj_orders"]
    assert [f["sectionRef"] for f in result["allFlaggedQuestions"]] == ["FIT 2.1", "FIT 2.3"]


def test_breakdown_lists_every_section():
    result = score_individual("ind-1", {})
    assert [s["sectionId"] for s in result["sectionBreakdown"]] == [s["id"] for s in FIT_SECTIONS]
    assert result["riskLevel"] == "Clear"


def test_flags_follow_catalog_question_order():
    result = score_individual("ind-1", yes("adverse_media", "civil_proceedings", "criminal_convictions"))
    assert [f["questionId"] for f in result["allFlaggedQuestions"]] == [
        "criminal_convictions", "civil_proceedings", "adverse_media",
    ]
    assert result["overallScore"] == 17


@pytest.mark.parametrize("response", ["no", "Yes", "YES", "n/a", "", None, "true"])
def test_only_exact_yes_scores(response):
    answers = {"criminal_convictions": {"response": response}}
    assert score_individual("ind-1", answers)["overallScore"] == 0


def test_unweighted_questions_never_score():
    result = score_individual("ind-1", yes("relevant_qualifications", "financial_difficulties"))
    assert result["overallScore"] == 0
    assert result["allFlaggedQuestions"] == []


@pytest.mark.parametrize("answers", [None, "yes", [], {"criminal_convictions": "yes"}])
def test_malformed_input_is_clear(answers):
    result = score_individual("ind-1", answers)
    assert result["riskLevel"] == "Clear"
    assert result["allFlaggedQuestions"] == []


def test_adding_yes_is_monotonic():
    answered = []
    previous_score = 0
    order = ["Clear", "Low", "Medium", "High"]
    previous_level = "Clear"
    for question_id in ["adverse_media", "ccj_orders", "adverse_media", "market_abuse", "bankruptcy"]:
        answered.append(question_id)
        result = score_individual("ind-1", yes(*answered))
        assert result["overallScore"] >= previous_score
        assert order.index(result["riskLevel"]) >= order.index(previous_level)
        previous_score = result["overallScore"]
        previous_level = result["riskLevel"]


def test_every_weighted_question_exists_in_catalog():
    catalog = {q["id"] for s in FIT_SECTIONS for q in s["questions"]}
    assert set(RISK_WEIGHTS) <= catalog


def test_firm_summary_from_stored_responses():
    responses = [
        make_response("a", "honesty", "money_laundering", "yes"),
        make_response("b", "financial", "bankruptcy", "yes"),
        make_response("c", "honesty", "adverse_media", "yes"),
        {"questionId": "broken-key", "response": "yes"},
    ]
    individuals = [{"id": i, "name": i.upper()} for i in ("a", "b", "c", "d")]
    assessments = calculate_all_risks(individuals, fitness_data_from_responses(responses))

    assert [a["riskLevel"] for a in assessments] == ["High", "Medium", "Low", "Clear"]
    assert firm_risk_summary(assessments) == {"total": 4, "high": 1, "medium": 1, "low": 1, "clear": 1}
