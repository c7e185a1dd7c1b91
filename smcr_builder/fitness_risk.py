"""
Fitness & Propriety Risk Rating

Scores an individual's FIT questionnaire answers.

- Only answers of exactly "yes" count
- Each weighted question carries a fixed number of points:
    10  severe integrity / financial crime matters
     5  financial soundness and civil / professional matters
     2  adverse media
  Unweighted questions (competence & capability) never score
- Risk level from the overall score:
    High >= 10, Medium 5-9, Low 1-4, Clear 0
"""

from smcr_builder.fitness_keys import try_decode_fitness_key
from smcr_builder.smcr_catalog import FIT_SECTIONS

AFFIRMATIVE = "yes"

RISK_LEVELS = ("Clear", "Low", "Medium", "High")

RISK_WEIGHTS = {
    # HIGH RISK (10 points) - FIT 2.1: Honesty, Integrity & Reputation
    "criminal_convictions": {"weight": 10, "text": "Criminal convictions relating to dishonesty, fraud, or financial crime"},
    "regulatory_investigations": {"weight": 10, "text": "Subject to regulatory investigations or disciplinary actions"},
    "fiduciary_breach": {"weight": 10, "text": "Breach of fiduciary duty or trust"},
    "director_disqualification": {"weight": 10, "text": "Disqualified from acting as director"},
    "market_abuse": {"weight": 10, "text": "Market abuse, insider dealing, or manipulation"},
    "money_laundering": {"weight": 10, "text": "Money laundering or terrorist financing"},
    "fraud_misrepresentation": {"weight": 10, "text": "Fraud or misrepresentation"},
    "overseas_sanctions": {"weight": 10, "text": "Overseas regulatory sanctions"},
    "previous_refusal": {"weight": 10, "text": "Previously refused or restricted FCA/PRA approval"},
    # MEDIUM RISK (5 points) - FIT 2.3: Financial Soundness
    "ccj_orders": {"weight": 5, "text": "County Court Judgments (CCJs)"},
    "bankruptcy": {"weight": 5, "text": "Bankruptcy proceedings"},
    "iva_dro": {"weight": 5, "text": "Individual Voluntary Arrangement or Debt Relief Order"},
    "creditor_arrangements": {"weight": 5, "text": "Arrangements with creditors or debt management plans"},
    # MEDIUM RISK (5 points) - FIT 2.1: Civil / professional issues
    "civil_proceedings": {"weight": 5, "text": "Civil proceedings with adverse findings"},
    "professional_sanctions": {"weight": 5, "text": "Professional body sanctions"},
    # LOW RISK (2 points)
    "adverse_media": {"weight": 2, "text": "Adverse media reports"},
}


def calculate_risk_level(score):
    if score >= 10:
        return "High"
    if score >= 5:
        return "Medium"
    if score >= 1:
        return "Low"
    return "Clear"


def score_individual(individual_id, answers, individual_name=""):
    """
    Risk assessment for one individual.

    Args:
        individual_id: durable id of the individual
        answers: dict of {question_id: {"response", "details", "date"}}
        individual_name: carried through for reports

    Returns:
        dict with overallScore, riskLevel, sectionBreakdown (every section,
        including zero scores) and allFlaggedQuestions ordered by section
        then question as defined in the catalog.
    """
    if not isinstance(answers, dict):
        answers = {}

    breakdown = []
    flagged_all = []
    for section in FIT_SECTIONS:
        flagged = []
        for q in section["questions"]:
            risk = RISK_WEIGHTS.get(q["id"])
            answer = answers.get(q["id"])
            if not risk or not isinstance(answer, dict):
                continue
            if answer.get("response") != AFFIRMATIVE:
                continue
            flagged.append({
                "questionId": q["id"],
                "sectionId": section["id"],
                "sectionRef": section["ref"],
                "questionText": risk["text"],
                "riskWeight": risk["weight"],
                "details": answer.get("details"),
                "date": answer.get("date"),
            })
        breakdown.append({
            "sectionId": section["id"],
            "sectionRef": section["ref"],
            "sectionName": section["title"],
            "score": sum(f["riskWeight"] for f in flagged),
            "flaggedQuestions": flagged,
        })
        flagged_all.extend(flagged)

    overall = sum(s["score"] for s in breakdown)
    return {
        "individualId": individual_id,
        "individualName": individual_name,
        "overallScore": overall,
        "riskLevel": calculate_risk_level(overall),
        "sectionBreakdown": breakdown,
        "allFlaggedQuestions": flagged_all,
    }


def fitness_data_from_responses(fitness_responses):
    """
    Group stored fitness responses by individual.

    Returns {individual_id: {question_id: {response, details, date}}}.
    Responses with malformed composite keys are skipped.
    """
    data = {}
    for r in fitness_responses or []:
        decoded = try_decode_fitness_key(r.get("questionId"))
        if decoded is None:
            continue
        individual_id, _, question_id = decoded
        data.setdefault(individual_id, {})[question_id] = {
            "response": r.get("response"),
            "details": r.get("details"),
            "date": r.get("date"),
        }
    return data


def calculate_all_risks(individuals, fitness_data):
    return [
        score_individual(ind["id"], fitness_data.get(ind["id"], {}), ind.get("name", ""))
        for ind in individuals
    ]


def firm_risk_summary(assessments):
    summary = {"total": len(assessments)}
    summary.update({level.lower(): 0 for level in reversed(RISK_LEVELS)})
    for a in assessments:
        summary[a["riskLevel"].lower()] += 1
    return summary
