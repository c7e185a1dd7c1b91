"""
SMCR / PSD Rule Catalog

Static rule tables for the governance pack builder:
- Firm types and the regime each one falls under (SMCR or PSD)
- SMCR categories (limited / core / enhanced) and payments categories
- Prescribed responsibilities (PRs) for SMCR firms and PSD governance
  responsibilities for payments firms
- Senior Management Function (SMF) roles and PSD key-function roles
- Fitness & propriety question sections (FIT 2.1 - FIT 2.3)
- Role -> responsibility suggestion map

Each responsibility has:
- ref: Reference code (stored against the firm's assignment rows)
- text: Description of the responsibility
- cat: Applicability category - "all", "limited", "core" or "enhanced".
  Matching is cumulative: enhanced firms inherit core obligations, limited
  scope is disjoint (see applicability.category_matches)
- mandatory: Whether the responsibility must be allocated when applicable
- firm_types: Firm types the responsibility can apply to
- cass_only: Only applicable to firms holding client money / assets (CASS)

Each role has:
- ref, label, description
- firm_types, cat: same semantics as responsibilities
- executive: Executive function (False for non-executive chair roles)

Sources:
- FCA Handbook SYSC 24 (Allocation of prescribed responsibilities)
- FCA Handbook SUP 10C (FCA senior managers regime for approved persons)
- FCA Handbook FIT 2.1 - 2.3 (Fit and Proper test)
- Payment Services Regulations 2017 / Electronic Money Regulations 2011
"""

SMCR_FIRM_TYPES = ("Bank", "Investment", "Insurance")
PSD_FIRM_TYPES = ("Payments",)
ALL_FIRM_TYPES = SMCR_FIRM_TYPES + PSD_FIRM_TYPES

FIRM_TYPES = {
    "Bank": {
        "key": "Bank",
        "label": "Bank",
        "description": "Deposit-taking institutions under PRA & FCA supervision.",
        "regime": "SMCR",
        "is_solo_regulated": False,
    },
    "Investment": {
        "key": "Investment",
        "label": "Investment Firm",
        "description": "MiFID investment services with FCA solo regulation.",
        "regime": "SMCR",
        "is_solo_regulated": True,
    },
    "Insurance": {
        "key": "Insurance",
        "label": "Insurance",
        "description": "Insurance undertakings supervised by PRA/FCA.",
        "regime": "SMCR",
        "is_solo_regulated": False,
    },
    "Payments": {
        "key": "Payments",
        "label": "Payments",
        "description": "Payment service providers operating under the PSD2 perimeter.",
        "regime": "PSD",
        "is_solo_regulated": True,
    },
}

SMCR_CATEGORIES = [
    {"key": "limited", "label": "Limited Scope"},
    {"key": "core", "label": "Core"},
    {"key": "enhanced", "label": "Enhanced"},
]

PAYMENTS_CATEGORIES = [
    {"key": "spi", "label": "Small Payment Institution (SPI)"},
    {"key": "api", "label": "Authorised Payment Institution (API)"},
    {"key": "aisp", "label": "Registered Account Information Service Provider (RAISP)"},
    {"key": "emi", "label": "Authorised Electronic Money Institution (AEMI)"},
    {"key": "semi", "label": "Small Electronic Money Institution (SEMI)"},
]


PRESCRIBED_RESPONSIBILITIES = [
    # =========================================================================
    # SMCR PRESCRIBED RESPONSIBILITIES
    # =========================================================================
    {
        "ref": "A",
        "text": "Responsibility for the firm's performance of its obligations under the senior managers regime",
        "cat": "all",
        "mandatory": True,
        "firm_types": SMCR_FIRM_TYPES,
    },
    {
        "ref": "B",
        "text": "Responsibility for the firm's performance of its obligations under the certification regime",
        "cat": "all",
        "mandatory": True,
        "firm_types": SMCR_FIRM_TYPES,
    },
    {
        "ref": "B1",
        "text": "Responsibility for compliance with the requirements relating to conduct rules training and reporting",
        "cat": "core",
        "mandatory": True,
        "firm_types": SMCR_FIRM_TYPES,
    },
    {
        "ref": "C",
        "text": "Responsibility for the production and integrity of the firm's management responsibilities map",
        "cat": "enhanced",
        "mandatory": True,
        "firm_types": SMCR_FIRM_TYPES,
    },
    {
        "ref": "D",
        "text": "Responsibility for the firm's policies and procedures for countering the risk that the firm might be used to further financial crime",
        "cat": "core",
        "mandatory": True,
        "firm_types": SMCR_FIRM_TYPES,
    },
    {
        "ref": "E",
        "text": "Responsibility for the firm's compliance with CASS (client assets)",
        "cat": "core",
        "mandatory": True,
        "firm_types": ("Bank", "Investment"),
        "cass_only": True,
    },
    {
        "ref": "F",
        "text": "Responsibility for overseeing the adoption of the firm's culture in the day-to-day management of the firm",
        "cat": "enhanced",
        "mandatory": True,
        "firm_types": SMCR_FIRM_TYPES,
    },
    {
        "ref": "G",
        "text": "Responsibility for leading the development of the firm's culture by the governing body as a whole",
        "cat": "enhanced",
        "mandatory": True,
        "firm_types": SMCR_FIRM_TYPES,
    },
    {
        "ref": "H",
        "text": "Responsibility for the firm's policies and procedures for handover of responsibilities between senior managers",
        "cat": "enhanced",
        "mandatory": True,
        "firm_types": SMCR_FIRM_TYPES,
    },
    {
        "ref": "I",
        "text": "Responsibility for the independence, autonomy and effectiveness of the firm's whistleblowing policies and procedures",
        "cat": "enhanced",
        "mandatory": True,
        "firm_types": ("Bank", "Insurance", "Investment"),
    },
    {
        "ref": "J",
        "text": "Responsibility for the development and oversight of the firm's remuneration policies and practices",
        "cat": "enhanced",
        "mandatory": True,
        "firm_types": ("Bank", "Insurance"),
    },
    {
        "ref": "K",
        "text": "Responsibility for the firm's recovery plan and resolution pack",
        "cat": "enhanced",
        "mandatory": True,
        "firm_types": ("Bank",),
    },
    {
        "ref": "L",
        "text": "Responsibility for the firm's compliance with the requirements of the limited scope senior managers regime",
        "cat": "limited",
        "mandatory": True,
        "firm_types": SMCR_FIRM_TYPES,
    },
    {
        "ref": "Z",
        "text": "Responsibility for value for money assessments and independent director representation on the fund manager board",
        "cat": "core",
        "mandatory": False,
        "firm_types": ("Investment",),
    },
    {
        "ref": "O1",
        "text": "Board champion for the Consumer Duty",
        "cat": "core",
        "mandatory": False,
        "firm_types": SMCR_FIRM_TYPES,
    },
    {
        "ref": "O2",
        "text": "Responsibility for the firm's operational resilience, including important business services and impact tolerances",
        "cat": "enhanced",
        "mandatory": False,
        "firm_types": SMCR_FIRM_TYPES,
    },
    # =========================================================================
    # PSD GOVERNANCE RESPONSIBILITIES (payment & e-money institutions)
    # =========================================================================
    {
        "ref": "P1",
        "text": "Responsibility for safeguarding relevant funds and the safeguarding audit",
        "cat": "all",
        "mandatory": True,
        "firm_types": PSD_FIRM_TYPES,
    },
    {
        "ref": "P2",
        "text": "Responsibility for compliance with the Payment Services and Electronic Money Regulations",
        "cat": "all",
        "mandatory": True,
        "firm_types": PSD_FIRM_TYPES,
    },
    {
        "ref": "P3",
        "text": "Responsibility for financial crime controls (AML/CTF, fraud, sanctions)",
        "cat": "all",
        "mandatory": True,
        "firm_types": PSD_FIRM_TYPES,
    },
    {
        "ref": "P4",
        "text": "Responsibility for operational and security risk management, including major incident reporting",
        "cat": "all",
        "mandatory": False,
        "firm_types": PSD_FIRM_TYPES,
    },
    {
        "ref": "P5",
        "text": "Responsibility for oversight of agents, distributors and outsourced operational functions",
        "cat": "all",
        "mandatory": False,
        "firm_types": PSD_FIRM_TYPES,
    },
    {
        "ref": "P6",
        "text": "Responsibility for complaints handling and customer communications",
        "cat": "all",
        "mandatory": False,
        "firm_types": PSD_FIRM_TYPES,
    },
]


SMF_ROLES = [
    # =========================================================================
    # SMCR SENIOR MANAGEMENT FUNCTIONS
    # =========================================================================
    {"ref": "SMF1", "label": "Chief Executive", "description": "Responsible for carrying out the management of the conduct of the whole business.", "firm_types": SMCR_FIRM_TYPES, "cat": "core", "executive": True},
    {"ref": "SMF2", "label": "Chief Finance", "description": "Responsible for management of the financial resources of the firm.", "firm_types": ("Bank", "Insurance"), "cat": "enhanced", "executive": True},
    {"ref": "SMF3", "label": "Executive Director", "description": "Executive director of the firm's governing body.", "firm_types": SMCR_FIRM_TYPES, "cat": "core", "executive": True},
    {"ref": "SMF4", "label": "Chief Risk", "description": "Responsible for overall management of the risk controls of the firm.", "firm_types": ("Bank", "Insurance"), "cat": "enhanced", "executive": True},
    {"ref": "SMF5", "label": "Head of Internal Audit", "description": "Responsible for management of the internal audit function.", "firm_types": SMCR_FIRM_TYPES, "cat": "enhanced", "executive": True},
    {"ref": "SMF7", "label": "Group Entity Senior Manager", "description": "Individual in a group entity exercising significant influence over the firm.", "firm_types": SMCR_FIRM_TYPES, "cat": "enhanced", "executive": True},
    {"ref": "SMF9", "label": "Chair", "description": "Chair of the governing body.", "firm_types": SMCR_FIRM_TYPES, "cat": "core", "executive": False},
    {"ref": "SMF10", "label": "Chair of the Risk Committee", "description": "Chair of the board risk committee.", "firm_types": SMCR_FIRM_TYPES, "cat": "enhanced", "executive": False},
    {"ref": "SMF11", "label": "Chair of the Audit Committee", "description": "Chair of the board audit committee.", "firm_types": SMCR_FIRM_TYPES, "cat": "enhanced", "executive": False},
    {"ref": "SMF12", "label": "Chair of the Remuneration Committee", "description": "Chair of the board remuneration committee.", "firm_types": SMCR_FIRM_TYPES, "cat": "enhanced", "executive": False},
    {"ref": "SMF13", "label": "Chair of the Nominations Committee", "description": "Chair of the board nominations committee.", "firm_types": SMCR_FIRM_TYPES, "cat": "enhanced", "executive": False},
    {"ref": "SMF14", "label": "Senior Independent Director", "description": "Senior independent non-executive director.", "firm_types": SMCR_FIRM_TYPES, "cat": "enhanced", "executive": False},
    {"ref": "SMF16", "label": "Compliance Oversight", "description": "Director or senior manager responsible for the compliance function.", "firm_types": SMCR_FIRM_TYPES, "cat": "all", "executive": True},
    {"ref": "SMF17", "label": "Money Laundering Reporting Officer (MLRO)", "description": "Responsible for the firm's compliance with money laundering obligations.", "firm_types": SMCR_FIRM_TYPES, "cat": "all", "executive": True},
    {"ref": "SMF18", "label": "Other Overall Responsibility", "description": "Overall responsibility for an activity, business area or management function.", "firm_types": SMCR_FIRM_TYPES, "cat": "enhanced", "executive": True},
    {"ref": "SMF24", "label": "Chief Operations", "description": "Responsible for internal operations and technology of the firm.", "firm_types": SMCR_FIRM_TYPES, "cat": "enhanced", "executive": True},
    {"ref": "SMF27", "label": "Partner", "description": "Partner with significant responsibility for a business area.", "firm_types": ("Investment",), "cat": "core", "executive": True},
    {"ref": "SMF29", "label": "Limited Scope Function", "description": "Senior manager of a limited scope firm.", "firm_types": SMCR_FIRM_TYPES, "cat": "limited", "executive": True},
    # =========================================================================
    # PSD KEY FUNCTIONS
    # =========================================================================
    {"ref": "PSD-CEO", "label": "Chief Executive / Head of Payment Services", "description": "Person responsible for the management of the payment services business.", "firm_types": PSD_FIRM_TYPES, "cat": "all", "executive": True},
    {"ref": "PSD-FIN", "label": "Head of Finance", "description": "Responsible for capital adequacy and financial reporting.", "firm_types": PSD_FIRM_TYPES, "cat": "all", "executive": True},
    {"ref": "PSD-COMP", "label": "Head of Compliance", "description": "Responsible for regulatory compliance monitoring.", "firm_types": PSD_FIRM_TYPES, "cat": "all", "executive": True},
    {"ref": "PSD-MLRO", "label": "Money Laundering Reporting Officer (MLRO)", "description": "Nominated officer for suspicious activity reporting.", "firm_types": PSD_FIRM_TYPES, "cat": "all", "executive": True},
    {"ref": "PSD-SAFE", "label": "Safeguarding Officer", "description": "Responsible for the safeguarding of relevant funds.", "firm_types": PSD_FIRM_TYPES, "cat": "all", "executive": True},
    {"ref": "PSD-OPS", "label": "Head of Operations & Security", "description": "Responsible for operational and security risk, incidents and outsourcing.", "firm_types": PSD_FIRM_TYPES, "cat": "all", "executive": True},
]


# Role -> responsibilities that typically sit with the holder of that role
SMF_RESPONSIBILITY_MAP = {
    "SMF1": ["A", "C", "F", "H"],
    "SMF2": ["K"],
    "SMF3": ["A", "O1"],
    "SMF4": ["O2", "K"],
    "SMF5": [],
    "SMF7": [],
    "SMF9": ["G", "O1"],
    "SMF10": ["O2"],
    "SMF11": [],
    "SMF12": ["J"],
    "SMF13": [],
    "SMF14": ["I"],
    "SMF16": ["B", "B1", "E", "L"],
    "SMF17": ["D"],
    "SMF18": ["E", "O2"],
    "SMF24": ["O2", "E"],
    "SMF27": ["A", "Z"],
    "SMF29": ["L", "A", "B"],
    "PSD-CEO": ["P2"],
    "PSD-FIN": ["P1"],
    "PSD-COMP": ["P2", "P6"],
    "PSD-MLRO": ["P3"],
    "PSD-SAFE": ["P1"],
    "PSD-OPS": ["P4", "P5"],
}


# Fitness & propriety questionnaire. Section membership of each question is
# the static table used by risk scoring.
FIT_SECTIONS = [
    {
        "id": "honesty",
        "ref": "FIT 2.1",
        "title": "Honesty, Integrity & Reputation",
        "questions": [
            {"id": "criminal_convictions", "text": "Any criminal convictions (spent or unspent) relating to dishonesty, fraud or financial crime?"},
            {"id": "regulatory_investigations", "text": "Subject to investigations or disciplinary actions by regulators or professional bodies?"},
            {"id": "civil_proceedings", "text": "Party to civil proceedings with adverse findings?"},
            {"id": "fiduciary_breach", "text": "Found to have breached a fiduciary duty or position of trust?"},
            {"id": "director_disqualification", "text": "Disqualified from acting as a director or in any management capacity?"},
            {"id": "market_abuse", "text": "Involved in market abuse, insider dealing or market manipulation?"},
            {"id": "money_laundering", "text": "Involved in money laundering or terrorist financing?"},
            {"id": "fraud_misrepresentation", "text": "Involved in fraud or misrepresentation?"},
            {"id": "professional_sanctions", "text": "Sanctioned, censured or expelled by a professional body?"},
            {"id": "adverse_media", "text": "Subject of adverse media reports relevant to honesty or integrity?"},
            {"id": "overseas_sanctions", "text": "Subject to overseas regulatory sanctions or enforcement action?"},
            {"id": "previous_refusal", "text": "Previously refused, restricted or withdrawn FCA/PRA approval or registration?"},
        ],
    },
    {
        "id": "competence",
        "ref": "FIT 2.2",
        "title": "Competence & Capability",
        "questions": [
            {"id": "relevant_qualifications", "text": "Holds qualifications relevant to the role?"},
            {"id": "professional_development", "text": "Maintains continuing professional development relevant to the role?"},
            {"id": "role_understanding", "text": "Demonstrates understanding of the role and its regulatory responsibilities?"},
            {"id": "regulatory_knowledge", "text": "Has adequate knowledge of the applicable regulatory framework?"},
            {"id": "time_commitment", "text": "Has sufficient time and resources to discharge the responsibilities?"},
            {"id": "conflicts_of_interest", "text": "Conflicts of interest identified and managed?"},
            {"id": "previous_employment", "text": "Previous employment history verified?"},
            {"id": "gaps_in_employment", "text": "Gaps in employment explained?"},
            {"id": "references_available", "text": "Regulatory references obtained from previous employers?"},
            {"id": "language_proficiency", "text": "Sufficient language proficiency for the role?"},
        ],
    },
    {
        "id": "financial",
        "ref": "FIT 2.3",
        "title": "Financial Soundness",
        "questions": [
            {"id": "ccj_orders", "text": "Subject to any County Court Judgments (CCJs) or similar orders?"},
            {"id": "bankruptcy", "text": "Subject to bankruptcy proceedings or sequestration?"},
            {"id": "iva_dro", "text": "Entered into an Individual Voluntary Arrangement or Debt Relief Order?"},
            {"id": "creditor_arrangements", "text": "Made arrangements with creditors or entered a debt management plan?"},
            {"id": "financial_difficulties", "text": "Experienced financial difficulties that could affect independence?"},
            {"id": "guarantees_failed", "text": "Failed to satisfy a guarantee or surety?"},
            {"id": "business_failures", "text": "Director or manager of a business that failed owing money?"},
            {"id": "debt_recovery", "text": "Subject to debt recovery action?"},
        ],
    },
]

JOURNEY_STEPS = [
    {"id": "firm", "title": "Firm Profile", "description": "Define firm perimeter & SMCR category"},
    {"id": "responsibilities", "title": "Responsibilities", "description": "Assign SMFs + PRs"},
    {"id": "fitness", "title": "Fitness & Propriety", "description": "Capture attestations"},
    {"id": "reports", "title": "Reports", "description": "Generate outputs"},
]


def get_responsibility_by_ref(ref):
    """Look up a single responsibility by reference."""
    for r in PRESCRIBED_RESPONSIBILITIES:
        if r["ref"] == ref:
            return r
    return None


def get_role_by_ref(ref):
    """Look up a single SMF / PSD role by reference."""
    for role in SMF_ROLES:
        if role["ref"] == ref:
            return role
    return None


def count_fit_questions():
    """Total FIT questions each individual is expected to answer."""
    return sum(len(section["questions"]) for section in FIT_SECTIONS)
