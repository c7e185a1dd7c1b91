"""
Pytest configuration and fixtures for the governance pack builder tests.

Provides an application on an in-memory database, a logged-in API client,
and factories for draft payloads.
"""
import pytest

from config import TestConfig
from smcr_builder import create_app, db
from smcr_builder.fitness_keys import encode_fitness_key
from smcr_builder.models import User
from smcr_builder.smcr_catalog import FIT_SECTIONS


# =============================================================================
# Factory Helpers
# =============================================================================

def make_individual(client_id, name, roles=None, **extra):
    ind = {"id": client_id, "name": name, "smfRoles": list(roles or [])}
    ind.update(extra)
    return ind


def make_response(individual_id, section_id, question_id, response="no", evidence=None, details=None):
    return {
        "questionId": encode_fitness_key(individual_id, section_id, question_id),
        "sectionId": section_id,
        "response": response,
        "details": details,
        "date": None,
        "evidence": evidence,
    }


def full_fitness_answers(individual_id, yes=(), evidence=None):
    """One answer per FIT question; questions listed in ``yes`` are answered "yes"."""
    return [
        make_response(individual_id, section["id"], q["id"], "yes" if q["id"] in yes else "no", evidence)
        for section in FIT_SECTIONS
        for q in section["questions"]
    ]


def make_payload(firm_name="Acme Payments Ltd", firm_type="Payments", category="api",
                 individuals=None, assignments=None, owners=None, evidence=None,
                 fitness=None, is_cass=False):
    return {
        "firmProfile": {
            "firmName": firm_name,
            "firmType": firm_type,
            "smcrCategory": category,
            "jurisdictions": ["UK"],
            "isCASSFirm": is_cass,
        },
        "individuals": individuals or [],
        "responsibilityAssignments": assignments or {},
        "responsibilityOwners": owners or {},
        "responsibilityEvidence": evidence or {},
        "fitnessResponses": fitness or [],
    }


# =============================================================================
# Application Fixtures
# =============================================================================

@pytest.fixture
def app():
    app = create_app(TestConfig)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def app_ctx(app):
    with app.app_context():
        yield app


@pytest.fixture
def admin(app_ctx):
    return User.query.filter_by(username=TestConfig.ADMIN_USERNAME).first()


@pytest.fixture
def member(app_ctx):
    user = User(username="member", email="member@example.com", full_name="Member", role="member")
    user.set_password("member123")
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def client(app):
    client = app.test_client()
    resp = client.post(
        "/auth/login",
        json={"username": TestConfig.ADMIN_USERNAME, "password": TestConfig.ADMIN_PASSWORD},
    )
    assert resp.status_code == 200
    return client
