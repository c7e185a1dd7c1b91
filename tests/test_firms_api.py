"""
HTTP tests for the draft API, auth and dashboard blueprints.
"""
import pytest
from sqlalchemy.exc import OperationalError

from smcr_builder import draft_store
from smcr_builder.firms.routes import RETRY_MESSAGE

from tests.conftest import full_fitness_answers, make_individual, make_payload, make_response


def board_ready_payload():
    refs = ["P1", "P2", "P3", "P4", "P5", "P6"]
    return make_payload(
        individuals=[
            make_individual("temp-1", "Ana", ["PSD-CEO"]),
            make_individual("temp-2", "Ben", ["PSD-MLRO"]),
            make_individual("temp-3", "Cat", ["PSD-SAFE"]),
        ],
        assignments={ref: True for ref in refs},
        owners={ref: "temp-1" for ref in refs},
        evidence={ref: "Board minutes" for ref in refs},
        fitness=[r for t in ("temp-1", "temp-2", "temp-3") for r in full_fitness_answers(t)],
    )


@pytest.fixture
def created(client):
    resp = client.post("/api/firms", json=board_ready_payload())
    assert resp.status_code == 201
    return resp.get_json()


@pytest.fixture
def member_client(app, client):
    resp = client.post("/auth/users", json={
        "username": "sam", "email": "sam@example.com", "full_name": "Sam Member",
        "password": "member123", "role": "member",
    })
    assert resp.status_code == 201
    other = app.test_client()
    assert other.post("/auth/login", json={"username": "sam", "password": "member123"}).status_code == 200
    return other


# =============================================================================
# Platform
# =============================================================================

def test_health(app):
    data = app.test_client().get("/health").get_json()
    assert data["status"] == "ok"
    assert "firms" in data["tables"]


def test_api_requires_login(app):
    resp = app.test_client().get("/api/firms")
    assert resp.status_code == 401
    assert resp.get_json()["error"] == "Authentication required"


def test_login_rejects_bad_password(app):
    resp = app.test_client().post("/auth/login", json={"username": "admin", "password": "nope"})
    assert resp.status_code == 401


def test_login_form_renders(app):
    resp = app.test_client().get("/auth/login")
    assert resp.status_code == 200
    assert b"Sign in" in resp.data


def test_create_user_validates_password(client):
    resp = client.post("/auth/users", json={
        "username": "weak", "email": "weak@example.com", "full_name": "Weak", "password": "short",
    })
    assert resp.status_code == 400
    assert "at least 8 characters" in resp.get_json()["error"]


def test_members_cannot_create_users(member_client):
    resp = member_client.post("/auth/users", json={
        "username": "x", "email": "x@example.com", "full_name": "X", "password": "abcdefg1",
    })
    assert resp.status_code == 403


# =============================================================================
# Catalog
# =============================================================================

def test_catalog(client):
    data = client.get("/api/catalog").get_json()
    assert [f["key"] for f in data["firmTypes"]] == ["Bank", "Investment", "Insurance", "Payments"]
    assert [s["id"] for s in data["fitSections"]] == ["honesty", "competence", "financial"]


def test_applicable(client):
    data = client.get("/api/catalog/applicable?firmType=Bank&category=ENHANCED&cass=true").get_json()
    refs = {r["ref"] for r in data["responsibilities"]}
    assert {"C", "E", "K"} <= refs
    assert "SMF2" in {r["ref"] for r in data["roles"]}

    data = client.get("/api/catalog/applicable?firmType=Rocket&category=core").get_json()
    assert data == {"responsibilities": [], "roles": []}


# =============================================================================
# Draft lifecycle
# =============================================================================

def test_create_returns_id_map(created):
    durable = set(created["idMap"].values())
    assert set(created["idMap"]) == {"temp-1", "temp-2", "temp-3"}
    assert {i["id"] for i in created["draft"]["individuals"]} == durable
    assert created["warnings"] == []


def test_resave_keeps_ids(client, created):
    draft = created["draft"]
    payload = {k: draft[k] for k in (
        "firmProfile", "individuals", "responsibilityAssignments",
        "responsibilityOwners", "responsibilityEvidence", "fitnessResponses",
    )}
    resp = client.put(f"/api/firms/{created['id']}", json=payload)
    assert resp.status_code == 200
    data = resp.get_json()
    assert [i["id"] for i in data["draft"]["individuals"]] == [i["id"] for i in draft["individuals"]]
    assert all(k == v for k, v in data["idMap"].items())


def test_save_rejects_duplicate_ids(client, created):
    payload = make_payload(individuals=[make_individual("t", "Ana"), make_individual("t", "Ben")])
    resp = client.put(f"/api/firms/{created['id']}", json=payload)
    assert resp.status_code == 400
    body = resp.get_json()
    assert body["error"] == "Invalid draft"
    assert "Duplicate individual identifier: t" in body["details"]

    # nothing persisted
    draft = client.get(f"/api/firms/{created['id']}").get_json()
    assert len(draft["individuals"]) == 3


def test_save_rejects_malformed_key(client, created):
    payload = make_payload(
        individuals=[make_individual("t", "Ana")],
        fitness=[{"questionId": "t::honesty", "response": "no"}],
    )
    assert client.put(f"/api/firms/{created['id']}", json=payload).status_code == 400


def test_create_rejects_wrongly_typed_fields(client):
    payload = make_payload(firm_type=["Bank"], individuals=[{"id": "t1", "name": 5}])
    resp = client.post("/api/firms", json=payload)
    assert resp.status_code == 400
    assert resp.get_json()["details"] == [
        "firmType must be a string",
        "Individual #1 name must be a string",
    ]
    assert client.get("/api/firms").get_json()["drafts"] == []


def test_save_requires_json(client, created):
    resp = client.put(f"/api/firms/{created['id']}", data="firm", content_type="text/plain")
    assert resp.status_code == 400


def test_save_reports_dropped_responses(client, created):
    payload = make_payload(
        individuals=[make_individual("t", "Ana")],
        fitness=[make_response("someone-else", "honesty", "adverse_media", "yes")],
    )
    data = client.put(f"/api/firms/{created['id']}", json=payload).get_json()
    assert data["warnings"][0]["id"] == "fitness-dropped"


def test_persistence_failure_is_retryable(client, created, monkeypatch):
    def failing_replace(firm, reconciled):
        raise OperationalError("INSERT", {}, Exception("database is locked"))

    monkeypatch.setattr(draft_store, "_replace", failing_replace)
    resp = client.put(f"/api/firms/{created['id']}", json=board_ready_payload())
    assert resp.status_code == 500
    assert resp.get_json()["error"] == RETRY_MESSAGE


def test_missing_draft(client):
    assert client.get("/api/firms/4242").status_code == 404
    assert client.delete("/api/firms/4242").status_code == 404


def test_foreign_draft_forbidden(created, member_client):
    assert member_client.get(f"/api/firms/{created['id']}").status_code == 403
    assert member_client.get("/api/firms").get_json()["drafts"] == []


def test_list_drafts(client, created):
    drafts = client.get("/api/firms").get_json()["drafts"]
    assert [d["id"] for d in drafts] == [created["id"]]
    assert drafts[0]["firmName"] == "Acme Payments Ltd"


def test_delete_draft(client, created):
    assert client.delete(f"/api/firms/{created['id']}").status_code == 200
    assert client.get(f"/api/firms/{created['id']}").status_code == 404


def test_delete_individual(client, created):
    ana = created["idMap"]["temp-1"]
    resp = client.delete(f"/api/firms/{created['id']}/individuals/{ana}")
    assert resp.status_code == 200
    draft = resp.get_json()["draft"]
    assert ana not in {i["id"] for i in draft["individuals"]}
    assert draft["responsibilityOwners"] == {}
    assert len(draft["fitnessResponses"]) == 60


def test_orphaned_clear(client, created):
    payload = make_payload(
        firm_type="Bank", category="enhanced",
        individuals=[make_individual("t", "Ana", ["SMF1"])],
        assignments={"A": True, "K": True},
    )
    client.put(f"/api/firms/{created['id']}", json=payload)
    payload["firmProfile"]["smcrCategory"] = "core"
    payload["individuals"] = client.get(f"/api/firms/{created['id']}").get_json()["individuals"]
    draft = client.put(f"/api/firms/{created['id']}", json=payload).get_json()["draft"]
    assert draft["orphanedResponsibilities"] == ["K"]

    data = client.post(f"/api/firms/{created['id']}/orphaned/clear").get_json()
    assert data["cleared"] == ["K"]
    assert data["draft"]["orphanedResponsibilities"] == []


# =============================================================================
# Derived views
# =============================================================================

def test_insights_for_board_ready_draft(client, created):
    data = client.get(f"/api/firms/{created['id']}/insights").get_json()

    assert data["readiness"]["label"] == "Board-ready"
    assert data["readiness"]["score"] == 90
    assert data["readiness"]["badge"] == "success"
    assert data["riskSummary"] == {"total": 3, "high": 0, "medium": 0, "low": 0, "clear": 3}
    assert data["orphanedResponsibilities"] == []
    assert data["responsibilityCoverage"] == 100
    assert data["stepStatuses"]["reports"] == "done"
    assert [a["id"] for a in data["nextActions"]] == ["fit-evidence"]


def test_insights_step_param(client, created):
    data = client.get(f"/api/firms/{created['id']}/insights?step=fitness").get_json()
    assert data["stepStatuses"]["fitness"] == "active"


def test_insights_owner_suggestions(client):
    payload = make_payload(
        individuals=[make_individual("t1", "Ana", ["PSD-COMP"]), make_individual("t2", "Ben", ["PSD-OPS"])],
        assignments={"P2": True, "P4": True},
    )
    firm_id = client.post("/api/firms", json=payload).get_json()["id"]
    data = client.get(f"/api/firms/{firm_id}/insights").get_json()
    suggested = {s["ref"]: s["suggestedOwnerName"] for s in data["ownerSuggestions"]}
    assert suggested == {"P2": "Ana", "P4": "Ben"}
    assert data["riskSummary"]["total"] == 2


def test_csv_export(client, created):
    resp = client.get(f"/api/firms/{created['id']}/export/responsibilities.csv")
    assert resp.status_code == 200
    assert resp.mimetype == "text/csv"
    assert "smcr-responsibilities-acme-payments-ltd-" in resp.headers["Content-Disposition"]
    text = resp.get_data(as_text=True).lstrip("\ufeff")
    lines = text.strip().split("\n")
    assert lines[0].startswith("PR Reference,Responsibility")
    assert len(lines) == 7


def test_dashboard(client, created):
    data = client.get("/").get_json()
    assert data["stats"]["total_drafts"] == 1
    assert data["stats"]["board_ready"] == 1
    assert data["drafts"][0]["readiness"]["label"] == "Board-ready"
    assert data["drafts"][0]["icon"] == "bi-credit-card"
