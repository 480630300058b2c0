# dietplanner/tests/test_preferences_account_api.py
# Purpose: /api/user-preferences upsert semantics and /api/account deletion.

from dietplanner.config import db
from dietplanner.models import ChatSession, MealPlan, MultiDayPlan
from dietplanner.services.ai_models import DEFAULT_AI_MODEL
from dietplanner.tests.helpers import ALICE, BOB, auth_headers, plan_content, startup_payload


def test_preferences_default_without_row(client):
    res = client.get("/api/user-preferences", headers=auth_headers())
    assert res.status_code == 200
    assert res.get_json() == {
        "language": "en",
        "theme": "light",
        "ai_model": DEFAULT_AI_MODEL,
        "terms_accepted": False,
        "terms_accepted_at": None,
    }


def test_preferences_partial_update_returns_stored_values(client):
    res = client.put("/api/user-preferences", json={"theme": "dark"}, headers=auth_headers())
    assert res.status_code == 200
    assert res.get_json()["theme"] == "dark"
    assert res.get_json()["language"] == "en"

    res = client.put("/api/user-preferences", json={"language": "pl"}, headers=auth_headers())
    prefs = res.get_json()
    assert prefs["language"] == "pl"
    assert prefs["theme"] == "dark"

    # another user is unaffected
    assert client.get("/api/user-preferences", headers=auth_headers("bob-token")).get_json()["theme"] == "light"


def test_terms_acceptance_timestamp(client):
    prefs = client.put("/api/user-preferences", json={"terms_accepted": True}, headers=auth_headers()).get_json()
    assert prefs["terms_accepted"] is True
    stamped = prefs["terms_accepted_at"]
    assert stamped is not None

    # accepting again keeps the original timestamp
    again = client.put("/api/user-preferences", json={"terms_accepted": True}, headers=auth_headers()).get_json()
    assert again["terms_accepted_at"] == stamped

    revoked = client.put("/api/user-preferences", json={"terms_accepted": False}, headers=auth_headers()).get_json()
    assert revoked["terms_accepted"] is False
    assert revoked["terms_accepted_at"] is None


def test_preferences_validation(client):
    assert client.put("/api/user-preferences", json={}, headers=auth_headers()).status_code == 400
    assert client.put("/api/user-preferences", json={"language": "de"}, headers=auth_headers()).status_code == 400
    res = client.put("/api/user-preferences", json={"ai_model": "acme/unknown"}, headers=auth_headers())
    assert res.status_code == 400
    assert res.get_json()["error"] == "Unknown AI model: acme/unknown"


def test_preferences_require_a_session(client):
    assert client.put("/api/user-preferences", json={"theme": "dark"}).status_code == 401


def _seed(client, token):
    client.post("/api/ai/sessions", json=startup_payload(), headers=auth_headers(token))
    client.post(
        "/api/meal-plans",
        json={"name": "Plan", "plan_content": plan_content(), "startup_data": {}},
        headers=auth_headers(token),
    )
    client.post(
        "/api/multi-day-plans",
        json={
            "name": "Week",
            "day_plans": [{"day_number": 1, "plan_content": plan_content(), "startup_data": {}}],
        },
        headers=auth_headers(token),
    )


def test_delete_account_removes_plans_and_auth_user(app, client, fake_admin):
    _seed(client, "alice-token")
    _seed(client, "bob-token")
    client.set_cookie("sb-access-token", "alice-token")
    client.set_cookie("sb-refresh-token", "alice-refresh")

    res = client.delete("/api/account")
    assert res.status_code == 204
    assert ("delete_user", ALICE.id) in fake_admin.calls
    cleared = [h for h in res.headers.getlist("Set-Cookie") if h.startswith("sb-access-token=")]
    assert cleared and "Max-Age=0" in cleared[0]

    with app.app_context():
        assert db.session.query(MealPlan).filter_by(user_id=ALICE.id).count() == 0
        assert db.session.query(MultiDayPlan).filter_by(user_id=ALICE.id).count() == 0
        # chat sessions are kept
        assert db.session.query(ChatSession).filter_by(user_id=ALICE.id).count() == 1
        assert db.session.query(MealPlan).filter_by(user_id=BOB.id).count() == 2
        assert db.session.query(MultiDayPlan).filter_by(user_id=BOB.id).count() == 1


def test_delete_account_auth_failure_is_500(client, fake_admin):
    fake_admin.error = RuntimeError("service role rejected")
    res = client.delete("/api/account", headers=auth_headers())
    assert res.status_code == 500
    body = res.get_json()
    assert body["error"] == "An internal error occurred"
    assert "service role rejected" not in str(body)


def test_delete_account_without_admin_client(app, client, monkeypatch):
    def _missing():
        raise RuntimeError("Supabase URL and key must be configured")

    monkeypatch.setitem(app.extensions, "supabase_admin_factory", _missing)
    res = client.delete("/api/account", headers=auth_headers())
    assert res.status_code == 500
    assert res.get_json()["details"] == "Account deletion is unavailable"


def test_delete_account_requires_a_session(client, fake_admin):
    assert client.delete("/api/account").status_code == 401
    assert fake_admin.calls == []
