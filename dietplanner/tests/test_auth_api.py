# dietplanner/tests/test_auth_api.py
# Purpose: /api/auth/* over a fake Supabase client: cookies on login and
# register, neutral forgot-password answers, reset inside a recovery session.

from dietplanner.errors import UnauthorizedError, ValidationError
from dietplanner.services.supabase_client import AuthUser, TokenPair
from dietplanner.tests.helpers import ALICE, auth_headers

NEW_USER = AuthUser(id="33333333-3333-4333-8333-333333333333", email="carol@example.com")


def _cookies(res):
    return {h.split("=", 1)[0]: h for h in res.headers.getlist("Set-Cookie")}


def test_login_sets_session_cookies(client, fake_auth):
    fake_auth.sign_in_result = (ALICE, TokenPair("a-1", "r-1"))
    res = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "secret123"})
    assert res.status_code == 200
    assert res.get_json() == {"user": {"id": ALICE.id, "email": ALICE.email}}

    cookies = _cookies(res)
    assert cookies["sb-access-token"].startswith("sb-access-token=a-1;")
    assert cookies["sb-refresh-token"].startswith("sb-refresh-token=r-1;")
    assert "SameSite=Strict" in cookies["sb-access-token"]


def test_login_bad_credentials_is_401(client, fake_auth):
    fake_auth.error = UnauthorizedError("Invalid email or password")
    res = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "nope"})
    assert res.status_code == 401
    assert res.get_json()["error"] == "Invalid email or password"
    assert "Set-Cookie" not in res.headers


def test_login_validates_email(client, fake_auth):
    res = client.post("/api/auth/login", json={"email": "not-an-email", "password": "x"})
    assert res.status_code == 400
    assert fake_auth.calls == []


def test_register_records_terms_and_awaits_confirmation(client, fake_auth):
    fake_auth.sign_up_result = (NEW_USER, None)
    res = client.post(
        "/api/auth/register",
        json={
            "email": "carol@example.com",
            "password": "hunter2hunter2",
            "confirmPassword": "hunter2hunter2",
            "termsAccepted": True,
        },
    )
    assert res.status_code == 201
    assert res.get_json() == {"user": {"id": NEW_USER.id, "email": NEW_USER.email}, "requires_confirmation": True}
    assert "Set-Cookie" not in res.headers

    (call,) = [c for c in fake_auth.calls if c[0] == "sign_up"]
    assert call[2].endswith("/auth/login")

    fake_auth.users["carol-token"] = NEW_USER
    prefs = client.get("/api/user-preferences", headers=auth_headers("carol-token")).get_json()
    assert prefs["terms_accepted"] is True
    assert prefs["terms_accepted_at"] is not None


def test_register_with_immediate_session_sets_cookies(client, fake_auth):
    fake_auth.sign_up_result = (NEW_USER, TokenPair("a-2", "r-2"))
    res = client.post(
        "/api/auth/register",
        json={
            "email": "carol@example.com",
            "password": "hunter2hunter2",
            "confirmPassword": "hunter2hunter2",
            "termsAccepted": True,
        },
    )
    assert res.status_code == 201
    assert res.get_json()["requires_confirmation"] is False
    assert "sb-access-token" in _cookies(res)


def test_register_validation(client, fake_auth):
    base = {"email": "carol@example.com", "password": "hunter2hunter2", "confirmPassword": "hunter2hunter2"}
    assert client.post("/api/auth/register", json={**base, "termsAccepted": False}).status_code == 400
    assert client.post("/api/auth/register", json={**base, "confirmPassword": "other1234", "termsAccepted": True}).status_code == 400
    weak = {**base, "password": "short", "confirmPassword": "short", "termsAccepted": True}
    assert client.post("/api/auth/register", json=weak).status_code == 400
    assert fake_auth.calls == []


def test_logout_clears_cookies(client, fake_auth):
    res = client.post("/api/auth/logout", headers=auth_headers())
    assert res.status_code == 200
    assert ("sign_out",) in fake_auth.calls
    cookies = _cookies(res)
    assert "Max-Age=0" in cookies["sb-access-token"]
    assert "Max-Age=0" in cookies["sb-refresh-token"]


def test_forgot_password_answer_is_neutral(client, fake_auth):
    ok = client.post("/api/auth/forgot-password", json={"email": "alice@example.com"})
    fake_auth.error = RuntimeError("User not found")
    failed = client.post("/api/auth/forgot-password", json={"email": "nobody@example.com"})

    assert ok.status_code == failed.status_code == 200
    assert ok.get_json() == failed.get_json()
    (call,) = [c for c in fake_auth.calls if c[0] == "send_password_reset" and c[1] == "alice@example.com"]
    assert call[2].endswith("/auth/reset-password")


def test_reset_password_without_recovery_session_is_401(client, fake_auth):
    body = {"newPassword": "newpass123", "confirmPassword": "newpass123"}
    assert client.post("/api/auth/reset-password", json=body).status_code == 401

    # a bearer token alone carries no refresh token
    res = client.post("/api/auth/reset-password", json=body, headers=auth_headers())
    assert res.status_code == 401
    assert res.get_json()["error"] == "Password reset link is invalid or has expired"
    assert not [c for c in fake_auth.calls if c[0] == "update_password"]


def test_reset_password_with_link_tokens_in_body(client, fake_auth):
    # the SPA reads the pair from the recovery link and cannot write HttpOnly cookies
    body = {
        "newPassword": "newpass123",
        "confirmPassword": "newpass123",
        "accessToken": "recovery-access",
        "refreshToken": "recovery-refresh",
    }
    res = client.post("/api/auth/reset-password", json=body)
    assert res.status_code == 200
    assert res.get_json() == {"message": "Password updated"}
    assert ("update_password", "recovery-access", "recovery-refresh") in fake_auth.calls


def test_reset_password_link_tokens_win_over_cookie_session(client, fake_auth):
    client.set_cookie("sb-access-token", "alice-token")
    client.set_cookie("sb-refresh-token", "alice-refresh")
    body = {
        "newPassword": "newpass123",
        "confirmPassword": "newpass123",
        "accessToken": "recovery-access",
        "refreshToken": "recovery-refresh",
    }
    assert client.post("/api/auth/reset-password", json=body).status_code == 200
    assert ("update_password", "recovery-access", "recovery-refresh") in fake_auth.calls


def test_reset_password_with_cookie_session(client, fake_auth):
    client.set_cookie("sb-access-token", "alice-token")
    client.set_cookie("sb-refresh-token", "alice-refresh")
    body = {"newPassword": "newpass123", "confirmPassword": "newpass123"}
    res = client.post("/api/auth/reset-password", json=body)
    assert res.status_code == 200
    assert ("update_password", "alice-token", "alice-refresh") in fake_auth.calls


def test_reset_password_rejected_link_is_400(client, fake_auth):
    fake_auth.error = ValidationError("Auth session missing!")
    body = {
        "newPassword": "newpass123",
        "confirmPassword": "newpass123",
        "accessToken": "expired-access",
        "refreshToken": "used-refresh",
    }
    res = client.post("/api/auth/reset-password", json=body)
    assert res.status_code == 400


def test_reset_password_needs_both_link_tokens(client, fake_auth):
    body = {"newPassword": "newpass123", "confirmPassword": "newpass123", "accessToken": "recovery-access"}
    assert client.post("/api/auth/reset-password", json=body).status_code == 400
    assert not [c for c in fake_auth.calls if c[0] == "update_password"]


def test_reset_password_without_auth_service_is_401(app, client, monkeypatch):
    def _broken():
        raise RuntimeError("Supabase URL and key must be configured")

    monkeypatch.setitem(app.extensions, "supabase_factory", _broken)
    body = {
        "newPassword": "newpass123",
        "confirmPassword": "newpass123",
        "accessToken": "recovery-access",
        "refreshToken": "recovery-refresh",
    }
    assert client.post("/api/auth/reset-password", json=body).status_code == 401
