# dietplanner/tests/conftest.py
# Shared fixtures: the real app on in-memory SQLite, with the Supabase client
# factories and the completion service swapped for in-test fakes.

from importlib import import_module

import pytest

from dietplanner.tests.helpers import ALICE, BOB

TOKENS = {"alice-token": ALICE, "bob-token": BOB}


class FakeAuth:
    """Stands in for SupabaseAuth; records every call."""

    def __init__(self, users=None, refreshable=None):
        self.users = dict(users or TOKENS)
        self.refreshable = dict(refreshable or {})  # refresh token -> (AuthUser, TokenPair)
        self.calls = []
        self.sign_in_result = None
        self.sign_up_result = None
        self.error = None

    def get_user(self, access_token):
        self.calls.append(("get_user", access_token))
        return self.users.get(access_token)

    def refresh(self, access_token, refresh_token):
        self.calls.append(("refresh", refresh_token))
        return self.refreshable.get(refresh_token)

    def sign_in(self, email, password):
        self.calls.append(("sign_in", email))
        if self.error:
            raise self.error
        return self.sign_in_result

    def sign_up(self, email, password, redirect_to=None):
        self.calls.append(("sign_up", email, redirect_to))
        if self.error:
            raise self.error
        return self.sign_up_result

    def sign_out(self):
        self.calls.append(("sign_out",))

    def send_password_reset(self, email, redirect_to):
        self.calls.append(("send_password_reset", email, redirect_to))
        if self.error:
            raise self.error

    def update_password(self, access_token, refresh_token, new_password):
        self.calls.append(("update_password", access_token, refresh_token))
        if self.error:
            raise self.error

    def delete_user(self, user_id):
        self.calls.append(("delete_user", user_id))
        if self.error:
            raise self.error


class FakeCompletion:
    """Stands in for CompletionService.complete; captures the messages sent."""

    def __init__(self, reply="Here is your meal plan."):
        self.reply = reply
        self.error = None
        self.before_reply = None
        self.calls = []

    def complete(self, model, messages):
        self.calls.append({"model": model, "messages": [dict(m) for m in messages]})
        if self.before_reply is not None:
            self.before_reply()
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture()
def app(monkeypatch):
    app = import_module("dietplanner.app").app
    db = import_module("dietplanner.config").db
    with app.app_context():
        db.create_all()
    app.extensions["rate_limiter"].reset()
    monkeypatch.setitem(app.config, "IS_PRODUCTION", False)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def fake_auth(app, monkeypatch):
    auth = FakeAuth()
    monkeypatch.setitem(app.extensions, "supabase_factory", lambda: auth)
    return auth


@pytest.fixture()
def fake_admin(app, monkeypatch):
    admin = FakeAuth()
    monkeypatch.setitem(app.extensions, "supabase_admin_factory", lambda: admin)
    return admin


@pytest.fixture()
def completion(app, monkeypatch):
    fake = FakeCompletion()
    monkeypatch.setitem(app.extensions, "completion", fake)
    return fake


@pytest.fixture()
def client(app, fake_auth, completion):
    with app.test_client() as c:
        yield c


