# dietplanner/services/supabase_client.py
# Purpose: Thin gateway over the Supabase Auth SDK. The session guard, auth
# routes and account deletion talk to this instead of the raw client so tests
# can swap in a fake through app.extensions["supabase_factory"].

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from supabase import AuthError, Client, ClientOptions, create_client

from ..errors import UnauthorizedError, ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthUser:
    id: str
    email: Optional[str] = None


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


def _to_user(user) -> Optional[AuthUser]:
    if user is None or not getattr(user, "id", None):
        return None
    return AuthUser(id=str(user.id), email=getattr(user, "email", None))


def _to_tokens(session) -> Optional[TokenPair]:
    if session is None or not getattr(session, "access_token", None):
        return None
    return TokenPair(access_token=session.access_token, refresh_token=session.refresh_token)


class SupabaseAuth:
    """Per-request auth client. Holds no state beyond the SDK client itself."""

    def __init__(self, client: Client) -> None:
        self._client = client

    # ---- Session resolution ------------------------------------------------------

    def get_user(self, access_token: str) -> Optional[AuthUser]:
        """Validate an access token with the auth server; None when rejected."""
        try:
            resp = self._client.auth.get_user(access_token)
        except Exception as exc:  # noqa: BLE001 - AuthError, malformed JWT or transport failure
            logger.info("supabase.get_user.rejected", extra={"event": "auth.token.rejected", "error": str(exc)})
            return None
        return _to_user(getattr(resp, "user", None)) if resp else None

    def refresh(self, access_token: str, refresh_token: str) -> Optional[Tuple[AuthUser, TokenPair]]:
        """Exchange the stored pair for a fresh one; None when the refresh token is dead."""
        try:
            resp = self._client.auth.set_session(access_token, refresh_token)
        except Exception as exc:  # noqa: BLE001
            logger.info("supabase.refresh.rejected", extra={"event": "auth.refresh.rejected", "error": str(exc)})
            return None
        user = _to_user(getattr(resp, "user", None))
        tokens = _to_tokens(getattr(resp, "session", None))
        if user is None or tokens is None:
            return None
        return user, tokens

    # ---- Account flows -------------------------------------------------------

    def sign_in(self, email: str, password: str) -> Tuple[AuthUser, TokenPair]:
        try:
            resp = self._client.auth.sign_in_with_password({"email": email, "password": password})
        except AuthError as exc:
            logger.info("supabase.sign_in.rejected", extra={"event": "auth.login.failed", "error": str(exc)})
            raise UnauthorizedError("Invalid email or password") from exc
        user = _to_user(resp.user)
        tokens = _to_tokens(resp.session)
        if user is None or tokens is None:
            raise UnauthorizedError("Invalid email or password")
        return user, tokens

    def sign_up(self, email: str, password: str, redirect_to: Optional[str] = None) -> Tuple[AuthUser, Optional[TokenPair]]:
        """Register a user. The token pair is None while email confirmation is pending."""
        credentials = {"email": email, "password": password}
        if redirect_to:
            credentials["options"] = {"email_redirect_to": redirect_to}
        try:
            resp = self._client.auth.sign_up(credentials)
        except AuthError as exc:
            raise ValidationError(str(exc) or "Registration failed") from exc
        user = _to_user(resp.user)
        if user is None:
            raise ValidationError("Registration failed")
        return user, _to_tokens(resp.session)

    def sign_out(self) -> None:
        try:
            self._client.auth.sign_out()
        except AuthError as exc:
            # The local cookies are cleared regardless; the server session expires on its own.
            logger.warning("supabase.sign_out.error", extra={"event": "auth.logout.error", "error": str(exc)})

    def send_password_reset(self, email: str, redirect_to: str) -> None:
        self._client.auth.reset_password_for_email(email, {"redirect_to": redirect_to})

    def update_password(self, access_token: str, refresh_token: str, new_password: str) -> None:
        try:
            self._client.auth.set_session(access_token, refresh_token)
            self._client.auth.update_user({"password": new_password})
        except AuthError as exc:
            raise ValidationError(str(exc) or "Password update failed") from exc

    # ---- Admin (service role client only) -----------------------------------

    def delete_user(self, user_id: str) -> None:
        self._client.auth.admin.delete_user(user_id)


def make_supabase_factory(url: Optional[str], key: Optional[str]) -> Callable[[], SupabaseAuth]:
    """Return a zero-arg factory building a fresh SupabaseAuth per call.

    Raises RuntimeError at call time when the project URL or key is missing,
    which the session guard logs and treats as "no identity".
    """

    def _factory() -> SupabaseAuth:
        if not url or not key:
            raise RuntimeError("Supabase URL and key must be configured")
        client = create_client(
            url,
            key,
            options=ClientOptions(auto_refresh_token=False, persist_session=False),
        )
        return SupabaseAuth(client)

    return _factory
