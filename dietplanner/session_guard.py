# dietplanner/session_guard.py
# Per-request auth middleware: resolves the caller from Supabase session
# tokens, mirrors refreshed tokens into cookies, and applies the page policy
# (/app/* needs a session, /auth/* bounces signed-in users to the dashboard
# except the password reset page).
# Identity is resolved afresh on every request; nothing is cached.

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from flask import current_app, g, redirect, request

from .errors import UnauthorizedError
from .services.supabase_client import AuthUser, SupabaseAuth, TokenPair

ACCESS_COOKIE = "sb-access-token"
REFRESH_COOKIE = "sb-refresh-token"


@dataclass
class AuthContext:
    """What the guard learned about the caller; routes read it once from g.auth."""

    client: Optional[SupabaseAuth]
    user: Optional[AuthUser]
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    refreshed: bool = False

    @property
    def user_id(self) -> Optional[str]:
        return self.user.id if self.user else None


def _bearer_token() -> Optional[str]:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return token.strip()
    return None


def resolve_auth(client: Optional[SupabaseAuth]) -> AuthContext:
    """Validate the request's tokens against the auth server (refreshing once if needed)."""
    access = _bearer_token() or request.cookies.get(ACCESS_COOKIE)
    refresh = request.cookies.get(REFRESH_COOKIE)
    if client is None or not (access or refresh):
        return AuthContext(client=client, user=None)

    if access:
        user = client.get_user(access)
        if user is not None:
            return AuthContext(client=client, user=user, access_token=access, refresh_token=refresh)

    if refresh:
        result = client.refresh(access or "", refresh)
        if result is not None:
            user, tokens = result
            return AuthContext(
                client=client,
                user=user,
                access_token=tokens.access_token,
                refresh_token=tokens.refresh_token,
                refreshed=True,
            )
    return AuthContext(client=client, user=None)


def _path_in(path: str, prefix: str) -> bool:
    return path == prefix or path.startswith(prefix.rstrip("/") + "/")


# ------------------------------ Cookies --------------------------------------


def _cookie_kwargs() -> dict:
    return {
        "max_age": current_app.config.get("AUTH_COOKIE_MAX_AGE"),
        "path": "/",
        "samesite": "Strict",
        "httponly": True,
        "secure": bool(current_app.config.get("IS_PRODUCTION")),
    }


def set_auth_cookies(resp, tokens: TokenPair):
    """Write the session pair onto a response with the guard's cookie policy."""
    kwargs = _cookie_kwargs()
    resp.set_cookie(ACCESS_COOKIE, tokens.access_token, **kwargs)
    resp.set_cookie(REFRESH_COOKIE, tokens.refresh_token, **kwargs)
    g._auth_cookies_written = True
    return resp


def clear_auth_cookies(resp):
    kwargs = _cookie_kwargs()
    kwargs.pop("max_age")
    resp.delete_cookie(ACCESS_COOKIE, **kwargs)
    resp.delete_cookie(REFRESH_COOKIE, **kwargs)
    g._auth_cookies_written = True
    return resp


# ------------------------------ Route helpers --------------------------------


def current_auth() -> AuthContext:
    return getattr(g, "auth", None) or AuthContext(client=None, user=None)


def require_user() -> AuthContext:
    """AuthContext with a confirmed user, or UnauthorizedError (401)."""
    auth = current_auth()
    if auth.user is None:
        raise UnauthorizedError("Unauthorized", details="You must be logged in to access this resource")
    return auth


# ------------------------------ Registration ---------------------------------


def register_session_guard(app) -> None:
    if app.config.get("_SESSION_GUARD_INIT", False):
        return

    @app.before_request
    def _session_guard():
        if request.path == "/health":
            return None

        client = None
        try:
            client = app.extensions["supabase_factory"]()
        except Exception:  # noqa: BLE001 - any construction failure means "no identity"
            app.logger.error(
                "auth.client.error",
                exc_info=True,
                extra={"event": "auth.client.error", "path": request.path},
            )
        g.auth = resolve_auth(client)

        path = request.path
        if _path_in(path, app.config["PROTECTED_PREFIX"]) and g.auth.user is None:
            app.logger.info("auth.redirect.login", extra={"event": "auth.redirect", "path": path})
            return redirect(app.config["LOGIN_PATH"], code=307)
        if _path_in(path, app.config["RECOVERY_PATH"]):
            return None
        if _path_in(path, app.config["AUTH_PREFIX"]) and g.auth.user is not None:
            app.logger.info("auth.redirect.dashboard", extra={"event": "auth.redirect", "path": path})
            return redirect(app.config["DASHBOARD_PATH"], code=307)
        return None

    @app.after_request
    def _mirror_session_cookies(resp):
        auth = getattr(g, "auth", None)
        if getattr(g, "_auth_cookies_written", False) or auth is None:
            return resp
        if auth.user is not None and auth.access_token and auth.refresh_token:
            set_auth_cookies(resp, TokenPair(auth.access_token, auth.refresh_token))
        return resp

    app.config["_SESSION_GUARD_INIT"] = True
