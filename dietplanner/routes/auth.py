# dietplanner/routes/auth.py
# Flask Blueprint: /api/auth/* (JSON endpoints over Supabase Auth).
# Session cookies are written with the session guard's cookie policy.

from flask import Blueprint, current_app, jsonify

from ..errors import UnauthorizedError
from ..schemas import (
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    UpdatePreferencesRequest,
)
from ..services import preferences
from ..session_guard import clear_auth_cookies, current_auth, set_auth_cookies
from .common import parse_body

auth_bp = Blueprint("auth", __name__)

RESET_EMAIL_MESSAGE = "If an account exists for this email, a password reset link has been sent."


def _auth_client():
    client = current_auth().client
    if client is None:
        raise UnauthorizedError("Authentication service unavailable")
    return client


def _user_json(user):
    return {"id": user.id, "email": user.email}


@auth_bp.route("/login", methods=["POST"])
def login():
    req = parse_body(LoginRequest)
    user, tokens = _auth_client().sign_in(req.email, req.password)
    current_app.logger.info("auth.login", extra={"event": "auth.login", "user_id": user.id})
    resp = jsonify({"user": _user_json(user)})
    return set_auth_cookies(resp, tokens), 200


@auth_bp.route("/register", methods=["POST"])
def register():
    """Create the account and record terms acceptance. No session until the email is confirmed."""
    req = parse_body(RegisterRequest)
    redirect_to = current_app.config["APP_URL"].rstrip("/") + current_app.config["LOGIN_PATH"]
    user, tokens = _auth_client().sign_up(req.email, req.password, redirect_to=redirect_to)
    preferences.update_preferences(user.id, UpdatePreferencesRequest(terms_accepted=True))
    current_app.logger.info("auth.register", extra={"event": "auth.register", "user_id": user.id})

    resp = jsonify({"user": _user_json(user), "requires_confirmation": tokens is None})
    if tokens is not None:
        set_auth_cookies(resp, tokens)
    return resp, 201


@auth_bp.route("/logout", methods=["POST"])
def logout():
    auth = current_auth()
    if auth.client is not None and auth.user is not None:
        auth.client.sign_out()
    current_app.logger.info("auth.logout", extra={"event": "auth.logout", "user_id": auth.user_id})
    resp = jsonify({"message": "Logged out"})
    return clear_auth_cookies(resp), 200


@auth_bp.route("/forgot-password", methods=["POST"])
def forgot_password():
    """Same answer whether or not the email is registered."""
    req = parse_body(ForgotPasswordRequest)
    redirect_to = current_app.config["APP_URL"].rstrip("/") + current_app.config["RECOVERY_PATH"]
    client = current_auth().client
    if client is not None:
        try:
            client.send_password_reset(req.email, redirect_to)
        except Exception:  # noqa: BLE001 - never reveal whether the account exists
            current_app.logger.warning(
                "auth.forgot_password.error", exc_info=True, extra={"event": "auth.forgot_password"}
            )
    return jsonify({"message": RESET_EMAIL_MESSAGE}), 200


@auth_bp.route("/reset-password", methods=["POST"])
def reset_password():
    """Set a new password inside the recovery session opened by the emailed link.

    The SPA forwards the link's token pair in the body; a cookie session works too.
    Supabase validates the pair when the session is set.
    """
    req = parse_body(ResetPasswordRequest)
    auth = current_auth()
    if req.access_token and req.refresh_token:
        access, refresh = req.access_token, req.refresh_token
    elif auth.user is not None and auth.access_token and auth.refresh_token:
        access, refresh = auth.access_token, auth.refresh_token
    else:
        raise UnauthorizedError("Password reset link is invalid or has expired")
    _auth_client().update_password(access, refresh, req.new_password)
    current_app.logger.info("auth.reset_password", extra={"event": "auth.reset_password", "user_id": auth.user_id})
    return jsonify({"message": "Password updated"}), 200
