# dietplanner/routes/account.py
# Flask Blueprint: /api/account (self-service account deletion).

from flask import Blueprint, current_app, make_response

from ..errors import DatabaseError
from ..services import account
from ..session_guard import clear_auth_cookies, require_user

account_bp = Blueprint("account", __name__)


@account_bp.route("", methods=["DELETE"])
def delete_account():
    auth = require_user()
    try:
        admin = current_app.extensions["supabase_admin_factory"]()
    except Exception as exc:  # noqa: BLE001 - missing service-role key or client error
        raise DatabaseError("Account deletion is unavailable", original_error=exc) from exc
    account.delete_user_account(auth.user_id, admin)
    resp = make_response("", 204)
    return clear_auth_cookies(resp)
