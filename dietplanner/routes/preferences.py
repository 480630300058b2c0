# dietplanner/routes/preferences.py
# Flask Blueprint: /api/user-preferences (language, theme, AI model, terms).

from flask import Blueprint, jsonify

from ..schemas import UpdatePreferencesRequest
from ..services import preferences
from ..session_guard import require_user
from .common import parse_body

preferences_bp = Blueprint("preferences", __name__)


@preferences_bp.route("", methods=["GET"])
def get_preferences():
    auth = require_user()
    return jsonify(preferences.get_preferences(auth.user_id)), 200


@preferences_bp.route("", methods=["PUT"])
def update_preferences():
    """Returns the stored values so an optimistic client can reconcile."""
    auth = require_user()
    req = parse_body(UpdatePreferencesRequest)
    return jsonify(preferences.update_preferences(auth.user_id, req)), 200
