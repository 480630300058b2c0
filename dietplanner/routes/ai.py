# dietplanner/routes/ai.py
# Flask Blueprint: /api/ai/* (AI chat sessions and the model catalog).

from flask import Blueprint, current_app, jsonify

from ..schemas import CreateAiSessionRequest, SendAiMessageRequest
from ..services import ai_sessions, preferences
from ..services.ai_models import AVAILABLE_AI_MODELS
from ..session_guard import require_user
from .common import parse_body, parse_uuid

ai_bp = Blueprint("ai", __name__)


def _completion():
    return current_app.extensions["completion"]


@ai_bp.route("/sessions", methods=["POST"])
def create_session():
    """Start a session from the startup form; the first plan draft comes back in `message`."""
    auth = require_user()
    startup = parse_body(CreateAiSessionRequest)
    language, model = preferences.language_and_model(auth.user_id)
    result = ai_sessions.create_session(
        startup,
        auth.user_id,
        completion=_completion(),
        language=language,
        model=model,
    )
    return jsonify(result), 201


@ai_bp.route("/sessions/<session_id>", methods=["GET"])
def get_session(session_id: str):
    auth = require_user()
    return jsonify(ai_sessions.get_session(parse_uuid(session_id, "session ID"), auth.user_id)), 200


@ai_bp.route("/sessions/<session_id>/message", methods=["POST"])
def send_message(session_id: str):
    """Follow-up turn. 404 for sessions that are missing or not the caller's."""
    auth = require_user()
    session_id = parse_uuid(session_id, "session ID")
    req = parse_body(SendAiMessageRequest)
    result = ai_sessions.send_message(
        session_id,
        req.message,
        auth.user_id,
        completion=_completion(),
    )
    return jsonify(result), 200


@ai_bp.route("/models", methods=["GET"])
def list_models():
    return jsonify([m.to_dict() for m in AVAILABLE_AI_MODELS]), 200
