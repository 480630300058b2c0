# dietplanner/ratelimit.py
# Per-client request budgets. The AI endpoints spend OpenRouter credits, so
# session creation and follow-up messages draw from one shared budget.

from typing import Iterable

from flask import jsonify, request
from flask_limiter import Limiter
from flask_limiter.errors import RateLimitExceeded
from flask_limiter.util import get_remote_address

from .observability import error_payload

AI_ENDPOINTS = ("ai.create_session", "ai.send_message")
AI_LIMIT_SCOPE = "ai-endpoints"


def client_key() -> str:
    """Caller address as seen past Cloudflare or the first proxy hop."""
    edge = request.headers.get("CF-Connecting-IP", "").strip()
    if edge:
        return edge
    forwarded = request.headers.get("X-Forwarded-For", "")
    first_hop = forwarded.split(",")[0].strip()
    return first_hop or get_remote_address()


def apply_shared_limit(app, limiter: Limiter, endpoints: Iterable[str], limit: str, scope: str) -> None:
    """Wrap registered view functions so they count against one budget."""
    shared = limiter.shared_limit(limit, scope=scope)
    for endpoint in endpoints:
        view = app.view_functions.get(endpoint)
        if view is None:
            app.logger.warning("ratelimit.endpoint.missing", extra={"event": "ratelimit", "endpoint": endpoint})
            continue
        app.view_functions[endpoint] = shared(view)


def init_rate_limiter(app) -> Limiter:
    """Attach Flask-Limiter; must run after the blueprints are registered."""
    existing = app.extensions.get("rate_limiter")
    if app.config.get("_RATE_LIMITER_INIT", False) and existing is not None:
        return existing

    app.config["RATELIMIT_HEADERS_ENABLED"] = True
    limiter = Limiter(
        key_func=client_key,
        app=app,
        default_limits=[app.config["RATELIMIT_DEFAULT"]],
        storage_uri=app.config["RATELIMIT_STORAGE_URI"],
        headers_enabled=True,
    )
    limiter.request_filter(lambda: request.path == "/health")

    @app.errorhandler(RateLimitExceeded)
    def _too_many_requests(e):
        payload = error_payload("Too Many Requests", 429, details=str(e.description))
        app.logger.warning(
            "http.rate_limited",
            extra={"event": "http.rate_limited", "path": request.path, "request_id": payload["request_id"]},
        )
        return jsonify(payload), 429

    apply_shared_limit(app, limiter, AI_ENDPOINTS, app.config["AI_RATE_LIMIT"], AI_LIMIT_SCOPE)

    # Flask-Limiter registers itself under extensions["limiter"]
    app.extensions["rate_limiter"] = limiter
    app.config["_RATE_LIMITER_INIT"] = True
    return limiter
