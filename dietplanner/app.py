# dietplanner/app.py
# Flask serves the SPA shell and exposes the /api routes.
# Run with:  gunicorn dietplanner.app:app

from flask import jsonify, render_template, request

from .config import app
from .observability import (
    error_payload,
    init_logging,
    register_error_handlers,
    register_latency_logging,
    register_request_id,
)
from .ratelimit import init_rate_limiter
from .routes.account import account_bp
from .routes.ai import ai_bp
from .routes.auth import auth_bp
from .routes.meal_plans import meal_plans_bp
from .routes.multi_day_plans import multi_day_plans_bp
from .routes.pages import pages_bp
from .routes.preferences import preferences_bp
from .security import register_security_headers
from .services.openrouter_client import CompletionService, build_openrouter_client
from .services.supabase_client import make_supabase_factory
from .session_guard import register_session_guard

from . import models  # noqa: F401  (register tables with the metadata)

# ---------------------- Collaborators (swappable in tests) ----------------------
app.extensions["completion"] = CompletionService(
    client=build_openrouter_client(
        api_key=app.config["OPENROUTER_API_KEY"],
        base_url=app.config["OPENROUTER_BASE_URL"],
        timeout=app.config["OPENROUTER_TIMEOUT"],
    ),
    logger=app.logger,
    timeout=app.config["OPENROUTER_TIMEOUT"],
    breaker_threshold=3,
    breaker_cooldown=20.0,
)
app.extensions["supabase_factory"] = make_supabase_factory(
    app.config["SUPABASE_URL"], app.config["SUPABASE_KEY"]
)
app.extensions["supabase_admin_factory"] = make_supabase_factory(
    app.config["SUPABASE_URL"], app.config["SUPABASE_SERVICE_ROLE_KEY"]
)

# ---------------------- Cross-cutting initialization ----------------------
# Request id first so every later hook (and the guard's logs) can see it.
init_logging(app)
register_request_id(app)
register_session_guard(app)
register_latency_logging(app)
register_error_handlers(app)
register_security_headers(app)

# ---------------------- Blueprints -----------------------------------------
app.register_blueprint(ai_bp, url_prefix="/api/ai")
app.register_blueprint(meal_plans_bp, url_prefix="/api/meal-plans")
app.register_blueprint(multi_day_plans_bp, url_prefix="/api/multi-day-plans")
app.register_blueprint(preferences_bp, url_prefix="/api/user-preferences")
app.register_blueprint(account_bp, url_prefix="/api/account")
app.register_blueprint(auth_bp, url_prefix="/api/auth")
app.register_blueprint(pages_bp)


@app.route("/health", methods=["GET"])
def health():
    return jsonify({"status": "ok"}), 200


# ---------------------- SPA FALLBACK FOR ROUTING -------------------------
# Any non-API 404 returns the shell so client-side routes work.
@app.errorhandler(404)
def not_found(e):
    if request.path.startswith("/api"):
        return jsonify(error_payload(e.description or "Not Found", 404)), 404
    return render_template("index.html")
# -------------------------------------------------------------------------

# >>> Initialize rate limiter AFTER routes are registered
init_rate_limiter(app)

if __name__ == "__main__":
    app.run(debug=True)
