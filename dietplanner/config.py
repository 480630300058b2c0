# dietplanner/config.py
# Flask app, database handle, migrations and CORS. Serves the built SPA from ../client/dist.

from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import MetaData
from flask_migrate import Migrate
from flask_cors import CORS
from dotenv import load_dotenv
import os

load_dotenv()  # load .env for local dev

# --- Base paths -----------------------------------------------------------
BASE_DIR = os.path.abspath(os.path.dirname(__file__))
# .../dietplanner/instance/app.db regardless of cwd
default_db_path = os.path.join(BASE_DIR, "instance", "app.db")
os.makedirs(os.path.dirname(default_db_path), exist_ok=True)
# -------------------------------------------------------------------------

# Naming conventions for Alembic
naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}
metadata = MetaData(naming_convention=naming_convention)


def _is_production() -> bool:
    env = (os.getenv("APP_ENV") or os.getenv("FLASK_ENV") or "").lower()
    return env in ("production", "prod")


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


app = Flask(
    __name__,
    static_url_path="",  # serve assets at root
    static_folder=os.path.join("..", "client", "dist"),
)

app.secret_key = os.getenv("FLASK_SECRET_KEY", "dev")

# DB URI: Supabase Postgres in production, otherwise an absolute SQLite path
app.config["SQLALCHEMY_DATABASE_URI"] = os.getenv(
    "DATABASE_URI",
    f"sqlite:///{default_db_path}",
)
app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
app.config["SQLALCHEMY_ENGINE_OPTIONS"] = {"pool_pre_ping": True}

# --- Deployment flags -----------------------------------------------------
app.config["IS_PRODUCTION"] = _is_production()
app.config["PREFERRED_URL_SCHEME"] = "https" if app.config["IS_PRODUCTION"] else "http"
app.config["APP_URL"] = os.getenv("APP_URL", "http://localhost:3000")

# --- Supabase (auth) ------------------------------------------------------
app.config["SUPABASE_URL"] = os.getenv("SUPABASE_URL")
app.config["SUPABASE_KEY"] = os.getenv("SUPABASE_KEY")
app.config["SUPABASE_SERVICE_ROLE_KEY"] = os.getenv("SUPABASE_SERVICE_ROLE_KEY")

# Session cookies mirrored by the session guard
app.config["AUTH_COOKIE_MAX_AGE"] = _int_env("SESSION_COOKIE_MAX_AGE", 60 * 60 * 24 * 7)
app.config["PROTECTED_PREFIX"] = "/app"
app.config["AUTH_PREFIX"] = "/auth"
app.config["LOGIN_PATH"] = "/auth/login"
app.config["DASHBOARD_PATH"] = "/app/dashboard"
# Recovery links land here while the recovery session is already live
app.config["RECOVERY_PATH"] = "/auth/reset-password"

# --- OpenRouter (completions) ---------------------------------------------
app.config["OPENROUTER_API_KEY"] = os.getenv("OPENROUTER_API_KEY")
app.config["OPENROUTER_BASE_URL"] = os.getenv("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1")
app.config["OPENROUTER_TIMEOUT"] = float(os.getenv("OPENROUTER_TIMEOUT", "30"))

# --- Rate limits (Flask-Limiter) -------------------------------------------
app.config["RATELIMIT_DEFAULT"] = os.getenv("RATELIMIT_DEFAULT", "300/minute")
app.config["AI_RATE_LIMIT"] = os.getenv("AI_RATE_LIMIT", "10/minute;100/hour;300/day")
app.config["RATELIMIT_STORAGE_URI"] = os.getenv("RATELIMIT_STORAGE_URI", "memory://")

db = SQLAlchemy(app=app, metadata=metadata)
migrate = Migrate(app=app, db=db, directory=os.path.join(BASE_DIR, "migrations"))

# CORS:
# Same-origin in production; localhost origins help when the front end runs separately.
frontend_origin = os.getenv("FRONTEND_ORIGIN")  # e.g., http://localhost:3000
origins = [
    "http://localhost:3000",
    "http://localhost:4321",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:4321",
]
if frontend_origin:
    origins.append(frontend_origin)

CORS(app, supports_credentials=True, origins=origins)
