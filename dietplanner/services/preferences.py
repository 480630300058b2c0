# dietplanner/services/preferences.py
# One user_preferences row per user, created on first write.
# Reads fall back to defaults so a new user never sees a 404 here.

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError

from ..config import db
from ..errors import DatabaseError, ValidationError
from ..models import UserPreference
from ..schemas import UpdatePreferencesRequest
from .ai_models import DEFAULT_AI_MODEL, is_valid_model_id
from .meal_plans import to_iso

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "en"
DEFAULT_THEME = "light"


def _serialize(row: Optional[UserPreference]) -> Dict[str, Any]:
    if row is None:
        return {
            "language": DEFAULT_LANGUAGE,
            "theme": DEFAULT_THEME,
            "ai_model": DEFAULT_AI_MODEL,
            "terms_accepted": False,
            "terms_accepted_at": None,
        }
    return {
        "language": row.language or DEFAULT_LANGUAGE,
        "theme": row.theme or DEFAULT_THEME,
        "ai_model": row.ai_model or DEFAULT_AI_MODEL,
        "terms_accepted": bool(row.terms_accepted),
        "terms_accepted_at": to_iso(row.terms_accepted_at),
    }


def get_preferences(user_id: str) -> Dict[str, Any]:
    return _serialize(db.session.get(UserPreference, user_id))


def update_preferences(user_id: str, req: UpdatePreferencesRequest) -> Dict[str, Any]:
    """Upsert only the fields present in the request and return the stored result."""
    sent = req.model_fields_set
    if "ai_model" in sent and req.ai_model is not None and not is_valid_model_id(req.ai_model):
        raise ValidationError(f"Unknown AI model: {req.ai_model}")

    row = db.session.get(UserPreference, user_id)
    if row is None:
        row = UserPreference(user_id=user_id, language=DEFAULT_LANGUAGE, theme=DEFAULT_THEME, terms_accepted=False)
        db.session.add(row)

    if "language" in sent and req.language is not None:
        row.language = req.language
    if "theme" in sent and req.theme is not None:
        row.theme = req.theme
    if "ai_model" in sent:
        row.ai_model = req.ai_model
    if "terms_accepted" in sent and req.terms_accepted is not None:
        if req.terms_accepted and not row.terms_accepted:
            row.terms_accepted_at = datetime.now(timezone.utc)
        elif not req.terms_accepted:
            row.terms_accepted_at = None
        row.terms_accepted = req.terms_accepted

    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.error("preferences.update.db_error", exc_info=True, extra={"event": "preferences.update"})
        raise DatabaseError("Failed to update user preferences", original_error=exc) from exc

    logger.info("preferences.update", extra={"event": "preferences.update", "fields": sorted(sent)})
    return _serialize(row)


def language_and_model(user_id: str) -> tuple:
    """(language, ai_model) used to open a new AI session."""
    prefs = get_preferences(user_id)
    return prefs["language"], prefs["ai_model"]
