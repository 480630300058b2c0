# dietplanner/services/ai_sessions.py
# Service layer for AI chat sessions that draft meal plans.
# Routes validate input and resolve the caller; this module owns prompts,
# the completion call and persistence. The completion call always happens
# BEFORE the row is written, so an upstream failure leaves nothing behind.

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from ..config import db
from ..errors import ConflictError, DatabaseError, NotFoundError
from ..models import ChatSession
from ..schemas import CreateAiSessionRequest, UserMessage
from .ai_models import DEFAULT_AI_MODEL
from .meal_plans import to_iso
from .prompts import SYSTEM_MARKER, format_user_prompt, is_multi_day, system_prompt, to_completion_messages

logger = logging.getLogger(__name__)


def _response(session: ChatSession, reply: Dict[str, str]) -> Dict[str, Any]:
    return {
        "session_id": session.id,
        "message": reply,
        "prompt_count": session.prompt_count,
    }


def create_session(
    startup: CreateAiSessionRequest,
    user_id: str,
    *,
    completion,
    language: str = "en",
    model: Optional[str] = None,
) -> Dict[str, Any]:
    """Open a session: prompt the model with the startup data, then persist the exchange."""
    model = model or DEFAULT_AI_MODEL
    system_text = system_prompt(language, is_multi_day(startup))
    user_text = format_user_prompt(startup, language)

    reply_text = completion.complete(
        model=model,
        messages=[
            {"role": "system", "content": system_text},
            {"role": "user", "content": user_text},
        ],
    )
    reply = {"role": "assistant", "content": reply_text}

    # The stored history has no system role; the marker lets send_message restore it.
    session = ChatSession(
        user_id=user_id,
        message_history=[
            {"role": "user", "content": SYSTEM_MARKER + system_text},
            {"role": "user", "content": user_text},
            reply,
        ],
        prompt_count=1,
        startup_data=startup.model_dump(mode="json", exclude_unset=True),
        model=model,
    )
    try:
        db.session.add(session)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.error("ai.session.create.db_error", exc_info=True, extra={"event": "ai.session.create"})
        raise DatabaseError("Failed to save chat session", original_error=exc) from exc

    logger.info(
        "ai.session.create",
        extra={"event": "ai.session.create", "session_id": session.id, "model": model, "language": language},
    )
    return _response(session, reply)


def _load_owned(session_id: str, user_id: str) -> ChatSession:
    session = (
        db.session.query(ChatSession)
        .filter(ChatSession.id == session_id, ChatSession.user_id == user_id)
        .one_or_none()
    )
    if session is None:
        # Same answer for "missing" and "someone else's"
        raise NotFoundError("Chat session not found")
    return session


def send_message(
    session_id: str,
    message: UserMessage,
    user_id: str,
    *,
    completion,
    model: Optional[str] = None,
) -> Dict[str, Any]:
    """Append a user turn, ask the model, store both messages and bump prompt_count.

    Raises ConflictError when another request updated the session between our
    read and our write; the row is left as the other request wrote it.
    """
    session = _load_owned(session_id, user_id)
    history: List[Dict[str, str]] = list(session.message_history or [])
    user_turn = {"role": message.role, "content": message.content}
    history.append(user_turn)

    reply_text = completion.complete(
        model=model or session.model or DEFAULT_AI_MODEL,
        messages=to_completion_messages(history),
    )
    reply = {"role": "assistant", "content": reply_text}

    # Assign a new list so the JSON column is flagged dirty.
    session.message_history = history + [reply]
    session.prompt_count = (session.prompt_count or 0) + 1
    try:
        db.session.commit()
    except StaleDataError as exc:
        db.session.rollback()
        logger.warning(
            "ai.session.message.conflict",
            extra={"event": "ai.session.conflict", "session_id": session_id},
        )
        raise ConflictError("Chat session was updated by another request; retry") from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.error(
            "ai.session.message.db_error",
            exc_info=True,
            extra={"event": "ai.session.message", "session_id": session_id},
        )
        raise DatabaseError("Failed to save chat message", original_error=exc) from exc

    logger.info(
        "ai.session.message",
        extra={"event": "ai.session.message", "session_id": session_id, "prompt_count": session.prompt_count},
    )
    return _response(session, reply)


def get_session(session_id: str, user_id: str) -> Dict[str, Any]:
    session = _load_owned(session_id, user_id)
    return {
        "id": session.id,
        "message_history": session.message_history or [],
        "prompt_count": session.prompt_count,
        "startup_data": session.startup_data,
        "model": session.model,
        "created_at": to_iso(session.created_at),
        "updated_at": to_iso(session.updated_at),
    }
