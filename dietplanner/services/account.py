# dietplanner/services/account.py
# Account deletion: the user's plans go, chat sessions stay, then the auth
# user is removed with the service-role client.

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from ..config import db
from ..errors import DatabaseError
from . import meal_plans, multi_day_plans

logger = logging.getLogger(__name__)


def delete_user_account(user_id: str, admin) -> None:
    """Delete all plans of ``user_id`` in one transaction, then the auth user.

    ``admin`` is a SupabaseAuth built with the service-role key.
    ai_chat_sessions rows are kept; plans referencing them are already gone.
    """
    try:
        multi_count = multi_day_plans.delete_all_for_user(user_id)
        db.session.flush()
        plan_count = meal_plans.delete_all_for_user(user_id)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.error("account.delete.db_error", exc_info=True, extra={"event": "account.delete", "user_id": user_id})
        raise DatabaseError(f"Failed to delete plans for user {user_id}", original_error=exc) from exc

    logger.info(
        "account.plans.deleted",
        extra={"event": "account.delete", "user_id": user_id, "meal_plans": plan_count, "multi_day_plans": multi_count},
    )

    try:
        admin.delete_user(user_id)
    except Exception as exc:  # noqa: BLE001 - SDK raises AuthError or transport errors
        logger.error("account.auth_user.delete_error", exc_info=True, extra={"event": "account.delete", "user_id": user_id})
        raise DatabaseError(f"Failed to delete auth user {user_id}", original_error=exc) from exc

    logger.info("account.delete", extra={"event": "account.delete", "user_id": user_id})
