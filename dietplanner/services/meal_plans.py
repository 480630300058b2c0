# dietplanner/services/meal_plans.py
# Service/repository layer for saved meal plans.
# Every query is scoped to the caller's user_id; a plan owned by someone else
# looks exactly like a missing one.

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from ..config import db
from ..errors import DatabaseError, NotFoundError, ValidationError
from ..models import ChatSession, MealPlan
from ..schemas import (
    CreateMealPlanRequest,
    ListPlansQuery,
    MacroDistribution,
    StartupData,
    UpdateMealPlanRequest,
)

logger = logging.getLogger(__name__)

STARTUP_FIELDS = (
    "patient_age",
    "patient_weight",
    "patient_height",
    "activity_level",
    "target_kcal",
    "target_macro_distribution",
    "meal_names",
    "exclusions_guidelines",
)

_SORT_COLUMNS = {
    "created_at": MealPlan.created_at,
    "updated_at": MealPlan.updated_at,
    "name": MealPlan.name,
}


def to_iso(dt: Optional[datetime]) -> Optional[str]:
    """Aware UTC ISO string (SQLite hands back naive datetimes)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat()


# ------------------------------ Summaries ------------------------------------


def calculate_daily_summary_from_targets(
    target_kcal: Optional[float], macros: Optional[Dict[str, float]]
) -> Dict[str, float]:
    """Grams from kcal targets: protein and carbs 4 kcal/g, fat 9 kcal/g. Zeros if a target is missing."""
    if not target_kcal or not macros:
        return {"kcal": 0, "proteins": 0, "fats": 0, "carbs": 0}
    return {
        "kcal": target_kcal,
        "proteins": round(target_kcal * macros["p_perc"] / 100 / 4),
        "fats": round(target_kcal * macros["f_perc"] / 100 / 9),
        "carbs": round(target_kcal * macros["c_perc"] / 100 / 4),
    }


def resolve_daily_summary(summary: Optional[Dict[str, float]], startup: Optional[Dict[str, Any]]) -> Dict[str, float]:
    """Prefer the plan's own summary; fall back to the targets when it has no calories."""
    if summary and (summary.get("kcal") or 0) > 0:
        return summary
    startup = startup or {}
    return calculate_daily_summary_from_targets(startup.get("target_kcal"), startup.get("target_macro_distribution"))


# ------------------------------ Serialization --------------------------------


def startup_data_of(plan: MealPlan) -> Dict[str, Any]:
    return {field: getattr(plan, field) for field in STARTUP_FIELDS}


def serialize_meal_plan(plan: MealPlan) -> Dict[str, Any]:
    return {
        "id": plan.id,
        "user_id": plan.user_id,
        "name": plan.name,
        "source_chat_session_id": plan.source_chat_session_id,
        "plan_content": plan.plan_content,
        **startup_data_of(plan),
        "is_day_plan": plan.is_day_plan,
        "created_at": to_iso(plan.created_at),
        "updated_at": to_iso(plan.updated_at),
    }


def _list_item(plan: MealPlan) -> Dict[str, Any]:
    startup = startup_data_of(plan)
    return {
        "id": plan.id,
        "name": plan.name,
        "created_at": to_iso(plan.created_at),
        "updated_at": to_iso(plan.updated_at),
        "startup_data": startup,
        "daily_summary": resolve_daily_summary((plan.plan_content or {}).get("daily_summary"), startup),
    }


# ------------------------------ Helpers --------------------------------------


def ensure_source_session(session_id: Optional[str], user_id: str) -> Optional[str]:
    """A plan may only point at one of the caller's own chat sessions."""
    if session_id is None:
        return None
    session_id = str(session_id)
    exists = (
        db.session.query(ChatSession.id)
        .filter(ChatSession.id == session_id, ChatSession.user_id == user_id)
        .first()
    )
    if exists is None:
        raise ValidationError("source_chat_session_id does not reference one of your chat sessions")
    return session_id


def _apply_startup(plan: MealPlan, startup: StartupData, only_set: bool = False) -> None:
    fields = startup.model_fields_set if only_set else STARTUP_FIELDS
    for field in STARTUP_FIELDS:
        if field not in fields:
            continue
        value = getattr(startup, field)
        if isinstance(value, MacroDistribution):
            value = value.model_dump()
        setattr(plan, field, value)


def build_meal_plan(
    user_id: str,
    name: str,
    plan_content: Dict[str, Any],
    startup: StartupData,
    source_chat_session_id: Optional[str] = None,
    is_day_plan: bool = False,
) -> MealPlan:
    """Unsaved MealPlan row; callers add and commit (multi-day plans reuse this)."""
    plan = MealPlan(
        user_id=user_id,
        name=name,
        plan_content=plan_content,
        source_chat_session_id=source_chat_session_id,
        is_day_plan=is_day_plan,
    )
    _apply_startup(plan, startup)
    return plan


def _commit(action: str, **extra) -> None:
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.error(f"meal_plan.{action}.db_error", exc_info=True, extra={"event": f"meal_plan.{action}", **extra})
        raise DatabaseError(f"Failed to {action} meal plan", original_error=exc) from exc


# ------------------------------ Public API -----------------------------------


def list_meal_plans(user_id: str, query: ListPlansQuery) -> List[Dict[str, Any]]:
    q = db.session.query(MealPlan).filter(MealPlan.user_id == user_id, MealPlan.is_day_plan.is_(False))
    if query.search:
        term = query.search.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        q = q.filter(MealPlan.name.ilike(f"%{term}%", escape="\\"))
    column = _SORT_COLUMNS[query.sort]
    q = q.order_by(column.asc() if query.order == "asc" else column.desc(), MealPlan.id.asc())
    return [_list_item(p) for p in q.all()]


def get_meal_plan_row(plan_id: str, user_id: str) -> MealPlan:
    plan = (
        db.session.query(MealPlan)
        .filter(MealPlan.id == plan_id, MealPlan.user_id == user_id)
        .one_or_none()
    )
    if plan is None:
        raise NotFoundError(f"Meal plan not found with ID: {plan_id}")
    return plan


def get_meal_plan(plan_id: str, user_id: str) -> Dict[str, Any]:
    return serialize_meal_plan(get_meal_plan_row(plan_id, user_id))


def create_meal_plan(req: CreateMealPlanRequest, user_id: str) -> Dict[str, Any]:
    plan = build_meal_plan(
        user_id=user_id,
        name=req.name,
        plan_content=req.plan_content.model_dump(mode="json"),
        startup=req.startup_data,
        source_chat_session_id=ensure_source_session(req.source_chat_session_id, user_id),
    )
    db.session.add(plan)
    _commit("create", user_id=user_id)
    logger.info("meal_plan.create", extra={"event": "meal_plan.create", "plan_id": plan.id})
    return serialize_meal_plan(plan)


def update_meal_plan(plan_id: str, req: UpdateMealPlanRequest, user_id: str) -> Dict[str, Any]:
    """Partial update: only fields present in the request body change."""
    plan = get_meal_plan_row(plan_id, user_id)
    sent = req.model_fields_set
    if "name" in sent and req.name is not None:
        plan.name = req.name
    if "source_chat_session_id" in sent:
        plan.source_chat_session_id = ensure_source_session(req.source_chat_session_id, user_id)
    if "plan_content" in sent and req.plan_content is not None:
        plan.plan_content = req.plan_content.model_dump(mode="json")
    _apply_startup(plan, req, only_set=True)
    _commit("update", plan_id=plan_id)
    logger.info("meal_plan.update", extra={"event": "meal_plan.update", "plan_id": plan_id})
    return serialize_meal_plan(plan)


def delete_meal_plan(plan_id: str, user_id: str) -> None:
    plan = get_meal_plan_row(plan_id, user_id)
    db.session.delete(plan)
    _commit("delete", plan_id=plan_id)
    logger.info("meal_plan.delete", extra={"event": "meal_plan.delete", "plan_id": plan_id})


def delete_all_for_user(user_id: str) -> int:
    """Bulk delete of a user's meal plans; caller commits."""
    return (
        db.session.query(MealPlan)
        .filter(MealPlan.user_id == user_id)
        .delete(synchronize_session=False)
    )
