# dietplanner/services/multi_day_plans.py
# Multi-day plans: a parent row, one link row per day, and one hidden
# meal_plans row (is_day_plan=True) per day. Averages are recomputed here
# after every change to the days.

from __future__ import annotations

import logging
from typing import Any, Dict, List

from sqlalchemy.exc import SQLAlchemyError

from ..config import db
from ..errors import DatabaseError, NotFoundError
from ..models import MultiDayPlan, MultiDayPlanDay
from ..schemas import CreateMultiDayPlanRequest, DayPlanInput, ListPlansQuery, UpdateMultiDayPlanRequest
from .meal_plans import (
    build_meal_plan,
    ensure_source_session,
    resolve_daily_summary,
    serialize_meal_plan,
    startup_data_of,
    to_iso,
)

logger = logging.getLogger(__name__)

_SORT_COLUMNS = {
    "created_at": MultiDayPlan.created_at,
    "updated_at": MultiDayPlan.updated_at,
    "name": MultiDayPlan.name,
}


def _summary_fields(plan: MultiDayPlan) -> Dict[str, Any]:
    return {
        "number_of_days": plan.number_of_days,
        "average_kcal": plan.average_kcal or 0,
        "average_proteins": plan.average_proteins or 0,
        "average_fats": plan.average_fats or 0,
        "average_carbs": plan.average_carbs or 0,
    }


def serialize_multi_day_plan(plan: MultiDayPlan, with_days: bool = True) -> Dict[str, Any]:
    out = {
        "id": plan.id,
        "name": plan.name,
        "source_chat_session_id": plan.source_chat_session_id,
        **_summary_fields(plan),
        "common_exclusions_guidelines": plan.common_exclusions_guidelines,
        "common_allergens": plan.common_allergens if isinstance(plan.common_allergens, list) else None,
        "is_draft": plan.is_draft,
        "created_at": to_iso(plan.created_at),
        "updated_at": to_iso(plan.updated_at),
    }
    if with_days:
        out["days"] = [
            {"day_number": day.day_number, "day_plan": serialize_meal_plan(day.day_plan)} for day in plan.days
        ]
    return out


def recalculate_summary(plan: MultiDayPlan) -> None:
    """number_of_days and per-day averages from the current day plans."""
    summaries = [
        resolve_daily_summary((day.day_plan.plan_content or {}).get("daily_summary"), startup_data_of(day.day_plan))
        for day in plan.days
    ]
    plan.number_of_days = len(summaries)
    if not summaries:
        plan.average_kcal = plan.average_proteins = plan.average_fats = plan.average_carbs = None
        return
    n = len(summaries)
    plan.average_kcal = round(sum(s["kcal"] for s in summaries) / n, 2)
    plan.average_proteins = round(sum(s["proteins"] for s in summaries) / n, 2)
    plan.average_fats = round(sum(s["fats"] for s in summaries) / n, 2)
    plan.average_carbs = round(sum(s["carbs"] for s in summaries) / n, 2)


def _attach_days(plan: MultiDayPlan, days: List[DayPlanInput], user_id: str) -> None:
    for day in sorted(days, key=lambda d: d.day_number):
        meal_plan = build_meal_plan(
            user_id=user_id,
            name=day.name or f"{plan.name} - Day {day.day_number}",
            plan_content=day.plan_content.model_dump(mode="json"),
            startup=day.startup_data,
            source_chat_session_id=plan.source_chat_session_id,
            is_day_plan=True,
        )
        plan.days.append(MultiDayPlanDay(day_number=day.day_number, day_plan=meal_plan))


def _commit(action: str, **extra) -> None:
    _write(db.session.commit, action, **extra)


def _flush(action: str, **extra) -> None:
    _write(db.session.flush, action, **extra)


def _write(op, action: str, **extra) -> None:
    try:
        op()
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.error(
            f"multi_day_plan.{action}.db_error", exc_info=True, extra={"event": f"multi_day_plan.{action}", **extra}
        )
        raise DatabaseError(f"Failed to {action} multi-day plan", original_error=exc) from exc


def _get_row(plan_id: str, user_id: str) -> MultiDayPlan:
    plan = (
        db.session.query(MultiDayPlan)
        .filter(MultiDayPlan.id == plan_id, MultiDayPlan.user_id == user_id)
        .one_or_none()
    )
    if plan is None:
        raise NotFoundError(f"Multi-day plan not found with ID: {plan_id}")
    return plan


# ------------------------------ Public API -----------------------------------


def list_multi_day_plans(user_id: str, query: ListPlansQuery) -> List[Dict[str, Any]]:
    q = db.session.query(MultiDayPlan).filter(MultiDayPlan.user_id == user_id)
    if query.search:
        term = query.search.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        q = q.filter(MultiDayPlan.name.ilike(f"%{term}%", escape="\\"))
    column = _SORT_COLUMNS[query.sort]
    q = q.order_by(column.asc() if query.order == "asc" else column.desc(), MultiDayPlan.id.asc())
    return [serialize_multi_day_plan(p, with_days=False) for p in q.all()]


def get_multi_day_plan_row(plan_id: str, user_id: str) -> MultiDayPlan:
    return _get_row(plan_id, user_id)


def get_multi_day_plan(plan_id: str, user_id: str) -> Dict[str, Any]:
    return serialize_multi_day_plan(_get_row(plan_id, user_id))


def create_multi_day_plan(req: CreateMultiDayPlanRequest, user_id: str) -> Dict[str, Any]:
    plan = MultiDayPlan(
        user_id=user_id,
        name=req.name,
        source_chat_session_id=ensure_source_session(req.source_chat_session_id, user_id),
        common_exclusions_guidelines=req.common_exclusions_guidelines,
        common_allergens=req.common_allergens,
        is_draft=req.is_draft,
    )
    _attach_days(plan, req.day_plans, user_id)
    recalculate_summary(plan)
    db.session.add(plan)
    _commit("create", user_id=user_id)
    logger.info(
        "multi_day_plan.create",
        extra={"event": "multi_day_plan.create", "plan_id": plan.id, "days": plan.number_of_days},
    )
    return serialize_multi_day_plan(plan)


def update_multi_day_plan(plan_id: str, req: UpdateMultiDayPlanRequest, user_id: str) -> Dict[str, Any]:
    """Partial update. When day_plans is given, every existing day is replaced."""
    plan = _get_row(plan_id, user_id)
    sent = req.model_fields_set
    if "name" in sent and req.name is not None:
        plan.name = req.name
    if "common_exclusions_guidelines" in sent:
        plan.common_exclusions_guidelines = req.common_exclusions_guidelines
    if "common_allergens" in sent:
        plan.common_allergens = req.common_allergens
    if "is_draft" in sent and req.is_draft is not None:
        plan.is_draft = req.is_draft

    if req.day_plans is not None:
        # delete-orphan removes the old link rows and their day meal plans
        plan.days.clear()
        _flush("update", plan_id=plan_id)
        _attach_days(plan, req.day_plans, user_id)
        recalculate_summary(plan)

    _commit("update", plan_id=plan_id)
    logger.info("multi_day_plan.update", extra={"event": "multi_day_plan.update", "plan_id": plan_id})
    return serialize_multi_day_plan(plan)


def delete_multi_day_plan(plan_id: str, user_id: str) -> None:
    plan = _get_row(plan_id, user_id)
    db.session.delete(plan)
    _commit("delete", plan_id=plan_id)
    logger.info("multi_day_plan.delete", extra={"event": "multi_day_plan.delete", "plan_id": plan_id})


def delete_all_for_user(user_id: str) -> int:
    """Delete every multi-day plan (and its day plans) of a user; caller commits."""
    plans = db.session.query(MultiDayPlan).filter(MultiDayPlan.user_id == user_id).all()
    for plan in plans:
        db.session.delete(plan)
    return len(plans)
