# dietplanner/routes/meal_plans.py
# Flask Blueprint: /api/meal-plans/* (saved single-day plans).

from flask import Blueprint, current_app, jsonify

from ..schemas import CreateMealPlanRequest, ExportQuery, ListPlansQuery, UpdateMealPlanRequest
from ..services import meal_plans, plan_export, preferences
from ..session_guard import require_user
from .common import file_response, parse_body, parse_query, parse_uuid

meal_plans_bp = Blueprint("meal_plans", __name__)


@meal_plans_bp.route("", methods=["GET"])
def list_plans():
    """List the caller's plans (?search=&sort=created_at|updated_at|name&order=asc|desc)."""
    auth = require_user()
    query = parse_query(ListPlansQuery)
    return jsonify(meal_plans.list_meal_plans(auth.user_id, query)), 200


@meal_plans_bp.route("", methods=["POST"])
def create_plan():
    auth = require_user()
    req = parse_body(CreateMealPlanRequest)
    return jsonify(meal_plans.create_meal_plan(req, auth.user_id)), 201


@meal_plans_bp.route("/<plan_id>", methods=["GET"])
def get_plan(plan_id: str):
    auth = require_user()
    return jsonify(meal_plans.get_meal_plan(parse_uuid(plan_id, "meal plan ID"), auth.user_id)), 200


@meal_plans_bp.route("/<plan_id>", methods=["PUT"])
def update_plan(plan_id: str):
    auth = require_user()
    plan_id = parse_uuid(plan_id, "meal plan ID")
    req = parse_body(UpdateMealPlanRequest)
    return jsonify(meal_plans.update_meal_plan(plan_id, req, auth.user_id)), 200


@meal_plans_bp.route("/<plan_id>", methods=["DELETE"])
def delete_plan(plan_id: str):
    auth = require_user()
    meal_plans.delete_meal_plan(parse_uuid(plan_id, "meal plan ID"), auth.user_id)
    return ("", 204)


@meal_plans_bp.route("/<plan_id>/export", methods=["GET"])
def export_plan(plan_id: str):
    """Download as doc (default), md or json, labelled in the caller's language."""
    auth = require_user()
    plan_id = parse_uuid(plan_id, "meal plan ID")
    query = parse_query(ExportQuery)
    plan = meal_plans.get_meal_plan(plan_id, auth.user_id)
    language = preferences.get_preferences(auth.user_id)["language"]
    name, data, mime = plan_export.export_meal_plan(plan, query.format, language)
    current_app.logger.info(
        "plan.export", extra={"event": "plan.export", "plan_id": plan_id, "format": query.format}
    )
    return file_response(name, data, mime)
