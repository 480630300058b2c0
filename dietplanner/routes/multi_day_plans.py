# dietplanner/routes/multi_day_plans.py
# Flask Blueprint: /api/multi-day-plans/* (plans spanning 1-7 days).

from flask import Blueprint, current_app, jsonify

from ..schemas import CreateMultiDayPlanRequest, ExportQuery, ListPlansQuery, UpdateMultiDayPlanRequest
from ..services import multi_day_plans, plan_export, preferences
from ..session_guard import require_user
from .common import file_response, parse_body, parse_query, parse_uuid

multi_day_plans_bp = Blueprint("multi_day_plans", __name__)


@multi_day_plans_bp.route("", methods=["GET"])
def list_plans():
    auth = require_user()
    query = parse_query(ListPlansQuery)
    return jsonify(multi_day_plans.list_multi_day_plans(auth.user_id, query)), 200


@multi_day_plans_bp.route("", methods=["POST"])
def create_plan():
    auth = require_user()
    req = parse_body(CreateMultiDayPlanRequest)
    return jsonify(multi_day_plans.create_multi_day_plan(req, auth.user_id)), 201


@multi_day_plans_bp.route("/<plan_id>", methods=["GET"])
def get_plan(plan_id: str):
    auth = require_user()
    return jsonify(multi_day_plans.get_multi_day_plan(parse_uuid(plan_id, "multi-day plan ID"), auth.user_id)), 200


@multi_day_plans_bp.route("/<plan_id>", methods=["PUT"])
def update_plan(plan_id: str):
    auth = require_user()
    plan_id = parse_uuid(plan_id, "multi-day plan ID")
    req = parse_body(UpdateMultiDayPlanRequest)
    return jsonify(multi_day_plans.update_multi_day_plan(plan_id, req, auth.user_id)), 200


@multi_day_plans_bp.route("/<plan_id>", methods=["DELETE"])
def delete_plan(plan_id: str):
    auth = require_user()
    multi_day_plans.delete_multi_day_plan(parse_uuid(plan_id, "multi-day plan ID"), auth.user_id)
    return ("", 204)


@multi_day_plans_bp.route("/<plan_id>/export", methods=["GET"])
def export_plan(plan_id: str):
    auth = require_user()
    plan_id = parse_uuid(plan_id, "multi-day plan ID")
    query = parse_query(ExportQuery)
    plan = multi_day_plans.get_multi_day_plan(plan_id, auth.user_id)
    language = preferences.get_preferences(auth.user_id)["language"]
    name, data, mime = plan_export.export_multi_day_plan(plan, query.format, language)
    current_app.logger.info(
        "plan.export", extra={"event": "plan.export", "plan_id": plan_id, "format": query.format}
    )
    return file_response(name, data, mime)
