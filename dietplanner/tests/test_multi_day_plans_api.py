# dietplanner/tests/test_multi_day_plans_api.py
# Purpose: /api/multi-day-plans: day plans stored as hidden meal plans,
# recalculated averages, day replacement and cascading delete.

from sqlalchemy.exc import SQLAlchemyError

from dietplanner.config import db
from dietplanner.models import MealPlan, MultiDayPlanDay
from dietplanner.tests.helpers import auth_headers, plan_content, startup_payload


def _day(day_number, kcal=2000, proteins=150, fats=56, carbs=225, name=None):
    day = {
        "day_number": day_number,
        "plan_content": plan_content(kcal=kcal, proteins=proteins, fats=fats, carbs=carbs),
        "startup_data": startup_payload(),
    }
    if name:
        day["name"] = name
    return day


def _create(client, days, name="Week plan", **extra):
    res = client.post(
        "/api/multi-day-plans",
        json={"name": name, "day_plans": days, **extra},
        headers=auth_headers(),
    )
    assert res.status_code == 201, res.get_json()
    return res.get_json()


def test_create_computes_averages_and_orders_days(client):
    plan = _create(
        client,
        [_day(2, kcal=1800, proteins=120, fats=60, carbs=200), _day(1, kcal=2100, proteins=151, fats=61, carbs=251)],
        common_allergens=["nuts"],
    )
    assert plan["number_of_days"] == 2
    assert plan["average_kcal"] == 1950
    assert plan["average_proteins"] == 135.5
    assert plan["average_fats"] == 60.5
    assert plan["average_carbs"] == 225.5
    assert plan["common_allergens"] == ["nuts"]
    assert [d["day_number"] for d in plan["days"]] == [1, 2]
    assert plan["days"][0]["day_plan"]["name"] == "Week plan - Day 1"
    assert plan["days"][0]["day_plan"]["is_day_plan"] is True


def test_day_plans_are_hidden_from_meal_plan_list(client):
    _create(client, [_day(1), _day(2)])
    assert client.get("/api/meal-plans", headers=auth_headers()).get_json() == []

    listed = client.get("/api/multi-day-plans", headers=auth_headers()).get_json()
    assert len(listed) == 1
    assert "days" not in listed[0]
    assert listed[0]["number_of_days"] == 2


def test_create_validation(client):
    res = client.post(
        "/api/multi-day-plans",
        json={"name": "dup", "day_plans": [_day(1), _day(1)]},
        headers=auth_headers(),
    )
    assert res.status_code == 400

    res = client.post(
        "/api/multi-day-plans",
        json={"name": "eight", "day_plans": [_day(i) for i in range(1, 9)]},
        headers=auth_headers(),
    )
    assert res.status_code == 400

    res = client.post(
        "/api/multi-day-plans",
        json={"name": "count", "number_of_days": 3, "day_plans": [_day(1)]},
        headers=auth_headers(),
    )
    assert res.status_code == 400


def test_update_replaces_days_and_recalculates(app, client):
    plan = _create(client, [_day(1), _day(2), _day(3)])
    res = client.put(
        f"/api/multi-day-plans/{plan['id']}",
        json={"name": "Short week", "day_plans": [_day(1, kcal=1500, name="Light day")]},
        headers=auth_headers(),
    )
    assert res.status_code == 200
    updated = res.get_json()
    assert updated["name"] == "Short week"
    assert updated["number_of_days"] == 1
    assert updated["average_kcal"] == 1500
    assert updated["days"][0]["day_plan"]["name"] == "Light day"

    with app.app_context():
        assert db.session.query(MultiDayPlanDay).count() == 1
        assert db.session.query(MealPlan).filter(MealPlan.is_day_plan.is_(True)).count() == 1


def test_update_without_days_keeps_them(client):
    plan = _create(client, [_day(1), _day(2)])
    res = client.put(f"/api/multi-day-plans/{plan['id']}", json={"is_draft": True}, headers=auth_headers())
    updated = res.get_json()
    assert updated["is_draft"] is True
    assert updated["number_of_days"] == 2
    assert [d["day_plan"]["id"] for d in updated["days"]] == [d["day_plan"]["id"] for d in plan["days"]]


def test_failed_day_replacement_is_rolled_back(client, monkeypatch):
    plan = _create(client, [_day(1), _day(2)], name="Two days")

    def _broken_flush(*args, **kwargs):
        raise SQLAlchemyError("boom")

    with monkeypatch.context() as m:
        m.setattr(db.session, "flush", _broken_flush)
        res = client.put(
            f"/api/multi-day-plans/{plan['id']}",
            json={"name": "Renamed", "day_plans": [_day(1, kcal=1500)]},
            headers=auth_headers(),
        )

    assert res.status_code == 500
    body = res.get_json()
    assert body["error"] == "An internal error occurred"
    assert body["details"] == "Failed to update multi-day plan"

    unchanged = client.get(f"/api/multi-day-plans/{plan['id']}", headers=auth_headers()).get_json()
    assert unchanged["name"] == "Two days"
    assert [d["day_plan"]["id"] for d in unchanged["days"]] == [d["day_plan"]["id"] for d in plan["days"]]


def test_delete_cascades_day_plans(app, client):
    plan = _create(client, [_day(1), _day(2)])
    assert client.delete(f"/api/multi-day-plans/{plan['id']}", headers=auth_headers()).status_code == 204
    assert client.get(f"/api/multi-day-plans/{plan['id']}", headers=auth_headers()).status_code == 404
    with app.app_context():
        assert db.session.query(MealPlan).count() == 0
        assert db.session.query(MultiDayPlanDay).count() == 0


def test_other_users_plan_is_not_found(client):
    plan = _create(client, [_day(1)])
    assert client.get(f"/api/multi-day-plans/{plan['id']}", headers=auth_headers("bob-token")).status_code == 404
    assert client.delete(f"/api/multi-day-plans/{plan['id']}", headers=auth_headers("bob-token")).status_code == 404


def test_export_multi_day_markdown_and_doc(client):
    plan = _create(client, [_day(1), _day(2)], name="Two days", common_exclusions_guidelines="Low sodium")

    res = client.get(f"/api/multi-day-plans/{plan['id']}/export?format=md", headers=auth_headers())
    assert res.status_code == 200
    assert res.headers["Content-Disposition"] == 'attachment; filename="Two_days.md"'
    text = res.get_data(as_text=True)
    assert text.startswith("# Two days")
    assert "- **Days:** 2" in text
    assert "## Day 1" in text and "## Day 2" in text
    assert "Low sodium" in text

    res = client.get(f"/api/multi-day-plans/{plan['id']}/export?format=doc", headers=auth_headers())
    html = res.get_data(as_text=True)
    assert res.headers["Content-Type"] == "application/msword"
    assert "<h2>Day 1: Two days - Day 1</h2>" in html
