# dietplanner/services/plan_export.py
# Download renderers for meal plans and multi-day plans.
# Each export returns (filename, bytes, mime) like a file response needs.
# "doc" is Word-compatible HTML rendered from templates/export/*.html.

from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Tuple

from flask import render_template

LABELS: Dict[str, Dict[str, str]] = {
    "en": {
        "patient_information": "Patient Information",
        "age": "Age",
        "weight": "Weight",
        "height": "Height",
        "activity_level": "Activity Level",
        "target_kcal": "Target Calories",
        "macros": "Target Macro Distribution",
        "meal_names": "Meal Names",
        "exclusions": "Exclusions & Guidelines",
        "not_specified": "Not specified",
        "daily_summary": "Daily Nutritional Summary",
        "total_kcal": "Total Kcal",
        "kcal": "kcal",
        "proteins": "Proteins",
        "fats": "Fats",
        "carbs": "Carbs",
        "meals": "Meals",
        "meal": "Meal",
        "meal_summary": "Meal Summary",
        "ingredients": "Ingredients",
        "preparation": "Preparation",
        "day": "Day",
        "days": "Days",
        "average": "Average per day",
        "allergens": "Common Allergens",
        "common_exclusions": "Common Exclusions & Guidelines",
        "sedentary": "Sedentary",
        "light": "Light",
        "moderate": "Moderate",
        "high": "High",
    },
    "pl": {
        "patient_information": "Informacje o pacjencie",
        "age": "Wiek",
        "weight": "Waga",
        "height": "Wzrost",
        "activity_level": "Poziom aktywności",
        "target_kcal": "Docelowe kalorie",
        "macros": "Docelowy rozkład makroskładników",
        "meal_names": "Nazwy posiłków",
        "exclusions": "Wykluczenia i wytyczne",
        "not_specified": "Nie określono",
        "daily_summary": "Dzienne podsumowanie wartości odżywczych",
        "total_kcal": "Łącznie kcal",
        "kcal": "kcal",
        "proteins": "Białko",
        "fats": "Tłuszcze",
        "carbs": "Węglowodany",
        "meals": "Posiłki",
        "meal": "Posiłek",
        "meal_summary": "Podsumowanie posiłku",
        "ingredients": "Składniki",
        "preparation": "Przygotowanie",
        "day": "Dzień",
        "days": "Dni",
        "average": "Średnio na dzień",
        "allergens": "Wspólne alergeny",
        "common_exclusions": "Wspólne wykluczenia i wytyczne",
        "sedentary": "Siedzący",
        "light": "Lekki",
        "moderate": "Umiarkowany",
        "high": "Wysoki",
    },
}

MIME_TYPES = {
    "doc": "application/msword",
    "md": "text/markdown; charset=utf-8",
    "json": "application/json; charset=utf-8",
}

_UNSAFE = re.compile(r"[^A-Za-z0-9_\-]+")


def labels_for(language: str) -> Dict[str, str]:
    return LABELS.get(language, LABELS["en"])


def safe_filename(name: str, ext: str, fallback: str = "meal-plan") -> str:
    """'Keto / week 1?' -> 'Keto_week_1.doc'; never empty, never a path."""
    stem = _UNSAFE.sub("_", name or "").strip("_")[:100] or fallback
    return f"{stem}.{ext}"


def _num(value: Any) -> str:
    if isinstance(value, float):
        return f"{value:g}"
    return str(value)


def _patient_rows(plan: Dict[str, Any], t: Dict[str, str]) -> List[Tuple[str, str]]:
    missing = t["not_specified"]
    activity = plan.get("activity_level")
    rows = [
        (t["age"], _num(plan["patient_age"]) if plan.get("patient_age") else missing),
        (t["weight"], f"{_num(plan['patient_weight'])} kg" if plan.get("patient_weight") else missing),
        (t["height"], f"{_num(plan['patient_height'])} cm" if plan.get("patient_height") else missing),
        (t["activity_level"], t.get(activity, activity) if activity else missing),
        (t["target_kcal"], _num(plan["target_kcal"]) if plan.get("target_kcal") else missing),
    ]
    macros = plan.get("target_macro_distribution")
    if macros:
        rows.append(
            (t["macros"], f"P: {_num(macros['p_perc'])}%, F: {_num(macros['f_perc'])}%, C: {_num(macros['c_perc'])}%")
        )
    return rows


# ------------------------------ Markdown -------------------------------------


def _meal_plan_md(plan: Dict[str, Any], t: Dict[str, str], heading: str = "#") -> List[str]:
    lines = [f"{heading} {plan['name']}", "", f"{heading}# {t['patient_information']}", ""]
    for label, value in _patient_rows(plan, t):
        lines.append(f"- **{label}:** {value}")
    if plan.get("meal_names"):
        lines += ["", f"**{t['meal_names']}:** {plan['meal_names']}"]
    if plan.get("exclusions_guidelines"):
        lines += ["", f"**{t['exclusions']}:** {plan['exclusions_guidelines']}"]

    summary = (plan.get("plan_content") or {}).get("daily_summary") or {}
    lines += [
        "",
        f"{heading}# {t['daily_summary']}",
        "",
        f"| {t['total_kcal']} | {t['proteins']} | {t['fats']} | {t['carbs']} |",
        "|---|---|---|---|",
        f"| {_num(summary.get('kcal', 0))} | {_num(summary.get('proteins', 0))}g "
        f"| {_num(summary.get('fats', 0))}g | {_num(summary.get('carbs', 0))}g |",
        "",
        f"{heading}# {t['meals']}",
    ]
    for i, meal in enumerate((plan.get("plan_content") or {}).get("meals") or [], start=1):
        s = meal.get("summary") or {}
        lines += [
            "",
            f"{heading}## {i}. {meal.get('name') or t['meal']}",
            "",
            f"**{t['meal_summary']}:** {_num(s.get('kcal', 0))} {t['kcal']}, "
            f"P {_num(s.get('p', 0))}g, F {_num(s.get('f', 0))}g, C {_num(s.get('c', 0))}g",
            "",
            f"**{t['ingredients']}:**",
            "",
            meal.get("ingredients") or "",
            "",
            f"**{t['preparation']}:**",
            "",
            meal.get("preparation") or "",
        ]
    return lines


def _multi_day_md(plan: Dict[str, Any], t: Dict[str, str]) -> List[str]:
    lines = [
        f"# {plan['name']}",
        "",
        f"- **{t['days']}:** {plan['number_of_days']}",
        f"- **{t['average']}:** {_num(plan['average_kcal'])} {t['kcal']}, "
        f"P {_num(plan['average_proteins'])}g, F {_num(plan['average_fats'])}g, C {_num(plan['average_carbs'])}g",
    ]
    if plan.get("common_exclusions_guidelines"):
        lines.append(f"- **{t['common_exclusions']}:** {plan['common_exclusions_guidelines']}")
    if plan.get("common_allergens"):
        lines.append(f"- **{t['allergens']}:** {', '.join(plan['common_allergens'])}")
    for day in plan.get("days") or []:
        lines += ["", f"## {t['day']} {day['day_number']}", ""]
        lines += _meal_plan_md(day["day_plan"], t, heading="###")
    return lines


# ------------------------------ Public API -----------------------------------


def export_meal_plan(plan: Dict[str, Any], fmt: str, language: str = "en") -> Tuple[str, bytes, str]:
    """Render a serialized meal plan. Requires an app context for fmt='doc'."""
    t = labels_for(language)
    if fmt == "json":
        data = json.dumps(plan, ensure_ascii=False, indent=2).encode("utf-8")
    elif fmt == "md":
        data = ("\n".join(_meal_plan_md(plan, t)) + "\n").encode("utf-8")
    else:
        html = render_template(
            "export/meal_plan.html", plan=plan, t=t, patient_rows=_patient_rows(plan, t), num=_num, language=language
        )
        data = html.encode("utf-8")
    return safe_filename(plan.get("name"), fmt), data, MIME_TYPES[fmt]


def export_multi_day_plan(plan: Dict[str, Any], fmt: str, language: str = "en") -> Tuple[str, bytes, str]:
    t = labels_for(language)
    if fmt == "json":
        data = json.dumps(plan, ensure_ascii=False, indent=2).encode("utf-8")
    elif fmt == "md":
        data = ("\n".join(_multi_day_md(plan, t)) + "\n").encode("utf-8")
    else:
        days = [
            {
                "day_number": day["day_number"],
                "plan": day["day_plan"],
                "patient_rows": _patient_rows(day["day_plan"], t),
            }
            for day in plan.get("days") or []
        ]
        html = render_template(
            "export/multi_day_plan.html", plan=plan, days=days, t=t, num=_num, language=language
        )
        data = html.encode("utf-8")
    return safe_filename(plan.get("name"), fmt, fallback="multi-day-plan"), data, MIME_TYPES[fmt]
