# dietplanner/tests/helpers.py
# Request builders shared by the API tests.

from dietplanner.services.supabase_client import AuthUser

ALICE = AuthUser(id="11111111-1111-4111-8111-111111111111", email="alice@example.com")
BOB = AuthUser(id="22222222-2222-4222-8222-222222222222", email="bob@example.com")


def auth_headers(token="alice-token"):
    return {"Authorization": f"Bearer {token}"}


def startup_payload(**overrides):
    data = {
        "patient_age": 34,
        "patient_weight": 70.5,
        "patient_height": 172,
        "activity_level": "moderate",
        "target_kcal": 2000,
        "target_macro_distribution": {"p_perc": 30, "f_perc": 25, "c_perc": 45},
        "meal_names": "Breakfast, Lunch, Dinner",
        "exclusions_guidelines": "No peanuts",
    }
    data.update(overrides)
    return data


def plan_content(kcal=2000, proteins=150, fats=56, carbs=225):
    return {
        "daily_summary": {"kcal": kcal, "proteins": proteins, "fats": fats, "carbs": carbs},
        "meals": [
            {
                "name": "Oatmeal",
                "ingredients": "Oats 80g, milk 200ml",
                "preparation": "Cook oats in milk.",
                "summary": {"kcal": 450, "p": 20, "f": 10, "c": 70},
            }
        ],
    }
