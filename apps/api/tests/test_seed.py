from __future__ import annotations

import json
from datetime import date

from childhub.db import find_user_by_email, list_bookings, list_children, list_locations
from childhub.meals import list_meal_templates
from childhub.security import verify_password
from childhub.seed import CHILDREN, DEMO_EMAIL, LOCATIONS, MEAL_TEMPLATES, seed


def test_seed_creates_demo_family() -> None:
    result = seed(today=date(2025, 1, 13))
    assert result["created_user"] is True
    assert result["templates"] == len(MEAL_TEMPLATES)

    user = find_user_by_email(DEMO_EMAIL)
    assert verify_password("demo-password", user["password_hash"])
    children = list_children(user["id"])
    assert len(children) == len(CHILDREN)
    emma = next(child for child in children if child["first_name"] == "Emma")
    assert len(emma["events"]) == 3

    bookings = list_bookings(user["id"])
    assert [booking["date"][:10] for booking in bookings] == ["2025-01-13", "2025-01-15", "2025-01-17", "2025-01-19"]
    assert bookings[-1]["child_id"] is None
    assert len(list_locations(user["id"])) == len(LOCATIONS)

    fish = next(meal for meal in list_meal_templates() if meal.name == "Fish Tacos")
    assert json.loads(fish.allergy_info) == ["Fish", "Gluten"]


def test_seed_is_idempotent() -> None:
    seed(today=date(2025, 1, 13))
    again = seed(today=date(2025, 1, 13))
    assert again == {"created_user": False, "templates": 0}
    assert len(list_meal_templates()) == len(MEAL_TEMPLATES)
