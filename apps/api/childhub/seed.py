"""Populate the database with a demo family: ``python -m childhub.seed``."""
from __future__ import annotations

import argparse
import json
import logging
from datetime import date, timedelta
from typing import Any, Dict, List

from .db import create_booking, create_child, create_user, find_user_by_email, initialize_db, insert_child_event, save_location
from .meals import MealPayload, create_meal, list_meal_templates
from .security import hash_password

logger = logging.getLogger(__name__)

DEMO_EMAIL = "demo@childhub.local"
DEMO_PASSWORD = "demo-password"
DEMO_NAME = "Demo Parent"

CHILDREN: List[Dict[str, Any]] = [
    {
        "first_name": "Emma",
        "last_name": "Johnson",
        "date_of_birth": "2018-05-15",
        "gender": "Female",
        "allergies": "Peanuts, Dairy",
        "medical_info": "Asthma - uses inhaler",
        "notes": "Loves reading and drawing",
        "events": [("First Day of School", "Education"), ("Birthday Party", "Celebration"), ("Doctor Checkup", "Medical")],
    },
    {
        "first_name": "Liam",
        "last_name": "Johnson",
        "date_of_birth": "2020-08-22",
        "gender": "Male",
        "allergies": "None",
        "medical_info": "No known conditions",
        "notes": "Very active, loves soccer",
        "events": [
            ("Soccer Practice", "Sports"),
            ("Dentist Appointment", "Medical"),
            ("Playdate at Park", "Social"),
            ("Swimming Lessons", "Sports"),
        ],
    },
    {
        "first_name": "Sophia",
        "last_name": "Johnson",
        "date_of_birth": "2019-11-03",
        "gender": "Female",
        "allergies": "Shellfish",
        "medical_info": "Wears glasses",
        "notes": "Enjoys music and dance classes",
        "events": [("Piano Recital", "Arts"), ("Dance Class", "Arts"), ("Eye Exam", "Medical")],
    },
    {
        "first_name": "Oliver",
        "last_name": "Smith",
        "date_of_birth": "2017-03-12",
        "gender": "Male",
        "allergies": "Gluten, Eggs",
        "medical_info": "Celiac disease - strict gluten-free diet",
        "notes": "Loves basketball and video games",
        "events": [("Basketball Training", "Sports"), ("Nutritionist Appointment", "Medical"), ("School Camp", "Education")],
    },
    {
        "first_name": "Isabella",
        "last_name": "Chen",
        "date_of_birth": "2019-07-28",
        "gender": "Female",
        "allergies": "Lactose intolerant, Tree nuts",
        "medical_info": "Uses EpiPen for nut allergy",
        "notes": "Creative and artistic, loves painting",
        "events": [("Art Class", "Arts"), ("Allergy Clinic", "Medical"), ("Friend's Birthday", "Social")],
    },
    {
        "first_name": "Noah",
        "last_name": "Williams",
        "date_of_birth": "2021-01-15",
        "gender": "Male",
        "allergies": "None",
        "medical_info": "No known conditions",
        "notes": "Energetic toddler, loves animals",
        "events": [("Zoo Visit", "Social"), ("Playgroup", "Social"), ("Vaccination", "Medical")],
    },
    {
        "first_name": "Ava",
        "last_name": "Brown",
        "date_of_birth": "2018-09-05",
        "gender": "Female",
        "allergies": "Soy, Fish",
        "medical_info": "Food allergies - carries emergency medication",
        "notes": "Loves reading and science experiments",
        "events": [("Science Fair", "Education"), ("Library Club", "Education"), ("Allergist Checkup", "Medical")],
    },
    {
        "first_name": "Lucas",
        "last_name": "Martinez",
        "date_of_birth": "2020-12-20",
        "gender": "Male",
        "allergies": "None",
        "medical_info": "No known conditions",
        "notes": "Cheerful and social, loves music",
        "events": [("Music Class", "Arts"), ("Park Playdate", "Social"), ("Regular Checkup", "Medical")],
    },
]

MEAL_TEMPLATES: List[Dict[str, Any]] = [
    {"name": "Porridge with Berries", "category": "breakfast", "allergy_info": ["Dairy", "Gluten"], "prep_time": 10},
    {"name": "Scrambled Eggs on Toast", "category": "breakfast", "allergy_info": ["Eggs", "Gluten", "Dairy"], "prep_time": 10},
    {"name": "Chicken Wraps", "category": "lunch", "allergy_info": ["Gluten"], "prep_time": 15},
    {"name": "Vegetable Fried Rice", "category": "lunch", "allergy_info": ["Soy", "Eggs"], "prep_time": 20},
    {"name": "Spaghetti Bolognese", "category": "dinner", "allergy_info": ["Gluten"], "prep_time": 40},
    {"name": "Fish Tacos", "category": "dinner", "allergy_info": ["Fish", "Gluten"], "prep_time": 30},
    {"name": "Roast Chicken and Vegetables", "category": "dinner", "allergy_info": [], "prep_time": 75},
    {"name": "Peanut Butter Apple Slices", "category": "snack", "allergy_info": ["Peanuts"], "prep_time": 5},
    {"name": "Yoghurt Cup", "category": "snack", "allergy_info": ["Dairy"], "prep_time": 2},
]

LOCATIONS: List[Dict[str, Any]] = [
    {"suburb_name": "Melbourne", "state": "VIC", "median_house_price": 1050000, "median_unit_price": 620000,
     "rental_price_house": 550, "rental_price_unit": 420, "vacancy_rate": 1.8,
     "notes": "CBD area with excellent public transport", "is_favorite": True},
    {"suburb_name": "Sydney", "state": "NSW", "median_house_price": 1450000, "median_unit_price": 780000,
     "rental_price_house": 650, "rental_price_unit": 520, "vacancy_rate": 2.1,
     "notes": "Major business district", "is_favorite": False},
    {"suburb_name": "Brisbane", "state": "QLD", "median_house_price": 850000, "median_unit_price": 520000,
     "rental_price_house": 480, "rental_price_unit": 380, "vacancy_rate": 1.5,
     "notes": "Growing market with good investment potential", "is_favorite": True},
    {"suburb_name": "Bondi", "state": "NSW", "median_house_price": 3200000, "median_unit_price": 1150000,
     "rental_price_house": 1200, "rental_price_unit": 750, "vacancy_rate": 2.3,
     "notes": "Premium beachside location", "is_favorite": True},
]


def seed_meal_templates() -> int:
    existing = {meal.name for meal in list_meal_templates()}
    created = 0
    for template in MEAL_TEMPLATES:
        if template["name"] in existing:
            continue
        create_meal(
            None,
            MealPayload(
                name=template["name"],
                category=template["category"],
                allergy_info=json.dumps(template["allergy_info"]),
                prep_time=template["prep_time"],
                is_template=True,
            ),
        )
        created += 1
    return created


def seed(email: str = DEMO_EMAIL, password: str = DEMO_PASSWORD, today: date | None = None) -> Dict[str, Any]:
    """Create the demo user and their data; a second run only tops up templates."""
    initialize_db()
    templates = seed_meal_templates()
    if find_user_by_email(email):
        logger.info("demo user already present; skipping family data", extra={"email": email})
        return {"created_user": False, "templates": templates}

    today = today or date.today()
    user = create_user(email=email, password_hash=hash_password(password), name=DEMO_NAME)
    children = []
    for profile in CHILDREN:
        data = {key: value for key, value in profile.items() if key != "events"}
        child = create_child(user["id"], data)
        for name, event_type in profile["events"]:
            insert_child_event(child_id=child["id"], name=name, event_type=event_type)
        children.append(child)

    for offset, (name, child) in enumerate(
        [("Swimming Lesson", children[1]), ("Dentist", children[0]), ("Art Workshop", children[4]), ("Parent Night", None)]
    ):
        create_booking(
            user_id=user["id"],
            name=name,
            booking_date=today + timedelta(days=offset * 2),
            time="09:30" if offset % 2 == 0 else "15:00",
            child_id=child["id"] if child else None,
        )

    for location in LOCATIONS:
        save_location(user["id"], location)

    logger.info("seed complete", extra={"user_id": user["id"], "children": len(children)})
    return {"created_user": True, "user_id": user["id"], "children": len(children), "templates": templates}


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--email", default=DEMO_EMAIL)
    parser.add_argument("--password", default=DEMO_PASSWORD)
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO)
    result = seed(args.email, args.password)
    print(json.dumps(result, indent=2))


if __name__ == "__main__":
    main()
