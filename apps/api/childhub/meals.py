"""Meal library + weekly meal plan helpers."""
from __future__ import annotations

import json
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel, Field

from .db import get_connection, new_id
from .schemas import MealTime

MEAL_TIME_ORDER = {meal_time.value: index for index, meal_time in enumerate(MealTime)}
DAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


class MealValidationError(ValueError):
    """Bad input, as opposed to a missing row."""


MEAL_FIELDS = (
    "name",
    "description",
    "ingredients",
    "category",
    "allergy_info",
    "prep_time",
    "is_template",
)


class Meal(BaseModel):
    id: str
    user_id: Optional[str] = None
    name: str
    description: Optional[str] = None
    ingredients: Optional[str] = None
    category: str
    allergy_info: Optional[str] = Field(default=None, description="JSON array of allergens")
    prep_time: Optional[int] = None
    is_template: bool = False
    created_at: datetime
    updated_at: datetime


class MealPayload(BaseModel):
    name: str = ""
    description: Optional[str] = None
    ingredients: Optional[str] = None
    category: str = "dinner"
    allergy_info: Optional[str] = None
    prep_time: Optional[int] = None
    is_template: bool = False


class MealUpdatePayload(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    ingredients: Optional[str] = None
    category: Optional[str] = None
    allergy_info: Optional[str] = None
    prep_time: Optional[int] = None
    is_template: Optional[bool] = None


class MealPlanEntry(BaseModel):
    id: str
    meal_plan_id: str
    meal_id: str
    day_of_week: int
    day_name: str
    meal_time: str
    meal: Meal
    allergy_conflicts: List[str] = Field(
        default_factory=list,
        description="Names of assigned children whose allergies match the meal.",
    )


class PlanChild(BaseModel):
    id: str
    first_name: str
    last_name: Optional[str] = None
    allergies: Optional[str] = None


class MealPlan(BaseModel):
    id: str
    user_id: str
    name: str
    start_date: date
    end_date: date
    is_active: bool
    created_at: datetime
    updated_at: datetime
    entries: List[MealPlanEntry] = Field(default_factory=list)
    children: List[PlanChild] = Field(default_factory=list)


def _now_iso() -> str:
    return datetime.now(tz=timezone.utc).isoformat()


def week_bounds(value: date) -> tuple[date, date]:
    """Monday..Sunday of the week containing ``value``."""
    if isinstance(value, datetime):
        value = value.date()
    start = value - timedelta(days=value.weekday())
    return start, start + timedelta(days=6)


def plan_name_for_week(week_start: date) -> str:
    return f"Week of {week_start.day}/{week_start.month}/{week_start.year}"


def split_allergies(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return [item.strip() for item in raw.split(",") if item.strip() and item.strip().lower() != "none"]


def meal_conflicts(allergy_info: Optional[str], child_allergies: Iterable[str]) -> bool:
    """Return True when a meal allergen mentions any of the child's allergies."""
    child_allergies = [item.strip().lower() for item in child_allergies if item and item.strip()]
    if not allergy_info or not child_allergies:
        return False
    try:
        allergens = json.loads(allergy_info)
    except ValueError:
        return False
    if not isinstance(allergens, list):
        return False
    return any(
        child_allergen in str(allergen).lower()
        for allergen in allergens
        for child_allergen in child_allergies
    )


def _row_to_meal(row) -> Meal:
    return Meal(
        id=row["id"],
        user_id=row["user_id"],
        name=row["name"],
        description=row["description"],
        ingredients=row["ingredients"],
        category=row["category"],
        allergy_info=row["allergy_info"],
        prep_time=row["prep_time"],
        is_template=bool(row["is_template"]),
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


# ---------------------------------------------------------------------------
# Meals
# ---------------------------------------------------------------------------


def list_meals(user_id: str) -> List[Meal]:
    with get_connection() as conn:
        rows = conn.execute(
            "SELECT * FROM meals WHERE user_id = ? ORDER BY created_at DESC",
            (user_id,),
        ).fetchall()
    return [_row_to_meal(row) for row in rows]


def list_meal_templates() -> List[Meal]:
    with get_connection() as conn:
        rows = conn.execute("SELECT * FROM meals WHERE is_template = 1 ORDER BY name ASC").fetchall()
    return [_row_to_meal(row) for row in rows]


def get_meal(meal_id: str, *, user_id: Optional[str] = None) -> Meal:
    query = "SELECT * FROM meals WHERE id = ?"
    params: List[Any] = [meal_id]
    if user_id is not None:
        query += " AND user_id = ?"
        params.append(user_id)
    with get_connection() as conn:
        row = conn.execute(query, params).fetchone()
    if not row:
        raise ValueError("Meal not found")
    return _row_to_meal(row)


def create_meal(user_id: Optional[str], payload: MealPayload) -> Meal:
    name = (payload.name or "").strip()
    if not name:
        raise MealValidationError("Meal name is required")
    now = _now_iso()
    meal_id = new_id()
    with get_connection() as conn:
        conn.execute(
            """
            INSERT INTO meals (
                id, user_id, name, description, ingredients, category,
                allergy_info, prep_time, is_template, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                meal_id,
                user_id,
                name,
                payload.description,
                payload.ingredients,
                payload.category,
                payload.allergy_info,
                payload.prep_time,
                int(payload.is_template),
                now,
                now,
            ),
        )
        conn.commit()
    return get_meal(meal_id)


def update_meal(meal_id: str, user_id: str, updates: Dict[str, Any]) -> Meal:
    get_meal(meal_id, user_id=user_id)
    if "name" in updates:
        name = (updates["name"] or "").strip()
        if not name:
            raise MealValidationError("Meal name is required")
        updates["name"] = name
    if "category" in updates and not (updates["category"] or "").strip():
        raise MealValidationError("Meal category is required")
    assignments = []
    params: List[Any] = []
    for field in MEAL_FIELDS:
        if field not in updates:
            continue
        value = updates[field]
        if field == "is_template":
            value = int(bool(value))
        assignments.append(f"{field} = ?")
        params.append(value)
    if assignments:
        assignments.append("updated_at = ?")
        params.extend([_now_iso(), meal_id])
        with get_connection() as conn:
            conn.execute(f"UPDATE meals SET {', '.join(assignments)} WHERE id = ?", params)
            conn.commit()
    return get_meal(meal_id)


def delete_meal(meal_id: str, user_id: str) -> None:
    get_meal(meal_id, user_id=user_id)
    with get_connection() as conn:
        conn.execute("DELETE FROM meals WHERE id = ?", (meal_id,))
        conn.commit()


# ---------------------------------------------------------------------------
# Meal plans
# ---------------------------------------------------------------------------


def _load_plan(conn, row) -> MealPlan:
    plan_id = row["id"]
    child_rows = conn.execute(
        """
        SELECT c.id, c.first_name, c.last_name, c.allergies
        FROM meal_plan_children pc
        JOIN children c ON c.id = pc.child_id
        WHERE pc.meal_plan_id = ?
        ORDER BY c.first_name, c.last_name
        """,
        (plan_id,),
    ).fetchall()
    children = [
        PlanChild(
            id=child["id"],
            first_name=child["first_name"],
            last_name=child["last_name"],
            allergies=child["allergies"],
        )
        for child in child_rows
    ]
    entry_rows = conn.execute(
        """
        SELECT e.id AS entry_id, e.meal_plan_id, e.meal_id, e.day_of_week, e.meal_time, m.*
        FROM meal_plan_entries e
        JOIN meals m ON m.id = e.meal_id
        WHERE e.meal_plan_id = ?
        """,
        (plan_id,),
    ).fetchall()
    entries = []
    for entry in entry_rows:
        meal = _row_to_meal(entry)
        conflicts = [
            child.first_name
            for child in children
            if meal_conflicts(meal.allergy_info, split_allergies(child.allergies))
        ]
        entries.append(
            MealPlanEntry(
                id=entry["entry_id"],
                meal_plan_id=entry["meal_plan_id"],
                meal_id=entry["meal_id"],
                day_of_week=entry["day_of_week"],
                day_name=DAY_NAMES[entry["day_of_week"]],
                meal_time=entry["meal_time"],
                meal=meal,
                allergy_conflicts=conflicts,
            )
        )
    entries.sort(key=lambda item: (item.day_of_week, MEAL_TIME_ORDER.get(item.meal_time, len(MEAL_TIME_ORDER))))
    return MealPlan(
        id=plan_id,
        user_id=row["user_id"],
        name=row["name"],
        start_date=date.fromisoformat(row["start_date"]),
        end_date=date.fromisoformat(row["end_date"]),
        is_active=bool(row["is_active"]),
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
        entries=entries,
        children=children,
    )


def _first_plan(query: str, params: Iterable[Any]) -> Optional[MealPlan]:
    with get_connection() as conn:
        row = conn.execute(query, tuple(params)).fetchone()
        if not row:
            return None
        return _load_plan(conn, row)


def get_meal_plan(plan_id: str, user_id: str) -> MealPlan:
    plan = _first_plan("SELECT * FROM meal_plans WHERE id = ? AND user_id = ?", (plan_id, user_id))
    if plan is None:
        raise ValueError("Meal plan not found")
    return plan


def get_active_meal_plan(user_id: str) -> Optional[MealPlan]:
    return _first_plan(
        """
        SELECT * FROM meal_plans
        WHERE user_id = ? AND is_active = 1
        ORDER BY start_date DESC
        LIMIT 1
        """,
        (user_id,),
    )


def get_meal_plan_for_week(user_id: str, value: date) -> Optional[MealPlan]:
    """Newest plan whose range overlaps the week containing ``value``."""
    week_start, week_end = week_bounds(value)
    return _first_plan(
        """
        SELECT * FROM meal_plans
        WHERE user_id = ? AND start_date <= ? AND end_date >= ?
        ORDER BY start_date DESC
        LIMIT 1
        """,
        (user_id, week_end.isoformat(), week_start.isoformat()),
    )


def get_weekly_meals(user_id: str, value: date) -> Optional[MealPlan]:
    week_start, week_end = week_bounds(value)
    return _first_plan(
        "SELECT * FROM meal_plans WHERE user_id = ? AND start_date = ? AND end_date = ?",
        (user_id, week_start.isoformat(), week_end.isoformat()),
    )


def create_meal_plan(user_id: str, value: date) -> MealPlan:
    existing = get_weekly_meals(user_id, value)
    if existing is not None:
        return existing
    week_start, week_end = week_bounds(value)
    now = _now_iso()
    plan_id = new_id()
    with get_connection() as conn:
        conn.execute(
            """
            INSERT INTO meal_plans (id, user_id, name, start_date, end_date, is_active, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, 1, ?, ?)
            """,
            (
                plan_id,
                user_id,
                plan_name_for_week(week_start),
                week_start.isoformat(),
                week_end.isoformat(),
                now,
                now,
            ),
        )
        conn.commit()
    return get_meal_plan(plan_id, user_id)


def add_meal_to_day(
    *,
    user_id: str,
    plan_id: str,
    meal_id: str,
    day_of_week: int,
    meal_time: str,
) -> MealPlanEntry:
    if not 0 <= day_of_week <= 6:
        raise MealValidationError("day_of_week must be between 0 (Monday) and 6 (Sunday)")
    get_meal_plan(plan_id, user_id)
    with get_connection() as conn:
        meal = conn.execute(
            "SELECT id FROM meals WHERE id = ? AND (user_id = ? OR is_template = 1)",
            (meal_id, user_id),
        ).fetchone()
        if not meal:
            raise ValueError("Meal not found")
        existing = conn.execute(
            """
            SELECT id FROM meal_plan_entries
            WHERE meal_plan_id = ? AND day_of_week = ? AND meal_time = ?
            """,
            (plan_id, day_of_week, meal_time),
        ).fetchone()
        if existing:
            entry_id = existing["id"]
            conn.execute("UPDATE meal_plan_entries SET meal_id = ? WHERE id = ?", (meal_id, entry_id))
        else:
            entry_id = new_id()
            conn.execute(
                """
                INSERT INTO meal_plan_entries (id, meal_plan_id, meal_id, day_of_week, meal_time, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (entry_id, plan_id, meal_id, day_of_week, meal_time, _now_iso()),
            )
        conn.execute("UPDATE meal_plans SET updated_at = ? WHERE id = ?", (_now_iso(), plan_id))
        conn.commit()
    plan = get_meal_plan(plan_id, user_id)
    return next(entry for entry in plan.entries if entry.id == entry_id)


def remove_meal_from_day(entry_id: str, user_id: str) -> None:
    with get_connection() as conn:
        row = conn.execute(
            """
            SELECT e.id FROM meal_plan_entries e
            JOIN meal_plans p ON p.id = e.meal_plan_id
            WHERE e.id = ? AND p.user_id = ?
            """,
            (entry_id, user_id),
        ).fetchone()
        if not row:
            raise ValueError("Meal plan entry not found")
        conn.execute("DELETE FROM meal_plan_entries WHERE id = ?", (entry_id,))
        conn.commit()


def assign_children(plan_id: str, user_id: str, child_ids: List[str]) -> MealPlan:
    get_meal_plan(plan_id, user_id)
    unique_ids = list(dict.fromkeys(child_ids))
    with get_connection() as conn:
        if unique_ids:
            placeholders = ",".join("?" for _ in unique_ids)
            owned = conn.execute(
                f"SELECT id FROM children WHERE user_id = ? AND id IN ({placeholders})",
                [user_id, *unique_ids],
            ).fetchall()
            if len(owned) != len(unique_ids):
                raise ValueError("Child not found")
        conn.execute("DELETE FROM meal_plan_children WHERE meal_plan_id = ?", (plan_id,))
        conn.executemany(
            "INSERT INTO meal_plan_children (meal_plan_id, child_id) VALUES (?, ?)",
            [(plan_id, child_id) for child_id in unique_ids],
        )
        conn.commit()
    return get_meal_plan(plan_id, user_id)
