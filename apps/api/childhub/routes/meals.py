import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from pydantic import BaseModel, Field

from .. import meals as meal_store
from ..meals import Meal, MealPayload, MealPlan, MealPlanEntry, MealUpdatePayload, MealValidationError
from ..schemas import MealTime
from ..security import AuthContext, get_auth_context

router = APIRouter(prefix="/api/v1", tags=["meals"])
logger = logging.getLogger(__name__)


class MealPlanCreate(BaseModel):
    date: date


class MealPlanEntryCreate(BaseModel):
    meal_id: str
    day_of_week: int = Field(..., ge=0, le=6, description="0 = Monday")
    meal_time: MealTime


class AssignChildrenPayload(BaseModel):
    child_ids: List[str] = Field(default_factory=list)


def _not_found(exc: ValueError) -> HTTPException:
    return HTTPException(status_code=404, detail=str(exc))


@router.get("/meals", response_model=List[Meal])
async def get_meals(auth: AuthContext = Depends(get_auth_context)) -> List[Meal]:
    return meal_store.list_meals(auth.user_id)


@router.get("/meals/templates", response_model=List[Meal])
async def get_meal_templates() -> List[Meal]:
    return meal_store.list_meal_templates()


@router.post("/meals", response_model=Meal, status_code=201)
async def create_meal(payload: MealPayload, auth: AuthContext = Depends(get_auth_context)) -> Meal:
    try:
        meal = meal_store.create_meal(auth.user_id, payload)
    except MealValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    logger.info("meal created", extra={"user_id": auth.user_id, "meal_id": meal.id})
    return meal


@router.get("/meals/{meal_id}", response_model=Meal)
async def get_meal(meal_id: str, auth: AuthContext = Depends(get_auth_context)) -> Meal:
    try:
        return meal_store.get_meal(meal_id, user_id=auth.user_id)
    except ValueError as exc:
        raise _not_found(exc) from exc


@router.patch("/meals/{meal_id}", response_model=Meal)
async def update_meal(
    meal_id: str,
    payload: MealUpdatePayload,
    auth: AuthContext = Depends(get_auth_context),
) -> Meal:
    updates = {field: getattr(payload, field) for field in payload.model_fields_set}
    try:
        return meal_store.update_meal(meal_id, auth.user_id, updates)
    except MealValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except ValueError as exc:
        raise _not_found(exc) from exc


@router.delete("/meals/{meal_id}", status_code=204)
async def delete_meal(meal_id: str, auth: AuthContext = Depends(get_auth_context)) -> Response:
    try:
        meal_store.delete_meal(meal_id, auth.user_id)
    except ValueError as exc:
        raise _not_found(exc) from exc
    return Response(status_code=204)


@router.post("/meal-plans", response_model=MealPlan)
async def create_meal_plan(payload: MealPlanCreate, auth: AuthContext = Depends(get_auth_context)) -> MealPlan:
    """Return the plan for the payload's week, creating it on first use."""
    return meal_store.create_meal_plan(auth.user_id, payload.date)


@router.get("/meal-plans/active", response_model=Optional[MealPlan])
async def get_active_meal_plan(auth: AuthContext = Depends(get_auth_context)) -> Optional[MealPlan]:
    return meal_store.get_active_meal_plan(auth.user_id)


@router.get("/meal-plans/week", response_model=Optional[MealPlan])
async def get_meal_plan_for_week(
    day: date = Query(..., alias="date", description="Any day inside the wanted week"),
    auth: AuthContext = Depends(get_auth_context),
) -> Optional[MealPlan]:
    return meal_store.get_meal_plan_for_week(auth.user_id, day)


@router.get("/meal-plans/weekly", response_model=Optional[MealPlan])
async def get_weekly_meals(
    day: date = Query(..., alias="date", description="Any day inside the wanted week"),
    auth: AuthContext = Depends(get_auth_context),
) -> Optional[MealPlan]:
    return meal_store.get_weekly_meals(auth.user_id, day)


@router.get("/meal-plans/{plan_id}", response_model=MealPlan)
async def get_meal_plan(plan_id: str, auth: AuthContext = Depends(get_auth_context)) -> MealPlan:
    try:
        return meal_store.get_meal_plan(plan_id, auth.user_id)
    except ValueError as exc:
        raise _not_found(exc) from exc


@router.post("/meal-plans/{plan_id}/entries", response_model=MealPlanEntry, status_code=201)
async def add_meal_to_day(
    plan_id: str,
    payload: MealPlanEntryCreate,
    auth: AuthContext = Depends(get_auth_context),
) -> MealPlanEntry:
    try:
        return meal_store.add_meal_to_day(
            user_id=auth.user_id,
            plan_id=plan_id,
            meal_id=payload.meal_id,
            day_of_week=payload.day_of_week,
            meal_time=payload.meal_time.value,
        )
    except MealValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except ValueError as exc:
        raise _not_found(exc) from exc


@router.delete("/meal-plan-entries/{entry_id}", status_code=204)
async def remove_meal_from_day(entry_id: str, auth: AuthContext = Depends(get_auth_context)) -> Response:
    try:
        meal_store.remove_meal_from_day(entry_id, auth.user_id)
    except ValueError as exc:
        raise _not_found(exc) from exc
    return Response(status_code=204)


@router.put("/meal-plans/{plan_id}/children", response_model=MealPlan)
async def assign_children(
    plan_id: str,
    payload: AssignChildrenPayload,
    auth: AuthContext = Depends(get_auth_context),
) -> MealPlan:
    try:
        return meal_store.assign_children(plan_id, auth.user_id, payload.child_ids)
    except ValueError as exc:
        raise _not_found(exc) from exc
