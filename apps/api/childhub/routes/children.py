import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response

from ..db import create_child, delete_child, get_child, list_all_children, list_children, update_child
from ..schemas import Child, ChildCreate, ChildUpdate
from ..security import AuthContext, get_auth_context, require_agent_api_key

router = APIRouter(prefix="/api/v1", tags=["children"])
logger = logging.getLogger(__name__)


@router.get("/children", response_model=List[Child])
async def get_children(auth: AuthContext = Depends(get_auth_context)) -> List[Child]:
    return [Child(**child) for child in list_children(auth.user_id)]


@router.get("/admin/children", response_model=List[Child], dependencies=[Depends(require_agent_api_key)])
async def get_all_children() -> List[Child]:
    """Every child with its owner's name and email."""
    children = list_all_children()
    logger.info("admin children listing", extra={"count": len(children)})
    return [Child(**child) for child in children]


@router.post("/children", response_model=Child, status_code=201)
async def create_child_endpoint(payload: ChildCreate, auth: AuthContext = Depends(get_auth_context)) -> Child:
    first_name = payload.first_name.strip()
    if not first_name:
        raise HTTPException(status_code=400, detail="first_name is required")
    data = payload.model_dump()
    data["first_name"] = first_name
    child = create_child(auth.user_id, data)
    logger.info("child created", extra={"user_id": auth.user_id, "child_id": child["id"]})
    return Child(**child)


@router.get("/children/{child_id}", response_model=Child)
async def get_child_with_events(child_id: str, auth: AuthContext = Depends(get_auth_context)) -> Child:
    try:
        return Child(**get_child(child_id, user_id=auth.user_id))
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.patch("/children/{child_id}", response_model=Child)
async def update_child_endpoint(
    child_id: str,
    payload: ChildUpdate,
    auth: AuthContext = Depends(get_auth_context),
) -> Child:
    updates = {field: getattr(payload, field) for field in payload.model_fields_set}
    if "first_name" in updates:
        first_name = (updates["first_name"] or "").strip()
        if not first_name:
            raise HTTPException(status_code=400, detail="first_name cannot be empty")
        updates["first_name"] = first_name
    if "date_of_birth" in updates and updates["date_of_birth"] is None:
        raise HTTPException(status_code=400, detail="date_of_birth cannot be empty")
    try:
        return Child(**update_child(child_id, auth.user_id, updates))
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.delete("/children/{child_id}", status_code=204)
async def delete_child_endpoint(child_id: str, auth: AuthContext = Depends(get_auth_context)) -> Response:
    try:
        delete_child(child_id, auth.user_id)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    logger.info("child deleted", extra={"user_id": auth.user_id, "child_id": child_id})
    return Response(status_code=204)
