import logging
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from ..db import delete_child_event, event_statistics, get_child, insert_child_event, list_child_events
from ..schemas import ChildEvent, EventCreate, EventStatistics, EventTypeStat
from ..security import AuthContext, get_auth_context

router = APIRouter(prefix="/api/v1", tags=["events"])
logger = logging.getLogger(__name__)


def _as_utc_iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def _require_child(child_id: str, user_id: str) -> None:
    try:
        get_child(child_id, user_id=user_id, include_events=False)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.post("/children/{child_id}/events", response_model=ChildEvent, status_code=201)
async def log_event(
    child_id: str,
    payload: EventCreate,
    auth: AuthContext = Depends(get_auth_context),
) -> ChildEvent:
    name = payload.name.strip()
    event_type = payload.event_type.strip()
    if not name or not event_type:
        raise HTTPException(status_code=400, detail="name and event_type are required")
    _require_child(child_id, auth.user_id)
    occurred_at = _as_utc_iso(payload.occurred_at) if payload.occurred_at else None
    row = insert_child_event(child_id=child_id, name=name, event_type=event_type, occurred_at=occurred_at)
    logger.info(
        "child-scoped request",
        extra={"method": "POST", "path": "/children/{id}/events", "child_id": child_id},
    )
    return ChildEvent(**row)


@router.get("/children/{child_id}/events", response_model=List[ChildEvent])
async def get_child_events(child_id: str, auth: AuthContext = Depends(get_auth_context)) -> List[ChildEvent]:
    """Return the child's events, newest first."""

    _require_child(child_id, auth.user_id)
    events = [ChildEvent(**row) for row in list_child_events(child_id)]
    logger.info("child events query", extra={"child_id": child_id, "count": len(events)})
    return events


@router.delete("/events/{event_id}", status_code=204)
async def delete_event(event_id: str, auth: AuthContext = Depends(get_auth_context)) -> Response:
    try:
        delete_child_event(event_id, auth.user_id)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return Response(status_code=204)


@router.get("/events/statistics", response_model=EventStatistics)
async def get_event_statistics(
    child_id: Optional[str] = Query(None, description="Restrict to one child"),
    auth: AuthContext = Depends(get_auth_context),
) -> EventStatistics:
    if child_id:
        _require_child(child_id, auth.user_id)
    stats = event_statistics(child_id, user_id=auth.user_id)
    return EventStatistics(
        events_by_type=[EventTypeStat(**row) for row in stats["events_by_type"]],
        total_events=stats["totals"]["total_events"],
        total_children=stats["totals"]["total_children"],
        filtered_by_child=stats["filtered_by_child"],
    )
