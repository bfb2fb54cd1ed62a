from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from ..db import create_booking, delete_booking, get_child, list_bookings
from ..schemas import Booking, BookingCreate
from ..security import AuthContext, get_auth_context

router = APIRouter(prefix="/api/v1", tags=["bookings"])


def _to_booking(row: dict) -> Booking:
    return Booking(
        id=row["id"],
        user_id=row["user_id"],
        child_id=row.get("child_id"),
        name=row["name"],
        date=date.fromisoformat(row["date"][:10]),
        time=row["time"],
        notes=row.get("notes"),
        created_at=row["created_at"],
    )


@router.post("/bookings", response_model=Booking, status_code=201)
async def create_booking_endpoint(payload: BookingCreate, auth: AuthContext = Depends(get_auth_context)) -> Booking:
    name = payload.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="name is required")
    if payload.child_id:
        try:
            get_child(payload.child_id, user_id=auth.user_id, include_events=False)
        except ValueError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
    row = create_booking(
        user_id=auth.user_id,
        name=name,
        booking_date=payload.date,
        time=payload.time,
        child_id=payload.child_id,
        notes=payload.notes,
    )
    return _to_booking(row)


@router.get("/bookings", response_model=List[Booking])
async def list_bookings_endpoint(
    start: Optional[date] = Query(None, description="First day (inclusive)"),
    end: Optional[date] = Query(None, description="Last day (inclusive)"),
    auth: AuthContext = Depends(get_auth_context),
) -> List[Booking]:
    rows = list_bookings(
        auth.user_id,
        start=start.isoformat() if start else None,
        end=end.isoformat() if end else None,
    )
    return [_to_booking(row) for row in rows]


@router.delete("/bookings/{booking_id}", status_code=204)
async def delete_booking_endpoint(booking_id: str, auth: AuthContext = Depends(get_auth_context)) -> Response:
    try:
        delete_booking(booking_id, auth.user_id)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return Response(status_code=204)
