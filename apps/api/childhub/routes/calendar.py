from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ..calendar_view import get_calendar_data
from ..schemas import CalendarData
from ..security import AuthContext, get_optional_auth_context

router = APIRouter(prefix="/api/v1", tags=["calendar"])


@router.get("/calendar", response_model=CalendarData)
async def calendar_month(
    year: int = Query(..., ge=1900, le=9999),
    month: int = Query(..., description="0-based month (0 = January)"),
    auth: Optional[AuthContext] = Depends(get_optional_auth_context),
) -> CalendarData:
    try:
        return get_calendar_data(auth.user_id if auth else None, year, month)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
