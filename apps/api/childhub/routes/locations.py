from fastapi import APIRouter, Depends, HTTPException

from ..db import list_locations
from ..schemas import LocationRequest
from ..security import AuthContext, get_auth_context

router = APIRouter(prefix="/api/v1", tags=["locations"])


@router.post("/locations")
async def location_action(payload: LocationRequest, auth: AuthContext = Depends(get_auth_context)) -> dict:
    if not payload.action:
        raise HTTPException(status_code=400, detail="Action is required")
    if payload.action != "get-location-data":
        raise HTTPException(status_code=501, detail=f"Action '{payload.action}' is not implemented")
    rows = list_locations(auth.user_id, suburb_name=payload.suburb_name, is_favorite=payload.is_favorite)
    return {"success": True, "location_data": rows, "count": len(rows)}
