import logging
from datetime import date, datetime, timezone
from typing import Optional

from botocore.exceptions import BotoCoreError, ClientError
from fastapi import APIRouter, Depends, Query, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..config import CONFIG
from ..db import get_user, search_children
from ..report_exports import render_report
from ..reports import (
    ReportData,
    ReportFilters,
    build_agent_summary,
    generate_report_data,
    report_rows_from_data,
)
from ..schemas import ReportCategory, ReportFormat, ReportType
from ..security import AuthContext, get_auth_context, require_agent_api_key
from ..storage import StorageNotConfigured, presigned_download_url

router = APIRouter(prefix="/api/v1", tags=["reports"])
logger = logging.getLogger(__name__)


class ReportExportRequest(ReportFilters):
    format: ReportFormat = ReportFormat.PDF


class AgentReportRequest(BaseModel):
    user_id: Optional[str] = None
    report_type: ReportType = ReportType.WEEKLY
    child_name: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


def _caller(auth: AuthContext) -> dict:
    return {"id": auth.user_id, "name": auth.user_name, "email": auth.user_email}


def report_filename(report_type: ReportType, extension: str, today: Optional[date] = None) -> str:
    today = today or datetime.now(tz=timezone.utc).date()
    return f"child-assistant-{report_type.value}-report-{today.isoformat()}.{extension}"


def _render(data: ReportData, fmt: ReportFormat) -> Response:
    label = f"{data.report_type.value.capitalize()} Report"
    payload, content_type, extension = render_report(
        fmt,
        report_rows_from_data(data),
        label,
        data.date_range.start,
        data.date_range.end,
    )
    filename = report_filename(data.report_type, extension)
    return Response(
        content=payload,
        media_type=content_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/reports", response_model=ReportData)
async def preview_report(
    report_type: ReportType = Query(ReportType.WEEKLY),
    category: ReportCategory = Query(ReportCategory.ALL),
    child_id: Optional[str] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    auth: AuthContext = Depends(get_auth_context),
) -> ReportData:
    filters = ReportFilters(
        report_type=report_type,
        category=category,
        child_id=child_id,
        start_date=start_date,
        end_date=end_date,
    )
    return generate_report_data(_caller(auth), filters)


@router.post("/reports")
async def download_pdf_report(filters: ReportFilters, auth: AuthContext = Depends(get_auth_context)) -> Response:
    return _render(generate_report_data(_caller(auth), filters), ReportFormat.PDF)


@router.post("/reports/export")
async def export_report(payload: ReportExportRequest, auth: AuthContext = Depends(get_auth_context)) -> Response:
    filters = ReportFilters(**payload.model_dump(exclude={"format"}))
    return _render(generate_report_data(_caller(auth), filters), payload.format)


@router.get("/reports/download")
async def report_download_link(
    key: Optional[str] = Query(None, description="S3 object key of a generated report"),
    auth: AuthContext = Depends(get_auth_context),
):
    if not key:
        return JSONResponse({"error": "Missing file key parameter"}, status_code=400)
    try:
        url = presigned_download_url(key, CONFIG.download_link_ttl_seconds)
    except StorageNotConfigured as exc:
        return JSONResponse({"error": str(exc)}, status_code=500)
    except (ClientError, BotoCoreError) as exc:
        logger.exception("presign failed", extra={"user_id": auth.user_id, "key": key})
        return JSONResponse(
            {"error": "Failed to generate download URL", "details": str(exc)},
            status_code=500,
        )
    return {"url": url, "expires_in": CONFIG.download_link_ttl_seconds}


@router.post("/reports/agent", dependencies=[Depends(require_agent_api_key)])
async def agent_report(payload: AgentReportRequest):
    """Summary of a report for the chat agent; the PDF itself is fetched from the Reports page."""

    if not payload.user_id:
        return JSONResponse({"success": False, "message": "User ID is required"}, status_code=400)
    try:
        user = get_user(payload.user_id)
    except ValueError as exc:
        return JSONResponse({"success": False, "message": str(exc)}, status_code=404)

    child_id = None
    if payload.child_name:
        matches = search_children(user_id=user["id"], name=payload.child_name)
        if matches:
            child_id = matches[0]["id"]

    filters = ReportFilters(
        report_type=payload.report_type,
        category=ReportCategory.ALL,
        child_id=child_id,
        start_date=payload.start_date,
        end_date=payload.end_date,
    )
    data = generate_report_data(user, filters)
    logger.info(
        "agent report summary",
        extra={"user_id": user["id"], "child_id": child_id, "report_type": payload.report_type.value},
    )
    return build_agent_summary(data)
