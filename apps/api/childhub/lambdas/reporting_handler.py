"""Agent action group: render reports, upload them to S3 and hand back a link."""
from __future__ import annotations

import calendar
import logging
import sqlite3
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

from botocore.exceptions import BotoCoreError, ClientError

from ..report_exports import render_report
from ..reports import count_events_by_type, fetch_report_rows
from ..schemas import ReportCategory, ReportFormat
from ..storage import StorageNotConfigured, report_key, upload_report
from .common import envelope, extract_parameters, log_event

logger = logging.getLogger(__name__)

REPORT_LABELS = {
    "/generate-daily-report": "Daily Report",
    "/generate-weekly-report": "Weekly Report",
    "/generate-monthly-report": "Monthly Report",
    "/generate-custom-report": "Custom Report",
    "/generate-children-report": "Children Report",
    "/generate-event-report": "Event Report",
}


def _parse_date(value: Any, default: date) -> date:
    if not value:
        return default
    return date.fromisoformat(str(value)[:10])


def _window(start: date, end: date) -> Tuple[datetime, datetime]:
    return (
        datetime.combine(start, time.min, tzinfo=timezone.utc),
        datetime.combine(end, time.max, tzinfo=timezone.utc),
    )


def _month_range(year: int, month: int) -> Tuple[date, date]:
    """``month`` is 1-based here, as the agent sends it."""
    return date(year, month, 1), date(year, month, calendar.monthrange(year, month)[1])


def _default_range(params: Dict[str, Any], today: date) -> Tuple[date, date]:
    return (
        _parse_date(params.get("startDate"), today - timedelta(days=30)),
        _parse_date(params.get("endDate"), today),
    )


def resolve_report_range(api_path: str, params: Dict[str, Any], today: Optional[date] = None) -> Tuple[date, date]:
    today = today or datetime.now(tz=timezone.utc).date()
    if api_path == "/generate-daily-report":
        day = _parse_date(params.get("date"), today)
        return day, day
    if api_path == "/generate-weekly-report":
        monday = today - timedelta(days=today.weekday())
        return (
            _parse_date(params.get("startDate"), monday),
            _parse_date(params.get("endDate"), monday + timedelta(days=6)),
        )
    if api_path == "/generate-monthly-report":
        year = int(params.get("year") or today.year)
        month = int(params.get("month") or today.month)
        return _month_range(year, month)
    return _default_range(params, today)


def resolve_preview_range(params: Dict[str, Any], today: Optional[date] = None) -> Tuple[date, date]:
    today = today or datetime.now(tz=timezone.utc).date()
    report_type = params.get("reportType")
    if report_type == "daily":
        day = _parse_date(params.get("startDate"), today)
        return day, day
    if report_type == "weekly":
        monday = today - timedelta(days=today.weekday())
        return (
            _parse_date(params.get("startDate"), monday),
            _parse_date(params.get("endDate"), monday + timedelta(days=6)),
        )
    if report_type == "monthly":
        return _month_range(today.year, today.month)
    return _default_range(params, today)


def _category(api_path: str, params: Dict[str, Any]) -> ReportCategory:
    default = ReportCategory.CHILDREN if api_path == "/generate-children-report" else ReportCategory.ALL
    try:
        return ReportCategory(params.get("category") or default)
    except ValueError:
        return default


def generate_report(api_path: str, params: Dict[str, Any]) -> Dict[str, Any]:
    raw_format = (params.get("format") or "").lower()
    try:
        fmt = ReportFormat(raw_format)
    except ValueError:
        return {"success": False, "error": f"Unsupported format: {raw_format or 'missing'}. Use excel, csv or pdf."}

    label = REPORT_LABELS[api_path]
    start_day, end_day = resolve_report_range(api_path, params)
    start, end = _window(start_day, end_day)
    rows = fetch_report_rows(
        params.get("userId"),
        start,
        end,
        child_id=params.get("childId"),
        event_type=params.get("eventType"),
        category=_category(api_path, params),
        newest_first=False,
    )
    payload, content_type, extension = render_report(fmt, rows, label, start_day, end_day)
    key = report_key(extension)
    filename = key.rsplit("/", 1)[-1]
    url = upload_report(payload, key, content_type)
    return {
        "success": True,
        "reportUrl": url,
        "filename": filename,
        "format": fmt.value,
        "message": (
            f"{label} generated successfully in {fmt.value.upper()} format.\n\n"
            f"Download your report here:\n{url}\n\n"
            f"Filename: {filename}\n\n"
            "Note: This download link expires in 7 days."
        ),
    }


def report_preview(params: Dict[str, Any]) -> Dict[str, Any]:
    start_day, end_day = resolve_preview_range(params)
    start, end = _window(start_day, end_day)
    rows = fetch_report_rows(params.get("userId"), start, end, child_id=params.get("childId"), newest_first=False)
    return {
        "success": True,
        "summary": {
            "totalEvents": len(rows["events"]),
            "totalBookings": len(rows["bookings"]),
            "totalChildren": len(rows["children"]),
            "eventsByType": count_events_by_type(rows["events"]),
        },
        "dateRange": {"start": start_day.isoformat(), "end": end_day.isoformat()},
    }


def handler(event: Dict[str, Any], context: Any = None) -> Dict[str, Any]:
    log_event("reporting handler", event)
    api_path = event.get("apiPath")
    try:
        params = extract_parameters(event)
        if api_path in REPORT_LABELS:
            result = generate_report(api_path, params)
        elif api_path == "/get-report-preview":
            result = report_preview(params)
        else:
            result = {"success": False, "error": f"Unknown action: {api_path}"}
    except (ValueError, sqlite3.Error, StorageNotConfigured, ClientError, BotoCoreError) as exc:
        logger.exception("reporting action failed", extra={"api_path": api_path})
        return envelope(event, {"success": False, "error": str(exc)}, status_code=500, http_method="POST")
    return envelope(event, result, http_method="POST")
