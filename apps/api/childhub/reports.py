"""Report aggregation shared by the web routes, the agent endpoint and the reporting lambda."""
from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .db import children_activity_summary, list_bookings, list_user_events_between
from .schemas import ReportCategory, ReportType

logger = logging.getLogger(__name__)

REPORT_KEYWORDS = [
    "report",
    "generate report",
    "create report",
    "download report",
    "pdf",
    "export",
    "summary report",
    "activity report",
]


class ReportFilters(BaseModel):
    report_type: ReportType = ReportType.WEEKLY
    category: ReportCategory = ReportCategory.ALL
    child_id: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class DateRange(BaseModel):
    start: datetime
    end: datetime


class ReportUser(BaseModel):
    name: Optional[str] = None
    email: str = ""


class ReportChildRef(BaseModel):
    id: str
    first_name: str
    last_name: Optional[str] = None


class ReportEvent(BaseModel):
    id: str
    name: str
    event_type: str
    created_at: datetime
    child: Optional[ReportChildRef] = None


class ReportBooking(BaseModel):
    id: str
    name: str
    date: date
    time: str
    notes: Optional[str] = None
    child: Optional[ReportChildRef] = None


class ChildSummary(BaseModel):
    id: str
    first_name: str
    last_name: Optional[str] = None
    date_of_birth: date
    gender: Optional[str] = None
    allergies: Optional[str] = None
    medical_info: Optional[str] = None
    event_count: int = 0
    booking_count: int = 0


class ReportSummary(BaseModel):
    total_events: int
    total_bookings: int
    total_children: int
    events_by_type: Dict[str, int] = Field(default_factory=dict)


class ReportData(BaseModel):
    generated_at: datetime
    report_type: ReportType
    category: ReportCategory
    date_range: DateRange
    user: ReportUser
    events: List[ReportEvent]
    bookings: List[ReportBooking]
    children: List[ChildSummary]
    summary: ReportSummary


def _start_of_day(value: date) -> datetime:
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def _end_of_day(value: date) -> datetime:
    return datetime.combine(value, time.max, tzinfo=timezone.utc)


def get_date_range(
    report_type: ReportType,
    now: Optional[datetime] = None,
    custom_start: Optional[date] = None,
    custom_end: Optional[date] = None,
) -> DateRange:
    """Resolve the reporting window; weeks start on Monday."""
    now = now or datetime.now(tz=timezone.utc)
    today = now.date()
    if report_type == ReportType.WEEKLY:
        monday = today - timedelta(days=today.weekday())
        return DateRange(start=_start_of_day(monday), end=_end_of_day(monday + timedelta(days=6)))
    if report_type == ReportType.MONTHLY:
        first = today.replace(day=1)
        next_month = (first + timedelta(days=32)).replace(day=1)
        return DateRange(start=_start_of_day(first), end=_end_of_day(next_month - timedelta(days=1)))
    if report_type == ReportType.CUSTOM:
        start = _start_of_day(custom_start) if custom_start else now - timedelta(days=30)
        end = _end_of_day(custom_end) if custom_end else _end_of_day(today)
        return DateRange(start=start, end=end)
    return DateRange(start=_start_of_day(today), end=_end_of_day(today))


def fetch_report_rows(
    user_id: Optional[str],
    start: datetime,
    end: datetime,
    *,
    child_id: Optional[str] = None,
    event_type: Optional[str] = None,
    category: ReportCategory = ReportCategory.ALL,
    newest_first: bool = True,
) -> Dict[str, List[Dict[str, Any]]]:
    """Raw event/booking/child rows for a window, narrowed by category."""
    start_iso, end_iso = start.isoformat(), end.isoformat()
    events: List[Dict[str, Any]] = []
    bookings: List[Dict[str, Any]] = []
    children: List[Dict[str, Any]] = []
    if category in (ReportCategory.ALL, ReportCategory.EVENTS):
        events = list_user_events_between(
            user_id, start_iso, end_iso, child_id=child_id, event_type=event_type
        )
    if category in (ReportCategory.ALL, ReportCategory.BOOKINGS):
        bookings = list_bookings(
            user_id, start=start_iso, end=end_iso, child_id=child_id, newest_first=newest_first
        )
    if category in (ReportCategory.ALL, ReportCategory.CHILDREN):
        children = children_activity_summary(user_id, start_iso, end_iso, child_id=child_id)
    return {"events": events, "bookings": bookings, "children": children}


def count_events_by_type(events: List[Dict[str, Any]]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for event in events:
        counts[event["event_type"]] = counts.get(event["event_type"], 0) + 1
    return counts


def _child_ref(row: Dict[str, Any], id_key: str) -> Optional[ReportChildRef]:
    if not row.get(id_key) or not row.get("first_name"):
        return None
    return ReportChildRef(id=row[id_key], first_name=row["first_name"], last_name=row.get("last_name"))


def generate_report_data(
    user: Dict[str, Any],
    filters: ReportFilters,
    now: Optional[datetime] = None,
) -> ReportData:
    """Build the report for ``user`` (a dict with id, name and email)."""
    now = now or datetime.now(tz=timezone.utc)
    date_range = get_date_range(filters.report_type, now, filters.start_date, filters.end_date)
    rows = fetch_report_rows(
        user["id"],
        date_range.start,
        date_range.end,
        child_id=filters.child_id,
        category=filters.category,
    )
    events = [
        ReportEvent(
            id=row["id"],
            name=row["name"],
            event_type=row["event_type"],
            created_at=datetime.fromisoformat(row["created_at"]),
            child=_child_ref(row, "child_id"),
        )
        for row in rows["events"]
    ]
    bookings = [
        ReportBooking(
            id=row["id"],
            name=row["name"],
            date=date.fromisoformat(row["date"][:10]),
            time=row["time"],
            notes=row.get("notes"),
            child=_child_ref(row, "child_id"),
        )
        for row in rows["bookings"]
    ]
    children = [
        ChildSummary(
            id=row["id"],
            first_name=row["first_name"],
            last_name=row.get("last_name"),
            date_of_birth=date.fromisoformat(row["date_of_birth"][:10]),
            gender=row.get("gender"),
            allergies=row.get("allergies"),
            medical_info=row.get("medical_info"),
            event_count=row.get("total_events") or 0,
            booking_count=row.get("total_bookings") or 0,
        )
        for row in rows["children"]
    ]
    logger.info(
        "report generated",
        extra={
            "user_id": user["id"],
            "report_type": filters.report_type.value,
            "category": filters.category.value,
            "events": len(events),
            "bookings": len(bookings),
            "children": len(children),
        },
    )
    return ReportData(
        generated_at=now,
        report_type=filters.report_type,
        category=filters.category,
        date_range=date_range,
        user=ReportUser(name=user.get("name"), email=user.get("email") or ""),
        events=events,
        bookings=bookings,
        children=children,
        summary=ReportSummary(
            total_events=len(events),
            total_bookings=len(bookings),
            total_children=len(children),
            events_by_type=count_events_by_type(rows["events"]),
        ),
    )


def report_rows_from_data(data: ReportData) -> Dict[str, List[Dict[str, Any]]]:
    """Flatten a ReportData into the row shape the exporters consume."""
    events = [
        {
            "name": event.name,
            "event_type": event.event_type,
            "created_at": event.created_at,
            "first_name": event.child.first_name if event.child else None,
            "last_name": event.child.last_name if event.child else None,
        }
        for event in data.events
    ]
    bookings = [
        {
            "date": booking.date,
            "time": booking.time,
            "name": booking.name,
            "notes": booking.notes,
            "first_name": booking.child.first_name if booking.child else None,
            "last_name": booking.child.last_name if booking.child else None,
            "user_name": data.user.name,
        }
        for booking in data.bookings
    ]
    children = [
        {
            "first_name": child.first_name,
            "last_name": child.last_name,
            "date_of_birth": child.date_of_birth,
            "total_bookings": child.booking_count,
            "total_events": child.event_count,
        }
        for child in data.children
    ]
    return {"events": events, "bookings": bookings, "children": children}


def format_period(date_range: DateRange) -> str:
    """``Jan 6, 2025 - Jan 12, 2025``"""

    def _fmt(value: datetime) -> str:
        return f"{value.strftime('%b')} {value.day}, {value.year}"

    return f"{_fmt(date_range.start)} - {_fmt(date_range.end)}"


def build_agent_summary(data: ReportData) -> Dict[str, Any]:
    return {
        "success": True,
        "message": f"I've prepared your {data.report_type.value} report. Here's a summary:",
        "preview": {
            "period": format_period(data.date_range),
            "total_children": data.summary.total_children,
            "total_events": data.summary.total_events,
            "total_bookings": data.summary.total_bookings,
            "events_by_type": data.summary.events_by_type,
        },
        "download_url": "/reports",
        "instructions": "Visit the Reports page to download the full PDF report.",
    }


# ---------------------------------------------------------------------------
# Chat helpers
# ---------------------------------------------------------------------------


def is_report_request(message: str) -> bool:
    lowered = message.lower()
    return any(keyword in lowered for keyword in REPORT_KEYWORDS)


def parse_report_request(text: str) -> ReportType:
    lowered = text.lower()
    if "daily" in lowered or "today" in lowered:
        return ReportType.DAILY
    if "weekly" in lowered or "week" in lowered:
        return ReportType.WEEKLY
    if "monthly" in lowered or "month" in lowered:
        return ReportType.MONTHLY
    return ReportType.WEEKLY


def format_report_response(response: Dict[str, Any]) -> str:
    """Markdown rendering of an agent summary for the chat window."""
    if not response.get("success"):
        return f"I wasn't able to generate the report. {response.get('message', '')}".rstrip()

    lines = ["📊 **Report Generated!**", "", response.get("message", ""), ""]
    preview = response.get("preview")
    if preview:
        lines.extend(
            [
                "**Summary:**",
                f"- Period: {preview['period']}",
                f"- Children: {preview['total_children']}",
                f"- Events: {preview['total_events']}",
                f"- Bookings: {preview['total_bookings']}",
                "",
            ]
        )
    lines.append("You can download the full PDF report from the [Reports page](/reports).")
    return "\n".join(lines)
