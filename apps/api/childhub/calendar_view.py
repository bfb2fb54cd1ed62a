"""Month view combining bookings and child events."""
from __future__ import annotations

import calendar
from datetime import date, datetime, time, timezone
from typing import Any, Dict, Optional

from .db import list_bookings, list_children, list_user_events_between
from .schemas import CalendarChild, CalendarData, CalendarEvent


def month_bounds(year: int, month: int) -> tuple[datetime, datetime]:
    """UTC bounds of a month; ``month`` is 0-based (0 = January)."""
    month_number = month + 1
    last_day = calendar.monthrange(year, month_number)[1]
    start = datetime.combine(date(year, month_number, 1), time.min, tzinfo=timezone.utc)
    end = datetime.combine(date(year, month_number, last_day), time.max, tzinfo=timezone.utc)
    return start, end


def display_name(first_name: Optional[str], last_name: Optional[str]) -> str:
    return f"{first_name} {last_name}" if last_name else (first_name or "")


def _booking_moment(row: Dict[str, Any]) -> datetime:
    return datetime.combine(date.fromisoformat(row["date"][:10]), time.min, tzinfo=timezone.utc)


def get_calendar_data(user_id: Optional[str], year: int, month: int) -> CalendarData:
    if not user_id:
        return CalendarData(events=[], children=[])
    if not 0 <= month <= 11:
        raise ValueError("month must be between 0 and 11")

    start, end = month_bounds(year, month)
    children = [
        CalendarChild(id=child["id"], first_name=child["first_name"], last_name=child.get("last_name"))
        for child in list_children(user_id, include_events=False)
    ]

    events = [
        CalendarEvent(
            id=row["id"],
            name=row["name"],
            event_type="Booking",
            child_name=display_name(row["first_name"], row["last_name"]) if row.get("first_name") else "General",
            child_id=row.get("child_id") or "",
            date=_booking_moment(row),
            time=row["time"],
            type="booking",
        )
        for row in list_bookings(user_id, start=start.isoformat(), end=end.isoformat())
    ]
    events.extend(
        CalendarEvent(
            id=row["id"],
            name=row["name"],
            event_type=row["event_type"],
            child_name=display_name(row["first_name"], row["last_name"]),
            child_id=row["child_id"],
            date=datetime.fromisoformat(row["created_at"]),
            type="event",
        )
        for row in list_user_events_between(user_id, start.isoformat(), end.isoformat())
    )
    events.sort(key=lambda item: item.date)
    return CalendarData(events=events, children=children)
