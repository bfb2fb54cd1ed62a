"""Pydantic schemas shared across the API."""
from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class UserOut(BaseModel):
    id: str
    name: Optional[str] = None
    email: str
    email_verified: Optional[datetime] = None
    image: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class RegisterRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime
    user: UserOut


class ChildEvent(BaseModel):
    id: str
    child_id: str
    name: str
    event_type: str
    created_at: datetime
    updated_at: datetime


class OwnerSummary(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None


class Child(BaseModel):
    id: str
    user_id: str
    first_name: str
    last_name: Optional[str] = None
    date_of_birth: date
    gender: Optional[str] = None
    allergies: Optional[str] = None
    medical_info: Optional[str] = None
    notes: Optional[str] = None
    signed_in: bool = False
    booked_in: bool = False
    created_at: datetime
    updated_at: datetime
    events: List[ChildEvent] = Field(default_factory=list)
    user: Optional[OwnerSummary] = None


class ChildCreate(BaseModel):
    first_name: str = Field(..., min_length=1)
    last_name: Optional[str] = None
    date_of_birth: date
    gender: Optional[str] = None
    allergies: Optional[str] = None
    medical_info: Optional[str] = None
    notes: Optional[str] = None


class ChildUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    allergies: Optional[str] = None
    medical_info: Optional[str] = None
    notes: Optional[str] = None
    signed_in: Optional[bool] = None
    booked_in: Optional[bool] = None


class EventCreate(BaseModel):
    name: str
    event_type: str
    occurred_at: Optional[datetime] = Field(
        default=None, description="When the event happened; defaults to now."
    )


class EventTypeStat(BaseModel):
    event_type: str
    count: int
    earliest: Optional[datetime] = None
    latest: Optional[datetime] = None


class EventStatistics(BaseModel):
    events_by_type: List[EventTypeStat]
    total_events: int
    total_children: int
    filtered_by_child: bool


class Booking(BaseModel):
    id: str
    user_id: str
    child_id: Optional[str] = None
    name: str
    date: date
    time: str
    notes: Optional[str] = None
    created_at: datetime


class BookingCreate(BaseModel):
    name: str = Field(..., min_length=1)
    date: date
    time: str = Field(..., pattern=r"^\d{2}:\d{2}$")
    child_id: Optional[str] = None
    notes: Optional[str] = None


class MealTime(str, Enum):
    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"


class ReportType(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    CUSTOM = "custom"


class ReportCategory(str, Enum):
    ALL = "all"
    EVENTS = "events"
    BOOKINGS = "bookings"
    CHILDREN = "children"


class ReportFormat(str, Enum):
    PDF = "pdf"
    EXCEL = "excel"
    CSV = "csv"


class CalendarChild(BaseModel):
    id: str
    first_name: str
    last_name: Optional[str] = None


class CalendarEvent(BaseModel):
    id: str
    name: str
    event_type: str
    child_name: str
    child_id: str
    date: datetime
    time: Optional[str] = None
    type: str


class CalendarData(BaseModel):
    events: List[CalendarEvent]
    children: List[CalendarChild]


class AssistantRequest(BaseModel):
    message: str = ""
    session_id: Optional[str] = None
    current_date: Optional[str] = Field(default=None, description="YYYY-MM-DD")
    current_time: Optional[str] = Field(default=None, description="HH:MM:SS")


class AssistantResponse(BaseModel):
    message: str
    session_id: str


class LocationRequest(BaseModel):
    action: Optional[str] = None
    suburb_name: Optional[str] = None
    is_favorite: Optional[bool] = None

