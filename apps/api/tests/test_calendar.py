from __future__ import annotations

from datetime import date

from fastapi.testclient import TestClient

from childhub.calendar_view import display_name, month_bounds
from childhub.db import create_booking, create_child, insert_child_event
from childhub.main import app

client = TestClient(app)


def test_month_is_zero_based() -> None:
    start, end = month_bounds(2025, 1)
    assert start.isoformat() == "2025-02-01T00:00:00+00:00"
    assert end.date() == date(2025, 2, 28)


def test_display_name() -> None:
    assert display_name("Emma", "Johnson") == "Emma Johnson"
    assert display_name("Emma", None) == "Emma"


def test_calendar_merges_bookings_and_events(user, make_user) -> None:
    emma = create_child(user["id"], {"first_name": "Emma", "last_name": "Johnson", "date_of_birth": "2018-05-15"})
    liam = create_child(user["id"], {"first_name": "Liam", "date_of_birth": "2020-08-22"})
    create_booking(user_id=user["id"], name="Swim", booking_date=date(2025, 3, 20), time="09:00", child_id=liam["id"])
    create_booking(user_id=user["id"], name="Parent Night", booking_date=date(2025, 3, 5), time="18:00")
    create_booking(user_id=user["id"], name="April Fool", booking_date=date(2025, 4, 1), time="10:00")
    insert_child_event(child_id=emma["id"], name="Checkup", event_type="Medical", occurred_at="2025-03-10T08:00:00+00:00")
    insert_child_event(child_id=emma["id"], name="Old", event_type="Medical", occurred_at="2025-02-27T08:00:00+00:00")

    other = make_user("other@example.com")
    create_booking(user_id=other["id"], name="Not mine", booking_date=date(2025, 3, 6), time="10:00")

    data = client.get("/api/v1/calendar", params={"year": 2025, "month": 2}, headers=user["headers"]).json()

    assert {child["first_name"] for child in data["children"]} == {"Emma", "Liam"}
    summary = [(item["name"], item["type"], item["event_type"], item["child_name"]) for item in data["events"]]
    assert summary == [
        ("Parent Night", "booking", "Booking", "General"),
        ("Checkup", "event", "Medical", "Emma Johnson"),
        ("Swim", "booking", "Booking", "Liam"),
    ]
    assert data["events"][0]["child_id"] == ""
    assert data["events"][0]["time"] == "18:00"


def test_calendar_without_session_is_empty() -> None:
    response = client.get("/api/v1/calendar", params={"year": 2025, "month": 2})
    assert response.status_code == 200
    assert response.json() == {"events": [], "children": []}


def test_calendar_rejects_bad_month(user) -> None:
    response = client.get("/api/v1/calendar", params={"year": 2025, "month": 12}, headers=user["headers"])
    assert response.status_code == 400
