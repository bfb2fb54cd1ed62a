from __future__ import annotations

from fastapi.testclient import TestClient

from childhub.db import create_child
from childhub.main import app

client = TestClient(app)


def test_create_list_and_delete_bookings(user) -> None:
    child = create_child(user["id"], {"first_name": "Liam", "date_of_birth": "2020-08-22"})
    late = client.post(
        "/api/v1/bookings",
        json={"name": "Swim", "date": "2025-03-02", "time": "15:00", "child_id": child["id"]},
        headers=user["headers"],
    )
    early = client.post(
        "/api/v1/bookings",
        json={"name": "Parent Night", "date": "2025-03-02", "time": "09:30"},
        headers=user["headers"],
    )
    assert late.status_code == 201
    assert early.json()["child_id"] is None

    listed = client.get("/api/v1/bookings", headers=user["headers"]).json()
    assert [booking["name"] for booking in listed] == ["Parent Night", "Swim"]

    windowed = client.get(
        "/api/v1/bookings", params={"start": "2025-03-03"}, headers=user["headers"]
    ).json()
    assert windowed == []

    assert client.delete(f"/api/v1/bookings/{late.json()['id']}", headers=user["headers"]).status_code == 204
    assert client.delete(f"/api/v1/bookings/{late.json()['id']}", headers=user["headers"]).status_code == 404


def test_booking_validation(user, make_user) -> None:
    bad_time = client.post(
        "/api/v1/bookings", json={"name": "Swim", "date": "2025-03-02", "time": "3pm"}, headers=user["headers"]
    )
    assert bad_time.status_code == 422

    other = make_user("other@example.com")
    foreign = create_child(other["id"], {"first_name": "Ava", "date_of_birth": "2018-09-05"})
    response = client.post(
        "/api/v1/bookings",
        json={"name": "Swim", "date": "2025-03-02", "time": "09:00", "child_id": foreign["id"]},
        headers=user["headers"],
    )
    assert response.status_code == 404
