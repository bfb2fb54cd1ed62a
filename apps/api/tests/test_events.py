from __future__ import annotations

from fastapi.testclient import TestClient

from childhub.db import create_child, insert_child_event
from childhub.main import app

client = TestClient(app)


def _child(user: dict, first_name: str = "Emma") -> dict:
    return create_child(user["id"], {"first_name": first_name, "date_of_birth": "2018-05-15"})


def test_log_event_defaults_to_now_and_lists_newest_first(user) -> None:
    child = _child(user)
    first = client.post(
        f"/api/v1/children/{child['id']}/events",
        json={"name": "Doctor Checkup", "event_type": "Medical", "occurred_at": "2025-01-10T09:00:00+10:00"},
        headers=user["headers"],
    )
    assert first.status_code == 201
    assert first.json()["created_at"].startswith("2025-01-09T23:00:00")

    second = client.post(
        f"/api/v1/children/{child['id']}/events",
        json={"name": "Soccer", "event_type": "Sports"},
        headers=user["headers"],
    )
    assert second.status_code == 201

    listed = client.get(f"/api/v1/children/{child['id']}/events", headers=user["headers"]).json()
    assert [event["name"] for event in listed] == ["Soccer", "Doctor Checkup"]


def test_log_event_validation(user) -> None:
    child = _child(user)
    blank = client.post(
        f"/api/v1/children/{child['id']}/events",
        json={"name": " ", "event_type": "Medical"},
        headers=user["headers"],
    )
    assert blank.status_code == 400
    missing_child = client.post(
        "/api/v1/children/nope/events",
        json={"name": "Nap", "event_type": "Sleep"},
        headers=user["headers"],
    )
    assert missing_child.status_code == 404


def test_delete_event_only_for_owner(make_user) -> None:
    owner = make_user("owner@example.com")
    stranger = make_user("stranger@example.com")
    child = _child(owner)
    event = insert_child_event(child_id=child["id"], name="Nap", event_type="Sleep")

    assert client.delete(f"/api/v1/events/{event['id']}", headers=stranger["headers"]).status_code == 404
    assert client.delete(f"/api/v1/events/{event['id']}", headers=owner["headers"]).status_code == 204
    assert client.get(f"/api/v1/children/{child['id']}/events", headers=owner["headers"]).json() == []


def test_event_statistics(user, make_user) -> None:
    emma = _child(user)
    liam = _child(user, "Liam")
    for name, event_type, child in [
        ("Checkup", "Medical", emma),
        ("Dentist", "Medical", liam),
        ("Soccer", "Sports", liam),
    ]:
        insert_child_event(child_id=child["id"], name=name, event_type=event_type)
    other = make_user("other@example.com")
    insert_child_event(child_id=_child(other)["id"], name="Art", event_type="Arts")

    stats = client.get("/api/v1/events/statistics", headers=user["headers"]).json()
    assert stats["total_events"] == 3
    assert stats["total_children"] == 2
    assert stats["filtered_by_child"] is False
    assert [(row["event_type"], row["count"]) for row in stats["events_by_type"]] == [("Medical", 2), ("Sports", 1)]

    filtered = client.get(
        "/api/v1/events/statistics", params={"child_id": liam["id"]}, headers=user["headers"]
    ).json()
    assert filtered["total_events"] == 2
    assert filtered["filtered_by_child"] is True
