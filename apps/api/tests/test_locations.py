from __future__ import annotations

from fastapi.testclient import TestClient

from childhub.db import save_location
from childhub.main import app

client = TestClient(app)


def _seed(user_id: str) -> None:
    save_location(user_id, {"suburb_name": "Melbourne", "state": "VIC", "is_favorite": True})
    save_location(user_id, {"suburb_name": "North Melbourne", "state": "VIC"})
    save_location(user_id, {"suburb_name": "Bondi", "state": "NSW", "is_favorite": True})


def test_location_lookup_filters(user, make_user) -> None:
    _seed(user["id"])
    other = make_user("other@example.com")
    save_location(other["id"], {"suburb_name": "Melbourne"})

    everything = client.post("/api/v1/locations", json={"action": "get-location-data"}, headers=user["headers"]).json()
    assert everything["success"] is True
    assert everything["count"] == 3

    melbourne = client.post(
        "/api/v1/locations",
        json={"action": "get-location-data", "suburb_name": "melb"},
        headers=user["headers"],
    ).json()
    assert {row["suburb_name"] for row in melbourne["location_data"]} == {"Melbourne", "North Melbourne"}

    favourites = client.post(
        "/api/v1/locations",
        json={"action": "get-location-data", "is_favorite": True},
        headers=user["headers"],
    ).json()
    assert {row["suburb_name"] for row in favourites["location_data"]} == {"Melbourne", "Bondi"}
    assert all(row["is_favorite"] is True for row in favourites["location_data"])


def test_location_action_validation(user) -> None:
    missing = client.post("/api/v1/locations", json={}, headers=user["headers"])
    assert missing.status_code == 400
    assert missing.json()["detail"] == "Action is required"

    unsupported = client.post("/api/v1/locations", json={"action": "delete-location-data"}, headers=user["headers"])
    assert unsupported.status_code == 501
