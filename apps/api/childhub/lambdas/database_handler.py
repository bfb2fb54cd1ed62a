"""Agent action group: read-only child and event lookups."""
from __future__ import annotations

import logging
import sqlite3
from typing import Any, Callable, Dict

from ..db import child_age, event_statistics, get_child, list_child_events, search_children
from .common import envelope, extract_parameters, log_event

logger = logging.getLogger(__name__)


def get_children(params: Dict[str, Any]) -> Dict[str, Any]:
    children = search_children(
        user_id=params.get("userId"),
        name=params.get("firstName"),
        first_name_only=True,
    )
    return {"children": children, "count": len(children)}


def get_child_events(params: Dict[str, Any]) -> Dict[str, Any]:
    child_id = params.get("childId")
    if not child_id:
        raise ValueError("childId is required")
    events = list_child_events(child_id)
    return {"events": events, "count": len(events)}


def get_child_details(params: Dict[str, Any]) -> Dict[str, Any]:
    child_id = params.get("childId")
    if not child_id:
        raise ValueError("childId is required")
    try:
        child = get_child(child_id)
    except ValueError:
        return {"error": "Child not found", "childId": child_id}
    child["event_count"] = len(child["events"])
    child["age"] = child_age(child["date_of_birth"])
    return {"child": child}


def get_event_statistics(params: Dict[str, Any]) -> Dict[str, Any]:
    return event_statistics(params.get("childId"))


ROUTES: Dict[str, Callable[[Dict[str, Any]], Dict[str, Any]]] = {
    "/get-children": get_children,
    "/get-child-events": get_child_events,
    "/get-child-details": get_child_details,
    "/get-event-statistics": get_event_statistics,
}


def handler(event: Dict[str, Any], context: Any = None) -> Dict[str, Any]:
    log_event("database handler", event)
    api_path = event.get("apiPath")
    try:
        route = ROUTES.get(api_path)
        if route is None:
            raise ValueError(f"Unknown API path: {api_path}")
        result = route(extract_parameters(event))
    except (ValueError, sqlite3.Error) as exc:
        logger.exception("database action failed", extra={"api_path": api_path})
        return envelope(event, {"error": str(exc), "type": type(exc).__name__}, status_code=500)
    return envelope(event, result)
