"""Helpers shared by the Bedrock agent action-group handlers."""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

JSON_CONTENT = "application/json"


def _collect_properties(items: Any, into: Dict[str, Any]) -> None:
    for item in items or []:
        if isinstance(item, dict) and item.get("name"):
            into[item["name"]] = item.get("value")


def extract_parameters(event: Dict[str, Any]) -> Dict[str, Any]:
    """Merge top-level ``parameters`` with the request body (JSON string or property list)."""
    params: Dict[str, Any] = {}
    _collect_properties(event.get("parameters"), params)
    content = ((event.get("requestBody") or {}).get("content") or {}).get(JSON_CONTENT) or {}
    body = content.get("body")
    if isinstance(body, str) and body.strip():
        decoded = json.loads(body)
        if isinstance(decoded, dict):
            params.update(decoded)
    elif isinstance(body, dict):
        params.update(body)
    _collect_properties(content.get("properties"), params)
    return params


def envelope(
    event: Dict[str, Any],
    body: Dict[str, Any],
    *,
    status_code: int = 200,
    http_method: Optional[str] = None,
) -> Dict[str, Any]:
    return {
        "messageVersion": "1.0",
        "response": {
            "actionGroup": event.get("actionGroup"),
            "apiPath": event.get("apiPath"),
            "httpMethod": http_method or event.get("httpMethod") or "POST",
            "httpStatusCode": status_code,
            "responseBody": {JSON_CONTENT: {"body": json.dumps(body, default=str)}},
        },
    }


def log_event(name: str, event: Dict[str, Any]) -> None:
    logger.info("%s received event", name, extra={"api_path": event.get("apiPath"), "event": event})
