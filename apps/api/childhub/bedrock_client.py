"""Bedrock agent integration for the chat assistant."""
from __future__ import annotations

import logging
import time
from functools import lru_cache
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .config import CONFIG

logger = logging.getLogger(__name__)


class AgentInvocationError(RuntimeError):
    """Raised when the Bedrock agent call fails."""


@lru_cache(maxsize=1)
def get_agent_client():
    return boto3.client("bedrock-agent-runtime", region_name=CONFIG.aws_region)


def _epoch_ms() -> int:
    return int(time.time() * 1000)


def with_time_context(message: str, current_date: Optional[str], current_time: Optional[str]) -> str:
    if current_date and current_time:
        return f"[System: Today is {current_date}, current time is {current_time}] {message}"
    return message


def collect_completion(response: Dict[str, Any]) -> str:
    parts = []
    for event in response.get("completion", []):
        chunk = event.get("chunk") or {}
        data = chunk.get("bytes")
        if data:
            parts.append(data.decode("utf-8") if isinstance(data, (bytes, bytearray)) else str(data))
    return "".join(parts)


def invoke_agent(
    message: str,
    *,
    session_id: Optional[str] = None,
    session_attributes: Optional[Dict[str, str]] = None,
) -> Dict[str, str]:
    """Send ``message`` to the configured agent and return ``{message, session_id}``."""
    session_id = session_id or f"session-{_epoch_ms()}"
    request: Dict[str, Any] = {
        "agentId": CONFIG.bedrock_agent_id,
        "agentAliasId": CONFIG.bedrock_agent_alias_id,
        "sessionId": session_id,
        "inputText": message,
    }
    if session_attributes:
        request["sessionState"] = {
            "sessionAttributes": {key: value for key, value in session_attributes.items() if value}
        }
    try:
        response = get_agent_client().invoke_agent(**request)
        completion = collect_completion(response)
    except (ClientError, BotoCoreError) as exc:
        logger.exception("bedrock agent invocation failed", extra={"session_id": session_id})
        raise AgentInvocationError(str(exc)) from exc
    logger.info(
        "bedrock agent reply",
        extra={"session_id": session_id, "chars": len(completion)},
    )
    return {"message": completion, "session_id": session_id}


def mock_reply(message: str) -> str:
    """Keyword replies used when no agent is configured (local development)."""
    lowered = message.lower()
    if "hello" in lowered or "hi" in lowered:
        return (
            "Hello! I'm your Child Event Assistant. I'm here to help you manage child events "
            "and activities. How can I assist you today?"
        )
    if "help" in lowered:
        return (
            "I can help you with:\n"
            "• Event planning and scheduling\n"
            "• Activity suggestions for different age groups\n"
            "• Safety considerations and guidelines\n"
            "• Parent communication and updates\n\n"
            "What would you like to know more about?"
        )
    if "activity" in lowered:
        return (
            "Great question about activities! I can suggest age-appropriate activities for children. "
            "Could you tell me:\n"
            "• What age group are you planning for?\n"
            "• What type of activity are you interested in (indoor, outdoor, educational, creative)?"
        )
    if "event" in lowered:
        return (
            "I'd be happy to help with event planning! For a child event, I can assist with:\n"
            "• Choosing age-appropriate themes\n"
            "• Planning activities and games\n"
            "• Safety considerations\n"
            "• Timing and scheduling\n\n"
            "What kind of event are you planning?"
        )
    return (
        "Thank you for your message! I'm a mock AI assistant for child event management.\n\n"
        f'Your message: "{message}"\n\n'
        "Note: no Bedrock agent is configured, so this reply comes from the development mock.\n\n"
        "How else can I help you with child event planning?"
    )


def mock_invoke(message: str, *, session_id: Optional[str] = None) -> Dict[str, str]:
    return {
        "message": mock_reply(message),
        "session_id": session_id or f"mock-session-{_epoch_ms()}",
    }
