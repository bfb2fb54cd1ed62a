from __future__ import annotations

from typing import Dict, List

import pytest
from botocore.exceptions import ClientError
from fastapi.testclient import TestClient

from childhub import bedrock_client
from childhub.bedrock_client import collect_completion, with_time_context
from childhub.config import CONFIG
from childhub.main import app

client = TestClient(app)


class FakeAgentClient:
    def __init__(self, chunks: List[bytes], error: Exception | None = None) -> None:
        self.chunks = chunks
        self.error = error
        self.requests: List[Dict] = []

    def invoke_agent(self, **kwargs) -> Dict:
        self.requests.append(kwargs)
        if self.error:
            raise self.error
        return {"completion": [{"chunk": {"bytes": chunk}} for chunk in self.chunks]}


@pytest.fixture
def configured_agent(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(CONFIG, "bedrock_agent_id", "AGENT123")
    monkeypatch.setattr(CONFIG, "bedrock_agent_alias_id", "ALIAS456")

    def _install(fake: FakeAgentClient) -> FakeAgentClient:
        monkeypatch.setattr(bedrock_client, "get_agent_client", lambda: fake)
        return fake

    return _install


def test_time_context_prefix() -> None:
    assert with_time_context("Hi", "2025-01-15", "10:30:00") == (
        "[System: Today is 2025-01-15, current time is 10:30:00] Hi"
    )
    assert with_time_context("Hi", None, "10:30:00") == "Hi"


def test_collect_completion_skips_empty_chunks() -> None:
    response = {"completion": [{"chunk": {"bytes": b"Hel"}}, {"trace": {}}, {"chunk": {"bytes": b"lo"}}]}
    assert collect_completion(response) == "Hello"
    assert collect_completion({}) == ""


def test_blank_message_is_rejected(user) -> None:
    response = client.post("/api/v1/assistant/chat", json={"message": "   "}, headers=user["headers"])
    assert response.status_code == 400
    assert response.json()["detail"] == "Message is required"


def test_chat_requires_session() -> None:
    assert client.post("/api/v1/assistant/chat", json={"message": "hello"}).status_code == 401


def test_mock_reply_without_agent(user) -> None:
    response = client.post(
        "/api/v1/assistant/chat",
        json={"message": "hello there", "current_date": "2025-01-15", "current_time": "10:30:00"},
        headers=user["headers"],
    )
    assert response.status_code == 200
    body = response.json()
    assert body["message"].startswith("Hello! I'm your Child Event Assistant.")
    assert body["session_id"].startswith("mock-session-")

    kept = client.post(
        "/api/v1/assistant/chat",
        json={"message": "Plan my week", "session_id": "abc"},
        headers=user["headers"],
    ).json()
    assert kept["session_id"] == "abc"
    assert "development mock" in kept["message"]


def test_agent_reply_is_streamed_together(user, configured_agent) -> None:
    fake = configured_agent(FakeAgentClient([b"Emma has ", b"two events."]))
    response = client.post(
        "/api/v1/assistant/chat",
        json={"message": "What is Emma doing?", "current_date": "2025-01-15", "current_time": "10:30:00"},
        headers=user["headers"],
    )
    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Emma has two events."
    assert body["session_id"].startswith("session-")

    request = fake.requests[0]
    assert request["agentId"] == "AGENT123"
    assert request["agentAliasId"] == "ALIAS456"
    assert request["inputText"] == "[System: Today is 2025-01-15, current time is 10:30:00] What is Emma doing?"
    assert request["sessionState"]["sessionAttributes"] == {
        "userId": user["id"],
        "userEmail": "parent@example.com",
        "userName": "Pat Parent",
    }


def test_agent_failure_maps_to_bad_gateway(user, configured_agent) -> None:
    error = ClientError({"Error": {"Code": "ThrottlingException", "Message": "slow down"}}, "InvokeAgent")
    configured_agent(FakeAgentClient([], error=error))
    response = client.post(
        "/api/v1/assistant/chat", json={"message": "hello", "session_id": "s-1"}, headers=user["headers"]
    )
    assert response.status_code == 502
    assert response.json()["detail"].startswith("Failed to invoke agent:")
