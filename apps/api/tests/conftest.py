from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Callable, Dict, Optional

import pytest

# Keep the import-time initialize_db() away from the developer database.
os.environ.setdefault(
    "CHILDHUB_DATABASE_PATH",
    str(Path(tempfile.mkdtemp(prefix="childhub-tests-")) / "import.db"),
)

from childhub import db  # noqa: E402
from childhub.config import CONFIG  # noqa: E402
from childhub.security import issue_access_token  # noqa: E402

AGENT_KEY = "test-agent-key"


@pytest.fixture(autouse=True)
def fresh_db(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    path = tmp_path / "childhub.db"
    monkeypatch.setattr(db, "_DB_PATH", path)
    monkeypatch.setattr(CONFIG, "auth_mode", "token")
    monkeypatch.setattr(CONFIG, "environment", "development")
    monkeypatch.setattr(CONFIG, "agent_api_key", AGENT_KEY)
    monkeypatch.setattr(CONFIG, "bedrock_agent_id", None)
    monkeypatch.setattr(CONFIG, "bedrock_agent_alias_id", None)
    monkeypatch.setattr(CONFIG, "reports_bucket", None)
    db.initialize_db()
    return path


@pytest.fixture
def make_user() -> Callable[..., Dict]:
    """Create a user row and return it with ready-to-use auth headers."""

    def _make(email: str = "parent@example.com", name: Optional[str] = "Pat Parent") -> Dict:
        user = db.create_user(email=email, password_hash=None, name=name)
        token, _ = issue_access_token(user)
        return {**user, "headers": {"Authorization": f"Bearer {token}"}}

    return _make


@pytest.fixture
def user(make_user) -> Dict:
    return make_user()


@pytest.fixture
def agent_headers() -> Dict[str, str]:
    return {"X-Api-Key": AGENT_KEY}


class FakeS3Client:
    def __init__(self) -> None:
        self.objects: Dict[str, Dict] = {}
        self.presigned: list = []

    def put_object(self, **kwargs) -> Dict:
        self.objects[kwargs["Key"]] = kwargs
        return {}

    def generate_presigned_url(self, operation: str, Params: Dict, ExpiresIn: int) -> str:
        self.presigned.append((operation, Params, ExpiresIn))
        return f"https://{Params['Bucket']}.s3.amazonaws.com/{Params['Key']}?X-Amz-Expires={ExpiresIn}"


@pytest.fixture
def fake_s3(monkeypatch: pytest.MonkeyPatch) -> FakeS3Client:
    fake = FakeS3Client()
    monkeypatch.setattr("childhub.storage.get_s3_client", lambda: fake)
    monkeypatch.setattr(CONFIG, "reports_bucket", "childhub-reports")
    return fake
