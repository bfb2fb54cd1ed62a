"""Application configuration utilities."""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

_ENV_PREFIX = "CHILDHUB_"


class AppConfig(BaseModel):
    """Strongly typed configuration loaded from config.json and the environment."""

    database_path: str = Field(default="./data/childhub.db")
    environment: Literal["development", "production"] = Field(default="development")
    auth_mode: Literal["token", "dev", "iframe"] = Field(default="token")
    jwt_secret: str = Field(default="change-me-in-config-json")
    jwt_algorithm: str = Field(default="HS256")
    token_ttl_days: int = Field(default=30)
    agent_api_key: Optional[str] = Field(default=None)
    aws_region: str = Field(default="ap-southeast-2")
    bedrock_agent_id: Optional[str] = Field(default=None)
    bedrock_agent_alias_id: Optional[str] = Field(default=None)
    reports_bucket: Optional[str] = Field(default=None)
    report_link_ttl_seconds: int = Field(default=604800)
    download_link_ttl_seconds: int = Field(default=300)
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ]
    )

    @property
    def resolved_database_path(self) -> Path:
        """Return the absolute path for the SQLite database file."""
        path = Path(self.database_path)
        if path.is_absolute():
            return path
        return (Path(__file__).resolve().parents[1] / path).resolve()

    @property
    def bedrock_agent_configured(self) -> bool:
        return bool(self.bedrock_agent_id and self.bedrock_agent_alias_id)


def _config_path() -> Path:
    override = os.getenv(f"{_ENV_PREFIX}CONFIG")
    if override:
        return Path(override)
    return Path(__file__).resolve().parents[1] / "config.json"


def _env_overrides() -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    for name in AppConfig.model_fields:
        raw = os.getenv(f"{_ENV_PREFIX}{name.upper()}")
        if raw is None:
            continue
        if name == "cors_origins":
            overrides[name] = [item.strip() for item in raw.split(",") if item.strip()]
        else:
            overrides[name] = raw
    return overrides


def load_config() -> AppConfig:
    """Load configuration from config.json (optional) then CHILDHUB_* env vars."""

    contents: Dict[str, Any] = {}
    config_file = _config_path()
    if config_file.exists():
        contents = json.loads(config_file.read_text())
    contents.update(_env_overrides())
    return AppConfig(**contents)


CONFIG = load_config()
