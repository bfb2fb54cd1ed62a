from __future__ import annotations

import hmac
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
import jwt
from fastapi import Header, HTTPException

from . import dev_config
from .config import CONFIG
from .db import ensure_user, get_user

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, stored: Optional[str]) -> bool:
    if not stored:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), stored.encode("utf-8"))
    except ValueError:
        return False


def issue_access_token(user: Dict[str, Any], *, now: Optional[datetime] = None) -> tuple[str, datetime]:
    issued_at = now or datetime.now(tz=timezone.utc)
    expires_at = issued_at + timedelta(days=CONFIG.token_ttl_days)
    payload = {
        "sub": user["id"],
        "email": user.get("email"),
        "name": user.get("name"),
        "iat": issued_at,
        "exp": expires_at,
    }
    token = jwt.encode(payload, CONFIG.jwt_secret, algorithm=CONFIG.jwt_algorithm)
    return token, expires_at


def _parse_bearer_token(authorization: Optional[str]) -> str:
    if not authorization:
        raise HTTPException(status_code=401, detail="Missing authorization token.")
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(status_code=401, detail="Invalid authorization token.")
    return parts[1]


def _verify_access_token(token: str) -> Dict[str, Any]:
    try:
        return jwt.decode(token, CONFIG.jwt_secret, algorithms=[CONFIG.jwt_algorithm])
    except jwt.PyJWTError as exc:
        raise HTTPException(status_code=401, detail="Invalid or expired token.") from exc


@dataclass
class AuthContext:
    user_id: str
    user_email: Optional[str]
    user_name: Optional[str]
    mode: str = "token"


def _dev_context() -> AuthContext:
    logger.info("[DEV MODE] Using mock authentication session")
    user = ensure_user(dev_config.DEV_USER_ID, email=dev_config.DEV_USER_EMAIL, name=dev_config.DEV_USER_NAME)
    return AuthContext(
        user_id=user["id"],
        user_email=user["email"],
        user_name=user.get("name"),
        mode="dev",
    )


def _iframe_context(forwarded: Optional[str]) -> AuthContext:
    user_id = dev_config.IFRAME_USER_ID
    email = dev_config.IFRAME_USER_EMAIL
    name: Optional[str] = dev_config.IFRAME_USER_NAME
    if forwarded:
        try:
            data = json.loads(forwarded)
        except ValueError:
            data = None
        if isinstance(data, dict) and data.get("id") and data.get("email"):
            user_id, email, name = str(data["id"]), str(data["email"]), data.get("name")
        else:
            logger.error("Invalid user data received from embedding page")
    user = ensure_user(user_id, email=email, name=name)
    return AuthContext(user_id=user["id"], user_email=user["email"], user_name=user.get("name"), mode="iframe")


async def get_auth_context(
    authorization: Optional[str] = Header(None),
    iframe_user: Optional[str] = Header(None, alias="X-Iframe-User"),
) -> AuthContext:
    mode = CONFIG.auth_mode
    if mode == "dev" and CONFIG.environment == "production":
        logger.critical("Dev auth is enabled in production! Falling back to token auth.")
        mode = "token"
    if mode == "dev":
        return _dev_context()
    if mode == "iframe":
        return _iframe_context(iframe_user)

    token = _parse_bearer_token(authorization)
    payload = _verify_access_token(token)
    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid or expired token.")
    try:
        user = get_user(user_id)
    except ValueError as exc:
        raise HTTPException(status_code=401, detail="Invalid or expired token.") from exc
    return AuthContext(user_id=user["id"], user_email=user.get("email"), user_name=user.get("name"))


async def require_agent_api_key(api_key: Optional[str] = Header(None, alias="X-Api-Key")) -> None:
    expected = CONFIG.agent_api_key
    if not api_key:
        logger.info("No API key provided")
        raise HTTPException(status_code=401, detail="Missing API key.")
    valid = bool(expected) and hmac.compare_digest(api_key, expected)
    logger.info("API key validation: %s", "SUCCESS" if valid else "FAILED")
    if not valid:
        raise HTTPException(status_code=401, detail="Invalid API key.")


async def get_optional_auth_context(
    authorization: Optional[str] = Header(None),
    iframe_user: Optional[str] = Header(None, alias="X-Iframe-User"),
) -> Optional[AuthContext]:
    """Like get_auth_context, but anonymous token-mode callers yield None."""
    if CONFIG.auth_mode == "token" and not authorization:
        return None
    return await get_auth_context(authorization=authorization, iframe_user=iframe_user)
