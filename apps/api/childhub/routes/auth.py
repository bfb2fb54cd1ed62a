import logging
import sqlite3

from fastapi import APIRouter, Depends, HTTPException

from ..db import create_user, find_user_by_email, get_user
from ..schemas import LoginRequest, LoginResponse, RegisterRequest, UserOut
from ..security import AuthContext, get_auth_context, hash_password, issue_access_token, verify_password

router = APIRouter(prefix="/api/v1", tags=["auth"])
logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def _public_user(row: dict) -> UserOut:
    return UserOut(
        id=row["id"],
        name=row.get("name"),
        email=row["email"],
        email_verified=row.get("email_verified"),
        image=row.get("image"),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


@router.post("/auth/register", response_model=UserOut, status_code=201)
async def register(payload: RegisterRequest) -> UserOut:
    email = (payload.email or "").strip().lower()
    password = payload.password or ""
    if not email or not password:
        raise HTTPException(status_code=400, detail="Email and password are required")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(status_code=400, detail="Password must be at least 6 characters")
    if find_user_by_email(email):
        raise HTTPException(status_code=409, detail="User with this email already exists")
    name = (payload.name or "").strip() or None
    try:
        user = create_user(email=email, password_hash=hash_password(password), name=name)
    except sqlite3.IntegrityError as exc:
        raise HTTPException(status_code=409, detail="User with this email already exists") from exc
    logger.info("user registered", extra={"user_id": user["id"]})
    return _public_user(user)


@router.post("/auth/login", response_model=LoginResponse)
async def login(payload: LoginRequest) -> LoginResponse:
    email = (payload.email or "").strip()
    password = payload.password or ""
    if not email or not password:
        raise HTTPException(status_code=400, detail="Email and password are required")
    user = find_user_by_email(email)
    if not user or not verify_password(password, user.get("password_hash")):
        logger.info("login rejected")
        raise HTTPException(status_code=401, detail="Invalid email or password")
    token, expires_at = issue_access_token(user)
    return LoginResponse(access_token=token, expires_at=expires_at, user=_public_user(user))


@router.get("/users/me", response_model=UserOut)
async def get_user_profile(auth: AuthContext = Depends(get_auth_context)) -> UserOut:
    try:
        return _public_user(get_user(auth.user_id))
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
