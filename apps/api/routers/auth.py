"""
Authentication router for password login and caller profile retrieval.
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from database import get_db
from routers.auth_scope import AuthContext, get_auth_context
from routers.rate_limit import rate_limit
from services.crypto import verify_password
from services.quota import build_usage, next_reset_date, roll_quota_period
from services.session_token import create_session_token
from services.storage import find_caller_by_email, find_caller_by_id

logger = logging.getLogger(__name__)

router = APIRouter()

login_rate_limit = rate_limit(
    "login",
    limit=settings.LOGIN_RATE_LIMIT_ATTEMPTS,
    window_seconds=settings.LOGIN_RATE_LIMIT_WINDOW_SECONDS,
)


class LoginRequest(BaseModel):
    email: str
    password: str


class LoginResponse(BaseModel):
    user_id: str
    email: str
    name: Optional[str] = None
    session_token: str
    session_expires_at: int


class UsageResponse(BaseModel):
    used: int
    limit: int
    remaining: int
    reset_date: datetime


class CurrentUserResponse(BaseModel):
    user_id: str
    email: str
    name: Optional[str] = None
    usage: UsageResponse


@router.post("/login", response_model=LoginResponse)
async def login(
    request: LoginRequest,
    _rate_limit: None = Depends(login_rate_limit),
    db: AsyncSession = Depends(get_db),
):
    """Exchange email and password for a signed session token."""
    email = request.email.strip().lower()
    if not email or not request.password:
        raise HTTPException(status_code=400, detail="Email and password are required.")

    user = await find_caller_by_email(email, db)
    if user is None or not user.password_hash or not verify_password(request.password, user.password_hash):
        logger.info("Failed login attempt for %s", email)
        raise HTTPException(status_code=401, detail="Invalid credentials.")

    session = create_session_token(user.id, email=user.email)
    return LoginResponse(
        user_id=user.id,
        email=user.email,
        name=user.name,
        session_token=session["token"],
        session_expires_at=session["expires_at"],
    )


@router.get("/me", response_model=CurrentUserResponse)
async def get_current_user(
    auth: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
):
    """Get current caller profile and monthly usage."""
    user = await find_caller_by_id(auth.user_id, db)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    await roll_quota_period(user, db)
    usage = build_usage(user.generations_used, settings.MAX_GENERATIONS_PER_USER_MONTH)
    return CurrentUserResponse(
        user_id=user.id,
        email=user.email,
        name=user.name,
        usage=UsageResponse(reset_date=next_reset_date(user.period_start), **usage),
    )
