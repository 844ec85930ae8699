"""
Administrative endpoints guarded by the shared ADMIN_SECRET.
"""

import hmac
import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from database import get_db
from models.user import User
from routers.auth_scope import auth_scheme
from services.crypto import hash_password
from services.storage import find_caller_by_email

logger = logging.getLogger(__name__)

router = APIRouter()

MIN_PASSWORD_LENGTH = 8


class CreateUserRequest(BaseModel):
    email: str
    password: str
    name: Optional[str] = None


class CreatedUser(BaseModel):
    id: str
    email: str
    name: Optional[str] = None
    created_at: Optional[datetime] = None


class CreateUserResponse(BaseModel):
    user: CreatedUser


async def require_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(auth_scheme),
) -> None:
    """Reject callers that do not present the configured admin secret."""
    if not settings.ADMIN_SECRET:
        raise HTTPException(status_code=500, detail="ADMIN_SECRET is not configured.")
    supplied = credentials.credentials if credentials else ""
    if not hmac.compare_digest(supplied.encode(), settings.ADMIN_SECRET.encode()):
        raise HTTPException(status_code=401, detail="Invalid admin secret.")


@router.post("/users", response_model=CreateUserResponse, status_code=201)
async def create_user(
    request: CreateUserRequest,
    _admin: None = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Provision a caller account."""
    email = request.email.strip().lower()
    if not email or "@" not in email:
        raise HTTPException(status_code=400, detail="A valid email is required.")
    if len(request.password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"Password must have at least {MIN_PASSWORD_LENGTH} characters.",
        )

    if await find_caller_by_email(email, db):
        raise HTTPException(status_code=409, detail="User already exists.")

    user = User(
        email=email,
        name=(request.name or "").strip() or None,
        password_hash=hash_password(request.password),
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    logger.info("Created user %s", user.id)

    return CreateUserResponse(
        user=CreatedUser(id=user.id, email=user.email, name=user.name, created_at=user.created_at)
    )
