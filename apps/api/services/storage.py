"""Persistence helpers for callers and generation records."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from models.generation_record import GenerationRecord
from models.user import User


async def find_caller_by_email(email: str, db: AsyncSession) -> Optional[User]:
    normalized = str(email or "").strip().lower()
    if not normalized:
        return None
    result = await db.execute(select(User).where(User.email == normalized))
    return result.scalar_one_or_none()


async def find_caller_by_id(user_id: str, db: AsyncSession) -> Optional[User]:
    if not user_id:
        return None
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def create_generation_record(
    db: AsyncSession,
    *,
    user_id: str,
    theme: Dict[str, Any],
    settings: Dict[str, Any],
    variants: List[Dict[str, Any]],
    analysis: Optional[Dict[str, Any]],
    production_constraints: Optional[str] = None,
) -> GenerationRecord:
    record = GenerationRecord(
        user_id=user_id,
        theme_json=theme,
        settings_json=settings,
        variants_json=variants,
        analysis_json=analysis or {},
        production_constraints=(production_constraints or "").strip() or None,
    )
    db.add(record)
    await db.flush()
    return record


async def find_recent_generation_records(
    user_id: str,
    db: AsyncSession,
    *,
    limit: int = 5,
) -> List[GenerationRecord]:
    """Most recent records first."""
    result = await db.execute(
        select(GenerationRecord)
        .where(GenerationRecord.user_id == user_id)
        .order_by(GenerationRecord.created_at.desc())
        .limit(max(int(limit), 0))
    )
    return list(result.scalars().all())


async def increment_quota(user_id: str, db: AsyncSession) -> None:
    """Atomically bump the caller's generation counter in the current transaction."""
    await db.execute(
        update(User)
        .where(User.id == user_id)
        .values(generations_used=User.generations_used + 1)
        .execution_options(synchronize_session=False)
    )
