"""Monthly generation quota accounting."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from models.user import User


class QuotaExceeded(Exception):
    """Caller used up the monthly generation ceiling."""

    def __init__(self, generations_used: int, limit: int, reset_date: datetime):
        super().__init__("Monthly generation limit reached")
        self.generations_used = generations_used
        self.limit = limit
        self.reset_date = reset_date

    def details(self) -> Dict[str, Any]:
        return {
            "generations_used": self.generations_used,
            "limit": self.limit,
            "reset_date": self.reset_date.isoformat(),
        }


def _as_utc(value: Optional[datetime]) -> datetime:
    if value is None:
        return datetime.now(timezone.utc)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def next_reset_date(period_start: Optional[datetime]) -> datetime:
    """First day of the calendar month following ``period_start`` (UTC midnight)."""
    start = _as_utc(period_start)
    if start.month == 12:
        return datetime(start.year + 1, 1, 1, tzinfo=timezone.utc)
    return datetime(start.year, start.month + 1, 1, tzinfo=timezone.utc)


def build_usage(used: int, limit: int) -> Dict[str, int]:
    used = max(int(used or 0), 0)
    limit = max(int(limit), 0)
    return {"used": used, "limit": limit, "remaining": max(limit - used, 0)}


async def roll_quota_period(user: User, db: AsyncSession, now: Optional[datetime] = None) -> bool:
    """Reset the counter once the reset boundary has passed. Returns True if rolled."""
    current = _as_utc(now)
    if current < next_reset_date(user.period_start):
        return False
    user.generations_used = 0
    user.period_start = current
    await db.commit()
    return True


def ensure_quota_available(user: User, limit: int) -> None:
    used = int(user.generations_used or 0)
    if used >= int(limit):
        raise QuotaExceeded(
            generations_used=used,
            limit=int(limit),
            reset_date=next_reset_date(user.period_start),
        )
