"""Accumulated intelligence from a caller's own high-scoring past scripts."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from generation.models import AccumulatedIntelligence, CondensedVariant
from services.storage import find_recent_generation_records

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 5
PER_RECORD_LIMIT = 2
MIN_ADHERENCE_SCORE = 8.0


def _score(variant: Dict[str, Any]) -> Optional[float]:
    try:
        return float(variant.get("adherence_score"))
    except (TypeError, ValueError):
        return None


def _section(variant: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = variant.get(key)
    return value if isinstance(value, dict) else {}


def condense_variant(variant: Dict[str, Any]) -> CondensedVariant:
    return CondensedVariant(
        hook_text=_section(variant, "hook").get("text"),
        hook_type=_section(variant, "hook").get("type"),
        body_structure=_section(variant, "body").get("structure"),
        cta_type=_section(variant, "cta").get("type"),
        score=_score(variant) or 0.0,
        notes=variant.get("notes"),
    )


def top_variants_of(variants: Any) -> List[Dict[str, Any]]:
    """First PER_RECORD_LIMIT variants scoring at least MIN_ADHERENCE_SCORE, in stored order."""
    if not isinstance(variants, list):
        return []
    qualifying = [
        variant
        for variant in variants
        if isinstance(variant, dict) and (_score(variant) or 0.0) >= MIN_ADHERENCE_SCORE
    ]
    return qualifying[:PER_RECORD_LIMIT]


async def aggregate_intelligence(user_id: str, db: AsyncSession) -> Optional[AccumulatedIntelligence]:
    """Return the caller's condensed best scripts, or None when there is nothing usable."""
    try:
        records = await find_recent_generation_records(user_id, db, limit=HISTORY_LIMIT)
    except Exception as exc:
        logger.warning("Could not load accumulated intelligence for %s: %s", user_id, exc)
        await db.rollback()
        return None

    if not records:
        return None

    top = [
        condense_variant(variant)
        for record in records
        for variant in top_variants_of(record.variants_json)
    ]
    if not top:
        return None

    logger.info(
        "Accumulated intelligence for %s: %d top scripts from %d prior generations",
        user_id,
        len(top),
        len(records),
    )
    return AccumulatedIntelligence(prior_generation_count=len(records), top_variants=top)
