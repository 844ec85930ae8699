"""
Script generation endpoint.
"""

import logging
from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from database import get_db
from generation.models import GenerationRequest
from routers.auth_scope import AuthContext, get_optional_auth_context
from services.generation import GenerationFailure, ScriptGenerationPipeline, build_pipeline

logger = logging.getLogger(__name__)

router = APIRouter()


@lru_cache(maxsize=1)
def get_pipeline() -> ScriptGenerationPipeline:
    return build_pipeline(settings)


@router.post("/generate")
async def generate_scripts(
    request: GenerationRequest,
    auth: Optional[AuthContext] = Depends(get_optional_auth_context),
    pipeline: ScriptGenerationPipeline = Depends(get_pipeline),
    db: AsyncSession = Depends(get_db),
):
    """Analyze reference videos and write script variants for the given theme."""
    try:
        return await pipeline.run(request, caller=auth, db=db)
    except GenerationFailure as exc:
        logger.info("Generation failed with %d: %s", exc.status_code, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_response())
