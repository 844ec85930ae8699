"""Generation orchestrator: transcripts -> pattern analysis -> scripts -> persistence."""

from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from config import Settings
from generation.analyzer import PatternAnalyzer
from generation.llm import LanguageModelClient, LanguageModelConfigError, LanguageModelError, is_billing_error
from generation.models import (
    GenerationRequest,
    PatternAnalysis,
    Transcription,
    VideoReference,
    complete_variants,
)
from generation.parsing import InvalidModelOutput
from generation.platforms import UnrecognizedPlatform, identify_platform
from generation.scripts import ScriptGenerator
from generation.transcripts import TranscriptExtractor
from ingestion.youtube import create_youtube_client
from models.user import User
from services.intelligence import aggregate_intelligence
from services.quota import QuotaExceeded, build_usage, ensure_quota_available, roll_quota_period
from services.storage import create_generation_record, find_caller_by_email, find_caller_by_id, increment_quota

if TYPE_CHECKING:
    from routers.auth_scope import AuthContext

logger = logging.getLogger(__name__)

WARNING_TITLE_ONLY = 'Video "{url}" has no captions; analysis used its title only (less accurate).'
WARNING_NO_TEXT = 'Video "{url}" has no captions or metadata available; it was skipped.'
WARNING_UNSUPPORTED = (
    'Video "{url}" is not from a supported platform (youtube, instagram, tiktok); it was skipped.'
)
WARNING_FAILED = 'Video "{url}" could not be processed; it was skipped.'
WARNING_NO_USABLE_VIDEOS = (
    "No video could be processed; scripts were generated from the theme description and history."
)


class GenerationFailure(Exception):
    """Request-fatal condition with a caller-facing response shape."""

    status_code = 500
    default_message = "Internal error while processing the request."

    def __init__(self, message: Optional[str] = None, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.details = details

    def to_response(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class CallerUnauthenticated(GenerationFailure):
    status_code = 401
    default_message = "Access denied. Log in to continue."


class GenerationQuotaExceeded(GenerationFailure):
    status_code = 429
    default_message = "Monthly generation limit reached."


class ModelOutputMalformed(GenerationFailure):
    status_code = 500


class ProviderBillingFailure(GenerationFailure):
    status_code = 503
    default_message = "The language-model API credit balance is insufficient. Contact the administrator."


class UnexpectedGenerationError(GenerationFailure):
    status_code = 500


class ScriptGenerationPipeline:
    """
    Runs one generation request end to end.

    Per-video extraction problems become warnings; every failure from pattern
    analysis onwards aborts the request with a ``GenerationFailure``. Anonymous
    callers skip quota, intelligence and persistence.
    """

    def __init__(
        self,
        config: Settings,
        extractor: TranscriptExtractor,
        analyzer: PatternAnalyzer,
        generator: ScriptGenerator,
    ):
        self.config = config
        self.extractor = extractor
        self.analyzer = analyzer
        self.generator = generator

    async def run(
        self,
        request: GenerationRequest,
        *,
        caller: Optional[AuthContext],
        db: AsyncSession,
    ) -> Dict[str, Any]:
        try:
            return await self._run(request, caller=caller, db=db)
        except GenerationFailure:
            raise
        except QuotaExceeded as exc:
            raise GenerationQuotaExceeded(details=exc.details()) from exc
        except InvalidModelOutput as exc:
            logger.error("Malformed model output: %s; raw response: %s", exc, exc.raw_response[:4000])
            raise ModelOutputMalformed() from exc
        except LanguageModelError as exc:
            if exc.billing:
                logger.error("Language-model billing failure: %s", exc)
                raise ProviderBillingFailure() from exc
            logger.error("Language-model request failed: %s", exc)
            raise UnexpectedGenerationError() from exc
        except LanguageModelConfigError as exc:
            logger.error("Language model is not configured: %s", exc)
            raise UnexpectedGenerationError() from exc
        except Exception as exc:
            logger.exception("Unhandled generation error: %s", exc)
            if is_billing_error(exc):
                raise ProviderBillingFailure() from exc
            raise UnexpectedGenerationError() from exc

    async def _run(
        self,
        request: GenerationRequest,
        *,
        caller: Optional[AuthContext],
        db: AsyncSession,
    ) -> Dict[str, Any]:
        limit = int(self.config.MAX_GENERATIONS_PER_USER_MONTH)

        user = await self._resolve_caller(caller, db)
        # `user` is expired if a failed history read rolls the session back.
        user_id = user.id if user is not None else None
        if user is not None:
            await roll_quota_period(user, db)
            ensure_quota_available(user, limit)

        warnings: List[str] = []
        analysis: Optional[PatternAnalysis] = None
        references = request.usable_references()
        if references:
            logger.info("Extracting transcripts for %d reference videos", len(references))
            transcriptions = await self._extract_transcripts(references, warnings)
            usable = [item for item in transcriptions if item.text]
            logger.info("Usable transcripts: %d/%d", len(usable), len(references))
            if usable:
                analysis = await self.analyzer.analyze(usable)
            else:
                warnings.append(WARNING_NO_USABLE_VIDEOS)
        else:
            logger.info("No reference videos supplied; generating in no-reference mode")

        intelligence = await aggregate_intelligence(user_id, db) if user_id else None

        variants = await self.generator.generate(
            analysis,
            request.theme,
            request.settings,
            request.production_constraints,
            intelligence,
        )
        variants = complete_variants(variants)
        if not variants:
            raise InvalidModelOutput("Model returned no complete script variants")
        variant_payload = [variant.model_dump(mode="json", exclude_none=True) for variant in variants]

        if user_id:
            record = await create_generation_record(
                db,
                user_id=user_id,
                theme=request.theme.model_dump(mode="json", exclude_none=True),
                settings=request.settings.model_dump(mode="json"),
                variants=variant_payload,
                analysis=analysis,
                production_constraints=request.production_constraints,
            )
            await increment_quota(user_id, db)
            await db.commit()
            await db.refresh(user)
            request_id = record.id
            usage = build_usage(user.generations_used, limit)
        else:
            request_id = str(uuid.uuid4())
            usage = build_usage(0, limit)

        response: Dict[str, Any] = {
            "request_id": request_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "analysis": analysis,
            "variants": variant_payload,
            "usage": usage,
        }
        if warnings:
            response["warnings"] = warnings
        return response

    async def _resolve_caller(self, caller: Optional[AuthContext], db: AsyncSession) -> Optional[User]:
        if caller is None:
            if self.config.REQUIRE_AUTHENTICATED_CALLER:
                raise CallerUnauthenticated()
            return None

        user = await find_caller_by_id(caller.user_id, db)
        if user is None and caller.email:
            user = await find_caller_by_email(caller.email, db)
        if user is None:
            raise CallerUnauthenticated("User not found.")
        return user

    async def _extract_transcripts(
        self,
        references: List[VideoReference],
        warnings: List[str],
    ) -> List[Transcription]:
        results = await asyncio.gather(*(self._extract_one(reference) for reference in references))
        transcriptions: List[Transcription] = []
        for transcription, warning in results:
            if warning:
                warnings.append(warning)
            if transcription is not None:
                transcriptions.append(transcription)
        return transcriptions

    async def _extract_one(self, reference: VideoReference) -> Tuple[Optional[Transcription], Optional[str]]:
        url = reference.url.strip()
        try:
            platform = reference.platform or identify_platform(url)
        except UnrecognizedPlatform:
            logger.warning("Skipping unsupported video URL %s", url)
            return None, WARNING_UNSUPPORTED.format(url=url)

        try:
            result = await self.extractor.extract(url, platform)
        except Exception:
            logger.exception("Failed to process video %s", url)
            return Transcription(platform=platform, text=""), WARNING_FAILED.format(url=url)

        logger.info("Video %s -> fallback=%s, chars=%d", url, result.fallback, len(result.text))
        warning = None
        if result.fallback:
            warning = (WARNING_TITLE_ONLY if result.text else WARNING_NO_TEXT).format(url=url)
        return Transcription(platform=platform, text=result.text), warning


def build_pipeline(config: Settings) -> ScriptGenerationPipeline:
    """Wire the pipeline with the real network collaborators."""
    llm = LanguageModelClient(config)
    youtube = create_youtube_client(
        languages=config.TRANSCRIPT_LANGUAGES,
        oembed_timeout=config.OEMBED_TIMEOUT_SECONDS,
    )
    return ScriptGenerationPipeline(
        config=config,
        extractor=TranscriptExtractor(youtube),
        analyzer=PatternAnalyzer(llm, max_tokens=config.ANALYSIS_MAX_TOKENS),
        generator=ScriptGenerator(llm, max_tokens=config.GENERATION_MAX_TOKENS),
    )
