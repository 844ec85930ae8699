"""Request, transcript and script contracts shared by the generation pipeline."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator

MIN_DESCRIPTION_LENGTH = 20


class PlatformTag(str, Enum):
    YOUTUBE = "youtube"
    INSTAGRAM = "instagram"
    TIKTOK = "tiktok"


class ThemeKind(str, Enum):
    DESCRIPTION = "description"
    LINK = "link"


class Objective(str, Enum):
    LEADS = "leads"
    SALES = "sales"
    ENGAGEMENT = "engagement"


class VideoDuration(str, Enum):
    SHORT = "15-30s"
    MEDIUM = "30-60s"
    LONG = "60-90s"
    EXTENDED = "90s+"


class PrimaryPlatform(str, Enum):
    YOUTUBE = "youtube"
    INSTAGRAM = "instagram"
    TIKTOK = "tiktok"
    ALL = "all"


# ---------------------------------------------------------------------------
# Request
# ---------------------------------------------------------------------------


class VideoReference(BaseModel):
    url: str = ""
    platform: Optional[PlatformTag] = None


class ThemeInput(BaseModel):
    kind: ThemeKind = ThemeKind.DESCRIPTION
    content: str
    target_audience: Optional[str] = None
    objective: Optional[Objective] = None

    @model_validator(mode="after")
    def _description_long_enough(self) -> "ThemeInput":
        if self.kind == ThemeKind.DESCRIPTION and len(self.content) < MIN_DESCRIPTION_LENGTH:
            raise ValueError(f"Describe the theme with at least {MIN_DESCRIPTION_LENGTH} characters.")
        if self.kind == ThemeKind.LINK and not self.content.strip():
            raise ValueError("Theme link must not be empty.")
        return self


class GenerationSettings(BaseModel):
    variant_count: int = Field(default=5, ge=5, le=10)
    video_duration: VideoDuration = VideoDuration.MEDIUM
    primary_platform: PrimaryPlatform = PrimaryPlatform.ALL


class GenerationRequest(BaseModel):
    video_references: List[VideoReference] = Field(default_factory=list)
    theme: ThemeInput
    settings: GenerationSettings = Field(default_factory=GenerationSettings)
    production_constraints: Optional[str] = None

    def usable_references(self) -> List[VideoReference]:
        """References with a non-blank URL, in request order."""
        return [ref for ref in self.video_references if ref.url and ref.url.strip()]


# ---------------------------------------------------------------------------
# Transcripts
# ---------------------------------------------------------------------------


class TranscriptResult(BaseModel):
    text: str = ""
    fallback: bool = False


class Transcription(BaseModel):
    platform: PlatformTag
    text: str = ""


# ---------------------------------------------------------------------------
# Script variants (model output)
# ---------------------------------------------------------------------------


class _ModelOutput(BaseModel):
    model_config = ConfigDict(extra="ignore")

    @field_validator("*", mode="before")
    @classmethod
    def _none_strings_to_empty(cls, value: Any, info: ValidationInfo) -> Any:
        field = cls.model_fields.get(info.field_name)
        if field is None or field.annotation is not str:
            return value
        if value is None:
            return ""
        if isinstance(value, (int, float)):
            return str(value)
        return value


class HookSection(_ModelOutput):
    text: str = ""
    timing: str = ""
    type: Optional[str] = None


class BodySection(_ModelOutput):
    text: str = ""
    timing: str = ""
    structure: Optional[str] = None
    key_points: List[str] = Field(default_factory=list)

    @field_validator("key_points", mode="before")
    @classmethod
    def _listify_key_points(cls, value: Any) -> List[str]:
        if not isinstance(value, list):
            return []
        return [str(item) for item in value if str(item).strip()]


class CtaSection(_ModelOutput):
    text: str = ""
    timing: str = ""
    type: Optional[str] = None


class CameraAngles(_ModelOutput):
    hook: Optional[str] = None
    body: Optional[str] = None
    cta: Optional[str] = None


class ProductionDirection(_ModelOutput):
    camera_angles: Optional[CameraAngles] = None
    lighting: Optional[str] = None
    setting: Optional[str] = None
    vocal_tone: Optional[str] = None


class ScriptVariant(_ModelOutput):
    id: str = ""
    index: int = 0
    title: str = ""
    adherence_score: float = 0.0
    estimated_seconds: int = 0
    recommended_platforms: List[PlatformTag] = Field(default_factory=list)
    hook: HookSection = Field(default_factory=HookSection)
    body: BodySection = Field(default_factory=BodySection)
    cta: CtaSection = Field(default_factory=CtaSection)
    production_direction: Optional[ProductionDirection] = None
    notes: str = ""

    @field_validator("adherence_score", mode="before")
    @classmethod
    def _clamp_score(cls, value: Any) -> float:
        try:
            score = float(value)
        except (TypeError, ValueError):
            return 0.0
        return max(0.0, min(10.0, score))

    @field_validator("estimated_seconds", mode="before")
    @classmethod
    def _coerce_seconds(cls, value: Any) -> int:
        try:
            return max(int(float(value)), 0)
        except (TypeError, ValueError):
            return 0

    @field_validator("recommended_platforms", mode="before")
    @classmethod
    def _known_platforms_only(cls, value: Any) -> List[str]:
        if not isinstance(value, list):
            return []
        known = {tag.value for tag in PlatformTag}
        return [str(item).strip().lower() for item in value if str(item).strip().lower() in known]

    def is_complete(self) -> bool:
        """True when hook, body and CTA all carry non-empty text."""
        return bool(self.hook.text.strip() and self.body.text.strip() and self.cta.text.strip())


def complete_variants(variants: List[ScriptVariant]) -> List[ScriptVariant]:
    """Drop variants missing hook/body/CTA text. Idempotent."""
    return [variant for variant in variants if variant.is_complete()]


# ---------------------------------------------------------------------------
# Accumulated intelligence
# ---------------------------------------------------------------------------


class CondensedVariant(BaseModel):
    hook_text: Optional[str] = None
    hook_type: Optional[str] = None
    body_structure: Optional[str] = None
    cta_type: Optional[str] = None
    score: float
    notes: Optional[str] = None


class AccumulatedIntelligence(BaseModel):
    prior_generation_count: int
    top_variants: List[CondensedVariant] = Field(default_factory=list)


PatternAnalysis = Dict[str, Any]
