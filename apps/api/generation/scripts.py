"""Script variant generation: prompt contract and output validation."""

from __future__ import annotations

import json
import logging
from typing import Any, List, Optional

from pydantic import ValidationError

from generation.llm import LanguageModelClient
from generation.models import (
    AccumulatedIntelligence,
    GenerationSettings,
    PatternAnalysis,
    ScriptVariant,
    ThemeInput,
    ThemeKind,
    complete_variants,
)
from generation.parsing import parse_model_json

logger = logging.getLogger(__name__)

VARIANT_SCHEMA_EXAMPLE = """[
  {
    "id": "script-1",
    "index": 1,
    "title": "Creative script name",
    "adherence_score": 9.2,
    "estimated_seconds": 60,
    "recommended_platforms": ["instagram", "tiktok"],
    "hook": {
      "text": "Hook text here",
      "timing": "0-5s",
      "type": "provocative_question"
    },
    "body": {
      "text": "Body text here",
      "timing": "5-55s",
      "structure": "problem-agitation-solution",
      "key_points": ["point 1", "point 2", "point 3"]
    },
    "cta": {
      "text": "CTA text here",
      "timing": "55-60s",
      "type": "urgency"
    },
    "production_direction": {
      "camera_angles": {
        "hook": "tight close-up, eye level",
        "body": "medium shot with B-roll cutaways",
        "cta": "close-up facing camera"
      },
      "lighting": "soft key light from the window side",
      "setting": "tidy desk with the product visible",
      "vocal_tone": "confident and fast-paced"
    },
    "notes": "Why this script works"
  }
]"""


def _analysis_section(analysis: Optional[PatternAnalysis], has_intelligence: bool) -> str:
    if analysis:
        return "WINNING PATTERNS IDENTIFIED:\n" + json.dumps(analysis, indent=2, ensure_ascii=False)
    lines = [
        "NO REFERENCE VIDEO: no reference video was analyzed for this request.",
        "Rely on proven best practices for high-converting short-form video hooks, bodies and CTAs.",
    ]
    if has_intelligence:
        lines.append("Lean on the creator's accumulated intelligence below to match what already works for them.")
    return "\n".join(lines)


def _theme_section(theme: ThemeInput) -> str:
    content = theme.content.strip()
    lines = ["NEW PRODUCT/THEME:", content if theme.kind == ThemeKind.DESCRIPTION else f"Link: {content}"]
    if theme.target_audience and theme.target_audience.strip():
        lines.append(f"Target audience: {theme.target_audience.strip()}")
    if theme.objective:
        lines.append(f"Objective: {theme.objective.value}")
    return "\n".join(lines)


def _settings_section(settings: GenerationSettings) -> str:
    return (
        "SETTINGS:\n"
        f"- Duration: {settings.video_duration.value}\n"
        f"- Platform: {settings.primary_platform.value}\n"
        f"- Number of variants: {settings.variant_count}"
    )


def _constraints_section(production_constraints: Optional[str]) -> Optional[str]:
    constraints = (production_constraints or "").strip()
    if not constraints:
        return None
    return (
        "PRODUCTION CONSTRAINTS (MANDATORY):\n"
        f"{constraints}\n"
        "These are hard limits: every returned variant must be producible within these constraints."
    )


def _intelligence_section(intelligence: Optional[AccumulatedIntelligence]) -> Optional[str]:
    if intelligence is None or not intelligence.top_variants:
        return None
    payload = intelligence.model_dump(exclude_none=True)
    return (
        "ACCUMULATED INTELLIGENCE (creator's best past scripts):\n"
        f"{json.dumps(payload, indent=2, ensure_ascii=False)}\n"
        "Use this as a quality reference for what performs well for this creator. "
        "It is not a template to copy: write new scripts for the new theme."
    )


def build_generation_prompt(
    analysis: Optional[PatternAnalysis],
    theme: ThemeInput,
    settings: GenerationSettings,
    production_constraints: Optional[str] = None,
    intelligence: Optional[AccumulatedIntelligence] = None,
) -> str:
    has_intelligence = intelligence is not None and bool(intelligence.top_variants)
    sections = [
        "You are an expert copywriter for high-converting short-form videos.",
        _analysis_section(analysis, has_intelligence),
        _theme_section(theme),
        _settings_section(settings),
        _constraints_section(production_constraints),
        _intelligence_section(intelligence),
        (
            f"Write exactly {settings.variant_count} DIFFERENT scripts"
            + (" applying the winning patterns." if analysis else ".")
            + "\n\nReturn ONLY a valid JSON array (no markdown) of "
            f"{settings.variant_count} objects matching this schema:\n"
            f"{VARIANT_SCHEMA_EXAMPLE}\n"
            '"production_direction" is optional. adherence_score ranges from 0 to 10. '
            "hook.text, body.text and cta.text must never be empty."
        ),
    ]
    return "\n\n".join(section for section in sections if section)


def parse_variants(items: List[Any]) -> List[ScriptVariant]:
    """Validate raw model items, dropping anything that is not a complete variant."""
    variants: List[ScriptVariant] = []
    for position, item in enumerate(items, start=1):
        if not isinstance(item, dict):
            logger.info("Dropping non-object script item at position %d", position)
            continue
        try:
            variant = ScriptVariant.model_validate(item)
        except ValidationError as exc:
            logger.info("Dropping invalid script item at position %d: %s", position, exc.errors()[:3])
            continue
        if not variant.index:
            variant.index = position
        if not variant.id.strip():
            variant.id = f"script-{variant.index}"
        variants.append(variant)

    complete = complete_variants(variants)
    if len(complete) < len(variants):
        logger.info("Dropped %d scripts missing hook/body/cta text", len(variants) - len(complete))
    return complete


class ScriptGenerator:
    def __init__(self, llm: LanguageModelClient, max_tokens: int = 8000):
        self.llm = llm
        self.max_tokens = max_tokens

    async def generate(
        self,
        analysis: Optional[PatternAnalysis],
        theme: ThemeInput,
        settings: GenerationSettings,
        production_constraints: Optional[str] = None,
        intelligence: Optional[AccumulatedIntelligence] = None,
    ) -> List[ScriptVariant]:
        prompt = build_generation_prompt(analysis, theme, settings, production_constraints, intelligence)
        response_text = await self.llm.complete(prompt, max_tokens=self.max_tokens)
        items = parse_model_json(response_text, list)
        variants = parse_variants(items)
        logger.info("Generated %d/%d valid scripts (requested %d)", len(variants), len(items), settings.variant_count)
        return variants
