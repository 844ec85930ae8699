"""Winning-pattern analysis over reference video transcripts."""

from __future__ import annotations

import logging
from typing import List, Sequence

from generation.llm import LanguageModelClient
from generation.models import PatternAnalysis, Transcription
from generation.parsing import parse_model_json

logger = logging.getLogger(__name__)


def _videos_block(transcriptions: Sequence[Transcription]) -> str:
    return "\n\n---\n\n".join(
        f"VIDEO {idx} ({item.platform.value.upper()}):\n{item.text}"
        for idx, item in enumerate(transcriptions, start=1)
    )


def build_analysis_prompt(transcriptions: Sequence[Transcription]) -> str:
    count = len(transcriptions)
    return (
        "You are an expert copywriter for viral short-form videos.\n\n"
        "REFERENCE VIDEOS:\n"
        f"{_videos_block(transcriptions)}\n\n"
        f"Analyze these {count} videos and identify the winning patterns.\n\n"
        "Return ONLY a valid JSON object (no markdown) matching this schema:\n"
        "{\n"
        f'  "videos_analyzed": {count},\n'
        '  "hook_patterns": [\n'
        "    {\n"
        '      "type": "provocative_question",\n'
        f'      "frequency": "2/{count}",\n'
        '      "avg_duration_seconds": 5,\n'
        '      "examples": ["example hook"]\n'
        "    }\n"
        "  ],\n"
        '  "body_patterns": {\n'
        '    "dominant_structure": "problem-agitation-solution",\n'
        '    "avg_key_points": 3,\n'
        '    "common_elements": ["storytelling", "social_proof"]\n'
        "  },\n"
        '  "cta_patterns": {\n'
        '    "dominant_type": "urgency",\n'
        '    "avg_positioning": "last_5-7s",\n'
        '    "examples": ["example CTA"]\n'
        "  },\n"
        '  "production_patterns": {\n'
        '    "camera_angles": ["close-up on hook"],\n'
        '    "lighting": "natural window light",\n'
        '    "setting": "home office",\n'
        '    "vocal_tone": "energetic"\n'
        "  }\n"
        "}\n"
        '"production_patterns" is optional: include it only when the transcripts reveal visual or delivery cues.'
    )


class PatternAnalyzer:
    def __init__(self, llm: LanguageModelClient, max_tokens: int = 2000):
        self.llm = llm
        self.max_tokens = max_tokens

    async def analyze(self, transcriptions: List[Transcription]) -> PatternAnalysis:
        """Ask the model for the shared hook/body/CTA patterns of the videos."""
        if not transcriptions:
            raise ValueError("analyze() needs at least one transcription")

        prompt = build_analysis_prompt(transcriptions)
        response_text = await self.llm.complete(prompt, max_tokens=self.max_tokens)
        analysis = parse_model_json(response_text, dict)
        logger.info("Pattern analysis complete for %d videos", len(transcriptions))
        return analysis
