"""Test doubles for the language model and the YouTube client."""

import json
from typing import Any, Dict, List, Optional

from config import settings
from generation.analyzer import PatternAnalyzer
from generation.scripts import ScriptGenerator
from generation.transcripts import TranscriptExtractor
from models.user import User
from services.generation import ScriptGenerationPipeline
from services.session_token import create_session_token


class FakeLanguageModel:
    """Replays canned completions in order and records every prompt."""

    def __init__(self, *responses: Any):
        self.responses = list(responses)
        self.prompts: List[str] = []

    async def complete(self, prompt: str, max_tokens: int) -> str:
        self.prompts.append(prompt)
        if not self.responses:
            raise AssertionError("unexpected language-model call")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class FakeYouTube:
    """Caption and oEmbed lookups served from dictionaries keyed by video id."""

    def __init__(
        self,
        captions: Optional[Dict[str, Any]] = None,
        oembed: Optional[Dict[str, Any]] = None,
    ):
        self.captions = captions or {}
        self.oembed = oembed or {}
        self.caption_calls: List[str] = []

    def fetch_captions(self, video_id: str) -> List[Dict[str, Any]]:
        self.caption_calls.append(video_id)
        value = self.captions.get(video_id)
        if value is None:
            raise RuntimeError(f"Transcripts are disabled for {video_id}")
        if isinstance(value, Exception):
            raise value
        return value

    async def fetch_oembed(self, video_id: str) -> Optional[Dict[str, Any]]:
        value = self.oembed.get(video_id)
        if isinstance(value, Exception):
            raise value
        return value


def build_test_pipeline(llm: FakeLanguageModel, youtube: Optional[FakeYouTube] = None) -> ScriptGenerationPipeline:
    return ScriptGenerationPipeline(
        config=settings,
        extractor=TranscriptExtractor(youtube or FakeYouTube()),
        analyzer=PatternAnalyzer(llm),
        generator=ScriptGenerator(llm),
    )


def auth_header_for(user: User) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_session_token(user.id, email=user.email)['token']}"}



ANALYSIS = {
    "videos_analyzed": 1,
    "hook_patterns": [
        {"type": "provocative_question", "frequency": "1/1", "avg_duration_seconds": 4, "examples": ["Still posting daily?"]}
    ],
    "body_patterns": {"dominant_structure": "problem-agitation-solution", "avg_key_points": 3, "common_elements": ["storytelling"]},
    "cta_patterns": {"dominant_type": "urgency", "avg_positioning": "last_5-7s", "examples": ["Link in bio today"]},
}


def make_variant(index: int, score: float = 9.0, **overrides: Any) -> Dict[str, Any]:
    variant: Dict[str, Any] = {
        "id": f"script-{index}",
        "index": index,
        "title": f"Script {index}",
        "adherence_score": score,
        "estimated_seconds": 45,
        "recommended_platforms": ["instagram", "tiktok"],
        "hook": {"text": f"Hook {index}", "timing": "0-5s", "type": "provocative_question"},
        "body": {
            "text": f"Body {index}",
            "timing": "5-40s",
            "structure": "problem-agitation-solution",
            "key_points": ["pain", "proof", "fix"],
        },
        "cta": {"text": f"CTA {index}", "timing": "40-45s", "type": "urgency"},
        "notes": f"Notes {index}",
    }
    variant.update(overrides)
    return variant


def variants_response(count: int = 5, score: float = 9.0) -> str:
    return json.dumps([make_variant(index, score) for index in range(1, count + 1)])


def generation_body(**overrides: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {
        "video_references": [],
        "theme": {
            "kind": "description",
            "content": "A budgeting app that helps freelancers save for taxes automatically",
            "target_audience": "freelancers",
            "objective": "leads",
        },
        "settings": {"variant_count": 5, "video_duration": "30-60s", "primary_platform": "instagram"},
    }
    body.update(overrides)
    return body
