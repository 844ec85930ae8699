"""
YouTube network client for caption transcripts and public oEmbed metadata.
"""

from typing import Any, Dict, List, Optional, Sequence

import httpx
from youtube_transcript_api import YouTubeTranscriptApi

OEMBED_ENDPOINT = "https://www.youtube.com/oembed"
WATCH_URL_TEMPLATE = "https://www.youtube.com/watch?v={video_id}"


class YouTubeClient:
    """Client for the public YouTube caption and oEmbed endpoints."""

    def __init__(
        self,
        languages: Optional[Sequence[str]] = None,
        oembed_timeout: float = 8.0,
        transcript_api: Any = None,
    ):
        """
        Initialize YouTube client.

        Args:
            languages: Preferred caption languages, most preferred first
            oembed_timeout: Timeout in seconds for oEmbed requests
            transcript_api: Optional YouTubeTranscriptApi instance
        """
        self.languages = list(languages or ["en"])
        self.oembed_timeout = oembed_timeout
        self.transcript_api = transcript_api or YouTubeTranscriptApi()

    def fetch_captions(self, video_id: str) -> List[Dict[str, Any]]:
        """
        Fetch the time-coded caption track for a video.

        Blocking; callers on the event loop should run it in a thread.

        Returns:
            List of ``{"text", "start", "duration"}`` fragments.

        Raises:
            youtube_transcript_api errors when captions are disabled,
            missing, or the request fails.
        """
        fetched = self.transcript_api.fetch(video_id, languages=self.languages)
        return fetched.to_raw_data()

    async def fetch_oembed(self, video_id: str) -> Optional[Dict[str, Any]]:
        """
        Fetch public oEmbed metadata (title, author_name) for a video.

        Returns None when the endpoint answers with a non-success status.
        Network errors propagate as ``httpx.HTTPError``.
        """
        params = {
            "url": WATCH_URL_TEMPLATE.format(video_id=video_id),
            "format": "json",
        }
        async with httpx.AsyncClient(timeout=self.oembed_timeout) as client:
            response = await client.get(OEMBED_ENDPOINT, params=params)
        if response.status_code != 200:
            return None
        payload = response.json()
        return payload if isinstance(payload, dict) else None


def create_youtube_client(languages: Optional[Sequence[str]] = None, oembed_timeout: float = 8.0) -> YouTubeClient:
    """Factory function to create a YouTube client from settings values."""
    return YouTubeClient(languages=languages, oembed_timeout=oembed_timeout)
