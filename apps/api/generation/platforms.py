"""Platform identification for reference video URLs."""

from __future__ import annotations

from typing import Sequence, Tuple

from generation.models import PlatformTag

# Checked in order; first match wins.
PLATFORM_HOST_FRAGMENTS: Sequence[Tuple[str, PlatformTag]] = (
    ("youtube.com", PlatformTag.YOUTUBE),
    ("youtu.be", PlatformTag.YOUTUBE),
    ("instagram.com", PlatformTag.INSTAGRAM),
    ("tiktok.com", PlatformTag.TIKTOK),
)


class UnrecognizedPlatform(ValueError):
    """Raised when a URL does not belong to a supported platform."""

    def __init__(self, url: str):
        super().__init__(f"Unrecognized platform for URL: {url}")
        self.url = url


def identify_platform(url: str) -> PlatformTag:
    """Classify a video URL into a supported platform tag."""
    text = str(url or "").strip().lower()
    for fragment, platform in PLATFORM_HOST_FRAGMENTS:
        if fragment in text:
            return platform
    raise UnrecognizedPlatform(url)
