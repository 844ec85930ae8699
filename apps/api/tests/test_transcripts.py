import httpx
import pytest

from fakes import FakeYouTube
from generation.models import PlatformTag
from generation.transcripts import TranscriptExtractor, extract_youtube_video_id
from ingestion.youtube import YouTubeClient

VIDEO_ID = "dQw4w9WgXcQ"


@pytest.mark.parametrize(
    "url",
    [
        f"https://www.youtube.com/watch?v={VIDEO_ID}",
        f"https://www.youtube.com/watch?feature=share&v={VIDEO_ID}&t=10",
        f"https://youtu.be/{VIDEO_ID}?si=abc",
        f"https://www.youtube.com/embed/{VIDEO_ID}",
        f"https://www.youtube-nocookie.com/embed/{VIDEO_ID}",
        f"https://m.youtube.com/shorts/{VIDEO_ID}",
        f"https://www.youtube.com/live/{VIDEO_ID}",
        f"https://www.youtube.com/v/{VIDEO_ID}",
    ],
)
def test_extract_youtube_video_id_supports_url_shapes(url):
    assert extract_youtube_video_id(url) == VIDEO_ID


def test_extract_youtube_video_id_returns_none_without_id():
    assert extract_youtube_video_id("https://www.youtube.com/@somechannel") is None


@pytest.mark.asyncio
async def test_captions_are_ordered_and_whitespace_collapsed():
    youtube = FakeYouTube(
        captions={
            VIDEO_ID: [
                {"text": "world\n again", "start": 2.0, "duration": 1.0},
                {"text": "  hello ", "start": 0.5, "duration": 1.0},
                {"text": "", "start": 3.0, "duration": 1.0},
            ]
        }
    )
    result = await TranscriptExtractor(youtube).extract(f"https://youtu.be/{VIDEO_ID}", PlatformTag.YOUTUBE)

    assert result.text == "hello world again"
    assert result.fallback is False


@pytest.mark.asyncio
async def test_missing_captions_fall_back_to_oembed_title():
    youtube = FakeYouTube(oembed={VIDEO_ID: {"title": "3 pricing mistakes", "author_name": "Growth Lab"}})
    result = await TranscriptExtractor(youtube).extract(
        f"https://www.youtube.com/watch?v={VIDEO_ID}", PlatformTag.YOUTUBE
    )

    assert result.fallback is True
    assert '"3 pricing mistakes"' in result.text
    assert "Growth Lab" in result.text


@pytest.mark.asyncio
async def test_empty_caption_track_falls_back_to_oembed():
    youtube = FakeYouTube(captions={VIDEO_ID: []}, oembed={VIDEO_ID: {"title": "Title only"}})
    result = await TranscriptExtractor(youtube).extract(f"https://youtu.be/{VIDEO_ID}", PlatformTag.YOUTUBE)

    assert result.fallback is True
    assert '"Title only"' in result.text


@pytest.mark.asyncio
async def test_no_captions_and_no_metadata_yields_empty_fallback():
    youtube = FakeYouTube(oembed={VIDEO_ID: httpx.ConnectError("offline")})
    result = await TranscriptExtractor(youtube).extract(f"https://youtu.be/{VIDEO_ID}", PlatformTag.YOUTUBE)

    assert result.text == ""
    assert result.fallback is True


@pytest.mark.asyncio
async def test_unparseable_youtube_url_skips_network():
    youtube = FakeYouTube()
    result = await TranscriptExtractor(youtube).extract("https://www.youtube.com/@channel", PlatformTag.YOUTUBE)

    assert result.text == ""
    assert result.fallback is True
    assert youtube.caption_calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize("platform,label", [(PlatformTag.INSTAGRAM, "Instagram"), (PlatformTag.TIKTOK, "Tiktok")])
async def test_non_youtube_platforms_get_placeholder_text(platform, label):
    result = await TranscriptExtractor(FakeYouTube()).extract("https://example.test/clip", platform)

    assert result.fallback is False
    assert result.text.startswith(f"{label} video content:")


class _FetchedTranscript:
    def __init__(self, fragments):
        self.fragments = fragments

    def to_raw_data(self):
        return self.fragments


class _TranscriptApi:
    def __init__(self):
        self.calls = []

    def fetch(self, video_id, languages):
        self.calls.append((video_id, list(languages)))
        return _FetchedTranscript([{"text": "hi", "start": 0.0, "duration": 1.0}])


def test_youtube_client_fetches_captions_in_preferred_languages():
    api = _TranscriptApi()
    client = YouTubeClient(languages=["pt", "en"], transcript_api=api)

    assert client.fetch_captions(VIDEO_ID) == [{"text": "hi", "start": 0.0, "duration": 1.0}]
    assert api.calls == [(VIDEO_ID, ["pt", "en"])]


@pytest.mark.asyncio
async def test_youtube_client_oembed_returns_none_on_error_status(monkeypatch):
    real_client = httpx.AsyncClient

    def handler(request):
        assert request.url.params["url"].endswith(VIDEO_ID)
        return httpx.Response(404, json={"error": "not found"})

    monkeypatch.setattr(
        httpx,
        "AsyncClient",
        lambda **kwargs: real_client(transport=httpx.MockTransport(handler), **kwargs),
    )
    client = YouTubeClient(transcript_api=_TranscriptApi())

    assert await client.fetch_oembed(VIDEO_ID) is None


@pytest.mark.asyncio
async def test_youtube_client_oembed_returns_metadata(monkeypatch):
    real_client = httpx.AsyncClient

    def handler(request):
        return httpx.Response(200, json={"title": "Hook lab", "author_name": "Ana"})

    monkeypatch.setattr(
        httpx,
        "AsyncClient",
        lambda **kwargs: real_client(transport=httpx.MockTransport(handler), **kwargs),
    )
    client = YouTubeClient(transcript_api=_TranscriptApi())

    assert await client.fetch_oembed(VIDEO_ID) == {"title": "Hook lab", "author_name": "Ana"}
