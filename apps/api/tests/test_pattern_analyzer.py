import json

import pytest

from fakes import ANALYSIS, FakeLanguageModel
from generation.analyzer import PatternAnalyzer, build_analysis_prompt
from generation.models import PlatformTag, Transcription
from generation.parsing import InvalidModelOutput


def test_prompt_labels_each_video_with_platform():
    prompt = build_analysis_prompt(
        [
            Transcription(platform=PlatformTag.YOUTUBE, text="first transcript"),
            Transcription(platform=PlatformTag.TIKTOK, text="second transcript"),
        ]
    )

    assert "VIDEO 1 (YOUTUBE):\nfirst transcript" in prompt
    assert "VIDEO 2 (TIKTOK):\nsecond transcript" in prompt
    assert "---" in prompt
    assert "Analyze these 2 videos" in prompt


@pytest.mark.asyncio
async def test_analyze_returns_parsed_analysis():
    llm = FakeLanguageModel("Sure!\n" + json.dumps(ANALYSIS))
    analyzer = PatternAnalyzer(llm)

    analysis = await analyzer.analyze([Transcription(platform=PlatformTag.YOUTUBE, text="hook body cta")])

    assert analysis == ANALYSIS
    assert len(llm.prompts) == 1


@pytest.mark.asyncio
async def test_analyze_rejects_empty_input_without_model_call():
    llm = FakeLanguageModel()
    with pytest.raises(ValueError):
        await PatternAnalyzer(llm).analyze([])
    assert llm.prompts == []


@pytest.mark.asyncio
async def test_analyze_raises_on_non_json_reply():
    llm = FakeLanguageModel("The videos all use questions.")
    with pytest.raises(InvalidModelOutput):
        await PatternAnalyzer(llm).analyze([Transcription(platform=PlatformTag.INSTAGRAM, text="text")])
