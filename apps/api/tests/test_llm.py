from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from config import Settings
from generation.llm import (
    DEFAULT_MODELS,
    LanguageModelClient,
    LanguageModelConfigError,
    LanguageModelError,
    is_billing_error,
)


def _config(**overrides):
    values = {"LLM_PROVIDER": "anthropic", "ANTHROPIC_API_KEY": "", "OPENAI_API_KEY": "", "LLM_MODEL": ""}
    values.update(overrides)
    return Settings(**values)


def _anthropic_client(reply=None, error=None):
    client = MagicMock()
    client.messages.create = AsyncMock(return_value=reply, side_effect=error)
    return client


@pytest.mark.parametrize(
    "message,expected",
    [
        ("Your credit balance is too low to access the Anthropic API", True),
        ("BILLING hard limit reached", True),
        ("Error code: 429 - insufficient_quota", True),
        ("overloaded_error", False),
    ],
)
def test_is_billing_error(message, expected):
    assert is_billing_error(message) is expected


def test_default_model_follows_provider():
    assert LanguageModelClient(_config()).model == DEFAULT_MODELS["anthropic"]
    assert LanguageModelClient(_config(LLM_PROVIDER="openai")).model == DEFAULT_MODELS["openai"]
    assert LanguageModelClient(_config(LLM_MODEL="custom-model")).model == "custom-model"


@pytest.mark.asyncio
async def test_missing_api_key_fails_at_first_use():
    client = LanguageModelClient(_config())

    with pytest.raises(LanguageModelConfigError):
        await client.complete("hello", max_tokens=10)


@pytest.mark.asyncio
async def test_anthropic_reply_text_blocks_are_joined():
    client = LanguageModelClient(_config(ANTHROPIC_API_KEY="test-key"))
    reply = SimpleNamespace(
        content=[
            SimpleNamespace(type="text", text='[{"a": '),
            SimpleNamespace(type="tool_use", text="ignored"),
            SimpleNamespace(type="text", text="1}]"),
        ]
    )
    client._client = _anthropic_client(reply=reply)

    assert await client.complete("prompt", max_tokens=50) == '[{"a": 1}]'
    kwargs = client._client.messages.create.await_args.kwargs
    assert kwargs["max_tokens"] == 50
    assert kwargs["messages"] == [{"role": "user", "content": "prompt"}]


@pytest.mark.asyncio
async def test_openai_reply_is_returned():
    client = LanguageModelClient(_config(LLM_PROVIDER="openai", OPENAI_API_KEY="test-key"))
    sdk = MagicMock()
    sdk.chat.completions.create = AsyncMock(
        return_value=SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content="{}"))])
    )
    client._client = sdk

    assert await client.complete("prompt", max_tokens=5) == "{}"


@pytest.mark.asyncio
async def test_provider_errors_are_wrapped_with_billing_flag():
    client = LanguageModelClient(_config(ANTHROPIC_API_KEY="test-key"))
    client._client = _anthropic_client(error=RuntimeError("Your credit balance is too low"))

    with pytest.raises(LanguageModelError) as exc_info:
        await client.complete("prompt", max_tokens=5)

    assert exc_info.value.billing is True


@pytest.mark.asyncio
async def test_empty_reply_is_an_error():
    client = LanguageModelClient(_config(ANTHROPIC_API_KEY="test-key"))
    client._client = _anthropic_client(reply=SimpleNamespace(content=[]))

    with pytest.raises(LanguageModelError) as exc_info:
        await client.complete("prompt", max_tokens=5)

    assert exc_info.value.billing is False
