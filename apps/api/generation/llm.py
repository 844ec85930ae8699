import logging
from typing import Any, Optional, Tuple

from anthropic import AsyncAnthropic
from openai import AsyncOpenAI

from config import Settings, require_llm_api_key

logger = logging.getLogger(__name__)

DEFAULT_MODELS = {
    "anthropic": "claude-haiku-4-5-20251001",
    "openai": "gpt-4o",
}
BILLING_ERROR_MARKERS: Tuple[str, ...] = (
    "credit balance is too low",
    "billing",
    "insufficient_quota",
)


def is_billing_error(message: Any) -> bool:
    """True when a provider error message points at exhausted credit/billing."""
    text = str(message or "").lower()
    return any(marker in text for marker in BILLING_ERROR_MARKERS)


class LanguageModelConfigError(RuntimeError):
    """Language-model credentials are missing or the provider is unknown."""


class LanguageModelError(RuntimeError):
    """The provider rejected or failed a completion request."""

    def __init__(self, message: str, *, billing: bool = False):
        super().__init__(message)
        self.billing = billing


class LanguageModelClient:
    """
    Thin async wrapper over the configured provider SDK.

    The API key is only checked when the first completion is requested, so the
    service can boot (and serve health checks) without credentials.
    """

    def __init__(self, config: Settings):
        self.config = config
        self.provider = (config.LLM_PROVIDER or "anthropic").strip().lower()
        self.model = (config.LLM_MODEL or "").strip() or DEFAULT_MODELS.get(self.provider, "")
        self._client: Optional[Any] = None

    def _get_client(self) -> Any:
        if self._client is not None:
            return self._client
        if self.provider not in DEFAULT_MODELS:
            raise LanguageModelConfigError(f"Unsupported LLM_PROVIDER: {self.provider}")
        try:
            api_key = require_llm_api_key(self.config)
        except ValueError as exc:
            raise LanguageModelConfigError(str(exc)) from exc

        timeout = float(self.config.LLM_TIMEOUT_SECONDS)
        if self.provider == "openai":
            self._client = AsyncOpenAI(api_key=api_key, timeout=timeout)
        else:
            self._client = AsyncAnthropic(api_key=api_key, timeout=timeout)
        return self._client

    async def complete(self, prompt: str, max_tokens: int) -> str:
        """Send a single-turn prompt and return the text of the reply."""
        client = self._get_client()
        try:
            if self.provider == "openai":
                response = await client.chat.completions.create(
                    model=self.model,
                    messages=[{"role": "user", "content": prompt}],
                    max_tokens=max_tokens,
                )
                text = response.choices[0].message.content or ""
            else:
                message = await client.messages.create(
                    model=self.model,
                    max_tokens=max_tokens,
                    messages=[{"role": "user", "content": prompt}],
                )
                text = "".join(
                    getattr(block, "text", "")
                    for block in message.content
                    if getattr(block, "type", "") == "text"
                )
        except Exception as e:
            logger.error(f"Error in LLM completion ({self.provider}/{self.model}): {e}")
            raise LanguageModelError(str(e), billing=is_billing_error(e)) from e

        if not text.strip():
            raise LanguageModelError("Language model returned no text content")
        return text
