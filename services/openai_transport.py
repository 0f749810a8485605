"""OpenAI transport for artifact generation.

The transport is a single chat completion in JSON mode. It does not retry;
retries and failure classification live in the retry controller.
"""
import logging
from typing import Optional

from openai import AsyncOpenAI

from models.llm_interaction import TransportResponse
from utils.llm_config import LLMConfig

logger = logging.getLogger(__name__)


class ModelTransport:
    """A black-box call to the model provider that may fail."""

    async def call(self, system_prompt: str, user_prompt: str) -> TransportResponse:
        raise NotImplementedError

    def invalidate(self) -> None:
        """Drop any cached client so the next call builds a fresh one."""


class OpenAIClientProvider:
    """Lazily created, shared AsyncOpenAI client.

    ``get()`` returns the cached client, creating it on first use.
    ``invalidate()`` drops it so the next ``get()`` creates a new one.
    Callers keep the reference returned by ``get()`` for the whole call, so
    an invalidation by another request never affects a call in flight.
    """

    def __init__(self, api_key: Optional[str] = None, timeout_seconds: Optional[float] = None):
        self._api_key = api_key
        self._timeout_seconds = timeout_seconds
        self._client: Optional[AsyncOpenAI] = None

    def get(self) -> AsyncOpenAI:
        if self._client is None:
            if not self._api_key:
                raise ValueError("OPENAI_API_KEY environment variable is not set")
            self._client = AsyncOpenAI(api_key=self._api_key, timeout=self._timeout_seconds)
            logger.info("OpenAI client created")
        return self._client

    def invalidate(self) -> None:
        if self._client is not None:
            logger.warning("OpenAI client invalidated; it will be recreated on next use")
        self._client = None


_default_provider: Optional[OpenAIClientProvider] = None


def get_default_client_provider(config: Optional[LLMConfig] = None) -> OpenAIClientProvider:
    """Get or create the process-wide client provider."""
    global _default_provider

    if _default_provider is None:
        config = config or LLMConfig.from_env()
        _default_provider = OpenAIClientProvider(
            api_key=config.api_key,
            timeout_seconds=config.timeout_seconds,
        )

    return _default_provider


class OpenAITransport(ModelTransport):
    """Chat completion transport in JSON-object response mode."""

    def __init__(
        self,
        config: Optional[LLMConfig] = None,
        client_provider: Optional[OpenAIClientProvider] = None,
    ):
        self.config = config or LLMConfig.from_env()
        self.client_provider = client_provider or get_default_client_provider(self.config)
        logger.info(f"OpenAITransport initialized with model: {self.config.model}")

    async def call(self, system_prompt: str, user_prompt: str) -> TransportResponse:
        """Run one chat completion and return its text with usage metadata.

        Raises:
            ValueError: If the API key is missing or the response has no content
            openai.OpenAIError: On provider failures
        """
        client = self.client_provider.get()

        response = await client.chat.completions.create(
            model=self.config.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=self.config.temperature,
            max_completion_tokens=self.config.max_completion_tokens,
            response_format={"type": "json_object"},
            timeout=self.config.timeout_seconds,
        )

        choice = response.choices[0] if response.choices else None
        content = choice.message.content if choice is not None else None
        if not content:
            raise ValueError("Empty response from OpenAI")

        usage_metadata = {
            "finish_reason": choice.finish_reason,
            "model": response.model,
        }
        if response.usage is not None:
            usage_metadata.update({
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            })

        return TransportResponse(text=content, usage_metadata=usage_metadata)

    def invalidate(self) -> None:
        self.client_provider.invalidate()
