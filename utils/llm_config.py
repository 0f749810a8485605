"""Model and retry settings read from environment variables."""
import os
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

T = TypeVar("T")

DEFAULT_MODEL = "gpt-5.1"
DEFAULT_TEMPERATURE = 0.3
DEFAULT_MAX_COMPLETION_TOKENS = 8000
DEFAULT_TIMEOUT_SECONDS = 120.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_BASE_DELAY_SECONDS = 1.0


def _read(name: str, cast: Callable[[str], T], default: T) -> T:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw.strip())
    except ValueError:
        raise ValueError(f"{name} must be a valid {cast.__name__}, got {raw!r}")


@dataclass(frozen=True)
class LLMConfig:
    """
    Settings for model calls.

    Attributes:
        api_key: OpenAI API key, required when the client is first created
        model: Chat completion model
        temperature: Sampling temperature
        max_completion_tokens: Completion token limit per call
        timeout_seconds: Per-call timeout
        max_retries: Transport attempts per logical call
        retry_base_delay_seconds: Delay after failed attempt i is i * base
    """
    api_key: Optional[str] = None
    model: str = DEFAULT_MODEL
    temperature: float = DEFAULT_TEMPERATURE
    max_completion_tokens: int = DEFAULT_MAX_COMPLETION_TOKENS
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_base_delay_seconds: float = DEFAULT_RETRY_BASE_DELAY_SECONDS

    @classmethod
    def from_env(cls) -> "LLMConfig":
        """
        Build settings from OPENAI_* and LLM_* environment variables.

        Raises:
            ValueError: If a numeric variable cannot be parsed or is out of range
        """
        config = cls(
            api_key=os.getenv("OPENAI_API_KEY") or None,
            model=os.getenv("OPENAI_MODEL") or DEFAULT_MODEL,
            temperature=_read("OPENAI_TEMPERATURE", float, DEFAULT_TEMPERATURE),
            max_completion_tokens=_read(
                "OPENAI_MAX_COMPLETION_TOKENS", int, DEFAULT_MAX_COMPLETION_TOKENS
            ),
            timeout_seconds=_read("OPENAI_TIMEOUT_SECONDS", float, DEFAULT_TIMEOUT_SECONDS),
            max_retries=_read("LLM_MAX_RETRIES", int, DEFAULT_MAX_RETRIES),
            retry_base_delay_seconds=_read(
                "LLM_RETRY_BASE_DELAY_SECONDS", float, DEFAULT_RETRY_BASE_DELAY_SECONDS
            ),
        )
        if config.max_retries < 1:
            raise ValueError(f"LLM_MAX_RETRIES must be at least 1, got {config.max_retries}")
        if config.retry_base_delay_seconds < 0:
            raise ValueError("LLM_RETRY_BASE_DELAY_SECONDS must not be negative")
        return config
