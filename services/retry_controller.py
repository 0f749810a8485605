"""
Transport Retry Controller

Wraps each logical model call (initial, JSON-repair, schema-repair) with
bounded retries and linear backoff. Authentication failures are not retried:
the cached client is invalidated and the call fails immediately with an
INVALID_AUTH classification. Every transport attempt is recorded before the
controller returns or raises.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional

import openai
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_incrementing,
)

from models.llm_interaction import CallContext, TransportResponse
from models.llm_result import LLMErrorCode
from services.interaction_recorder import InteractionRecorder, record_safely
from services.openai_transport import ModelTransport

logger = logging.getLogger(__name__)

_AUTH_MESSAGE_MARKERS = (
    "invalid credentials",
    "authentication",
    "unauthorized",
    "invalid_auth",
    "invalid api key",
    "incorrect api key",
)
_AUTH_ERROR_CODES = ("invalid_auth", "invalid_api_key")


class TransportError(Exception):
    """Raised when a logical call failed on every permitted attempt.

    Attributes:
        code: LLMErrorCode.API_ERROR or LLMErrorCode.INVALID_AUTH
        last_error_message: Message of the last underlying failure
        attempts: Number of transport attempts made
    """

    def __init__(self, code: LLMErrorCode, last_error_message: str, attempts: int):
        self.code = code
        self.last_error_message = last_error_message
        self.attempts = attempts
        super().__init__(f"{code.value}: {last_error_message}")


def is_auth_error(exc: BaseException) -> bool:
    """Return True if the failure indicates invalid or missing credentials."""
    if isinstance(exc, openai.AuthenticationError):
        return True
    if getattr(exc, "status_code", None) == 401:
        return True

    code = getattr(exc, "code", None)
    if isinstance(code, str) and code.lower() in _AUTH_ERROR_CODES:
        return True

    message = str(exc).lower()
    return any(marker in message for marker in _AUTH_MESSAGE_MARKERS)


def _error_message(exc: BaseException) -> str:
    return str(exc) or exc.__class__.__name__


class TransportRetryController:
    """Bounded retry around a ModelTransport.

    Args:
        transport: The model call to wrap
        recorder: Sink for one Attempt per transport attempt
        max_attempts: Attempts per logical call
        base_delay: Delay after failed attempt i is i * base_delay seconds
        call_timeout: Per-attempt timeout in seconds, None to disable
        sleep: Awaitable sleep used between attempts
    """

    def __init__(
        self,
        transport: ModelTransport,
        recorder: InteractionRecorder,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        call_timeout: Optional[float] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.transport = transport
        self.recorder = recorder
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.call_timeout = call_timeout
        self._sleep = sleep

    async def call(self, context: CallContext) -> TransportResponse:
        """
        Execute one logical call with retries.

        Args:
            context: Prompts and audit fields of the logical call

        Returns:
            TransportResponse of the first successful attempt

        Raises:
            TransportError: After the last attempt failed, or immediately on
                an authentication failure
        """
        attempts_made = 0
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_incrementing(start=self.base_delay, increment=self.base_delay),
            retry=retry_if_exception(lambda exc: not is_auth_error(exc)),
            sleep=self._sleep,
            reraise=True,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    attempts_made = attempt.retry_state.attempt_number
                    response = await self._attempt(context, attempts_made)
        except Exception as e:
            code = LLMErrorCode.INVALID_AUTH if is_auth_error(e) else LLMErrorCode.API_ERROR
            logger.error(
                f"Model call failed: request_id={context.request_id}, "
                f"attempt={context.attempt_number}, transport_attempts={attempts_made}, "
                f"code={code.value}, error={_error_message(e)}"
            )
            raise TransportError(code, _error_message(e), attempts_made) from e

        return response

    async def _attempt(self, context: CallContext, retry_index: int) -> TransportResponse:
        requested_at = datetime.now(timezone.utc)
        try:
            response = await self._call_transport(context)
        except Exception as e:
            auth_failure = is_auth_error(e)
            code = LLMErrorCode.INVALID_AUTH if auth_failure else LLMErrorCode.API_ERROR
            logger.warning(
                f"Model call attempt failed: request_id={context.request_id}, "
                f"attempt={context.attempt_number}, retry_index={retry_index}, "
                f"code={code.value}, error={_error_message(e)}"
            )
            if auth_failure:
                self.transport.invalidate()
            await record_safely(self.recorder, context.to_attempt(
                retry_index=retry_index,
                error_code=code.value,
                error_message=_error_message(e),
                error_details={"errorType": e.__class__.__name__, "isAuthError": auth_failure},
                requested_at=requested_at,
                responded_at=datetime.now(timezone.utc),
            ))
            raise

        await record_safely(self.recorder, context.to_attempt(
            retry_index=retry_index,
            raw_response=response.text,
            usage_metadata=response.usage_metadata,
            requested_at=requested_at,
            responded_at=datetime.now(timezone.utc),
        ))
        return response

    async def _call_transport(self, context: CallContext) -> TransportResponse:
        call = self.transport.call(context.system_prompt, context.user_prompt)
        if self.call_timeout is None:
            return await call
        try:
            return await asyncio.wait_for(call, timeout=self.call_timeout)
        except asyncio.TimeoutError as e:
            raise TimeoutError(f"Model call timed out after {self.call_timeout}s") from e
