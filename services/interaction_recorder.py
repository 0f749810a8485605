"""Interaction Recorder for the audit trail of model calls.

Every transport attempt and every evaluation of an extracted response is
appended to a recorder. Recording is best-effort: a failing recorder is
logged and never interrupts artifact generation.
"""
import logging
from typing import List

from models.db_models import LLMInteractionModel
from models.llm_interaction import Attempt
from services.database import get_async_session

logger = logging.getLogger(__name__)


class InteractionRecorder:
    """Append-only sink for Attempt records."""

    async def record(self, attempt: Attempt) -> None:
        raise NotImplementedError


class LoggingInteractionRecorder(InteractionRecorder):
    """Writes a one-line summary of each attempt to the log."""

    async def record(self, attempt: Attempt) -> None:
        logger.info(
            f"LLM interaction: request_id={attempt.request_id}, "
            f"attempt={attempt.attempt_number}, stage={attempt.stage.value}, "
            f"retry_index={attempt.retry_index}, repair={attempt.is_repair_attempt}, "
            f"is_valid={attempt.is_valid}, is_final={attempt.is_final}, "
            f"error_code={attempt.error_code}"
        )


class InMemoryInteractionRecorder(InteractionRecorder):
    """Keeps attempts in order of recording."""

    def __init__(self):
        self.attempts: List[Attempt] = []

    async def record(self, attempt: Attempt) -> None:
        self.attempts.append(attempt)


class DatabaseInteractionRecorder(InteractionRecorder):
    """Inserts one llm_interactions row per attempt, each in its own transaction."""

    async def record(self, attempt: Attempt) -> None:
        row = LLMInteractionModel.from_attempt(attempt)
        async with get_async_session() as session:
            session.add(row)
            await session.commit()

        logger.debug(
            f"Persisted LLM interaction: request_id={attempt.request_id}, "
            f"attempt={attempt.attempt_number}, stage={attempt.stage.value}"
        )


async def record_safely(recorder: InteractionRecorder, attempt: Attempt) -> None:
    """Record an attempt, logging and swallowing any recorder failure."""
    try:
        await recorder.record(attempt)
    except Exception as e:
        logger.error(
            f"Failed to record LLM interaction: request_id={attempt.request_id}, "
            f"attempt={attempt.attempt_number}, error={str(e)}",
            exc_info=True
        )
