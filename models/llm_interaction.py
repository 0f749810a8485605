"""
LLM Interaction Data Models

This module defines the audit records produced while talking to the model.
Each record is immutable once created and is appended to the interaction log
exactly once; nothing is ever updated after it has been recorded.

Record lifecycle for one request:
    transport attempt(s) for the initial call
    -> evaluation of the extracted output
    -> optional JSON-repair call, schema-repair call (each with its own
       transport attempts and evaluation)
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AttemptStage(str, Enum):
    """What a recorded attempt describes."""
    transport = "transport"
    evaluation = "evaluation"


@dataclass(frozen=True)
class TransportResponse:
    """Raw text returned by the model plus provider usage metadata."""
    text: str
    usage_metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Attempt:
    """
    One append-only entry of the interaction log.

    Attributes:
        attempt_number: Logical call number shared by the initial call and repairs
        is_repair_attempt: True for JSON-repair and schema-repair calls
        stage: transport (one provider call) or evaluation (extraction + validation)
        retry_index: 1-based transport retry within the logical call
        is_final: True only on the evaluation whose output was accepted
        request_metadata: Output schema, meeting metadata and hasClientContext
        error_details: Structured context of a failed transport attempt
        processed_at: When an evaluation finished extraction and validation
    """
    attempt_number: int
    is_repair_attempt: bool
    stage: AttemptStage = AttemptStage.transport
    retry_index: int = 1
    request_id: Optional[str] = None
    system_prompt: Optional[str] = None
    user_prompt: Optional[str] = None
    model: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    raw_response: Optional[str] = None
    extracted_json: Optional[Any] = None
    is_valid: Optional[bool] = None
    validation_errors: Optional[List[str]] = None
    is_final: bool = False
    usage_metadata: Optional[Dict[str, Any]] = None
    error_code: Optional[str] = None
    error_message: Optional[str] = None
    error_details: Optional[Dict[str, Any]] = None
    request_metadata: Optional[Dict[str, Any]] = None
    requested_at: datetime = field(default_factory=_utcnow)
    responded_at: Optional[datetime] = None
    processed_at: Optional[datetime] = None


@dataclass(frozen=True)
class CallContext:
    """Audit fields shared by every attempt of one logical model call."""
    attempt_number: int
    is_repair_attempt: bool
    system_prompt: str
    user_prompt: str
    request_id: Optional[str] = None
    model: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    request_metadata: Optional[Dict[str, Any]] = None

    def to_attempt(self, **fields: Any) -> Attempt:
        """Build an Attempt carrying this context plus the given fields."""
        return Attempt(
            attempt_number=self.attempt_number,
            is_repair_attempt=self.is_repair_attempt,
            request_id=self.request_id,
            system_prompt=self.system_prompt,
            user_prompt=self.user_prompt,
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            request_metadata=self.request_metadata,
            **fields,
        )
