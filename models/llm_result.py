"""Result and error models returned by the artifact engine.

Every call to the engine produces exactly one ProcessTranscriptResult holding
either the validated artifact or a single structured error.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class LLMErrorCode(str, Enum):
    """Error codes surfaced to callers of the engine."""
    MISSING_SYSTEM_PROMPT = "MISSING_SYSTEM_PROMPT"
    MISSING_OUTPUT_SCHEMA = "MISSING_OUTPUT_SCHEMA"
    MISSING_TRANSCRIPT = "MISSING_TRANSCRIPT"
    API_ERROR = "API_ERROR"
    INVALID_AUTH = "INVALID_AUTH"
    INVALID_RESPONSE = "INVALID_RESPONSE"
    REPAIR_FAILED = "REPAIR_FAILED"
    SCHEMA_VALIDATION_FAILED = "SCHEMA_VALIDATION_FAILED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


LLM_ERROR_MESSAGES: Dict[LLMErrorCode, str] = {
    LLMErrorCode.MISSING_SYSTEM_PROMPT: "System prompt is required",
    LLMErrorCode.MISSING_OUTPUT_SCHEMA: "Output schema is required",
    LLMErrorCode.MISSING_TRANSCRIPT: "Transcript is required",
    LLMErrorCode.API_ERROR: "OpenAI API error",
    LLMErrorCode.INVALID_AUTH: "Invalid OpenAI API credentials. Check OPENAI_API_KEY",
    LLMErrorCode.INVALID_RESPONSE: "OpenAI returned invalid response",
    LLMErrorCode.REPAIR_FAILED: "Failed to repair invalid JSON response",
    LLMErrorCode.SCHEMA_VALIDATION_FAILED: "Response does not match output schema",
    LLMErrorCode.INTERNAL_ERROR: "Failed to process transcript",
}

PRECONDITION_ERROR_CODES = frozenset({
    LLMErrorCode.MISSING_SYSTEM_PROMPT,
    LLMErrorCode.MISSING_OUTPUT_SCHEMA,
    LLMErrorCode.MISSING_TRANSCRIPT,
})


class LLMError(BaseModel):
    """Structured error returned instead of an artifact."""
    code: LLMErrorCode = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Extra diagnostic context, e.g. validationErrors or originalError"
    )


class ProcessTranscriptResult(BaseModel):
    """Either the validated artifact (``data``) or an ``error``, never both."""
    data: Optional[Dict[str, Any]] = None
    error: Optional[LLMError] = None

    @property
    def is_success(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, data: Dict[str, Any]) -> "ProcessTranscriptResult":
        return cls(data=data)

    @classmethod
    def failure(
        cls,
        code: LLMErrorCode,
        details: Optional[Dict[str, Any]] = None,
        message: Optional[str] = None,
    ) -> "ProcessTranscriptResult":
        return cls(
            error=LLMError(
                code=code,
                message=message or LLM_ERROR_MESSAGES[code],
                details=details,
            )
        )


@dataclass(frozen=True)
class ValidationOutcome:
    """Result of one normalization + strict validation pass."""
    valid: bool
    data: Optional[Dict[str, Any]] = None
    errors: List[str] = field(default_factory=list)
