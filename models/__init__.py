"""Data models for the transcript artifact service."""
from .transcript_request import (
    TranscriptSegment,
    MeetingParticipant,
    MeetingMetadata,
    ProcessTranscriptRequest,
)
from .llm_result import (
    LLMErrorCode,
    LLMError,
    ProcessTranscriptResult,
    ValidationOutcome,
)
from .llm_interaction import (
    Attempt,
    AttemptStage,
    CallContext,
    TransportResponse,
)
from .schema_paths import EnumPath, PathStep, StepKind
from .db_models import LLMInteractionModel

__all__ = [
    # Request models
    "TranscriptSegment",
    "MeetingParticipant",
    "MeetingMetadata",
    "ProcessTranscriptRequest",
    # Results
    "LLMErrorCode",
    "LLMError",
    "ProcessTranscriptResult",
    "ValidationOutcome",
    # Interaction log
    "Attempt",
    "AttemptStage",
    "CallContext",
    "TransportResponse",
    # Schema paths
    "EnumPath",
    "PathStep",
    "StepKind",
    # Database models
    "LLMInteractionModel",
]
