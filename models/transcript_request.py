"""
Transcript Processing Request Models

This module defines the Pydantic models for the structured-artifact request:
transcript segments, meeting metadata and the scenario-specific system prompt
and output schema.

Fields that the engine checks itself (system prompt, output schema, segments)
are deliberately optional here so that missing values are reported with the
dedicated engine error codes instead of a generic validation error.
"""

from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class TranscriptSegment(BaseModel):
    """
    A single timed segment of a diarized transcript.

    Attributes:
        start: Segment start time in seconds
        end: Segment end time in seconds
        speaker: Optional speaker label or diarization index
        text: Spoken text of the segment
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    start: float = Field(..., description="Segment start time in seconds")
    end: float = Field(..., description="Segment end time in seconds")
    speaker: Optional[Union[int, str]] = Field(
        default=None,
        description="Speaker label or diarization index, if known"
    )
    text: Optional[str] = Field(default=None, description="Spoken text of the segment, null when nothing was recognized")


class MeetingParticipant(BaseModel):
    """Snapshot of a participant as recorded at meeting time."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    full_name: str
    role_title: Optional[str] = None
    company_name: Optional[str] = None
    department: Optional[str] = None

    def display_name(self) -> str:
        """Render as ``Name (Role) from Company``."""
        parts = [self.full_name]
        if self.role_title:
            parts.append(f"({self.role_title})")
        if self.company_name:
            parts.append(f"from {self.company_name}")
        return " ".join(parts)


class MeetingMetadata(BaseModel):
    """Meeting context passed to the model alongside the transcript."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    client_name: str = ""
    meeting_type_name: str = ""
    scenario_name: str = ""
    participants: List[MeetingParticipant] = Field(default_factory=list)


class ProcessTranscriptRequest(BaseModel):
    """
    Request to turn a transcript into a schema-conforming JSON artifact.

    Attributes:
        transcript_segments: Ordered transcript segments (at least one with text)
        system_prompt: Scenario system prompt (must not be blank)
        output_schema: JSON Schema the artifact must conform to
        meeting_metadata: Client, meeting type, scenario and participants
        client_context_summary: Optional prior knowledge about the client
        request_id: Correlates recorded attempts for auditing
        language: Transcript language code, informational only
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    transcript_segments: List[TranscriptSegment] = Field(default_factory=list)
    system_prompt: Optional[str] = None
    output_schema: Optional[Dict[str, Any]] = None
    meeting_metadata: MeetingMetadata = Field(default_factory=MeetingMetadata)
    client_context_summary: Optional[str] = None
    request_id: Optional[str] = None
    language: Optional[str] = None
