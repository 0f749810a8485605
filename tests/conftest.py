"""Shared fixtures: a scripted model transport and sample requests."""

from typing import Any, List, Tuple

import pytest

from models.llm_interaction import TransportResponse
from models.transcript_request import (
    MeetingMetadata,
    MeetingParticipant,
    ProcessTranscriptRequest,
    TranscriptSegment,
)
from services.openai_transport import ModelTransport


class ScriptedTransport(ModelTransport):
    """Returns scripted texts (or raises scripted exceptions) in order."""

    def __init__(self, script: List[Any]):
        self.script = list(script)
        self.calls: List[Tuple[str, str]] = []
        self.invalidations = 0

    async def call(self, system_prompt: str, user_prompt: str) -> TransportResponse:
        self.calls.append((system_prompt, user_prompt))
        if not self.script:
            raise AssertionError("Transport called more often than scripted")
        item = self.script.pop(0)
        if isinstance(item, BaseException):
            raise item
        return TransportResponse(text=item, usage_metadata={"total_tokens": 42, "model": "test-model"})

    def invalidate(self) -> None:
        self.invalidations += 1


CATEGORY_SCHEMA = {
    "type": "object",
    "properties": {
        "category": {"type": "string", "enum": ["sales", "service", "other"]},
    },
    "required": ["category"],
}

TASKS_SCHEMA = {
    "type": "object",
    "properties": {
        "artifacts": {
            "type": "object",
            "properties": {
                "summary": {"type": "string"},
                "tasks": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "title": {"type": "string"},
                            "category": {
                                "type": "string",
                                "enum": ["sales", "support", "management", "other"],
                            },
                            "tags": {"type": "array", "items": {"type": "string"}},
                        },
                        "required": ["title", "category"],
                    },
                },
                "priority": {"type": "string", "enum": ["low", "medium", "high"]},
            },
            "required": ["summary", "tasks"],
        },
    },
    "required": ["artifacts"],
}


def build_request(**overrides: Any) -> ProcessTranscriptRequest:
    """A valid request; keyword arguments replace individual fields."""
    fields = {
        "transcript_segments": [
            TranscriptSegment(start=0.0, end=4.2, speaker=0, text="Let's review the sales pipeline."),
            TranscriptSegment(start=4.2, end=9.8, speaker=1, text="We need two more demos this week."),
        ],
        "system_prompt": "You extract meeting artifacts.",
        "output_schema": CATEGORY_SCHEMA,
        "meeting_metadata": MeetingMetadata(
            client_name="Acme",
            meeting_type_name="Weekly sync",
            scenario_name="Sales review",
            participants=[
                MeetingParticipant(full_name="Jane Doe", role_title="CEO", company_name="Acme"),
            ],
        ),
        "request_id": "req-123",
    }
    fields.update(overrides)
    return ProcessTranscriptRequest(**fields)


@pytest.fixture
def transcript_request() -> ProcessTranscriptRequest:
    return build_request()


@pytest.fixture
def make_request():
    return build_request


@pytest.fixture
def make_transport():
    return ScriptedTransport


@pytest.fixture
def category_schema():
    return CATEGORY_SCHEMA


@pytest.fixture
def tasks_schema():
    return TASKS_SCHEMA
