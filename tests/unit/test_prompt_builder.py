"""
Unit Tests for prompt construction
"""

import json

from models.transcript_request import MeetingMetadata
from services.prompt_builder import (
    JSON_REPAIR_DIRECTIVE,
    build_json_repair_prompt,
    build_schema_repair_prompt,
    build_user_prompt,
)


class TestBuildUserPrompt:
    """Tests for the initial prompt."""

    def test_embeds_segments_verbatim(self, transcript_request):
        prompt = build_user_prompt(
            transcript_request.transcript_segments,
            transcript_request.meeting_metadata,
            transcript_request.output_schema,
        )

        assert prompt.startswith("Transcript Segments:\n[")
        segments_json = prompt.split("Transcript Segments:\n", 1)[1].split("\n\nNote:", 1)[0]
        assert json.loads(segments_json)[1] == {
            "start": 4.2,
            "end": 9.8,
            "speaker": 1,
            "text": "We need two more demos this week.",
        }

    def test_metadata_block(self, transcript_request):
        prompt = build_user_prompt(
            transcript_request.transcript_segments,
            transcript_request.meeting_metadata,
            transcript_request.output_schema,
        )

        assert "- Client: Acme" in prompt
        assert "- Meeting Type: Weekly sync" in prompt
        assert "- Scenario: Sales review" in prompt
        assert "- Participants: Jane Doe (CEO) from Acme" in prompt

    def test_no_participants(self, transcript_request):
        prompt = build_user_prompt(
            transcript_request.transcript_segments,
            MeetingMetadata(client_name="Acme"),
            transcript_request.output_schema,
        )

        assert "- Participants: None" in prompt

    def test_client_context_is_optional(self, transcript_request):
        args = (
            transcript_request.transcript_segments,
            transcript_request.meeting_metadata,
            transcript_request.output_schema,
        )

        assert "Client Context:" not in build_user_prompt(*args)
        assert "Client Context:\nLong-time customer\n" in build_user_prompt(
            *args, client_context_summary="Long-time customer"
        )

    def test_schema_directives(self, transcript_request, tasks_schema):
        prompt = build_user_prompt(
            transcript_request.transcript_segments,
            transcript_request.meeting_metadata,
            tasks_schema,
        )

        assert "CRITICAL: Array Format Rules (MUST FOLLOW):" in prompt
        assert "- artifacts.tasks[].tags: array of strings" in prompt
        assert "CRITICAL: Enum Values (MUST match exactly):" in prompt
        assert (
            '- artifacts.tasks[].category: MUST be one of: "sales", "support", "management", "other"'
            in prompt
        )
        assert '- artifacts.priority: MUST be one of: "low", "medium", "high"' in prompt
        assert prompt.index("Array Format Rules") < prompt.index("Enum Values")

    def test_no_directives_for_plain_schema(self, transcript_request):
        prompt = build_user_prompt(
            transcript_request.transcript_segments,
            transcript_request.meeting_metadata,
            {"type": "object", "properties": {"summary": {"type": "string"}}},
        )

        assert "Array Format Rules" not in prompt
        assert "Enum Values" not in prompt
        assert "- Follow the output_schema exactly\n\nREMEMBER:" in prompt

    def test_deterministic(self, transcript_request, tasks_schema):
        args = (
            transcript_request.transcript_segments,
            transcript_request.meeting_metadata,
            tasks_schema,
            "context",
        )

        assert build_user_prompt(*args) == build_user_prompt(*args)


class TestRepairPrompts:
    """Tests for the JSON-repair and schema-repair prompts."""

    def test_json_repair_appends_directive(self):
        assert build_json_repair_prompt("PROMPT") == f"PROMPT\n\n{JSON_REPAIR_DIRECTIVE}"

    def test_schema_repair_lists_errors(self):
        errors = [
            "/category: must be equal to one of the allowed values Allowed values: sales, other",
            "#/required: must have required property 'summary'",
        ]

        prompt = build_schema_repair_prompt("PROMPT", errors)

        assert prompt.startswith("PROMPT\n\nVALIDATION ERRORS DETECTED - YOU MUST FIX THEM:\n\n")
        assert "Field /category: sales, other\n" in prompt
        assert "#/required: must have required property 'summary'\n" in prompt
        assert "1. For enum fields, you MUST use EXACTLY one of the allowed values listed above" in prompt
        assert prompt.endswith("Fix ALL errors and return the corrected JSON object.")

    def test_schema_repair_without_errors(self):
        assert "Unknown validation error" in build_schema_repair_prompt("PROMPT", [])
