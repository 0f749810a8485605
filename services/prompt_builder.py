"""
Prompt Builder

Builds the user prompts sent to the model: the initial transcript prompt with
schema-derived format directives, and the two repair prompts that re-ask the
model after unparseable or schema-invalid output.
"""

import json
import re
from typing import Any, Dict, List, Optional, Sequence

from models.schema_paths import EnumPath
from models.transcript_request import MeetingMetadata, TranscriptSegment
from services.schema_introspector import find_enum_paths, find_string_array_paths

JSON_REPAIR_DIRECTIVE = (
    "IMPORTANT: Return valid JSON only. No markdown, no code blocks, no explanations. "
    "Just the JSON object."
)

_ALLOWED_VALUES_ERROR = re.compile(r"^([^:]+):.*Allowed values: (.+)$")


def _format_segments(segments: Sequence[TranscriptSegment]) -> str:
    payload = [segment.model_dump(exclude_none=True) for segment in segments]
    return json.dumps(payload, indent=2, ensure_ascii=False)


def _format_metadata(metadata: MeetingMetadata) -> str:
    participants = ", ".join(p.display_name() for p in metadata.participants)
    return "\n".join([
        "Meeting Metadata:",
        f"- Client: {metadata.client_name}",
        f"- Meeting Type: {metadata.meeting_type_name}",
        f"- Scenario: {metadata.scenario_name}",
        f"- Participants: {participants or 'None'}",
    ])


def _array_instructions(string_array_paths: Sequence[str]) -> str:
    if not string_array_paths:
        return ""
    lines = [
        "",
        "CRITICAL: Array Format Rules (MUST FOLLOW):",
        "- ALL arrays that expect strings MUST contain ONLY plain strings, never objects or null",
        "- Examples:",
        '  CORRECT: "field": ["value1", "value2"]',
        '  WRONG: "field": [{"name": "value1"}, null, "value2"]',
        "",
        "String Array Fields (all must be string arrays):",
    ]
    lines.extend(f"- {path}: array of strings" for path in string_array_paths)
    return "\n".join(lines)


def _enum_instructions(enum_paths: Sequence[EnumPath]) -> str:
    if not enum_paths:
        return ""
    lines = ["", "CRITICAL: Enum Values (MUST match exactly):"]
    for enum_path in enum_paths:
        values = ", ".join(f'"{value}"' for value in enum_path.allowed_values)
        lines.append(f"- {enum_path.dotted}: MUST be one of: {values}")
    return "\n".join(lines)


def build_user_prompt(
    segments: Sequence[TranscriptSegment],
    meeting_metadata: MeetingMetadata,
    output_schema: Dict[str, Any],
    client_context_summary: Optional[str] = None,
) -> str:
    """
    Build the initial user prompt for a transcript.

    The prompt embeds the transcript segments verbatim, the meeting metadata,
    the optional client context, one directive per string-array field and one
    directive per enum field listing its exact allowed values. The output is
    deterministic for identical inputs.

    Args:
        segments: Transcript segments in order
        meeting_metadata: Client, meeting type, scenario and participants
        output_schema: Schema the artifact must conform to
        client_context_summary: Optional prior knowledge about the client

    Returns:
        The prompt text

    Raises:
        SchemaTooDeepError: If the schema nesting exceeds the depth ceiling
    """
    array_instructions = _array_instructions(find_string_array_paths(output_schema))
    enum_instructions = _enum_instructions(find_enum_paths(output_schema))
    client_context = f"Client Context:\n{client_context_summary}\n" if client_context_summary else ""

    return (
        "Transcript Segments:\n"
        f"{_format_segments(segments)}\n"
        "\n"
        "Note: The transcript text is available in the 'text' field of each segment. "
        "Use segments[].text to access the full transcript content.\n"
        "\n"
        f"{_format_metadata(meeting_metadata)}\n"
        "\n"
        f"{client_context}\n"
        "INSTRUCTIONS:\n"
        "- Return JSON only; no markdown; no prose outside JSON\n"
        f"- Follow the output_schema exactly{array_instructions}{enum_instructions}\n"
        "\n"
        "REMEMBER:\n"
        "- Arrays = simple string lists, NOT objects\n"
        "- If a field is missing or unknown, use empty array [] or null string, NOT null in arrays\n"
        "- Enum values must match exactly (case-sensitive)"
    )


def build_json_repair_prompt(user_prompt: str) -> str:
    """Re-ask for the same artifact after the model returned unparseable text."""
    return f"{user_prompt}\n\n{JSON_REPAIR_DIRECTIVE}"


def _format_repair_error(error: str) -> str:
    # Enum errors are shortened to "Field <path>: <allowed values>"
    match = _ALLOWED_VALUES_ERROR.match(error)
    if match:
        return f"Field {match.group(1)}: {match.group(2)}"
    return error


def build_schema_repair_prompt(user_prompt: str, validation_errors: List[str]) -> str:
    """
    Re-ask for the artifact with the validation errors of the previous answer.

    Args:
        user_prompt: The original user prompt
        validation_errors: Detailed errors, enum errors carrying their allowed values

    Returns:
        The original prompt followed by the error block and repair instructions
    """
    error_details = "\n".join(_format_repair_error(error) for error in validation_errors)
    if not error_details:
        error_details = "Unknown validation error"

    return (
        f"{user_prompt}\n\n"
        "VALIDATION ERRORS DETECTED - YOU MUST FIX THEM:\n\n"
        f"{error_details}\n\n"
        "CRITICAL INSTRUCTIONS:\n"
        "1. For enum fields, you MUST use EXACTLY one of the allowed values listed above\n"
        "2. Values are case-sensitive - use lowercase exactly as shown\n"
        "3. No extra spaces, no variations, no synonyms\n"
        "4. If a value is not in the allowed list, choose the closest match from the allowed values\n"
        "5. Follow the output_schema structure precisely\n"
        "6. Return ONLY valid JSON - no markdown, no code blocks, no explanations, no comments\n\n"
        "Fix ALL errors and return the corrected JSON object."
    )
