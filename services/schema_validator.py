"""
Schema Validator

Strict draft-07 validation of model output after enum normalization.
Errors are reported as ``<instance path>: <message>`` strings whose messages
follow the wording model prompts and stored audit logs already use
(``must be equal to one of the allowed values`` etc.), enriched with the
allowed enum values so the repair prompt can quote them.
"""

import copy
import json
import logging
import re
from typing import Any, Dict, Iterable, List

from jsonschema import Draft7Validator
from jsonschema.exceptions import ValidationError

from models.llm_result import ValidationOutcome
from services.enum_normalizer import normalize_enum_values, normalize_instance_paths
from services.schema_introspector import find_enum_paths
from utils.json_paths import parse_instance_path, resolve_schema_node, to_instance_path

logger = logging.getLogger(__name__)

ENUM_ERROR_MESSAGE = "must be equal to one of the allowed values"

_REQUIRED_PROPERTY = re.compile(r"^'(.+)' is a required property$")
_ERROR_PATH = re.compile(r"^([^:]+):")


def _type_names(expected: Any) -> str:
    if isinstance(expected, list):
        return ",".join(str(name) for name in expected)
    return str(expected)


def _format_message(error: ValidationError) -> str:
    """Render a jsonschema error with the message wording of the error catalogue."""
    keyword = error.validator
    expected = error.validator_value

    if keyword == "enum":
        return ENUM_ERROR_MESSAGE
    if keyword == "required":
        match = _REQUIRED_PROPERTY.match(error.message)
        missing = match.group(1) if match else error.message
        return f"must have required property '{missing}'"
    if keyword == "type":
        return f"must be {_type_names(expected)}"
    if keyword == "additionalProperties":
        return "must NOT have additional properties"
    if keyword == "const":
        return "must be equal to constant"
    if keyword == "minItems":
        return f"must NOT have fewer than {expected} items"
    if keyword == "maxItems":
        return f"must NOT have more than {expected} items"
    if keyword == "minLength":
        return f"must NOT have fewer than {expected} characters"
    if keyword == "maxLength":
        return f"must NOT have more than {expected} characters"
    if keyword == "pattern":
        return f'must match pattern "{expected}"'
    if keyword == "minimum":
        return f"must be >= {expected}"
    if keyword == "maximum":
        return f"must be <= {expected}"
    return error.message


def _error_path(error: ValidationError) -> str:
    instance_path = to_instance_path(list(error.absolute_path))
    if instance_path:
        return instance_path
    return "#/" + "/".join(str(part) for part in error.absolute_schema_path)


def format_validation_errors(errors: Iterable[ValidationError]) -> List[str]:
    """Format jsonschema errors as ``<path>: <message>`` strings."""
    return [f"{_error_path(error)}: {_format_message(error)}" for error in errors]


def _format_enum_value(value: Any) -> str:
    # Non-string members are rendered as JSON
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def build_detailed_validation_errors(errors: List[str], schema: Any) -> List[str]:
    """
    Append the allowed values to every enum mismatch error.

    The path prefix of each error is resolved against the schema with the
    same walker the normalizer uses; errors whose node cannot be resolved
    are returned unchanged.

    Args:
        errors: ``<path>: <message>`` strings
        schema: Schema the errors were produced against

    Returns:
        Errors in the same order, enum mismatches suffixed with
        ``Allowed values: a, b, c``
    """
    detailed: List[str] = []
    for error in errors:
        if ENUM_ERROR_MESSAGE in error:
            match = _ERROR_PATH.match(error)
            if match:
                node = resolve_schema_node(schema, parse_instance_path(match.group(1)))
                enum_values = node.get("enum") if node is not None else None
                if isinstance(enum_values, list) and enum_values:
                    allowed = ", ".join(_format_enum_value(value) for value in enum_values)
                    detailed.append(f"{error} Allowed values: {allowed}")
                    continue
        detailed.append(error)
    return detailed


def wrap_root_schema(output_schema: Dict[str, Any]) -> Dict[str, Any]:
    """Default the root to ``type: object``; an explicit root type is kept."""
    return {"type": "object", **output_schema}


def validate_llm_response(
    response: Any,
    output_schema: Any,
    fallback_to_other: bool = True,
) -> ValidationOutcome:
    """
    Normalize enum fields of a model response and validate it against the schema.

    The response is deep-copied first; the caller's value is never mutated.
    Enum values are normalized before the first validation. If enum errors
    remain, a second pass targeted at the failing instance paths runs (always
    falling back to "other") and validation is repeated once.

    Args:
        response: Parsed model output
        output_schema: Caller-supplied JSON Schema
        fallback_to_other: Whether the first pass may fall back to "other"

    Returns:
        ValidationOutcome with the normalized data, or the detailed errors

    Raises:
        SchemaTooDeepError: If the schema nesting exceeds the depth ceiling
    """
    if not isinstance(response, dict):
        return ValidationOutcome(valid=False, errors=["Response must be a JSON object"])
    if not isinstance(output_schema, dict):
        return ValidationOutcome(
            valid=False,
            errors=["Output schema must be a valid JSON schema object"],
        )

    document = copy.deepcopy(response)
    schema = wrap_root_schema(output_schema)

    normalized_count = normalize_enum_values(document, find_enum_paths(schema), fallback_to_other)
    if normalized_count:
        logger.info(f"[Enum Normalization] Normalized {normalized_count} enum value(s) before validation")

    validator = Draft7Validator(schema)
    errors = list(validator.iter_errors(document))

    if errors:
        enum_error_paths = [
            to_instance_path(list(error.absolute_path))
            for error in errors
            if error.validator == "enum" and error.absolute_path
        ]
        if enum_error_paths:
            fixed = normalize_instance_paths(document, schema, enum_error_paths)
            logger.info(
                f"[Enum Normalization] Second pass: enum_errors={len(enum_error_paths)} fixed={fixed}"
            )
            errors = list(validator.iter_errors(document))

    if errors:
        messages = format_validation_errors(errors)
        return ValidationOutcome(valid=False, errors=build_detailed_validation_errors(messages, schema))

    return ValidationOutcome(valid=True, data=document)
