"""Schema introspection for prompt hints and enum normalization.

Walks an arbitrary JSON Schema and collects the addresses of enumerated
fields and of string-array fields. Results are in descent order so that
prompts and normalization logs are reproducible for the same schema.
"""
from typing import Any, List, Tuple

from models.schema_paths import ARRAY_WILDCARD, EnumPath, PathStep, format_path


# Schemas describing model output are finite trees; anything deeper than this
# is treated as self-referential.
MAX_SCHEMA_DEPTH = 50


class SchemaTooDeepError(ValueError):
    """Raised when schema nesting exceeds MAX_SCHEMA_DEPTH."""
    code = "SCHEMA_TOO_DEEP"

    def __init__(self, depth: int, path: str):
        self.depth = depth
        self.path = path
        super().__init__(
            f"SCHEMA_TOO_DEEP: schema nesting exceeds {depth} levels at '{path or '<root>'}'"
        )


def _declares_type(node: dict, type_name: str) -> bool:
    declared = node.get("type")
    if isinstance(declared, list):
        return type_name in declared
    return declared == type_name


def _array_items(node: dict) -> Any:
    """Return the item schema of an array node, or None."""
    items = node.get("items")
    if not isinstance(items, dict):
        return None
    if "type" in node and not _declares_type(node, "array"):
        return None
    return items


def _check_depth(depth: int, max_depth: int, steps: Tuple[PathStep, ...]) -> None:
    if depth > max_depth:
        raise SchemaTooDeepError(max_depth, format_path(steps))


def find_enum_paths(schema: Any, max_depth: int = MAX_SCHEMA_DEPTH) -> List[EnumPath]:
    """
    Collect every schema node carrying a non-empty list of string enum values.

    ``properties`` extend the path with the property name; array ``items``
    extend it with the array wildcard. Non-string enum members are ignored
    and the schema root itself is never reported.

    Args:
        schema: JSON Schema (read-only)
        max_depth: Recursion ceiling

    Returns:
        EnumPath list in descent order

    Raises:
        SchemaTooDeepError: If nesting exceeds max_depth
    """
    result: List[EnumPath] = []
    _collect_enum_paths(schema, (), result, 0, max_depth)
    return result


def _collect_enum_paths(
    node: Any,
    steps: Tuple[PathStep, ...],
    result: List[EnumPath],
    depth: int,
    max_depth: int,
) -> None:
    if not isinstance(node, dict):
        return
    _check_depth(depth, max_depth, steps)

    enum = node.get("enum")
    if isinstance(enum, list) and steps:
        allowed: List[str] = []
        for value in enum:
            if isinstance(value, str) and value not in allowed:
                allowed.append(value)
        if allowed:
            result.append(EnumPath(path=steps, allowed_values=tuple(allowed)))

    properties = node.get("properties")
    if isinstance(properties, dict):
        for key, child in properties.items():
            _collect_enum_paths(child, steps + (PathStep.of_key(key),), result, depth + 1, max_depth)

    items = _array_items(node)
    if items is not None:
        _collect_enum_paths(items, steps + (ARRAY_WILDCARD,), result, depth + 1, max_depth)


def find_string_array_paths(schema: Any, max_depth: int = MAX_SCHEMA_DEPTH) -> List[str]:
    """
    Collect dotted paths of every ``array`` field whose items are strings.

    Arrays of objects do not qualify themselves but are still descended into,
    so string arrays nested inside them are reported as ``parent[].field``.

    Raises:
        SchemaTooDeepError: If nesting exceeds max_depth
    """
    result: List[str] = []
    _collect_string_arrays(schema, (), result, 0, max_depth)
    return result


def _collect_string_arrays(
    node: Any,
    steps: Tuple[PathStep, ...],
    result: List[str],
    depth: int,
    max_depth: int,
) -> None:
    if not isinstance(node, dict):
        return
    _check_depth(depth, max_depth, steps)

    items = _array_items(node)
    if items is not None:
        if _declares_type(items, "string"):
            if steps:
                result.append(format_path(steps))
        else:
            _collect_string_arrays(items, steps + (ARRAY_WILDCARD,), result, depth + 1, max_depth)

    properties = node.get("properties")
    if isinstance(properties, dict):
        for key, child in properties.items():
            _collect_string_arrays(child, steps + (PathStep.of_key(key),), result, depth + 1, max_depth)
