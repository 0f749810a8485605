"""
JSON Path Utilities

One walker shared by every component that addresses values inside an untyped
JSON document or nodes inside a JSON Schema:

- enum normalization walks schema-derived paths (with array wildcards) over
  the model output
- the targeted second normalization pass walks concrete validator instance
  paths (``/tasks/3/category``)
- error enrichment resolves the same instance paths against the schema to
  list the allowed enum values

Keeping a single implementation guarantees the three always agree on path
semantics.
"""

from typing import Any, Iterator, List, NamedTuple, Optional, Sequence, Tuple, Union

from models.schema_paths import PathPart, PathStep, StepKind, format_path

__all__ = [
    "Match",
    "format_path",
    "iter_matches",
    "parse_instance_path",
    "resolve_schema_node",
    "steps_from_parts",
    "to_instance_path",
]


class Match(NamedTuple):
    """A value found by the walker together with the slot that holds it."""
    container: Union[dict, list]
    slot: Union[str, int]
    value: Any
    concrete_path: Tuple[PathPart, ...]


def steps_from_parts(parts: Sequence[PathPart]) -> Tuple[PathStep, ...]:
    """Convert concrete path parts (str keys, int indices) into steps."""
    return tuple(
        PathStep.of_index(part) if isinstance(part, int) else PathStep.of_key(str(part))
        for part in parts
    )


def parse_instance_path(instance_path: str) -> Tuple[PathStep, ...]:
    """
    Parse a ``/``-delimited instance path into steps.

    All-digit segments become index steps; every other segment is an object
    key. JSON Pointer escapes (``~1`` and ``~0``) are decoded.

    Args:
        instance_path: Path such as ``/artifacts/tasks/3/category``

    Returns:
        Tuple of PathStep (empty for the document root)
    """
    steps: List[PathStep] = []
    for raw in instance_path.split("/"):
        if not raw:
            continue
        segment = raw.replace("~1", "/").replace("~0", "~")
        if segment.isdigit():
            steps.append(PathStep.of_index(int(segment)))
        else:
            steps.append(PathStep.of_key(segment))
    return tuple(steps)


def to_instance_path(parts: Sequence[PathPart]) -> str:
    """Render concrete parts as a ``/``-delimited instance path."""
    escaped = [str(part).replace("~", "~0").replace("/", "~1") for part in parts]
    return "/" + "/".join(escaped) if escaped else ""


def iter_matches(document: Any, steps: Sequence[PathStep]) -> Iterator[Match]:
    """
    Yield every value in ``document`` addressed by ``steps``.

    Key steps descend into objects, index steps into one array position and
    wildcard steps into every element of an array. Several wildcards in one
    path are each expanded independently (full Cartesian walk). Branches
    where the document does not have the expected shape are skipped.

    The root itself is never yielded, so an empty path yields nothing.
    """
    yield from _walk(document, tuple(steps), None, None, ())


def _walk(
    node: Any,
    steps: Tuple[PathStep, ...],
    container: Optional[Union[dict, list]],
    slot: Optional[Union[str, int]],
    trail: Tuple[PathPart, ...],
) -> Iterator[Match]:
    if not steps:
        if container is not None:
            yield Match(container, slot, node, trail)
        return

    step, rest = steps[0], steps[1:]

    if step.kind == StepKind.array:
        if isinstance(node, list):
            # Materialize positions first; callers may replace leaf values.
            for position in range(len(node)):
                yield from _walk(node[position], rest, node, position, trail + (position,))
        return

    if step.kind == StepKind.index:
        if isinstance(node, list):
            if 0 <= step.index < len(node):
                yield from _walk(node[step.index], rest, node, step.index, trail + (step.index,))
            return
        # Digit-only object keys arrive as index steps from instance paths
        key = str(step.index)
    else:
        key = step.key

    if isinstance(node, dict) and key in node:
        yield from _walk(node[key], rest, node, key, trail + (key,))


def resolve_schema_node(schema: Any, steps: Sequence[PathStep]) -> Optional[dict]:
    """
    Navigate a JSON Schema along ``steps`` and return the addressed node.

    Key steps follow ``properties``; index and wildcard steps follow
    ``items``. A digit-only index step falls back to ``properties`` when the
    node declares no ``items`` (object keys that look like numbers).

    Returns:
        The schema node, or None when the path leaves the schema
    """
    node = schema
    for step in steps:
        if not isinstance(node, dict):
            return None

        properties = node.get("properties")
        items = node.get("items")

        if step.is_array_step and isinstance(items, dict):
            node = items
            continue

        key = step.key if step.kind == StepKind.key else (
            str(step.index) if step.kind == StepKind.index else None
        )
        if key is not None and isinstance(properties, dict) and key in properties:
            node = properties[key]
            continue

        return None

    return node if isinstance(node, dict) else None
