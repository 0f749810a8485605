"""Soft validation of enumerated fields.

Before strict schema validation, every string found at a known enum path is
rewritten to the closest allowed value, so that harmless case, spacing and
synonym variance from the model does not fail validation. Only genuinely
unrecoverable values are left for the validator to report.

Matching is an ordered list of matcher functions tried on a trimmed,
lower-cased copy of the candidate; the first matcher returning a value wins.
The synonym table can be extended without touching the control flow.
"""
import logging
import re
from typing import Any, Callable, Dict, Iterable, Optional, Sequence, Tuple

from models.schema_paths import EnumPath
from utils.json_paths import iter_matches, parse_instance_path, resolve_schema_node

logger = logging.getLogger(__name__)

OTHER_VALUE = "other"

Matcher = Callable[[str, Sequence[str]], Optional[str]]

# Known synonyms (including Russian terms) mapped to candidate enum values,
# tried in order; the first candidate present in the allowed set wins.
SYNONYM_TABLE: Dict[str, Tuple[str, ...]] = {
    "marketing": ("sales", "other"),
    "маркетинг": ("sales", "other"),
    "training": ("other", "support"),
    "обучение": ("other", "support"),
    "тренинг": ("other", "support"),
    "development": ("production", "other"),
    "разработка": ("production", "other"),
    "dev": ("production", "other"),
    "hr": ("management", "other"),
    "hr-отдел": ("management", "other"),
    "кадры": ("management", "other"),
    "finance": ("management", "analytics"),
    "финансы": ("management", "analytics"),
    "accounting": ("management", "analytics"),
    "бухгалтерия": ("management", "analytics"),
    "legal": ("management", "other"),
    "юридический": ("management", "other"),
    "адвокат": ("management", "other"),
    "продажи": ("sales",),
    "сервис": ("service",),
    "производство": ("production",),
    "поддержка": ("support",),
    "управление": ("management",),
    "аналитика": ("analytics",),
    "интеграция": ("integration",),
    "другое": ("other",),
}

_SEPARATORS = re.compile(r"[\s_-]")


def match_exact(candidate: str, allowed_values: Sequence[str]) -> Optional[str]:
    """Case-insensitive equality."""
    for allowed in allowed_values:
        if allowed.lower() == candidate:
            return allowed
    return None


def match_compact(candidate: str, allowed_values: Sequence[str]) -> Optional[str]:
    """Equality after removing spaces, hyphens and underscores."""
    compact = _SEPARATORS.sub("", candidate)
    for allowed in allowed_values:
        if _SEPARATORS.sub("", allowed.lower()) == compact:
            return allowed
    return None


def match_synonym(candidate: str, allowed_values: Sequence[str]) -> Optional[str]:
    """Lookup in SYNONYM_TABLE."""
    for target in SYNONYM_TABLE.get(candidate, ()):
        for allowed in allowed_values:
            if allowed == target:
                return allowed
    return None


def match_substring(candidate: str, allowed_values: Sequence[str]) -> Optional[str]:
    """Candidate contains an allowed value, or an allowed value contains it."""
    if not candidate:
        return None
    for allowed in allowed_values:
        allowed_lower = allowed.lower()
        if allowed_lower and (allowed_lower in candidate or candidate in allowed_lower):
            return allowed
    return None


DEFAULT_MATCHERS: Tuple[Matcher, ...] = (
    match_exact,
    match_compact,
    match_synonym,
    match_substring,
)


def normalize_enum_value(
    value: Any,
    allowed_values: Sequence[str],
    fallback_to_other: bool = True,
    matchers: Iterable[Matcher] = DEFAULT_MATCHERS,
) -> Optional[str]:
    """
    Map a model-produced value onto one of the allowed enum values.

    Args:
        value: Value found in the model output
        allowed_values: Allowed values from the schema
        fallback_to_other: Use the literal "other" when nothing matches and
            the schema allows it
        matchers: Ordered matcher functions

    Returns:
        The allowed value to use, or None when the value cannot be mapped
        (non-strings included)
    """
    if not isinstance(value, str):
        return None
    if value in allowed_values:
        return value

    candidate = value.strip().lower()
    for matcher in matchers:
        matched = matcher(candidate, allowed_values)
        if matched is not None:
            return matched

    if fallback_to_other and OTHER_VALUE in allowed_values:
        return OTHER_VALUE
    return None


def normalize_enum_values(
    document: Any,
    enum_paths: Sequence[EnumPath],
    fallback_to_other: bool = True,
) -> int:
    """
    Rewrite in place every string at the given enum paths to its closest allowed value.

    Array wildcards in a path are expanded over every element; unmatched
    strings are left untouched for the validator to report.

    Returns:
        Number of values changed
    """
    changed = 0
    for enum_path in enum_paths:
        for match in iter_matches(document, enum_path.path):
            if not isinstance(match.value, str):
                continue
            normalized = normalize_enum_value(
                match.value, enum_path.allowed_values, fallback_to_other
            )
            if normalized is None or normalized == match.value:
                continue
            match.container[match.slot] = normalized
            changed += 1
            logger.info(
                f"[Enum Normalization] {enum_path.dotted} {list(match.concrete_path)}: "
                f"\"{match.value}\" -> \"{normalized}\""
            )
    return changed


def normalize_instance_paths(document: Any, schema: Any, instance_paths: Iterable[str]) -> int:
    """
    Targeted pass over concrete validator instance paths (``/tasks/3/category``).

    Allowed values are re-derived from the schema node at each path. This
    pass always falls back to "other" when the schema allows it.

    Returns:
        Number of values changed
    """
    changed = 0
    for instance_path in instance_paths:
        steps = parse_instance_path(instance_path)
        node = resolve_schema_node(schema, steps)
        if node is None or not isinstance(node.get("enum"), list):
            continue
        allowed_values = [value for value in node["enum"] if isinstance(value, str)]
        if not allowed_values:
            continue

        for match in iter_matches(document, steps):
            normalized = normalize_enum_value(match.value, allowed_values, fallback_to_other=True)
            if normalized is None or normalized == match.value:
                continue
            match.container[match.slot] = normalized
            changed += 1
            logger.info(
                f"[Enum Normalization] {instance_path}: \"{match.value}\" -> \"{normalized}\""
            )
    return changed
