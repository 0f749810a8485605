"""Extraction of a JSON value from free-form model text."""
import json
import logging
import re
from typing import Any, Optional

logger = logging.getLogger(__name__)

_FENCED_BLOCK = re.compile(r"```(?:json|JSON)?[ \t]*\r?\n?([\s\S]*?)\s*```")


def _try_parse(text: str) -> Optional[Any]:
    try:
        return json.loads(text)
    except (ValueError, TypeError, RecursionError):
        return None


def extract_json(response_text: Optional[str]) -> Optional[Any]:
    """
    Parse the JSON value contained in a model response.

    Three strategies are tried in order, each only if the previous failed:
    1. Parse the whole text.
    2. Parse the content of the first fenced code block (optional json tag).
    3. Parse the substring from the first ``{`` to the last ``}``.

    Parse failures are never propagated.

    Args:
        response_text: Raw text returned by the model

    Returns:
        The parsed value, or None if no strategy succeeded
    """
    if not response_text:
        return None

    parsed = _try_parse(response_text)
    if parsed is not None:
        return parsed

    fenced = _FENCED_BLOCK.search(response_text)
    if fenced:
        parsed = _try_parse(fenced.group(1))
        if parsed is not None:
            logger.debug("Extracted JSON from fenced code block")
            return parsed

    start = response_text.find("{")
    end = response_text.rfind("}")
    if start != -1 and end > start:
        parsed = _try_parse(response_text[start:end + 1])
        if parsed is not None:
            logger.debug("Extracted JSON object embedded in surrounding text")
            return parsed

    return None
