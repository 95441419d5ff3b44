"""
Tolerant JSON extraction from completion text.

Models often wrap the JSON they were asked for in prose or markdown
fences.  Both extractors try two strategies in order:

1. Parse the slice from the first opening delimiter to the last
   closing delimiter.
2. Strip ```` ```json ```` / ```` ``` ```` fence markers from the whole
   text, trim it, and parse the result.

If neither yields a value of the expected type, :class:`ParseError` is
raised; callers substitute their own default.
"""

import json
import re
from typing import Any, Dict, List

from llm_gateway.exceptions import ParseError

_FENCE_RE = re.compile(r"```(?:json)?\n?")


def strip_code_fences(text: str) -> str:
    """Remove markdown code-fence markers and surrounding whitespace."""
    return _FENCE_RE.sub("", text).strip()


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Invalid JSON constant: {name}")


def _loads(text: str) -> Any:
    return json.loads(text, parse_constant=_reject_constant)


def _extract(text: str, opening: str, closing: str, expected: type) -> Any:
    start = text.find(opening)
    end = text.rfind(closing)
    if start != -1 and end != -1 and end > start:
        try:
            value = _loads(text[start:end + 1])
        except (ValueError, RecursionError):
            pass
        else:
            if isinstance(value, expected):
                return value

    stripped = strip_code_fences(text)
    try:
        value = _loads(stripped)
    except (ValueError, RecursionError) as exc:
        raise ParseError(
            f"No JSON {expected.__name__} found in completion text: {exc}"
        ) from exc
    if not isinstance(value, expected):
        raise ParseError(
            f"Expected JSON {expected.__name__}, got {type(value).__name__}"
        )
    return value


def extract_json_object(text: str) -> Dict[str, Any]:
    """Recover a JSON object from *text*.

    Raises:
        ParseError: If no JSON object can be parsed.
    """
    return _extract(text, "{", "}", dict)


def extract_json_array(text: str) -> List[Any]:
    """Recover a JSON array from *text*.

    Raises:
        ParseError: If no JSON array can be parsed.
    """
    return _extract(text, "[", "]", list)
