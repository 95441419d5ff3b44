"""
Generation helpers for gateway callers.

Structured-content callers (roadmaps, lessons, quizzes, code feedback)
all follow the same pattern: invoke the gateway, recover JSON from the
text, and fall back to a caller-supplied default when the text holds no
usable JSON.  Gateway failures are not swallowed here.
"""

import copy
import logging
from typing import Any, Dict, List, Optional

from llm_gateway.exceptions import ParseError
from llm_gateway.extraction import extract_json_array, extract_json_object
from llm_gateway.gateway import Gateway, get_gateway
from llm_gateway.models import ChatRequest

logger = logging.getLogger(__name__)


async def generate_text(request: ChatRequest, gateway: Optional[Gateway] = None) -> str:
    """Invoke the gateway and return the raw completion text."""
    return await (gateway or get_gateway()).invoke(request)


async def generate_json_object(
    request: ChatRequest,
    default: Dict[str, Any],
    gateway: Optional[Gateway] = None,
) -> Dict[str, Any]:
    """Invoke the gateway and return the JSON object in its response.

    Args:
        request: The chat request.
        default: Returned (as a deep copy) when no object can be parsed.
        gateway: Gateway to use; defaults to :func:`get_gateway`.
    """
    text = await generate_text(request, gateway)
    try:
        return extract_json_object(text)
    except ParseError as exc:
        logger.warning(
            "Completion held no JSON object, using fallback",
            extra={"model": request.model, "error": str(exc)},
        )
        return copy.deepcopy(default)


async def generate_json_array(
    request: ChatRequest,
    default: List[Any],
    gateway: Optional[Gateway] = None,
) -> List[Any]:
    """Invoke the gateway and return the JSON array in its response.

    Args:
        request: The chat request.
        default: Returned (as a deep copy) when no array can be parsed.
        gateway: Gateway to use; defaults to :func:`get_gateway`.
    """
    text = await generate_text(request, gateway)
    try:
        return extract_json_array(text)
    except ParseError as exc:
        logger.warning(
            "Completion held no JSON array, using fallback",
            extra={"model": request.model, "error": str(exc)},
        )
        return copy.deepcopy(default)
