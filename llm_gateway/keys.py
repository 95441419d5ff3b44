"""
Completion-service key pool and rotation offset selection.

The pool is re-read from the environment on every call so that keys can
be added or revoked without restarting the process.  Numbered keys
(``GROQ_API_KEY_1``, ``GROQ_API_KEY_2``, ...) are read in order until the
first missing index; the plain ``GROQ_API_KEY`` is appended when it is
set and not already in the pool.
"""

import logging
import os
import random
from typing import List, Mapping, Optional

from llm_gateway.cache.store import CacheStore
from llm_gateway.config import get_settings
from llm_gateway.exceptions import StoreUnavailable

logger = logging.getLogger(__name__)


def load_key_pool(
    environ: Optional[Mapping[str, str]] = None,
    env_name: Optional[str] = None,
) -> List[str]:
    """Return the ordered credential pool.

    Args:
        environ: Mapping to read from; defaults to ``os.environ``.
        env_name: Base variable name; defaults to
            ``settings.completion.api_key_env``.

    Returns:
        Credentials in rotation order, without blanks or duplicates.
        Empty if nothing is configured.
    """
    env = os.environ if environ is None else environ
    base = env_name or get_settings().completion.api_key_env

    pool: List[str] = []
    index = 1
    while True:
        value = env.get(f"{base}_{index}")
        if value is None:
            break
        value = value.strip()
        if value and value not in pool:
            pool.append(value)
        index += 1

    single = (env.get(base) or "").strip()
    if single and single not in pool:
        pool.append(single)
    return pool


async def select_start_index(
    store: CacheStore,
    pool_size: int,
    counter_key: str,
    rng: Optional[random.Random] = None,
) -> int:
    """Pick the rotation offset for one invocation.

    Uses the store's atomic counter modulo *pool_size*; falls back to a
    uniformly random offset when the store is unavailable.

    Raises:
        ValueError: If *pool_size* is not positive.
    """
    if pool_size <= 0:
        raise ValueError("pool_size must be positive")
    try:
        return await store.increment(counter_key) % pool_size
    except StoreUnavailable as exc:
        logger.warning(
            "Rotation counter unavailable, using random offset",
            extra={"error": str(exc)},
        )
        return (rng or random).randrange(pool_size)
