"""Human-readable document numbers: ``QUO-2410-0427``, ``ORD-2410-9051``.

Numbers are ``{prefix}-{YYMM}-{NNNN}`` with a random four-digit suffix. There
is no shared counter; a candidate is checked against the store and
regenerated on collision, up to ``MAX_ATTEMPTS`` times.
"""

import random
from collections.abc import Callable
from datetime import UTC, datetime

import structlog

from labdesk.errors import Conflict

logger = structlog.get_logger(__name__)

QUOTE_PREFIX = "QUO"
ORDER_PREFIX = "ORD"
MAX_ATTEMPTS = 10


def generate_candidate(prefix: str, now: datetime | None = None, rng: random.Random | None = None) -> str:
    """Return a candidate number for ``prefix`` stamped with ``now``'s year and month."""
    now = now or datetime.now(UTC)
    rng = rng or random
    return f"{prefix}-{now:%y%m}-{rng.randrange(10000):04d}"


def next_unique_number(
    prefix: str,
    exists: Callable[[str], bool],
    max_attempts: int = MAX_ATTEMPTS,
    now: datetime | None = None,
    rng: random.Random | None = None,
) -> str:
    """Generate candidates until ``exists`` reports one as free.

    Raises:
        Conflict: every attempt collided with an existing number.
    """
    for attempt in range(1, max_attempts + 1):
        candidate = generate_candidate(prefix, now=now, rng=rng)
        if not exists(candidate):
            return candidate
        logger.debug("Sequence number collision", prefix=prefix, candidate=candidate, attempt=attempt)

    logger.warning("Sequence number retries exhausted", prefix=prefix, attempts=max_attempts)
    raise Conflict({"number": [f"Could not generate a unique {prefix} number after {max_attempts} attempts"]})
