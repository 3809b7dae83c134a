"""Bounded exponential-backoff retry for individual GitHub API calls."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional, TypeVar

from repo_inventory.services.github.exceptions import (
    RETRYABLE_ERRORS,
    GithubRateLimitError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def compute_backoff(
    attempt: int, base_delay: float, retry_after: Optional[float] = None
) -> float:
    """Delay before retry ``attempt`` (0-based); honours a larger Retry-After."""
    delay = base_delay * (2**attempt)
    if retry_after is not None and retry_after > delay:
        return float(retry_after)
    return delay


def with_retry(
    func: Callable[[], T],
    max_retries: int = 3,
    base_delay: float = 1.0,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Call ``func`` and retry transient GitHub failures.

    Rate limits (403 abuse detection / 429) and 502/503 responses are retried
    with exponential backoff up to ``max_retries`` attempts in total. The last
    error is re-raised once attempts are exhausted; any other exception
    propagates immediately.
    """
    attempts = max(1, max_retries)
    for attempt in range(attempts):
        try:
            return func()
        except RETRYABLE_ERRORS as exc:
            if attempt == attempts - 1:
                raise

            retry_after = (
                exc.retry_after if isinstance(exc, GithubRateLimitError) else None
            )
            delay = compute_backoff(attempt, base_delay, retry_after)
            logger.warning(
                "Retry attempt %s/%s after %.1fs. Error: %s",
                attempt + 1,
                attempts,
                delay,
                exc,
            )
            sleep(delay)

    raise RuntimeError("Retry failed")  # pragma: no cover
