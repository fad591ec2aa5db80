"""
Retry Handler Module

Bounded exponential backoff used when the Raindrop.io API answers with
HTTP 429 (Too Many Requests).
"""

import random
from dataclasses import dataclass
from typing import Optional


@dataclass
class BackoffPolicy:
    """
    Backoff schedule for rate-limited requests.

    The n-th retry (0-based) waits ``base_delay * multiplier ** n`` seconds,
    capped at ``max_delay``. After ``max_retries`` retries the request is
    given up.

    Attributes:
        base_delay: Delay before the first retry
        multiplier: Growth factor between consecutive retries
        max_delay: Upper bound for any single delay
        max_retries: Retries allowed per request (0 disables retrying)
        jitter: Scale each delay by a random factor in [0.5, 1.5]
    """

    base_delay: float = 2.0
    multiplier: float = 2.0
    max_delay: float = 60.0
    max_retries: int = 5
    jitter: bool = False

    def should_retry(self, attempt: int) -> bool:
        """Whether retry number ``attempt`` (0-based) is still allowed."""
        return attempt < self.max_retries

    def delay_for(self, attempt: int, retry_after: Optional[float] = None) -> float:
        """
        Delay in seconds before retry number ``attempt``.

        Args:
            attempt: 0-based retry index
            retry_after: Server-provided wait in seconds, overrides the schedule

        Returns:
            Seconds to wait, never above max_delay
        """
        if retry_after is not None:
            return min(max(retry_after, 0.0), self.max_delay)

        delay = self.base_delay * (self.multiplier ** attempt)
        if self.jitter:
            delay *= random.uniform(0.5, 1.5)
        return min(delay, self.max_delay)
