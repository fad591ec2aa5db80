"""
Rate Limiter Module for API Request Management

Keeps requests to the Raindrop.io API inside the service limit
(120 requests per minute) using a sliding window.
"""

import asyncio
import logging
import time
from collections import deque
from typing import Any, Dict, Optional, Tuple


class RateLimiter:
    """
    Rate limiter to control API request frequency.

    Uses a sliding window approach to track requests and enforce limits.
    """

    def __init__(
        self,
        requests_per_minute: int = 120,
        name: str = "RateLimiter",
    ):
        """
        Initialize the rate limiter.

        Args:
            requests_per_minute: Maximum requests allowed per sliding minute
            name: Name for logging purposes
        """
        if requests_per_minute <= 0:
            raise ValueError("requests_per_minute must be positive")

        self.requests_per_minute = requests_per_minute
        self.name = name

        # Track request timestamps (sliding window)
        self.request_times: deque = deque(maxlen=requests_per_minute)

        # Statistics
        self.total_requests = 0
        self.total_wait_time = 0.0

        self.logger = logging.getLogger(f"{__name__}.{name}")
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        """Wait until a request may be made, then record it."""
        async with self._lock:
            while True:
                current_time = time.time()
                self._cleanup_old_requests(current_time)

                can_proceed, wait_time = self._can_make_request(current_time)
                if can_proceed:
                    self.request_times.append(current_time)
                    self.total_requests += 1
                    return

                self.logger.debug(
                    f"Rate limit reached for {self.name}, waiting {wait_time:.2f}s"
                )
                self.total_wait_time += wait_time
                await asyncio.sleep(wait_time)

    def _cleanup_old_requests(self, current_time: float) -> None:
        """Remove requests older than 1 minute from the sliding window."""
        cutoff_time = current_time - 60.0
        while self.request_times and self.request_times[0] <= cutoff_time:
            self.request_times.popleft()

    def _can_make_request(self, current_time: float) -> Tuple[bool, float]:
        """
        Check if a request can be made now.

        Returns:
            Tuple of (can_proceed, wait_time_if_not)
        """
        if len(self.request_times) < self.requests_per_minute:
            return True, 0.0

        oldest_request = self.request_times[0]
        wait_time = max(0.0, oldest_request + 60.0 - current_time)
        if wait_time == 0.0:
            return True, 0.0
        return False, wait_time

    def get_status(self) -> Dict[str, Any]:
        """Get current rate limiter status."""
        self._cleanup_old_requests(time.time())
        return {
            "name": self.name,
            "requests_per_minute": self.requests_per_minute,
            "requests_in_window": len(self.request_times),
            "total_requests": self.total_requests,
            "total_wait_time": round(self.total_wait_time, 3),
        }

    def reset(self) -> None:
        """Forget all recorded requests."""
        self.request_times.clear()
        self.total_requests = 0
        self.total_wait_time = 0.0

    def __repr__(self) -> str:
        return (
            f"RateLimiter(name={self.name!r}, "
            f"requests_per_minute={self.requests_per_minute})"
        )


def parse_retry_after(value: Optional[str]) -> Optional[float]:
    """
    Parse a numeric Retry-After header.

    Returns:
        Seconds to wait, or None when absent or not a number
    """
    if value is None:
        return None
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return None
    return seconds if seconds >= 0 else None
