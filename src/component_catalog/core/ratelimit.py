"""Sliding-window rate limiting keyed by caller identity."""

import time
from collections import deque
from typing import Callable

Clock = Callable[[], float]


class RateLimiter:
    """
    Sliding-window admission control.

    Each identifier keeps the timestamps of its admitted requests from the
    last `window` seconds. Rejected requests are not recorded, so a caller
    at the limit is admitted again as soon as its oldest request ages out.

    Examples:
        >>> limiter = RateLimiter(max_requests=100, window=60)
        >>> limiter.is_allowed("client-1")
        True
        >>> limiter.get_remaining("client-1")
        99
    """

    def __init__(
        self,
        max_requests: int = 100,
        window: float = 60.0,
        clock: Clock = time.monotonic,
    ) -> None:
        if max_requests <= 0:
            raise ValueError("max_requests must be positive")
        if window <= 0:
            raise ValueError("window must be positive")

        self.max_requests = max_requests
        self.window = window
        self._clock = clock
        self._requests: dict[str, deque[float]] = {}

    def _live(self, identifier: str, now: float) -> deque[float]:
        """Drop timestamps older than the window and return what remains."""
        timestamps = self._requests.get(identifier)
        if timestamps is None:
            return deque()
        while timestamps and now - timestamps[0] >= self.window:
            timestamps.popleft()
        return timestamps

    def is_allowed(self, identifier: str) -> bool:
        """Admit and record a request, or reject it without recording."""
        now = self._clock()
        timestamps = self._live(identifier, now)

        if len(timestamps) >= self.max_requests:
            return False

        timestamps.append(now)
        self._requests[identifier] = timestamps
        return True

    def get_remaining(self, identifier: str) -> int:
        """Requests still available in the current window."""
        timestamps = self._live(identifier, self._clock())
        return max(0, self.max_requests - len(timestamps))

    def get_reset_time(self, identifier: str) -> float:
        """Seconds until the oldest live request ages out (0 if none)."""
        now = self._clock()
        timestamps = self._live(identifier, now)
        if not timestamps:
            return 0.0
        return max(0.0, timestamps[0] + self.window - now)

    def cleanup(self) -> int:
        """
        Forget identifiers whose window has fully aged out.

        Returns:
            Number of identifiers removed
        """
        now = self._clock()
        stale = [ident for ident in self._requests if not self._live(ident, now)]
        for ident in stale:
            del self._requests[ident]
        return len(stale)

    def __len__(self) -> int:
        """Number of tracked identifiers."""
        return len(self._requests)


__all__ = ["RateLimiter"]
