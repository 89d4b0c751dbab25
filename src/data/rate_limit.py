"""Per-client request limiting on top of the `limits` library.

Counters live in an injected `limits` storage, so each limiter (and each test)
can own its own store, and several workers can share one through
``redis://`` storage.
"""

import logging

from limits import RateLimitItemPerSecond
from limits.storage import Storage
from limits.strategies import FixedWindowRateLimiter

logger = logging.getLogger(__name__)


class ClientRateLimiter:
    """Each key gets `tokens` requests per `window_seconds` fixed window."""

    def __init__(
        self,
        storage: Storage,
        tokens: int = 10,
        window_seconds: int = 60,
        namespace: str = "scenarios",
    ):
        self.storage = storage
        self.item = RateLimitItemPerSecond(tokens, window_seconds)
        self.namespace = namespace
        self._strategy = FixedWindowRateLimiter(storage)

    def allow(self, key: str) -> bool:
        """Count one request for key. False once the window is used up."""
        if self._strategy.hit(self.item, self.namespace, key):
            return True
        logger.warning("Rate limit exceeded for %s", key)
        return False

    def remaining(self, key: str) -> int:
        return self._strategy.get_window_stats(self.item, self.namespace, key).remaining

    def reset_at(self, key: str) -> float:
        """Epoch seconds at which key's current window ends."""
        return self._strategy.get_window_stats(self.item, self.namespace, key).reset_time

    def clear(self, key: str) -> None:
        self._strategy.clear(self.item, self.namespace, key)
