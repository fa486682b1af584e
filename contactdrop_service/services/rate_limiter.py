import logging
import time
from collections import deque
from typing import Callable

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class SlidingWindowRateLimiter:
    """Per-client sliding-window counter held in process memory.

    Each client key maps to a deque of attempt timestamps (ms). Timestamps
    that fall out of the window are dropped lazily when the client is checked
    again, and ``sweep()`` evicts clients whose window has gone empty.
    """

    def __init__(self, window_ms: int = 60_000, max_requests: int = 20,
                 clock: Callable[[], int] = _now_ms):
        self.window_ms = window_ms
        self.max_requests = max_requests
        self._clock = clock
        self._seen: dict[str, deque[int]] = {}

    @property
    def tracked_clients(self) -> int:
        return len(self._seen)

    def _expire(self, q: deque[int], now: int) -> None:
        while q and now - q[0] >= self.window_ms:
            q.popleft()

    def check(self, client: str) -> bool:
        """Return True when ``client`` is over the limit.

        A rejected attempt is not recorded.
        """
        now = self._clock()
        q = self._seen.get(client)
        if q is None:
            q = deque()
            self._seen[client] = q
        self._expire(q, now)

        if len(q) >= self.max_requests:
            return True

        q.append(now)
        return False

    def sweep(self) -> int:
        """Drop clients with no attempts left in the window."""
        now = self._clock()
        idle = []
        for client, q in self._seen.items():
            self._expire(q, now)
            if not q:
                idle.append(client)
        for client in idle:
            del self._seen[client]
        if idle:
            logger.debug("Rate limiter evicted %d idle clients", len(idle))
        return len(idle)
