"""Best-effort request throttle for the news-search upstream.

GDELT asks for at most one request every 5 seconds; the default interval is
6 seconds. The throttle is explicit caller-owned state, so two engines only
share a budget when they are given the same ``RequestThrottle``.
"""

import time
from dataclasses import dataclass, field
from typing import Callable, Optional


@dataclass
class RequestThrottle:
    """Timestamp of the last granted request plus the minimum spacing."""
    min_interval_seconds: float = 6.0
    last_request_at: Optional[float] = None
    clock: Callable[[], float] = field(default=time.time, repr=False)

    def wait_seconds(self) -> float:
        """Seconds until the next request may go out (0 when allowed now)."""
        if self.last_request_at is None:
            return 0.0
        elapsed = self.clock() - self.last_request_at
        return max(0.0, self.min_interval_seconds - elapsed)

    def try_acquire(self) -> float:
        """Grant a request slot if free.

        Returns:
            float: ``0.0`` when granted (the slot is recorded), otherwise the
            remaining wait in seconds.
        """
        wait = self.wait_seconds()
        if wait > 0:
            return wait
        self.last_request_at = self.clock()
        return 0.0
