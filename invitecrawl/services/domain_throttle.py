"""
Per-domain politeness delay between consecutive requests.
"""

from __future__ import annotations

import threading
import time
from typing import Callable

from invitecrawl.utils.urls import hostname, registrable_domain


class DomainThrottle:
    """
    Spaces requests to the same registrable domain at least `delay_seconds` apart.

    Each caller reserves the next free slot under the lock and sleeps outside it,
    so a wait on one domain never blocks requests to another. Approximate: no
    burst control or token bucket.
    """

    def __init__(
        self,
        *,
        delay_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._delay_seconds = max(0.0, float(delay_seconds))
        self._next_slot_by_domain: dict[str, float] = {}
        self._lock = threading.Lock()
        self._clock = clock
        self._sleep = sleep

    @property
    def delay_seconds(self) -> float:
        return self._delay_seconds

    def reserve(self, url: str) -> float:
        """
        Claim the next request slot for the URL's domain and return seconds to wait.
        """

        if self._delay_seconds <= 0:
            return 0.0
        domain = registrable_domain(hostname(url)) or url
        with self._lock:
            now = self._clock()
            slot = max(now, self._next_slot_by_domain.get(domain, now))
            self._next_slot_by_domain[domain] = slot + self._delay_seconds
            return slot - now

    def wait(self, url: str, stop_event=None) -> None:
        """
        Sleep until the reserved slot. Returns early if `stop_event` gets set.
        """

        wait_seconds = self.reserve(url)
        if wait_seconds <= 0:
            return
        if hasattr(stop_event, "wait"):
            stop_event.wait(wait_seconds)
        else:
            self._sleep(wait_seconds)
