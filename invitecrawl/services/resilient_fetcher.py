from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Optional

from invitecrawl.domain.http_response import HttpResponse
from invitecrawl.exceptions import (
    FetchCancelledError,
    FetchError,
    FetchTimeoutError,
    RetriesExhaustedError,
)
from invitecrawl.services.domain_throttle import DomainThrottle
from invitecrawl.services.fetcher import Fetcher, is_stopped

logger = logging.getLogger(__name__)


class ResilientFetcher:
    """Adds politeness delay, a hard per-attempt timeout and retries to a fetch strategy.

    Every attempt runs on its own daemon thread and the caller waits at most
    `handler_timeout_secs` for it. A hung attempt is abandoned (threads cannot be
    killed) and counts as a failed attempt; its thread holds no shared slot, so
    later attempts start immediately. A URL gets one attempt plus `max_retries`
    retries.
    """

    def __init__(
        self,
        inner: Fetcher,
        *,
        max_retries: int = 3,
        handler_timeout_secs: float = 60,
        throttle: Optional[DomainThrottle] = None,
    ):
        self.inner = inner
        self.max_retries = max(0, int(max_retries))
        self.handler_timeout_secs = float(handler_timeout_secs)
        self.throttle = throttle

    def _attempt(self, url: str, stop_event) -> HttpResponse:
        future: Future = Future()

        def run():
            if not future.set_running_or_notify_cancel():
                return
            try:
                future.set_result(self.inner.fetch(url, stop_event))
            except Exception as e:
                future.set_exception(e)

        threading.Thread(target=run, name="fetch-attempt", daemon=True).start()
        try:
            return future.result(timeout=self.handler_timeout_secs)
        except FutureTimeoutError:
            logger.warning("Abandoning hung attempt for %s after %ss", url, self.handler_timeout_secs)
            raise FetchTimeoutError(url, self.handler_timeout_secs)

    def fetch(self, url: str, stop_event=None) -> HttpResponse:
        attempts = 0
        last_error: Optional[Exception] = None
        for attempt in range(self.max_retries + 1):
            if is_stopped(stop_event):
                raise FetchCancelledError(url)
            if self.throttle is not None:
                self.throttle.wait(url, stop_event)
                if is_stopped(stop_event):
                    raise FetchCancelledError(url)
            attempts += 1
            try:
                return self._attempt(url, stop_event)
            except FetchCancelledError:
                raise
            except FetchError as e:
                last_error = e
                logger.info("Attempt %d/%d failed for %s: %s", attempt + 1, self.max_retries + 1, url, e)
            except Exception as e:
                last_error = FetchError(url, f"Unexpected fetch error for {url}: {e}")
                logger.error("Unexpected fetch error for %s: %s", url, e, exc_info=True)
        raise RetriesExhaustedError(url, attempts, last_error)

    def close(self) -> None:
        close = getattr(self.inner, "close", None)
        if callable(close):
            close()
