from __future__ import annotations

import logging
from collections import deque
from datetime import datetime
from typing import Optional

from invitecrawl.domain.crawl_status import CrawlStatus, compute_progress
from invitecrawl.services.frontier import FrontierSnapshot

logger = logging.getLogger(__name__)


class CrawlStatusTracker:
    """Counters, current URL and bounded error log of the running job.

    Not thread-safe: the engine calls it under the same lock that guards the
    frontier, so counters and frontier state always change together.
    """

    def __init__(self, *, max_errors: int = 100):
        if max_errors < 1:
            raise ValueError("max_errors must be >= 1")
        self._errors: deque[str] = deque(maxlen=max_errors)
        self.reset(total=0, now=None)

    def reset(self, *, total: int, now: Optional[datetime]) -> None:
        self.total_urls = max(0, int(total))
        self.processed_urls = 0
        self.failed_urls = 0
        self.current_url: Optional[str] = None
        self.start_time = now
        self.last_update = now
        self.suppressed_errors = 0
        self.finished = False
        self._errors.clear()

    def set_current(self, url: str, now: datetime) -> None:
        self.current_url = url
        self.last_update = now

    def record_discovered(self, count: int, now: datetime) -> None:
        if count > 0:
            self.total_urls += count
            self.last_update = now

    def record_processed(self, *, failed: bool, now: datetime) -> None:
        self.processed_urls += 1
        if failed:
            self.failed_urls += 1
        # Every processed URL was counted in total when it was seeded or discovered.
        if self.processed_urls > self.total_urls:
            logger.warning(
                "Processed count %d exceeds total %d; raising total to match",
                self.processed_urls,
                self.total_urls,
            )
            self.total_urls = self.processed_urls
        self.last_update = now

    def record_error(self, message: str, now: datetime) -> None:
        if len(self._errors) == self._errors.maxlen:
            self.suppressed_errors += 1
        self._errors.append(message)
        self.last_update = now

    def finish(self, now: datetime) -> None:
        self.finished = True
        self.current_url = None
        self.last_update = now

    @property
    def errors(self) -> tuple[str, ...]:
        return tuple(self._errors)

    @property
    def pending_urls(self) -> int:
        if self.finished:
            return 0
        return max(0, self.total_urls - self.processed_urls)

    @property
    def progress(self) -> int:
        if self.finished:
            return 100
        return compute_progress(self.processed_urls, self.total_urls)

    def snapshot(
        self,
        *,
        is_running: bool,
        state: str,
        frontier: Optional[FrontierSnapshot] = None,
    ) -> CrawlStatus:
        return CrawlStatus(
            is_running=is_running,
            state=state,
            current_url=self.current_url,
            progress=self.progress,
            total_urls=self.total_urls,
            processed_urls=self.processed_urls,
            pending_urls=self.pending_urls,
            failed_urls=self.failed_urls,
            start_time=self.start_time,
            last_update=self.last_update,
            errors=self.errors,
            suppressed_errors=self.suppressed_errors,
            enqueued_urls=frontier.entries if frontier is not None else (),
        )
