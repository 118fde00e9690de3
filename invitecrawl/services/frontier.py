import logging
from collections import deque
from datetime import datetime
from typing import Callable, Iterable, NamedTuple, Optional

from invitecrawl.domain.frontier_entry import FrontierEntry, UrlState
from invitecrawl.services.crawl_policy import CrawlPolicy
from invitecrawl.utils.datetime_utils import utcnow

logger = logging.getLogger(__name__)


class FrontierSnapshot(NamedTuple):
    entries: tuple[FrontierEntry, ...]
    pending_count: int


class Frontier:
    """Known URLs of one crawl job and their processing state.

    Dedup is exact on the URL string and covers every URL seen during the job.
    Only the visible view (`snapshot`) is capped to the most recent entries.

    Not thread-safe: the engine serializes all access under its own lock.
    """

    def __init__(
        self,
        policy: Optional[CrawlPolicy] = None,
        *,
        view_size: int = 100,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.policy = policy or CrawlPolicy()
        self._clock = clock
        self._entries: dict[str, FrontierEntry] = {}
        self._queue: deque[str] = deque()
        self._recent: deque[FrontierEntry] = deque(maxlen=max(1, int(view_size)))
        self._pending = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, url: str) -> bool:
        return url in self._entries

    @property
    def pending_count(self) -> int:
        return self._pending

    def state_of(self, url: str) -> Optional[UrlState]:
        entry = self._entries.get(url)
        return entry.state if entry else None

    def _register(self, url: str, state: UrlState = UrlState.PENDING) -> FrontierEntry:
        entry = FrontierEntry(url=url, discovered_at=self._clock(), state=state)
        self._entries[url] = entry
        self._recent.append(entry)
        if state is UrlState.PENDING:
            self._queue.append(url)
            self._pending += 1
        return entry

    def seed(self, urls: Iterable[str]) -> int:
        """Register each URL as pending unless already known. Returns count added."""
        added = 0
        for url in urls:
            if url in self._entries:
                continue
            self._register(url)
            added += 1
        return added

    def discover(self, urls: Iterable[str], origin: str) -> int:
        """Admit same-domain, non-excluded URLs found on `origin`. Returns count newly admitted."""
        admitted = 0
        for url in urls:
            if url in self._entries:
                continue
            if not self.policy.admits(url, origin):
                continue
            self._register(url)
            admitted += 1
        if admitted:
            logger.debug("Admitted %d new URL(s) from %s", admitted, origin)
        return admitted

    def next_pending(self) -> Optional[str]:
        """Pop the oldest URL still waiting for dispatch."""
        while self._queue:
            url = self._queue.popleft()
            entry = self._entries.get(url)
            if entry is not None and entry.state is UrlState.PENDING:
                return url
        return None

    def _transition(self, url: str, target: UrlState) -> FrontierEntry:
        entry = self._entries.get(url)
        if entry is None:
            logger.warning("State change for unknown URL %s; registering it as %s", url, target.value)
            entry = self._register(url, target)
            return entry
        if not entry.can_transition_to(target):
            return entry
        if entry.state is UrlState.PENDING:
            self._pending -= 1
        entry.state = target
        return entry

    def mark_processing(self, url: str) -> FrontierEntry:
        return self._transition(url, UrlState.PROCESSING)

    def mark_done(self, url: str) -> FrontierEntry:
        return self._transition(url, UrlState.DONE)

    def mark_failed(self, url: str) -> FrontierEntry:
        return self._transition(url, UrlState.FAILED)

    def snapshot(self, limit: Optional[int] = None) -> FrontierSnapshot:
        """Copies of the most recent `limit` entries plus the pending count."""
        recent = list(self._recent)
        if limit is not None:
            recent = recent[-limit:] if limit > 0 else []
        copies = tuple(FrontierEntry(e.url, e.discovered_at, e.state) for e in recent)
        return FrontierSnapshot(entries=copies, pending_count=self._pending)
