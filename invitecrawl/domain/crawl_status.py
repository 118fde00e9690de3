from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Mapping, Optional

from invitecrawl.domain.frontier_entry import FrontierEntry
from invitecrawl.utils.datetime_utils import parse_to_utc, to_iso


def compute_progress(processed: int, total: int) -> int:
    """Percentage of processed URLs, rounded half-up and capped at 100."""
    if total <= 0:
        return 0
    pct = int(processed * 100 / total + 0.5)
    return max(0, min(100, pct))


@dataclass(frozen=True)
class CrawlStatus:
    """Read-only snapshot of a crawl, as reported to status consumers."""

    is_running: bool = False
    state: str = "idle"
    current_url: Optional[str] = None
    progress: int = 0
    total_urls: int = 0
    processed_urls: int = 0
    pending_urls: int = 0
    failed_urls: int = 0
    start_time: Optional[datetime] = None
    last_update: Optional[datetime] = None
    errors: tuple[str, ...] = ()
    suppressed_errors: int = 0
    enqueued_urls: tuple[FrontierEntry, ...] = field(default_factory=tuple)

    def with_running(self, is_running: bool) -> "CrawlStatus":
        return replace(self, is_running=is_running, state="running" if is_running else "idle")

    def to_dict(self) -> dict:
        return {
            "is_running": self.is_running,
            "state": self.state,
            "current_url": self.current_url,
            "progress": self.progress,
            "total_urls": self.total_urls,
            "processed_urls": self.processed_urls,
            "pending_urls": self.pending_urls,
            "failed_urls": self.failed_urls,
            "start_time": to_iso(self.start_time),
            "last_update": to_iso(self.last_update),
            "errors": list(self.errors),
            "suppressed_errors": self.suppressed_errors,
            "enqueued_urls": [e.to_dict() for e in self.enqueued_urls],
        }

    @classmethod
    def from_dict(cls, data: Mapping) -> "CrawlStatus":
        return cls(
            is_running=bool(data.get("is_running", False)),
            state=str(data.get("state", "idle")),
            current_url=data.get("current_url"),
            progress=int(data.get("progress", 0)),
            total_urls=int(data.get("total_urls", 0)),
            processed_urls=int(data.get("processed_urls", 0)),
            pending_urls=max(0, int(data.get("pending_urls", 0))),
            failed_urls=int(data.get("failed_urls", 0)),
            start_time=parse_to_utc(data.get("start_time")),
            last_update=parse_to_utc(data.get("last_update")),
            errors=tuple(str(e) for e in data.get("errors") or ()),
            suppressed_errors=int(data.get("suppressed_errors", 0)),
            enqueued_urls=tuple(FrontierEntry.from_dict(e) for e in data.get("enqueued_urls") or ()),
        )
