import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from invitecrawl.domain.crawl_settings import CrawlSettings
from invitecrawl.utils.datetime_utils import utcnow


class CrawlMode(str, Enum):
    FULL = "full"
    SINGLE_URL = "single-url"


class StopReason(str, Enum):
    COMPLETED = "completed"
    STOPPED = "stopped"
    MAX_REQUESTS = "max_requests"
    FATAL = "fatal"


@dataclass
class CrawlJob:
    """One crawl run from start request to terminal state."""

    mode: CrawlMode
    seed_urls: tuple[str, ...]
    settings: CrawlSettings
    started_at: datetime = field(default_factory=utcnow)
    finished_at: Optional[datetime] = None
    stop_reason: Optional[StopReason] = None
    job_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @property
    def single_url_mode(self) -> bool:
        return self.mode is CrawlMode.SINGLE_URL

    @property
    def is_finished(self) -> bool:
        return self.finished_at is not None

    def finish(self, reason: StopReason, now: Optional[datetime] = None) -> None:
        self.finished_at = now or utcnow()
        self.stop_reason = reason

    def __repr__(self):
        return (
            f"<CrawlJob id={self.job_id} mode={self.mode.value} seeds={len(self.seed_urls)} "
            f"start={self.started_at} end={self.finished_at}>"
        )
