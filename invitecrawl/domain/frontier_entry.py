from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Mapping

from invitecrawl.utils.datetime_utils import parse_to_utc, to_iso, utcnow


class UrlState(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    DONE = "done"
    FAILED = "failed"

    @property
    def rank(self) -> int:
        return _RANK[self]

    @property
    def is_terminal(self) -> bool:
        return self in (UrlState.DONE, UrlState.FAILED)


_RANK = {
    UrlState.PENDING: 0,
    UrlState.PROCESSING: 1,
    UrlState.DONE: 2,
    UrlState.FAILED: 2,
}


@dataclass
class FrontierEntry:
    url: str
    discovered_at: datetime
    state: UrlState = UrlState.PENDING

    def can_transition_to(self, target: UrlState) -> bool:
        """States only move forward; done and failed are final."""
        if self.state.is_terminal:
            return False
        return target.rank > self.state.rank

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "enqueued_at": to_iso(self.discovered_at),
            "status": self.state.value,
        }

    @classmethod
    def from_dict(cls, data: Mapping) -> "FrontierEntry":
        return cls(
            url=str(data["url"]),
            discovered_at=parse_to_utc(data.get("enqueued_at")) or utcnow(),
            state=UrlState(data.get("status", UrlState.PENDING.value)),
        )
