"""Result types returned across service boundaries."""
from typing import NamedTuple

from invitecrawl.domain.target_match import TargetMatch


class ControlResult(NamedTuple):
    """Outcome of an engine control call (start, stop, crawl_single).

    Expected refusals (already running, nothing to crawl, not running) are
    reported here instead of being raised.
    """
    success: bool
    """True if the request was accepted"""

    message: str
    """Human-readable explanation, safe to show to end users"""

    @classmethod
    def ok(cls, message: str) -> "ControlResult":
        return cls(True, message)

    @classmethod
    def rejected(cls, message: str) -> "ControlResult":
        return cls(False, message)


class ExtractionResult(NamedTuple):
    """Everything harvested from one page."""
    target_matches: tuple[TargetMatch, ...]
    """Invite matches, unique by code, in order of first appearance"""

    outbound_links: tuple[str, ...]
    """Unique absolute http(s) hyperlink targets, in document order"""


class BucketMatches(NamedTuple):
    bucket: str
    matches: tuple[TargetMatch, ...]
