"""Domain objects for InviteCrawl - explicit re-exports to satisfy linters."""
from .crawl_settings import CrawlSettings as CrawlSettings
from .target_match import TargetMatch as TargetMatch
from .frontier_entry import FrontierEntry as FrontierEntry, UrlState as UrlState
from .crawl_job import CrawlJob as CrawlJob, CrawlMode as CrawlMode, StopReason as StopReason
from .crawl_status import CrawlStatus as CrawlStatus
from .control_result import ControlResult as ControlResult, ExtractionResult as ExtractionResult
from .crawl_profile import CrawlProfile as CrawlProfile

__all__ = [
    "CrawlSettings",
    "TargetMatch",
    "FrontierEntry",
    "UrlState",
    "CrawlJob",
    "CrawlMode",
    "StopReason",
    "CrawlStatus",
    "ControlResult",
    "ExtractionResult",
    "CrawlProfile",
]
