from dataclasses import dataclass, field
from typing import Optional

from invitecrawl.domain.crawl_settings import CrawlSettings


@dataclass(frozen=True)
class CrawlProfile:
    """A named, file-backed set of seed URLs and crawl settings."""

    name: str
    seed_urls: list[str] = field(default_factory=list)
    settings: CrawlSettings = field(default_factory=CrawlSettings)
    excluded_urls: list[str] = field(default_factory=list)
    config_path: Optional[str] = None

    def __repr__(self):
        return f"<CrawlProfile name={self.name} path={self.config_path} seeds={len(self.seed_urls)}>"
