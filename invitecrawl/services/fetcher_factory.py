from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from invitecrawl.domain.crawl_settings import CrawlSettings
from invitecrawl.services.domain_throttle import DomainThrottle
from invitecrawl.services.fetcher import Fetcher, StaticFetcher
from invitecrawl.services.headless_browser_fetcher import PlaywrightHeadlessFetcher, PlaywrightHeadlessOptions
from invitecrawl.services.http_service import HttpService
from invitecrawl.services.resilient_fetcher import ResilientFetcher


@dataclass(frozen=True)
class FetcherFactory:
    """Builds the fetch pipeline for one crawl job from its settings snapshot."""

    http_service: HttpService
    user_agent: str
    headless_builder: Optional[Callable[[PlaywrightHeadlessOptions], Fetcher]] = None

    def strategy(self, settings: CrawlSettings) -> Fetcher:
        if settings is None:
            raise ValueError("settings are required")
        if settings.use_headless:
            options = PlaywrightHeadlessOptions(timeout_ms=int(settings.navigation_timeout_secs * 1000))
            if self.headless_builder is not None:
                return self.headless_builder(options)
            return PlaywrightHeadlessFetcher(user_agent=self.user_agent, options=options)
        return StaticFetcher(self.http_service)

    def get(self, settings: CrawlSettings) -> ResilientFetcher:
        throttle = None
        if settings.same_domain_delay_secs > 0:
            throttle = DomainThrottle(delay_seconds=settings.same_domain_delay_secs)
        return ResilientFetcher(
            self.strategy(settings),
            max_retries=settings.max_request_retries,
            handler_timeout_secs=settings.request_handler_timeout_secs,
            throttle=throttle,
        )
