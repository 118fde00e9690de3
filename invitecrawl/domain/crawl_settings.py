from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Mapping, Optional

MAX_CONCURRENCY_LIMIT = 50
MAX_RETRIES_LIMIT = 10

# camelCase keys sent by JSON clients.
_CAMEL_CASE_KEYS = {
    "maxConcurrency": "max_concurrency",
    "maxRequestsPerCrawl": "max_requests_per_crawl",
    "maxRequestRetries": "max_request_retries",
    "requestHandlerTimeoutSecs": "request_handler_timeout_secs",
    "navigationTimeoutSecs": "navigation_timeout_secs",
    "sameDomainDelaySecs": "same_domain_delay_secs",
    "useHeadless": "use_headless",
}


@dataclass(frozen=True)
class CrawlSettings:
    """Per-job crawl limits. A snapshot is taken when a job starts."""

    max_concurrency: int = 5
    max_requests_per_crawl: int = 100
    max_request_retries: int = 3
    request_handler_timeout_secs: float = 60
    navigation_timeout_secs: float = 30
    same_domain_delay_secs: float = 1
    use_headless: bool = False

    @classmethod
    def field_names(cls) -> tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    @classmethod
    def normalize_keys(cls, data: Mapping[str, Any]) -> dict:
        known = set(cls.field_names())
        out = {}
        for key, value in data.items():
            key = _CAMEL_CASE_KEYS.get(key, key)
            if key in known:
                out[key] = value
        return out

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]], defaults: Optional["CrawlSettings"] = None) -> "CrawlSettings":
        base = defaults or cls()
        if not data:
            return base
        return replace(base, **cls.normalize_keys(data))

    def clamped(self) -> "CrawlSettings":
        return CrawlSettings(
            max_concurrency=max(1, min(MAX_CONCURRENCY_LIMIT, int(self.max_concurrency))),
            max_requests_per_crawl=max(1, int(self.max_requests_per_crawl)),
            max_request_retries=max(0, min(MAX_RETRIES_LIMIT, int(self.max_request_retries))),
            request_handler_timeout_secs=max(1.0, float(self.request_handler_timeout_secs)),
            navigation_timeout_secs=max(1.0, float(self.navigation_timeout_secs)),
            same_domain_delay_secs=max(0.0, float(self.same_domain_delay_secs)),
            use_headless=bool(self.use_headless),
        )

    def to_dict(self) -> dict:
        return asdict(self)
