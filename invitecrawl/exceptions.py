"""Custom exceptions for InviteCrawl services."""
from typing import Optional


class CrawlValidationError(ValueError):
    """Raised when caller-supplied input is rejected at the service boundary."""


class UrlValidationError(CrawlValidationError):
    """Raised when a URL is malformed or already registered."""

    def __init__(self, url: str, reason: str = "is not a valid http(s) URL"):
        self.url = url
        self.reason = reason
        super().__init__(f"URL '{url}' {reason}")


class ConfigNotFoundError(Exception):
    """Raised when a requested crawl profile cannot be found on disk."""

    def __init__(self, config_path: str, reason: str = "not found"):
        self.config_path = config_path
        self.reason = reason
        super().__init__(f"Config '{config_path}' {reason}")


class FetchError(Exception):
    """Base class for per-URL retrieval failures."""

    def __init__(self, url: str, message: str):
        self.url = url
        self.message = message
        super().__init__(message)


class HttpFetchError(FetchError):
    """Raised when an HTTP fetch fails due to network/transport errors."""

    def __init__(self, url: str, original: Exception):
        self.original = original
        super().__init__(url, f"HTTP fetch failed for {url}: {original}")


class HttpStatusError(FetchError):
    """Raised when the server answers with a non-2xx status."""

    def __init__(self, url: str, status_code: int):
        self.status_code = status_code
        super().__init__(url, f"HTTP {status_code} for {url}")


class NavigationError(FetchError):
    """Raised when the headless browser cannot load a page."""

    def __init__(self, url: str, original: Exception):
        self.original = original
        super().__init__(url, f"Navigation failed for {url}: {original}")


class FetchTimeoutError(FetchError):
    def __init__(self, url: str, timeout_secs: float):
        self.timeout_secs = timeout_secs
        super().__init__(url, f"Request handler timed out after {timeout_secs}s for {url}")


class FetchCancelledError(FetchError):
    def __init__(self, url: str):
        super().__init__(url, f"Fetch cancelled for {url}")


class RetriesExhaustedError(FetchError):
    """Raised once every allowed attempt for a URL has failed."""

    def __init__(self, url: str, attempts: int, last_error: Optional[Exception] = None):
        self.attempts = attempts
        self.last_error = last_error
        reason = last_error.message if isinstance(last_error, FetchError) else str(last_error)
        super().__init__(url, f"Gave up on {url} after {attempts} attempt(s): {reason}")


class ExtractionError(Exception):
    """Raised when page content cannot be parsed at all."""


class EngineFatalError(Exception):
    """Raised when an unexpected error escapes a crawl pipeline."""
