import logging
from fnmatch import fnmatchcase
from typing import Iterable, Optional

from invitecrawl.utils.urls import is_valid_url, same_domain

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDE_GLOBS = (
    "*/wp-admin/*",
    "*/wp-login.php*",
    "*/admin/*",
    "*/administrator/*",
    "*/login*",
    "*/signin*",
    "*/logout*",
    "*/sign-out*",
)


class CrawlPolicy:
    """Encapsulates admission rules for discovered links: same registrable domain,
    exclude globs for admin/login/logout pages, and an explicit URL blacklist.

    Separates policy decisions from frontier bookkeeping.
    """

    def __init__(self, exclude_globs: Optional[Iterable[str]] = None, excluded_urls: Optional[Iterable[str]] = None):
        self.exclude_globs = tuple(DEFAULT_EXCLUDE_GLOBS if exclude_globs is None else exclude_globs)
        self.excluded_urls = frozenset(u.rstrip("/") for u in (excluded_urls or ()))

    def should_skip_due_to_exclusion(self, url: str) -> bool:
        """Check if URL is blacklisted or matches an exclude glob."""
        if url.rstrip("/") in self.excluded_urls:
            logger.debug("Skipping (blacklisted) %s", url)
            return True
        for pattern in self.exclude_globs:
            if fnmatchcase(url, pattern):
                logger.debug("Skipping (excluded by %s) %s", pattern, url)
                return True
        return False

    def should_skip_due_to_domain(self, url: str, origin: str) -> bool:
        """Check if URL is outside the registrable domain of `origin`."""
        if not same_domain(url, origin):
            logger.debug("Skipping (external) %s -> not same domain as %s", url, origin)
            return True
        return False

    def admits(self, url: str, origin: str) -> bool:
        if not is_valid_url(url):
            return False
        if self.should_skip_due_to_exclusion(url):
            return False
        return not self.should_skip_due_to_domain(url, origin)
