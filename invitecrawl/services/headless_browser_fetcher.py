from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from invitecrawl.domain.http_response import HttpResponse
from invitecrawl.exceptions import FetchCancelledError, FetchError, HttpStatusError, NavigationError
from invitecrawl.services.fetcher import is_stopped

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlaywrightHeadlessOptions:
    timeout_ms: int = 30_000
    wait_until: str = "networkidle"  # domcontentloaded | load | networkidle


class PlaywrightHeadlessFetcher:
    """Headless browser fetcher backed by Playwright.

    Renders JavaScript-heavy pages and returns the final DOM HTML via
    page.content(). `timeout_ms` is the navigation timeout; the overall
    request-handler cap is enforced by the caller.

    Notes:
    - A browser is launched per request. Callers already run fetches on
      worker threads, so the sync API is used directly.
    - Playwright is imported lazily so non-headless installs still work.
    """

    def __init__(self, *, user_agent: str, options: Optional[PlaywrightHeadlessOptions] = None):
        self._user_agent = user_agent
        self._options = options or PlaywrightHeadlessOptions()

    @property
    def options(self) -> PlaywrightHeadlessOptions:
        return self._options

    def fetch(self, url: str, stop_event=None) -> HttpResponse:
        if is_stopped(stop_event):
            raise FetchCancelledError(url)

        try:
            from playwright.sync_api import Error as PlaywrightError  # type: ignore
            from playwright.sync_api import sync_playwright  # type: ignore
        except Exception as e:
            raise FetchError(
                url,
                "Headless fetch requested but Playwright is not installed. "
                "Install 'playwright' and run 'python -m playwright install chromium'.",
            ) from e

        try:
            with sync_playwright() as p:
                browser = p.chromium.launch(headless=True)
                try:
                    context = browser.new_context(user_agent=self._user_agent)
                    page = context.new_page()
                    resp = page.goto(url, wait_until=self._options.wait_until, timeout=self._options.timeout_ms)
                    status = int(resp.status) if resp is not None else 200
                    if status >= 400:
                        raise HttpStatusError(url, status)
                    html = page.content()
                    return HttpResponse(status_code=status, text=html, content_type="text/html", rendered=True)
                finally:
                    try:
                        browser.close()
                    except PlaywrightError:
                        logger.debug("Error closing browser for %s", url, exc_info=True)
        except PlaywrightError as e:
            raise NavigationError(url, e) from e
