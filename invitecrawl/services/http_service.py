import logging
from typing import Callable

import requests

from invitecrawl.domain.http_response import HttpResponse
from invitecrawl.exceptions import HttpFetchError

logger = logging.getLogger(__name__)

ACCEPT_HTML = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"


class HttpService:
    """
    Plain GET transport behind the static fetch strategy.

    Sends browser-like headers so group directory pages serve their normal HTML,
    follows redirects, and turns transport failures into HttpFetchError. Status
    codes are returned untouched; StaticFetcher decides what counts as a failure.
    `http_client` is injected (`requests.get` in the container) so tests pass a fake.
    """

    def __init__(self, user_agent: str, http_client: Callable, timeout: float = 30):
        self.user_agent = user_agent
        self.timeout = timeout
        self.http_client = http_client
        self.headers = {"User-Agent": user_agent, "Accept": ACCEPT_HTML}

    def fetch(self, url: str) -> HttpResponse:
        logger.debug("GET %s", url)
        try:
            resp = self.http_client(url, headers=self.headers, timeout=self.timeout, allow_redirects=True)
        except requests.exceptions.RequestException as e:
            raise HttpFetchError(url, e) from e

        headers = getattr(resp, "headers", None)
        content_type = headers.get("Content-Type") if headers is not None else None
        return HttpResponse(resp.status_code, resp.text, content_type)
