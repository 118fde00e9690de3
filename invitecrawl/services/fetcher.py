from __future__ import annotations

import logging
from typing import Protocol

from invitecrawl.domain.http_response import HttpResponse
from invitecrawl.exceptions import FetchCancelledError, HttpStatusError
from invitecrawl.services.http_service import HttpService

logger = logging.getLogger(__name__)


class Fetcher(Protocol):
    """Fetch a URL and return its page content.

    Implementations raise `FetchError` subclasses for per-URL failures. The
    static and rendering strategies both satisfy this, as does the
    retry/timeout wrapper around them.
    """

    def fetch(self, url: str, stop_event=None) -> HttpResponse: ...


def is_stopped(stop_event) -> bool:
    return stop_event is not None and getattr(stop_event, "is_set", lambda: False)()


class StaticFetcher:
    """Single HTTP GET; the body is returned unrendered."""

    def __init__(self, http_service: HttpService):
        self._http_service = http_service

    def fetch(self, url: str, stop_event=None) -> HttpResponse:
        if is_stopped(stop_event):
            raise FetchCancelledError(url)
        response = self._http_service.fetch(url)
        if response.status_code < 200 or response.status_code >= 300:
            raise HttpStatusError(url, response.status_code)
        return response
