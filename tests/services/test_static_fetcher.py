from unittest.mock import Mock

import pytest

from invitecrawl.domain.http_response import HttpResponse
from invitecrawl.exceptions import FetchCancelledError, HttpStatusError
from invitecrawl.services.fetcher import StaticFetcher, is_stopped


class _StopEvent:
    def __init__(self, *, is_set: bool):
        self._is_set = is_set

    def is_set(self) -> bool:
        return self._is_set


def test_static_fetcher_returns_2xx_response():
    http_service = Mock()
    http_service.fetch.return_value = HttpResponse(200, "<html></html>")
    assert StaticFetcher(http_service).fetch("http://example.com").text == "<html></html>"


@pytest.mark.parametrize("status", [301, 404, 500])
def test_static_fetcher_rejects_non_2xx(status):
    http_service = Mock()
    http_service.fetch.return_value = HttpResponse(status, "")
    with pytest.raises(HttpStatusError) as exc:
        StaticFetcher(http_service).fetch("http://example.com")
    assert exc.value.status_code == status
    assert str(exc.value) == f"HTTP {status} for http://example.com"


def test_static_fetcher_respects_stop_event():
    http_service = Mock()
    with pytest.raises(FetchCancelledError, match="Fetch cancelled"):
        StaticFetcher(http_service).fetch("http://example.com", stop_event=_StopEvent(is_set=True))
    http_service.fetch.assert_not_called()


def test_is_stopped_tolerates_missing_event():
    assert not is_stopped(None)
    assert not is_stopped(object())
    assert is_stopped(_StopEvent(is_set=True))
