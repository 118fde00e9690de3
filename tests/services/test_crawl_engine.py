import threading
from unittest.mock import Mock

import pytest

from invitecrawl.domain.crawl_job import CrawlMode, StopReason
from invitecrawl.domain.crawl_settings import CrawlSettings
from invitecrawl.domain.crawl_status import CrawlStatus
from invitecrawl.domain.http_response import HttpResponse
from invitecrawl.exceptions import FetchCancelledError, HttpStatusError, RetriesExhaustedError
from invitecrawl.services.blob_store import FileBlobStore
from invitecrawl.services.crawl_engine import CrawlEngine, EngineState
from invitecrawl.services.link_extractor import LinkExtractor
from invitecrawl.services.result_store import ResultStore
from invitecrawl.services.target_matcher import TargetMatcher, TargetPatterns

CODE = "ABCDEFGHIJKLMNOPQRSTUV"

PAGE_A = f"""
<html><body>
  <a href="https://chat.example.test/invite/{CODE}">Join our group</a>
  <a href="https://one.test/">one</a>
  <a href="https://two.test/x">two</a>
  <a href="https://three.test/y">three</a>
  <a href="/b">b</a>
</body></html>
"""

PAGE_B = "<html><body><a href='/a'>back to a</a></body></html>"

SETTINGS = CrawlSettings(max_concurrency=2, same_domain_delay_secs=0)


class _PageFetcher:
    """Serves canned pages; unknown URLs answer 404."""

    def __init__(self, pages):
        self.pages = pages
        self.calls = []
        self.closed = False

    def fetch(self, url, stop_event=None):
        self.calls.append(url)
        if url not in self.pages:
            raise HttpStatusError(url, 404)
        return HttpResponse(200, self.pages[url])

    def close(self):
        self.closed = True


class _GatedFetcher:
    """Blocks every fetch until `gate` opens or the stop flag is raised."""

    def __init__(self):
        self.gate = threading.Event()
        self.entered = threading.Event()
        self.calls = []
        self.closed = False

    def fetch(self, url, stop_event=None):
        self.calls.append(url)
        self.entered.set()
        while not self.gate.wait(0.01):
            if stop_event is not None and stop_event.is_set():
                raise FetchCancelledError(url)
        return HttpResponse(200, "<html></html>")

    def close(self):
        self.closed = True


def _engine(tmp_path, fetcher, **kwargs):
    matcher = TargetMatcher(TargetPatterns(invite_host="chat.example.test"))
    factory = Mock()
    factory.get.return_value = fetcher
    config_provider = Mock()
    config_provider.get_config.return_value = SETTINGS
    config_provider.get_excluded_urls.return_value = kwargs.pop("excluded_urls", [])
    result_store = kwargs.pop("result_store", None) or ResultStore(FileBlobStore(base_dir=str(tmp_path)))
    return CrawlEngine(
        fetcher_factory=factory,
        link_extractor=LinkExtractor(matcher),
        result_store=result_store,
        config_provider=config_provider,
        target_matcher=matcher,
        **kwargs,
    )


def test_end_to_end_crawl_harvests_invite_and_follows_same_domain(tmp_path):
    fetcher = _PageFetcher({"https://example.test/a": PAGE_A, "https://example.test/b": PAGE_B})
    engine = _engine(tmp_path, fetcher)

    result = engine.start(["https://example.test/a"])
    assert result.success
    assert engine.join(timeout=10)

    bucket = engine.result_store.get_bucket("example")
    assert [m.code for m in bucket.matches] == [CODE]
    assert bucket.matches[0].url == f"https://chat.example.test/invite/{CODE}"

    assert sorted(fetcher.calls) == ["https://example.test/a", "https://example.test/b"]
    status = engine.status()
    assert status.is_running is False
    assert status.state == "idle"
    assert status.progress == 100
    assert status.processed_urls == 2
    assert status.total_urls == 2
    assert status.pending_urls == 0
    assert status.errors == ()
    assert {e.url for e in status.enqueued_urls} == {"https://example.test/a", "https://example.test/b"}
    assert engine.last_job.stop_reason is StopReason.COMPLETED
    assert engine.last_job.mode is CrawlMode.FULL
    assert fetcher.closed


def test_single_url_mode_does_not_follow_links(tmp_path):
    fetcher = _PageFetcher({"https://example.test/a": PAGE_A})
    engine = _engine(tmp_path, fetcher)

    assert engine.crawl_single("https://example.test/a").success
    assert engine.join(timeout=10)

    assert fetcher.calls == ["https://example.test/a"]
    status = engine.status()
    assert (status.processed_urls, status.total_urls, status.progress) == (1, 1, 100)
    assert engine.last_job.mode is CrawlMode.SINGLE_URL
    assert len(engine.result_store.list_matches()) == 1


def test_start_while_running_is_rejected_without_reset(tmp_path):
    fetcher = _GatedFetcher()
    engine = _engine(tmp_path, fetcher)

    assert engine.start(["https://example.test/a"]).success
    assert fetcher.entered.wait(5)
    before = engine.status()

    second = engine.start(["https://other.test/1", "https://other.test/2"])
    assert not second.success
    assert second.message == "Crawler is already running"
    assert not engine.crawl_single("https://other.test/3").success

    after = engine.status()
    assert after.total_urls == before.total_urls == 1
    assert after.start_time == before.start_time
    assert after.is_running

    fetcher.gate.set()
    assert engine.join(timeout=10)
    assert engine.status().processed_urls == 1


def test_stop_drains_and_returns_to_idle(tmp_path):
    fetcher = _GatedFetcher()
    engine = _engine(tmp_path, fetcher)
    seeds = [f"https://example.test/page{i}" for i in range(50)]
    settings = CrawlSettings(max_concurrency=5, same_domain_delay_secs=0)

    assert engine.start(seeds, settings=settings).success
    stopped = engine.stop()
    assert stopped.success
    assert engine.state in (EngineState.STOPPING, EngineState.IDLE)

    assert engine.join(timeout=10)
    status = engine.status()
    assert status.is_running is False
    assert status.progress == 100
    assert status.pending_urls == 0
    assert len(fetcher.calls) <= 5
    assert engine.last_job.stop_reason is StopReason.STOPPED
    assert not engine.is_running()

    calls = len(fetcher.calls)
    fetcher.gate.set()
    assert len(fetcher.calls) == calls


def test_stop_when_idle_is_rejected(tmp_path):
    engine = _engine(tmp_path, _PageFetcher({}))
    result = engine.stop()
    assert not result.success
    assert result.message == "Crawler is not running"


@pytest.mark.parametrize("urls", [[], None, ["   "]])
def test_start_without_urls_is_rejected(tmp_path, urls):
    engine = _engine(tmp_path, _PageFetcher({}))
    if urls == ["   "]:
        result = engine.start(urls)
        assert "Invalid URL" in result.message
    else:
        result = engine.start(urls)
        assert result.message.startswith("No URLs to crawl")
    assert not result.success
    assert not engine.is_running()
    engine.fetcher_factory.get.assert_not_called()


def test_one_malformed_seed_rejects_the_whole_start(tmp_path):
    engine = _engine(tmp_path, _PageFetcher({}))
    result = engine.start(["https://example.test/a", "example.test/b"])
    assert not result.success
    assert "example.test/b" in result.message
    assert engine.last_job is None


def test_duplicate_seeds_are_collapsed(tmp_path):
    fetcher = _PageFetcher({"https://example.test/b": PAGE_B})
    engine = _engine(tmp_path, fetcher)
    assert engine.start(["https://example.test/b", "https://example.test/b"], single_url_mode=True).success
    assert engine.join(timeout=10)
    assert engine.status().total_urls == 1
    assert fetcher.calls == ["https://example.test/b"]


def test_fetch_failures_are_recorded_and_count_as_processed(tmp_path):
    class _Failing(_PageFetcher):
        def fetch(self, url, stop_event=None):
            self.calls.append(url)
            raise RetriesExhaustedError(url, 4, HttpStatusError(url, 503))

    engine = _engine(tmp_path, _Failing({}))
    assert engine.start(["https://example.test/a"]).success
    assert engine.join(timeout=10)

    status = engine.status()
    assert status.processed_urls == 1
    assert status.failed_urls == 1
    assert status.progress == 100
    assert status.errors == (
        "Failed to crawl https://example.test/a: "
        "Gave up on https://example.test/a after 4 attempt(s): HTTP 503 for https://example.test/a",
    )
    assert engine.last_job.stop_reason is StopReason.COMPLETED


def test_unexpected_error_is_fatal_but_orderly(tmp_path):
    result_store = Mock()
    result_store.append_matches.side_effect = OSError("disk full")
    fetcher = _PageFetcher({"https://example.test/a": PAGE_A})
    engine = _engine(tmp_path, fetcher, result_store=result_store)

    assert engine.start(["https://example.test/a"]).success
    assert engine.join(timeout=10)

    status = engine.status()
    assert status.is_running is False
    assert "Crawler error: disk full" in status.errors
    assert engine.last_job.stop_reason is StopReason.FATAL
    assert fetcher.closed
    # the engine accepts a new job afterwards
    assert engine.start(["https://example.test/zzz"]).success
    assert engine.join(timeout=10)


def test_max_requests_per_crawl_caps_dispatches(tmp_path):
    pages = {f"https://example.test/{i}": "<html></html>" for i in range(5)}
    fetcher = _PageFetcher(pages)
    engine = _engine(tmp_path, fetcher)
    settings = CrawlSettings(max_concurrency=1, max_requests_per_crawl=2, same_domain_delay_secs=0)

    assert engine.start(list(pages), settings=settings).success
    assert engine.join(timeout=10)

    assert len(fetcher.calls) == 2
    status = engine.status()
    assert status.processed_urls == 2
    assert status.total_urls == 5
    assert status.progress == 100
    assert engine.last_job.stop_reason is StopReason.MAX_REQUESTS


def test_excluded_urls_from_config_are_not_enqueued(tmp_path):
    page = "<a href='/blocked'>x</a><a href='/b'>b</a>"
    fetcher = _PageFetcher({"https://example.test/a": page, "https://example.test/b": ""})
    engine = _engine(tmp_path, fetcher, excluded_urls=["https://example.test/blocked"])
    assert engine.start(["https://example.test/a"]).success
    assert engine.join(timeout=10)
    assert "https://example.test/blocked" not in fetcher.calls
    assert engine.status().total_urls == 2


def test_status_is_published_after_every_change(tmp_path):
    sink = Mock()
    fetcher = _PageFetcher({"https://example.test/b": PAGE_B})
    engine = _engine(tmp_path, fetcher, status_sink=sink)
    engine.start(["https://example.test/b"], single_url_mode=True)
    assert engine.join(timeout=10)

    published = [c.args[0] for c in sink.publish.call_args_list]
    assert published[0].is_running is True
    assert published[-1].is_running is False
    assert published[-1].progress == 100
    assert any(s.current_url == "https://example.test/b" for s in published)


def test_status_before_any_job_falls_back_to_sink(tmp_path):
    sink = Mock()
    sink.last_published.return_value = CrawlStatus(is_running=True, state="running", progress=40, total_urls=10)
    engine = _engine(tmp_path, _PageFetcher({}), status_sink=sink)

    status = engine.status()
    assert status.is_running is False
    assert status.state == "idle"
    assert status.progress == 40

    assert _engine(tmp_path, _PageFetcher({})).status() == CrawlStatus()


def test_join_without_job_returns_immediately(tmp_path):
    assert _engine(tmp_path, _PageFetcher({})).join(timeout=0.1)


def test_error_log_is_bounded(tmp_path):
    seeds = [f"https://example.test/missing{i}" for i in range(6)]
    engine = _engine(tmp_path, _PageFetcher({}), error_log_size=4)
    assert engine.start(seeds).success
    assert engine.join(timeout=10)
    status = engine.status()
    assert len(status.errors) == 4
    assert status.suppressed_errors == 2
    assert status.failed_urls == 6


def test_unextractable_page_is_recorded_as_failure(tmp_path):
    class _BinaryFetcher(_PageFetcher):
        def fetch(self, url, stop_event=None):
            self.calls.append(url)
            return HttpResponse(200, b"\x89PNG")

    engine = _engine(tmp_path, _BinaryFetcher({}))
    assert engine.start(["https://example.test/logo"]).success
    assert engine.join(timeout=10)

    status = engine.status()
    assert status.failed_urls == 1
    assert status.processed_urls == 1
    assert status.errors == (
        "Failed to crawl https://example.test/logo: "
        "Cannot extract links from bytes content of https://example.test/logo",
    )
    assert engine.last_job.stop_reason is StopReason.COMPLETED
