import pytest

from invitecrawl.domain.crawl_job import CrawlJob, CrawlMode, StopReason
from invitecrawl.domain.crawl_settings import CrawlSettings
from invitecrawl.domain.crawl_status import CrawlStatus, compute_progress
from invitecrawl.domain.frontier_entry import FrontierEntry, UrlState
from invitecrawl.utils.datetime_utils import utcnow


@pytest.mark.parametrize(
    "processed,total,expected",
    [
        (0, 0, 0),
        (5, 0, 0),
        (0, 10, 0),
        (1, 3, 33),
        (2, 3, 67),
        (1, 200, 1),
        (1, 201, 0),
        (10, 10, 100),
        (12, 10, 100),
    ],
)
def test_compute_progress(processed, total, expected):
    assert compute_progress(processed, total) == expected


def test_with_running_switches_state():
    status = CrawlStatus(is_running=True, state="running", progress=40)
    idle = status.with_running(False)
    assert idle.is_running is False
    assert idle.state == "idle"
    assert idle.progress == 40


def test_from_dict_clamps_negative_pending():
    status = CrawlStatus.from_dict({"pending_urls": -4, "errors": ["x"]})
    assert status.pending_urls == 0
    assert status.errors == ("x",)
    assert status.start_time is None


def test_to_dict_serializes_entries():
    entry = FrontierEntry("https://x.test/", utcnow(), UrlState.DONE)
    data = CrawlStatus(enqueued_urls=(entry,)).to_dict()
    assert data["enqueued_urls"][0]["url"] == "https://x.test/"
    assert data["enqueued_urls"][0]["status"] == "done"


def test_frontier_entry_transitions():
    entry = FrontierEntry("https://x.test/", utcnow())
    assert entry.can_transition_to(UrlState.PROCESSING)
    assert entry.can_transition_to(UrlState.FAILED)
    assert not entry.can_transition_to(UrlState.PENDING)
    entry.state = UrlState.DONE
    assert not entry.can_transition_to(UrlState.FAILED)


def test_crawl_job_finish():
    job = CrawlJob(mode=CrawlMode.SINGLE_URL, seed_urls=("https://x.test/",), settings=CrawlSettings())
    assert job.single_url_mode
    assert not job.is_finished
    job.finish(StopReason.STOPPED)
    assert job.is_finished
    assert job.stop_reason is StopReason.STOPPED
