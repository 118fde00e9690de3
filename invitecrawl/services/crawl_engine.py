"""
Crawl engine: one job at a time, many concurrent fetch pipelines.

A coordinator thread pulls pending URLs from the frontier and submits one
pipeline per URL to a thread pool bounded by `max_concurrency`. Pipelines
fetch, extract, store matches and enqueue same-domain links. The frontier,
the counters and status publishing share a single lock.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from enum import Enum
from typing import Iterable, Optional

from invitecrawl.domain.control_result import ControlResult
from invitecrawl.domain.crawl_job import CrawlJob, CrawlMode, StopReason
from invitecrawl.domain.crawl_settings import CrawlSettings
from invitecrawl.domain.crawl_status import CrawlStatus
from invitecrawl.exceptions import EngineFatalError, ExtractionError, FetchCancelledError, FetchError
from invitecrawl.services.config_service import ConfigProvider
from invitecrawl.services.crawl_policy import CrawlPolicy
from invitecrawl.services.crawl_status_tracker import CrawlStatusTracker
from invitecrawl.services.fetcher import Fetcher
from invitecrawl.services.fetcher_factory import FetcherFactory
from invitecrawl.services.frontier import Frontier
from invitecrawl.services.link_extractor import LinkExtractor
from invitecrawl.services.result_store import ResultStore
from invitecrawl.services.status_sink import StatusSink
from invitecrawl.services.target_matcher import TargetMatcher
from invitecrawl.utils.datetime_utils import utcnow
from invitecrawl.utils.urls import domain_bucket, is_valid_url

logger = logging.getLogger(__name__)


class EngineState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPING = "stopping"


class CrawlEngine:
    """Owns the current CrawlJob, its frontier and its status.

    Control calls never raise for expected conditions; they return a
    ControlResult instead.
    """

    def __init__(
        self,
        *,
        fetcher_factory: FetcherFactory,
        link_extractor: LinkExtractor,
        result_store: ResultStore,
        config_provider: ConfigProvider,
        status_sink: Optional[StatusSink] = None,
        target_matcher: Optional[TargetMatcher] = None,
        error_log_size: int = 100,
        frontier_view_size: int = 100,
        exclude_globs: Optional[Iterable[str]] = None,
    ):
        self.fetcher_factory = fetcher_factory
        self.link_extractor = link_extractor
        self.result_store = result_store
        self.config_provider = config_provider
        self.status_sink = status_sink
        self.target_matcher = target_matcher or getattr(link_extractor, "matcher", None) or TargetMatcher()
        self.frontier_view_size = int(frontier_view_size)
        self.exclude_globs = exclude_globs

        self._lock = threading.Lock()
        self._state = EngineState.IDLE
        self._tracker = CrawlStatusTracker(max_errors=int(error_log_size))
        self._frontier: Optional[Frontier] = None
        self._job: Optional[CrawlJob] = None
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    # Control surface

    def start(
        self,
        urls: Iterable[str],
        single_url_mode: bool = False,
        settings: Optional[CrawlSettings] = None,
    ) -> ControlResult:
        with self._lock:
            if self._state is not EngineState.IDLE:
                return ControlResult.rejected("Crawler is already running")

            seeds: list[str] = []
            for url in urls or ():
                if not is_valid_url(url):
                    return ControlResult.rejected(f"Invalid URL: {url!r}")
                url = url.strip()
                if url not in seeds:
                    seeds.append(url)
            if not seeds:
                return ControlResult.rejected("No URLs to crawl. Please add some URLs first.")

            try:
                settings = (settings or self.config_provider.get_config()).clamped()
                policy = CrawlPolicy(exclude_globs=self.exclude_globs, excluded_urls=self._excluded_urls())
            except Exception as e:
                logger.exception("Could not prepare crawl job")
                return ControlResult.rejected(f"Could not start crawler: {e}")

            now = utcnow()
            mode = CrawlMode.SINGLE_URL if single_url_mode else CrawlMode.FULL
            job = CrawlJob(mode=mode, seed_urls=tuple(seeds), settings=settings, started_at=now)
            frontier = Frontier(policy, view_size=self.frontier_view_size)
            frontier.seed(seeds)
            self._tracker.reset(total=len(seeds), now=now)

            self._job = job
            self._frontier = frontier
            self._stop_event = threading.Event()
            self._state = EngineState.RUNNING
            self._publish_locked()

            self._thread = threading.Thread(
                target=self._run,
                args=(job, frontier, self._stop_event),
                name=f"crawl-{job.job_id[:8]}",
                daemon=True,
            )
            self._thread.start()

        logger.info("Started %s crawl %s with %d URL(s): %s", mode.value, job.job_id, len(seeds), settings)
        return ControlResult.ok(f"Crawler started with {len(seeds)} URL(s)")

    def crawl_single(self, url: str) -> ControlResult:
        """Fetch one URL without following its links."""
        return self.start([url], single_url_mode=True)

    def stop(self) -> ControlResult:
        with self._lock:
            if self._state is EngineState.IDLE:
                return ControlResult.rejected("Crawler is not running")
            if self._state is EngineState.STOPPING:
                return ControlResult.ok("Crawler stop already requested")
            self._state = EngineState.STOPPING
            self._stop_event.set()
            self._publish_locked()
        logger.info("Stop requested for crawl %s", self._job.job_id if self._job else None)
        return ControlResult.ok("Crawler stop requested")

    def is_running(self) -> bool:
        with self._lock:
            return self._state is not EngineState.IDLE

    def status(self) -> CrawlStatus:
        with self._lock:
            if self._job is not None:
                return self._snapshot_locked()
        if self.status_sink is not None:
            last = self.status_sink.last_published()
            if last is not None:
                return last.with_running(False)
        return CrawlStatus()

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the current job to finish. Returns False on timeout."""
        thread = self._thread
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()

    @property
    def last_job(self) -> Optional[CrawlJob]:
        return self._job

    @property
    def state(self) -> EngineState:
        return self._state

    # Job execution

    def _excluded_urls(self) -> list[str]:
        getter = getattr(self.config_provider, "get_excluded_urls", None)
        return list(getter() or ()) if callable(getter) else []

    def _run(self, job: CrawlJob, frontier: Frontier, stop_event: threading.Event) -> None:
        fetcher = None
        reason = StopReason.COMPLETED
        try:
            fetcher = self.fetcher_factory.get(job.settings)
            reason = self._dispatch(job, frontier, fetcher, stop_event)
        except Exception as e:
            logger.exception("Crawler error in job %s", job.job_id)
            stop_event.set()
            cause = e.__cause__ if isinstance(e, EngineFatalError) and e.__cause__ else e
            with self._lock:
                self._tracker.record_error(f"Crawler error: {cause}", utcnow())
            reason = StopReason.FATAL
        finally:
            if fetcher is not None and hasattr(fetcher, "close"):
                try:
                    fetcher.close()
                except Exception:
                    logger.warning("Failed to close fetcher", exc_info=True)
            self._finalize(job, reason)

    def _dispatch(self, job: CrawlJob, frontier: Frontier, fetcher: Fetcher, stop_event: threading.Event) -> StopReason:
        settings = job.settings
        dispatched = 0
        in_flight: set[Future] = set()
        with ThreadPoolExecutor(max_workers=settings.max_concurrency, thread_name_prefix="crawl-worker") as pool:
            while True:
                while (
                    not stop_event.is_set()
                    and len(in_flight) < settings.max_concurrency
                    and dispatched < settings.max_requests_per_crawl
                ):
                    with self._lock:
                        url = frontier.next_pending()
                    if url is None:
                        break
                    dispatched += 1
                    in_flight.add(pool.submit(self._process_url, job, frontier, fetcher, url, stop_event))

                if not in_flight:
                    break
                done, in_flight = wait(in_flight, return_when=FIRST_COMPLETED)
                for future in done:
                    exc = future.exception()
                    if exc is not None:
                        stop_event.set()
                        raise EngineFatalError(str(exc)) from exc

        if stop_event.is_set():
            return StopReason.STOPPED
        with self._lock:
            if frontier.pending_count > 0 and dispatched >= settings.max_requests_per_crawl:
                logger.info("Reached max requests per crawl (%d)", settings.max_requests_per_crawl)
                return StopReason.MAX_REQUESTS
        return StopReason.COMPLETED

    def _process_url(
        self,
        job: CrawlJob,
        frontier: Frontier,
        fetcher: Fetcher,
        url: str,
        stop_event: threading.Event,
    ) -> None:
        if stop_event.is_set():
            logger.debug("Stop requested; leaving %s pending", url)
            return

        with self._lock:
            frontier.mark_processing(url)
            self._tracker.set_current(url, utcnow())
            self._publish_locked()

        try:
            response = fetcher.fetch(url, stop_event=stop_event)
        except FetchCancelledError as e:
            logger.info("Fetch cancelled for %s", url)
            self._record_failure(frontier, url, e.message, log_error=False)
            return
        except FetchError as e:
            self._record_failure(frontier, url, e.message)
            return

        try:
            extraction = self.link_extractor.extract(response.text, url)
        except ExtractionError as e:
            self._record_failure(frontier, url, str(e))
            return

        if extraction.target_matches:
            self.result_store.append_matches(domain_bucket(url), extraction.target_matches)

        links = ()
        if not job.single_url_mode and not stop_event.is_set():
            links = [link for link in extraction.outbound_links if not self.target_matcher.is_target(link)]

        with self._lock:
            now = utcnow()
            if links:
                admitted = frontier.discover(links, url)
                self._tracker.record_discovered(admitted, now)
            frontier.mark_done(url)
            self._tracker.record_processed(failed=False, now=now)
            self._publish_locked()

        logger.info(
            "Crawled %s: %d invite link(s), %d outbound link(s)",
            url,
            len(extraction.target_matches),
            len(extraction.outbound_links),
        )

    def _record_failure(self, frontier: Frontier, url: str, reason: str, log_error: bool = True) -> None:
        if log_error:
            logger.warning("Failed to crawl %s: %s", url, reason)
        with self._lock:
            now = utcnow()
            frontier.mark_failed(url)
            if log_error:
                self._tracker.record_error(f"Failed to crawl {url}: {reason}", now)
            self._tracker.record_processed(failed=True, now=now)
            self._publish_locked()

    def _finalize(self, job: CrawlJob, reason: StopReason) -> None:
        with self._lock:
            now = utcnow()
            job.finish(reason, now)
            self._tracker.finish(now)
            self._state = EngineState.IDLE
            self._publish_locked()
            processed = self._tracker.processed_urls
            failed = self._tracker.failed_urls
        logger.info(
            "Crawl %s finished (%s): %d processed, %d failed",
            job.job_id,
            reason.value,
            processed,
            failed,
        )

    # Status

    def _snapshot_locked(self) -> CrawlStatus:
        frontier_view = None
        if self._frontier is not None:
            frontier_view = self._frontier.snapshot(self.frontier_view_size)
        return self._tracker.snapshot(
            is_running=self._state is not EngineState.IDLE,
            state=self._state.value,
            frontier=frontier_view,
        )

    def _publish_locked(self) -> None:
        if self.status_sink is None:
            return
        self.status_sink.publish(self._snapshot_locked())
