import logging
from typing import Optional, Protocol

from invitecrawl.domain.crawl_status import CrawlStatus
from invitecrawl.services.blob_store import BlobStore

logger = logging.getLogger(__name__)

STATUS_KEY = "status"


class StatusSink(Protocol):
    def publish(self, status: CrawlStatus) -> None: ...
    def last_published(self) -> Optional[CrawlStatus]: ...


class BlobStatusSink:
    """Mirrors the latest crawl status to the blob store for external polling."""

    def __init__(self, blob_store: BlobStore, key: str = STATUS_KEY):
        self._blobs = blob_store
        self._key = key

    def publish(self, status: CrawlStatus) -> None:
        try:
            self._blobs.write(self._key, status.to_dict())
        except Exception as e:
            logger.warning("Failed to persist crawl status: %s", e)

    def last_published(self) -> Optional[CrawlStatus]:
        raw = self._blobs.read(self._key)
        if not isinstance(raw, dict):
            return None
        try:
            return CrawlStatus.from_dict(raw)
        except (KeyError, TypeError, ValueError):
            logger.exception("Stored crawl status is unreadable")
            return None
