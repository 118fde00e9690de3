import logging
import threading
from typing import Iterable, Optional

from invitecrawl.domain.control_result import BucketMatches
from invitecrawl.domain.target_match import TargetMatch, dedupe_by_code
from invitecrawl.services.blob_store import BlobStore

logger = logging.getLogger(__name__)

RESULTS_PREFIX = "results/"


class ResultStore:
    """Accumulates invite matches per domain bucket, unique by code.

    Appends to one bucket are serialized by a per-bucket lock so concurrent
    pipelines never lose each other's read-modify-write.
    """

    def __init__(self, blob_store: BlobStore):
        self._blobs = blob_store
        self._locks_guard = threading.Lock()
        self._bucket_locks: dict[str, threading.Lock] = {}

    def _lock_for(self, bucket: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._bucket_locks.get(bucket)
            if lock is None:
                lock = threading.Lock()
                self._bucket_locks[bucket] = lock
            return lock

    def _load(self, bucket: str) -> list[TargetMatch]:
        raw = self._blobs.read(RESULTS_PREFIX + bucket)
        if not isinstance(raw, list):
            return []
        matches = []
        for item in raw:
            try:
                matches.append(TargetMatch.from_dict(item))
            except (KeyError, TypeError):
                logger.warning("Dropping malformed match in bucket %s: %r", bucket, item)
        return matches

    def append_matches(self, bucket: str, matches: Iterable[TargetMatch]) -> int:
        """Merge `matches` into `bucket`. Returns how many codes were new."""
        incoming = list(matches)
        if not incoming:
            return 0
        with self._lock_for(bucket):
            existing = self._load(bucket)
            merged = dedupe_by_code(existing + incoming)
            added = len(merged) - len(existing)
            if added:
                self._blobs.write(RESULTS_PREFIX + bucket, [m.to_dict() for m in merged])
                logger.info("Saved %d new invite link(s) to bucket %s", added, bucket)
            return added

    def get_bucket(self, bucket: str) -> Optional[BucketMatches]:
        if (RESULTS_PREFIX + bucket) not in self._blobs.list(RESULTS_PREFIX):
            return None
        return BucketMatches(bucket=bucket, matches=tuple(self._load(bucket)))

    def list_buckets(self) -> list[BucketMatches]:
        buckets = []
        for key in self._blobs.list(RESULTS_PREFIX):
            name = key[len(RESULTS_PREFIX):]
            buckets.append(BucketMatches(bucket=name, matches=tuple(self._load(name))))
        return buckets

    def list_matches(self) -> list[TargetMatch]:
        """Every stored match across buckets, unique by code."""
        return dedupe_by_code(m for b in self.list_buckets() for m in b.matches)
