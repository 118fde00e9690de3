import logging
import threading
from typing import Any, Mapping, Optional, Protocol

from invitecrawl.domain.crawl_profile import CrawlProfile
from invitecrawl.domain.crawl_settings import CrawlSettings
from invitecrawl.exceptions import CrawlValidationError, UrlValidationError
from invitecrawl.services.blob_store import BlobStore
from invitecrawl.utils.urls import is_valid_url

logger = logging.getLogger(__name__)

SETTINGS_KEY = "settings"
SEED_URLS_KEY = "seed_urls"
EXCLUDED_URLS_KEY = "excluded_urls"

_NUMERIC_FIELDS = tuple(f for f in CrawlSettings.field_names() if f != "use_headless")


class ConfigProvider(Protocol):
    def get_config(self) -> CrawlSettings: ...
    def get_excluded_urls(self) -> list[str]: ...


class ConfigService:
    """Crawl settings and seed URL list, persisted in the blob store.

    Settings are always returned merged over `defaults` and clamped, so the
    engine never sees out-of-range values.
    """

    def __init__(self, blob_store: BlobStore, defaults: Optional[CrawlSettings] = None):
        self._blobs = blob_store
        self.defaults = (defaults or CrawlSettings()).clamped()
        self._lock = threading.Lock()

    def get_config(self) -> CrawlSettings:
        raw = self._blobs.read(SETTINGS_KEY)
        if raw is not None and not isinstance(raw, dict):
            logger.warning("Ignoring stored settings of type %s", type(raw).__name__)
            raw = None
        try:
            return CrawlSettings.from_dict(raw, defaults=self.defaults).clamped()
        except (TypeError, ValueError):
            logger.exception("Stored settings are invalid; using defaults")
            return self.defaults

    def save_config(self, data: Mapping[str, Any]) -> CrawlSettings:
        """Validate, clamp and persist a full or partial settings update."""
        if not isinstance(data, Mapping):
            raise CrawlValidationError("Settings must be an object")
        updates = CrawlSettings.normalize_keys(data)
        for name in _NUMERIC_FIELDS:
            if name not in updates:
                continue
            value = updates[name]
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise CrawlValidationError(f"Setting '{name}' must be a number, got {value!r}")
        if "use_headless" in updates:
            updates["use_headless"] = bool(updates["use_headless"])
        with self._lock:
            settings = CrawlSettings.from_dict(updates, defaults=self.get_config()).clamped()
            self._blobs.write(SETTINGS_KEY, settings.to_dict())
        logger.info("Saved crawl settings: %s", settings.to_dict())
        return settings

    def _read_url_list(self, key: str) -> list[str]:
        raw = self._blobs.read(key)
        if not isinstance(raw, list):
            return []
        return [u for u in raw if isinstance(u, str)]

    def get_seed_urls(self) -> list[str]:
        return self._read_url_list(SEED_URLS_KEY)

    def add_seed_url(self, url: str) -> list[str]:
        """Append `url` to the seed list. Returns the updated list."""
        if not is_valid_url(url):
            raise UrlValidationError(str(url))
        url = url.strip()
        with self._lock:
            urls = self.get_seed_urls()
            if url in urls:
                raise UrlValidationError(url, "is already in the list")
            urls.append(url)
            self._blobs.write(SEED_URLS_KEY, urls)
        logger.info("Added seed URL %s", url)
        return urls

    def remove_seed_url(self, url: str) -> bool:
        with self._lock:
            urls = self.get_seed_urls()
            if url not in urls:
                return False
            urls.remove(url)
            self._blobs.write(SEED_URLS_KEY, urls)
        logger.info("Removed seed URL %s", url)
        return True

    def get_excluded_urls(self) -> list[str]:
        return self._read_url_list(EXCLUDED_URLS_KEY)

    def apply_profile(self, profile: CrawlProfile) -> CrawlSettings:
        """Persist a profile's settings and merge its seed and excluded URLs."""
        settings = self.save_config(profile.settings.to_dict())
        with self._lock:
            seeds = self.get_seed_urls()
            for url in profile.seed_urls:
                if not is_valid_url(url):
                    logger.warning("Profile %s: skipping invalid seed URL %r", profile.name, url)
                    continue
                if url not in seeds:
                    seeds.append(url)
            self._blobs.write(SEED_URLS_KEY, seeds)
            excluded = self.get_excluded_urls()
            for url in profile.excluded_urls:
                if url not in excluded:
                    excluded.append(url)
            self._blobs.write(EXCLUDED_URLS_KEY, excluded)
        logger.info("Applied crawl profile %s (%d seed URL(s))", profile.name, len(seeds))
        return settings
