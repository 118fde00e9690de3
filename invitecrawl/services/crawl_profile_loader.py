import logging
import os

import yaml

from invitecrawl.domain.crawl_profile import CrawlProfile
from invitecrawl.domain.crawl_settings import CrawlSettings
from invitecrawl.exceptions import ConfigNotFoundError, CrawlValidationError

logger = logging.getLogger(__name__)


class CrawlProfileLoader:
    """Parse a YAML crawl profile into a CrawlProfile.

    Responsibility: filesystem IO and schema checks for profile files.
    It does NOT persist anything; see ConfigService.apply_profile.
    """

    def load(self, config_path: str) -> CrawlProfile:
        if not os.path.isfile(config_path):
            raise ConfigNotFoundError(config_path)
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigNotFoundError(config_path, f"could not be read: {e}") from e
        return self.parse(data, config_path=config_path)

    def parse(self, data, *, config_path: str = None) -> CrawlProfile:
        if not isinstance(data, dict):
            raise CrawlValidationError(f"Profile {config_path or '<inline>'} must be a mapping")
        name = data.get("name")
        if not name:
            raise CrawlValidationError(f"Profile {config_path or '<inline>'} has no name")

        # A single URL string is accepted as a one-element list
        seed_urls = data.get("seed_urls") or []
        if isinstance(seed_urls, str):
            seed_urls = [seed_urls]
        if not isinstance(seed_urls, list):
            raise CrawlValidationError(f"Profile {name}: seed_urls must be a string or a list")

        settings_data = data.get("settings") or {}
        if not isinstance(settings_data, dict):
            raise CrawlValidationError(f"Profile {name}: settings must be a mapping")
        try:
            settings = CrawlSettings.from_dict(settings_data).clamped()
        except (TypeError, ValueError) as e:
            raise CrawlValidationError(f"Profile {name}: invalid settings: {e}") from e

        excluded_urls = data.get("excluded_urls") or []
        if not isinstance(excluded_urls, list):
            raise CrawlValidationError(f"Profile {name}: excluded_urls must be a list")

        profile = CrawlProfile(
            name=str(name),
            seed_urls=[str(u).strip() for u in seed_urls if u],
            settings=settings,
            excluded_urls=[str(u).strip() for u in excluded_urls if u],
            config_path=os.path.basename(config_path) if config_path else None,
        )
        logger.debug("Loaded %r", profile)
        return profile
