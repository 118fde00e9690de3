import pytest

from invitecrawl.domain.crawl_profile import CrawlProfile
from invitecrawl.domain.crawl_settings import CrawlSettings
from invitecrawl.exceptions import CrawlValidationError, UrlValidationError
from invitecrawl.services.blob_store import FileBlobStore
from invitecrawl.services.config_service import SETTINGS_KEY, ConfigService


@pytest.fixture
def blobs(tmp_path):
    return FileBlobStore(base_dir=str(tmp_path))


def test_get_config_defaults_when_unset(blobs):
    assert ConfigService(blobs).get_config() == CrawlSettings()


def test_get_config_uses_injected_defaults(blobs):
    service = ConfigService(blobs, defaults=CrawlSettings(max_concurrency=9))
    assert service.get_config().max_concurrency == 9


def test_get_config_merges_and_clamps_stored_values(blobs):
    blobs.write(SETTINGS_KEY, {"maxConcurrency": 500, "max_request_retries": -2, "unknown": True})
    settings = ConfigService(blobs).get_config()
    assert settings.max_concurrency == 50
    assert settings.max_request_retries == 0
    assert settings.max_requests_per_crawl == 100


def test_get_config_ignores_garbage(blobs, caplog):
    blobs.write(SETTINGS_KEY, ["not", "a", "dict"])
    assert ConfigService(blobs).get_config() == CrawlSettings()
    blobs.write(SETTINGS_KEY, {"max_concurrency": "many"})
    assert ConfigService(blobs).get_config() == CrawlSettings()
    assert "Stored settings are invalid" in caplog.text


def test_save_config_partial_update_persists(blobs):
    service = ConfigService(blobs)
    saved = service.save_config({"sameDomainDelaySecs": 0, "use_headless": 1})
    assert saved.same_domain_delay_secs == 0
    assert saved.use_headless is True
    assert ConfigService(blobs).get_config() == saved


def test_save_config_clamps(blobs):
    saved = ConfigService(blobs).save_config({"max_concurrency": 0, "request_handler_timeout_secs": 0.2})
    assert saved.max_concurrency == 1
    assert saved.request_handler_timeout_secs == 1.0


@pytest.mark.parametrize("payload", [{"max_concurrency": "5"}, {"max_request_retries": True}, {"maxRequestsPerCrawl": None}])
def test_save_config_rejects_bad_types(blobs, payload):
    with pytest.raises(CrawlValidationError, match="must be a number"):
        ConfigService(blobs).save_config(payload)


def test_save_config_requires_mapping(blobs):
    with pytest.raises(CrawlValidationError):
        ConfigService(blobs).save_config(["max_concurrency", 5])


def test_seed_urls_add_and_remove(blobs):
    service = ConfigService(blobs)
    assert service.get_seed_urls() == []
    assert service.add_seed_url(" https://groups.test/ ") == ["https://groups.test/"]
    service.add_seed_url("https://more.test/")
    assert service.get_seed_urls() == ["https://groups.test/", "https://more.test/"]
    assert service.remove_seed_url("https://groups.test/") is True
    assert service.remove_seed_url("https://groups.test/") is False
    assert service.get_seed_urls() == ["https://more.test/"]


def test_add_seed_url_rejects_malformed_and_duplicates(blobs):
    service = ConfigService(blobs)
    with pytest.raises(UrlValidationError, match="is not a valid http"):
        service.add_seed_url("groups.test")
    service.add_seed_url("https://groups.test/")
    with pytest.raises(UrlValidationError, match="already in the list"):
        service.add_seed_url("https://groups.test/")


def test_apply_profile_merges_seeds_and_excludes(blobs):
    service = ConfigService(blobs)
    service.add_seed_url("https://keep.test/")
    profile = CrawlProfile(
        name="groups",
        seed_urls=["https://keep.test/", "https://new.test/", "not-a-url"],
        settings=CrawlSettings(max_concurrency=3),
        excluded_urls=["https://new.test/spam"],
    )
    settings = service.apply_profile(profile)
    assert settings.max_concurrency == 3
    assert service.get_config().max_concurrency == 3
    assert service.get_seed_urls() == ["https://keep.test/", "https://new.test/"]
    assert service.get_excluded_urls() == ["https://new.test/spam"]
