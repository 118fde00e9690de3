"""Dependency injection container for the application."""
from dependency_injector import containers, providers
import requests

from invitecrawl import config as env
from invitecrawl.domain.crawl_settings import CrawlSettings
from invitecrawl.services.blob_store import FileBlobStore
from invitecrawl.services.config_service import ConfigService
from invitecrawl.services.crawl_engine import CrawlEngine
from invitecrawl.services.crawl_profile_loader import CrawlProfileLoader
from invitecrawl.services.fetcher_factory import FetcherFactory
from invitecrawl.services.http_service import HttpService
from invitecrawl.services.link_extractor import LinkExtractor
from invitecrawl.services.result_store import ResultStore
from invitecrawl.services.status_sink import BlobStatusSink
from invitecrawl.services.target_matcher import TargetMatcher, TargetPatterns


# Environment variables used by the container (read via `invitecrawl.config` helpers).
#
# Notes:
# - Types are enforced by the helper used (`get_int_env`, `get_float_env`, etc.).
# - Defaults shown here are the effective defaults used when the env var is unset.
# - These are injected into services via `config = providers.Configuration(default=ENV)`.
#
# INVITECRAWL_DATA_DIR (str, default: "<cwd>/data")
#   Root directory of the JSON blob store (settings, seed URLs, status, results).
#
# USER_AGENT (str, default: desktop Chrome)
#   User-Agent header for static fetches and the headless browser context.
#
# HTTP_TIMEOUT (int seconds, default: 30)
#   Network timeout of a single static HTTP request.
#
# INVITECRAWL_HOST / INVITECRAWL_PORT (default: "0.0.0.0" / 8000)
#   Bind address of the HTTP control surface.
#
# INVITECRAWL_PROFILE (str | optional)
#   YAML crawl profile applied at startup (seed URLs, settings, excluded URLs).
#
# INVITECRAWL_INVITE_HOST (str, default: "chat.whatsapp.com")
#   Host of canonical invite links; loose matches are normalized onto it.
#
# INVITECRAWL_ERROR_LOG_SIZE (int, default: 100)
#   Number of most recent error messages kept in the crawl status.
#
# INVITECRAWL_FRONTIER_VIEW_SIZE (int, default: 100)
#   Number of most recent frontier entries exposed in the crawl status.
#
# INVITECRAWL_MAX_CONCURRENCY, INVITECRAWL_MAX_REQUESTS_PER_CRAWL,
# INVITECRAWL_MAX_REQUEST_RETRIES, INVITECRAWL_REQUEST_HANDLER_TIMEOUT_SECS,
# INVITECRAWL_NAVIGATION_TIMEOUT_SECS, INVITECRAWL_SAME_DOMAIN_DELAY_SECS,
# INVITECRAWL_USE_HEADLESS
#   Defaults for crawl settings that were never saved through the API.
ENV = {
    "INVITECRAWL_DATA_DIR": env.data_dir(),
    "USER_AGENT": env.get_str_env("USER_AGENT", env.DEFAULT_USER_AGENT),
    "HTTP_TIMEOUT": env.get_int_env("HTTP_TIMEOUT", 30),
    "INVITECRAWL_HOST": env.get_str_env("INVITECRAWL_HOST", "0.0.0.0"),
    "INVITECRAWL_PORT": env.get_int_env("INVITECRAWL_PORT", 8000),
    "INVITECRAWL_PROFILE": env.profile_path(),
    "INVITECRAWL_INVITE_HOST": env.get_str_env("INVITECRAWL_INVITE_HOST", "chat.whatsapp.com").strip().lower(),
    "INVITECRAWL_ERROR_LOG_SIZE": env.get_int_env("INVITECRAWL_ERROR_LOG_SIZE", 100),
    "INVITECRAWL_FRONTIER_VIEW_SIZE": env.get_int_env("INVITECRAWL_FRONTIER_VIEW_SIZE", 100),
    "INVITECRAWL_MAX_CONCURRENCY": env.get_int_env("INVITECRAWL_MAX_CONCURRENCY", 5),
    "INVITECRAWL_MAX_REQUESTS_PER_CRAWL": env.get_int_env("INVITECRAWL_MAX_REQUESTS_PER_CRAWL", 100),
    "INVITECRAWL_MAX_REQUEST_RETRIES": env.get_int_env("INVITECRAWL_MAX_REQUEST_RETRIES", 3),
    "INVITECRAWL_REQUEST_HANDLER_TIMEOUT_SECS": env.get_float_env("INVITECRAWL_REQUEST_HANDLER_TIMEOUT_SECS", 60),
    "INVITECRAWL_NAVIGATION_TIMEOUT_SECS": env.get_float_env("INVITECRAWL_NAVIGATION_TIMEOUT_SECS", 30),
    "INVITECRAWL_SAME_DOMAIN_DELAY_SECS": env.get_float_env("INVITECRAWL_SAME_DOMAIN_DELAY_SECS", 1),
    "INVITECRAWL_USE_HEADLESS": env.get_bool_env("INVITECRAWL_USE_HEADLESS", False),
}


class Container(containers.DeclarativeContainer):
    """Dependency injection container for InviteCrawl application."""

    # Configuration
    config = providers.Configuration(default=ENV)

    default_settings = providers.Singleton(
        CrawlSettings,
        max_concurrency=config.INVITECRAWL_MAX_CONCURRENCY.as_(int),
        max_requests_per_crawl=config.INVITECRAWL_MAX_REQUESTS_PER_CRAWL.as_(int),
        max_request_retries=config.INVITECRAWL_MAX_REQUEST_RETRIES.as_(int),
        request_handler_timeout_secs=config.INVITECRAWL_REQUEST_HANDLER_TIMEOUT_SECS.as_(float),
        navigation_timeout_secs=config.INVITECRAWL_NAVIGATION_TIMEOUT_SECS.as_(float),
        same_domain_delay_secs=config.INVITECRAWL_SAME_DOMAIN_DELAY_SECS.as_(float),
        use_headless=config.INVITECRAWL_USE_HEADLESS.as_(bool),
    )

    # Storage - Singleton so every service shares one data directory
    blob_store = providers.Singleton(
        FileBlobStore,
        base_dir=config.INVITECRAWL_DATA_DIR.as_(str),
    )

    result_store = providers.Singleton(
        ResultStore,
        blob_store=blob_store,
    )

    status_sink = providers.Singleton(
        BlobStatusSink,
        blob_store=blob_store,
    )

    config_service = providers.Singleton(
        ConfigService,
        blob_store=blob_store,
        defaults=default_settings,
    )

    profile_loader = providers.Singleton(
        CrawlProfileLoader
    )

    # Services - Singleton instances
    http_service = providers.Singleton(
        HttpService,
        user_agent=config.USER_AGENT.as_(str),
        http_client=providers.Object(requests.get),
        timeout=config.HTTP_TIMEOUT.as_(int)
    )

    fetcher_factory = providers.Singleton(
        FetcherFactory,
        http_service=http_service,
        user_agent=config.USER_AGENT.as_(str),
    )

    target_matcher = providers.Singleton(
        TargetMatcher,
        patterns=providers.Factory(
            TargetPatterns,
            invite_host=config.INVITECRAWL_INVITE_HOST.as_(str),
        ),
    )

    link_extractor = providers.Singleton(
        LinkExtractor,
        matcher=target_matcher,
    )

    # Engine - Singleton: only one crawl job may run per process
    crawl_engine = providers.Singleton(
        CrawlEngine,
        fetcher_factory=fetcher_factory,
        link_extractor=link_extractor,
        result_store=result_store,
        config_provider=config_service,
        status_sink=status_sink,
        target_matcher=target_matcher,
        error_log_size=config.INVITECRAWL_ERROR_LOG_SIZE.as_(int),
        frontier_view_size=config.INVITECRAWL_FRONTIER_VIEW_SIZE.as_(int),
    )
