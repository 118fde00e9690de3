"""URL and domain helpers shared by the frontier, throttle and result store.

`registrable_domain` is a heuristic, not a public-suffix-list lookup: it keeps the
last two labels of a hostname, or the last three when the hostname ends in a
two-letter country code preceded by a short label (``co.uk``, ``com.br``).
Unusual suffixes (``github.io``, ``blogspot.com``) collapse to the suffix itself.
"""
import logging
import re
from typing import Optional
from urllib.parse import urldefrag, urljoin, urlparse

logger = logging.getLogger(__name__)

_IPV4 = re.compile(r"^\d{1,3}(?:\.\d{1,3}){3}$")
_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")

CRAWLABLE_SCHEMES = ("http", "https")


def is_valid_url(url) -> bool:
    if not isinstance(url, str) or not url.strip():
        return False
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return False
    return parsed.scheme in CRAWLABLE_SCHEMES and bool(parsed.hostname)


def hostname(url: str) -> Optional[str]:
    try:
        host = urlparse(url).hostname
    except ValueError:
        logger.debug("Could not parse URL: %s", url)
        return None
    return host.lower() if host else None


def registrable_domain(host: Optional[str]) -> Optional[str]:
    if not host:
        return None
    host = host.strip().lower().rstrip(".")
    if host.startswith("www."):
        host = host[4:]
    if _IPV4.match(host) or ":" in host:
        return host
    parts = [p for p in host.split(".") if p]
    if len(parts) <= 2:
        return ".".join(parts)
    if len(parts[-1]) == 2 and len(parts[-2]) <= 3:
        return ".".join(parts[-3:])
    return ".".join(parts[-2:])


def url_domain(url: str) -> Optional[str]:
    """Registrable domain of a URL or of a bare hostname."""
    if "//" not in url:
        return registrable_domain(url)
    return registrable_domain(hostname(url))


def same_domain(url: str, origin: str) -> bool:
    a = url_domain(url)
    b = url_domain(origin)
    return a is not None and a == b


def domain_bucket(url: str) -> str:
    """Storage bucket name for matches found on `url`: the domain's name label."""
    domain = url_domain(url)
    if not domain:
        host = re.sub(r"^https?://", "", url)
        domain = host.split("/")[0]
    label = domain
    if not _IPV4.match(domain):
        parts = domain.split(".")
        if len(parts) >= 2:
            label = parts[0]
    return _NON_ALNUM.sub("_", label).lower() or "unknown"


def absolutize(base_url: str, href: Optional[str]) -> Optional[str]:
    """Resolve `href` against `base_url`, dropping fragments and non-http(s) targets."""
    if not href:
        return None
    href = href.strip()
    if not href or href.startswith("#"):
        return None
    try:
        absolute, _ = urldefrag(urljoin(base_url, href))
    except ValueError:
        logger.debug("Could not resolve href %r against %s", href, base_url)
        return None
    if not is_valid_url(absolute):
        return None
    return absolute
