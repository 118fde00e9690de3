import logging
from typing import Callable, Optional, Protocol

from bs4 import BeautifulSoup

from invitecrawl.domain.control_result import ExtractionResult
from invitecrawl.domain.target_match import TargetMatch, dedupe_by_code
from invitecrawl.exceptions import ExtractionError
from invitecrawl.services.target_matcher import TargetMatcher
from invitecrawl.utils.urls import absolutize

logger = logging.getLogger(__name__)

# Attributes other than href that pages use to hide invite URLs.
URL_ATTRIBUTES = ("data-url", "data-link", "data-href", "src", "onclick")


class Extractor(Protocol):
    def extract(self, content: Optional[str], page_url: str) -> ExtractionResult: ...


class LinkExtractor:
    """Harvest invite matches and outbound hyperlinks from one page.

    Sources are scanned in order: hyperlink attributes, the other URL-bearing
    attributes, inline scripts, then the raw page text. A single unreadable
    element is skipped; if the document cannot be parsed at all only the raw
    text scan runs. Content that is not text raises ExtractionError.
    """

    def __init__(
        self,
        matcher: Optional[TargetMatcher] = None,
        soup_factory: Optional[Callable[[str], BeautifulSoup]] = None,
    ):
        self.matcher = matcher or TargetMatcher()
        self._soup_factory = soup_factory or (lambda html: BeautifulSoup(html, "html.parser"))

    def extract(self, content: Optional[str], page_url: str) -> ExtractionResult:
        if not content:
            return ExtractionResult(target_matches=(), outbound_links=())
        if not isinstance(content, str):
            raise ExtractionError(f"Cannot extract links from {type(content).__name__} content of {page_url}")

        matches: list[TargetMatch] = []
        links: list[str] = []

        soup = None
        try:
            soup = self._soup_factory(content)
        except Exception:
            logger.exception("Could not parse HTML from %s; scanning raw text only", page_url)

        if soup is not None:
            self._scan_hyperlinks(soup, page_url, matches, links)
            self._scan_attributes(soup, page_url, matches)
            self._scan_scripts(soup, page_url, matches)

        matches.extend(self.matcher.find_all(content))

        return ExtractionResult(
            target_matches=tuple(dedupe_by_code(matches)),
            outbound_links=tuple(dict.fromkeys(links)),
        )

    def _scan_hyperlinks(self, soup, page_url: str, matches: list, links: list) -> None:
        for el in soup.find_all(href=True):
            try:
                href = el.get("href")
                hit = self.matcher.match(href)
                if hit is not None:
                    matches.append(hit)
                if el.name == "a":
                    absolute = absolutize(page_url, href)
                    if absolute:
                        links.append(absolute)
            except Exception as e:
                logger.warning("Skipping unreadable <%s href> on %s: %s", getattr(el, "name", "?"), page_url, e)

    def _scan_attributes(self, soup, page_url: str, matches: list) -> None:
        for attr in URL_ATTRIBUTES:
            for el in soup.find_all(attrs={attr: True}):
                try:
                    value = el.get(attr)
                    if isinstance(value, list):
                        value = " ".join(value)
                    hit = self.matcher.match(value)
                    if hit is not None:
                        matches.append(hit)
                except Exception as e:
                    logger.warning("Skipping unreadable %s attribute on %s: %s", attr, page_url, e)

    def _scan_scripts(self, soup, page_url: str, matches: list) -> None:
        for script in soup.find_all("script"):
            try:
                body = script.string if script.string is not None else script.get_text()
                if not body:
                    continue
                matches.extend(self.matcher.find_all(body))
            except Exception as e:
                logger.warning("Skipping unreadable <script> on %s: %s", page_url, e)
