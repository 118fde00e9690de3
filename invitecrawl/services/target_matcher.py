"""Recognizes invite codes in URLs, attribute values and free text.

Compiled `re.Pattern` objects carry no scan position; every call builds its own
match iterator, so one call can never affect the next.
"""
import logging
import re
from dataclasses import dataclass
from typing import Callable, Iterable, NamedTuple, Optional

from invitecrawl.domain.target_match import TargetMatch, dedupe_by_code
from invitecrawl.utils.urls import registrable_domain

logger = logging.getLogger(__name__)

STRICT_CODE_LENGTH = 22
MIN_CODE_LENGTH = 8


@dataclass(frozen=True)
class TargetPatterns:
    """Host names that identify invite links."""

    invite_host: str = "chat.whatsapp.com"
    alternate_hosts: tuple[str, ...] = ("wa.me", "api.whatsapp.com")
    loose_hosts: Optional[tuple[str, ...]] = None

    def effective_loose_hosts(self) -> tuple[str, ...]:
        if self.loose_hosts is not None:
            return self.loose_hosts
        hosts = [registrable_domain(self.invite_host) or self.invite_host]
        hosts.extend(h for h in self.alternate_hosts if registrable_domain(h) == h and h not in hosts)
        return tuple(hosts)


class Recognizer(NamedTuple):
    name: str
    pattern: re.Pattern
    min_length: int
    build_url: Callable[[re.Match, str], str]


def _alternation(hosts: Iterable[str]) -> str:
    return "|".join(re.escape(h) for h in hosts)


def _ensure_scheme(m: re.Match, code: str) -> str:
    raw = m.group(0)
    return raw if raw.lower().startswith("http") else f"https://{raw}"


def build_recognizers(patterns: TargetPatterns) -> tuple[Recognizer, ...]:
    """Recognizers in priority order: strict, alternate, loose."""
    invite = re.escape(patterns.invite_host)
    recognizers = [
        Recognizer(
            name="strict",
            pattern=re.compile(rf"https://{invite}(?:/invite)?/([A-Za-z0-9]{{{STRICT_CODE_LENGTH}}})"),
            min_length=STRICT_CODE_LENGTH,
            build_url=lambda m, code: m.group(0),
        ),
    ]
    if patterns.alternate_hosts:
        recognizers.append(
            Recognizer(
                name="alternate",
                pattern=re.compile(
                    rf"(?:https?://)?(?:www\.)?(?:{_alternation(patterns.alternate_hosts)})/(?:join|send)/?([A-Za-z0-9_-]+)"
                ),
                min_length=MIN_CODE_LENGTH,
                build_url=_ensure_scheme,
            )
        )
    loose = patterns.effective_loose_hosts()
    if loose:
        recognizers.append(
            Recognizer(
                name="loose",
                pattern=re.compile(
                    rf"(?:{_alternation(loose)})[/\\:]?(?:invite)?[/\\:]?([A-Za-z0-9]{{{MIN_CODE_LENGTH},}})",
                    re.IGNORECASE,
                ),
                min_length=MIN_CODE_LENGTH,
                build_url=lambda m, code: f"https://{patterns.invite_host}/{code}",
            )
        )
    return tuple(recognizers)


class TargetMatcher:
    def __init__(self, patterns: Optional[TargetPatterns] = None):
        self.patterns = patterns or TargetPatterns()
        self._recognizers = build_recognizers(self.patterns)

    @property
    def recognizers(self) -> tuple[Recognizer, ...]:
        return self._recognizers

    def match(self, text: Optional[str]) -> Optional[TargetMatch]:
        """Return the match from the first recognizer that fires, or None."""
        if not text or not isinstance(text, str):
            return None
        for rec in self._recognizers:
            m = rec.pattern.search(text)
            if m is None:
                continue
            code = m.group(1)
            if len(code) < rec.min_length:
                continue
            return TargetMatch(code=code, url=rec.build_url(m, code))
        return None

    def find_all(self, text: Optional[str]) -> list[TargetMatch]:
        """Scan the whole text with the strict and alternate recognizers."""
        if not text or not isinstance(text, str):
            return []
        found = []
        for rec in self._recognizers:
            if rec.name == "loose":
                continue
            for m in rec.pattern.finditer(text):
                hit = self.match(m.group(0))
                if hit is not None:
                    found.append(hit)
        return dedupe_by_code(found)

    def is_target(self, url: Optional[str]) -> bool:
        return self.match(url) is not None


_default_matcher = TargetMatcher()


def match(text: Optional[str]) -> Optional[TargetMatch]:
    return _default_matcher.match(text)


def find_all(text: Optional[str]) -> list[TargetMatch]:
    return _default_matcher.find_all(text)
