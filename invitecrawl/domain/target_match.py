from dataclasses import dataclass
from typing import Iterable, Mapping


@dataclass(frozen=True)
class TargetMatch:
    """An invite code and the canonical absolute URL it was found as."""

    code: str
    url: str

    def to_dict(self) -> dict:
        return {"code": self.code, "url": self.url}

    @classmethod
    def from_dict(cls, data: Mapping) -> "TargetMatch":
        return cls(code=str(data["code"]), url=str(data["url"]))


def dedupe_by_code(matches: Iterable[TargetMatch]) -> list[TargetMatch]:
    """Keep the first match seen for each code, preserving order."""
    seen = {}
    for m in matches:
        if m.code not in seen:
            seen[m.code] = m
    return list(seen.values())
