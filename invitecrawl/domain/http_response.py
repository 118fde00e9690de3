from typing import NamedTuple, Optional


class HttpResponse(NamedTuple):
    """Page content returned by a fetch strategy."""
    status_code: int
    text: str
    content_type: Optional[str] = None
    rendered: bool = False
