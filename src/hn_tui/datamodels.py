from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from .errors import DecodeError

ITEM_PAGE_URL = "https://news.ycombinator.com/item?id={id}"


# --- Data models ---
class Category(Enum):
    TOP = "top"
    NEW = "new"
    BEST = "best"

    def __str__(self) -> str:
        return self.value.capitalize()

    @property
    def endpoint(self) -> str:
        return f"{self.value}stories.json"

    @property
    def label(self) -> str:
        return f"{self} Stories"

    @classmethod
    def parse(cls, name: str) -> Category:
        try:
            return cls(name.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown category: {name}") from None


@dataclass(frozen=True)
class Story:
    id: int
    by: str
    score: int
    time: int
    title: str
    type: str
    url: Optional[str] = None
    text: Optional[str] = None
    kids: List[int] = field(default_factory=list)
    descendants: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Any, story_id: int) -> Story:
        """Decode an item payload, raising DecodeError on anything unexpected."""
        if data is None:
            raise DecodeError(f"item {story_id} does not exist")
        if not isinstance(data, dict):
            raise DecodeError(
                f"item {story_id}: expected an object, got {type(data).__name__}"
            )

        kids = _optional(data, "kids", list, story_id) or []
        if not all(_is_int(k) for k in kids):
            raise DecodeError(f"item {story_id}: 'kids' must hold integers")

        return cls(
            id=story_id,
            by=_required(data, "by", str, story_id),
            score=_required(data, "score", int, story_id),
            time=_required(data, "time", int, story_id),
            title=_required(data, "title", str, story_id),
            type=_required(data, "type", str, story_id),
            url=_optional(data, "url", str, story_id),
            text=_optional(data, "text", str, story_id),
            kids=kids,
            descendants=_optional(data, "descendants", int, story_id),
        )

    @property
    def comments_url(self) -> str:
        return ITEM_PAGE_URL.format(id=self.id)

    @property
    def link(self) -> str:
        # Ask HN and other self posts have no external url
        return self.url or self.comments_url

    @property
    def domain(self) -> str:
        host = urlparse(self.link).hostname
        if not host:
            return self.link
        return host[4:] if host.startswith("www.") else host

    @property
    def plain_text(self) -> str:
        if not self.text:
            return ""
        soup = BeautifulSoup(self.text, "lxml")
        for p in soup.find_all("p"):
            p.insert_before("\n\n")
        paragraphs = [p.strip() for p in soup.get_text().split("\n\n")]
        return "\n\n".join(p for p in paragraphs if p)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _check(value: Any, kind: type) -> bool:
    if kind is int:
        return _is_int(value)
    return isinstance(value, kind)


def _required(data: dict, key: str, kind: type, story_id: int) -> Any:
    if key not in data:
        raise DecodeError(f"item {story_id}: missing field '{key}'")
    value = data[key]
    if not _check(value, kind):
        raise DecodeError(
            f"item {story_id}: field '{key}' should be {kind.__name__}, "
            f"got {type(value).__name__}"
        )
    return value


def _optional(data: dict, key: str, kind: type, story_id: int) -> Any:
    if data.get(key) is None:
        return None
    return _required(data, key, kind, story_id)
