from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Optional, Protocol, Tuple, TypeVar
from urllib.parse import urlsplit

from .exceptions import InvalidFeedItemError
from .models import FeedItem
from .syndication import RawFeed, RawItem, RawLink
from .text import DEFAULT_DECODE_THRESHOLD, TextNormalizer

ItemT = TypeVar("ItemT", covariant=True)

# Some producers emit the minimum date instead of leaving the element out.
MIN_DATE = datetime.min.replace(tzinfo=timezone.utc)

IMAGE_ELEMENT = "image"


class FeedItemNormalizer(Protocol[ItemT]):
    def normalize(self, feed: RawFeed, item: RawItem) -> ItemT:  # pragma: no cover - interface
        ...


def is_absolute_uri(value: Optional[str], schemes: Optional[Iterable[str]] = None) -> bool:
    """
    True when `value` is an absolute URI.

    Without `schemes` any scheme is accepted as long as something follows it
    (``urn:isbn:123``). With `schemes` the scheme must be one of them and a
    host is required.
    """
    if not value:
        return False
    try:
        parts = urlsplit(value)
    except ValueError:
        return False
    if not parts.scheme:
        return False
    if schemes is None:
        return bool(parts.netloc or parts.path)
    return parts.scheme.lower() in schemes and bool(parts.netloc)


def _is_unset(value: Optional[datetime]) -> bool:
    return value is None or value == MIN_DATE


class DefaultFeedItemNormalizer:
    """
    Maps a RawItem onto a FeedItem.

    Title, content and summary end up as plain text (see `simple_feed.text`).
    The last-updated date falls back to the publish date when the feed does
    not provide one.

    Custom normalizers should hold an instance of this class and adjust the
    raw item before, or the FeedItem after, calling `normalize`.
    """

    # Schemes an entry id must use to stand in for a missing alternate link.
    uri_schemes: Tuple[str, ...] = ("http", "https")

    def __init__(self, decode_threshold: int = DEFAULT_DECODE_THRESHOLD) -> None:
        self.text = TextNormalizer(decode_threshold)

    def normalize(self, feed: RawFeed, item: RawItem) -> FeedItem:
        published = item.published
        return FeedItem(
            id=item.id.strip() if item.id else None,
            title=self.text.normalize(item.title),
            content=self.text.normalize(item.content),
            summary=self.text.normalize(item.summary),
            uri=self._get_uri(item),
            images=self._get_images(item),
            categories=tuple(item.categories),
            publish_date=published,
            last_updated_date=published if _is_unset(item.updated) else item.updated,
        )

    def _get_uri(self, item: RawItem) -> Optional[str]:
        link = _find_alternate_link(item.links)
        if link is not None:
            return link.href
        candidate = item.id.strip() if item.id else None
        if is_absolute_uri(candidate, self.uri_schemes):
            return candidate
        return None

    def _get_images(self, item: RawItem) -> Tuple[str, ...]:
        images = []
        for ext in item.extensions:
            if ext.name != IMAGE_ELEMENT:
                continue
            value = (ext.text or "").strip()
            if not is_absolute_uri(value):
                raise InvalidFeedItemError(f"Invalid image URI: {value!r}")
            images.append(value)
        return tuple(images)


def _find_alternate_link(links: Iterable[RawLink]) -> Optional[RawLink]:
    for link in links:
        if not link.href:
            continue
        if link.rel is None or link.rel.lower() == "alternate":
            return link
    return None
