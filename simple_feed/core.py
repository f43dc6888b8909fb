from __future__ import annotations

import concurrent.futures as _fut
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, List, Optional, Union

import requests

from .exceptions import ConfigurationError, FeedReaderError
from .fetcher import DEFAULT_TIMEOUT_SEC, fetch_document
from .normalizer import DefaultFeedItemNormalizer, FeedItemNormalizer
from .parser import parse_feed

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_number(name: str, value: str, kind: Callable[[str], Any]) -> Any:
    try:
        return kind(value.strip())
    except ValueError:
        expected = "an integer" if kind is int else "a number"
        raise ConfigurationError(f"{name} must be {expected}, got {value!r}") from None


@dataclass
class FeedReaderOptions:
    normalizer: Optional[FeedItemNormalizer[Any]] = None
    throw_on_error: bool = False
    timeout_sec: float = DEFAULT_TIMEOUT_SEC
    max_workers: int = 4
    user_agent: Optional[str] = None
    session: Optional[requests.Session] = field(default=None, repr=False)

    @classmethod
    def from_env(cls, **overrides: Any) -> "FeedReaderOptions":
        """
        Build options from SIMPLE_FEED_* environment variables.

        Keyword arguments take precedence over the environment.
        """
        values: dict = {}
        throw = os.getenv("SIMPLE_FEED_THROW_ON_ERROR")
        if throw is not None:
            values["throw_on_error"] = throw.strip().lower() in _TRUE_VALUES
        timeout = os.getenv("SIMPLE_FEED_TIMEOUT")
        if timeout and "timeout_sec" not in overrides:
            values["timeout_sec"] = _env_number("SIMPLE_FEED_TIMEOUT", timeout, float)
        workers = os.getenv("SIMPLE_FEED_MAX_WORKERS")
        if workers and "max_workers" not in overrides:
            values["max_workers"] = _env_number("SIMPLE_FEED_MAX_WORKERS", workers, int)
        agent = os.getenv("SIMPLE_FEED_USER_AGENT")
        if agent:
            values["user_agent"] = agent
        values.update(overrides)
        return cls(**values)


class FeedReader:
    """
    High-level API: retrieve RSS/Atom feeds and return normalized items.

    Pipeline: fetch (URL or file) -> parse -> normalize each entry, keeping
    the order of the document.

    With ``throw_on_error`` false (the default) a feed that cannot be fetched,
    parsed or normalized is logged and contributes no items.
    """

    def __init__(
        self,
        normalizer: Optional[FeedItemNormalizer[Any]] = None,
        *,
        throw_on_error: Optional[bool] = None,
        options: Optional[FeedReaderOptions] = None,
    ) -> None:
        self.options = options or FeedReaderOptions()
        self.default_normalizer: FeedItemNormalizer[Any] = (
            normalizer or self.options.normalizer or DefaultFeedItemNormalizer()
        )
        self.throw_on_error = self.options.throw_on_error if throw_on_error is None else throw_on_error

    def read_feed(
        self,
        data: Union[bytes, str],
        normalizer: Optional[FeedItemNormalizer[Any]] = None,
        *,
        base_uri: Optional[str] = None,
    ) -> List[Any]:
        """Parse an in-memory feed document and normalize its items."""
        normalizer = normalizer or self.default_normalizer
        try:
            feed = parse_feed(data, base_uri=base_uri)
            return [normalizer.normalize(feed, item) for item in feed.items]
        except FeedReaderError as e:
            if self.throw_on_error:
                raise
            logger.warning("Skipping feed %s: %s", base_uri or "<document>", e)
        return []

    def retrieve_feed(self, location: str, normalizer: Optional[FeedItemNormalizer[Any]] = None) -> List[Any]:
        """Fetch a feed from a URL or file path and normalize its items."""
        headers = {"User-Agent": self.options.user_agent} if self.options.user_agent else None
        try:
            doc = fetch_document(
                location,
                session=self.options.session,
                timeout=self.options.timeout_sec,
                headers=headers,
            )
        except FeedReaderError as e:
            if self.throw_on_error:
                raise
            logger.warning("Skipping feed %s: %s", location, e)
            return []

        items = self.read_feed(doc.data, normalizer, base_uri=doc.base_uri or doc.location)
        logger.info("Retrieved %d items from %s", len(items), location)
        return items

    def retrieve_feeds(self, locations: Iterable[str], normalizer: Optional[FeedItemNormalizer[Any]] = None) -> List[Any]:
        """
        Retrieve several feeds concurrently.

        Items are returned feed by feed in the order the locations were given.
        """
        locations = list(locations)
        max_workers = max(1, int(self.options.max_workers or 1))
        if max_workers == 1 or len(locations) <= 1:
            results = [self.retrieve_feed(loc, normalizer) for loc in locations]
        else:
            with _fut.ThreadPoolExecutor(max_workers=min(max_workers, len(locations))) as ex:
                results = list(ex.map(lambda loc: self.retrieve_feed(loc, normalizer), locations))

        out: List[Any] = []
        for items in results:
            out.extend(items)
        return out
