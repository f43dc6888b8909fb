"""
simple_feed

A small library that reads RSS/Atom feeds and returns clean, plain-text items.

Core ideas:
- Input: feed URLs, local file paths or in-memory documents
- Process: fetch -> parse (feedparser) -> normalize each entry
- Output: List[FeedItem] with HTML, entities, control characters and
  redundant whitespace removed

Example
-------
from simple_feed import FeedReader

reader = FeedReader()
items = reader.retrieve_feeds([
    "https://feeds.bbci.co.uk/news/rss.xml",
    "feeds/local.atom",
])

for item in items:
    print(item.last_updated_date, item.title, item.uri)

Custom normalization
--------------------
Any object with a ``normalize(feed, item)`` method can replace the default
normalizer. Wrap `DefaultFeedItemNormalizer` to keep the standard behavior:

class AuthorNormalizer:
    def __init__(self):
        self.default = DefaultFeedItemNormalizer()

    def normalize(self, feed, item):
        return AuthoredItem(self.default.normalize(feed, item), item.authors)
"""
from .models import FeedItem
from .core import FeedReader, FeedReaderOptions
from .exceptions import (
    ConfigurationError,
    FeedFetchError,
    FeedNotFoundError,
    FeedParseError,
    FeedReaderError,
    InvalidFeedItemError,
)
from .normalizer import DefaultFeedItemNormalizer, FeedItemNormalizer
from .syndication import ExtensionElement, RawFeed, RawItem, RawLink
from .text import TextNormalizer, normalize_text

__all__ = [
    "FeedItem",
    "FeedReader",
    "FeedReaderOptions",
    "FeedItemNormalizer",
    "DefaultFeedItemNormalizer",
    "TextNormalizer",
    "normalize_text",
    "RawFeed",
    "RawItem",
    "RawLink",
    "ExtensionElement",
    "FeedReaderError",
    "FeedFetchError",
    "FeedNotFoundError",
    "FeedParseError",
    "InvalidFeedItemError",
    "ConfigurationError",
]
