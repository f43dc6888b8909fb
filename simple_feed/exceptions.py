class FeedReaderError(Exception):
    """Base class for all errors raised by simple_feed."""


class FeedFetchError(FeedReaderError):
    """Raised when a feed document cannot be retrieved."""


class FeedNotFoundError(FeedFetchError, FileNotFoundError):
    """Raised when a feed location is neither a URL nor an existing file."""


class FeedParseError(FeedReaderError):
    """Raised when a feed document cannot be parsed."""


class InvalidFeedItemError(FeedReaderError, ValueError):
    """Raised when an entry carries a value that cannot be mapped (e.g. a bad image URI)."""


class ConfigurationError(FeedReaderError, ValueError):
    """Raised when a SIMPLE_FEED_* setting cannot be understood."""
