from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple


@dataclass(frozen=True)
class FeedItem:
    """
    Normalized representation of a single feed entry.

    Text fields hold plain text only: no markup, no control characters and no
    runs of whitespace. Extended records should wrap an instance rather than
    subclass it.
    """
    id: Optional[str] = None
    title: Optional[str] = None
    content: Optional[str] = None
    summary: Optional[str] = None
    uri: Optional[str] = None
    images: Tuple[str, ...] = ()
    categories: Tuple[str, ...] = ()
    publish_date: Optional[datetime] = None
    last_updated_date: Optional[datetime] = None

    def get_content(self) -> Optional[str]:
        """Content if non-empty, otherwise the summary."""
        return self.content if self.content else self.summary

    def get_summary(self) -> Optional[str]:
        """Summary if non-empty, otherwise the content."""
        return self.summary if self.summary else self.content
