"""
Generic syndication model produced by the parser and consumed by normalizers.

These records mirror what a feed document says, untouched: text may still
contain markup or entities and timestamps may be missing.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class RawLink:
    href: str
    rel: Optional[str] = None
    type: Optional[str] = None


@dataclass(frozen=True)
class ExtensionElement:
    """A non-standard child element of an entry; ``name`` is the local name."""
    name: str
    text: str = ""
    namespace: Optional[str] = None
    attributes: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class RawItem:
    id: Optional[str] = None
    title: Optional[str] = None
    summary: Optional[str] = None
    content: Optional[str] = None
    links: Tuple[RawLink, ...] = ()
    published: Optional[datetime] = None
    updated: Optional[datetime] = None
    authors: Tuple[str, ...] = ()
    categories: Tuple[str, ...] = ()
    extensions: Tuple[ExtensionElement, ...] = ()


@dataclass(frozen=True)
class RawFeed:
    title: Optional[str] = None
    link: Optional[str] = None
    subtitle: Optional[str] = None
    language: Optional[str] = None
    updated: Optional[datetime] = None
    items: Tuple[RawItem, ...] = ()
