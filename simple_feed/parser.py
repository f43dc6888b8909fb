from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urljoin, urlsplit
import time
import xml.etree.ElementTree as ET
from xml.parsers import expat

import feedparser

from .exceptions import FeedParseError
from .syndication import ExtensionElement, RawFeed, RawItem, RawLink

logger = logging.getLogger(__name__)

_XML_DECL_RE = re.compile(r"^\s*<\?xml[^>]*\?>")

_RSS1_NS = "http://purl.org/rss/1.0/"
_ATOM_NS = "http://www.w3.org/2005/Atom"
_ATOM03_NS = "http://purl.org/atom/ns#"
_DC_NS = "http://purl.org/dc/elements/1.1/"
_ITUNES_NS = "http://www.itunes.com/dtds/podcast-1.0.dtd"
_MEDIA_NS = "http://search.yahoo.com/mrss/"

# Elements each format defines for an entry; everything else is an extension.
_STANDARD_ELEMENTS = {
    None: {"title", "link", "description", "author", "category", "comments",
           "enclosure", "guid", "pubDate", "source"},
    _RSS1_NS: {"title", "link", "description"},
    _ATOM_NS: {"author", "category", "content", "contributor", "id", "link",
               "published", "rights", "source", "summary", "title", "updated"},
    _ATOM03_NS: {"author", "content", "contributor", "created", "id", "issued",
                 "link", "modified", "summary", "title"},
}
_ITEM_TAGS = {"item", f"{{{_RSS1_NS}}}item", f"{{{_ATOM_NS}}}entry", f"{{{_ATOM03_NS}}}entry"}

# Children feedparser turns into an entry's summary.
_SUMMARY_ELEMENTS = {
    (None, "description"), (_RSS1_NS, "description"), (_ATOM_NS, "summary"),
    (_ATOM03_NS, "summary"), (_DC_NS, "description"), (_ITUNES_NS, "summary"),
    (_MEDIA_NS, "description"),
}


@dataclass(frozen=True)
class ItemScan:
    """
    What the ElementTree pass saw for one item.

    None for `has_summary` or `categories` means the document could not be
    walked and feedparser's view is used instead.
    """
    extensions: Tuple[ExtensionElement, ...] = ()
    has_summary: Optional[bool] = None
    categories: Optional[Tuple[str, ...]] = None


def _get(entry: Dict[str, Any], key: str, default: Any = None) -> Any:
    # Plain dict lookup: FeedParserDict.get aliases "updated" to "published".
    return dict.get(entry, key, default)


def _to_datetime(value: Any) -> Optional[datetime]:
    """Convert a feedparser *_parsed struct_time (always UTC) to an aware datetime."""
    if isinstance(value, time.struct_time):
        try:
            return datetime(*value[:6], tzinfo=timezone.utc)
        except ValueError:
            logger.debug("Discarding out of range date %r", value)
    return None


def _text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _split_tag(tag: str) -> Tuple[Optional[str], str]:
    if tag.startswith("{"):
        namespace, _, local = tag[1:].partition("}")
        return namespace, local
    return None, tag


def _get_links(entry: Dict[str, Any], base_uri: Optional[str] = None) -> Tuple[RawLink, ...]:
    links = []
    for link in _get(entry, "links") or []:
        href = link.get("href")
        if isinstance(href, str) and href.strip():
            href = href.strip()
            if base_uri:
                href = urljoin(base_uri, href)
            links.append(RawLink(href=href, rel=link.get("rel"), type=link.get("type")))
    return tuple(links)


def _get_content(entry: Dict[str, Any]) -> Optional[str]:
    contents = _get(entry, "content")
    if isinstance(contents, list) and contents:
        return contents[0].get("value")
    return None


def _get_authors(entry: Dict[str, Any]) -> Tuple[str, ...]:
    authors = []
    for author in _get(entry, "authors") or []:
        name = author.get("name") or author.get("email")
        if isinstance(name, str) and name.strip():
            authors.append(name.strip())
    return tuple(authors)


def _get_categories(entry: Dict[str, Any]) -> Tuple[str, ...]:
    categories = []
    for tag in _get(entry, "tags") or []:
        term = tag.get("term")
        if isinstance(term, str) and term.strip():
            categories.append(term.strip())
    return tuple(categories)


def parse_entry(
    entry: Dict[str, Any],
    scan: Optional[ItemScan] = None,
    *,
    base_uri: Optional[str] = None,
) -> RawItem:
    """Map a raw feedparser entry onto a RawItem."""
    scan = scan or ItemScan()
    summary = _text(_get(entry, "summary"))
    # feedparser copies content into summary when the entry has none.
    if scan.has_summary is False:
        summary = None
    categories = scan.categories if scan.categories is not None else _get_categories(entry)
    return RawItem(
        id=_text(_get(entry, "id")),
        title=_text(_get(entry, "title")),
        summary=summary,
        content=_get_content(entry),
        links=_get_links(entry, base_uri),
        published=_to_datetime(_get(entry, "published_parsed")),
        updated=_to_datetime(_get(entry, "updated_parsed")),
        authors=_get_authors(entry),
        categories=categories,
        extensions=scan.extensions,
    )


def _category_name(namespace: Optional[str], local: str, child: ET.Element) -> Optional[str]:
    if local == "category" and namespace is None:
        return "".join(child.itertext()).strip()
    if local == "category" and namespace == _ATOM_NS:
        return (child.get("term") or "").strip()
    if local == "subject" and namespace == _DC_NS:
        return "".join(child.itertext()).strip()
    return None


def _scan_item(node: ET.Element) -> ItemScan:
    item_ns, _ = _split_tag(node.tag)
    standard = _STANDARD_ELEMENTS.get(item_ns, set())
    extensions = []
    categories = []
    has_summary = False
    for child in node:
        if not isinstance(child.tag, str):
            continue
        namespace, local = _split_tag(child.tag)
        if (namespace, local) in _SUMMARY_ELEMENTS:
            has_summary = True
        category = _category_name(namespace, local, child)
        if category is not None:
            categories.append(category)
        if namespace == item_ns and local in standard:
            continue
        extensions.append(ExtensionElement(
            name=local,
            text="".join(child.itertext()),
            namespace=namespace,
            attributes=dict(child.attrib),
        ))
    return ItemScan(extensions=tuple(extensions), has_summary=has_summary, categories=tuple(categories))


def _parse_tree(data: bytes, encoding: Optional[str] = None) -> ET.Element:
    try:
        return ET.fromstring(data)
    except ET.ParseError:
        if not encoding:
            raise
    # Mis-declared encoding: decode the way feedparser did and drop the declaration.
    try:
        text = data.decode(encoding)
    except (LookupError, UnicodeDecodeError) as e:
        raise ET.ParseError(str(e)) from e
    return ET.fromstring(_XML_DECL_RE.sub("", text, count=1))


def scan_items(data: bytes, encoding: Optional[str] = None) -> List[ItemScan]:
    """
    Walk the document with ElementTree and report on every item/entry.

    feedparser keeps only the last of several same-named unknown elements,
    merges repeated categories and fills in summaries from content, so the
    raw structure is read once more here. `encoding` is the encoding
    feedparser settled on, used when the declared one is wrong.
    """
    try:
        root = _parse_tree(data, encoding)
    except ET.ParseError as e:
        raise FeedParseError(f"Malformed feed document ({e})") from e
    return [_scan_item(node) for node in root.iter() if node.tag in _ITEM_TAGS]


def collect_extensions(data: bytes) -> List[Tuple[ExtensionElement, ...]]:
    """Return the extension elements of every item/entry, in document order."""
    return [scan.extensions for scan in scan_items(data)]


class _RootReached(Exception):
    pass


def _check_prolog(data: bytes) -> None:
    """Reject documents whose DTD declares entities; only the prolog is read."""
    declared: List[str] = []

    def on_entity(name, *args):
        declared.append(name)

    def on_start(name, attrs):
        raise _RootReached()

    parser = expat.ParserCreate()
    parser.EntityDeclHandler = on_entity
    parser.StartElementHandler = on_start
    try:
        parser.Parse(data, True)
    except _RootReached:
        pass
    except expat.ExpatError as e:
        # Malformed documents are reported by feedparser below.
        logger.debug("Prolog check stopped early: %s", e)
    if declared:
        raise FeedParseError(f"DTD entity declarations are not allowed in feeds: {', '.join(declared)}")


def parse_feed(data: bytes, *, base_uri: Optional[str] = None) -> RawFeed:
    """
    Parse an RSS/Atom document into a RawFeed.

    Raises FeedParseError for malformed documents and for documents that
    declare DTD entities.
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    _check_prolog(data)

    parsed = feedparser.parse(data)

    encoding_override = False
    if getattr(parsed, "bozo", 0):
        exc = getattr(parsed, "bozo_exception", None)
        if not isinstance(exc, feedparser.CharacterEncodingOverride):
            msg = "Invalid RSS/Atom feed"
            if base_uri:
                msg += f": {base_uri}"
            if exc:
                msg += f" ({exc})"
            raise FeedParseError(msg)
        logger.debug("Ignoring encoding override for %s: %s", base_uri, exc)
        encoding_override = True

    entries = getattr(parsed, "entries", None)
    if not isinstance(entries, list):
        raise FeedParseError(f"Feed has no entries: {base_uri}")

    try:
        scans = scan_items(data, getattr(parsed, "encoding", None))
    except FeedParseError as e:
        if not encoding_override:
            raise
        logger.warning("Could not walk %s (%s); ignoring extension elements", base_uri or "<document>", e)
        scans = [ItemScan()] * len(entries)
    if len(scans) != len(entries):
        logger.warning(
            "Found %d entries but %d item elements in %s; ignoring extension elements",
            len(entries), len(scans), base_uri or "<document>",
        )
        scans = [ItemScan()] * len(entries)

    # Relative links only make sense against a web location.
    link_base = base_uri if base_uri and urlsplit(base_uri).scheme in ("http", "https") else None
    meta = getattr(parsed, "feed", None) or {}
    return RawFeed(
        title=_text(_get(meta, "title")),
        link=_text(_get(meta, "link")),
        subtitle=_text(_get(meta, "subtitle")),
        language=_text(_get(meta, "language")),
        updated=_to_datetime(_get(meta, "updated_parsed")),
        items=tuple(parse_entry(e, scan, base_uri=link_base) for e, scan in zip(entries, scans)),
    )
