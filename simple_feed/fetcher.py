from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Dict, Optional
from urllib.parse import urlsplit

import requests

from .exceptions import FeedFetchError, FeedNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SEC = 15.0

DEFAULT_HEADERS: Dict[str, str] = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/127.0.0.0 Safari/537.36"
    ),
    "Accept": "application/rss+xml, application/atom+xml, application/xml;q=0.9, */*;q=0.8",
}


@dataclass(frozen=True)
class FeedDocument:
    data: bytes
    location: str
    base_uri: Optional[str] = None


def is_web_url(location: str) -> bool:
    parts = urlsplit(location)
    return parts.scheme in ("http", "https") and bool(parts.netloc)


def _fetch_url(url: str, *, session: Optional[requests.Session], timeout: float,
               headers: Optional[Dict[str, str]]) -> FeedDocument:
    merged = {**DEFAULT_HEADERS, **(headers or {})}
    getter = session.get if session is not None else requests.get
    logger.debug("Fetching feed from %s", url)
    try:
        resp = getter(url, headers=merged, timeout=timeout)
        if resp.status_code >= 400:
            logger.warning("Feed fetch failed (%s): %s", resp.status_code, url)
        resp.raise_for_status()
    except requests.RequestException as e:
        raise FeedFetchError(f"Failed to fetch feed: {url} ({e})") from e
    # Redirects change the base for relative links.
    return FeedDocument(data=resp.content, location=url, base_uri=resp.url or url)


def _read_file(path: str) -> FeedDocument:
    if not os.path.isfile(path):
        raise FeedNotFoundError(f"The file '{path}' was not found.")
    logger.debug("Reading feed from file %s", path)
    try:
        with open(path, "rb") as fh:
            data = fh.read()
    except OSError as e:
        raise FeedFetchError(f"Failed to read feed file: {path} ({e})") from e
    return FeedDocument(data=data, location=path)


def fetch_document(
    location: str,
    *,
    session: Optional[requests.Session] = None,
    timeout: float = DEFAULT_TIMEOUT_SEC,
    headers: Optional[Dict[str, str]] = None,
) -> FeedDocument:
    """
    Load a feed document from an http(s) URL or a local file path.

    Raises FeedFetchError on network/HTTP errors and FeedNotFoundError when
    the location is not a URL and no such file exists.
    """
    if is_web_url(location):
        return _fetch_url(location, session=session, timeout=timeout, headers=headers)
    return _read_file(location)
