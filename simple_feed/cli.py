"""Command line entry point: print the normalized items of one or more feeds."""
from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import List, Optional

from dotenv import load_dotenv

from .core import FeedReader, FeedReaderOptions
from .exceptions import FeedReaderError
from .models import FeedItem

logger = logging.getLogger(__name__)


def configure_logging(level: Optional[str] = None) -> None:
    level = (level or os.getenv("LOG_LEVEL") or "WARNING").upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stderr,
    )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="simple-feed",
        description="Fetch RSS/Atom feeds (URLs or files) and print normalized items",
    )
    parser.add_argument("locations", nargs="+", help="Feed URLs or local file paths")
    parser.add_argument(
        "--throw-on-error",
        action="store_true",
        default=None,
        help="Stop at the first feed that cannot be retrieved instead of skipping it",
    )
    parser.add_argument("--timeout", type=float, default=None, help="HTTP timeout in seconds")
    parser.add_argument("--workers", type=int, default=None, help="Number of feeds fetched in parallel")
    parser.add_argument("--json", action="store_true", help="Print one JSON object per item")
    parser.add_argument("--log-level", default=None, help="Logging level (default: LOG_LEVEL or WARNING)")
    return parser.parse_args(argv)


def _item_to_dict(item: FeedItem) -> dict:
    return {
        "id": item.id,
        "title": item.title,
        "uri": item.uri,
        "summary": item.get_summary(),
        "content": item.get_content(),
        "images": list(item.images),
        "categories": list(item.categories),
        "publish_date": item.publish_date.isoformat() if item.publish_date else None,
        "last_updated_date": item.last_updated_date.isoformat() if item.last_updated_date else None,
    }


def _format_line(item: FeedItem) -> str:
    date = item.last_updated_date.strftime("%Y-%m-%d %H:%M") if item.last_updated_date else "-"
    return f"{date}  {item.title or '(untitled)'}  <{item.uri or '-'}>"


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    args = parse_args(argv)
    configure_logging(args.log_level)

    overrides = {}
    if args.throw_on_error:
        overrides["throw_on_error"] = True
    if args.timeout is not None:
        overrides["timeout_sec"] = args.timeout
    if args.workers is not None:
        overrides["max_workers"] = args.workers

    try:
        reader = FeedReader(options=FeedReaderOptions.from_env(**overrides))
        items = reader.retrieve_feeds(args.locations)
    except FeedReaderError as e:
        logger.error("%s", e)
        return 1

    for item in items:
        if args.json:
            print(json.dumps(_item_to_dict(item), ensure_ascii=False))
        else:
            print(_format_line(item))
    return 0
