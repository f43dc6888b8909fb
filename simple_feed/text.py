from __future__ import annotations

import html
import re
import unicodedata
from typing import Optional

DEFAULT_DECODE_THRESHOLD = 5

# Compiled once, shared read-only by every caller.
_HTML_TAG_RE = re.compile(r"<[^>]*>")
_CONTROL_CHARS_RE = re.compile(r"[\x00-\x1f\x7f]")
_WHITESPACE_RE = re.compile(r"\s{2,}")


def html_decode(value: str, threshold: int = DEFAULT_DECODE_THRESHOLD) -> Optional[str]:
    """
    Decode HTML entities until the string stops changing.

    Feeds regularly double or triple encode their text (``&amp;amp;``), so a
    single pass is not enough. Returns None when the value is still changing
    after `threshold` passes.
    """
    count = 0
    decoded = html.unescape(value)
    while decoded != value and count < threshold:
        count += 1
        value = decoded
        decoded = html.unescape(value)
    if count >= threshold:
        return None
    return decoded


def strip_html(value: str) -> str:
    return _HTML_TAG_RE.sub(" ", value)


def remove_control_chars(value: str) -> str:
    return _CONTROL_CHARS_RE.sub(" ", value)


def collapse_whitespace(value: str) -> str:
    return _WHITESPACE_RE.sub(" ", value)


def normalize_text(value: Optional[str], *, decode_threshold: int = DEFAULT_DECODE_THRESHOLD) -> Optional[str]:
    """
    Turn feed text into clean plain text.

    Steps: decode entities (repeatedly) -> strip tags -> remove control chars
    -> collapse whitespace -> NFC + trim. None and "" are returned as-is; text
    that never stabilizes while decoding yields None.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        raise TypeError(f"Expected text, got {type(value).__name__}")
    if not value:
        return value

    decoded = html_decode(value, decode_threshold)
    if not decoded:
        return decoded

    text = strip_html(decoded)
    text = collapse_whitespace(remove_control_chars(text))
    return unicodedata.normalize("NFC", text).strip()


class TextNormalizer:
    """Callable wrapper around `normalize_text` with a configurable decode threshold."""

    def __init__(self, decode_threshold: int = DEFAULT_DECODE_THRESHOLD) -> None:
        if decode_threshold < 1:
            raise ValueError("decode_threshold must be at least 1")
        self.decode_threshold = decode_threshold

    def normalize(self, value: Optional[str]) -> Optional[str]:
        return normalize_text(value, decode_threshold=self.decode_threshold)

    __call__ = normalize
