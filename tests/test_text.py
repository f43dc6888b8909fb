import re

import pytest

from simple_feed.text import TextNormalizer, html_decode, normalize_text

TAG_RE = re.compile(r"<[^>]*>")
CONTROL_RE = re.compile(r"[\x00-\x1f\x7f]")
WHITESPACE_RE = re.compile(r"\s{2,}")

SAMPLES = [
    "  <b>Lorem</b>\n\n ipsum  ",
    "foo&amp;amp;bar",
    "&lt;p&gt;Escaped &amp;lt;i&amp;gt;markup&amp;lt;/i&amp;gt;&lt;/p&gt;",
    "tab\tseparated\x00values\x7fhere",
    "<div class=\"x\">\r\n  <a href=\"http://example.org\">link</a>\r\n</div>",
    "Café crème",
    "plain text",
    "   ",
    "a &nbsp;&nbsp; b",
]


def test_none_passes_through():
    assert normalize_text(None) is None


def test_empty_string_passes_through():
    assert normalize_text("") == ""


def test_double_encoded_entities_are_fully_decoded():
    assert normalize_text("foo&amp;amp;bar") == "foo&bar"


def test_tags_and_whitespace_are_removed():
    assert normalize_text("  <b>Lorem</b>\n\n ipsum  ") == "Lorem ipsum"


def test_encoded_tags_are_stripped():
    assert normalize_text("&lt;p&gt;Hello&lt;/p&gt; world") == "Hello world"


def test_control_chars_become_spaces():
    assert normalize_text("a\x00b\x07c\x7fd") == "a b c d"


def test_single_newline_becomes_space():
    assert normalize_text("line one\nline two") == "line one line two"


def test_unicode_is_nfc_normalized():
    assert normalize_text("Cafe\u0301") == "Caf\u00e9"


def test_whitespace_only_input_trims_to_empty():
    assert normalize_text(" \n\t ") == ""


def test_value_decoding_to_nothing_is_returned_early():
    assert html_decode("") == ""


def test_runaway_encoding_yields_none():
    value = "foo&" + "amp;" * 6 + "bar"
    assert normalize_text(value) is None


def test_encoding_just_below_threshold_decodes():
    value = "foo&" + "amp;" * 4 + "bar"
    assert normalize_text(value) == "foo&bar"


def test_threshold_is_configurable():
    value = "foo&" + "amp;" * 6 + "bar"
    assert normalize_text(value, decode_threshold=10) == "foo&bar"
    assert TextNormalizer(decode_threshold=10)(value) == "foo&bar"
    assert TextNormalizer(decode_threshold=2).normalize("foo&amp;amp;bar") is None


def test_threshold_must_be_positive():
    with pytest.raises(ValueError):
        TextNormalizer(decode_threshold=0)


def test_non_text_value_is_rejected():
    with pytest.raises(TypeError):
        normalize_text(b"bytes")  # type: ignore[arg-type]


@pytest.mark.parametrize("value", SAMPLES)
def test_output_is_clean(value):
    out = normalize_text(value)
    assert out is not None
    assert not TAG_RE.search(out)
    assert not CONTROL_RE.search(out)
    assert not WHITESPACE_RE.search(out)
    assert out == out.strip()


@pytest.mark.parametrize("value", SAMPLES)
def test_normalization_is_idempotent(value):
    once = normalize_text(value)
    assert normalize_text(once) == once
