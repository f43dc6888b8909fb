import dataclasses
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

import pytest

from simple_feed.exceptions import InvalidFeedItemError
from simple_feed.models import FeedItem
from simple_feed.normalizer import MIN_DATE, DefaultFeedItemNormalizer, is_absolute_uri
from simple_feed.syndication import ExtensionElement, RawFeed, RawItem, RawLink

FEED = RawFeed(title="Example", link="http://example.org/")
PUBLISHED = datetime(2014, 4, 16, 13, 57, 35, tzinfo=timezone(timedelta(hours=2)))


@pytest.fixture
def normalizer():
    return DefaultFeedItemNormalizer()


def test_text_fields_are_normalized(normalizer):
    item = RawItem(
        title="foo&amp;amp;bar",
        content="  <b>Lorem</b>\n\n ipsum  ",
        summary="<p>Short</p>",
    )
    result = normalizer.normalize(FEED, item)
    assert result.title == "foo&bar"
    assert result.content == "Lorem ipsum"
    assert result.summary == "Short"


def test_missing_fields_stay_absent(normalizer):
    result = normalizer.normalize(FEED, RawItem())
    assert result == FeedItem()
    assert result.images == ()
    assert result.categories == ()


def test_id_is_trimmed_and_empty_id_is_absent(normalizer):
    assert normalizer.normalize(FEED, RawItem(id="  abc  ")).id == "abc"
    assert normalizer.normalize(FEED, RawItem(id="")).id is None


def test_alternate_link_wins(normalizer):
    item = RawItem(
        id="http://example.org/by-id",
        links=(
            RawLink(href="http://example.org/audio.mp3", rel="enclosure"),
            RawLink(href="http://example.org/self", rel="self"),
            RawLink(href="http://example.org/page", rel="Alternate"),
            RawLink(href="http://example.org/page2", rel="alternate"),
        ),
    )
    assert normalizer.normalize(FEED, item).uri == "http://example.org/page"


def test_untyped_link_is_alternate(normalizer):
    item = RawItem(links=(RawLink(href="http://example.org/untyped"),))
    assert normalizer.normalize(FEED, item).uri == "http://example.org/untyped"


def test_uri_falls_back_to_absolute_id(normalizer):
    item = RawItem(id="http://example.org/x", links=(RawLink(href="http://example.org/e.mp3", rel="enclosure"),))
    assert normalizer.normalize(FEED, item).uri == "http://example.org/x"


@pytest.mark.parametrize("item_id", [
    "tag:example.org,1999:foo",
    "urn:uuid:0ea6c57b-4546-4264-8b96-13434c349d87",
    "/relative/path",
    "not a uri",
    None,
])
def test_uri_is_absent_without_link_or_web_id(normalizer, item_id):
    assert normalizer.normalize(FEED, RawItem(id=item_id)).uri is None


def test_last_updated_falls_back_to_publish_date(normalizer):
    assert normalizer.normalize(FEED, RawItem(published=PUBLISHED)).last_updated_date == PUBLISHED
    item = RawItem(published=PUBLISHED, updated=MIN_DATE)
    result = normalizer.normalize(FEED, item)
    assert result.publish_date == PUBLISHED
    assert result.last_updated_date == PUBLISHED


def test_last_updated_is_kept_when_present(normalizer):
    updated = PUBLISHED + timedelta(days=1)
    result = normalizer.normalize(FEED, RawItem(published=PUBLISHED, updated=updated))
    assert result.last_updated_date == updated


def test_publish_date_is_not_invented(normalizer):
    result = normalizer.normalize(FEED, RawItem())
    assert result.publish_date is None
    assert result.last_updated_date is None


def test_images_come_from_image_extensions_in_order(normalizer):
    item = RawItem(extensions=(
        ExtensionElement(name="image", text="http://x/a.png"),
        ExtensionElement(name="Image", text="http://x/ignored.png"),
        ExtensionElement(name="thumbnail", text="http://x/thumb.png"),
        ExtensionElement(name="image", text=" http://x/b.png\n", namespace="http://example.org/ext"),
    ))
    assert normalizer.normalize(FEED, item).images == ("http://x/a.png", "http://x/b.png")


def test_invalid_image_uri_is_surfaced(normalizer):
    item = RawItem(extensions=(ExtensionElement(name="image", text="not a uri"),))
    with pytest.raises(InvalidFeedItemError):
        normalizer.normalize(FEED, item)


def test_categories_keep_source_order(normalizer):
    result = normalizer.normalize(FEED, RawItem(categories=("NEWS", "TEST")))
    assert result.categories == ("NEWS", "TEST")


def test_structurally_invalid_content_raises(normalizer):
    with pytest.raises(TypeError):
        normalizer.normalize(FEED, RawItem(content=["not", "text"]))  # type: ignore[arg-type]


def test_runaway_encoding_only_drops_that_field(normalizer):
    item = RawItem(title="x&" + "amp;" * 8 + "y", summary="fine")
    result = normalizer.normalize(FEED, item)
    assert result.title is None
    assert result.summary == "fine"


def test_content_and_summary_fallbacks():
    assert FeedItem(summary="s").get_content() == "s"
    assert FeedItem(content="c").get_summary() == "c"
    assert FeedItem(content="", summary="s").get_content() == "s"
    assert FeedItem(content="c", summary="s").get_content() == "c"
    assert FeedItem(content="c", summary="s").get_summary() == "s"
    assert FeedItem().get_content() is None


def test_feed_item_is_immutable():
    with pytest.raises(dataclasses.FrozenInstanceError):
        FeedItem().title = "changed"  # type: ignore[misc]


@pytest.mark.parametrize("value,schemes,expected", [
    ("http://example.org/x", None, True),
    ("tag:example.org,1999:foo", None, True),
    ("urn:isbn:0451450523", None, True),
    ("tag:example.org,1999:foo", ("http", "https"), False),
    ("HTTPS://example.org", ("http", "https"), True),
    ("http:///no-host", ("http", "https"), False),
    ("relative/path", None, False),
    ("", None, False),
    (None, None, False),
])
def test_is_absolute_uri(value, schemes, expected):
    assert is_absolute_uri(value, schemes) is expected


# Custom normalizers compose the default one.

@dataclass(frozen=True)
class AuthoredFeedItem:
    item: FeedItem
    authors: Tuple[str, ...] = ()

    def __getattr__(self, name):
        return getattr(self.item, name)


class AuthorNormalizer:
    def __init__(self):
        self.default = DefaultFeedItemNormalizer()

    def normalize(self, feed, item):
        return AuthoredFeedItem(self.default.normalize(feed, item), tuple(item.authors))


class MarkerContentNormalizer:
    """Keeps only the third <font> block of provider markup, like aggregator feeds wrap their body."""

    _font_re = re.compile(r"<font[^>]*>(.*?)</font>", re.DOTALL)

    def __init__(self):
        self.default = DefaultFeedItemNormalizer()

    def _pick(self, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        blocks = self._font_re.findall(value)
        return blocks[2] if len(blocks) > 2 else value

    def normalize(self, feed, item):
        item = dataclasses.replace(item, content=self._pick(item.content), summary=self._pick(item.summary))
        return self.default.normalize(feed, item)


def test_extended_item_wraps_base_fields():
    item = RawItem(title="Title 1", authors=("John Doe 1",), links=(RawLink(href="http://example.org/1"),))
    result = AuthorNormalizer().normalize(FEED, item)
    assert isinstance(result, AuthoredFeedItem)
    assert result.authors == ("John Doe 1",)
    assert result.title == "Title 1"
    assert result.uri == "http://example.org/1"


def test_custom_normalizer_can_rewrite_raw_content():
    markup = (
        '<font size="-2">Source</font><font size="-1"><b>Headline</b></font>'
        '<font size="-1">(CNN) -- Rescue boats <i>searched</i> the waters</font>'
    )
    result = MarkerContentNormalizer().normalize(FEED, RawItem(summary=markup))
    assert result.summary == "(CNN) -- Rescue boats searched the waters"
    assert result.get_content().startswith("(CNN) -- Rescue boats")
