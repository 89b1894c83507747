"""
Normalization of feed entries.

Turns heterogeneous feedparser entries into canonical ``FeedItem``
records. Each semantic field is resolved from an ordered list of
candidate entry keys.
"""

import html
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from dateutil import parser as dtparser

from rss_trends.config import SourceConfig
from rss_trends.media import find_image

logger = logging.getLogger(__name__)

# feedparser maps pubDate -> published, dc:date/atom:updated -> updated
# and dcterms:created -> created
DATE_KEYS = ("published", "updated", "created")

# content:encoded -> content, description/summary -> summary
DESCRIPTION_KEYS = ("content", "summary")

TAG_PATTERN = re.compile(r"<[^>]+>")
WHITESPACE_PATTERN = re.compile(r"\s+")


@dataclass
class FeedItem:
    """
    Canonical representation of one feed entry.

    Attributes
    ----------
    title : str
        Entry title, never empty.
    link : str
        Entry URL, never empty.
    date : datetime
        Publication date (timezone-aware, UTC).
    description : str
        Plain-text description, empty when not resolved.
    image : str | None
        Illustration URL.
    source : SourceConfig | None
        Source the entry was fetched from.
    """

    title: str
    link: str
    date: datetime
    description: str = ""
    image: str | None = None
    source: SourceConfig | None = None

    @property
    def section(self) -> str:
        """Section label of the source, falling back to its name."""
        if self.source is None:
            return ""
        return self.source.section or self.source.name


def clean_html(content: str) -> str:
    """
    Clean HTML content for display.

    Parameters
    ----------
    content : str
        Raw content possibly containing HTML.

    Returns
    -------
    str
        Cleaned plain text content.
    """
    text = TAG_PATTERN.sub("", content)
    text = html.unescape(text)
    text = WHITESPACE_PATTERN.sub(" ", text).strip()
    return text


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def has_date(entry: Mapping[str, Any]) -> bool:
    """Whether feedparser found any of the known date elements."""
    return any(entry.get(key) for key in DATE_KEYS)


def parse_raw_date(value: str, now: datetime) -> datetime:
    """
    Parse a date string feedparser did not map.

    Parameters
    ----------
    value : str
        Raw text of the element, RFC 822 or ISO 8601.
    now : datetime
        Processing time used when the text is not a date.

    Returns
    -------
    datetime
        Aware UTC datetime; naive values are taken as UTC.
    """
    try:
        parsed = dtparser.parse(value)
    except (ValueError, OverflowError):
        logger.debug("Unparsable date %r, using now", value)
        return now

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def resolve_date(
    entry: Mapping[str, Any],
    now: datetime,
    raw_date: str = "",
) -> datetime:
    """
    Resolve the publication date of an entry.

    The first candidate key with a value decides; if its parsed form is
    missing or invalid the processing time is used. Without any known
    key, the text of the item's bare ``<date>`` element is parsed.

    Parameters
    ----------
    entry : Mapping[str, Any]
        Raw feedparser entry.
    now : datetime
        Processing time used as fallback.
    raw_date : str
        Text of the item's bare ``<date>`` element, which feedparser
        does not keep.

    Returns
    -------
    datetime
        Aware UTC datetime.
    """
    for key in DATE_KEYS:
        if not entry.get(key):
            continue
        parsed = entry.get(f"{key}_parsed")
        if not parsed:
            logger.debug("Unparsable %s date %r, using now", key, entry.get(key))
            return now
        try:
            return datetime(*parsed[:6], tzinfo=timezone.utc)
        except (TypeError, ValueError):
            logger.debug("Invalid %s date %r, using now", key, entry.get(key))
            return now

    if raw_date:
        return parse_raw_date(raw_date, now)
    return now


def resolve_description_html(entry: Mapping[str, Any]) -> str:
    """
    Return the raw HTML of the first available description field.

    Parameters
    ----------
    entry : Mapping[str, Any]
        Raw feedparser entry.

    Returns
    -------
    str
        Raw description HTML, or an empty string.
    """
    for key in DESCRIPTION_KEYS:
        value = entry.get(key)
        if isinstance(value, list):
            # content is a list of {"value": ..., "type": ...}
            value = next(
                (
                    part.get("value")
                    for part in value
                    if isinstance(part, Mapping) and part.get("value")
                ),
                None,
            )
        if value:
            return str(value)
    return ""


def _link_from_guid(entry: Mapping[str, Any], link: str) -> bool:
    # feedparser copies a permalink <guid> into "link" when the item has
    # no <link> element; real <link> elements also land in "links"
    if not entry.get("guidislink"):
        return False
    return not any(
        isinstance(ref, Mapping) and _text(ref.get("href")) == link
        for ref in entry.get("links") or []
    )


def normalize_entry(
    entry: Mapping[str, Any],
    source: SourceConfig | None = None,
    now: datetime | None = None,
    with_details: bool = False,
    raw_date: str = "",
) -> FeedItem | None:
    """
    Create a FeedItem from a feedparser entry.

    Parameters
    ----------
    entry : Mapping[str, Any]
        A feedparser entry.
    source : SourceConfig | None
        Source of the entry.
    now : datetime | None
        Processing time, used when the entry has no usable date.
    with_details : bool
        Also resolve description and image.
    raw_date : str
        Text of the item's bare ``<date>`` element, if any.

    Returns
    -------
    FeedItem | None
        Normalized item, or None if title or link is missing. A link
        feedparser derived from the ``<guid>`` does not count.
    """
    title = _text(entry.get("title"))
    link = _text(entry.get("link"))
    if not title or not link or _link_from_guid(entry, link):
        return None

    if now is None:
        now = datetime.now(timezone.utc)

    item = FeedItem(
        title=title,
        link=link,
        date=resolve_date(entry, now, raw_date),
        source=source,
    )

    if with_details:
        description_html = resolve_description_html(entry)
        item.description = clean_html(description_html)
        item.image = find_image(entry, description_html)

    return item
