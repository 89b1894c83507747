"""
Image extraction for RSS Trends.

Finds the illustration of a feed entry in its enclosures, Media RSS
extensions or embedded HTML content.
"""

import logging
import re
from collections.abc import Iterable, Mapping
from typing import Any
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

# Allowed URL schemes for images passed to Telegram
ALLOWED_URL_SCHEMES = frozenset({"http", "https"})

# Entry keys holding Media RSS references, in lookup order
MEDIA_KEYS = ("media_content", "media_thumbnail")

IMG_SRC_PATTERN = re.compile(
    r'<img[^>]*\ssrc=["\']([^"\']+)["\']',
    re.IGNORECASE,
)


def is_valid_url(url: str) -> bool:
    """
    Check that a URL is an absolute http(s) URL.

    Parameters
    ----------
    url : str
        The URL to validate.

    Returns
    -------
    bool
        True if the URL can be handed to Telegram.
    """
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme.lower() in ALLOWED_URL_SCHEMES and bool(parsed.netloc)


def _is_image_type(mime_type: str | None) -> bool:
    """An absent type is accepted, otherwise it must be image/*."""
    if not mime_type:
        return True
    return mime_type.lower().startswith("image/")


def _first_image(
    references: Iterable[Mapping[str, Any]], url_keys: tuple[str, ...]
) -> str | None:
    for reference in references:
        if not isinstance(reference, Mapping):
            continue
        if not _is_image_type(reference.get("type")):
            continue
        for key in url_keys:
            url = reference.get(key)
            if url and is_valid_url(url):
                return url
    return None


def _as_list(value: Any) -> list:
    if not value:
        return []
    if isinstance(value, Mapping):
        return [value]
    return list(value)


def extract_image_from_enclosures(raw_entry: Mapping[str, Any]) -> str | None:
    """
    Extract the first image enclosure URL.

    Parameters
    ----------
    raw_entry : Mapping[str, Any]
        Raw feedparser entry.

    Returns
    -------
    str | None
        URL of the first enclosure whose type is absent or image/*.
    """
    return _first_image(_as_list(raw_entry.get("enclosures")), ("href", "url"))


def extract_image_from_media(raw_entry: Mapping[str, Any]) -> str | None:
    """
    Extract the first image from Media RSS content or thumbnails.

    Parameters
    ----------
    raw_entry : Mapping[str, Any]
        Raw feedparser entry.

    Returns
    -------
    str | None
        URL of the first media reference whose type is absent or image/*.
    """
    for key in MEDIA_KEYS:
        url = _first_image(_as_list(raw_entry.get(key)), ("url", "href"))
        if url:
            return url
    return None


def extract_image_from_html(html_content: str) -> str | None:
    """
    Extract the first ``<img src="...">`` URL from HTML content.

    Parameters
    ----------
    html_content : str
        HTML content to scan.

    Returns
    -------
    str | None
        The first image URL, or None.
    """
    if not html_content:
        return None
    for match in IMG_SRC_PATTERN.finditer(html_content):
        url = match.group(1).strip()
        if is_valid_url(url):
            return url
    return None


def find_image(raw_entry: Mapping[str, Any], html_content: str = "") -> str | None:
    """
    Find the image of an entry.

    Enclosures win over Media RSS references, which win over images
    embedded in the description HTML.

    Parameters
    ----------
    raw_entry : Mapping[str, Any]
        Raw feedparser entry.
    html_content : str
        Raw description/content HTML of the entry.

    Returns
    -------
    str | None
        Image URL, or None if the entry has no image.
    """
    for extractor in (extract_image_from_enclosures, extract_image_from_media):
        url = extractor(raw_entry)
        if url:
            return url

    url = extract_image_from_html(html_content)
    if url:
        logger.debug("Using embedded image %s", url)
    return url
