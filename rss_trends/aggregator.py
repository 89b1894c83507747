"""
Aggregation and selection of feed items.

Fetches all sources concurrently, merges their items and selects the
freshest ones.
"""

import asyncio
import logging
from collections.abc import Iterable, Sequence

from rss_trends.config import SourceConfig
from rss_trends.items import FeedItem
from rss_trends.rss_parser import FeedParser

logger = logging.getLogger(__name__)

TOP_LIMIT = 6


async def collect_items(
    parser: FeedParser,
    sources: Sequence[SourceConfig],
    with_details: bool = False,
) -> list[FeedItem]:
    """
    Fetch all sources concurrently and merge their items.

    Parameters
    ----------
    parser : FeedParser
        Parser used to fetch each source.
    sources : Sequence[SourceConfig]
        Sources to fetch.
    with_details : bool
        Also resolve description and image of each item.

    Returns
    -------
    list[FeedItem]
        Items of all sources, in source order.
    """
    results = await asyncio.gather(
        *(parser.fetch_feed(source, with_details=with_details) for source in sources)
    )

    merged = [item for items in results for item in items if item]
    logger.info(
        "Collected %d item(s) from %d source(s)",
        len(merged),
        len(sources),
    )
    return merged


def sort_by_date(items: Iterable[FeedItem]) -> list[FeedItem]:
    """Sort items newest first, keeping merge order for equal dates."""
    return sorted(items, key=lambda item: item.date, reverse=True)


def select_top(items: Iterable[FeedItem], limit: int = TOP_LIMIT) -> list[FeedItem]:
    """
    Select the freshest items.

    Parameters
    ----------
    items : Iterable[FeedItem]
        Merged items.
    limit : int
        Maximum number of items to return.

    Returns
    -------
    list[FeedItem]
        Up to ``limit`` items, newest first.
    """
    return sort_by_date(items)[:limit]


def select_latest(items: Iterable[FeedItem]) -> FeedItem | None:
    """
    Select the single freshest item.

    Parameters
    ----------
    items : Iterable[FeedItem]
        Merged items.

    Returns
    -------
    FeedItem | None
        The newest item, or None when there are no items.
    """
    ordered = sort_by_date(items)
    return ordered[0] if ordered else None
