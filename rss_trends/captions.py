"""
Caption building for Telegram posts.

Renders selected feed items into HTML texts for the Telegram Bot API.
"""

import html
from collections.abc import Sequence

from rss_trends.items import TAG_PATTERN, FeedItem

# Maximum message length for Telegram
MAX_MESSAGE_LENGTH = 4096
MAX_CAPTION_LENGTH = 1024

DESCRIPTION_LIMIT = 400
ELLIPSIS = "…"

TRENDS_HEADER = "⚡ Свежие тренды: мода, кроссовки, музыка"
TRENDS_HASHTAGS = "#мода #музыка #streetwear #youthculture"
NO_TRENDS_TEXT = (
    "Сегодня не удалось собрать новости по моде и музыке — "
    "источники ничего не вернули."
)

NEWS_HEADER = "📰 Свежая новость"
NEWS_HASHTAGS = "#новости #мода #музыка #streetwear"
NEWS_SOURCE_LABEL = "Источник"
NO_NEWS_TEXT = "Сегодня свежих новостей нет — источники ничего не вернули."

TEST_TEXT = "\n".join(
    [
        "🔥 Тестовый пост из RSS Trends → Telegram",
        "",
        "Если ты видишь это сообщение в своем канале, "
        "значит связка бота и канала работает.",
    ]
)


def truncate(text: str, limit: int = DESCRIPTION_LIMIT) -> str:
    """
    Shorten text to a word boundary.

    Parameters
    ----------
    text : str
        Text to shorten.
    limit : int
        Maximum number of characters kept before the ellipsis.

    Returns
    -------
    str
        ``text`` unchanged if it fits, otherwise its head cut at the last
        whitespace at or before ``limit`` followed by an ellipsis. Without
        such whitespace the head is cut at exactly ``limit`` characters.
    """
    if len(text) <= limit:
        return text

    boundary = next((i for i in range(limit, 0, -1) if text[i].isspace()), 0)
    head = text[:boundary].rstrip() if boundary else ""
    if not head:
        head = text[:limit]
    return head + ELLIPSIS


def visible_length(text: str) -> int:
    """
    Length of an HTML message as Telegram counts it.

    Telegram applies its limits to the text left after entity parsing,
    measured in UTF-16 code units.

    Parameters
    ----------
    text : str
        HTML message text.

    Returns
    -------
    int
        Number of UTF-16 code units of the rendered text.
    """
    rendered = html.unescape(TAG_PATTERN.sub("", text))
    return len(rendered.encode("utf-16-le")) // 2


def _render_trends(items: Sequence[FeedItem], title_limit: int) -> str:
    lines = [TRENDS_HEADER, ""]

    for index, item in enumerate(items, start=1):
        title = html.escape(truncate(item.title, title_limit))
        lines.append(f"{index}. {title} — {html.escape(item.section)}")
        if item.link:
            lines.append(html.escape(item.link))
        lines.append("")

    lines.append(TRENDS_HASHTAGS)
    return "\n".join(lines)


def build_trends_text(
    items: Sequence[FeedItem],
    max_length: int = MAX_MESSAGE_LENGTH,
) -> str:
    """
    Build the numbered trends digest.

    Titles are shortened at word boundaries until the rendered message
    fits ``max_length``; links and hashtags are always kept.

    Parameters
    ----------
    items : Sequence[FeedItem]
        Selected items, newest first.
    max_length : int
        Telegram limit for text messages.

    Returns
    -------
    str
        HTML message text.
    """
    title_limit = max((len(item.title) for item in items), default=0)

    while True:
        text = _render_trends(items, title_limit)
        overflow = visible_length(text) - max_length
        if overflow <= 0 or title_limit <= 1:
            return text
        # Spread the excess over all titles
        title_limit = max(1, title_limit - max(1, -(-overflow // len(items))))


def _render_news(item: FeedItem, title: str, snippet: str) -> str:
    lines = [NEWS_HEADER, "", f"<b>{html.escape(title)}</b>", ""]

    if snippet:
        lines.append(html.escape(snippet))
        lines.append("")

    if item.section:
        lines.append(f"{NEWS_SOURCE_LABEL}: {html.escape(item.section)}")
    if item.link:
        lines.append(html.escape(item.link))

    lines.append("")
    lines.append(NEWS_HASHTAGS)
    return "\n".join(lines)


def build_news_caption(
    item: FeedItem,
    description_limit: int = DESCRIPTION_LIMIT,
    max_length: int = MAX_MESSAGE_LENGTH,
) -> str:
    """
    Build the caption of a single news item.

    The description is cut to ``description_limit`` and, if the rendered
    caption still exceeds ``max_length``, shortened further; the title
    is only shortened once no description is left. The source, link and
    hashtag lines are always kept.

    Parameters
    ----------
    item : FeedItem
        The selected item.
    description_limit : int
        Maximum description length before the ellipsis.
    max_length : int
        Telegram limit for the message kind (text or photo caption).

    Returns
    -------
    str
        HTML caption.
    """
    title = item.title
    limit = description_limit

    while True:
        snippet = truncate(item.description, limit) if limit > 0 else ""
        caption = _render_news(item, title, snippet)
        overflow = visible_length(caption) - max_length
        if overflow <= 0 or not snippet:
            break
        limit = min(limit, len(snippet)) - overflow

    title_limit = len(item.title)
    while overflow > 0 and title_limit > 1:
        title_limit = max(1, title_limit - overflow)
        title = truncate(item.title, title_limit)
        caption = _render_news(item, title, "")
        overflow = visible_length(caption) - max_length

    return caption
