"""
Endpoint handlers for RSS Trends.

Each handler runs one pass of its pipeline (fetch, select, format,
dispatch) and returns the JSON envelope with its HTTP status.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from rss_trends.aggregator import collect_items, select_latest, select_top
from rss_trends.captions import (
    MAX_CAPTION_LENGTH,
    MAX_MESSAGE_LENGTH,
    NO_NEWS_TEXT,
    NO_TRENDS_TEXT,
    TEST_TEXT,
    build_news_caption,
    build_trends_text,
)
from rss_trends.config import (
    BOT_TOKEN_ENV,
    CHANNEL_ID_ENV,
    AppConfig,
    TelegramConfig,
)
from rss_trends.rss_parser import FeedParser
from rss_trends.telegram import DispatchResult, TelegramNotifier

logger = logging.getLogger(__name__)

MISSING_CREDENTIALS_ERROR = f"Missing {BOT_TOKEN_ENV} or {CHANNEL_ID_ENV} env vars"


@dataclass
class EndpointResponse:
    """
    JSON envelope returned by an endpoint.

    Attributes
    ----------
    status : int
        HTTP status code (200 or 500).
    body : dict
        ``{"ok": bool, "result": ...}`` or ``{"ok": bool, "error": ...}``.
    """

    status: int
    body: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """Whether the endpoint succeeded."""
        return self.status == 200

    @classmethod
    def from_dispatch(cls, dispatch: DispatchResult) -> "EndpointResponse":
        """Map a Bot API acknowledgement to an envelope."""
        if dispatch.ok:
            return cls(200, {"ok": True, "result": dispatch.result})
        return cls(500, {"ok": False, "error": dispatch.error})

    @classmethod
    def failure(cls, error: Any) -> "EndpointResponse":
        """Build a failed envelope."""
        return cls(500, {"ok": False, "error": error})


class Endpoints:
    """
    The endpoint variants of the service.

    Coordinates feed fetching, selection, caption building and dispatch
    for a single invocation. Components are created on first use and
    reused across invocations.
    """

    def __init__(
        self,
        config: AppConfig,
        parser: FeedParser | None = None,
        notifier: TelegramNotifier | None = None,
    ):
        """
        Initialize the endpoints.

        Parameters
        ----------
        config : AppConfig
            Immutable application configuration.
        parser : FeedParser | None
            Feed parser; created from the configuration when omitted.
        notifier : TelegramNotifier | None
            Telegram client; created from the configuration when omitted.
        """
        self.config = config
        self.parser = parser
        self.notifier = notifier

    def _get_parser(self) -> FeedParser:
        if self.parser is None:
            defaults = self.config.defaults
            self.parser = FeedParser(
                timeout=defaults.request_timeout,
                user_agent=defaults.user_agent,
                proxy_url=defaults.proxy,
                items_per_source=defaults.items_per_source,
            )
        return self.parser

    def _get_notifier(self, telegram: TelegramConfig) -> TelegramNotifier:
        if self.notifier is None:
            self.notifier = TelegramNotifier(
                telegram, proxy_url=self.config.defaults.proxy
            )
        return self.notifier

    async def _run(
        self,
        name: str,
        pipeline: Callable[[TelegramNotifier], Awaitable[DispatchResult]],
    ) -> EndpointResponse:
        telegram = self.config.telegram
        if telegram is None:
            logger.error("%s: %s", name, MISSING_CREDENTIALS_ERROR)
            return EndpointResponse.failure(MISSING_CREDENTIALS_ERROR)

        try:
            dispatch = await pipeline(self._get_notifier(telegram))
        except Exception as e:
            logger.exception("Unexpected error in %s", name)
            return EndpointResponse.failure(str(e))

        if not dispatch.ok:
            logger.error("Telegram error in %s: %s", name, dispatch.error)
        return EndpointResponse.from_dispatch(dispatch)

    async def send_trends(self) -> EndpointResponse:
        """
        Post the digest of the freshest items of all sources.

        Returns
        -------
        EndpointResponse
            Envelope with the sent message or the error.
        """
        return await self._run("send-trends", self._send_trends)

    async def send_news(self) -> EndpointResponse:
        """
        Post the single freshest item across all sources.

        Returns
        -------
        EndpointResponse
            Envelope with the sent message or the error.
        """
        return await self._run("send-news", self._send_news)

    async def send_test(self) -> EndpointResponse:
        """
        Post a fixed test message.

        Returns
        -------
        EndpointResponse
            Envelope with the sent message or the error.
        """
        return await self._run("send-test", self._send_test)

    async def _send_trends(self, notifier: TelegramNotifier) -> DispatchResult:
        items = await collect_items(self._get_parser(), self.config.sources)
        top = select_top(items, self.config.defaults.top_limit)

        if not top:
            logger.warning("No items from any source, sending fallback text")
            return await notifier.send_text(NO_TRENDS_TEXT)

        return await notifier.send_text(build_trends_text(top))

    async def _send_news(self, notifier: TelegramNotifier) -> DispatchResult:
        items = await collect_items(
            self._get_parser(), self.config.sources, with_details=True
        )
        item = select_latest(items)

        if item is None:
            logger.warning("No items from any source, sending fallback notice")
            return await notifier.send_text(NO_NEWS_TEXT)

        logger.info("Selected '%s' from %s", item.title[:50], item.section)
        caption = build_news_caption(
            item,
            description_limit=self.config.defaults.description_limit,
            max_length=MAX_CAPTION_LENGTH if item.image else MAX_MESSAGE_LENGTH,
        )
        return await notifier.send_item(item, caption)

    async def _send_test(self, notifier: TelegramNotifier) -> DispatchResult:
        return await notifier.send_text(TEST_TEXT)

    async def close(self) -> None:
        """Close the parser and notifier."""
        if self.parser:
            await self.parser.close()
        if self.notifier:
            await self.notifier.close()
