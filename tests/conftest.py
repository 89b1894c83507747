"""
Shared fixtures for RSS Trends tests.

Provides common test fixtures for use across all test modules.
"""

import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from rss_trends.config import AppConfig, SourceConfig, TelegramConfig
from rss_trends.items import FeedItem


# Path to test fixtures directory
FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def fixtures_dir() -> Path:
    """Return path to fixtures directory."""
    return FIXTURES_DIR


@pytest.fixture
def sample_rss_path(fixtures_dir: Path) -> Path:
    """Return path to sample RSS feed file."""
    return fixtures_dir / "sample_rss.xml"


@pytest.fixture
def sample_atom_path(fixtures_dir: Path) -> Path:
    """Return path to sample Atom feed file."""
    return fixtures_dir / "sample_atom.xml"


@pytest.fixture
def sample_config_path(fixtures_dir: Path) -> Path:
    """Return path to sample config file."""
    return fixtures_dir / "sample_config.yaml"


@pytest.fixture
def sample_rss_content(sample_rss_path: Path) -> str:
    """Return contents of sample RSS feed."""
    return sample_rss_path.read_text(encoding="utf-8")


@pytest.fixture
def sample_atom_content(sample_atom_path: Path) -> str:
    """Return contents of sample Atom feed."""
    return sample_atom_path.read_text(encoding="utf-8")


@pytest.fixture
def fashion_source() -> SourceConfig:
    """Create a source with a section label."""
    return SourceConfig(
        name="Fashion Daily",
        section="Мода",
        url="https://fashion.example.com/feed",
    )


@pytest.fixture
def music_source() -> SourceConfig:
    """Create a second source with a section label."""
    return SourceConfig(
        name="Music Weekly",
        section="Музыка",
        url="https://music.example.com/feed",
    )


@pytest.fixture
def minimal_telegram_config() -> TelegramConfig:
    """Create a minimal valid Telegram configuration."""
    return TelegramConfig(
        bot_token="1234567890:ABCdefGHIjklMNOpqrsTUVwxyz",
        channel_id="-1001234567890",
    )


@pytest.fixture
def minimal_app_config(
    minimal_telegram_config: TelegramConfig,
    fashion_source: SourceConfig,
    music_source: SourceConfig,
) -> AppConfig:
    """Create a minimal valid app configuration with two sources."""
    return AppConfig(
        telegram=minimal_telegram_config,
        sources=(fashion_source, music_source),
    )


@pytest.fixture
def unconfigured_app_config(fashion_source: SourceConfig) -> AppConfig:
    """Create an app configuration without Telegram credentials."""
    return AppConfig(telegram=None, sources=(fashion_source,))


@pytest.fixture
def make_item(fashion_source: SourceConfig):
    """
    Return a factory for feed items.

    Returns
    -------
    Callable
        ``make_item(title, day=1, **kwargs)`` building a FeedItem dated
        January ``day``, 2024.
    """

    def factory(title: str, day: int = 1, **kwargs: Any) -> FeedItem:
        kwargs.setdefault("link", f"https://example.com/{title.lower().replace(' ', '-')}")
        kwargs.setdefault("source", fashion_source)
        return FeedItem(
            title=title,
            date=datetime(2024, 1, day, 12, 0, tzinfo=timezone.utc),
            **kwargs,
        )

    return factory


@pytest.fixture
def feedparser_entry() -> dict[str, Any]:
    """
    Create a sample feedparser entry dictionary.

    Returns
    -------
    dict
        A dictionary mimicking feedparser entry structure.
    """
    return {
        "title": "Test Entry",
        "link": "https://example.com/entry",
        "id": "https://example.com/entry",
        "summary": "<p>This is a <b>test</b> summary</p>",
        "content": [{"value": "<p>This is the full content</p>", "type": "text/html"}],
        "published": "Mon, 01 Jan 2024 12:00:00 GMT",
        "published_parsed": time.struct_time((2024, 1, 1, 12, 0, 0, 0, 1, 0)),
    }


@pytest.fixture
def mock_telegram_bot() -> MagicMock:
    """
    Create a mock Telegram bot.

    Returns
    -------
    MagicMock
        A mock Bot instance whose sends return a serializable message.
    """
    message = MagicMock()
    message.to_dict.return_value = {"message_id": 42, "chat": {"id": -1001234567890}}

    bot = MagicMock()
    bot.send_message = AsyncMock(return_value=message)
    bot.send_photo = AsyncMock(return_value=message)
    bot.shutdown = AsyncMock()
    return bot
