"""
RSS Trends - Post fresh RSS items to a Telegram channel.

A small async service that collects the freshest entries of a fixed
set of RSS feeds and publishes a digest or a single story to Telegram.
"""

__version__ = "1.0.0"
