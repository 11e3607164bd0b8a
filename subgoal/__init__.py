"""Twitch sub goal overlay service."""

__version__ = "1.0.0"
