"""Data models for OAuth credentials and overlay goals."""

from __future__ import annotations

from dataclasses import dataclass, field


def normalize_channel(channel: str | None) -> str:
    """Channel names are case-insensitive; everything is keyed lowercase."""
    return (channel or "").strip().lower()


@dataclass(frozen=True)
class CredentialRecord:
    """OAuth credentials for one channel."""

    channel_id: str
    broadcaster_id: str
    # Tokens stay out of repr so records can be logged
    access_token: str = field(repr=False)
    refresh_token: str = field(repr=False)

    def with_tokens(self, access_token: str, refresh_token: str) -> CredentialRecord:
        """Return a copy carrying a new token pair."""
        return CredentialRecord(
            channel_id=self.channel_id,
            broadcaster_id=self.broadcaster_id,
            access_token=access_token,
            refresh_token=refresh_token,
        )


@dataclass(frozen=True)
class GoalRecord:
    """Overlay goal for one channel. Memory only."""

    channel_id: str
    goal: int
