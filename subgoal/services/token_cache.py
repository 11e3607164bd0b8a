"""In-memory mirror of the credential store.

Reads during request handling never touch the database. Mutations are
whole-record replacements, so concurrent writes for different channels
never interfere; for the same channel the last writer wins.
"""

import logging

from subgoal.models.credential import CredentialRecord, normalize_channel

logger = logging.getLogger(__name__)


class TokenCache:
    """Live credentials keyed by lowercase channel."""

    def __init__(self) -> None:
        self._records: dict[str, CredentialRecord] = {}

    def get(self, channel_id: str) -> CredentialRecord | None:
        return self._records.get(normalize_channel(channel_id))

    def upsert(self, record: CredentialRecord) -> None:
        self._records[normalize_channel(record.channel_id)] = record

    def load(self, records: list[CredentialRecord]) -> int:
        """Replace the cache contents with *records*. Returns the count loaded."""
        self._records = {normalize_channel(r.channel_id): r for r in records}
        return len(self._records)

    @property
    def channels(self) -> list[str]:
        return sorted(self._records)

    def __contains__(self, channel_id: object) -> bool:
        return isinstance(channel_id, str) and normalize_channel(channel_id) in self._records

    def __len__(self) -> int:
        return len(self._records)
