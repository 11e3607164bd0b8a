"""Durable storage for channel OAuth credentials (twitch_tokens table)."""

from __future__ import annotations

import logging
from typing import Protocol

import asyncpg

from subgoal.models.credential import CredentialRecord, normalize_channel

logger = logging.getLogger(__name__)


class CredentialStore(Protocol):
    """Key-value table of credentials keyed by lowercase channel."""

    name: str

    async def init_schema(self) -> None: ...

    async def load_all(self) -> list[CredentialRecord]: ...

    async def get(self, channel_id: str) -> CredentialRecord | None: ...

    async def put(self, record: CredentialRecord) -> None: ...

    async def upsert(self, record: CredentialRecord) -> None: ...


class MemoryCredentialStore:
    """Process-local store used when DATABASE_URL is not configured."""

    name = "memory"

    def __init__(self, records: list[CredentialRecord] | None = None) -> None:
        self._rows: dict[str, CredentialRecord] = {}
        for record in records or []:
            self._rows[normalize_channel(record.channel_id)] = record

    async def init_schema(self) -> None:
        return None

    async def load_all(self) -> list[CredentialRecord]:
        return list(self._rows.values())

    async def get(self, channel_id: str) -> CredentialRecord | None:
        return self._rows.get(normalize_channel(channel_id))

    async def put(self, record: CredentialRecord) -> None:
        key = normalize_channel(record.channel_id)
        if key in self._rows:
            raise KeyError(f"Credentials already stored for channel {key}")
        self._rows[key] = record

    async def upsert(self, record: CredentialRecord) -> None:
        self._rows[normalize_channel(record.channel_id)] = record


class PostgresCredentialStore:
    """Pure SQL operations for the twitch_tokens table."""

    name = "postgres"

    def __init__(self, pool: asyncpg.Pool) -> None:
        self.pool = pool

    async def init_schema(self) -> None:
        """Create the twitch_tokens table if it does not exist."""
        async with self.pool.acquire() as conn:
            await conn.execute(
                """
                CREATE TABLE IF NOT EXISTS twitch_tokens (
                    channel        text PRIMARY KEY,
                    broadcaster_id text NOT NULL,
                    access_token   text NOT NULL,
                    refresh_token  text NOT NULL
                )
                """
            )

    async def load_all(self) -> list[CredentialRecord]:
        """Return every stored credential."""
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                "SELECT channel, broadcaster_id, access_token, refresh_token FROM twitch_tokens"
            )
            return [self._to_record(r) for r in rows]

    async def get(self, channel_id: str) -> CredentialRecord | None:
        """Get a channel's credentials."""
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT channel, broadcaster_id, access_token, refresh_token "
                "FROM twitch_tokens WHERE channel = $1",
                normalize_channel(channel_id),
            )
            if not row:
                return None
            return self._to_record(row)

    async def put(self, record: CredentialRecord) -> None:
        """Insert credentials for a channel that has none yet."""
        async with self.pool.acquire() as conn:
            await conn.execute(
                "INSERT INTO twitch_tokens (channel, broadcaster_id, access_token, refresh_token) "
                "VALUES ($1, $2, $3, $4)",
                normalize_channel(record.channel_id),
                record.broadcaster_id,
                record.access_token,
                record.refresh_token,
            )

    async def upsert(self, record: CredentialRecord) -> None:
        """Insert or replace a channel's credentials."""
        async with self.pool.acquire() as conn:
            await conn.execute(
                """
                INSERT INTO twitch_tokens (channel, broadcaster_id, access_token, refresh_token)
                VALUES ($1, $2, $3, $4)
                ON CONFLICT (channel) DO UPDATE SET
                    broadcaster_id = EXCLUDED.broadcaster_id,
                    access_token   = EXCLUDED.access_token,
                    refresh_token  = EXCLUDED.refresh_token
                """,
                normalize_channel(record.channel_id),
                record.broadcaster_id,
                record.access_token,
                record.refresh_token,
            )

    @staticmethod
    def _to_record(row: asyncpg.Record) -> CredentialRecord:
        return CredentialRecord(
            channel_id=normalize_channel(row["channel"]),
            broadcaster_id=row["broadcaster_id"],
            access_token=row["access_token"],
            refresh_token=row["refresh_token"],
        )
