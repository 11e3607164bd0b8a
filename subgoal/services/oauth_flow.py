"""Twitch authorization-code and refresh-token flows.

The state parameter is URL-safe base64 JSON ``{"channel": ...}``. It is
not signed, so a caller can forge the channel slot a token lands in.
"""

import base64
import binascii
import json
import logging

from subgoal.core.errors import InvalidRequest, InvalidState
from subgoal.models.credential import CredentialRecord, normalize_channel
from subgoal.repositories.credential import CredentialStore

from .token_cache import TokenCache
from .twitch_api import TwitchAPIClient

logger = logging.getLogger(__name__)


def encode_oauth_state(channel: str) -> str:
    """Encode OAuth state as unpadded base64url JSON."""
    raw = json.dumps({"channel": channel}).encode()
    return base64.urlsafe_b64encode(raw).decode().rstrip("=")


def decode_oauth_state(state: str | None) -> str:
    """Decode OAuth state and return the lowercase channel."""
    if not state:
        raise InvalidState()
    try:
        padded = state + "=" * (-len(state) % 4)
        data = json.loads(base64.urlsafe_b64decode(padded.encode()).decode())
    except (binascii.Error, UnicodeDecodeError, ValueError):
        raise InvalidState() from None

    channel = data.get("channel") if isinstance(data, dict) else None
    if not isinstance(channel, str) or not normalize_channel(channel):
        raise InvalidState()
    return normalize_channel(channel)


class OAuthFlow:
    """Acquires and refreshes channel credentials, writing through both stores."""

    def __init__(
        self,
        twitch_api: TwitchAPIClient,
        token_cache: TokenCache,
        credential_store: CredentialStore,
    ) -> None:
        self.twitch_api = twitch_api
        self.token_cache = token_cache
        self.credential_store = credential_store

    async def _commit(self, record: CredentialRecord) -> None:
        """Write-through: memory first, then the durable store.

        A durable write failure is logged and the stores diverge until the
        next restart reloads from the database.
        """
        self.token_cache.upsert(record)
        try:
            await self.credential_store.upsert(record)
        except Exception as e:
            logger.exception(
                f"Failed to persist credentials for {record.channel_id} "
                f"({self.credential_store.name}): {e}"
            )

    def start_authorization(self, channel: str | None) -> str:
        """Return the Twitch authorize URL for *channel*."""
        channel = normalize_channel(channel)
        if not channel:
            raise InvalidRequest(
                "Missing channel query param, e.g. /auth/start?channel=yourchannel"
            )
        return self.twitch_api.generate_oauth_url(state=encode_oauth_state(channel))

    async def complete_authorization(self, code: str | None, state: str | None) -> CredentialRecord:
        """Exchange *code* for tokens and store them for the channel in *state*.

        Nothing is stored unless both the token exchange and the identity
        lookup succeed.
        """
        channel = decode_oauth_state(state)
        if not code:
            raise InvalidRequest("Missing code")

        tokens = await self.twitch_api.exchange_code_for_token(code)
        broadcaster_id = await self.twitch_api.get_broadcaster_id(tokens.access_token)

        record = CredentialRecord(
            channel_id=channel,
            broadcaster_id=broadcaster_id,
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
        )
        await self._commit(record)
        logger.info(f"Stored tokens for channel {channel} (broadcaster {broadcaster_id})")
        return record

    async def refresh(self, channel: str) -> CredentialRecord | None:
        """Refresh a channel's tokens.

        Returns None without any network call when there is nothing to
        refresh, and None when Twitch rejects the refresh token.
        """
        current = self.token_cache.get(channel)
        if current is None or not current.refresh_token:
            logger.warning(f"No refresh token for channel {normalize_channel(channel)}")
            return None

        logger.info(f"Token expired for channel {current.channel_id}, attempting refresh...")
        result = await self.twitch_api.refresh_access_token(current.refresh_token)
        if not result.success or not result.access_token or not result.refresh_token:
            logger.error(f"Token refresh failed for channel {current.channel_id}: {result.error}")
            return None

        record = current.with_tokens(
            access_token=result.access_token,
            refresh_token=result.refresh_token,
        )
        await self._commit(record)
        logger.info(f"Token refreshed successfully for channel {current.channel_id}")
        return record
