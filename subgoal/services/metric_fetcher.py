"""Subscriber count lookup with a single refresh-and-retry on expired tokens."""

import enum
import logging
from collections.abc import Awaitable, Callable

import httpx

from subgoal.models.credential import CredentialRecord, normalize_channel

from .oauth_flow import OAuthFlow
from .token_cache import TokenCache
from .twitch_api import MetricOutcome, MetricResponse, TwitchAPIClient

logger = logging.getLogger(__name__)

FetchFn = Callable[[CredentialRecord], Awaitable[MetricResponse]]
RefreshFn = Callable[[CredentialRecord], Awaitable[CredentialRecord | None]]


class FetchState(enum.Enum):
    FETCHING = "fetching"
    REFRESHING = "refreshing"
    RETRYING = "retrying"
    DONE = "done"


async def fetch_metric_with_refresh(
    record: CredentialRecord,
    fetch: FetchFn,
    refresh: RefreshFn,
) -> int | None:
    """Run the fetch / refresh / retry state machine for one request.

    At most two calls to *fetch* are made: the first attempt and one retry
    after a successful refresh. Any outcome other than OK ends in None.
    """
    state = FetchState.FETCHING
    current = record
    result: int | None = None

    while state is not FetchState.DONE:
        if state is FetchState.REFRESHING:
            refreshed = await refresh(current)
            if refreshed is None:
                state = FetchState.DONE
            else:
                current = refreshed
                state = FetchState.RETRYING
            continue

        response = await fetch(current)
        if response.outcome is MetricOutcome.OK:
            result = response.value
            state = FetchState.DONE
        elif response.outcome is MetricOutcome.UNAUTHORIZED and state is FetchState.FETCHING:
            state = FetchState.REFRESHING
        else:
            state = FetchState.DONE

    return result


class MetricFetcher:
    """Reports a channel's current subscriber count, or None when unknown."""

    def __init__(
        self,
        twitch_api: TwitchAPIClient,
        token_cache: TokenCache,
        oauth_flow: OAuthFlow,
    ) -> None:
        self.twitch_api = twitch_api
        self.token_cache = token_cache
        self.oauth_flow = oauth_flow

    async def _fetch(self, record: CredentialRecord) -> MetricResponse:
        return await self.twitch_api.get_subscriber_count(
            record.broadcaster_id, record.access_token
        )

    async def _refresh(self, record: CredentialRecord) -> CredentialRecord | None:
        try:
            return await self.oauth_flow.refresh(record.channel_id)
        except httpx.HTTPError as e:
            logger.error(f"Token refresh error for {record.channel_id}: {type(e).__name__}: {e}")
            return None

    async def get_current_metric(self, channel: str) -> int | None:
        """Current subscriber count for *channel*; None if never authorized or unavailable."""
        record = self.token_cache.get(channel)
        if record is None:
            logger.debug(f"No credentials for channel {normalize_channel(channel)}")
            return None

        return await fetch_metric_with_refresh(record, self._fetch, self._refresh)
