"""Services layer - Business logic

Services are constructed once at startup and reached from the routers
through dependency injection.
"""

from .goal_store import GoalStore
from .metric_fetcher import MetricFetcher, fetch_metric_with_refresh
from .oauth_flow import OAuthFlow, decode_oauth_state, encode_oauth_state
from .token_cache import TokenCache
from .twitch_api import (
    MetricOutcome,
    MetricResponse,
    TokenPair,
    TokenRefreshResult,
    TwitchAPIClient,
)

__all__ = [
    "GoalStore",
    "MetricFetcher",
    "MetricOutcome",
    "MetricResponse",
    "OAuthFlow",
    "TokenCache",
    "TokenPair",
    "TokenRefreshResult",
    "TwitchAPIClient",
    "decode_oauth_state",
    "encode_oauth_state",
    "fetch_metric_with_refresh",
]
