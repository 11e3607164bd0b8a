"""Twitch API client service.

Every outbound call the service makes goes through this client:
- OAuth code exchange and refresh-token exchange (id.twitch.tv)
- Identity lookup for the authorizing broadcaster (Helix /users)
- Subscriber count for a broadcaster (Helix /subscriptions)

All calls use the broadcaster's user access token.
"""

import enum
import logging
from dataclasses import dataclass
from urllib.parse import urlencode

import httpx

from subgoal.core.errors import ProviderError

logger = logging.getLogger(__name__)

HELIX_BASE = "https://api.twitch.tv/helix"
OAUTH_BASE = "https://id.twitch.tv/oauth2"


@dataclass
class TokenPair:
    """Access/refresh tokens returned by the token endpoint."""

    access_token: str
    refresh_token: str


@dataclass
class TokenRefreshResult:
    """Result of a token refresh operation."""

    success: bool
    access_token: str | None = None
    refresh_token: str | None = None
    error: str | None = None


class MetricOutcome(enum.Enum):
    OK = "ok"
    UNAUTHORIZED = "unauthorized"
    FAILED = "failed"


@dataclass(frozen=True)
class MetricResponse:
    """Classified result of one subscriber-count request."""

    outcome: MetricOutcome
    value: int | None = None


def provider_error_detail(response: httpx.Response) -> str:
    """Best human-readable error from a Twitch error response."""
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        for key in ("error_description", "message", "error"):
            if data.get(key):
                return str(data[key])
    return response.text or f"HTTP {response.status_code}"


def extract_subscriber_count(payload: dict) -> int:
    """Prefer the explicit total; fall back to counting returned items."""
    total = payload.get("total")
    if isinstance(total, int) and not isinstance(total, bool):
        return total
    items = payload.get("data")
    if isinstance(items, list):
        return len(items)
    return 0


class TwitchAPIClient:
    """Client for interacting with Twitch API.

    Manages a shared httpx client for connection reuse. Pass *transport* to
    route requests somewhere other than the network (tests use
    ``httpx.MockTransport``).
    """

    SCOPES = ["channel:read:subscriptions"]

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 10.0,
    ):
        if not client_id or not client_secret:
            raise ValueError("Twitch client_id and client_secret are required")

        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri

        # Shared HTTP client, reuses TCP connections across requests
        self._http = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def close(self) -> None:
        """Close the shared HTTP client. Call on app shutdown."""
        await self._http.aclose()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _user_headers(self, token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token}", "Client-Id": self.client_id}

    async def _token_request(self, data: dict[str, str]) -> httpx.Response:
        payload = {"client_id": self.client_id, "client_secret": self.client_secret, **data}
        return await self._http.post(f"{OAUTH_BASE}/token", data=payload)

    # ------------------------------------------------------------------
    # OAuth flow
    # ------------------------------------------------------------------

    def generate_oauth_url(self, state: str) -> str:
        """Generate Twitch OAuth authorization URL."""
        params = urlencode(
            {
                "client_id": self.client_id,
                "redirect_uri": self.redirect_uri,
                "response_type": "code",
                "scope": " ".join(self.SCOPES),
                "state": state,
            }
        )
        return f"{OAUTH_BASE}/authorize?{params}"

    async def exchange_code_for_token(self, code: str) -> TokenPair:
        """Exchange an authorization code for a token pair.

        Raises ProviderError on a non-2xx response or a response without
        an access token.
        """
        response = await self._token_request(
            {
                "code": code,
                "grant_type": "authorization_code",
                "redirect_uri": self.redirect_uri,
            }
        )

        if not response.is_success:
            detail = provider_error_detail(response)
            logger.error(f"Failed to exchange code: {response.status_code} {detail}")
            raise ProviderError(
                f"Token exchange failed: {detail}",
                provider_status=response.status_code,
                payload=response.text,
            )

        data = response.json()
        access_token = data.get("access_token")
        if not access_token:
            logger.error("No access_token in token exchange response")
            raise ProviderError("Token exchange returned no access_token", payload=data)

        return TokenPair(access_token=access_token, refresh_token=data.get("refresh_token") or "")

    async def refresh_access_token(self, refresh_token: str) -> TokenRefreshResult:
        """Refresh a user's access token using their refresh token.

        Twitch may rotate the refresh token; when it does not, the old one is
        kept. Provider rejections come back as an unsuccessful result;
        transport faults (httpx.HTTPError) propagate.
        """
        response = await self._token_request(
            {
                "grant_type": "refresh_token",
                "refresh_token": refresh_token,
            }
        )

        if not response.is_success:
            error_msg = provider_error_detail(response)
            logger.error(f"Token refresh failed: {response.status_code} {error_msg}")
            return TokenRefreshResult(success=False, error=error_msg)

        try:
            data = response.json()
        except ValueError:
            logger.error(f"Token refresh response was not JSON: {response.status_code}")
            return TokenRefreshResult(success=False, error="Malformed refresh response")

        if not isinstance(data, dict):
            return TokenRefreshResult(success=False, error="Malformed refresh response")

        new_access_token = data.get("access_token")
        if not new_access_token:
            return TokenRefreshResult(success=False, error="No access_token in refresh response")

        logger.debug("Successfully refreshed user access token")
        return TokenRefreshResult(
            success=True,
            access_token=new_access_token,
            refresh_token=data.get("refresh_token") or refresh_token,
        )

    # ------------------------------------------------------------------
    # User data
    # ------------------------------------------------------------------

    async def get_broadcaster_id(self, access_token: str) -> str:
        """Return the Twitch user id that owns *access_token*."""
        response = await self._http.get(
            f"{HELIX_BASE}/users", headers=self._user_headers(access_token)
        )

        if not response.is_success:
            detail = provider_error_detail(response)
            logger.error(f"Failed to fetch user: {response.status_code} {detail}")
            raise ProviderError(
                f"User lookup failed: {detail}",
                provider_status=response.status_code,
                payload=response.text,
            )

        users = response.json().get("data") or []
        if not users or not users[0].get("id"):
            raise ProviderError("User lookup returned no user", payload=response.text)

        return str(users[0]["id"])

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    async def get_subscriber_count(self, broadcaster_id: str, access_token: str) -> MetricResponse:
        """Fetch the broadcaster's subscriber count.

        Never raises: 401 maps to UNAUTHORIZED, everything else that is not a
        success maps to FAILED.
        """
        try:
            response = await self._http.get(
                f"{HELIX_BASE}/subscriptions",
                params={"broadcaster_id": broadcaster_id},
                headers=self._user_headers(access_token),
            )
        except httpx.HTTPError as e:
            logger.error(f"Helix GET /subscriptions error: {type(e).__name__}: {e}")
            return MetricResponse(MetricOutcome.FAILED)

        if response.status_code == 401:
            logger.info(f"Subscriptions request unauthorized for broadcaster {broadcaster_id}")
            return MetricResponse(MetricOutcome.UNAUTHORIZED)

        if not response.is_success:
            logger.error(
                f"Error fetching subs for broadcaster {broadcaster_id}: "
                f"{response.status_code} {provider_error_detail(response)}"
            )
            return MetricResponse(MetricOutcome.FAILED)

        try:
            payload = response.json()
        except ValueError:
            logger.error("Subscriptions response was not JSON")
            return MetricResponse(MetricOutcome.FAILED)

        if not isinstance(payload, dict):
            return MetricResponse(MetricOutcome.FAILED)
        return MetricResponse(MetricOutcome.OK, extract_subscriber_count(payload))
