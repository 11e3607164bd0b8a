"""
Pytest configuration and fixtures for the test suite.

Twitch is replaced by ``FakeTwitch``, an ``httpx.MockTransport`` handler
that records every request and answers from programmable canned responses.
"""
from urllib.parse import parse_qs

import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from subgoal.app import create_app
from subgoal.core.config import Settings
from subgoal.repositories import MemoryCredentialStore
from subgoal.services import (
    GoalStore,
    MetricFetcher,
    OAuthFlow,
    TokenCache,
    TwitchAPIClient,
    encode_oauth_state,
)

TOKEN_PATH = "/oauth2/token"
USERS_PATH = "/helix/users"
SUBS_PATH = "/helix/subscriptions"


def _respond(status: int, body) -> httpx.Response:
    if isinstance(body, str):
        return httpx.Response(status, text=body)
    return httpx.Response(status, json=body)


class FakeTwitch:
    """Programmable stand-in for id.twitch.tv and the Helix API."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.code_response = (200, {"access_token": "access-1", "refresh_token": "refresh-1"})
        self.refresh_response = (200, {"access_token": "access-2", "refresh_token": "refresh-2"})
        self.users_response = (200, {"data": [{"id": "12345", "login": "foo"}]})
        self.subscriptions_payload = {"data": [{"user_id": "1"}], "total": 120}
        self.subscriptions_status: int | None = None
        self.valid_tokens = {"access-1", "access-2"}
        self.fail_paths: set[str] = set()

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path in self.fail_paths:
            raise httpx.ConnectError("connection refused", request=request)

        if path == TOKEN_PATH:
            form = parse_qs(request.content.decode())
            if form["grant_type"][0] == "authorization_code":
                status, body = self.code_response
            else:
                status, body = self.refresh_response
            return _respond(status, body)

        if path == USERS_PATH:
            status, body = self.users_response
            return httpx.Response(status, json=body)

        if path == SUBS_PATH:
            token = request.headers["Authorization"].removeprefix("Bearer ")
            if self.subscriptions_status is not None:
                return httpx.Response(self.subscriptions_status, json={"message": "unavailable"})
            if token not in self.valid_tokens:
                return httpx.Response(
                    401,
                    json={"error": "Unauthorized", "status": 401, "message": "Invalid OAuth token"},
                )
            return httpx.Response(200, json=self.subscriptions_payload)

        return httpx.Response(404, json={"message": "not found"})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def count(self, path: str) -> int:
        return sum(1 for r in self.requests if r.url.path == path)

    def token_grants(self) -> list[str]:
        return [
            parse_qs(r.content.decode())["grant_type"][0]
            for r in self.requests
            if r.url.path == TOKEN_PATH
        ]


@pytest.fixture
def settings():
    """Settings that never touch a real database or .env file."""
    return Settings(
        _env_file=None,
        twitch_client_id="test-client-id",
        twitch_client_secret="test-client-secret",
        twitch_redirect_uri="http://localhost:3000/auth/callback",
        database_url="",
        environment="test",
    )


@pytest.fixture
def fake_twitch():
    return FakeTwitch()


@pytest_asyncio.fixture
async def twitch_api(settings, fake_twitch):
    client = TwitchAPIClient(
        client_id=settings.twitch_client_id,
        client_secret=settings.twitch_client_secret,
        redirect_uri=settings.twitch_redirect_uri,
        transport=fake_twitch.transport,
    )
    yield client
    await client.close()


@pytest.fixture
def token_cache():
    return TokenCache()


@pytest.fixture
def credential_store():
    return MemoryCredentialStore()


@pytest.fixture
def oauth_flow(twitch_api, token_cache, credential_store):
    return OAuthFlow(twitch_api, token_cache, credential_store)


@pytest.fixture
def metric_fetcher(twitch_api, token_cache, oauth_flow):
    return MetricFetcher(twitch_api, token_cache, oauth_flow)


@pytest.fixture
def goal_store():
    return GoalStore()


@pytest.fixture
def app(settings, fake_twitch, credential_store):
    return create_app(settings, transport=fake_twitch.transport, credential_store=credential_store)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def authorize(client):
    """Drive the OAuth callback as Twitch would after the broadcaster approves."""

    def _authorize(channel: str, code: str = "auth-code") -> httpx.Response:
        return client.get(
            "/auth/callback",
            params={"code": code, "state": encode_oauth_state(channel)},
        )

    return _authorize
