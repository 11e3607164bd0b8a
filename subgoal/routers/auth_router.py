"""Twitch OAuth routes"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse, RedirectResponse

from subgoal.core.dependencies import get_oauth_flow
from subgoal.core.errors import InvalidRequest, InvalidState, ProviderError
from subgoal.services import OAuthFlow

logger = logging.getLogger(__name__)

router = APIRouter(tags=["authentication"])

CALLBACK_FAILURE_MESSAGE = "Failed to complete Twitch OAuth. Check server logs."


@router.get("/auth/start")
@router.get("/auth/twitch")
async def start_authorization(
    channel: str | None = None,
    oauth_flow: OAuthFlow = Depends(get_oauth_flow),
):
    """Redirect the broadcaster to Twitch to authorize the app for *channel*."""
    try:
        oauth_url = oauth_flow.start_authorization(channel)
    except InvalidRequest as e:
        return PlainTextResponse(e.message, status_code=e.status_code)
    return RedirectResponse(url=oauth_url, status_code=302)


@router.get("/auth/callback")
@router.get("/auth/twitch/callback")
async def oauth_callback(
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
    error_description: str | None = None,
    oauth_flow: OAuthFlow = Depends(get_oauth_flow),
):
    """Handle Twitch OAuth callback"""
    if error:
        logger.error(f"OAuth error from Twitch: {error} ({error_description})")
        return PlainTextResponse(
            f"Twitch error: {error_description or error}", status_code=400
        )

    try:
        record = await oauth_flow.complete_authorization(code, state)
    except (InvalidState, InvalidRequest) as e:
        logger.warning(f"Rejected OAuth callback: {e.message}")
        return PlainTextResponse(e.message, status_code=e.status_code)
    except ProviderError as e:
        logger.error(
            f"OAuth callback error: {e.message} "
            f"(status={e.provider_status}, payload={e.payload})"
        )
        return PlainTextResponse(CALLBACK_FAILURE_MESSAGE, status_code=e.status_code)
    except Exception as e:
        logger.exception(f"OAuth callback error: {type(e).__name__}: {e}")
        return PlainTextResponse(CALLBACK_FAILURE_MESSAGE, status_code=500)

    channel = record.channel_id
    return PlainTextResponse(
        f"Twitch connected for channel {channel}. "
        f"You can now use the overlay with ?channel={channel}"
    )
