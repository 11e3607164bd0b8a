"""Goal API routes, callable from chat bots and stream tools"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse

from subgoal.core.dependencies import get_goal_store
from subgoal.core.errors import InvalidGoal, InvalidRequest
from subgoal.services import GoalStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["goals"])

_FORM_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


async def _read_body(request: Request) -> dict:
    """Return the JSON or form body as a dict; empty for GET or other types."""
    if request.method != "POST":
        return {}

    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            data = await request.json()
        except ValueError:
            raise InvalidRequest("Invalid JSON body") from None
        return data if isinstance(data, dict) else {}
    if content_type.startswith(_FORM_TYPES):
        form = await request.form()
        return {key: value for key, value in form.items() if isinstance(value, str)}
    return {}


def _pick(body: dict, request: Request, key: str) -> str | None:
    value = body.get(key)
    if value is None or value == "":
        value = request.query_params.get(key)
    if value is None or isinstance(value, str):
        return value
    return str(value)


@router.api_route("/setgoal", methods=["GET", "POST"], response_class=PlainTextResponse)
async def set_goal(
    request: Request,
    goal_store: GoalStore = Depends(get_goal_store),
):
    """Set the overlay goal for a channel from the query string or body."""
    try:
        body = await _read_body(request)
        goal = goal_store.set_goal(_pick(body, request, "channel"), _pick(body, request, "goal"))
    except (InvalidRequest, InvalidGoal) as e:
        return PlainTextResponse(e.message, status_code=e.status_code)

    return PlainTextResponse(f"Sub goal updated to {goal}")
