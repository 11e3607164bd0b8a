"""Goal progress API polled by the overlay"""

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from subgoal.core.config import Settings
from subgoal.core.dependencies import get_app_settings, get_goal_store, get_metric_fetcher
from subgoal.models import normalize_channel
from subgoal.services import GoalStore, MetricFetcher

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["metric"])


class GoalProgressResponse(BaseModel):
    current: int
    goal: int


@router.get("/metric", response_model=GoalProgressResponse)
@router.get("/subgoal", response_model=GoalProgressResponse)
async def get_goal_progress(
    channel: str | None = None,
    settings: Settings = Depends(get_app_settings),
    goal_store: GoalStore = Depends(get_goal_store),
    metric_fetcher: MetricFetcher = Depends(get_metric_fetcher),
) -> GoalProgressResponse:
    """Current subscriber count and goal. Unknown counts are reported as 0."""
    channel = normalize_channel(channel) or normalize_channel(settings.default_channel)

    goal = goal_store.get_goal(channel)
    current = await metric_fetcher.get_current_metric(channel)

    return GoalProgressResponse(current=current if current is not None else 0, goal=goal)
