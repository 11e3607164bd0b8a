"""Dependency injection utilities for FastAPI

Stores and services live on ``app.state``; they are built in the app
lifespan and torn down at shutdown.
"""

from fastapi import HTTPException, Request

from subgoal.core.config import Settings
from subgoal.services import GoalStore, MetricFetcher, OAuthFlow


def _state_attr(request: Request, name: str):
    value = getattr(request.app.state, name, None)
    if value is None:
        raise HTTPException(status_code=503, detail="Service not ready")
    return value


def get_app_settings(request: Request) -> Settings:
    return _state_attr(request, "settings")


def get_goal_store(request: Request) -> GoalStore:
    return _state_attr(request, "goal_store")


def get_oauth_flow(request: Request) -> OAuthFlow:
    return _state_attr(request, "oauth_flow")


def get_metric_fetcher(request: Request) -> MetricFetcher:
    return _state_attr(request, "metric_fetcher")
