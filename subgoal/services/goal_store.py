"""Per-channel overlay goals. Memory only; lost on restart."""

import logging

from subgoal.core.errors import InvalidGoal, InvalidRequest
from subgoal.models.credential import GoalRecord, normalize_channel

logger = logging.getLogger(__name__)

DEFAULT_GOAL = 50


def parse_goal(value: str | int | None) -> int:
    """Parse a goal value, accepting only positive integers."""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidGoal("Missing goal")
    if isinstance(value, bool):
        raise InvalidGoal("Goal must be a positive integer")
    text = str(value).strip()
    # ASCII digits only: no sign, underscores or other numerals
    if not (text.isascii() and text.isdigit()):
        raise InvalidGoal("Goal must be a positive integer")
    goal = int(text)
    if goal <= 0:
        raise InvalidGoal("Goal must be a positive integer")
    return goal


class GoalStore:
    """Goal per channel with a fixed fallback."""

    def __init__(self, default_goal: int = DEFAULT_GOAL) -> None:
        self.default_goal = default_goal
        self._goals: dict[str, GoalRecord] = {}

    def set_goal(self, channel_id: str | None, goal_value: str | int | None) -> int:
        """Store a goal for a channel, overwriting any previous one."""
        channel = normalize_channel(channel_id)
        if not channel:
            raise InvalidRequest("Missing channel")
        goal = parse_goal(goal_value)

        self._goals[channel] = GoalRecord(channel_id=channel, goal=goal)
        logger.info(f"Set goal for {channel} to {goal}")
        return goal

    def get_goal(self, channel_id: str | None) -> int:
        record = self._goals.get(normalize_channel(channel_id))
        return record.goal if record else self.default_goal
