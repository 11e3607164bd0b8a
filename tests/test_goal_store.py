"""
Tests for per-channel goals
"""

import pytest

from subgoal.core.errors import InvalidGoal, InvalidRequest
from subgoal.services import GoalStore
from subgoal.services.goal_store import parse_goal


class TestParseGoal:
    """Goal value validation."""

    @pytest.mark.parametrize("value, expected", [("10", 10), (" 7 ", 7), (25, 25)])
    def test_accepts_positive_integers(self, value, expected):
        assert parse_goal(value) == expected

    @pytest.mark.parametrize(
        "value", ["-5", "0", "abc", "1.5", "1_000", "+5", "\u0661\u0662", "10abc", 0, -3, True]
    )
    def test_rejects_invalid_values(self, value):
        with pytest.raises(InvalidGoal, match="positive integer"):
            parse_goal(value)

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_missing_goal(self, value):
        with pytest.raises(InvalidGoal, match="Missing goal"):
            parse_goal(value)


class TestGoalStore:
    """Set/get behaviour and defaults."""

    def test_default_goal_when_never_set(self, goal_store):
        assert goal_store.get_goal("neverset") == 50

    def test_set_then_get(self, goal_store):
        assert goal_store.set_goal("abc", "10") == 10
        assert goal_store.get_goal("abc") == 10

    def test_negative_goal_rejected(self, goal_store):
        with pytest.raises(InvalidGoal):
            goal_store.set_goal("abc", "-5")
        assert goal_store.get_goal("abc") == 50

    def test_missing_channel_rejected(self, goal_store):
        with pytest.raises(InvalidRequest):
            goal_store.set_goal("", "10")

    def test_overwrites_previous_goal(self, goal_store):
        goal_store.set_goal("abc", "10")
        goal_store.set_goal("abc", "75")
        assert goal_store.get_goal("abc") == 75

    def test_setting_same_goal_twice_is_idempotent(self, goal_store):
        goal_store.set_goal("abc", "10")
        goal_store.set_goal("abc", "10")
        assert goal_store.get_goal("abc") == 10

    def test_channels_are_case_insensitive(self, goal_store):
        goal_store.set_goal("MyChannel", "30")
        assert goal_store.get_goal("mychannel") == 30

    def test_custom_default(self):
        assert GoalStore(default_goal=100).get_goal("x") == 100
