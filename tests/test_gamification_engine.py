"""Unit tests for GamificationEngine badge evaluation.

Test Categories:
- Per-type measurement (streaks, behavior counts, improvements)
- Award vs revoke (streak badges follow the current state)
- Unknown and unconfigured badges
"""

from __future__ import annotations

from typing import Any

import pytest

from custom_components.classconduct import const
from custom_components.classconduct.engines.gamification_engine import (
    GamificationEngine,
)
from tests.helpers import make_record


def _badge(badge_id: str, badge_type: str, threshold: int, **extra: Any) -> dict:
    return {
        "id": badge_id,
        "label": badge_id.title(),
        "icon": "",
        "type": badge_type,
        "threshold": threshold,
        **extra,
    }


@pytest.fixture
def badge_settings(settings: dict[str, Any]) -> dict[str, Any]:
    """Settings with one badge of every type."""
    settings["badges"] = [
        _badge("streak", const.BADGE_TYPE_STREAK_GOOD, 2),
        _badge("clean", const.BADGE_TYPE_NO_VIOLATION_STREAK, 2),
        _badge(
            "helper",
            const.BADGE_TYPE_COUNT_BEHAVIOR,
            3,
            target_behavior_label="help",
        ),
        _badge("climber", const.BADGE_TYPE_IMPROVEMENT, 1),
    ]
    return settings


# =============================================================================
# Test: evaluate_badge
# =============================================================================


class TestEvaluateBadge:
    """Measurement per badge type."""

    def test_good_streak_counts_most_recent_run(
        self, badge_settings: dict[str, Any]
    ) -> None:
        """An older good week before a bad one does not count."""
        history = [
            make_record("s1", 1, 90),
            make_record("s1", 2, 60),
            make_record("s1", 3, 85),
            make_record("s1", 4, 80),
        ]
        result = GamificationEngine.evaluate_badge(
            history, badge_settings, badge_settings["badges"][0]
        )
        assert result is not None
        assert result["progress"] == 2
        assert result["criteria_met"] is True
        assert result["revocable"] is True

    def test_behavior_count_matches_substring(
        self, badge_settings: dict[str, Any]
    ) -> None:
        """Counts every positive occurrence whose stripped label contains the target."""
        history = [
            make_record("s1", 1, 100, [], ["Helping", "Helping (x2)"]),
            make_record("s1", 2, 100, [], ["Cleanup (+5đ)", "HELP desk"]),
        ]
        result = GamificationEngine.evaluate_badge(
            history, badge_settings, badge_settings["badges"][2]
        )
        assert result is not None
        assert result["progress"] == 3
        assert result["revocable"] is False

    def test_improvement_needs_jump_above_ten(
        self, badge_settings: dict[str, Any]
    ) -> None:
        """A jump of exactly 10 is not an improvement."""
        history = [
            make_record("s1", 1, 60),
            make_record("s1", 2, 70),
            make_record("s1", 3, 60),
            make_record("s1", 4, 75),
        ]
        result = GamificationEngine.evaluate_badge(
            history, badge_settings, badge_settings["badges"][3]
        )
        assert result is not None
        assert result["progress"] == 1

    def test_unknown_type_returns_none(self, badge_settings: dict[str, Any]) -> None:
        """Unknown types are skipped."""
        badge = _badge("odd", "attendance", 1)
        assert GamificationEngine.evaluate_badge([], badge_settings, badge) is None


# =============================================================================
# Test: evaluate_badges
# =============================================================================


class TestEvaluateBadges:
    """Award and revoke decisions for a whole student."""

    def test_awards_in_configuration_order(
        self, badge_settings: dict[str, Any]
    ) -> None:
        """Newly earned badges are appended after existing ones."""
        history = [make_record("s1", 1, 85), make_record("s1", 2, 95)]
        result = GamificationEngine.evaluate_badges(["legacy"], history, badge_settings)
        assert result["badges"] == ["legacy", "streak", "clean"]
        assert result["awarded"] == ["streak", "clean"]
        assert result["revoked"] == []

    def test_streak_badges_are_revoked(self, badge_settings: dict[str, Any]) -> None:
        """A broken streak removes a revocable badge."""
        history = [
            make_record("s1", 1, 85),
            make_record("s1", 2, 95),
            make_record("s1", 3, 70, ["Late"]),
        ]
        result = GamificationEngine.evaluate_badges(
            ["streak", "clean"], history, badge_settings
        )
        assert result["badges"] == []
        assert result["revoked"] == ["streak", "clean"]

    def test_permanent_badges_stay(self, badge_settings: dict[str, Any]) -> None:
        """Count and improvement badges are kept once earned."""
        history = [make_record("s1", 1, 50, ["Late"])]
        result = GamificationEngine.evaluate_badges(
            ["helper", "climber"], history, badge_settings
        )
        assert result["badges"] == ["helper", "climber"]
        assert result["revoked"] == []

    def test_history_order_does_not_matter(
        self, badge_settings: dict[str, Any]
    ) -> None:
        """History is sorted by week before measuring."""
        history = [make_record("s1", 2, 95), make_record("s1", 1, 85)]
        assert GamificationEngine.evaluate_badges([], history, badge_settings)[
            "awarded"
        ] == ["streak", "clean"]
