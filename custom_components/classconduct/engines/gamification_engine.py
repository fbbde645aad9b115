"""Gamification Engine - Pure logic for badge evaluation.

This engine provides stateless, pure Python functions for:
- Measuring each badge type against a student's weekly history
- Deciding award vs revoke (revocability derives from the badge type)
- Keeping badge ids that are no longer configured untouched

ARCHITECTURE: This is a pure logic engine with NO Home Assistant dependencies.
All functions are static methods that operate on passed-in data.
The EconomyManager owns persistence and signals.

Badge Types:
- streak_good: current run of most recent weeks at or above the GOOD threshold
- no_violation_streak: current run of most recent weeks without violations
- count_behavior: lifetime positive occurrences whose label contains the target
- improvement: number of week-over-week jumps greater than 10

Streak badges are revocable: they follow the current streak. The others are
permanent once earned.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from .. import const
from .behavior_engine import BehaviorEngine

if TYPE_CHECKING:
    from ..type_defs import (
        BadgeConfig,
        BadgeEvaluation,
        ConductRecord,
        SettingsData,
    )


# =============================================================================
# TYPE ALIASES
# =============================================================================

# Handler signature: (history sorted by week, settings, badge) -> measured value
BadgeHandler = Callable[
    [list["ConductRecord"], "SettingsData", "BadgeConfig"], int
]


# =============================================================================
# GAMIFICATION ENGINE
# =============================================================================


class GamificationEngine:
    """Pure logic engine for badge evaluation.

    All methods are static or class-level - no instance state.

    Evaluation Flow:
        1. Manager collects the student's history and current badge list
        2. Engine measures each configured badge with its type handler
        3. Engine returns the new badge list plus awarded/revoked diffs
        4. Manager handles side effects (storage, signals, logging)
    """

    # =========================================================================
    # BADGE HANDLER REGISTRY
    # =========================================================================

    # Maps badge type to handler function
    _BADGE_HANDLERS: dict[str, BadgeHandler] = {}

    @classmethod
    def _register_handlers(cls) -> None:
        """Register all badge handlers.

        Called lazily on first evaluation to populate _BADGE_HANDLERS.
        """
        if cls._BADGE_HANDLERS:
            return  # Already registered

        cls._BADGE_HANDLERS = {
            const.BADGE_TYPE_STREAK_GOOD: cls._measure_good_streak,
            const.BADGE_TYPE_NO_VIOLATION_STREAK: cls._measure_clean_streak,
            const.BADGE_TYPE_COUNT_BEHAVIOR: cls._measure_behavior_count,
            const.BADGE_TYPE_IMPROVEMENT: cls._measure_improvements,
        }

    @staticmethod
    def is_revocable(badge_type: str) -> bool:
        """Return True when the badge follows the current state."""
        return badge_type in const.REVOCABLE_BADGE_TYPES

    # =========================================================================
    # HANDLERS
    # =========================================================================

    @staticmethod
    def _current_streak(
        history: list[ConductRecord], predicate: Callable[[ConductRecord], bool]
    ) -> int:
        """Count records satisfying predicate, newest first, until one fails."""
        streak = 0
        for record in reversed(history):
            if not predicate(record):
                break
            streak += 1
        return streak

    @staticmethod
    def _measure_good_streak(
        history: list[ConductRecord], settings: SettingsData, badge: BadgeConfig
    ) -> int:
        good = settings[const.DATA_SETTINGS_THRESHOLDS][const.THRESHOLD_GOOD]
        return GamificationEngine._current_streak(
            history, lambda record: record[const.DATA_RECORD_SCORE] >= good
        )

    @staticmethod
    def _measure_clean_streak(
        history: list[ConductRecord], settings: SettingsData, badge: BadgeConfig
    ) -> int:
        return GamificationEngine._current_streak(
            history, lambda record: not record[const.DATA_RECORD_VIOLATIONS]
        )

    @staticmethod
    def _measure_behavior_count(
        history: list[ConductRecord], settings: SettingsData, badge: BadgeConfig
    ) -> int:
        target = str(badge.get(const.DATA_BADGE_TARGET_BEHAVIOR_LABEL) or "")
        target = target.strip().lower()
        if not target:
            return 0
        return sum(
            1
            for record in history
            for occurrence in record[const.DATA_RECORD_POSITIVE_BEHAVIORS]
            if target
            in BehaviorEngine.strip_annotations(
                occurrence[const.DATA_OCCURRENCE_LABEL]
            ).lower()
        )

    @staticmethod
    def _measure_improvements(
        history: list[ConductRecord], settings: SettingsData, badge: BadgeConfig
    ) -> int:
        scores = [record[const.DATA_RECORD_SCORE] for record in history]
        return sum(
            1
            for previous, current in zip(scores, scores[1:])
            if current - previous > const.IMPROVEMENT_MIN_JUMP
        )

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    @classmethod
    def evaluate_badge(
        cls,
        history: list[ConductRecord],
        settings: SettingsData,
        badge: BadgeConfig,
    ) -> dict[str, Any] | None:
        """Measure one badge. Returns None for an unknown badge type.

        Result keys: badge_id, criteria_met, progress, threshold, revocable.
        """
        cls._register_handlers()
        badge_type = badge.get(const.DATA_BADGE_TYPE, "")
        handler = cls._BADGE_HANDLERS.get(badge_type)
        if handler is None:
            const.LOGGER.warning(
                "Unknown badge type: %s for badge %s",
                badge_type,
                badge.get(const.DATA_BADGE_ID),
            )
            return None

        threshold = int(badge.get(const.DATA_BADGE_THRESHOLD, 1))
        progress = handler(history, settings, badge)
        return {
            "badge_id": badge[const.DATA_BADGE_ID],
            "criteria_met": progress >= threshold,
            "progress": progress,
            "threshold": threshold,
            "revocable": cls.is_revocable(badge_type),
        }

    @classmethod
    def evaluate_badges(
        cls,
        current_badges: list[str],
        history: list[ConductRecord],
        settings: SettingsData,
    ) -> BadgeEvaluation:
        """Return the student's badge list after evaluating every badge.

        Existing order is kept; newly earned badges are appended in
        configuration order. Ids without a configured badge (or with an
        unknown type) are left as they are.
        """
        history = sorted(history, key=lambda record: record[const.DATA_RECORD_WEEK])
        owned = list(dict.fromkeys(current_badges))
        awarded: list[str] = []
        revoked: list[str] = []

        for badge in settings.get(const.DATA_SETTINGS_BADGES, []):
            result = cls.evaluate_badge(history, settings, badge)
            if result is None:
                continue
            badge_id = result["badge_id"]
            has_badge = badge_id in owned
            if result["criteria_met"] and not has_badge:
                owned.append(badge_id)
                awarded.append(badge_id)
            elif not result["criteria_met"] and has_badge and result["revocable"]:
                owned.remove(badge_id)
                revoked.append(badge_id)

        return {"badges": owned, "awarded": awarded, "revoked": revoked}
