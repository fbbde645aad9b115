"""Conduct Manager - Behavior catalog, weekly ledger and analytics.

This manager handles every operation that touches conduct records:
- Behavior catalog add/edit/delete (with ledger-wide label migration)
- Settings updates (followed by a global score recompute)
- Per-week lock toggling
- Single adjustments, class-wide batches, fill/clear of a week, notes
- On-demand analytics (alerts, semester and week summaries)

ARCHITECTURE:
- ConductManager = STATEFUL orchestration over the store
- BehaviorEngine / ConductEngine / AnalyticsEngine = pure rules (STATELESS)

Every mutation is computed on copies and committed with one set() per
collection, then SIGNAL_SUFFIX_* events are emitted. A locked week turns
ledger mutations into logged no-ops that return False.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .. import const, data_builders as db
from ..engines.analytics_engine import AnalyticsEngine
from ..engines.behavior_engine import BehaviorEngine
from ..engines.conduct_engine import ConductEngine
from ..helpers.entity_helpers import not_found_error
from .base_manager import BaseManager

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant

    from ..coordinator import ClassConductCoordinator
    from ..type_defs import (
        Alert,
        BehaviorItem,
        ConductRecord,
        SemesterSummary,
        SettingsData,
        StudentAnalysis,
    )


class ConductManager(BaseManager):
    """Manager for the behavior catalog and the weekly conduct ledger.

    Responsibilities:
    - Keep every record's score equal to its recomputed value
    - Refuse ledger writes to locked weeks
    - Emit catalog/records/lock/settings events

    NOT responsible for:
    - Coins and badges (EconomyManager)
    - Officer report workflow (ReportManager)
    """

    def __init__(
        self,
        hass: HomeAssistant,
        coordinator: ClassConductCoordinator,
    ) -> None:
        """Initialize the ConductManager."""
        super().__init__(hass, coordinator)

    async def async_setup(self) -> None:
        """Set up the ConductManager.

        Stored records are normalized once so legacy string occurrences are
        rewritten as {label, points} dicts with recomputed scores.
        """
        raw = self.store.get(const.DATA_CONDUCT_RECORDS)
        records = ConductEngine.normalize_records(raw)
        changed = BehaviorEngine.recalculate_all(records, self.get_settings())
        if records != raw:
            self.store.set(const.DATA_CONDUCT_RECORDS, records)
            const.LOGGER.info(
                "INFO: Normalized %s conduct records (%s scores recomputed)",
                len(records),
                changed,
            )

    # =========================================================================
    # Internal helpers
    # =========================================================================

    def _get_records(self) -> dict[str, ConductRecord]:
        return ConductEngine.normalize_records(
            self.store.get(const.DATA_CONDUCT_RECORDS)
        )

    def _active_student_ids(self) -> list[str]:
        return [
            student_id
            for student_id, student in self.store.get(const.DATA_STUDENTS).items()
            if student.get(const.DATA_STUDENT_IS_ACTIVE, True)
        ]

    def _is_locked(self, settings: SettingsData, week: int, operation: str) -> bool:
        if ConductEngine.is_week_locked(settings, week):
            const.LOGGER.warning(
                "WARNING: %s ignored, week %s is locked", operation, week
            )
            return True
        return False

    # =========================================================================
    # Behavior catalog
    # =========================================================================

    def find_behavior_id(self, label: str, is_positive: bool | None = None) -> str:
        """Resolve a catalog label to its id (searching one or both sub-lists)."""
        settings = self.get_settings()
        signs = [is_positive] if is_positive is not None else [False, True]
        for sign in signs:
            item = BehaviorEngine.find_behavior(
                BehaviorEngine.catalog(settings, sign), label
            )
            if item is not None:
                return item[const.DATA_BEHAVIOR_ID]
        raise not_found_error(const.LABEL_BEHAVIOR, label)

    def add_behavior(
        self,
        label: str,
        points: int,
        category: str = const.BEHAVIOR_CATEGORY_OTHER,
        is_positive: bool = False,
    ) -> BehaviorItem:
        """Append a behavior to the catalog.

        Raises:
            HomeAssistantError: blank/duplicate label, zero points, bad category
        """
        try:
            settings, item = BehaviorEngine.add_behavior(
                self.get_settings(),
                {
                    const.DATA_BEHAVIOR_LABEL: label,
                    const.DATA_BEHAVIOR_POINTS: points,
                    const.DATA_BEHAVIOR_CATEGORY: category,
                },
                is_positive,
            )
        except db.EntityValidationError as err:
            self.raise_validation_error(err)

        self.commit(**{const.DATA_SETTINGS: settings})
        self.emit(
            const.SIGNAL_SUFFIX_CATALOG_CHANGED,
            action="added",
            behavior_id=item[const.DATA_BEHAVIOR_ID],
            label=item[const.DATA_BEHAVIOR_LABEL],
        )
        const.LOGGER.info(
            "INFO: Added %s behavior '%s' (%s points)",
            "positive" if is_positive else "violation",
            item[const.DATA_BEHAVIOR_LABEL],
            item[const.DATA_BEHAVIOR_POINTS],
        )
        return item

    def edit_behavior(
        self,
        behavior_id: str,
        *,
        label: str | None = None,
        points: int | None = None,
        category: str | None = None,
    ) -> BehaviorItem:
        """Edit a catalog item, migrate its label in every record, recompute.

        Settings and records are both computed before either is written.

        Raises:
            HomeAssistantError: unknown id or invalid values (nothing changes)
        """
        user_input: dict[str, Any] = {}
        if label is not None:
            user_input[const.DATA_BEHAVIOR_LABEL] = label
        if points is not None:
            user_input[const.DATA_BEHAVIOR_POINTS] = points
        if category is not None:
            user_input[const.DATA_BEHAVIOR_CATEGORY] = category

        try:
            result = BehaviorEngine.edit_behavior(
                self.get_settings(), self._get_records(), behavior_id, user_input
            )
        except db.EntityValidationError as err:
            self.raise_validation_error(err)
        if result is None:
            raise not_found_error(const.LABEL_BEHAVIOR, behavior_id)

        settings, records, item, renamed = result

        self.commit(
            **{const.DATA_SETTINGS: settings, const.DATA_CONDUCT_RECORDS: records}
        )
        self.emit(
            const.SIGNAL_SUFFIX_CATALOG_CHANGED,
            action="edited",
            behavior_id=behavior_id,
            label=item[const.DATA_BEHAVIOR_LABEL],
            renamed_occurrences=renamed,
        )
        self.emit(const.SIGNAL_SUFFIX_RECORDS_CHANGED, week=None, student_ids=None)
        const.LOGGER.info(
            "INFO: Edited behavior %s -> '%s' (%s points), %s occurrences migrated",
            behavior_id,
            item[const.DATA_BEHAVIOR_LABEL],
            item[const.DATA_BEHAVIOR_POINTS],
            renamed,
        )
        return item

    def delete_behavior(self, behavior_id: str) -> BehaviorItem:
        """Remove a catalog item; history keeps its labels.

        Scores are recomputed because occurrences of the removed item now
        fall back to their stored or annotated points.
        """
        result = BehaviorEngine.delete_behavior(self.get_settings(), behavior_id)
        if result is None:
            raise not_found_error(const.LABEL_BEHAVIOR, behavior_id)
        settings, removed = result
        records = self._get_records()
        changed = BehaviorEngine.recalculate_all(records, settings)

        self.commit(
            **{const.DATA_SETTINGS: settings, const.DATA_CONDUCT_RECORDS: records}
        )
        self.emit(
            const.SIGNAL_SUFFIX_CATALOG_CHANGED,
            action="deleted",
            behavior_id=behavior_id,
            label=removed[const.DATA_BEHAVIOR_LABEL],
        )
        if changed:
            self.emit(const.SIGNAL_SUFFIX_RECORDS_CHANGED, week=None, student_ids=None)
        const.LOGGER.info(
            "INFO: Deleted behavior '%s' (%s scores changed)",
            removed[const.DATA_BEHAVIOR_LABEL],
            changed,
        )
        return removed

    # =========================================================================
    # Settings
    # =========================================================================

    def update_settings(self, partial: dict[str, Any]) -> SettingsData:
        """Merge a partial settings update and recompute every score.

        Raises:
            HomeAssistantError: any invalid value (nothing changes)
        """
        try:
            settings = db.merge_settings(self.get_settings(), partial)
        except db.EntityValidationError as err:
            self.raise_validation_error(err)

        records = self._get_records()
        changed = BehaviorEngine.recalculate_all(records, settings)
        self.commit(
            **{const.DATA_SETTINGS: settings, const.DATA_CONDUCT_RECORDS: records}
        )
        self.emit(const.SIGNAL_SUFFIX_SETTINGS_CHANGED, keys=sorted(partial))
        if changed:
            self.emit(const.SIGNAL_SUFFIX_RECORDS_CHANGED, week=None, student_ids=None)
        const.LOGGER.info(
            "INFO: Settings updated (%s), %s scores recomputed",
            ", ".join(sorted(partial)),
            changed,
        )
        return settings

    # =========================================================================
    # Week locks
    # =========================================================================

    def is_week_locked(self, week: int) -> bool:
        """Return True when the week is locked."""
        return ConductEngine.is_week_locked(self.get_settings(), week)

    def set_week_locked(self, week: Any, locked: bool) -> bool:
        """Lock or unlock a week. Returns True when the state changed."""
        week = self._validated_week(week)
        settings = self.get_settings()
        if not ConductEngine.set_week_locked(settings, week, locked):
            const.LOGGER.debug(
                "DEBUG: Week %s already %s", week, "locked" if locked else "unlocked"
            )
            return False
        self.commit(**{const.DATA_SETTINGS: settings})
        self.emit(const.SIGNAL_SUFFIX_WEEK_LOCK_CHANGED, week=week, locked=locked)
        const.LOGGER.info(
            "INFO: Week %s %s", week, "locked" if locked else "unlocked"
        )
        return True

    def lock_week(self, week: Any) -> bool:
        """Lock a week against ledger edits."""
        return self.set_week_locked(week, True)

    def unlock_week(self, week: Any) -> bool:
        """Reopen a week for ledger edits."""
        return self.set_week_locked(week, False)

    # =========================================================================
    # Ledger mutations
    # =========================================================================

    def apply_adjustment(
        self,
        student_id: str,
        week: Any,
        label: str,
        *,
        points: int | None = None,
        delta: int = const.ADJUSTMENT_ADD,
        is_positive: bool = False,
    ) -> bool:
        """Add (+1) or remove (-1) one behavior occurrence.

        Returns False when the week is locked or nothing changed.
        """
        week = self._validated_week(week)
        if delta not in (const.ADJUSTMENT_ADD, const.ADJUSTMENT_REMOVE):
            self.raise_validation_error(
                db.EntityValidationError(
                    field=const.FIELD_DELTA,
                    translation_key=const.TRANS_KEY_INVALID_AMOUNT,
                    placeholders={"value": str(delta)},
                )
            )
        label = label.strip()
        if not label:
            self.raise_validation_error(
                db.EntityValidationError(
                    field=const.FIELD_LABEL,
                    translation_key=const.TRANS_KEY_INVALID_LABEL,
                )
            )
        self.require_student(self.store.get(const.DATA_STUDENTS), student_id)
        settings = self.get_settings()
        if self._is_locked(settings, week, "Adjustment"):
            return False

        records = self._get_records()
        record = ConductEngine.apply_adjustment(
            records, settings, student_id, week, label, points, delta, is_positive
        )
        if record is None:
            const.LOGGER.debug(
                "DEBUG: '%s' not present for student %s week %s, nothing removed",
                label,
                student_id,
                week,
            )
            return False

        self.commit(**{const.DATA_CONDUCT_RECORDS: records})
        self.emit(
            const.SIGNAL_SUFFIX_RECORDS_CHANGED, week=week, student_ids=[student_id]
        )
        const.LOGGER.debug(
            "DEBUG: %s '%s' for student %s week %s, score now %s",
            "Added" if delta == const.ADJUSTMENT_ADD else "Removed",
            label,
            student_id,
            week,
            record[const.DATA_RECORD_SCORE],
        )
        return True

    def _batch(self, week: Any, points: Any, reason: str, is_positive: bool) -> bool:
        week = self._validated_week(week)
        amount = db.coerce_int(points)
        if amount is None or amount <= 0:
            self.raise_validation_error(
                db.EntityValidationError(
                    field=const.FIELD_POINTS,
                    translation_key=const.TRANS_KEY_INVALID_POINTS,
                    placeholders={"value": str(points)},
                )
            )
        if not reason or not reason.strip():
            self.raise_validation_error(
                db.EntityValidationError(
                    field=const.FIELD_REASON,
                    translation_key=const.TRANS_KEY_INVALID_LABEL,
                )
            )
        settings = self.get_settings()
        if self._is_locked(settings, week, "Class batch"):
            return False

        records = self._get_records()
        student_ids = self._active_student_ids()
        count = ConductEngine.batch_apply(
            records, settings, student_ids, week, amount, reason, is_positive
        )
        self.commit(**{const.DATA_CONDUCT_RECORDS: records})
        self.emit(const.SIGNAL_SUFFIX_RECORDS_CHANGED, week=week, student_ids=student_ids)
        const.LOGGER.info(
            "INFO: Class %s '%s' (%s) applied to %s students in week %s",
            "bonus" if is_positive else "penalty",
            reason.strip(),
            amount,
            count,
            week,
        )
        return True

    def batch_class_bonus(self, week: Any, points: Any, reason: str) -> bool:
        """Give every active student an annotated positive occurrence."""
        return self._batch(week, points, reason, True)

    def batch_class_penalty(self, week: Any, points: Any, reason: str) -> bool:
        """Give every active student an annotated violation occurrence."""
        return self._batch(week, points, reason, False)

    def fill_missing(self, week: Any) -> bool:
        """Create default records for active students lacking one (idempotent)."""
        week = self._validated_week(week)
        settings = self.get_settings()
        if self._is_locked(settings, week, "Fill missing"):
            return False
        records = self._get_records()
        created = ConductEngine.fill_missing(
            records, settings, self._active_student_ids(), week
        )
        if created:
            self.commit(**{const.DATA_CONDUCT_RECORDS: records})
            self.emit(const.SIGNAL_SUFFIX_RECORDS_CHANGED, week=week, student_ids=None)
        const.LOGGER.info("INFO: Filled %s missing records for week %s", created, week)
        return True

    def clear_week(self, week: Any) -> bool:
        """Delete every record of the week. Irreversible."""
        week = self._validated_week(week)
        settings = self.get_settings()
        if self._is_locked(settings, week, "Clear week"):
            return False
        records = self._get_records()
        removed = ConductEngine.clear_week(records, week)
        if removed:
            self.commit(**{const.DATA_CONDUCT_RECORDS: records})
            self.emit(const.SIGNAL_SUFFIX_RECORDS_CHANGED, week=week, student_ids=None)
        const.LOGGER.warning(
            "WARNING: Cleared %s conduct records for week %s", removed, week
        )
        return True

    def set_note(self, student_id: str, week: Any, note: str) -> bool:
        """Attach a free-text note to a student's week."""
        week = self._validated_week(week)
        self.require_student(self.store.get(const.DATA_STUDENTS), student_id)
        settings = self.get_settings()
        if self._is_locked(settings, week, "Note"):
            return False
        records = self._get_records()
        ConductEngine.set_note(records, settings, student_id, week, note)
        self.commit(**{const.DATA_CONDUCT_RECORDS: records})
        self.emit(
            const.SIGNAL_SUFFIX_RECORDS_CHANGED, week=week, student_ids=[student_id]
        )
        return True

    # =========================================================================
    # Queries
    # =========================================================================

    def get_record(self, student_id: str, week: int) -> ConductRecord | None:
        """Return a copy of one record."""
        return ConductEngine.get_record(self._get_records(), student_id, week)

    def get_student_history(
        self, student_id: str, up_to_week: int | None = None
    ) -> list[ConductRecord]:
        """Return one student's records sorted by week."""
        return ConductEngine.student_history(
            self._get_records(), student_id, up_to_week=up_to_week
        )

    def get_rank(self, score: int) -> str:
        """Return the weekly rank for a score under current thresholds."""
        return BehaviorEngine.rank_for_score(
            score, self.get_settings()[const.DATA_SETTINGS_THRESHOLDS]
        )

    def analyze_student(self, student_id: str, as_of_week: int) -> list[Alert]:
        """Return one student's alerts (MISSING_DATA uses class-wide weeks)."""
        records = self._get_records()
        return AnalyticsEngine.analyze_student(
            ConductEngine.student_history(records, student_id),
            self.get_settings(),
            as_of_week,
            ConductEngine.active_weeks(records),
        )

    def analyze_class(self, as_of_week: int) -> list[StudentAnalysis]:
        """Return alerts for every active student, CRITICAL first."""
        return AnalyticsEngine.analyze_class(
            list(self.store.get(const.DATA_STUDENTS).values()),
            list(self._get_records().values()),
            self.get_settings(),
            as_of_week,
        )

    def semester_summary(self, student_id: str, period: str) -> SemesterSummary:
        """Return the s1 / s2 / year aggregation for one student."""
        return AnalyticsEngine.semester_summary(
            self.get_student_history(student_id), self.get_settings(), period
        )

    def week_summary(self, week: int) -> dict[str, Any]:
        """Return class-level figures for one week."""
        return AnalyticsEngine.week_summary(
            ConductEngine.records_for_week(self._get_records(), week),
            self.get_settings(),
        )
