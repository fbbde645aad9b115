"""Conduct Engine - Weekly ledger rules.

Pure functions over the conduct_records collection (a dict keyed by record
id). Every mutating function works in place on the dict it is handed, which
the manager obtained as a copy from the store, and leaves each touched record
with score == BehaviorEngine.recompute_score(record, settings).

Week locking lives in settings.locked_weeks; the engine only reads and toggles
membership. Refusing to touch a locked week is the manager's job.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .. import const
from ..data_builders import (
    build_conduct_record,
    build_occurrence,
    build_record_id,
    normalize_conduct_record,
)
from .behavior_engine import BehaviorEngine

if TYPE_CHECKING:
    from collections.abc import Iterable

    from ..type_defs import ConductRecord, SettingsData


class ConductEngine:
    """Pure logic engine for conduct records and week locks."""

    # =========================================================================
    # Lookups
    # =========================================================================

    @staticmethod
    def get_record(
        records: dict[str, ConductRecord], student_id: str, week: int
    ) -> ConductRecord | None:
        """Return the record for (student_id, week) if present."""
        return records.get(build_record_id(student_id, week))

    @staticmethod
    def get_or_create_record(
        records: dict[str, ConductRecord],
        student_id: str,
        week: int,
        settings: SettingsData,
    ) -> ConductRecord:
        """Return the record, inserting a default one when absent."""
        record_id = build_record_id(student_id, week)
        if record_id not in records:
            records[record_id] = build_conduct_record(
                student_id, week, int(settings[const.DATA_SETTINGS_DEFAULT_SCORE])
            )
        return records[record_id]

    @staticmethod
    def student_history(
        records: dict[str, ConductRecord],
        student_id: str,
        *,
        up_to_week: int | None = None,
    ) -> list[ConductRecord]:
        """Return one student's records sorted by week ascending."""
        history = [
            record
            for record in records.values()
            if record[const.DATA_RECORD_STUDENT_ID] == student_id
            and (up_to_week is None or record[const.DATA_RECORD_WEEK] <= up_to_week)
        ]
        return sorted(history, key=lambda record: record[const.DATA_RECORD_WEEK])

    @staticmethod
    def records_for_week(
        records: dict[str, ConductRecord], week: int
    ) -> list[ConductRecord]:
        """Return all records of one week in storage order."""
        return [
            record
            for record in records.values()
            if record[const.DATA_RECORD_WEEK] == week
        ]

    @staticmethod
    def active_weeks(records: dict[str, ConductRecord]) -> list[int]:
        """Return the sorted weeks in which any record exists."""
        return sorted({record[const.DATA_RECORD_WEEK] for record in records.values()})

    @staticmethod
    def normalize_records(records: dict[str, dict]) -> dict[str, ConductRecord]:
        """Normalize every stored record (legacy string occurrences → dicts)."""
        normalized: dict[str, ConductRecord] = {}
        for raw in records.values():
            record = normalize_conduct_record(raw)
            normalized[record[const.DATA_RECORD_ID]] = record
        return normalized

    # =========================================================================
    # Week locks
    # =========================================================================

    @staticmethod
    def is_week_locked(settings: SettingsData, week: int) -> bool:
        """Return True when the week is LOCKED."""
        return week in settings[const.DATA_SETTINGS_LOCKED_WEEKS]

    @staticmethod
    def set_week_locked(settings: SettingsData, week: int, locked: bool) -> bool:
        """Toggle membership in locked_weeks. Returns True when it changed."""
        locked_weeks = set(settings[const.DATA_SETTINGS_LOCKED_WEEKS])
        if (week in locked_weeks) == locked:
            return False
        if locked:
            locked_weeks.add(week)
        else:
            locked_weeks.discard(week)
        settings[const.DATA_SETTINGS_LOCKED_WEEKS] = sorted(locked_weeks)
        return True

    # =========================================================================
    # Adjustments
    # =========================================================================

    @staticmethod
    def resolve_points(
        settings: SettingsData, label: str, is_positive: bool, points: int | None
    ) -> int | None:
        """Return the signed points to store with a new occurrence.

        Explicit points win and are signed by the sub-list; otherwise the
        catalog value is used; None when neither is known.
        """
        if points is not None:
            return abs(points) if is_positive else -abs(points)
        item = BehaviorEngine.find_behavior(
            BehaviorEngine.catalog(settings, is_positive), label
        )
        if item is None:
            return None
        return int(item[const.DATA_BEHAVIOR_POINTS])

    @staticmethod
    def apply_adjustment(
        records: dict[str, ConductRecord],
        settings: SettingsData,
        student_id: str,
        week: int,
        label: str,
        points: int | None,
        delta: int,
        is_positive: bool,
    ) -> ConductRecord | None:
        """Add (+1) or remove (-1) one occurrence of label and recompute.

        +1 creates the record at the default score when absent. -1 removes
        the first occurrence with that exact label. Returns the touched
        record, or None when nothing changed (label absent on removal).
        """
        field = (
            const.DATA_RECORD_POSITIVE_BEHAVIORS
            if is_positive
            else const.DATA_RECORD_VIOLATIONS
        )
        if delta == const.ADJUSTMENT_ADD:
            record = ConductEngine.get_or_create_record(
                records, student_id, week, settings
            )
            record[field].append(
                build_occurrence(
                    label,
                    ConductEngine.resolve_points(settings, label, is_positive, points),
                )
            )
        else:
            record = ConductEngine.get_record(records, student_id, week)
            if record is None:
                return None
            occurrences = record[field]
            index = next(
                (
                    i
                    for i, occurrence in enumerate(occurrences)
                    if occurrence[const.DATA_OCCURRENCE_LABEL] == label
                ),
                None,
            )
            if index is None:
                return None
            occurrences.pop(index)

        record[const.DATA_RECORD_SCORE] = BehaviorEngine.recompute_score(
            record, settings
        )
        return record

    @staticmethod
    def batch_apply(
        records: dict[str, ConductRecord],
        settings: SettingsData,
        student_ids: Iterable[str],
        week: int,
        points: int,
        reason: str,
        is_positive: bool,
    ) -> int:
        """Append one annotated occurrence for every student. Returns count.

        The label carries its own points ("Cleanup (+5đ)") so it keeps its
        value without a catalog entry.
        """
        signed = abs(points) if is_positive else -abs(points)
        label = BehaviorEngine.format_label_with_points(reason.strip(), signed)
        field = (
            const.DATA_RECORD_POSITIVE_BEHAVIORS
            if is_positive
            else const.DATA_RECORD_VIOLATIONS
        )
        count = 0
        for student_id in student_ids:
            record = ConductEngine.get_or_create_record(
                records, student_id, week, settings
            )
            record[field].append(build_occurrence(label, signed))
            record[const.DATA_RECORD_SCORE] = BehaviorEngine.recompute_score(
                record, settings
            )
            count += 1
        return count

    @staticmethod
    def fill_missing(
        records: dict[str, ConductRecord],
        settings: SettingsData,
        student_ids: Iterable[str],
        week: int,
    ) -> int:
        """Create default records for students without one. Returns created."""
        created = 0
        for student_id in student_ids:
            if ConductEngine.get_record(records, student_id, week) is None:
                ConductEngine.get_or_create_record(records, student_id, week, settings)
                created += 1
        return created

    @staticmethod
    def clear_week(records: dict[str, ConductRecord], week: int) -> int:
        """Delete every record of the week. Returns how many were removed."""
        doomed = [
            record_id
            for record_id, record in records.items()
            if record[const.DATA_RECORD_WEEK] == week
        ]
        for record_id in doomed:
            del records[record_id]
        return len(doomed)

    @staticmethod
    def set_note(
        records: dict[str, ConductRecord],
        settings: SettingsData,
        student_id: str,
        week: int,
        note: str,
    ) -> ConductRecord:
        """Set the free-text note, creating the record when absent."""
        record = ConductEngine.get_or_create_record(records, student_id, week, settings)
        record[const.DATA_RECORD_NOTE] = note.strip()
        return record
