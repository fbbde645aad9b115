"""Unit tests for ConductEngine - weekly ledger rules without Home Assistant.

Test Categories:
- Single adjustments (+1 / -1)
- Class batches
- Fill missing / clear week / notes
- Week lock toggling
- Legacy record normalization
"""

from __future__ import annotations

from typing import Any

from custom_components.classconduct.engines.conduct_engine import ConductEngine
from tests.helpers import make_record, make_records

# =============================================================================
# Test: apply_adjustment
# =============================================================================


class TestApplyAdjustment:
    """Tests for adding and removing occurrences."""

    def test_add_creates_record_at_default(self, settings: dict[str, Any]) -> None:
        """+1 on an absent record creates it and stores catalog points."""
        records: dict[str, Any] = {}
        record = ConductEngine.apply_adjustment(
            records, settings, "s1", 3, "Late", None, 1, False
        )
        assert record is not None
        assert record["id"] == "CON-s1-W3"
        assert record["violations"] == [{"label": "Late", "points": -10}]
        assert record["score"] == 90
        assert "CON-s1-W3" in records

    def test_remove_on_absent_record_is_noop(self, settings: dict[str, Any]) -> None:
        """-1 never creates a record."""
        records: dict[str, Any] = {}
        assert (
            ConductEngine.apply_adjustment(
                records, settings, "s1", 3, "Late", None, -1, False
            )
            is None
        )
        assert records == {}

    def test_remove_takes_first_exact_match(self, settings: dict[str, Any]) -> None:
        """Only one occurrence goes; annotated variants do not match."""
        records = make_records(
            make_record("s1", 1, 78, ["Late", "Late (-10đ)", "Talking", "Late"])
        )
        record = ConductEngine.apply_adjustment(
            records, settings, "s1", 1, "Late", None, -1, False
        )
        assert record is not None
        assert [o["label"] for o in record["violations"]] == [
            "Late (-10đ)",
            "Talking",
            "Late",
        ]
        assert record["score"] == 78

    def test_remove_missing_label_returns_none(self, settings: dict[str, Any]) -> None:
        """Removing a label the record lacks changes nothing."""
        records = make_records(make_record("s1", 1, 98, ["Talking"]))
        assert (
            ConductEngine.apply_adjustment(
                records, settings, "s1", 1, "Late", None, -1, False
            )
            is None
        )
        assert len(records["CON-s1-W1"]["violations"]) == 1

    def test_explicit_points_signed_by_list(self, settings: dict[str, Any]) -> None:
        """Explicit points are stored negative for violations."""
        records: dict[str, Any] = {}
        record = ConductEngine.apply_adjustment(
            records, settings, "s1", 1, "Phone", 3, 1, False
        )
        assert record is not None
        assert record["violations"] == [{"label": "Phone", "points": -3}]
        assert record["score"] == 97

    def test_unknown_label_without_points_counts_zero(
        self, settings: dict[str, Any]
    ) -> None:
        """Free-text labels outside the catalog keep the score."""
        records: dict[str, Any] = {}
        record = ConductEngine.apply_adjustment(
            records, settings, "s1", 1, "Mystery", None, 1, False
        )
        assert record is not None
        assert record["violations"] == [{"label": "Mystery", "points": None}]
        assert record["score"] == 100

    def test_positive_adjustment(self, settings: dict[str, Any]) -> None:
        """Positives go to positive_behaviors."""
        records = make_records(make_record("s1", 1, 90, ["Late"]))
        record = ConductEngine.apply_adjustment(
            records, settings, "s1", 1, "Helping", None, 1, True
        )
        assert record is not None
        assert record["positive_behaviors"] == [{"label": "Helping", "points": 5}]
        assert record["score"] == 95


# =============================================================================
# Test: Batches and week operations
# =============================================================================


class TestWeekOperations:
    """Tests for batch_apply, fill_missing, clear_week and set_note."""

    def test_batch_bonus_annotates_label(self, settings: dict[str, Any]) -> None:
        """Each student gets one "(+Nđ)" occurrence."""
        records = make_records(make_record("s1", 2, 90, ["Late"]))
        count = ConductEngine.batch_apply(
            records, settings, ["s1", "s2"], 2, 5, "Cleanup", True
        )
        assert count == 2
        assert records["CON-s1-W2"]["positive_behaviors"] == [
            {"label": "Cleanup (+5đ)", "points": 5}
        ]
        assert records["CON-s1-W2"]["score"] == 95
        assert records["CON-s2-W2"]["score"] == 100

    def test_batch_penalty(self, settings: dict[str, Any]) -> None:
        """Penalties store negative points whatever the input sign."""
        records: dict[str, Any] = {}
        ConductEngine.batch_apply(records, settings, ["s1"], 2, 5, " Noise ", False)
        assert records["CON-s1-W2"]["violations"] == [
            {"label": "Noise (-5đ)", "points": -5}
        ]
        assert records["CON-s1-W2"]["score"] == 95

    def test_fill_missing_is_idempotent(self, settings: dict[str, Any]) -> None:
        """A second fill creates nothing."""
        records = make_records(make_record("s1", 4, 90, ["Late"]))
        assert ConductEngine.fill_missing(records, settings, ["s1", "s2", "s3"], 4) == 2
        assert ConductEngine.fill_missing(records, settings, ["s1", "s2", "s3"], 4) == 0
        assert records["CON-s1-W4"]["score"] == 90
        assert records["CON-s3-W4"]["score"] == 100

    def test_clear_week_only_touches_that_week(self, settings: dict[str, Any]) -> None:
        """Other weeks survive."""
        records = make_records(
            make_record("s1", 1, 100),
            make_record("s2", 1, 100),
            make_record("s1", 2, 100),
        )
        assert ConductEngine.clear_week(records, 1) == 2
        assert list(records) == ["CON-s1-W2"]

    def test_set_note_creates_record(self, settings: dict[str, Any]) -> None:
        """Notes are trimmed and create the record when needed."""
        records: dict[str, Any] = {}
        record = ConductEngine.set_note(records, settings, "s1", 5, "  Called home ")
        assert record["note"] == "Called home"
        assert record["score"] == 100

    def test_active_weeks_and_history(self, settings: dict[str, Any]) -> None:
        """History is sorted by week; active weeks span every student."""
        records = make_records(
            make_record("s1", 3, 100),
            make_record("s1", 1, 100),
            make_record("s2", 2, 100),
        )
        assert ConductEngine.active_weeks(records) == [1, 2, 3]
        assert [r["week"] for r in ConductEngine.student_history(records, "s1")] == [1, 3]
        assert [
            r["week"]
            for r in ConductEngine.student_history(records, "s1", up_to_week=2)
        ] == [1]


# =============================================================================
# Test: Locks and normalization
# =============================================================================


class TestLocksAndNormalization:
    """Tests for week lock toggling and legacy data."""

    def test_set_week_locked(self, settings: dict[str, Any]) -> None:
        """Toggling reports whether anything changed and keeps the list sorted."""
        assert ConductEngine.set_week_locked(settings, 5, True) is True
        assert ConductEngine.set_week_locked(settings, 2, True) is True
        assert ConductEngine.set_week_locked(settings, 5, True) is False
        assert settings["locked_weeks"] == [2, 5]
        assert ConductEngine.is_week_locked(settings, 5)
        assert ConductEngine.set_week_locked(settings, 5, False) is True
        assert not ConductEngine.is_week_locked(settings, 5)

    def test_normalize_records_converts_strings(self) -> None:
        """Plain string occurrences become {label, points: None}."""
        raw = {
            "CON-s1-W1": {
                "id": "CON-s1-W1",
                "student_id": "s1",
                "week": 1,
                "score": 95,
                "violations": ["Talking (-2đ)"],
                "positive_behaviors": [],
            }
        }
        records = ConductEngine.normalize_records(raw)
        assert records["CON-s1-W1"]["violations"] == [
            {"label": "Talking (-2đ)", "points": None}
        ]
        assert records["CON-s1-W1"]["note"] == ""
