"""Unit tests for AnalyticsEngine alerts and summaries."""

from __future__ import annotations

from typing import Any

from custom_components.classconduct import const
from custom_components.classconduct.engines.analytics_engine import AnalyticsEngine
from tests.helpers import make_record, make_student


def _codes(alerts: list[dict[str, Any]]) -> list[str]:
    return [alert["code"] for alert in alerts]


def _history(student_id: str, scores: list[int]) -> list[dict[str, Any]]:
    return [
        make_record(student_id, week, score)
        for week, score in enumerate(scores, start=1)
    ]


# =============================================================================
# Test: analyze_student
# =============================================================================


class TestAnalyzeStudent:
    """Tests for the individual alert rules."""

    def test_single_record_only_reports_missing_data(
        self, settings: dict[str, Any]
    ) -> None:
        """With fewer than two records only MISSING_DATA is possible."""
        history = [make_record("s1", 2, 10)]
        alerts = AnalyticsEngine.analyze_student(history, settings, 2, [1, 2])
        assert _codes(alerts) == [const.ALERT_CODE_MISSING_DATA]
        assert alerts[0]["type"] == const.ALERT_TYPE_WARNING
        assert "1" in alerts[0]["message"]

    def test_missing_data_ignores_weeks_after_as_of(
        self, settings: dict[str, Any]
    ) -> None:
        """Future active weeks are not reported."""
        history = _history("s1", [90, 90])
        assert AnalyticsEngine.analyze_student(history, settings, 2, [1, 2, 3]) == []

    def test_drop(self, settings: dict[str, Any]) -> None:
        """At least 15 below the previous three-week mean."""
        alerts = AnalyticsEngine.analyze_student(
            _history("s1", [90, 90, 90, 70]), settings, 4
        )
        assert _codes(alerts) == [const.ALERT_CODE_DROP]

    def test_trend(self, settings: dict[str, Any]) -> None:
        """Three strictly declining weeks losing more than 5 points."""
        alerts = AnalyticsEngine.analyze_student(
            _history("s1", [90, 85, 78]), settings, 3
        )
        assert _codes(alerts) == [const.ALERT_CODE_TREND]
        assert alerts[0]["type"] == const.ALERT_TYPE_CRITICAL

    def test_small_decline_is_not_a_trend(self, settings: dict[str, Any]) -> None:
        """A total decline of exactly 5 is tolerated."""
        assert (
            AnalyticsEngine.analyze_student(_history("s1", [90, 88, 85]), settings, 3)
            == []
        )

    def test_recurring_violation(self, settings: dict[str, Any]) -> None:
        """Stripped labels in three violation weeks, counted once per week."""
        history = [
            make_record("s1", 1, 96, ["Talking (-2đ)", "Talking (-2đ)"]),
            make_record("s1", 2, 98, ["Talking"]),
            make_record("s1", 3, 100),
            make_record("s1", 4, 98, ["Talking"]),
        ]
        alerts = AnalyticsEngine.analyze_student(history, settings, 4)
        assert _codes(alerts) == [const.ALERT_CODE_RECURRING]
        assert '"Talking"' in alerts[0]["message"]

    def test_threshold_critical(self, settings: dict[str, Any]) -> None:
        """Rounded mean below pass is CRITICAL."""
        alerts = AnalyticsEngine.analyze_student(_history("s1", [40, 45]), settings, 2)
        assert _codes(alerts) == [const.ALERT_CODE_THRESHOLD]
        assert alerts[0]["type"] == const.ALERT_TYPE_CRITICAL

    def test_threshold_warning(self, settings: dict[str, Any]) -> None:
        """Within three points above pass is a WARNING."""
        alerts = AnalyticsEngine.analyze_student(_history("s1", [52, 52]), settings, 2)
        assert _codes(alerts) == [const.ALERT_CODE_THRESHOLD]
        assert alerts[0]["type"] == const.ALERT_TYPE_WARNING

    def test_records_after_as_of_are_ignored(self, settings: dict[str, Any]) -> None:
        """A later collapse does not affect an earlier analysis."""
        history = _history("s1", [90, 90, 90, 20])
        assert AnalyticsEngine.analyze_student(history, settings, 3) == []


# =============================================================================
# Test: analyze_class
# =============================================================================


class TestAnalyzeClass:
    """Tests for class-wide ordering and filtering."""

    def test_critical_first_and_stable(self, settings: dict[str, Any]) -> None:
        """CRITICAL students lead; others keep roster order."""
        students = [
            make_student("s1", "An"),
            make_student("s2", "Binh"),
            make_student("s3", "Chi"),
            make_student("s4", "Dung", is_active=False),
            make_student("s5", "Em"),
        ]
        records = [
            *_history("s1", [52, 52]),
            *_history("s2", [90, 90]),
            *_history("s3", [40, 45]),
            *_history("s4", [10, 10]),
            *_history("s5", [52, 52]),
        ]
        result = AnalyticsEngine.analyze_class(students, records, settings, 2)
        assert [r["student_id"] for r in result] == ["s3", "s1", "s5"]
        assert result[0]["student_name"] == "Chi"

    def test_missing_data_uses_class_weeks(self, settings: dict[str, Any]) -> None:
        """A student without records is flagged for every active week."""
        students = [make_student("s1", "An"), make_student("s2", "Binh")]
        records = _history("s1", [90, 90])
        result = AnalyticsEngine.analyze_class(students, records, settings, 2)
        assert len(result) == 1
        assert _codes(result[0]["alerts"]) == [const.ALERT_CODE_MISSING_DATA] * 2


# =============================================================================
# Test: Summaries
# =============================================================================


class TestSummaries:
    """Tests for semester_summary and week_summary."""

    def test_semester_summary(self, settings: dict[str, Any]) -> None:
        """Scores convert through rank_scores before ranking."""
        history = [make_record("s1", 1, 90), make_record("s1", 2, 70)]
        summary = AnalyticsEngine.semester_summary(history, settings, const.SEMESTER_ONE)
        assert summary["weeks"] == 2
        assert summary["average_score"] == 80
        assert summary["average_converted"] == 9.0
        assert summary["rank"] == const.RANK_GOOD
        assert AnalyticsEngine.semester_summary(history, settings, "year") == {
            **summary,
            "period": "year",
        }

    def test_semester_summary_empty(self, settings: dict[str, Any]) -> None:
        """No records in the period gives N/A."""
        history = [make_record("s1", 1, 90)]
        summary = AnalyticsEngine.semester_summary(history, settings, const.SEMESTER_TWO)
        assert summary["rank"] == const.RANK_NOT_AVAILABLE
        assert summary["average_score"] is None
        assert summary["weeks"] == 0

    def test_week_summary(self, settings: dict[str, Any]) -> None:
        """Common behaviors appear on at least 80% of the week's records."""
        records = [
            make_record("s1", 1, 90, ["Talking", "Talking"], ["Helping"]),
            make_record("s2", 1, 70, ["Talking"]),
            make_record("s3", 1, 40, ["Talking", "Late"]),
        ]
        summary = AnalyticsEngine.week_summary(records, settings)
        assert summary["records"] == 3
        assert summary["average_score"] == 67
        assert summary["rank_counts"] == {
            const.RANK_GOOD: 1,
            const.RANK_FAIR: 1,
            const.RANK_PASS: 0,
            const.RANK_FAIL: 1,
        }
        assert summary["common_violations"] == ["Talking"]
        assert summary["common_positives"] == []

    def test_week_summary_empty(self, settings: dict[str, Any]) -> None:
        """An empty week has no average."""
        summary = AnalyticsEngine.week_summary([], settings)
        assert summary["records"] == 0
        assert summary["average_score"] is None
