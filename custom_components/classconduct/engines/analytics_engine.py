"""Analytics Engine - Read-only alerts and semester aggregation.

Alert rules per student (history limited to weeks <= as_of_week):

- MISSING_DATA (WARNING): an active week (any student has a record) with no
  record for this student.
- DROP (WARNING): the as-of record is at least 15 below the mean of the
  records in [as_of - 3, as_of).
- TREND (CRITICAL): the three most recent records strictly decline by more
  than 5 in total.
- RECURRING (WARNING): a stripped violation label present in 3 of the last
  3 weeks that had violations (once per week).
- THRESHOLD: rounded mean below pass is CRITICAL; within 3 above pass is
  WARNING.

Students with fewer than two records only get MISSING_DATA alerts.

ARCHITECTURE: Pure logic, NO Home Assistant dependencies. Inputs are never
mutated.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .. import const
from ..utils.math_utils import mean, round_half_up
from .behavior_engine import BehaviorEngine

if TYPE_CHECKING:
    from ..type_defs import (
        Alert,
        ConductRecord,
        SemesterSummary,
        SettingsData,
        StudentAnalysis,
        StudentData,
    )


def _make_alert(alert_type: str, code: str, message: str) -> Alert:
    """Build a standard alert dict."""
    return {
        const.ALERT_KEY_TYPE: alert_type,
        const.ALERT_KEY_CODE: code,
        const.ALERT_KEY_MESSAGE: message,
    }  # type: ignore[return-value]


class AnalyticsEngine:
    """Stateless alert and aggregation rules."""

    # =========================================================================
    # Individual rules
    # =========================================================================

    @staticmethod
    def _missing_data_alerts(
        history: list[ConductRecord], active_weeks: list[int], as_of_week: int
    ) -> list[Alert]:
        weeks_present = {record[const.DATA_RECORD_WEEK] for record in history}
        return [
            _make_alert(
                const.ALERT_TYPE_WARNING,
                const.ALERT_CODE_MISSING_DATA,
                f"No record entered for week {week}.",
            )
            for week in sorted(active_weeks)
            if week <= as_of_week and week not in weeks_present
        ]

    @staticmethod
    def _drop_alert(history: list[ConductRecord], as_of_week: int) -> Alert | None:
        current = next(
            (r for r in history if r[const.DATA_RECORD_WEEK] == as_of_week), None
        )
        if current is None:
            return None
        previous = [
            r[const.DATA_RECORD_SCORE]
            for r in history
            if as_of_week - const.ANALYSIS_DROP_LOOKBACK_WEEKS
            <= r[const.DATA_RECORD_WEEK]
            < as_of_week
        ]
        if not previous:
            return None
        average = mean(previous)
        score = current[const.DATA_RECORD_SCORE]
        if average - score < const.ANALYSIS_DROP_MIN_POINTS:
            return None
        return _make_alert(
            const.ALERT_TYPE_WARNING,
            const.ALERT_CODE_DROP,
            f"Sudden drop to {score} against a previous average of "
            f"{round_half_up(average)}.",
        )

    @staticmethod
    def _trend_alert(history: list[ConductRecord]) -> Alert | None:
        if len(history) < const.ANALYSIS_TREND_WINDOW:
            return None
        oldest, middle, newest = (
            r[const.DATA_RECORD_SCORE] for r in history[-const.ANALYSIS_TREND_WINDOW :]
        )
        if not oldest > middle > newest:
            return None
        if oldest - newest <= const.ANALYSIS_TREND_MIN_DECLINE:
            return None
        return _make_alert(
            const.ALERT_TYPE_CRITICAL,
            const.ALERT_CODE_TREND,
            f"Declining three weeks in a row ({oldest} -> {middle} -> {newest}).",
        )

    @staticmethod
    def _recurring_alerts(history: list[ConductRecord]) -> list[Alert]:
        with_violations = [r for r in history if r[const.DATA_RECORD_VIOLATIONS]][
            -const.ANALYSIS_RECURRING_WINDOW :
        ]
        counts: dict[str, int] = {}
        for record in with_violations:
            labels = dict.fromkeys(
                BehaviorEngine.strip_annotations(o[const.DATA_OCCURRENCE_LABEL])
                for o in record[const.DATA_RECORD_VIOLATIONS]
            )
            for label in labels:
                counts[label] = counts.get(label, 0) + 1
        return [
            _make_alert(
                const.ALERT_TYPE_WARNING,
                const.ALERT_CODE_RECURRING,
                f'Repeated violation: "{label}".',
            )
            for label, count in counts.items()
            if count >= const.ANALYSIS_RECURRING_MIN_WEEKS
        ]

    @staticmethod
    def _threshold_alert(
        history: list[ConductRecord], settings: SettingsData
    ) -> Alert | None:
        average = round_half_up(mean([r[const.DATA_RECORD_SCORE] for r in history]))
        pass_mark = settings[const.DATA_SETTINGS_THRESHOLDS][const.THRESHOLD_PASS]
        if average < pass_mark:
            return _make_alert(
                const.ALERT_TYPE_CRITICAL,
                const.ALERT_CODE_THRESHOLD,
                f"Average score ({average}) is below the pass mark.",
            )
        if average < pass_mark + const.ANALYSIS_THRESHOLD_WARNING_MARGIN:
            return _make_alert(
                const.ALERT_TYPE_WARNING,
                const.ALERT_CODE_THRESHOLD,
                f"At risk of falling below the pass mark (currently {average}).",
            )
        return None

    # =========================================================================
    # Public API
    # =========================================================================

    @staticmethod
    def analyze_student(
        history: list[ConductRecord],
        settings: SettingsData,
        as_of_week: int,
        active_weeks: list[int] | None = None,
    ) -> list[Alert]:
        """Return the ordered alerts for one student's history."""
        scoped = sorted(
            (r for r in history if r[const.DATA_RECORD_WEEK] <= as_of_week),
            key=lambda r: r[const.DATA_RECORD_WEEK],
        )
        alerts = AnalyticsEngine._missing_data_alerts(
            scoped, active_weeks or [], as_of_week
        )
        if len(scoped) < const.ANALYSIS_MIN_RECORDS:
            return alerts

        drop = AnalyticsEngine._drop_alert(scoped, as_of_week)
        if drop:
            alerts.append(drop)
        trend = AnalyticsEngine._trend_alert(scoped)
        if trend:
            alerts.append(trend)
        alerts.extend(AnalyticsEngine._recurring_alerts(scoped))
        threshold = AnalyticsEngine._threshold_alert(scoped, settings)
        if threshold:
            alerts.append(threshold)
        return alerts

    @staticmethod
    def analyze_class(
        students: list[StudentData],
        records: list[ConductRecord],
        settings: SettingsData,
        as_of_week: int,
    ) -> list[StudentAnalysis]:
        """Return analyses for active students that have any alert.

        Students with a CRITICAL alert come first; input order is otherwise
        kept (sorted() is stable).
        """
        active_weeks = sorted({r[const.DATA_RECORD_WEEK] for r in records})
        by_student: dict[str, list[ConductRecord]] = {}
        for record in records:
            by_student.setdefault(record[const.DATA_RECORD_STUDENT_ID], []).append(
                record
            )

        results: list[StudentAnalysis] = []
        for student in students:
            if not student.get(const.DATA_STUDENT_IS_ACTIVE, True):
                continue
            alerts = AnalyticsEngine.analyze_student(
                by_student.get(student[const.DATA_STUDENT_ID], []),
                settings,
                as_of_week,
                active_weeks,
            )
            if alerts:
                results.append(
                    {
                        "student_id": student[const.DATA_STUDENT_ID],
                        "student_name": student[const.DATA_STUDENT_NAME],
                        "alerts": alerts,
                    }
                )

        return sorted(
            results,
            key=lambda analysis: not any(
                alert[const.ALERT_KEY_TYPE] == const.ALERT_TYPE_CRITICAL
                for alert in analysis["alerts"]
            ),
        )

    @staticmethod
    def semester_summary(
        history: list[ConductRecord], settings: SettingsData, period: str
    ) -> SemesterSummary:
        """Aggregate one student's records for s1, s2 or the whole year.

        Each weekly score is converted through rank_scores (GOOD → 10 by
        default); the semester rank compares the converted mean against
        semester_thresholds.
        """
        split = settings[const.DATA_SETTINGS_SEMESTER_TWO_START_WEEK]
        if period == const.SEMESTER_ONE:
            scoped = [r for r in history if r[const.DATA_RECORD_WEEK] < split]
        elif period == const.SEMESTER_TWO:
            scoped = [r for r in history if r[const.DATA_RECORD_WEEK] >= split]
        else:
            scoped = list(history)

        if not scoped:
            return {
                "period": period,
                "weeks": 0,
                "average_score": None,
                "average_converted": None,
                "rank": const.RANK_NOT_AVAILABLE,
            }

        thresholds = settings[const.DATA_SETTINGS_THRESHOLDS]
        rank_scores = settings[const.DATA_SETTINGS_RANK_SCORES]
        converted = [
            rank_scores[
                BehaviorEngine.rank_for_score(r[const.DATA_RECORD_SCORE], thresholds).lower()
            ]
            for r in scoped
        ]
        average_converted = round(mean(converted), 1)
        return {
            "period": period,
            "weeks": len(scoped),
            "average_score": round_half_up(
                mean([r[const.DATA_RECORD_SCORE] for r in scoped])
            ),
            "average_converted": average_converted,
            "rank": BehaviorEngine.rank_for_score(
                average_converted, settings[const.DATA_SETTINGS_SEMESTER_THRESHOLDS]
            ),
        }

    @staticmethod
    def week_summary(
        week_records: list[ConductRecord],
        settings: SettingsData,
        common_ratio: float = 0.8,
    ) -> dict:
        """Summarize one week: mean score, rank counts, common behaviors.

        A behavior is "common" when at least common_ratio of the week's
        records carry it (once per record).
        """
        thresholds = settings[const.DATA_SETTINGS_THRESHOLDS]
        rank_counts = {
            rank: 0
            for rank in (const.RANK_GOOD, const.RANK_FAIR, const.RANK_PASS, const.RANK_FAIL)
        }
        for record in week_records:
            rank_counts[
                BehaviorEngine.rank_for_score(record[const.DATA_RECORD_SCORE], thresholds)
            ] += 1

        def _common(field: str) -> list[str]:
            counts: dict[str, int] = {}
            for record in week_records:
                for label in dict.fromkeys(
                    o[const.DATA_OCCURRENCE_LABEL] for o in record[field]
                ):
                    counts[label] = counts.get(label, 0) + 1
            minimum = len(week_records) * common_ratio
            return [label for label, count in counts.items() if count >= minimum]

        scores = [r[const.DATA_RECORD_SCORE] for r in week_records]
        return {
            "records": len(week_records),
            "average_score": round_half_up(mean(scores)) if scores else None,
            "rank_counts": rank_counts,
            "common_violations": _common(const.DATA_RECORD_VIOLATIONS),
            "common_positives": _common(const.DATA_RECORD_POSITIVE_BEHAVIORS),
        }
