"""Report Manager - Officer violation and bonus reports.

Student-officers submit reports about classmates; staff approve or reject
them. Approval delegates the actual effect to the other managers:
- VIOLATION -> ConductManager.apply_adjustment (or an IMMUNITY card is used)
- BONUS -> EconomyManager.deposit

Only PENDING reports can be resolved.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from homeassistant.util import dt as dt_util

from .. import const, data_builders as db
from ..engines.behavior_engine import BehaviorEngine
from ..engines.economy_engine import EconomyEngine
from ..helpers.entity_helpers import not_found_error
from .base_manager import BaseManager

if TYPE_CHECKING:
    from ..type_defs import PendingReport


class ReportManager(BaseManager):
    """Manager for the officer report workflow."""

    async def async_setup(self) -> None:
        """Set up the ReportManager (no event subscriptions)."""
        pending = [
            report
            for report in self.store.get(const.DATA_PENDING_REPORTS).values()
            if report.get(const.DATA_REPORT_STATUS) == const.STATUS_PENDING
        ]
        const.LOGGER.debug("DEBUG: ReportManager ready, %s pending reports", len(pending))

    def _get_pending_report(
        self, reports: dict[str, PendingReport], report_id: str
    ) -> PendingReport:
        report = reports.get(report_id)
        if report is None:
            raise not_found_error(const.LABEL_REPORT, report_id)
        if not EconomyEngine.can_resolve(report):
            self.raise_transition_error(
                const.TRANS_KEY_ERROR_INVALID_TRANSITION,
                id=report_id,
                status=str(report[const.DATA_REPORT_STATUS]),
            )
        return report

    def _finish(
        self, reports: dict[str, PendingReport], report: PendingReport, status: str
    ) -> None:
        report[const.DATA_REPORT_STATUS] = status  # type: ignore[typeddict-item]
        report[const.DATA_REPORT_RESOLVED_AT] = dt_util.utcnow().isoformat()
        self.commit(**{const.DATA_PENDING_REPORTS: reports})
        self.emit(
            const.SIGNAL_SUFFIX_REPORT_RESOLVED,
            report_id=report[const.DATA_REPORT_ID],
            student_id=report[const.DATA_REPORT_STUDENT_ID],
            status=status,
        )
        const.LOGGER.info(
            "INFO: Report %s (%s) %s",
            report[const.DATA_REPORT_ID],
            report[const.DATA_REPORT_TYPE],
            status.lower(),
        )

    # =========================================================================
    # Submission
    # =========================================================================

    def submit_report(
        self,
        reporter_id: str,
        student_id: str,
        week: Any,
        report_type: str,
        content: str,
        amount: int | None = None,
        note: str = "",
    ) -> PendingReport:
        """Record a PENDING report from an officer.

        Raises:
            HomeAssistantError: reporter is not an officer, invalid input, or a
                BONUS amount above the per-student cap or remaining budget
        """
        students = self.store.get(const.DATA_STUDENTS)
        reporter = self.require_student(students, reporter_id)
        self.require_student(students, student_id)
        if not any(
            role in const.OFFICER_ROLES
            for role in reporter.get(const.DATA_STUDENT_ROLES, [])
        ):
            self.raise_transition_error(
                const.TRANS_KEY_ERROR_NOT_OFFICER,
                name=reporter[const.DATA_STUDENT_NAME],
            )

        try:
            report = db.build_report(
                {
                    const.DATA_REPORT_STUDENT_ID: student_id,
                    const.DATA_REPORT_WEEK: week,
                    const.DATA_REPORT_TYPE: report_type,
                    const.DATA_REPORT_CONTENT: content,
                    const.DATA_REPORT_AMOUNT: amount,
                    const.DATA_REPORT_NOTE: note,
                },
                reporter,
                dt_util.utcnow(),
            )
        except db.EntityValidationError as err:
            self.raise_validation_error(err)

        reports = self.store.get(const.DATA_PENDING_REPORTS)
        if report_type == const.REPORT_TYPE_BONUS:
            settings = self.get_settings()
            cap = int(
                settings[const.DATA_SETTINGS_ROLE_BUDGETS][
                    const.ROLE_BUDGET_MAX_PER_STUDENT
                ]
            )
            remaining = EconomyEngine.remaining_budget(
                reporter,
                list(reports.values()),
                report[const.DATA_REPORT_WEEK],
                settings,
            )
            requested = report[const.DATA_REPORT_AMOUNT]  # type: ignore[typeddict-item]
            if requested > min(cap, remaining):
                self.raise_transition_error(
                    const.TRANS_KEY_ERROR_BUDGET_EXCEEDED,
                    amount=str(requested),
                    limit=str(min(cap, remaining)),
                )

        reports[report[const.DATA_REPORT_ID]] = report
        self.commit(**{const.DATA_PENDING_REPORTS: reports})
        self.emit(
            const.SIGNAL_SUFFIX_REPORT_SUBMITTED,
            report_id=report[const.DATA_REPORT_ID],
            reporter_id=reporter_id,
            student_id=student_id,
            report_type=report_type,
        )
        const.LOGGER.info(
            "INFO: %s report %s submitted by '%s' for week %s",
            report_type,
            report[const.DATA_REPORT_ID],
            reporter[const.DATA_STUDENT_NAME],
            report[const.DATA_REPORT_WEEK],
        )
        return report

    # =========================================================================
    # Resolution
    # =========================================================================

    def approve_report(
        self, report_id: str, use_immunity: bool = False
    ) -> PendingReport:
        """Approve a PENDING report and apply its effect.

        A VIOLATION on a locked week is refused and the report stays PENDING.
        With use_immunity, one IMMUNITY card is consumed instead of recording
        the violation.

        Raises:
            HomeAssistantError: unknown/non-PENDING report, locked week, or no
                IMMUNITY card held when use_immunity is set
        """
        reports = self.store.get(const.DATA_PENDING_REPORTS)
        report = self._get_pending_report(reports, report_id)
        student_id = report[const.DATA_REPORT_STUDENT_ID]
        week = report[const.DATA_REPORT_WEEK]
        coordinator = self.coordinator

        if report[const.DATA_REPORT_TYPE] == const.REPORT_TYPE_BONUS:
            coordinator.economy_manager.deposit(
                student_id,
                int(report.get(const.DATA_REPORT_AMOUNT, 0)),
                source="officer_report",
            )
        elif use_immunity:
            students = self.store.get(const.DATA_STUDENTS)
            self.require_student(students, student_id)
            card_id = coordinator.economy_manager.consume_immunity(students, student_id)
            if card_id is None:
                raise not_found_error(const.LABEL_ITEM, const.REWARD_TYPE_IMMUNITY)
            self.commit(**{const.DATA_STUDENTS: students})
            report[const.DATA_REPORT_IMMUNITY_USED] = True
            const.LOGGER.info(
                "INFO: Immunity card %s used by student %s for report %s",
                card_id,
                student_id,
                report_id,
            )
        else:
            if coordinator.conduct_manager.is_week_locked(week):
                self.raise_transition_error(
                    const.TRANS_KEY_ERROR_WEEK_LOCKED, week=str(week)
                )
            item = BehaviorEngine.find_behavior(
                BehaviorEngine.catalog(self.get_settings(), False),
                report[const.DATA_REPORT_CONTENT],
                case_sensitive=False,
            )
            if item is None:
                label = report[const.DATA_REPORT_CONTENT]
                points = const.DEFAULT_UNKNOWN_VIOLATION_POINTS
            else:
                label = item[const.DATA_BEHAVIOR_LABEL]
                points = item[const.DATA_BEHAVIOR_POINTS]
            coordinator.conduct_manager.apply_adjustment(
                student_id, week, label, points=points, is_positive=False
            )
            report[const.DATA_REPORT_POINTS] = points

        self._finish(reports, report, const.STATUS_APPROVED)
        return report

    def reject_report(self, report_id: str) -> PendingReport:
        """Reject a PENDING report; nothing else changes."""
        reports = self.store.get(const.DATA_PENDING_REPORTS)
        report = self._get_pending_report(reports, report_id)
        self._finish(reports, report, const.STATUS_REJECTED)
        return report

    def list_pending(self) -> list[PendingReport]:
        """Return PENDING reports, oldest first."""
        return sorted(
            (
                report
                for report in self.store.get(const.DATA_PENDING_REPORTS).values()
                if report[const.DATA_REPORT_STATUS] == const.STATUS_PENDING
            ),
            key=lambda report: report[const.DATA_REPORT_TIMESTAMP],
        )
