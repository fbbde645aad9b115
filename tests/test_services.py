"""Tests for Class Conduct services.

Services address students by roster name and behaviors by catalog label;
these tests drive them through hass.services the way automations do.
"""

from __future__ import annotations

from homeassistant.core import HomeAssistant
from homeassistant.exceptions import HomeAssistantError
import pytest

from custom_components.classconduct import const
from tests.helpers import SetupResult


async def _call(
    hass: HomeAssistant, service: str, data: dict, *, response: bool = False
):
    return await hass.services.async_call(
        const.DOMAIN, service, data, blocking=True, return_response=response
    )


# =============================================================================
# Test: Catalog and ledger services
# =============================================================================


class TestLedgerServices:
    """Catalog edits and weekly adjustments by name."""

    @pytest.mark.asyncio
    async def test_add_behavior_then_adjust_by_name(
        self, hass: HomeAssistant, scenario_class: SetupResult
    ) -> None:
        """A new catalog item is usable by label immediately."""
        await _call(
            hass,
            const.SERVICE_ADD_BEHAVIOR,
            {"label": "No homework", "points": -4, "category": const.BEHAVIOR_CATEGORY_STUDY},
        )
        await _call(
            hass,
            const.SERVICE_APPLY_ADJUSTMENT,
            {"student_name": "An", "week": 1, "label": "No homework"},
        )

        record = scenario_class.coordinator.conduct_manager.get_record(
            scenario_class.student_ids["An"], 1
        )
        assert record["violations"] == [{"label": "No homework", "points": -4}]
        assert record["score"] == 96

    @pytest.mark.asyncio
    async def test_remove_adjustment_and_note(
        self, hass: HomeAssistant, scenario_class: SetupResult
    ) -> None:
        """delta -1 removes one occurrence; notes land on the same record."""
        for delta in (1, 1, -1):
            await _call(
                hass,
                const.SERVICE_APPLY_ADJUSTMENT,
                {"student_name": "Binh", "week": 2, "label": "Talking", "delta": delta},
            )
        await _call(
            hass,
            const.SERVICE_SET_NOTE,
            {"student_name": "Binh", "week": 2, "note": "Moved seat"},
        )

        record = scenario_class.coordinator.conduct_manager.get_record(
            scenario_class.student_ids["Binh"], 2
        )
        assert record["score"] == 98
        assert record["note"] == "Moved seat"

    @pytest.mark.asyncio
    async def test_unknown_student_name(
        self, hass: HomeAssistant, scenario_class: SetupResult
    ) -> None:
        """Names that are not on the roster are reported as not found."""
        with pytest.raises(HomeAssistantError) as exc_info:
            await _call(
                hass,
                const.SERVICE_APPLY_ADJUSTMENT,
                {"student_name": "Ghost", "week": 1, "label": "Late"},
            )
        assert exc_info.value.translation_key == const.TRANS_KEY_ERROR_NOT_FOUND

    @pytest.mark.asyncio
    async def test_update_settings_requires_a_field(
        self, hass: HomeAssistant, scenario_class: SetupResult
    ) -> None:
        """An empty settings update is refused."""
        with pytest.raises(HomeAssistantError) as exc_info:
            await _call(hass, const.SERVICE_UPDATE_SETTINGS, {})
        assert exc_info.value.translation_key == const.TRANS_KEY_ERROR_INVALID_INPUT

    @pytest.mark.asyncio
    async def test_batch_bonus_reaches_every_active_student(
        self, hass: HomeAssistant, scenario_class: SetupResult
    ) -> None:
        """The class bonus writes one annotated positive per student."""
        await _call(
            hass,
            const.SERVICE_BATCH_CLASS_BONUS,
            {"week": 3, "points": 5, "reason": "Cleanup"},
        )

        manager = scenario_class.coordinator.conduct_manager
        for student_id in scenario_class.student_ids.values():
            record = manager.get_record(student_id, 3)
            assert record["positive_behaviors"] == [
                {"label": "Cleanup (+5đ)", "points": 5}
            ]


# =============================================================================
# Test: Analytics responses
# =============================================================================


class TestAnalyticsServices:
    """Response-only services."""

    @pytest.mark.asyncio
    async def test_week_summary(
        self, hass: HomeAssistant, scenario_class: SetupResult
    ) -> None:
        """Filled weeks report the class average and rank counts."""
        await _call(
            hass,
            const.SERVICE_APPLY_ADJUSTMENT,
            {"student_name": "An", "week": 1, "label": "Tardy"},
        )
        await _call(hass, const.SERVICE_FILL_MISSING, {"week": 1})

        summary = await _call(
            hass, const.SERVICE_WEEK_SUMMARY, {"week": 1}, response=True
        )

        assert summary["records"] == 3
        assert summary["average_score"] == 98
        assert summary["rank_counts"][const.RANK_GOOD] == 3
        assert summary["common_violations"] == []

    @pytest.mark.asyncio
    async def test_analyze_class_and_single_student(
        self, hass: HomeAssistant, scenario_class: SetupResult
    ) -> None:
        """Only students with alerts are listed; naming one narrows it."""
        for week in (1, 2):
            await _call(
                hass,
                const.SERVICE_APPLY_ADJUSTMENT,
                {"student_name": "An", "week": week, "label": "Tardy"},
            )

        class_result = await _call(
            hass, const.SERVICE_ANALYZE_CLASS, {"as_of_week": 2}, response=True
        )
        assert [s["student_name"] for s in class_result["students"]] == ["Binh", "Chi"]
        assert [a["code"] for a in class_result["students"][0]["alerts"]] == [
            const.ALERT_CODE_MISSING_DATA,
            const.ALERT_CODE_MISSING_DATA,
        ]

        single = await _call(
            hass,
            const.SERVICE_ANALYZE_CLASS,
            {"as_of_week": 2, "student_name": "An"},
            response=True,
        )
        assert single["students"] == [
            {
                "student_id": scenario_class.student_ids["An"],
                "student_name": "An",
                "alerts": [],
            }
        ]

    @pytest.mark.asyncio
    async def test_semester_summary_defaults_to_year(
        self, hass: HomeAssistant, scenario_class: SetupResult
    ) -> None:
        """Without records the summary is empty and unranked."""
        summary = await _call(
            hass,
            const.SERVICE_SEMESTER_SUMMARY,
            {"student_name": "Chi"},
            response=True,
        )
        assert summary["period"] == const.SEMESTER_YEAR
        assert summary["weeks"] == 0
        assert summary["rank"] == const.RANK_NOT_AVAILABLE


# =============================================================================
# Test: Economy and report services
# =============================================================================


class TestEconomyServices:
    """Settlement, shop and reports by name."""

    @pytest.mark.asyncio
    async def test_settle_week_class_wide(
        self, hass: HomeAssistant, scenario_class: SetupResult
    ) -> None:
        """Without a student name every active student is settled."""
        await _call(
            hass,
            const.SERVICE_APPLY_ADJUSTMENT,
            {"student_name": "An", "week": 1, "label": "Tardy"},
        )
        await _call(hass, const.SERVICE_FILL_MISSING, {"week": 1})
        await _call(hass, const.SERVICE_LOCK_WEEK, {"week": 1})

        await _call(hass, const.SERVICE_SETTLE_WEEK, {"week": 1})

        economy = scenario_class.coordinator.economy_manager
        ids = scenario_class.student_ids
        assert economy.get_balance(ids["An"]) == 50
        assert economy.get_balance(ids["Binh"]) == 80
        assert economy.get_balance(ids["Chi"]) == 80

        await _call(
            hass, const.SERVICE_UNDO_SETTLEMENT, {"week": 1, "student_name": "Binh"}
        )
        assert economy.get_balance(ids["Binh"]) == 0

    @pytest.mark.asyncio
    async def test_create_order_without_coins(
        self, hass: HomeAssistant, scenario_class: SetupResult
    ) -> None:
        """Insufficient coins surface as a translated error with the shortfall."""
        with pytest.raises(HomeAssistantError) as exc_info:
            await _call(
                hass,
                const.SERVICE_CREATE_ORDER,
                {
                    "student_name": "An",
                    "item_type": const.ITEM_TYPE_REWARD,
                    "item_id": "r-pen",
                },
            )
        assert exc_info.value.translation_key == const.TRANS_KEY_ERROR_INSUFFICIENT_COINS
        assert exc_info.value.translation_placeholders == {
            "name": "An",
            "shortfall": "30",
        }

    @pytest.mark.asyncio
    async def test_submit_and_approve_report(
        self, hass: HomeAssistant, scenario_class: SetupResult
    ) -> None:
        """An officer's violation report lands in the ledger once approved."""
        await _call(
            hass,
            const.SERVICE_SUBMIT_REPORT,
            {
                "reporter_name": "Chi",
                "student_name": "An",
                "week": 1,
                "report_type": const.REPORT_TYPE_VIOLATION,
                "content": "late",
            },
        )
        reports = scenario_class.coordinator.report_manager
        [pending] = reports.list_pending()

        await _call(hass, const.SERVICE_APPROVE_REPORT, {"report_id": pending["id"]})

        record = scenario_class.coordinator.conduct_manager.get_record(
            scenario_class.student_ids["An"], 1
        )
        assert record["score"] == 90
        assert reports.list_pending() == []

    @pytest.mark.asyncio
    async def test_create_student_service(
        self, hass: HomeAssistant, scenario_class: SetupResult
    ) -> None:
        """New roster entries are addressable by name straight away."""
        await _call(
            hass,
            const.SERVICE_CREATE_STUDENT,
            {"name": "Dung", "roles": [const.ROLE_VICE_DISCIPLINE]},
        )
        await _call(
            hass,
            const.SERVICE_UPDATE_STUDENT,
            {"student_name": "Dung", "is_active": False},
        )

        students = scenario_class.coordinator.students_data
        [dung] = [s for s in students.values() if s["name"] == "Dung"]
        assert dung["roles"] == [const.ROLE_VICE_DISCIPLINE]
        assert dung["is_active"] is False
