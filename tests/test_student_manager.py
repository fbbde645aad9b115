"""Tests for StudentManager roster operations."""

from __future__ import annotations

from homeassistant.core import HomeAssistant
from homeassistant.exceptions import HomeAssistantError
import pytest

from custom_components.classconduct import const
from tests.helpers import SetupResult


class TestStudentManager:
    """Roster create and update."""

    @pytest.mark.asyncio
    async def test_create_student_defaults(
        self, hass: HomeAssistant, scenario_class: SetupResult
    ) -> None:
        """New students start with an empty wallet; NONE is not stored."""
        student = scenario_class.coordinator.student_manager.create_student(
            " Dung ", [const.ROLE_NONE]
        )
        assert student["name"] == "Dung"
        assert student["roles"] == []
        assert student["balance"] == 0
        assert student["is_active"] is True
        assert student["has_priority_seating"] is False

    @pytest.mark.asyncio
    async def test_duplicate_and_blank_names(
        self, hass: HomeAssistant, scenario_class: SetupResult
    ) -> None:
        """Names are required and unique."""
        manager = scenario_class.coordinator.student_manager
        with pytest.raises(HomeAssistantError) as exc_info:
            manager.create_student("An")
        assert exc_info.value.translation_key == const.TRANS_KEY_INVALID_NAME
        with pytest.raises(HomeAssistantError):
            manager.create_student("   ")

    @pytest.mark.asyncio
    async def test_unknown_role(
        self, hass: HomeAssistant, scenario_class: SetupResult
    ) -> None:
        """Roles come from the fixed list."""
        with pytest.raises(HomeAssistantError) as exc_info:
            scenario_class.coordinator.student_manager.create_student(
                "Dung", ["CAPTAIN"]
            )
        assert exc_info.value.translation_key == const.TRANS_KEY_INVALID_ROLE

    @pytest.mark.asyncio
    async def test_update_keeps_wallet(
        self, hass: HomeAssistant, scenario_class: SetupResult
    ) -> None:
        """Identity edits never touch coins or badges."""
        coordinator = scenario_class.coordinator
        an = scenario_class.student_ids["An"]
        coordinator.economy_manager.deposit(an, 40, source="test")
        coordinator.economy_manager.award_badge(an, "b-helper")

        student = coordinator.student_manager.update_student(
            an, name="An Nguyen", roles=[const.ROLE_VICE_STUDY], is_active=None
        )

        assert student["name"] == "An Nguyen"
        assert student["roles"] == [const.ROLE_VICE_STUDY]
        assert student["is_active"] is True
        assert student["balance"] == 40
        assert student["badges"] == ["b-helper"]

    @pytest.mark.asyncio
    async def test_unknown_student(
        self, hass: HomeAssistant, scenario_class: SetupResult
    ) -> None:
        """Unknown ids raise not found."""
        with pytest.raises(HomeAssistantError) as exc_info:
            scenario_class.coordinator.student_manager.get_student("ghost")
        assert exc_info.value.translation_placeholders == {
            "entity": const.LABEL_STUDENT,
            "name": "ghost",
        }
