"""Shared fixtures for Class Conduct tests."""

from collections.abc import Generator
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
from homeassistant.core import HomeAssistant

from custom_components.classconduct import const
from custom_components.classconduct.data_builders import build_default_settings
from tests.helpers.setup import SetupResult, setup_scenario

# pylint: disable=invalid-name
pytest_plugins = "pytest_homeassistant_custom_component"
# pylint: enable=invalid-name


@pytest.fixture(autouse=True)
def auto_enable_custom_integrations(enable_custom_integrations: Any) -> Any:
    """Enable custom integrations in tests."""
    # pylint: disable=unused-argument
    yield


@pytest.fixture
def mock_dispatcher_send() -> Generator[MagicMock]:
    """Capture events emitted by managers."""
    with patch(
        "custom_components.classconduct.managers.base_manager.async_dispatcher_send"
    ) as mock:
        yield mock


@pytest.fixture
def settings() -> dict[str, Any]:
    """Return default settings with a small behavior catalog."""
    data: dict[str, Any] = dict(build_default_settings())
    data[const.DATA_SETTINGS_BEHAVIOR_CONFIG] = {
        const.BEHAVIOR_CONFIG_VIOLATIONS: [
            {"id": "v-late", "label": "Late", "points": -10, "category": "DISCIPLINE"},
            {"id": "v-talk", "label": "Talking", "points": -2, "category": "DISCIPLINE"},
        ],
        const.BEHAVIOR_CONFIG_POSITIVES: [
            {"id": "p-help", "label": "Helping", "points": 5, "category": "OTHER"},
        ],
    }
    return data


@pytest.fixture
async def scenario_class(hass: HomeAssistant) -> SetupResult:
    """Three students (one monitor), a small catalog, one reward shop."""
    return await setup_scenario(
        hass,
        {
            "students": [
                {"name": "An"},
                {"name": "Binh"},
                {"name": "Chi", "roles": [const.ROLE_MONITOR]},
            ],
            "violations": [
                {"label": "Late", "points": -10, "category": "DISCIPLINE"},
                {"label": "Tardy", "points": -5, "category": "DISCIPLINE"},
                {"label": "Talking", "points": -2, "category": "DISCIPLINE"},
            ],
            "positives": [
                {"label": "Helping", "points": 5},
                {"label": "Volunteer answer", "points": 3, "category": "STUDY"},
            ],
            "settings": {
                "rewards": [
                    {"id": "r-pen", "label": "Pen", "cost": 30, "type": "PHYSICAL"},
                    {"id": "r-imm", "label": "Immunity", "cost": 80, "type": "IMMUNITY"},
                    {"id": "r-seat", "label": "Seat", "cost": 40, "type": "SEAT_TICKET"},
                ],
                "avatars": [{"id": "a-cat", "label": "Cat", "cost": 20, "url": "cat.png"}],
                "frames": [{"id": "f-gold", "label": "Gold", "cost": 60}],
                "badges": [
                    {
                        "id": "b-streak",
                        "label": "On a roll",
                        "type": "streak_good",
                        "threshold": 2,
                    },
                    {
                        "id": "b-helper",
                        "label": "Helper",
                        "type": "count_behavior",
                        "threshold": 2,
                        "target_behavior_label": "help",
                    },
                ],
            },
        },
    )
