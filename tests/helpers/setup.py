"""Setup helpers for Class Conduct test configuration.

This module provides declarative test setup: it runs the config flow, lets
Home Assistant load the entry, then seeds the roster, catalog and settings
through the managers, so tests can focus on behavior.

Example:
    result = await setup_scenario(hass, {
        "students": [{"name": "An"}, {"name": "Binh", "roles": ["MONITOR"]}],
        "violations": [{"label": "Late", "points": -5}],
        "positives": [{"label": "Helping", "points": 5}],
        "settings": {"coin_rules": {"weekly_good": 40}},
    })
    # Access: result.config_entry, result.coordinator, result.student_ids["An"]
"""

from dataclasses import dataclass, field
from typing import Any

from homeassistant import config_entries
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.data_entry_flow import FlowResultType

from custom_components.classconduct import const
from custom_components.classconduct.coordinator import ClassConductCoordinator

# =============================================================================
# DATACLASSES
# =============================================================================


@dataclass
class SetupResult:
    """Result from setup_scenario containing everything that was configured.

    Attributes:
        config_entry: The created ConfigEntry
        coordinator: The ClassConductCoordinator instance
        student_ids: Map of student names to their internal UUIDs
        behavior_ids: Map of behavior labels to their catalog ids
    """

    config_entry: ConfigEntry
    coordinator: ClassConductCoordinator
    student_ids: dict[str, str] = field(default_factory=dict)
    behavior_ids: dict[str, str] = field(default_factory=dict)


# =============================================================================
# PUBLIC API
# =============================================================================


async def setup_scenario(
    hass: HomeAssistant, scenario: dict[str, Any] | None = None
) -> SetupResult:
    """Create the config entry through the flow and seed scenario data.

    Args:
        hass: Home Assistant instance
        scenario: Dict with optional keys:
            - students: list of {name, roles?, is_active?}
            - violations / positives: list of {label, points, category?}
            - settings: partial settings passed to update_settings

    Returns:
        SetupResult with the loaded coordinator and name → id maps
    """
    scenario = scenario or {}

    result = await hass.config_entries.flow.async_init(
        const.DOMAIN, context={"source": config_entries.SOURCE_USER}
    )
    assert result.get("type") == FlowResultType.FORM
    result = await hass.config_entries.flow.async_configure(
        result["flow_id"], user_input={}
    )
    assert result.get("type") == FlowResultType.CREATE_ENTRY
    await hass.async_block_till_done()

    config_entry = result["result"]
    coordinator: ClassConductCoordinator = hass.data[const.DOMAIN][
        config_entry.entry_id
    ][const.COORDINATOR]
    setup = SetupResult(config_entry=config_entry, coordinator=coordinator)

    for student in scenario.get("students", []):
        created = coordinator.student_manager.create_student(
            student["name"],
            student.get("roles"),
            student.get("is_active", True),
        )
        setup.student_ids[student["name"]] = created[const.DATA_STUDENT_ID]

    for is_positive, key in ((False, "violations"), (True, "positives")):
        for behavior in scenario.get(key, []):
            item = coordinator.conduct_manager.add_behavior(
                behavior["label"],
                behavior["points"],
                behavior.get("category", const.BEHAVIOR_CATEGORY_OTHER),
                is_positive,
            )
            setup.behavior_ids[behavior["label"]] = item[const.DATA_BEHAVIOR_ID]

    if scenario.get("settings"):
        coordinator.conduct_manager.update_settings(scenario["settings"])

    return setup
