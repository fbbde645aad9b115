"""Coordinator for the Class Conduct integration.

Owns the store and the four managers. There is no polling: the store is the
source of truth and managers call async_update_listeners() after each write.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from homeassistant.helpers.update_coordinator import DataUpdateCoordinator

from . import const
from .managers import ConductManager, EconomyManager, ReportManager, StudentManager

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry
    from homeassistant.core import HomeAssistant

    from .store import ClassConductStore
    from .type_defs import StudentData


class ClassConductCoordinator(DataUpdateCoordinator[dict[str, Any]]):
    """Coordinator for Class Conduct.

    Managers are created here and wired to the same store; they talk to
    each other through instance-scoped dispatcher signals or through the
    coordinator attributes below.
    """

    config_entry: ConfigEntry

    def __init__(
        self,
        hass: HomeAssistant,
        config_entry: ConfigEntry,
        store: ClassConductStore,
    ) -> None:
        """Initialize the ClassConductCoordinator."""
        super().__init__(
            hass,
            const.LOGGER,
            name=f"{const.DOMAIN}{const.COORDINATOR_SUFFIX}",
            config_entry=config_entry,
            update_interval=None,
        )
        self.store = store
        self.conduct_manager = ConductManager(hass, self)
        self.economy_manager = EconomyManager(hass, self)
        self.report_manager = ReportManager(hass, self)
        self.student_manager = StudentManager(hass, self)

    async def async_setup_managers(self) -> None:
        """Run each manager's setup once the store is loaded."""
        for manager in (
            self.student_manager,
            self.conduct_manager,
            self.economy_manager,
            self.report_manager,
        ):
            await manager.async_setup()
        const.LOGGER.debug("DEBUG: Class Conduct managers initialized")

    async def _async_update_data(self) -> dict[str, Any]:
        """Return the in-memory store document."""
        return self.store.data

    @property
    def students_data(self) -> dict[str, StudentData]:
        """Return the roster keyed by student id (read-only view)."""
        return self.store.data[const.DATA_STUDENTS]
