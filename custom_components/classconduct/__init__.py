"""Initialization file for the Class Conduct integration.

Handles setting up the integration, including loading configuration entries,
initializing data storage, and preparing the coordinator and its managers.

Key Features:
- Config entry setup, unload and removal.
- Storage load before the coordinator starts.
- Service registration.
"""

from __future__ import annotations

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant

from . import const
from .coordinator import ClassConductCoordinator
from .services import async_setup_services, async_unload_services
from .store import ClassConductStore


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up the integration from a config entry."""
    const.LOGGER.info("INFO: Starting setup for Class Conduct entry: %s", entry.entry_id)

    # Load persistent data before any manager reads it.
    store = ClassConductStore(hass, const.STORAGE_KEY)
    await store.async_initialize()

    coordinator = ClassConductCoordinator(hass, entry, store)
    await coordinator.async_setup_managers()
    await coordinator.async_config_entry_first_refresh()

    hass.data.setdefault(const.DOMAIN, {})[entry.entry_id] = {
        const.COORDINATOR: coordinator,
        const.STORE: store,
    }

    async_setup_services(hass)

    const.LOGGER.info("INFO: Class Conduct setup complete for entry: %s", entry.entry_id)
    return True


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry, flushing pending writes first."""
    const.LOGGER.info("INFO: Unloading Class Conduct entry: %s", entry.entry_id)

    entry_data = hass.data[const.DOMAIN].pop(entry.entry_id, None)
    if entry_data is not None:
        store: ClassConductStore = entry_data[const.STORE]
        await store.async_save()

    if not hass.data[const.DOMAIN]:
        await async_unload_services(hass)

    return True


async def async_remove_entry(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Handle removal of a config entry by deleting its storage file."""
    const.LOGGER.info("INFO: Removing Class Conduct entry: %s", entry.entry_id)
    store = ClassConductStore(hass, const.STORAGE_KEY)
    await store.async_delete_storage()
    const.LOGGER.info("INFO: Class Conduct entry data cleared: %s", entry.entry_id)
