# File: store.py
"""Handles persistent data storage for the Class Conduct integration.

Uses Home Assistant's Storage helper to save and load the ledger, ensuring
the state is preserved across restarts. Data is grouped into named
collections (students, conduct records, settings, orders, reports, coin
grants) read and replaced as a whole.
"""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any

from homeassistant.helpers.storage import Store

from . import const
from .data_builders import normalize_settings

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant


class ClassConductStore:
    """Handles persistent storage operations for Class Conduct data.

    Thin wrapper around Home Assistant's Store API. Callers work with named
    collections: get() hands out a deep copy, set() replaces the collection
    and schedules a debounced write.
    """

    def __init__(
        self, hass: HomeAssistant, storage_key: str = const.STORAGE_KEY
    ) -> None:
        """Initialize the store.

        Args:
            hass: Home Assistant core object.
            storage_key: Key to identify storage location (default: const.STORAGE_KEY).

        """
        self.hass = hass
        self._storage_key = storage_key
        self._store: Store = Store(hass, const.STORAGE_VERSION, storage_key)
        self._data: dict[str, Any] = ClassConductStore.get_default_structure()

    @staticmethod
    def get_default_structure() -> dict[str, Any]:
        """Return canonical empty data structure for fresh installations."""
        return {
            const.DATA_META: {
                const.DATA_META_SCHEMA_VERSION: const.SCHEMA_VERSION,
            },
            const.DATA_STUDENTS: {},
            const.DATA_CONDUCT_RECORDS: {},
            const.DATA_SETTINGS: normalize_settings(None),
            const.DATA_PENDING_ORDERS: {},
            const.DATA_PENDING_REPORTS: {},
            const.DATA_COIN_GRANTS: {},
        }

    async def async_initialize(self) -> None:
        """Load data from storage during startup.

        If no data exists, initializes with the default structure. Existing
        data is back-filled so collections and settings keys added later are
        present.
        """
        const.LOGGER.debug("DEBUG: ClassConductStore: Loading data from storage")
        existing_data = await self._store.async_load()

        if existing_data is None:
            const.LOGGER.info("INFO: No existing storage found. Initializing new data")
            self._data = ClassConductStore.get_default_structure()
            return

        defaults = ClassConductStore.get_default_structure()
        for key, value in defaults.items():
            existing_data.setdefault(key, value)
        existing_data[const.DATA_SETTINGS] = normalize_settings(
            existing_data.get(const.DATA_SETTINGS)
        )
        self._data = existing_data
        const.LOGGER.debug(
            "DEBUG: Loaded existing data from storage: %s entities",
            {
                "students": len(self._data[const.DATA_STUDENTS]),
                "conduct_records": len(self._data[const.DATA_CONDUCT_RECORDS]),
                "pending_orders": len(self._data[const.DATA_PENDING_ORDERS]),
                "pending_reports": len(self._data[const.DATA_PENDING_REPORTS]),
                "coin_grants": len(self._data[const.DATA_COIN_GRANTS]),
            },
        )

    @property
    def data(self) -> dict[str, Any]:
        """Retrieve the in-memory data cache."""
        return self._data

    def get(self, collection: str) -> Any:
        """Return a deep copy of one collection.

        Mutating the returned value never touches stored state until set()
        is called with it.
        """
        if collection not in const.STORE_COLLECTIONS:
            raise KeyError(collection)
        return copy.deepcopy(self._data[collection])

    def set(self, collection: str, value: Any) -> None:
        """Replace one collection and schedule a debounced save."""
        if collection not in const.STORE_COLLECTIONS:
            raise KeyError(collection)
        self._data[collection] = copy.deepcopy(value)
        self._store.async_delay_save(self._get_data_for_save, const.STORAGE_SAVE_DELAY)

    def _get_data_for_save(self) -> dict[str, Any]:
        """Return the document written by the delayed save."""
        return self._data

    async def async_save(self) -> None:
        """Save the current data structure to storage immediately.

        Raises:
            No exceptions raised - errors are logged but do not stop execution.
        """
        try:
            await self._store.async_save(self._data)
            const.LOGGER.debug("DEBUG: Data saved successfully to storage")
        except OSError as err:
            const.LOGGER.error(
                "ERROR: Failed to save storage due to file system error: %s. "
                "Check disk space and file permissions for %s",
                err,
                self._store.path,
            )
        except TypeError as err:
            const.LOGGER.error(
                "ERROR: Failed to save storage due to non-serializable data: %s",
                err,
            )
        except ValueError as err:
            const.LOGGER.error(
                "ERROR: Failed to save storage due to invalid data format: %s",
                err,
            )

    async def async_clear_data(self) -> None:
        """Clear all stored data and reset to default structure."""
        const.LOGGER.warning(
            "WARNING: Clearing all Class Conduct data and resetting storage"
        )
        self._data = ClassConductStore.get_default_structure()
        await self.async_save()

    async def async_delete_storage(self) -> None:
        """Delete the storage file completely from disk."""
        await self.async_clear_data()
        try:
            await self._store.async_remove()
            const.LOGGER.info(
                "INFO: Storage file removed successfully: %s",
                self._store.path,
            )
        except OSError as err:
            const.LOGGER.error(
                "ERROR: Failed to remove storage file %s: %s. Check file permissions",
                self._store.path,
                err,
            )
