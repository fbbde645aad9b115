"""Base manager class for Class Conduct managers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, NoReturn

from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.dispatcher import (
    async_dispatcher_connect,
    async_dispatcher_send,
)

from .. import const
from ..data_builders import EntityValidationError, validate_week
from ..helpers.entity_helpers import get_event_signal, not_found_error

if TYPE_CHECKING:
    from collections.abc import Callable

    from homeassistant.core import HomeAssistant

    from ..coordinator import ClassConductCoordinator
    from ..store import ClassConductStore
    from ..type_defs import SettingsData, StudentData


class BaseManager(ABC):
    """Base class for all Class Conduct managers with scoped event support.

    Provides:
    - Instance-scoped event emitting (emit)
    - Instance-scoped event listening (listen)
    - Store access and listener refresh after writes (commit)
    - Translation of validation failures into HomeAssistantError

    Data Persistence:
    - Read collections with self.store.get() (a deep copy)
    - Compute the complete new value first, then commit() it; a failed
      validation therefore never leaves a half-written collection

    Subclasses must implement:
    - async_setup(): Subscribe to events, initialize state
    """

    def __init__(
        self, hass: HomeAssistant, coordinator: ClassConductCoordinator
    ) -> None:
        """Initialize manager.

        Args:
            hass: Home Assistant instance
            coordinator: Parent coordinator managing this integration instance
        """
        self.hass = hass
        self.coordinator = coordinator
        self.entry_id = coordinator.config_entry.entry_id

    @property
    def store(self) -> ClassConductStore:
        """Return the integration store."""
        return self.coordinator.store

    def emit(self, suffix: str, **payload: Any) -> None:
        """Emit instance-scoped event to other managers and listeners.

        Args:
            suffix: Signal suffix constant (e.g., const.SIGNAL_SUFFIX_RECORDS_CHANGED)
            **payload: Event data dict passed to listeners (must be JSON-serializable)
        """
        signal = get_event_signal(self.entry_id, suffix)
        const.LOGGER.debug(
            "Emitting event '%s' for instance %s with payload keys: %s",
            suffix,
            self.entry_id,
            list(payload.keys()),
        )
        # Pass payload as single dict argument (dispatcher only supports *args)
        async_dispatcher_send(self.hass, signal, payload)

    def listen(self, suffix: str, callback: Callable[..., Any]) -> None:
        """Subscribe to instance-scoped event with automatic cleanup.

        The subscription is removed when the config entry is unloaded.
        """
        signal = get_event_signal(self.entry_id, suffix)
        unsub = async_dispatcher_connect(self.hass, signal, callback)
        self.coordinator.config_entry.async_on_unload(unsub)
        const.LOGGER.debug(
            "Manager %s listening to event '%s' for instance %s",
            self.__class__.__name__,
            suffix,
            self.entry_id,
        )

    def commit(self, **collections: Any) -> None:
        """Write each collection (in argument order) and refresh listeners."""
        for collection, value in collections.items():
            self.store.set(collection, value)
        self.coordinator.async_update_listeners()

    # -------------------------------------------------------------------------
    # Shared lookups
    # -------------------------------------------------------------------------

    def get_settings(self) -> SettingsData:
        """Return a copy of the settings collection."""
        return self.store.get(const.DATA_SETTINGS)

    def require_student(
        self, students: dict[str, StudentData], student_id: str
    ) -> StudentData:
        """Return students[student_id] or raise a translated not-found error."""
        student = students.get(student_id)
        if student is None:
            raise not_found_error(const.LABEL_STUDENT, student_id)
        return student

    def _validated_week(self, week: Any) -> int:
        try:
            return validate_week(week)
        except EntityValidationError as err:
            self.raise_validation_error(err)

    @staticmethod
    def raise_validation_error(err: EntityValidationError) -> NoReturn:
        """Re-raise a builder validation failure as HomeAssistantError."""
        raise HomeAssistantError(
            translation_domain=const.DOMAIN,
            translation_key=err.translation_key,
            translation_placeholders={"field": err.field, **err.placeholders},
        ) from err

    @staticmethod
    def raise_transition_error(translation_key: str, **placeholders: str) -> NoReturn:
        """Raise a translated error for a rejected state transition."""
        raise HomeAssistantError(
            translation_domain=const.DOMAIN,
            translation_key=translation_key,
            translation_placeholders=placeholders,
        )

    @abstractmethod
    async def async_setup(self) -> None:
        """Set up the manager (subscribe to events, initialize state).

        Called once during coordinator initialization.
        """
