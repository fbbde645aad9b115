# File: helpers/entity_helpers.py
"""Lookup helper functions for Class Conduct.

Functions that resolve names used by services into internal ids, build
instance-scoped dispatcher signal names, and raise the integration's
translated errors.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from homeassistant.exceptions import HomeAssistantError

from .. import const

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant

    from ..coordinator import ClassConductCoordinator


# ==============================================================================
# Event Signal Helpers (Manager Communication)
# ==============================================================================


def get_event_signal(entry_id: str, suffix: str) -> str:
    """Build instance-scoped event signal name for dispatcher.

    Each config entry gets its own signal namespace so managers can emit and
    listen without cross-talk between instances.

    Format: 'classconduct_{entry_id}_{suffix}'

    Example:
        >>> get_event_signal("abc123", const.SIGNAL_SUFFIX_RECORDS_CHANGED)
        'classconduct_abc123_records_changed'
    """
    return f"{const.DOMAIN}_{entry_id}_{suffix}"


# ==============================================================================
# Config Entry Helpers
# ==============================================================================


def get_first_classconduct_entry(hass: HomeAssistant) -> str | None:
    """Retrieve the first Class Conduct config entry ID."""
    domain_entries = hass.data.get(const.DOMAIN)
    if not domain_entries:
        return None
    return next(iter(domain_entries.keys()), None)


def get_coordinator(hass: HomeAssistant) -> ClassConductCoordinator:
    """Return the coordinator of the loaded entry or raise."""
    entry_id = get_first_classconduct_entry(hass)
    if not entry_id:
        raise HomeAssistantError(
            translation_domain=const.DOMAIN,
            translation_key=const.TRANS_KEY_ERROR_NO_ENTRY,
        )
    return hass.data[const.DOMAIN][entry_id][const.COORDINATOR]


# ==============================================================================
# Name → ID Lookups
# ==============================================================================


def not_found_error(label: str, name: str) -> HomeAssistantError:
    """Build the translated not-found error."""
    return HomeAssistantError(
        translation_domain=const.DOMAIN,
        translation_key=const.TRANS_KEY_ERROR_NOT_FOUND,
        translation_placeholders={"entity": label, "name": name},
    )


def get_student_id_by_name(
    coordinator: ClassConductCoordinator, student_name: str
) -> str:
    """Return the student id for a roster name or raise not found."""
    for student_id, student in coordinator.students_data.items():
        if student.get(const.DATA_STUDENT_NAME) == student_name:
            return student_id
    raise not_found_error(const.LABEL_STUDENT, student_name)
