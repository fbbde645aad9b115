# File: services.py
"""Defines custom services for the Class Conduct integration.

These services allow direct actions through scripts or automations. Students
are addressed by roster name and behaviors by catalog label; handlers map
them to internal ids and delegate to the coordinator's managers.
"""

from __future__ import annotations

from typing import Any

import voluptuous as vol
from homeassistant.core import (
    HomeAssistant,
    ServiceCall,
    ServiceResponse,
    SupportsResponse,
)
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers import config_validation as cv

from . import const
from .helpers.entity_helpers import get_coordinator, get_student_id_by_name

# --- Service Schemas ---
WEEK_SCHEMA = vol.Schema({vol.Required(const.FIELD_WEEK): vol.Coerce(int)})

ADD_BEHAVIOR_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_LABEL): cv.string,
        vol.Required(const.FIELD_POINTS): vol.Coerce(int),
        vol.Optional(
            const.FIELD_CATEGORY, default=const.BEHAVIOR_CATEGORY_OTHER
        ): vol.In(const.BEHAVIOR_CATEGORIES),
        vol.Optional(const.FIELD_IS_POSITIVE, default=False): cv.boolean,
    }
)

EDIT_BEHAVIOR_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_LABEL): cv.string,
        vol.Optional(const.FIELD_NEW_LABEL): cv.string,
        vol.Optional(const.FIELD_POINTS): vol.Coerce(int),
        vol.Optional(const.FIELD_CATEGORY): vol.In(const.BEHAVIOR_CATEGORIES),
        vol.Optional(const.FIELD_IS_POSITIVE): cv.boolean,
    }
)

DELETE_BEHAVIOR_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_LABEL): cv.string,
        vol.Optional(const.FIELD_IS_POSITIVE): cv.boolean,
    }
)

UPDATE_SETTINGS_SCHEMA = vol.Schema(
    {
        vol.Optional(const.FIELD_DEFAULT_SCORE): vol.Coerce(int),
        vol.Optional(const.FIELD_THRESHOLDS): dict,
        vol.Optional(const.FIELD_RANK_SCORES): dict,
        vol.Optional(const.FIELD_SEMESTER_THRESHOLDS): dict,
        vol.Optional(const.FIELD_SEMESTER_TWO_START_WEEK): vol.Coerce(int),
        vol.Optional(const.FIELD_COIN_RULES): dict,
        vol.Optional(const.FIELD_ROLE_BUDGETS): dict,
        vol.Optional(const.FIELD_BADGES): list,
        vol.Optional(const.FIELD_REWARDS): list,
        vol.Optional(const.FIELD_AVATARS): list,
        vol.Optional(const.FIELD_FRAMES): list,
    }
)

APPLY_ADJUSTMENT_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_STUDENT_NAME): cv.string,
        vol.Required(const.FIELD_WEEK): vol.Coerce(int),
        vol.Required(const.FIELD_LABEL): cv.string,
        vol.Optional(const.FIELD_POINTS): vol.Coerce(int),
        vol.Optional(const.FIELD_DELTA, default=const.ADJUSTMENT_ADD): vol.All(
            vol.Coerce(int), vol.In([const.ADJUSTMENT_ADD, const.ADJUSTMENT_REMOVE])
        ),
        vol.Optional(const.FIELD_IS_POSITIVE, default=False): cv.boolean,
    }
)

SET_NOTE_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_STUDENT_NAME): cv.string,
        vol.Required(const.FIELD_WEEK): vol.Coerce(int),
        vol.Required(const.FIELD_NOTE): vol.Any(cv.string, None),
    }
)

BATCH_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_WEEK): vol.Coerce(int),
        vol.Required(const.FIELD_POINTS): vol.Coerce(int),
        vol.Required(const.FIELD_REASON): cv.string,
    }
)

ANALYZE_CLASS_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_AS_OF_WEEK): vol.Coerce(int),
        vol.Optional(const.FIELD_STUDENT_NAME): cv.string,
    }
)

SEMESTER_SUMMARY_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_STUDENT_NAME): cv.string,
        vol.Optional(const.FIELD_PERIOD, default=const.SEMESTER_YEAR): vol.In(
            const.SEMESTER_PERIODS
        ),
    }
)

SETTLEMENT_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_WEEK): vol.Coerce(int),
        vol.Optional(const.FIELD_STUDENT_NAME): cv.string,
    }
)

CHECK_BADGES_SCHEMA = vol.Schema(
    {
        vol.Optional(const.FIELD_STUDENT_NAME): cv.string,
    }
)

BADGE_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_STUDENT_NAME): cv.string,
        vol.Required(const.FIELD_BADGE_ID): cv.string,
    }
)

CREATE_ORDER_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_STUDENT_NAME): cv.string,
        vol.Required(const.FIELD_ITEM_TYPE): vol.In(const.ITEM_TYPES),
        vol.Required(const.FIELD_ITEM_ID): cv.string,
    }
)

RESOLVE_ORDER_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_ORDER_ID): cv.string,
        vol.Required(const.FIELD_ACTION): vol.In(const.ORDER_ACTIONS),
    }
)

USE_ITEM_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_STUDENT_NAME): cv.string,
        vol.Required(const.FIELD_ITEM_ID): cv.string,
    }
)

EQUIP_COSMETIC_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_STUDENT_NAME): cv.string,
        vol.Required(const.FIELD_ITEM_TYPE): vol.In(
            [const.ITEM_TYPE_AVATAR, const.ITEM_TYPE_FRAME]
        ),
        vol.Required(const.FIELD_ITEM_ID): cv.string,
    }
)

SUBMIT_REPORT_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_REPORTER_NAME): cv.string,
        vol.Required(const.FIELD_STUDENT_NAME): cv.string,
        vol.Required(const.FIELD_WEEK): vol.Coerce(int),
        vol.Required(const.FIELD_REPORT_TYPE): vol.In(const.REPORT_TYPES),
        vol.Required(const.FIELD_CONTENT): cv.string,
        vol.Optional(const.FIELD_AMOUNT): vol.Coerce(int),
        vol.Optional(const.FIELD_NOTE, default=""): vol.Any(cv.string, None),
    }
)

APPROVE_REPORT_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_REPORT_ID): cv.string,
        vol.Optional(const.FIELD_USE_IMMUNITY, default=False): cv.boolean,
    }
)

REJECT_REPORT_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_REPORT_ID): cv.string,
    }
)

CREATE_STUDENT_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_NAME): cv.string,
        vol.Optional(const.FIELD_ROLES, default=[]): vol.All(
            cv.ensure_list, [vol.In(const.STUDENT_ROLES)]
        ),
        vol.Optional(const.FIELD_IS_ACTIVE, default=True): cv.boolean,
    }
)

UPDATE_STUDENT_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_STUDENT_NAME): cv.string,
        vol.Optional(const.FIELD_NAME): cv.string,
        vol.Optional(const.FIELD_ROLES): vol.All(
            cv.ensure_list, [vol.In(const.STUDENT_ROLES)]
        ),
        vol.Optional(const.FIELD_IS_ACTIVE): cv.boolean,
    }
)


def async_setup_services(hass: HomeAssistant) -> None:
    """Register Class Conduct services."""

    # --- Behavior catalog and settings ---

    async def handle_add_behavior(call: ServiceCall) -> None:
        """Append a behavior to the violation or positive catalog."""
        coordinator = get_coordinator(hass)
        coordinator.conduct_manager.add_behavior(
            call.data[const.FIELD_LABEL],
            call.data[const.FIELD_POINTS],
            call.data[const.FIELD_CATEGORY],
            call.data[const.FIELD_IS_POSITIVE],
        )

    async def handle_edit_behavior(call: ServiceCall) -> None:
        """Edit a catalog item addressed by its current label."""
        coordinator = get_coordinator(hass)
        behavior_id = coordinator.conduct_manager.find_behavior_id(
            call.data[const.FIELD_LABEL], call.data.get(const.FIELD_IS_POSITIVE)
        )
        coordinator.conduct_manager.edit_behavior(
            behavior_id,
            label=call.data.get(const.FIELD_NEW_LABEL),
            points=call.data.get(const.FIELD_POINTS),
            category=call.data.get(const.FIELD_CATEGORY),
        )

    async def handle_delete_behavior(call: ServiceCall) -> None:
        """Remove a catalog item addressed by label."""
        coordinator = get_coordinator(hass)
        behavior_id = coordinator.conduct_manager.find_behavior_id(
            call.data[const.FIELD_LABEL], call.data.get(const.FIELD_IS_POSITIVE)
        )
        coordinator.conduct_manager.delete_behavior(behavior_id)

    async def handle_update_settings(call: ServiceCall) -> None:
        """Merge a partial settings update."""
        coordinator = get_coordinator(hass)
        partial = dict(call.data)
        if not partial:
            raise HomeAssistantError(
                translation_domain=const.DOMAIN,
                translation_key=const.TRANS_KEY_ERROR_INVALID_INPUT,
            )
        coordinator.conduct_manager.update_settings(partial)

    # --- Weekly ledger ---

    async def handle_apply_adjustment(call: ServiceCall) -> None:
        """Add or remove one behavior occurrence."""
        coordinator = get_coordinator(hass)
        student_id = get_student_id_by_name(
            coordinator, call.data[const.FIELD_STUDENT_NAME]
        )
        coordinator.conduct_manager.apply_adjustment(
            student_id,
            call.data[const.FIELD_WEEK],
            call.data[const.FIELD_LABEL],
            points=call.data.get(const.FIELD_POINTS),
            delta=call.data[const.FIELD_DELTA],
            is_positive=call.data[const.FIELD_IS_POSITIVE],
        )

    async def handle_set_note(call: ServiceCall) -> None:
        """Attach a note to a student's week."""
        coordinator = get_coordinator(hass)
        student_id = get_student_id_by_name(
            coordinator, call.data[const.FIELD_STUDENT_NAME]
        )
        coordinator.conduct_manager.set_note(
            student_id, call.data[const.FIELD_WEEK], call.data[const.FIELD_NOTE] or ""
        )

    async def handle_batch_class_bonus(call: ServiceCall) -> None:
        """Apply an annotated bonus to every active student."""
        coordinator = get_coordinator(hass)
        coordinator.conduct_manager.batch_class_bonus(
            call.data[const.FIELD_WEEK],
            call.data[const.FIELD_POINTS],
            call.data[const.FIELD_REASON],
        )

    async def handle_batch_class_penalty(call: ServiceCall) -> None:
        """Apply an annotated penalty to every active student."""
        coordinator = get_coordinator(hass)
        coordinator.conduct_manager.batch_class_penalty(
            call.data[const.FIELD_WEEK],
            call.data[const.FIELD_POINTS],
            call.data[const.FIELD_REASON],
        )

    async def handle_fill_missing(call: ServiceCall) -> None:
        """Create default records for students without one."""
        get_coordinator(hass).conduct_manager.fill_missing(call.data[const.FIELD_WEEK])

    async def handle_clear_week(call: ServiceCall) -> None:
        """Delete every record of a week."""
        get_coordinator(hass).conduct_manager.clear_week(call.data[const.FIELD_WEEK])

    async def handle_lock_week(call: ServiceCall) -> None:
        """Lock a week."""
        get_coordinator(hass).conduct_manager.lock_week(call.data[const.FIELD_WEEK])

    async def handle_unlock_week(call: ServiceCall) -> None:
        """Unlock a week."""
        get_coordinator(hass).conduct_manager.unlock_week(call.data[const.FIELD_WEEK])

    # --- Analytics (response only) ---

    async def handle_analyze_class(call: ServiceCall) -> ServiceResponse:
        """Return alerts for the class, or for one student when named."""
        coordinator = get_coordinator(hass)
        as_of_week = call.data[const.FIELD_AS_OF_WEEK]
        student_name = call.data.get(const.FIELD_STUDENT_NAME)
        if student_name:
            student_id = get_student_id_by_name(coordinator, student_name)
            return {
                "students": [
                    {
                        "student_id": student_id,
                        "student_name": student_name,
                        "alerts": coordinator.conduct_manager.analyze_student(
                            student_id, as_of_week
                        ),
                    }
                ]
            }
        return {"students": coordinator.conduct_manager.analyze_class(as_of_week)}

    async def handle_semester_summary(call: ServiceCall) -> ServiceResponse:
        """Return a semester or full-year summary for one student."""
        coordinator = get_coordinator(hass)
        student_id = get_student_id_by_name(
            coordinator, call.data[const.FIELD_STUDENT_NAME]
        )
        return dict(
            coordinator.conduct_manager.semester_summary(
                student_id, call.data[const.FIELD_PERIOD]
            )
        )

    async def handle_week_summary(call: ServiceCall) -> ServiceResponse:
        """Return class-level figures for one week."""
        coordinator = get_coordinator(hass)
        return coordinator.conduct_manager.week_summary(call.data[const.FIELD_WEEK])

    # --- Economy ---

    async def handle_settle_week(call: ServiceCall) -> None:
        """Settle coins for one student, or the whole class when unnamed."""
        coordinator = get_coordinator(hass)
        week = call.data[const.FIELD_WEEK]
        student_name = call.data.get(const.FIELD_STUDENT_NAME)
        if student_name:
            student_id = get_student_id_by_name(coordinator, student_name)
            coordinator.economy_manager.settle_week(student_id, week)
            coordinator.economy_manager.check_badges(student_id)
        else:
            coordinator.economy_manager.settle_class_week(week)

    async def handle_undo_settlement(call: ServiceCall) -> None:
        """Reverse a settlement for one student or the whole class."""
        coordinator = get_coordinator(hass)
        week = call.data[const.FIELD_WEEK]
        student_name = call.data.get(const.FIELD_STUDENT_NAME)
        if student_name:
            coordinator.economy_manager.undo_settlement(
                get_student_id_by_name(coordinator, student_name), week
            )
        else:
            coordinator.economy_manager.undo_class_settlement(week)

    async def handle_check_badges(call: ServiceCall) -> None:
        """Evaluate badges for one student or every active student."""
        coordinator = get_coordinator(hass)
        student_name = call.data.get(const.FIELD_STUDENT_NAME)
        if student_name:
            coordinator.economy_manager.check_badges(
                get_student_id_by_name(coordinator, student_name)
            )
        else:
            coordinator.economy_manager.check_class_badges()

    async def handle_award_badge(call: ServiceCall) -> None:
        """Grant a badge manually."""
        coordinator = get_coordinator(hass)
        coordinator.economy_manager.award_badge(
            get_student_id_by_name(coordinator, call.data[const.FIELD_STUDENT_NAME]),
            call.data[const.FIELD_BADGE_ID],
        )

    async def handle_revoke_badge(call: ServiceCall) -> None:
        """Remove a badge manually."""
        coordinator = get_coordinator(hass)
        coordinator.economy_manager.revoke_badge(
            get_student_id_by_name(coordinator, call.data[const.FIELD_STUDENT_NAME]),
            call.data[const.FIELD_BADGE_ID],
        )

    async def handle_create_order(call: ServiceCall) -> None:
        """Create a purchase order; refuses when coins are insufficient."""
        coordinator = get_coordinator(hass)
        student_name = call.data[const.FIELD_STUDENT_NAME]
        result = coordinator.economy_manager.create_order(
            get_student_id_by_name(coordinator, student_name),
            call.data[const.FIELD_ITEM_TYPE],
            call.data[const.FIELD_ITEM_ID],
        )
        if not result["success"]:
            raise HomeAssistantError(
                translation_domain=const.DOMAIN,
                translation_key=const.TRANS_KEY_ERROR_INSUFFICIENT_COINS,
                translation_placeholders={
                    "name": student_name,
                    "shortfall": str(result["shortfall"]),
                },
            )

    async def handle_resolve_order(call: ServiceCall) -> None:
        """Approve or reject a pending order."""
        get_coordinator(hass).economy_manager.resolve_order(
            call.data[const.FIELD_ORDER_ID], call.data[const.FIELD_ACTION]
        )

    async def handle_use_item(call: ServiceCall) -> None:
        """Consume one unit of a held reward."""
        coordinator = get_coordinator(hass)
        coordinator.economy_manager.use_functional_item(
            get_student_id_by_name(coordinator, call.data[const.FIELD_STUDENT_NAME]),
            call.data[const.FIELD_ITEM_ID],
        )

    async def handle_equip_cosmetic(call: ServiceCall) -> None:
        """Equip an owned avatar or frame."""
        coordinator = get_coordinator(hass)
        coordinator.economy_manager.equip_cosmetic(
            get_student_id_by_name(coordinator, call.data[const.FIELD_STUDENT_NAME]),
            call.data[const.FIELD_ITEM_TYPE],
            call.data[const.FIELD_ITEM_ID],
        )

    # --- Officer reports ---

    async def handle_submit_report(call: ServiceCall) -> None:
        """Record a pending officer report."""
        coordinator = get_coordinator(hass)
        coordinator.report_manager.submit_report(
            get_student_id_by_name(coordinator, call.data[const.FIELD_REPORTER_NAME]),
            get_student_id_by_name(coordinator, call.data[const.FIELD_STUDENT_NAME]),
            call.data[const.FIELD_WEEK],
            call.data[const.FIELD_REPORT_TYPE],
            call.data[const.FIELD_CONTENT],
            amount=call.data.get(const.FIELD_AMOUNT),
            note=call.data[const.FIELD_NOTE] or "",
        )

    async def handle_approve_report(call: ServiceCall) -> None:
        """Approve a pending report."""
        get_coordinator(hass).report_manager.approve_report(
            call.data[const.FIELD_REPORT_ID],
            use_immunity=call.data[const.FIELD_USE_IMMUNITY],
        )

    async def handle_reject_report(call: ServiceCall) -> None:
        """Reject a pending report."""
        get_coordinator(hass).report_manager.reject_report(
            call.data[const.FIELD_REPORT_ID]
        )

    # --- Roster ---

    async def handle_create_student(call: ServiceCall) -> None:
        """Add a student to the roster."""
        get_coordinator(hass).student_manager.create_student(
            call.data[const.FIELD_NAME],
            call.data[const.FIELD_ROLES],
            call.data[const.FIELD_IS_ACTIVE],
        )

    async def handle_update_student(call: ServiceCall) -> None:
        """Rename, (de)activate or change the roles of a student."""
        coordinator = get_coordinator(hass)
        changes: dict[str, Any] = {
            const.DATA_STUDENT_NAME: call.data.get(const.FIELD_NAME),
            const.DATA_STUDENT_ROLES: call.data.get(const.FIELD_ROLES),
            const.DATA_STUDENT_IS_ACTIVE: call.data.get(const.FIELD_IS_ACTIVE),
        }
        coordinator.student_manager.update_student(
            get_student_id_by_name(coordinator, call.data[const.FIELD_STUDENT_NAME]),
            **changes,
        )

    handlers: list[tuple[str, Any, vol.Schema]] = [
        (const.SERVICE_ADD_BEHAVIOR, handle_add_behavior, ADD_BEHAVIOR_SCHEMA),
        (const.SERVICE_EDIT_BEHAVIOR, handle_edit_behavior, EDIT_BEHAVIOR_SCHEMA),
        (const.SERVICE_DELETE_BEHAVIOR, handle_delete_behavior, DELETE_BEHAVIOR_SCHEMA),
        (const.SERVICE_UPDATE_SETTINGS, handle_update_settings, UPDATE_SETTINGS_SCHEMA),
        (
            const.SERVICE_APPLY_ADJUSTMENT,
            handle_apply_adjustment,
            APPLY_ADJUSTMENT_SCHEMA,
        ),
        (const.SERVICE_SET_NOTE, handle_set_note, SET_NOTE_SCHEMA),
        (const.SERVICE_BATCH_CLASS_BONUS, handle_batch_class_bonus, BATCH_SCHEMA),
        (const.SERVICE_BATCH_CLASS_PENALTY, handle_batch_class_penalty, BATCH_SCHEMA),
        (const.SERVICE_FILL_MISSING, handle_fill_missing, WEEK_SCHEMA),
        (const.SERVICE_CLEAR_WEEK, handle_clear_week, WEEK_SCHEMA),
        (const.SERVICE_LOCK_WEEK, handle_lock_week, WEEK_SCHEMA),
        (const.SERVICE_UNLOCK_WEEK, handle_unlock_week, WEEK_SCHEMA),
        (const.SERVICE_SETTLE_WEEK, handle_settle_week, SETTLEMENT_SCHEMA),
        (const.SERVICE_UNDO_SETTLEMENT, handle_undo_settlement, SETTLEMENT_SCHEMA),
        (const.SERVICE_CHECK_BADGES, handle_check_badges, CHECK_BADGES_SCHEMA),
        (const.SERVICE_AWARD_BADGE, handle_award_badge, BADGE_SCHEMA),
        (const.SERVICE_REVOKE_BADGE, handle_revoke_badge, BADGE_SCHEMA),
        (const.SERVICE_CREATE_ORDER, handle_create_order, CREATE_ORDER_SCHEMA),
        (const.SERVICE_RESOLVE_ORDER, handle_resolve_order, RESOLVE_ORDER_SCHEMA),
        (const.SERVICE_USE_ITEM, handle_use_item, USE_ITEM_SCHEMA),
        (const.SERVICE_EQUIP_COSMETIC, handle_equip_cosmetic, EQUIP_COSMETIC_SCHEMA),
        (const.SERVICE_SUBMIT_REPORT, handle_submit_report, SUBMIT_REPORT_SCHEMA),
        (const.SERVICE_APPROVE_REPORT, handle_approve_report, APPROVE_REPORT_SCHEMA),
        (const.SERVICE_REJECT_REPORT, handle_reject_report, REJECT_REPORT_SCHEMA),
        (const.SERVICE_CREATE_STUDENT, handle_create_student, CREATE_STUDENT_SCHEMA),
        (const.SERVICE_UPDATE_STUDENT, handle_update_student, UPDATE_STUDENT_SCHEMA),
    ]
    for service, handler, schema in handlers:
        hass.services.async_register(const.DOMAIN, service, handler, schema=schema)

    response_handlers: list[tuple[str, Any, vol.Schema]] = [
        (const.SERVICE_ANALYZE_CLASS, handle_analyze_class, ANALYZE_CLASS_SCHEMA),
        (
            const.SERVICE_SEMESTER_SUMMARY,
            handle_semester_summary,
            SEMESTER_SUMMARY_SCHEMA,
        ),
        (const.SERVICE_WEEK_SUMMARY, handle_week_summary, WEEK_SCHEMA),
    ]
    for service, handler, schema in response_handlers:
        hass.services.async_register(
            const.DOMAIN,
            service,
            handler,
            schema=schema,
            supports_response=SupportsResponse.ONLY,
        )

    const.LOGGER.info("INFO: Class Conduct services have been registered successfully")


async def async_unload_services(hass: HomeAssistant) -> None:
    """Unregister Class Conduct services when unloading the integration."""
    for service in const.ALL_SERVICES:
        if hass.services.has_service(const.DOMAIN, service):
            hass.services.async_remove(const.DOMAIN, service)

    const.LOGGER.info("INFO: Class Conduct services have been unregistered")
