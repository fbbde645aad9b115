# File: config_flow.py
"""Config flow for the Class Conduct integration.

A single instance is allowed. Everything else (roster, catalog, settings)
lives in storage and is managed through services.
"""

from __future__ import annotations

from typing import Any

import voluptuous as vol
from homeassistant import config_entries

from . import const


class ClassConductConfigFlow(config_entries.ConfigFlow, domain=const.DOMAIN):
    """Config Flow for Class Conduct."""

    VERSION = 1

    async def async_step_user(
        self, user_input: dict[str, Any] | None = None
    ) -> config_entries.ConfigFlowResult:
        """Confirm and create the single entry."""
        if any(self._async_current_entries()):
            return self.async_abort(reason=const.TRANS_KEY_ERROR_SINGLE_INSTANCE)

        if user_input is not None:
            const.LOGGER.info("INFO: Creating Class Conduct config entry")
            return self.async_create_entry(title=const.CLASSCONDUCT_TITLE, data={})

        return self.async_show_form(step_id="user", data_schema=vol.Schema({}))
