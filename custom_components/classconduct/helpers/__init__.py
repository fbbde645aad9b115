# File: helpers/__init__.py
"""Home Assistant-bound helper functions for Class Conduct.

This module contains functions that REQUIRE Home Assistant dependencies
(a `hass` object or the coordinator).

NOTE: Functions that need `hass` object belong here, NOT in utils/.

Submodules:
    - entity_helpers: Event signal naming, config entry and name lookups

Usage:
    from .helpers import entity_helpers as eh
"""

from . import entity_helpers

__all__ = ["entity_helpers"]
