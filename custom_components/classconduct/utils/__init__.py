# File: utils/__init__.py
"""Pure Python utilities for Class Conduct.

This module contains pure Python functions with ZERO Home Assistant dependencies.
All functions here can be unit tested without Home Assistant mocking.

Submodules:
    - dt_utils: Current time helpers used when stamping orders, grants and reports
    - math_utils: Score clamping and integer averaging

Usage:
    from .utils import dt_utils
    from .utils.math_utils import clamp
"""

from . import dt_utils, math_utils

__all__ = ["dt_utils", "math_utils"]
