"""Manager modules for the Class Conduct integration.

Managers orchestrate workflows and coordinate between engines.
They are stateful, event-aware, and own every write to the store.
"""

from .base_manager import BaseManager
from .conduct_manager import ConductManager
from .economy_manager import EconomyManager
from .report_manager import ReportManager
from .student_manager import StudentManager

__all__ = [
    "BaseManager",
    "ConductManager",
    "EconomyManager",
    "ReportManager",
    "StudentManager",
]
