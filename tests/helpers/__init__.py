"""Test helpers for Class Conduct integration tests.

    from tests.helpers import setup_scenario, SetupResult
    from tests.helpers import make_record, make_records, make_student

See setup.py for the declarative scenario format.
"""

from tests.helpers.factories import make_record, make_records, make_student
from tests.helpers.setup import SetupResult, setup_scenario

__all__ = [
    "SetupResult",
    "make_record",
    "make_records",
    "make_student",
    "setup_scenario",
]
