"""Student Manager - Class roster.

Creates and updates roster entries. Only identity fields (name, active
flag, roles) are handled here; wallets, badges and cosmetics belong to the
EconomyManager. Inactive students stay in storage with their history but are
skipped by class-wide batches, settlement and analytics.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .. import const, data_builders as db
from .base_manager import BaseManager

if TYPE_CHECKING:
    from ..type_defs import StudentData


class StudentManager(BaseManager):
    """Manager for roster entries."""

    async def async_setup(self) -> None:
        """Set up the StudentManager (no event subscriptions)."""
        const.LOGGER.debug(
            "DEBUG: StudentManager ready with %s students",
            len(self.store.get(const.DATA_STUDENTS)),
        )

    def get_student(self, student_id: str) -> StudentData:
        """Return a copy of one student or raise not found."""
        return self.require_student(self.store.get(const.DATA_STUDENTS), student_id)

    def create_student(
        self, name: str, roles: list[str] | None = None, is_active: bool = True
    ) -> StudentData:
        """Add a student with an empty wallet.

        Raises:
            HomeAssistantError: blank or duplicate name, unknown role
        """
        students = self.store.get(const.DATA_STUDENTS)
        try:
            student = db.build_student(
                {
                    const.DATA_STUDENT_NAME: name,
                    const.DATA_STUDENT_ROLES: roles or [],
                    const.DATA_STUDENT_IS_ACTIVE: is_active,
                },
                existing_students=students,
            )
        except db.EntityValidationError as err:
            self.raise_validation_error(err)

        students[student[const.DATA_STUDENT_ID]] = student
        self.commit(**{const.DATA_STUDENTS: students})
        self.emit(
            const.SIGNAL_SUFFIX_STUDENT_CHANGED,
            action="created",
            student_id=student[const.DATA_STUDENT_ID],
        )
        const.LOGGER.info(
            "INFO: Created student '%s' (%s)",
            student[const.DATA_STUDENT_NAME],
            student[const.DATA_STUDENT_ID],
        )
        return student

    def update_student(self, student_id: str, **changes: Any) -> StudentData:
        """Update name, is_active and/or roles of a student.

        Raises:
            HomeAssistantError: unknown student or invalid values
        """
        students = self.store.get(const.DATA_STUDENTS)
        existing = self.require_student(students, student_id)
        user_input = {
            key: value
            for key, value in changes.items()
            if key
            in (
                const.DATA_STUDENT_NAME,
                const.DATA_STUDENT_IS_ACTIVE,
                const.DATA_STUDENT_ROLES,
            )
            and value is not None
        }
        try:
            student = db.build_student(
                user_input, existing=existing, existing_students=students
            )
        except db.EntityValidationError as err:
            self.raise_validation_error(err)

        students[student_id] = student
        self.commit(**{const.DATA_STUDENTS: students})
        self.emit(
            const.SIGNAL_SUFFIX_STUDENT_CHANGED,
            action="updated",
            student_id=student_id,
            fields=sorted(user_input),
        )
        const.LOGGER.info(
            "INFO: Updated student '%s': %s",
            student[const.DATA_STUDENT_NAME],
            ", ".join(sorted(user_input)) or "no changes",
        )
        return student
