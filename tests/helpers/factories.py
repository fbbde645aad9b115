"""Plain-dict factories for engine tests.

Engines take stored dicts, so pure tests build them directly instead of
going through the managers.
"""

from typing import Any


def make_record(
    student_id: str,
    week: int,
    score: int,
    violations: list[Any] | None = None,
    positives: list[Any] | None = None,
) -> dict[str, Any]:
    """Build a stored conduct record. Plain string occurrences get points=None."""
    return {
        "id": f"CON-{student_id}-W{week}",
        "student_id": student_id,
        "week": week,
        "score": score,
        "violations": [
            v if isinstance(v, dict) else {"label": v, "points": None}
            for v in violations or []
        ],
        "positive_behaviors": [
            p if isinstance(p, dict) else {"label": p, "points": None}
            for p in positives or []
        ],
        "note": "",
    }


def make_records(*records: dict[str, Any]) -> dict[str, dict[str, Any]]:
    """Key records by id, as stored."""
    return {record["id"]: record for record in records}


def make_student(student_id: str, name: str, **fields: Any) -> dict[str, Any]:
    """Build a roster entry with an empty wallet."""
    student: dict[str, Any] = {
        "id": student_id,
        "name": name,
        "is_active": True,
        "roles": [],
        "balance": 0,
        "badges": [],
        "inventory": [],
        "owned_avatars": [],
        "owned_frames": [],
        "avatar_id": None,
        "frame_id": None,
        "has_priority_seating": False,
    }
    student.update(fields)
    return student
