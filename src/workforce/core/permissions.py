"""Per-role field masks shared by the task and attendance services.

A patch coming from the HTTP layer is reduced to the keys the caller's role may
write for a given action. Keys outside the mask are dropped silently.
"""

from __future__ import annotations

from typing import Any, Mapping

from .enums import Role

TASK_UPDATE = "task.update"
ATTENDANCE_CREATE = "attendance.create"
ATTENDANCE_UPDATE = "attendance.update"

_FIELD_MASKS: dict[tuple[Role, str], frozenset[str]] = {
    (Role.ADMIN, TASK_UPDATE): frozenset(
        {
            "title",
            "description",
            "start_date",
            "due_date",
            "estimated_days",
            "priority",
            "status",
            "tags",
            "assignees",
            "notes",
        }
    ),
    # Applied to the caller's own AssigneeProgress entry, not to the task.
    (Role.USER, TASK_UPDATE): frozenset({"status", "notes"}),
    (Role.ADMIN, ATTENDANCE_CREATE): frozenset(
        {"user_id", "work_date", "status", "check_in_time", "check_out_time", "remarks"}
    ),
    (Role.USER, ATTENDANCE_CREATE): frozenset(
        {"work_date", "status", "check_in_time", "check_out_time", "remarks"}
    ),
    (Role.ADMIN, ATTENDANCE_UPDATE): frozenset(
        {"user_id", "work_date", "status", "check_in_time", "check_out_time", "remarks"}
    ),
    (Role.USER, ATTENDANCE_UPDATE): frozenset({"status", "remarks"}),
}


def allowed_fields(role: Role, action: str) -> frozenset[str]:
    """Return the set of writable field names for ``role`` performing ``action``."""

    try:
        return _FIELD_MASKS[(Role(role), action)]
    except (KeyError, ValueError):
        return frozenset()


def filter_patch(patch: Mapping[str, Any] | None, role: Role, action: str) -> dict[str, Any]:
    mask = allowed_fields(role, action)
    return {k: v for k, v in (patch or {}).items() if k in mask}
