from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Global role used for authorization."""

    ADMIN = "admin"
    USER = "user"


class TaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETION_REQUESTED = "completion-requested"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ProgressStatus(str, Enum):
    """Per-assignee state inside a shared task."""

    NOT_STARTED = "not-started"
    IN_PROGRESS = "in-progress"
    COMPLETION_REQUESTED = "completion-requested"
    COMPLETED = "completed"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    HALF_DAY = "half-day"
    LEAVE = "leave"
    REQUESTED = "requested"
    APPROVED = "approved"
    REJECTED = "rejected"
