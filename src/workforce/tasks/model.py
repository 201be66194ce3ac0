from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Tuple

from ..core.enums import ProgressStatus, TaskPriority, TaskStatus


@dataclass(frozen=True)
class AssigneeProgress:
    """One assignee's own state inside a shared task."""

    user_id: int
    status: ProgressStatus = ProgressStatus.NOT_STARTED
    notes: Optional[str] = None
    completion_requested_at: Optional[datetime] = None


@dataclass(frozen=True)
class Task:
    """Domain entity: Task aggregate (task row + per-assignee progress + tags)."""

    task_id: int
    title: str
    description: str
    due_date: date
    created_by: int
    assignees: Tuple[int, ...]
    progress: Tuple[AssigneeProgress, ...]
    status: TaskStatus = TaskStatus.PENDING
    priority: TaskPriority = TaskPriority.MEDIUM
    tags: Tuple[str, ...] = ()
    start_date: Optional[date] = None
    estimated_days: int = 1
    notes: Optional[str] = None

    completion_requested_by: Optional[int] = None
    completion_requested_at: Optional[datetime] = None
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    completed_date: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    rejected_by: Optional[int] = None
    rejected_at: Optional[datetime] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def is_assignee(self, user_id: int) -> bool:
        return int(user_id) in self.assignees

    def progress_for(self, user_id: int) -> Optional[AssigneeProgress]:
        for p in self.progress:
            if p.user_id == int(user_id):
                return p
        return None

    @property
    def duration_in_days(self) -> int:
        if self.start_date and self.due_date:
            return abs((self.due_date - self.start_date).days) + 1
        return self.estimated_days


@dataclass(frozen=True)
class NewTask:
    """Values for a task that has not been persisted yet."""

    title: str
    description: str
    due_date: date
    created_by: int
    assignees: Tuple[int, ...]
    priority: TaskPriority = TaskPriority.MEDIUM
    tags: Tuple[str, ...] = ()
    start_date: Optional[date] = None
    estimated_days: int = 1
    notes: Optional[str] = None
    progress: Tuple[AssigneeProgress, ...] = ()


@dataclass(frozen=True)
class TaskFilter:
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    assignee: Optional[int] = None
