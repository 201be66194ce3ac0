from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import NewTask, Task, TaskFilter


class TaskRepository(Protocol):
    """Persistence for the Task aggregate.

    ``save`` and ``create`` write the task row, its progress entries and its
    tags as one unit.
    """

    def get_by_id(self, task_id: int) -> Optional[Task]:
        raise NotImplementedError

    def create(self, task: NewTask) -> int:
        raise NotImplementedError

    def save(self, task: Task) -> bool:
        raise NotImplementedError

    def delete_by_id(self, task_id: int) -> bool:
        raise NotImplementedError

    def find(self, flt: TaskFilter, *, limit: int) -> Sequence[Task]:
        """Matching tasks, newest first."""

        raise NotImplementedError

    def find_pending_approval(self, *, limit: int) -> Sequence[Task]:
        """Tasks awaiting approval, most recent completion request first."""

        raise NotImplementedError
