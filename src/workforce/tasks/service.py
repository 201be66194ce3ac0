from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.validators import (
    parse_date_value,
    parse_enum,
    parse_id_list,
    parse_int,
    parse_optional_date,
    parse_str_list,
    require_non_empty,
)
from ..core.constants import DEFAULT_ESTIMATED_DAYS, DEFAULT_LIST_LIMIT
from ..core.enums import ProgressStatus, TaskPriority, TaskStatus
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..core.permissions import TASK_UPDATE, filter_patch
from ..users.model import Caller
from ..users.repository import UserRepository
from . import workflow
from .model import NewTask, Task, TaskFilter
from .repository import TaskRepository

logger = logging.getLogger(__name__)

GATE_PASSED_MESSAGE = "Task completion requested - pending admin approval"
REQUEST_SUBMITTED_MESSAGE = "Your completion request has been submitted"


@dataclass(frozen=True)
class CompletionResult:
    task: Task
    gate_passed: bool
    message: str


class TaskService:
    """Task assignment and the shared completion workflow.

    Transitions themselves live in :mod:`workforce.tasks.workflow`; this class
    loads the aggregate, checks who is asking, and persists the result.
    """

    def __init__(
        self,
        tasks: TaskRepository,
        users: UserRepository,
        *,
        list_limit: int = DEFAULT_LIST_LIMIT,
    ):
        self._tasks = tasks
        self._users = users
        self._list_limit = int(list_limit)

    # ----- CRUD -----------------------------------------------------------

    def create_task(self, caller: Caller, data: Mapping[str, Any]) -> Task:
        _require_admin(caller)

        title = require_non_empty(data.get("title"), "title")
        description = require_non_empty(data.get("description"), "description")
        if data.get("due_date") in (None, ""):
            raise ValidationError("due_date is required")
        due_date = parse_date_value(data["due_date"], "due_date")
        priority = parse_enum(TaskPriority, data.get("priority") or TaskPriority.MEDIUM.value, "priority")
        assignees = self._require_assignees(data.get("assignees"))

        estimated_days = data.get("estimated_days")
        estimated_days = (
            _parse_estimated_days(estimated_days) if estimated_days not in (None, "") else DEFAULT_ESTIMATED_DAYS
        )

        task_id = self._tasks.create(
            NewTask(
                title=title,
                description=description,
                due_date=due_date,
                created_by=caller.user_id,
                assignees=tuple(assignees),
                priority=priority,
                tags=tuple(parse_str_list(data.get("tags"), "tags")),
                start_date=parse_optional_date(data.get("start_date"), "start_date"),
                estimated_days=estimated_days,
                notes=_clean_text(data.get("notes"), "notes"),
                progress=workflow.initial_progress(assignees),
            )
        )
        logger.info("task created task_id=%s assignees=%s by=%s", task_id, assignees, caller.user_id)
        return self._require(task_id)

    def get_task(self, caller: Caller, task_id: int) -> Task:
        task = self._require(task_id)
        if not caller.is_admin and not task.is_assignee(caller.user_id):
            raise AuthorizationError("Not authorized to access this task")
        return task

    def update_task(
        self,
        caller: Caller,
        task_id: int,
        patch: Mapping[str, Any],
        *,
        now: Optional[datetime] = None,
    ) -> Task:
        task = self._require(task_id)
        fields = filter_patch(patch, caller.role, TASK_UPDATE)

        if caller.is_admin:
            updated = self._apply_admin_fields(task, fields)
            if updated.status == TaskStatus.COMPLETED and task.status != TaskStatus.COMPLETED:
                # Closing by hand counts as an approval for every assignee.
                updated = workflow.complete(updated, caller.user_id, now=now or now_local())
        else:
            status = fields.get("status")
            updated = workflow.update_own_progress(
                task,
                caller.user_id,
                status=parse_enum(ProgressStatus, status, "status") if status not in (None, "") else None,
                notes=_clean_text(fields.get("notes"), "notes"),
                set_notes="notes" in fields,
            )

        self._save(updated)
        if updated.status != task.status:
            logger.info(
                "task status task_id=%s %s -> %s by=%s",
                task.task_id,
                task.status.value,
                updated.status.value,
                caller.user_id,
            )
        return self._require(task.task_id)

    def delete_task(self, caller: Caller, task_id: int) -> None:
        _require_admin(caller)
        if not self._tasks.delete_by_id(int(task_id)):
            raise NotFoundError("Task not found")
        logger.info("task deleted task_id=%s by=%s", task_id, caller.user_id)

    # ----- completion workflow -------------------------------------------

    def request_completion(
        self,
        caller: Caller,
        task_id: int,
        *,
        notes: Optional[str] = None,
        now: datetime | None = None,
    ) -> CompletionResult:
        now = now or now_local()
        task = self._require(task_id)

        updated, gate_passed = workflow.request_completion(
            task,
            caller.user_id,
            now=now,
            notes=_clean_text(notes, "notes"),
        )
        self._save(updated)

        if gate_passed:
            logger.info("completion gate passed task_id=%s last_requester=%s", task.task_id, caller.user_id)
            message = GATE_PASSED_MESSAGE
        else:
            waiting = sum(1 for p in updated.progress if p.status != ProgressStatus.COMPLETION_REQUESTED)
            logger.info(
                "completion requested task_id=%s user_id=%s waiting_on=%s",
                task.task_id,
                caller.user_id,
                waiting,
            )
            message = REQUEST_SUBMITTED_MESSAGE

        return CompletionResult(task=self._require(task.task_id), gate_passed=gate_passed, message=message)

    def approve_completion(self, caller: Caller, task_id: int, *, now: datetime | None = None) -> Task:
        _require_admin(caller)
        task = self._require(task_id)

        self._save(workflow.approve(task, caller.user_id, now=now or now_local()))
        logger.info("task approved task_id=%s by=%s", task.task_id, caller.user_id)
        return self._require(task.task_id)

    def reject_completion(
        self,
        caller: Caller,
        task_id: int,
        *,
        rejection_reason: Optional[str] = None,
        now: datetime | None = None,
    ) -> Task:
        _require_admin(caller)
        task = self._require(task_id)

        updated = workflow.reject(
            task,
            caller.user_id,
            now=now or now_local(),
            reason=_clean_text(rejection_reason, "rejection_reason"),
        )
        self._save(updated)
        logger.info(
            "task rejected task_id=%s by=%s reason=%r",
            task.task_id,
            caller.user_id,
            updated.rejection_reason,
        )
        return self._require(task.task_id)

    # ----- queries --------------------------------------------------------

    def list_tasks(self, caller: Caller, filters: Mapping[str, Any] | None = None) -> Sequence[Task]:
        filters = filters or {}

        assignee = filters.get("assignee")
        assignee = parse_int(assignee, "assignee") if assignee not in (None, "") else None
        if not caller.is_admin:
            assignee = caller.user_id

        status = filters.get("status")
        priority = filters.get("priority")
        flt = TaskFilter(
            status=parse_enum(TaskStatus, status, "status") if status else None,
            priority=parse_enum(TaskPriority, priority, "priority") if priority else None,
            assignee=assignee,
        )
        return self._tasks.find(flt, limit=self._list_limit)

    def list_pending_approval(self, caller: Caller) -> Sequence[Task]:
        _require_admin(caller)
        return self._tasks.find_pending_approval(limit=self._list_limit)

    # ----- helpers --------------------------------------------------------

    def _apply_admin_fields(self, task: Task, fields: Mapping[str, Any]) -> Task:
        changes: dict[str, Any] = {}

        if "title" in fields:
            changes["title"] = require_non_empty(fields["title"], "title")
        if "description" in fields:
            changes["description"] = require_non_empty(fields["description"], "description")
        if "start_date" in fields:
            changes["start_date"] = parse_optional_date(fields["start_date"], "start_date")
        if "due_date" in fields:
            changes["due_date"] = parse_date_value(fields["due_date"], "due_date")
        if "estimated_days" in fields:
            changes["estimated_days"] = _parse_estimated_days(fields["estimated_days"])
        if "priority" in fields:
            changes["priority"] = parse_enum(TaskPriority, fields["priority"], "priority")
        if "status" in fields:
            changes["status"] = parse_enum(TaskStatus, fields["status"], "status")
        if "tags" in fields:
            changes["tags"] = tuple(parse_str_list(fields["tags"], "tags"))
        if "notes" in fields:
            changes["notes"] = _clean_text(fields["notes"], "notes")
        if "assignees" in fields:
            assignees = self._require_assignees(fields["assignees"])
            changes["assignees"] = tuple(assignees)
            changes["progress"] = workflow.reconcile_progress(task.progress, assignees)

        return replace(task, **changes)

    def _require_assignees(self, value: Any) -> list[int]:
        if value is None:
            raise ValidationError("At least one assignee is required")
        assignees = parse_id_list(value, "assignees")
        if not assignees:
            raise ValidationError("At least one assignee is required")

        known = self._users.existing_ids(assignees)
        missing = [u for u in assignees if u not in known]
        if missing:
            raise ValidationError(f"Unknown assignee(s): {', '.join(str(u) for u in missing)}")
        return assignees

    def _require(self, task_id: int) -> Task:
        task = self._tasks.get_by_id(int(task_id))
        if not task:
            raise NotFoundError("Task not found")
        return task

    def _save(self, task: Task) -> None:
        if not self._tasks.save(task):
            raise NotFoundError("Task not found")


def _require_admin(caller: Caller) -> None:
    if not caller.is_admin:
        raise AuthorizationError("Admin role required")


def _parse_estimated_days(value: Any) -> int:
    days = parse_int(value, "estimated_days")
    if days < 1:
        raise ValidationError("estimated_days must be at least 1")
    return days


def _clean_text(value: Any, field_name: str) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a string")
    return value.strip() or None
