"""Task completion state machine.

Pure functions over the Task aggregate: no I/O, no clock. Each transition
takes the current task and returns the next one, or raises when the move is
not allowed from the current state.

    pending ──(first assignee starts / requests)──> in-progress
    in-progress ──(every assignee requested)──> completion-requested
    completion-requested ──approve──> completed
    completion-requested ──reject──> in-progress
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Iterable, Optional, Sequence, Tuple

from ..core.constants import DEFAULT_REJECTION_REASON
from ..core.enums import ProgressStatus, TaskStatus
from ..core.exceptions import AuthorizationError, InvalidStateError, ValidationError
from .model import AssigneeProgress, Task

CLOSED_STATUSES = frozenset({TaskStatus.COMPLETED, TaskStatus.CANCELLED})

# States an assignee may pick for themselves; the rest are reached through
# request_completion / approve.
SELF_SETTABLE_PROGRESS = frozenset({ProgressStatus.NOT_STARTED, ProgressStatus.IN_PROGRESS})


def all_assignees_ready(statuses: Iterable[ProgressStatus]) -> bool:
    """Completion gate: true only if there is at least one entry and all requested completion."""

    statuses = list(statuses)
    return bool(statuses) and all(s == ProgressStatus.COMPLETION_REQUESTED for s in statuses)


def initial_progress(assignees: Sequence[int]) -> Tuple[AssigneeProgress, ...]:
    return tuple(AssigneeProgress(user_id=int(u)) for u in assignees)


def reconcile_progress(progress: Sequence[AssigneeProgress], assignees: Sequence[int]) -> Tuple[AssigneeProgress, ...]:
    """Exactly one entry per assignee, in assignee order.

    Kept assignees keep their entry, new ones start ``not-started``, removed
    ones are dropped.
    """

    by_user = {p.user_id: p for p in progress}
    return tuple(by_user.get(int(u)) or AssigneeProgress(user_id=int(u)) for u in assignees)


def _replace_progress(task: Task, entry: AssigneeProgress) -> Tuple[AssigneeProgress, ...]:
    return tuple(entry if p.user_id == entry.user_id else p for p in task.progress)


def _own_progress(task: Task, user_id: int) -> AssigneeProgress:
    entry = task.progress_for(user_id)
    if not task.is_assignee(user_id) or entry is None:
        raise AuthorizationError("You are not assigned to this task")
    return entry


def update_own_progress(
    task: Task,
    user_id: int,
    *,
    status: Optional[ProgressStatus] = None,
    notes: Optional[str] = None,
    set_notes: bool = False,
) -> Task:
    """An assignee edits their own entry (status and/or notes)."""

    entry = _own_progress(task, user_id)

    if status is not None:
        if status not in SELF_SETTABLE_PROGRESS:
            raise ValidationError(
                f"Progress status '{status.value}' cannot be set directly; use request-completion instead"
            )
        if task.status in CLOSED_STATUSES:
            raise InvalidStateError(f"Task is {task.status.value}")
        if task.status == TaskStatus.COMPLETION_REQUESTED:
            raise InvalidStateError("Task is awaiting admin approval")
        entry = replace(entry, status=status, completion_requested_at=None)

    if set_notes:
        entry = replace(entry, notes=notes)

    next_status = task.status
    if entry.status == ProgressStatus.IN_PROGRESS and task.status == TaskStatus.PENDING:
        next_status = TaskStatus.IN_PROGRESS

    return replace(task, progress=_replace_progress(task, entry), status=next_status)


def request_completion(
    task: Task,
    user_id: int,
    *,
    now: datetime,
    notes: Optional[str] = None,
) -> Tuple[Task, bool]:
    """Mark one assignee as done and evaluate the completion gate.

    Returns the next task and whether the gate passed (task is now awaiting
    admin approval).
    """

    entry = _own_progress(task, user_id)
    if task.status == TaskStatus.COMPLETED:
        raise InvalidStateError("Task is already completed")
    if task.status == TaskStatus.CANCELLED:
        raise InvalidStateError("Task is cancelled")

    entry = replace(
        entry,
        status=ProgressStatus.COMPLETION_REQUESTED,
        completion_requested_at=now,
        notes=notes if notes is not None else entry.notes,
    )
    progress = _replace_progress(task, entry)

    if all_assignees_ready(p.status for p in progress):
        return (
            replace(
                task,
                progress=progress,
                status=TaskStatus.COMPLETION_REQUESTED,
                completion_requested_by=int(user_id),
                completion_requested_at=now,
                rejection_reason=None,
                rejected_by=None,
                rejected_at=None,
            ),
            True,
        )

    next_status = TaskStatus.IN_PROGRESS if task.status == TaskStatus.PENDING else task.status
    return replace(task, progress=progress, status=next_status), False


def complete(task: Task, admin_id: int, *, now: datetime) -> Task:
    """Close the task; every assignee entry ends up ``completed``."""

    return replace(
        task,
        status=TaskStatus.COMPLETED,
        completed_date=now,
        approved_by=int(admin_id),
        approved_at=now,
        progress=tuple(replace(p, status=ProgressStatus.COMPLETED) for p in task.progress),
    )


def approve(task: Task, admin_id: int, *, now: datetime) -> Task:
    if task.status != TaskStatus.COMPLETION_REQUESTED:
        raise InvalidStateError("Task completion has not been requested")
    return complete(task, admin_id, now=now)


def reject(task: Task, admin_id: int, *, now: datetime, reason: Optional[str] = None) -> Task:
    if task.status != TaskStatus.COMPLETION_REQUESTED:
        raise InvalidStateError("Task completion has not been requested")

    progress = tuple(
        replace(p, status=ProgressStatus.IN_PROGRESS, completion_requested_at=None)
        if p.status == ProgressStatus.COMPLETION_REQUESTED
        else p
        for p in task.progress
    )
    return replace(
        task,
        status=TaskStatus.IN_PROGRESS,
        completion_requested_by=None,
        completion_requested_at=None,
        rejection_reason=(reason or "").strip() or DEFAULT_REJECTION_REASON,
        rejected_by=int(admin_id),
        rejected_at=now,
        progress=progress,
    )
