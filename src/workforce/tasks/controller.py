from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import isoformat_or_none
from ..common.http import admin_required, current_caller, json_errors, json_ok, login_required, request_json
from ..container import Container
from .model import AssigneeProgress, Task


def progress_to_dict(p: AssigneeProgress) -> dict:
    return {
        "user_id": p.user_id,
        "status": p.status.value,
        "notes": p.notes,
        "completion_requested_at": isoformat_or_none(p.completion_requested_at),
    }


def task_to_dict(t: Task) -> dict:
    return {
        "task_id": t.task_id,
        "title": t.title,
        "description": t.description,
        "status": t.status.value,
        "priority": t.priority.value,
        "tags": list(t.tags),
        "assignees": list(t.assignees),
        "progress": [progress_to_dict(p) for p in t.progress],
        "start_date": isoformat_or_none(t.start_date),
        "due_date": isoformat_or_none(t.due_date),
        "estimated_days": t.estimated_days,
        "duration_in_days": t.duration_in_days,
        "notes": t.notes,
        "created_by": t.created_by,
        "completion_requested_by": t.completion_requested_by,
        "completion_requested_at": isoformat_or_none(t.completion_requested_at),
        "approved_by": t.approved_by,
        "approved_at": isoformat_or_none(t.approved_at),
        "completed_date": isoformat_or_none(t.completed_date),
        "rejection_reason": t.rejection_reason,
        "rejected_by": t.rejected_by,
        "rejected_at": isoformat_or_none(t.rejected_at),
        "created_at": isoformat_or_none(t.created_at),
        "updated_at": isoformat_or_none(t.updated_at),
    }


def register(app: Flask, container: Container) -> None:
    tasks = container.task_service

    # Registered before /tasks/<id> so the literal path wins.
    @app.route("/tasks/pending-approval", methods=["GET"], endpoint="tasks_pending_approval")
    @admin_required
    @json_errors
    def pending_approval():
        items = tasks.list_pending_approval(current_caller())
        return json_ok([task_to_dict(t) for t in items], count=len(items))

    @app.route("/tasks", methods=["GET"], endpoint="tasks_list")
    @login_required
    @json_errors
    def list_tasks():
        items = tasks.list_tasks(current_caller(), request.args.to_dict())
        return json_ok([task_to_dict(t) for t in items], count=len(items))

    @app.route("/tasks", methods=["POST"], endpoint="tasks_create")
    @admin_required
    @json_errors
    def create_task():
        task = tasks.create_task(current_caller(), request_json())
        return json_ok(task_to_dict(task), message="Task created", status=201)

    @app.route("/tasks/<int:task_id>", methods=["GET"], endpoint="tasks_get")
    @login_required
    @json_errors
    def get_task(task_id: int):
        return json_ok(task_to_dict(tasks.get_task(current_caller(), task_id)))

    @app.route("/tasks/<int:task_id>", methods=["PUT"], endpoint="tasks_update")
    @login_required
    @json_errors
    def update_task(task_id: int):
        task = tasks.update_task(current_caller(), task_id, request_json())
        return json_ok(task_to_dict(task), message="Task updated")

    @app.route("/tasks/<int:task_id>", methods=["DELETE"], endpoint="tasks_delete")
    @admin_required
    @json_errors
    def delete_task(task_id: int):
        tasks.delete_task(current_caller(), task_id)
        return json_ok(message="Task deleted")

    @app.route("/tasks/<int:task_id>/request-completion", methods=["POST"], endpoint="tasks_request_completion")
    @login_required
    @json_errors
    def request_completion(task_id: int):
        body = request_json()
        result = tasks.request_completion(current_caller(), task_id, notes=body.get("notes"))
        return json_ok(
            {"task": task_to_dict(result.task), "gate_passed": result.gate_passed},
            message=result.message,
        )

    @app.route("/tasks/<int:task_id>/approve", methods=["PUT"], endpoint="tasks_approve")
    @admin_required
    @json_errors
    def approve(task_id: int):
        task = tasks.approve_completion(current_caller(), task_id)
        return json_ok(task_to_dict(task), message="Task completion approved")

    @app.route("/tasks/<int:task_id>/reject", methods=["PUT"], endpoint="tasks_reject")
    @admin_required
    @json_errors
    def reject(task_id: int):
        body = request_json()
        task = tasks.reject_completion(current_caller(), task_id, rejection_reason=body.get("rejection_reason"))
        return json_ok(task_to_dict(task), message="Task completion rejected")
