from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import isoformat_or_none
from ..common.http import admin_required, current_caller, json_errors, json_ok, login_required, request_json
from ..container import Container
from .model import AttendanceRecord


def attendance_to_dict(r: AttendanceRecord) -> dict:
    return {
        "attendance_id": r.attendance_id,
        "user_id": r.user_id,
        "work_date": isoformat_or_none(r.work_date),
        "status": r.status.value,
        "check_in_time": isoformat_or_none(r.check_in_time),
        "check_out_time": isoformat_or_none(r.check_out_time),
        "work_hours": r.work_hours,
        "remarks": r.remarks,
        "approved_by": r.approved_by,
        "created_at": isoformat_or_none(r.created_at),
        "updated_at": isoformat_or_none(r.updated_at),
    }


def register(app: Flask, container: Container) -> None:
    attendance = container.attendance_service

    @app.route("/attendance/checkin", methods=["POST"], endpoint="attendance_checkin")
    @login_required
    @json_errors
    def checkin():
        record = attendance.check_in(current_caller())
        return json_ok(attendance_to_dict(record), message="Checked in successfully", status=201)

    @app.route("/attendance/checkout", methods=["POST"], endpoint="attendance_checkout")
    @login_required
    @json_errors
    def checkout():
        record = attendance.check_out(current_caller())
        return json_ok(attendance_to_dict(record), message="Checked out successfully")

    @app.route("/attendance/pending", methods=["GET"], endpoint="attendance_pending")
    @admin_required
    @json_errors
    def pending():
        items = attendance.list_pending(current_caller())
        return json_ok([attendance_to_dict(r) for r in items], count=len(items))

    @app.route("/attendance/<int:attendance_id>/approve", methods=["PUT"], endpoint="attendance_approve")
    @admin_required
    @json_errors
    def approve(attendance_id: int):
        body = request_json()
        record = attendance.approve(current_caller(), attendance_id, remarks=body.get("remarks"))
        return json_ok(attendance_to_dict(record), message="Attendance approved")

    @app.route("/attendance/<int:attendance_id>/disapprove", methods=["PUT"], endpoint="attendance_disapprove")
    @admin_required
    @json_errors
    def disapprove(attendance_id: int):
        body = request_json()
        record = attendance.disapprove(current_caller(), attendance_id, remarks=body.get("remarks"))
        return json_ok(attendance_to_dict(record), message="Attendance disapproved")

    @app.route("/attendance", methods=["GET"], endpoint="attendance_list")
    @login_required
    @json_errors
    def list_attendance():
        items = attendance.list_attendance(current_caller(), request.args.to_dict())
        return json_ok([attendance_to_dict(r) for r in items], count=len(items))

    @app.route("/attendance", methods=["POST"], endpoint="attendance_create")
    @login_required
    @json_errors
    def create_attendance():
        record = attendance.create_attendance(current_caller(), request_json())
        return json_ok(attendance_to_dict(record), message="Attendance recorded", status=201)

    @app.route("/attendance/<int:attendance_id>", methods=["GET"], endpoint="attendance_get")
    @login_required
    @json_errors
    def get_attendance(attendance_id: int):
        return json_ok(attendance_to_dict(attendance.get_attendance(current_caller(), attendance_id)))

    @app.route("/attendance/<int:attendance_id>", methods=["PUT"], endpoint="attendance_update")
    @login_required
    @json_errors
    def update_attendance(attendance_id: int):
        record = attendance.update_attendance(current_caller(), attendance_id, request_json())
        return json_ok(attendance_to_dict(record), message="Attendance updated")

    @app.route("/attendance/<int:attendance_id>", methods=["DELETE"], endpoint="attendance_delete")
    @admin_required
    @json_errors
    def delete_attendance(attendance_id: int):
        attendance.delete_attendance(current_caller(), attendance_id)
        return json_ok(message="Attendance deleted")
