from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.validators import (
    parse_date_value,
    parse_enum,
    parse_int,
    parse_optional_date,
    parse_optional_datetime,
)
from ..core.constants import DEFAULT_DISAPPROVAL_REMARKS, DEFAULT_LIST_LIMIT, DUPLICATE_ATTENDANCE_MESSAGE
from ..core.enums import AttendanceStatus
from ..core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from ..core.permissions import ATTENDANCE_CREATE, ATTENDANCE_UPDATE, filter_patch
from ..users.model import Caller
from ..users.repository import UserRepository
from .model import AttendanceFilter, AttendanceRecord, NewAttendance
from .repository import AttendanceRepository
from .work_hours import compute_work_hours

logger = logging.getLogger(__name__)


class AttendanceService:
    """Check-in/check-out and the admin approval lifecycle for attendance records."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        *,
        list_limit: int = DEFAULT_LIST_LIMIT,
    ):
        self._attendance = attendance
        self._users = users
        self._list_limit = int(list_limit)

    # ----- self-service -------------------------------------------------

    def check_in(self, caller: Caller, *, now: datetime | None = None) -> AttendanceRecord:
        # DATETIME columns keep whole seconds; hours must match what is stored.
        now = (now or now_local()).replace(microsecond=0)
        today = now.date()

        if self._attendance.get_for_user_and_date(caller.user_id, today):
            raise ConflictError("Already checked in today")

        attendance_id = self._attendance.create(
            NewAttendance(
                user_id=caller.user_id,
                work_date=today,
                status=AttendanceStatus.PRESENT,
                check_in_time=now,
            )
        )
        logger.info("check-in user_id=%s attendance_id=%s at %s", caller.user_id, attendance_id, now.isoformat())
        return self._require(attendance_id)

    def check_out(self, caller: Caller, *, now: datetime | None = None) -> AttendanceRecord:
        now = (now or now_local()).replace(microsecond=0)
        today = now.date()

        record = self._attendance.get_for_user_and_date(caller.user_id, today)
        if not record or record.check_in_time is None:
            raise NotFoundError("No check-in record found for today")
        if record.is_checked_out:
            raise ConflictError("Already checked out today")

        updated = replace(
            record,
            check_out_time=now,
            work_hours=compute_work_hours(record.check_in_time, now),
        )
        self._save(updated)
        logger.info(
            "check-out user_id=%s attendance_id=%s work_hours=%s",
            caller.user_id,
            record.attendance_id,
            updated.work_hours,
        )
        return self._require(record.attendance_id)

    # ----- CRUD -----------------------------------------------------------

    def create_attendance(
        self,
        caller: Caller,
        data: Mapping[str, Any],
        *,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        fields = filter_patch(data, caller.role, ATTENDANCE_CREATE)

        if caller.is_admin:
            if fields.get("user_id") in (None, ""):
                raise ValidationError("user_id is required")
            user_id = self._require_user(fields["user_id"])
        else:
            # Regular users can only record attendance for themselves.
            user_id = caller.user_id

        work_date = parse_optional_date(fields.get("work_date"), "work_date") or (now or now_local()).date()
        status = parse_enum(AttendanceStatus, fields.get("status") or AttendanceStatus.PRESENT.value, "status")
        check_in = parse_optional_datetime(fields.get("check_in_time"), "check_in_time")
        check_out = parse_optional_datetime(fields.get("check_out_time"), "check_out_time")
        if check_out is not None and check_in is None:
            raise ValidationError("check_out_time requires check_in_time")

        if self._attendance.get_for_user_and_date(user_id, work_date):
            raise ConflictError(DUPLICATE_ATTENDANCE_MESSAGE)

        attendance_id = self._attendance.create(
            NewAttendance(
                user_id=user_id,
                work_date=work_date,
                status=status,
                check_in_time=check_in,
                check_out_time=check_out,
                work_hours=compute_work_hours(check_in, check_out),
                remarks=_clean_remarks(fields.get("remarks")),
            )
        )
        logger.info(
            "attendance created attendance_id=%s user_id=%s date=%s by=%s",
            attendance_id,
            user_id,
            work_date,
            caller.user_id,
        )
        return self._require(attendance_id)

    def get_attendance(self, caller: Caller, attendance_id: int) -> AttendanceRecord:
        record = self._require(attendance_id)
        if not caller.is_admin and record.user_id != caller.user_id:
            raise AuthorizationError("Not authorized to access this record")
        return record

    def update_attendance(self, caller: Caller, attendance_id: int, patch: Mapping[str, Any]) -> AttendanceRecord:
        record = self._require(attendance_id)
        if not caller.is_admin and record.user_id != caller.user_id:
            raise AuthorizationError("Not authorized to update this record")

        fields = filter_patch(patch, caller.role, ATTENDANCE_UPDATE)
        updated = self._apply_fields(record, fields)
        if caller.is_admin:
            updated = replace(updated, approved_by=caller.user_id)

        if (updated.user_id, updated.work_date) != (record.user_id, record.work_date):
            clash = self._attendance.get_for_user_and_date(updated.user_id, updated.work_date)
            if clash and clash.attendance_id != record.attendance_id:
                raise ConflictError(DUPLICATE_ATTENDANCE_MESSAGE)

        self._save(updated)
        return self._require(record.attendance_id)

    def delete_attendance(self, caller: Caller, attendance_id: int) -> None:
        self._require_admin(caller)
        if not self._attendance.delete_by_id(int(attendance_id)):
            raise NotFoundError("Attendance record not found")
        logger.info("attendance deleted attendance_id=%s by=%s", attendance_id, caller.user_id)

    # ----- approval workflow ---------------------------------------------

    def approve(self, caller: Caller, attendance_id: int, *, remarks: Optional[str] = None) -> AttendanceRecord:
        self._require_admin(caller)
        record = self._require(attendance_id)

        status = record.status
        if status == AttendanceStatus.REQUESTED:
            status = AttendanceStatus.APPROVED

        cleaned = _clean_remarks(remarks)
        updated = replace(
            record,
            status=status,
            approved_by=caller.user_id,
            remarks=cleaned if cleaned is not None else record.remarks,
        )
        self._save(updated)
        logger.info("attendance approved attendance_id=%s by=%s", record.attendance_id, caller.user_id)
        return self._require(record.attendance_id)

    def disapprove(self, caller: Caller, attendance_id: int, *, remarks: Optional[str] = None) -> AttendanceRecord:
        """Mark a record as not accepted.

        The status is forced to ``absent`` whatever it was before; callers that
        expect the prior status to survive will be surprised.
        """

        self._require_admin(caller)
        record = self._require(attendance_id)

        updated = replace(
            record,
            status=AttendanceStatus.ABSENT,
            approved_by=None,
            remarks=_clean_remarks(remarks) or DEFAULT_DISAPPROVAL_REMARKS,
        )
        self._save(updated)
        logger.info("attendance disapproved attendance_id=%s by=%s", record.attendance_id, caller.user_id)
        return self._require(record.attendance_id)

    # ----- queries --------------------------------------------------------

    def list_attendance(self, caller: Caller, filters: Mapping[str, Any] | None = None) -> Sequence[AttendanceRecord]:
        filters = filters or {}

        user_id = filters.get("user_id")
        user_id = parse_int(user_id, "user_id") if user_id not in (None, "") else None
        if not caller.is_admin:
            user_id = caller.user_id

        status = filters.get("status")
        flt = AttendanceFilter(
            user_id=user_id,
            status=parse_enum(AttendanceStatus, status, "status") if status else None,
            start_date=parse_optional_date(filters.get("start_date"), "start_date"),
            end_date=parse_optional_date(filters.get("end_date"), "end_date"),
        )
        return self._attendance.find(flt, limit=self._list_limit)

    def list_pending(self, caller: Caller) -> Sequence[AttendanceRecord]:
        self._require_admin(caller)
        return self._attendance.find(AttendanceFilter(pending_only=True), limit=self._list_limit)

    # ----- helpers --------------------------------------------------------

    def _apply_fields(self, record: AttendanceRecord, fields: Mapping[str, Any]) -> AttendanceRecord:
        changes: dict[str, Any] = {}

        if "user_id" in fields:
            changes["user_id"] = self._require_user(fields["user_id"])
        if "work_date" in fields:
            changes["work_date"] = parse_date_value(fields["work_date"], "work_date")
        if "status" in fields:
            changes["status"] = parse_enum(AttendanceStatus, fields["status"], "status")
        if "check_in_time" in fields:
            changes["check_in_time"] = parse_optional_datetime(fields["check_in_time"], "check_in_time")
        if "check_out_time" in fields:
            changes["check_out_time"] = parse_optional_datetime(fields["check_out_time"], "check_out_time")
        if "remarks" in fields:
            changes["remarks"] = _clean_remarks(fields["remarks"])

        updated = replace(record, **changes)
        if updated.check_out_time is not None and updated.check_in_time is None:
            raise ValidationError("check_out_time requires check_in_time")
        return replace(updated, work_hours=compute_work_hours(updated.check_in_time, updated.check_out_time))

    def _require(self, attendance_id: int) -> AttendanceRecord:
        record = self._attendance.get_by_id(int(attendance_id))
        if not record:
            raise NotFoundError("Attendance record not found")
        return record

    def _save(self, record: AttendanceRecord) -> None:
        if not self._attendance.update(record):
            raise NotFoundError("Attendance record not found")

    def _require_user(self, value: Any) -> int:
        user_id = parse_int(value, "user_id")
        if user_id not in self._users.existing_ids([user_id]):
            raise ValidationError(f"User {user_id} does not exist")
        return user_id

    @staticmethod
    def _require_admin(caller: Caller) -> None:
        if not caller.is_admin:
            raise AuthorizationError("Admin role required")


def _clean_remarks(value: Any) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError("remarks must be a string")
    return value.strip() or None
