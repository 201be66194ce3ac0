from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import AttendanceFilter, AttendanceRecord, NewAttendance


class AttendanceRepository(Protocol):
    """Persistence for attendance records.

    Implementations must enforce uniqueness of (user_id, work_date) and raise
    ``ConflictError`` when a create/update would violate it.
    """

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def create(self, record: NewAttendance) -> int:
        raise NotImplementedError

    def update(self, record: AttendanceRecord) -> bool:
        """Overwrite every mutable column of ``record``."""

        raise NotImplementedError

    def delete_by_id(self, attendance_id: int) -> bool:
        raise NotImplementedError

    def find(self, flt: AttendanceFilter, *, limit: int) -> Sequence[AttendanceRecord]:
        """Matching records, newest work_date first."""

        raise NotImplementedError
