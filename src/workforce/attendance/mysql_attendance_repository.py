from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from mysql.connector import IntegrityError, errorcode

from ..core.constants import DUPLICATE_ATTENDANCE_MESSAGE
from ..core.enums import AttendanceStatus
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AttendanceFilter, AttendanceRecord, NewAttendance
from .repository import AttendanceRepository

_COLUMNS = """
    attendance_id, user_id, work_date, status, check_in_time, check_out_time,
    work_hours, remarks, approved_by, created_at, updated_at
"""


def _row_to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        user_id=int(r["user_id"]),
        work_date=r["work_date"],
        status=AttendanceStatus(r["status"]),
        check_in_time=r.get("check_in_time"),
        check_out_time=r.get("check_out_time"),
        work_hours=float(r.get("work_hours") or 0),
        remarks=r.get("remarks"),
        approved_by=int(r["approved_by"]) if r.get("approved_by") is not None else None,
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


def _is_duplicate_key(exc: IntegrityError) -> bool:
    return getattr(exc, "errno", None) == errorcode.ER_DUP_ENTRY


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_records WHERE attendance_id=%s", (int(attendance_id),))
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_records WHERE user_id=%s AND work_date=%s",
                (int(user_id), work_date),
            )
            r = fetchone(cur)
            return _row_to_record(r) if r else None

    def create(self, record: NewAttendance) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_records(
                        user_id, work_date, status, check_in_time, check_out_time,
                        work_hours, remarks, approved_by
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        record.user_id,
                        record.work_date,
                        record.status.value,
                        record.check_in_time,
                        record.check_out_time,
                        record.work_hours,
                        record.remarks,
                        record.approved_by,
                    ),
                )
                return int(cur.lastrowid)
        except IntegrityError as exc:
            if _is_duplicate_key(exc):
                raise ConflictError(DUPLICATE_ATTENDANCE_MESSAGE) from exc
            raise

    def update(self, record: AttendanceRecord) -> bool:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    UPDATE attendance_records
                    SET user_id=%s, work_date=%s, status=%s, check_in_time=%s, check_out_time=%s,
                        work_hours=%s, remarks=%s, approved_by=%s
                    WHERE attendance_id=%s
                    """,
                    (
                        record.user_id,
                        record.work_date,
                        record.status.value,
                        record.check_in_time,
                        record.check_out_time,
                        record.work_hours,
                        record.remarks,
                        record.approved_by,
                        record.attendance_id,
                    ),
                )
                return cur.rowcount > 0
        except IntegrityError as exc:
            if _is_duplicate_key(exc):
                raise ConflictError(DUPLICATE_ATTENDANCE_MESSAGE) from exc
            raise

    def delete_by_id(self, attendance_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendance_records WHERE attendance_id=%s", (int(attendance_id),))
            return cur.rowcount > 0

    def find(self, flt: AttendanceFilter, *, limit: int) -> Sequence[AttendanceRecord]:
        clauses: list[str] = []
        params: list[object] = []

        if flt.user_id is not None:
            clauses.append("user_id=%s")
            params.append(int(flt.user_id))
        if flt.status is not None:
            clauses.append("status=%s")
            params.append(flt.status.value)
        if flt.start_date is not None:
            clauses.append("work_date >= %s")
            params.append(flt.start_date)
        if flt.end_date is not None:
            clauses.append("work_date <= %s")
            params.append(flt.end_date)
        if flt.pending_only:
            clauses.append("approved_by IS NULL")

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                {where}
                ORDER BY work_date DESC, attendance_id DESC
                LIMIT %s
                """,
                tuple(params),
            )
            return [_row_to_record(r) for r in fetchall(cur)]
