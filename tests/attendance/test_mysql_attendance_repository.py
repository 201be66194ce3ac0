from __future__ import annotations

from datetime import date

import pytest
from mysql.connector import IntegrityError, errorcode

from workforce.attendance.model import AttendanceRecord, NewAttendance
from workforce.attendance.mysql_attendance_repository import MySQLAttendanceRepository
from workforce.core.constants import DUPLICATE_ATTENDANCE_MESSAGE
from workforce.core.enums import AttendanceStatus
from workforce.core.exceptions import ConflictError


class FakeCursor:
    def __init__(self, error):
        self._error = error
        self.closed = False

    def execute(self, sql, params=None):
        raise self._error

    def close(self):
        self.closed = True


class FakeConnection:
    def __init__(self, error):
        self.cur = FakeCursor(error)
        self.committed = False
        self.rolled_back = False
        self.closed = False

    def cursor(self, dictionary=False):
        return self.cur

    def commit(self):
        self.committed = True

    def rollback(self):
        self.rolled_back = True

    def close(self):
        self.closed = True


class FakeConnFactory:
    def __init__(self, error):
        self.conn = FakeConnection(error)

    def connect(self):
        return self.conn


def duplicate_entry():
    return IntegrityError(
        msg="Duplicate entry '2-2026-03-02' for key 'uq_attendance_user_date'",
        errno=errorcode.ER_DUP_ENTRY,
    )


def missing_user():
    return IntegrityError(msg="Cannot add or update a child row", errno=errorcode.ER_NO_REFERENCED_ROW_2)


NEW = NewAttendance(user_id=2, work_date=date(2026, 3, 2), status=AttendanceStatus.PRESENT)
EXISTING = AttendanceRecord(attendance_id=7, user_id=2, work_date=date(2026, 3, 2), status=AttendanceStatus.PRESENT)


@pytest.mark.parametrize(
    "write",
    [
        lambda repo: repo.create(NEW),
        lambda repo: repo.update(EXISTING),
    ],
    ids=["create", "update"],
)
def test_duplicate_key_becomes_conflict(write):
    factory = FakeConnFactory(duplicate_entry())
    repo = MySQLAttendanceRepository(factory)

    with pytest.raises(ConflictError, match=DUPLICATE_ATTENDANCE_MESSAGE):
        write(repo)

    assert factory.conn.rolled_back
    assert not factory.conn.committed
    assert factory.conn.cur.closed
    assert factory.conn.closed


@pytest.mark.parametrize(
    "write",
    [
        lambda repo: repo.create(NEW),
        lambda repo: repo.update(EXISTING),
    ],
    ids=["create", "update"],
)
def test_other_integrity_errors_are_reraised(write):
    factory = FakeConnFactory(missing_user())
    repo = MySQLAttendanceRepository(factory)

    with pytest.raises(IntegrityError) as excinfo:
        write(repo)

    assert excinfo.value.errno == errorcode.ER_NO_REFERENCED_ROW_2
    assert factory.conn.rolled_back
