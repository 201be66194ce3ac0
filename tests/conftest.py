from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta

import pytest
from werkzeug.security import generate_password_hash

from workforce.attendance.model import AttendanceRecord
from workforce.attendance.service import AttendanceService
from workforce.container import wire_services
from workforce.core.constants import DUPLICATE_ATTENDANCE_MESSAGE
from workforce.core.enums import Role, TaskStatus
from workforce.core.exceptions import ConflictError
from workforce.tasks.model import Task
from workforce.tasks.service import TaskService
from workforce.users.model import Caller, User

ADMIN_ID = 1
ALICE_ID = 2
BOB_ID = 3
CAROL_ID = 4
DAVE_ID = 5
ERIN_ID = 6

PASSWORD = "secret123"


class InMemoryUserRepo:
    def __init__(self, users=()):
        self._users = {u.user_id: u for u in users}

    def get_by_username(self, username):
        for u in self._users.values():
            if u.username == username:
                return u
        return None

    def existing_ids(self, user_ids):
        return {int(u) for u in user_ids if int(u) in self._users}


class InMemoryTaskRepo:
    def __init__(self):
        self._next_id = 1
        self._tick = datetime(2026, 1, 1, 0, 0, 0)
        self.items: dict[int, Task] = {}

    def get_by_id(self, task_id):
        return self.items.get(int(task_id))

    def create(self, task):
        tid = self._next_id
        self._next_id += 1
        # Strictly increasing creation times so "newest first" is deterministic.
        self._tick += timedelta(minutes=1)
        self.items[tid] = Task(
            task_id=tid,
            title=task.title,
            description=task.description,
            due_date=task.due_date,
            created_by=task.created_by,
            assignees=tuple(task.assignees),
            progress=tuple(task.progress),
            status=TaskStatus.PENDING,
            priority=task.priority,
            tags=tuple(task.tags),
            start_date=task.start_date,
            estimated_days=task.estimated_days,
            notes=task.notes,
            created_at=self._tick,
            updated_at=self._tick,
        )
        return tid

    def save(self, task):
        if task.task_id not in self.items:
            return False
        self.items[task.task_id] = task
        return True

    def delete_by_id(self, task_id):
        return self.items.pop(int(task_id), None) is not None

    def find(self, flt, *, limit):
        out = [
            t
            for t in self.items.values()
            if (flt.status is None or t.status == flt.status)
            and (flt.priority is None or t.priority == flt.priority)
            and (flt.assignee is None or t.is_assignee(flt.assignee))
        ]
        out.sort(key=lambda t: (t.created_at, t.task_id), reverse=True)
        return out[:limit]

    def find_pending_approval(self, *, limit):
        out = [t for t in self.items.values() if t.status == TaskStatus.COMPLETION_REQUESTED]
        out.sort(key=lambda t: (t.completion_requested_at or datetime.min, t.task_id), reverse=True)
        return out[:limit]


class InMemoryAttendanceRepo:
    def __init__(self):
        self._next_id = 1
        self.items: dict[int, AttendanceRecord] = {}

    def _clash(self, user_id, work_date, attendance_id=None):
        return any(
            r.user_id == user_id and r.work_date == work_date and r.attendance_id != attendance_id
            for r in self.items.values()
        )

    def get_by_id(self, attendance_id):
        return self.items.get(int(attendance_id))

    def get_for_user_and_date(self, user_id, work_date):
        for r in self.items.values():
            if r.user_id == int(user_id) and r.work_date == work_date:
                return r
        return None

    def create(self, record):
        if self._clash(record.user_id, record.work_date):
            raise ConflictError(DUPLICATE_ATTENDANCE_MESSAGE)
        aid = self._next_id
        self._next_id += 1
        self.items[aid] = AttendanceRecord(
            attendance_id=aid,
            user_id=record.user_id,
            work_date=record.work_date,
            status=record.status,
            check_in_time=record.check_in_time,
            check_out_time=record.check_out_time,
            work_hours=record.work_hours,
            remarks=record.remarks,
            approved_by=record.approved_by,
        )
        return aid

    def update(self, record):
        if record.attendance_id not in self.items:
            return False
        if self._clash(record.user_id, record.work_date, record.attendance_id):
            raise ConflictError(DUPLICATE_ATTENDANCE_MESSAGE)
        self.items[record.attendance_id] = replace(record)
        return True

    def delete_by_id(self, attendance_id):
        return self.items.pop(int(attendance_id), None) is not None

    def find(self, flt, *, limit):
        out = [
            r
            for r in self.items.values()
            if (flt.user_id is None or r.user_id == flt.user_id)
            and (flt.status is None or r.status == flt.status)
            and (flt.start_date is None or r.work_date >= flt.start_date)
            and (flt.end_date is None or r.work_date <= flt.end_date)
            and (not flt.pending_only or r.approved_by is None)
        ]
        out.sort(key=lambda r: (r.work_date, r.attendance_id), reverse=True)
        return out[:limit]


def _user(user_id, username, role=Role.USER, *, is_active=True):
    return User(
        user_id=user_id,
        full_name=username.title(),
        username=username,
        password_hash=generate_password_hash(PASSWORD, method="pbkdf2:sha256"),
        role=role,
        is_active=is_active,
    )


DEMO_USERS = (
    _user(ADMIN_ID, "admin", Role.ADMIN),
    _user(ALICE_ID, "alice"),
    _user(BOB_ID, "bob"),
    _user(CAROL_ID, "carol"),
    _user(DAVE_ID, "dave"),
    _user(ERIN_ID, "erin"),
    _user(99, "ghost", is_active=False),
)


@pytest.fixture
def users_repo():
    return InMemoryUserRepo(DEMO_USERS)


@pytest.fixture
def tasks_repo():
    return InMemoryTaskRepo()


@pytest.fixture
def attendance_repo():
    return InMemoryAttendanceRepo()


@pytest.fixture
def task_service(tasks_repo, users_repo) -> TaskService:
    return TaskService(tasks_repo, users_repo)


@pytest.fixture
def attendance_service(attendance_repo, users_repo) -> AttendanceService:
    return AttendanceService(attendance_repo, users_repo)


@pytest.fixture
def container(users_repo, tasks_repo, attendance_repo):
    return wire_services(users_repo=users_repo, tasks_repo=tasks_repo, attendance_repo=attendance_repo)


@pytest.fixture
def admin() -> Caller:
    return Caller(user_id=ADMIN_ID, role=Role.ADMIN)


@pytest.fixture
def alice() -> Caller:
    return Caller(user_id=ALICE_ID, role=Role.USER)


@pytest.fixture
def bob() -> Caller:
    return Caller(user_id=BOB_ID, role=Role.USER)


@pytest.fixture
def carol() -> Caller:
    return Caller(user_id=CAROL_ID, role=Role.USER)
