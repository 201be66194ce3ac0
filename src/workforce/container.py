from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .core.constants import DEFAULT_LIST_LIMIT
from .database.connection import DBConfig, DatabaseConnection
from .tasks.mysql_task_repository import MySQLTaskRepository
from .tasks.repository import TaskRepository
from .tasks.service import TaskService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService


@dataclass(frozen=True)
class Container:
    users_repo: UserRepository
    tasks_repo: TaskRepository
    attendance_repo: AttendanceRepository

    auth_service: AuthService
    task_service: TaskService
    attendance_service: AttendanceService


def wire_services(
    *,
    users_repo: UserRepository,
    tasks_repo: TaskRepository,
    attendance_repo: AttendanceRepository,
    list_limit: int = DEFAULT_LIST_LIMIT,
) -> Container:
    return Container(
        users_repo=users_repo,
        tasks_repo=tasks_repo,
        attendance_repo=attendance_repo,
        auth_service=AuthService(users_repo),
        task_service=TaskService(tasks_repo, users_repo, list_limit=list_limit),
        attendance_service=AttendanceService(attendance_repo, users_repo, list_limit=list_limit),
    )


def build_container(*, db_config: Mapping, list_limit: int = DEFAULT_LIST_LIMIT) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))

    return wire_services(
        users_repo=MySQLUserRepository(conn),
        tasks_repo=MySQLTaskRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        list_limit=list_limit,
    )
