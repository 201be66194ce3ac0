from __future__ import annotations

from datetime import date, datetime

import pytest

from workforce.attendance.work_hours import compute_work_hours
from workforce.core.constants import DEFAULT_DISAPPROVAL_REMARKS, DUPLICATE_ATTENDANCE_MESSAGE
from workforce.core.enums import AttendanceStatus
from workforce.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError

MORNING = datetime(2026, 3, 2, 9, 0, 0)
EVENING = datetime(2026, 3, 2, 17, 30, 0)


def test_check_in_then_out_computes_work_hours(attendance_service, alice):
    record = attendance_service.check_in(alice, now=MORNING)
    assert record.status == AttendanceStatus.PRESENT
    assert record.work_date == date(2026, 3, 2)
    assert record.check_in_time == MORNING
    assert record.work_hours == 0.0

    record = attendance_service.check_out(alice, now=EVENING)
    assert record.check_out_time == EVENING
    assert record.work_hours == 8.5


def test_second_check_in_same_day_conflicts(attendance_service, alice):
    attendance_service.check_in(alice, now=MORNING)

    with pytest.raises(ConflictError, match="Already checked in today"):
        attendance_service.check_in(alice, now=EVENING)


def test_check_in_next_day_is_allowed(attendance_service, alice):
    attendance_service.check_in(alice, now=MORNING)
    record = attendance_service.check_in(alice, now=datetime(2026, 3, 3, 8, 45))

    assert record.work_date == date(2026, 3, 3)


def test_check_out_without_check_in_is_not_found(attendance_service, alice):
    with pytest.raises(NotFoundError, match="No check-in record found for today"):
        attendance_service.check_out(alice, now=EVENING)


def test_second_check_out_conflicts(attendance_service, alice):
    attendance_service.check_in(alice, now=MORNING)
    attendance_service.check_out(alice, now=EVENING)

    with pytest.raises(ConflictError, match="Already checked out today"):
        attendance_service.check_out(alice, now=EVENING)


def test_user_create_is_forced_to_self(attendance_service, alice, bob):
    record = attendance_service.create_attendance(
        alice,
        {"user_id": bob.user_id, "work_date": "2026-03-02", "status": "requested", "remarks": " remote day "},
    )

    assert record.user_id == alice.user_id
    assert record.status == AttendanceStatus.REQUESTED
    assert record.remarks == "remote day"
    assert record.approved_by is None


def test_admin_create_needs_existing_user(attendance_service, admin):
    with pytest.raises(ValidationError):
        attendance_service.create_attendance(admin, {"work_date": "2026-03-02"})
    with pytest.raises(ValidationError):
        attendance_service.create_attendance(admin, {"user_id": 404, "work_date": "2026-03-02"})


def test_admin_create_with_times_computes_hours(attendance_service, admin, bob):
    record = attendance_service.create_attendance(
        admin,
        {
            "user_id": bob.user_id,
            "work_date": "2026-03-02",
            "check_in_time": "2026-03-02T08:00:00",
            "check_out_time": "2026-03-02T12:20:00",
            "status": "half-day",
        },
    )

    assert record.user_id == bob.user_id
    assert record.status == AttendanceStatus.HALF_DAY
    assert record.work_hours == 4.33


def test_duplicate_create_conflicts(attendance_service, admin, alice):
    attendance_service.check_in(alice, now=MORNING)

    with pytest.raises(ConflictError, match=DUPLICATE_ATTENDANCE_MESSAGE):
        attendance_service.create_attendance(admin, {"user_id": alice.user_id, "work_date": "2026-03-02"})


def test_create_rejects_check_out_before_check_in(attendance_service, alice):
    with pytest.raises(ValidationError):
        attendance_service.create_attendance(
            alice,
            {
                "work_date": "2026-03-02",
                "check_in_time": "2026-03-02T17:00:00",
                "check_out_time": "2026-03-02T09:00:00",
            },
        )


def test_user_update_ignores_fields_outside_mask(attendance_service, alice, bob):
    record = attendance_service.create_attendance(alice, {"work_date": "2026-03-02", "status": "late"})

    updated = attendance_service.update_attendance(
        alice,
        record.attendance_id,
        {"status": "present", "approved_by": bob.user_id, "work_date": "2026-01-01"},
    )

    assert updated.status == AttendanceStatus.PRESENT
    assert updated.approved_by is None
    assert updated.work_date == date(2026, 3, 2)


def test_user_cannot_touch_someone_elses_record(attendance_service, alice, bob):
    record = attendance_service.check_in(alice, now=MORNING)

    with pytest.raises(AuthorizationError):
        attendance_service.update_attendance(bob, record.attendance_id, {"status": "absent"})
    with pytest.raises(AuthorizationError):
        attendance_service.get_attendance(bob, record.attendance_id)


def test_admin_update_stamps_approver_and_recomputes_hours(attendance_service, admin, alice):
    record = attendance_service.check_in(alice, now=MORNING)

    updated = attendance_service.update_attendance(
        admin,
        record.attendance_id,
        {"check_out_time": "2026-03-02T13:15:00"},
    )

    assert updated.approved_by == admin.user_id
    assert updated.work_hours == 4.25


def test_admin_update_onto_occupied_day_conflicts(attendance_service, admin, alice):
    attendance_service.check_in(alice, now=MORNING)
    other = attendance_service.check_in(alice, now=datetime(2026, 3, 3, 9, 0))

    with pytest.raises(ConflictError):
        attendance_service.update_attendance(admin, other.attendance_id, {"work_date": "2026-03-02"})


def test_approve_turns_request_into_approved(attendance_service, admin, alice):
    record = attendance_service.create_attendance(alice, {"work_date": "2026-03-02", "status": "requested"})

    approved = attendance_service.approve(admin, record.attendance_id, remarks="ok")

    assert approved.status == AttendanceStatus.APPROVED
    assert approved.approved_by == admin.user_id
    assert approved.remarks == "ok"


def test_approve_keeps_other_statuses(attendance_service, admin, alice):
    record = attendance_service.check_in(alice, now=MORNING)

    approved = attendance_service.approve(admin, record.attendance_id)

    assert approved.status == AttendanceStatus.PRESENT
    assert approved.approved_by == admin.user_id


def test_disapprove_forces_absent_whatever_the_prior_status(attendance_service, admin, alice):
    # Known quirk: the prior status is not kept.
    record = attendance_service.check_in(alice, now=MORNING)
    attendance_service.approve(admin, record.attendance_id)

    disapproved = attendance_service.disapprove(admin, record.attendance_id)

    assert disapproved.status == AttendanceStatus.ABSENT
    assert disapproved.approved_by is None
    assert disapproved.remarks == DEFAULT_DISAPPROVAL_REMARKS


def test_approval_actions_are_admin_only(attendance_service, alice):
    record = attendance_service.check_in(alice, now=MORNING)

    with pytest.raises(AuthorizationError):
        attendance_service.approve(alice, record.attendance_id)
    with pytest.raises(AuthorizationError):
        attendance_service.disapprove(alice, record.attendance_id)
    with pytest.raises(AuthorizationError):
        attendance_service.list_pending(alice)
    with pytest.raises(AuthorizationError):
        attendance_service.delete_attendance(alice, record.attendance_id)


def test_pending_lists_only_unapproved_newest_first(attendance_service, admin, alice, bob):
    a1 = attendance_service.check_in(alice, now=MORNING)
    a2 = attendance_service.check_in(alice, now=datetime(2026, 3, 3, 9, 0))
    b1 = attendance_service.check_in(bob, now=MORNING)
    attendance_service.approve(admin, b1.attendance_id)

    pending = attendance_service.list_pending(admin)

    assert [r.attendance_id for r in pending] == [a2.attendance_id, a1.attendance_id]


def test_list_attendance_scopes_users_and_filters_dates(attendance_service, admin, alice, bob):
    attendance_service.check_in(alice, now=MORNING)
    attendance_service.check_in(alice, now=datetime(2026, 3, 5, 9, 0))
    attendance_service.check_in(bob, now=MORNING)

    own = attendance_service.list_attendance(alice, {"user_id": bob.user_id})
    assert {r.user_id for r in own} == {alice.user_id}
    assert [r.work_date for r in own] == [date(2026, 3, 5), date(2026, 3, 2)]

    ranged = attendance_service.list_attendance(admin, {"start_date": "2026-03-03", "end_date": "2026-03-31"})
    assert [r.work_date for r in ranged] == [date(2026, 3, 5)]

    assert len(attendance_service.list_attendance(admin)) == 3


def test_delete_missing_record_is_not_found(attendance_service, admin):
    with pytest.raises(NotFoundError, match="Attendance record not found"):
        attendance_service.delete_attendance(admin, 404)


def test_check_out_drops_sub_second_precision(attendance_service, alice):
    attendance_service.check_in(alice, now=MORNING)

    record = attendance_service.check_out(alice, now=datetime(2026, 3, 2, 9, 0, 17, 900000))

    assert record.check_out_time == datetime(2026, 3, 2, 9, 0, 17)
    assert record.work_hours == compute_work_hours(record.check_in_time, record.check_out_time) == 0.0


def test_create_drops_fractional_seconds_from_iso_input(attendance_service, alice):
    record = attendance_service.create_attendance(
        alice,
        {
            "work_date": "2026-03-02",
            "check_in_time": "2026-03-02T08:00:00.700000",
            "check_out_time": "2026-03-02T08:00:35.900000",
        },
    )

    assert record.check_in_time == datetime(2026, 3, 2, 8, 0, 0)
    assert record.check_out_time == datetime(2026, 3, 2, 8, 0, 35)
    assert record.work_hours == 0.01


def test_admin_update_rejects_shift_longer_than_a_day(attendance_service, admin, alice):
    record = attendance_service.check_in(alice, now=MORNING)

    with pytest.raises(ValidationError, match="within 24 hours"):
        attendance_service.update_attendance(admin, record.attendance_id, {"check_out_time": "2026-03-04T09:00:00"})
