"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_SESSION_DAYS = 7
DEFAULT_LIST_LIMIT = 500
DEFAULT_ESTIMATED_DAYS = 1

# One attendance record covers one shift (overnight shifts included).
MAX_SHIFT_HOURS = 24

DEFAULT_REJECTION_REASON = "Task completion rejected by admin"
DEFAULT_DISAPPROVAL_REMARKS = "Attendance disapproved by admin"
DUPLICATE_ATTENDANCE_MESSAGE = "Attendance already recorded for this user today"
