from __future__ import annotations

import math
from datetime import datetime
from typing import Optional

from ..core.constants import MAX_SHIFT_HOURS
from ..core.exceptions import ValidationError


def compute_work_hours(check_in: Optional[datetime], check_out: Optional[datetime], *, default: float = 0.0) -> float:
    """Hours between check-in and check-out, rounded half-up to 2 decimals.

    Returns ``default`` while either timestamp is missing.
    """

    if check_in is None or check_out is None:
        return default
    if check_out < check_in:
        raise ValidationError("Check-out time cannot be earlier than check-in time")

    hours = (check_out - check_in).total_seconds() / 3600
    if hours > MAX_SHIFT_HOURS:
        raise ValidationError(f"Check-out must be within {MAX_SHIFT_HOURS} hours of check-in")
    return math.floor(hours * 100 + 0.5) / 100
