from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any, Optional, Type, TypeVar

from ..core.exceptions import ValidationError
from .datetime_utils import parse_iso_date, parse_iso_datetime

E = TypeVar("E", bound=Enum)


def require_non_empty(value: str, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def parse_enum(enum_cls: Type[E], value: Any, field_name: str) -> E:
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"Invalid {field_name} '{value}' (expected one of: {allowed})")


def parse_date_value(value: Any, field_name: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        try:
            # Accept full timestamps too; the calendar date is what matters.
            if "T" in value:
                return parse_iso_datetime(value).date()
            return parse_iso_date(value.strip())
        except ValueError:
            pass
    raise ValidationError(f"{field_name} must be a date (YYYY-MM-DD)")


def parse_optional_date(value: Any, field_name: str) -> Optional[date]:
    if value is None or value == "":
        return None
    return parse_date_value(value, field_name)


def parse_optional_datetime(value: Any, field_name: str) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.replace(microsecond=0)
    if isinstance(value, str):
        try:
            return parse_iso_datetime(value)
        except ValueError:
            pass
    raise ValidationError(f"{field_name} must be an ISO-8601 timestamp")


def parse_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer")


def parse_str_list(value: Any, field_name: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise ValidationError(f"{field_name} must be a list")
    out: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ValidationError(f"{field_name} must contain strings only")
        item = item.strip()
        if item:
            out.append(item)
    return out


def parse_id_list(value: Any, field_name: str) -> list[int]:
    if not isinstance(value, (list, tuple)):
        raise ValidationError(f"{field_name} must be a list of user ids")
    out: list[int] = []
    for item in value:
        uid = parse_int(item, field_name)
        if uid not in out:
            out.append(uid)
    return out
