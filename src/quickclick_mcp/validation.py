from __future__ import annotations

import re
from datetime import date

from .exceptions import ValidationError

SPECIAL_DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
_SPECIAL_DATE_RE = re.compile(SPECIAL_DATE_PATTERN)


def validate_special_date(value: str) -> str:
    """Return ``value`` if it is a real calendar date in YYYY-MM-DD form."""
    candidate = (value or "").strip()
    if not _SPECIAL_DATE_RE.match(candidate):
        raise ValidationError(
            code="INVALID_DATE",
            message=f"date must be in YYYY-MM-DD format, got {value!r}",
            details={"field": "date"},
        )
    try:
        date.fromisoformat(candidate)
    except ValueError as exc:
        raise ValidationError(
            code="INVALID_DATE",
            message=f"date is not a valid calendar day: {value!r}",
            details={"field": "date"},
        ) from exc
    return candidate


def validate_record_id(value: int, field: str = "id") -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError(
            code="INVALID_ID",
            message=f"{field} must be a positive integer, got {value!r}",
            details={"field": field},
        )
    return value


def validate_waiting_time(minutes: int) -> int:
    if isinstance(minutes, bool) or not isinstance(minutes, int) or minutes < 0:
        raise ValidationError(
            code="INVALID_WAITING_TIME",
            message=f"waiting time must be a non-negative number of minutes, got {minutes!r}",
            details={"field": "waitingTime"},
        )
    return minutes
