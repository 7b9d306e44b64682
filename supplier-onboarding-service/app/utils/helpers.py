from typing import Any, Optional
from datetime import datetime, timezone
import math
import uuid

from shared.exceptions import ValidationException

# Upper bound of a PostgreSQL INTEGER column
MAX_INTEGER = 2_147_483_647


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_uuid(value: Any, field_name: str = "id") -> uuid.UUID:
    """Parse a client-supplied identifier, reporting malformed ones as validation errors."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        raise ValidationException(f"Invalid {field_name}: {value!r}")


def blank_to_none(value: Any) -> Any:
    """Registration forms submit untouched inputs as empty strings."""
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def lenient_float(value: Any) -> Optional[float]:
    """Parse a float the way the registration form does: anything unparseable becomes None."""
    value = blank_to_none(value)
    if value is None:
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        try:
            number = float(value.replace(",", ""))
        except (AttributeError, ValueError):
            return None
    return number if math.isfinite(number) else None


def lenient_int(value: Any) -> Optional[int]:
    """
    Parse an integer count; decimals are truncated and anything else becomes None.

    Counts that are negative or do not fit a 32-bit INTEGER column are
    treated as unparseable.
    """
    number = lenient_float(value)
    if number is None:
        return None
    number = int(number)
    return number if 0 <= number <= MAX_INTEGER else None

