"""
Timezone utilities for the wagering API.

All timestamps are stored as naive UTC datetimes and rendered as ISO 8601
with a trailing "Z" in API responses.
"""
from datetime import datetime, timezone
from typing import Optional

# UTC timezone for Python < 3.11 compatibility
try:
    from datetime import UTC
except ImportError:
    UTC = timezone.utc


def utc_now() -> datetime:
    """Current time as a naive UTC datetime (the storage convention)."""
    return datetime.now(UTC).replace(tzinfo=None)


def format_utc(value: Optional[datetime]) -> Optional[str]:
    """
    Render a stored timestamp for API output.

    Naive values are assumed to be UTC already; aware values are converted.
    """
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(UTC).replace(tzinfo=None)
    return value.isoformat(timespec="seconds") + "Z"
