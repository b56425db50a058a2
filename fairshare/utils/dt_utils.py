# File: utils/dt_utils.py
"""Date and time utilities for FairShare.

Pure Python date/time functions. Uses standard library datetime/zoneinfo
plus dateutil for calendar arithmetic.

Functions:
    - dt_today_local: Get today's date in local timezone
    - dt_now_utc: Get current datetime in UTC
    - as_local: Timezone conversion
    - dt_parse_date: Parse date strings
    - dt_parse: Normalize str/date/datetime inputs to aware datetimes
    - dt_to_date: Collapse a date or datetime to a local calendar date
    - week_bounds: Monday-Sunday bounds of the week holding a date
    - week_key: ISO week key ("2026-W03")
    - days_between: Whole days elapsed between two instants
    - previous_period: Equal-length period ending where another starts
"""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta
import logging
from zoneinfo import ZoneInfo

# Third-party date utilities
from dateutil.relativedelta import MO, relativedelta

# Module-level logger
_LOGGER = logging.getLogger(__name__)

# ==============================================================================
# Constants (local copies to avoid circular imports)
# ==============================================================================

# Default timezone - can be overridden by caller
DEFAULT_TIME_ZONE: ZoneInfo = ZoneInfo("UTC")

PERIOD_FORMAT_WEEKLY = "%G-W%V"


# ==============================================================================
# Timezone Configuration
# ==============================================================================


def set_default_timezone(tz: ZoneInfo) -> None:
    """Set the default timezone for all dt_utils functions.

    Call this once at startup to configure the household's timezone.

    Args:
        tz: ZoneInfo object representing the default timezone
    """
    global DEFAULT_TIME_ZONE  # noqa: PLW0603
    DEFAULT_TIME_ZONE = tz


def get_default_timezone() -> ZoneInfo:
    """Get the current default timezone."""
    return DEFAULT_TIME_ZONE


# ==============================================================================
# Current Date/Time Functions
# ==============================================================================


def dt_today_local(tz: ZoneInfo | None = None) -> date:
    """Return today's date in local timezone as a `datetime.date`.

    Args:
        tz: Optional timezone override. Uses DEFAULT_TIME_ZONE if not provided.
    """
    tz_info = tz or DEFAULT_TIME_ZONE
    return datetime.now(tz_info).date()


def dt_now_utc() -> datetime:
    """Return the current datetime in UTC (timezone-aware)."""
    return datetime.now(UTC)


# ==============================================================================
# Timezone Conversion
# ==============================================================================


def as_local(dt_obj: datetime, tz: ZoneInfo | None = None) -> datetime:
    """Convert a datetime to local timezone.

    Naive datetimes are assumed to be in UTC.
    """
    tz_info = tz or DEFAULT_TIME_ZONE
    if dt_obj.tzinfo is None:
        dt_obj = dt_obj.replace(tzinfo=UTC)
    return dt_obj.astimezone(tz_info)


# ==============================================================================
# Date/Time Parsing
# ==============================================================================


def dt_parse_date(date_str: str | None) -> date | None:
    """Safely parse a date string into a `datetime.date`.

    Accepts formats:
    - "2025-04-07" (ISO format)
    - "2025-04-07T10:00:00+00:00" (ISO datetime, date part kept)
    - "04/07/2025" (US format)
    - "07/04/2025" (European format - attempted if US fails)

    Returns:
        datetime.date or None if parsing fails.
    """
    if not date_str or not isinstance(date_str, str):
        return None

    try:
        return date.fromisoformat(date_str)
    except ValueError:
        pass

    try:
        return datetime.fromisoformat(date_str).date()
    except ValueError:
        pass

    for fmt in ("%m/%d/%Y", "%d/%m/%Y", "%Y/%m/%d"):
        try:
            return datetime.strptime(date_str, fmt).date()
        except ValueError:
            continue

    _LOGGER.debug("Unparseable date string: %s", date_str)
    return None


def dt_parse(
    dt_input: str | date | datetime | None,
    default_tzinfo: ZoneInfo | None = None,
) -> datetime | None:
    """Normalize various datetime input formats to an aware datetime.

    Args:
        dt_input: String, date or datetime to normalize, or None
        default_tzinfo: Timezone to use if the input is naive
                        (defaults to DEFAULT_TIME_ZONE if None)

    Returns:
        Timezone-aware datetime, or None if the input could not be parsed.

    Example:
        >>> dt_parse("2025-04-15")
        datetime.datetime(2025, 4, 15, 0, 0, tzinfo=ZoneInfo('UTC'))
    """
    if not dt_input:
        return None

    tz_info = default_tzinfo or DEFAULT_TIME_ZONE
    result: datetime | None = None

    if isinstance(dt_input, str):
        try:
            result = datetime.fromisoformat(dt_input)
        except ValueError:
            parsed_date = dt_parse_date(dt_input)
            if parsed_date is None:
                return None
            result = datetime.combine(parsed_date, datetime.min.time())
    elif isinstance(dt_input, datetime):
        result = dt_input
    elif isinstance(dt_input, date):
        result = datetime.combine(dt_input, datetime.min.time())
    else:
        return None

    if result.tzinfo is None:
        result = result.replace(tzinfo=tz_info)
    return result


def dt_to_date(value: date | datetime, tz: ZoneInfo | None = None) -> date:
    """Collapse a date or datetime to a local calendar date.

    Datetimes are converted to the local timezone first so that a completion
    at 23:30 local time lands on the right day.
    """
    if isinstance(value, datetime):
        return as_local(value, tz).date()
    return value


# ==============================================================================
# Period Arithmetic
# ==============================================================================


def week_bounds(reference: date | datetime) -> tuple[date, date]:
    """Return the Monday and Sunday bounding the week that holds reference.

    Example:
        week_bounds(date(2026, 1, 21)) → (date(2026, 1, 19), date(2026, 1, 25))
    """
    ref = dt_to_date(reference)
    start = ref + relativedelta(weekday=MO(-1))
    return start, start + timedelta(days=6)


def week_key(reference: date | datetime) -> str:
    """Return the ISO week key for reference (e.g. "2026-W04")."""
    return dt_to_date(reference).strftime(PERIOD_FORMAT_WEEKLY)


def days_between(earlier: date | datetime, later: date | datetime) -> int:
    """Return whole local calendar days from earlier to later (never negative)."""
    delta = (dt_to_date(later) - dt_to_date(earlier)).days
    return max(delta, 0)


def previous_period(period_start: date, period_end: date) -> tuple[date, date]:
    """Return the equal-length period that ends the day before period_start.

    Both bounds are inclusive, so a Monday-Sunday week maps to the previous
    Monday-Sunday week.
    """
    length = (period_end - period_start).days + 1
    prev_end = period_start - timedelta(days=1)
    return prev_end - timedelta(days=length - 1), prev_end
