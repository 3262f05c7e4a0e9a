"""
Timezone utility functions for converting between provider-local wall-clock
times and UTC instants
"""
from datetime import date, datetime, time, timedelta
from typing import Optional, Tuple, Union

import pytz

from telehealth_scheduler import config
from telehealth_scheduler.errors import InvalidInput, InvalidTimezone
from telehealth_scheduler.models.availability import DayOfWeek


DISPLAY_PATTERN = "%Y-%m-%d %H:%M:%S %Z"

# Common timezones for healthcare applications
SUPPORTED_TIMEZONES = [
    {"value": "America/New_York", "label": "Eastern Time (ET)", "offset": "UTC-5/-4"},
    {"value": "America/Chicago", "label": "Central Time (CT)", "offset": "UTC-6/-5"},
    {"value": "America/Denver", "label": "Mountain Time (MT)", "offset": "UTC-7/-6"},
    {"value": "America/Los_Angeles", "label": "Pacific Time (PT)", "offset": "UTC-8/-7"},
    {"value": "America/Phoenix", "label": "Arizona Time (MST)", "offset": "UTC-7"},
    {"value": "America/Anchorage", "label": "Alaska Time (AKST)", "offset": "UTC-9/-8"},
    {"value": "Pacific/Honolulu", "label": "Hawaii Time (HST)", "offset": "UTC-10"},
    {"value": "Europe/London", "label": "Greenwich Mean Time (GMT)", "offset": "UTC+0/+1"},
    {"value": "Europe/Paris", "label": "Central European Time (CET)", "offset": "UTC+1/+2"},
    {"value": "Asia/Tokyo", "label": "Japan Standard Time (JST)", "offset": "UTC+9"},
    {"value": "Australia/Sydney", "label": "Australian Eastern Time (AEST)", "offset": "UTC+10/+11"},
]


def get_timezone(timezone_str: Optional[str] = None) -> pytz.BaseTzInfo:
    """
    Get timezone object from string

    Args:
        timezone_str: IANA timezone string (e.g., 'America/New_York', 'UTC')
                      If None, uses the configured default timezone

    Returns:
        pytz timezone object

    Raises:
        InvalidTimezone: if the name is not a known IANA identifier
    """
    if not timezone_str:
        timezone_str = config.DEFAULT_TIMEZONE

    try:
        return pytz.timezone(timezone_str)
    except pytz.exceptions.UnknownTimeZoneError:
        raise InvalidTimezone(timezone_str)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Tag a naive datetime as UTC, or convert an aware one to UTC"""
    if value is None:
        return None
    if value.tzinfo is None:
        return pytz.UTC.localize(value)
    return value.astimezone(pytz.UTC)


def to_utc_instant(
    local: Union[datetime, str],
    timezone_name: str,
    pattern: Optional[str] = None
) -> datetime:
    """
    Interpret a wall-clock date/time in the given zone and return the UTC instant

    Args:
        local: Naive datetime, or a string parsed with `pattern` (strptime)
               or as ISO-8601 when no pattern is given
        timezone_name: IANA timezone name
        pattern: Optional strptime pattern for string input

    Returns:
        Timezone-aware UTC datetime

    Times that do not exist or are ambiguous because of a DST shift are
    resolved by pytz's localize() defaults (standard time). An aware
    datetime is already an instant and is only converted.
    """
    tz = get_timezone(timezone_name)

    if isinstance(local, str):
        value = local
        if not pattern and value.endswith("Z"):
            # fromisoformat() accepts the "Z" suffix only from Python 3.11
            value = value[:-1] + "+00:00"
        try:
            local = datetime.strptime(value, pattern) if pattern else datetime.fromisoformat(value)
        except ValueError:
            raise InvalidInput(f"Invalid date/time: '{local}'")

    if local.tzinfo is not None:
        return local.astimezone(pytz.UTC)

    return tz.localize(local).astimezone(pytz.UTC)


def format_in_timezone(utc_instant: datetime, timezone_name: str, pattern: str = DISPLAY_PATTERN) -> str:
    """Format a UTC instant as wall-clock time in the given zone"""
    tz = get_timezone(timezone_name)
    return ensure_utc(utc_instant).astimezone(tz).strftime(pattern)


def parse_date(date_str: str) -> date:
    """Parse a YYYY-MM-DD calendar date"""
    try:
        return datetime.strptime(date_str, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise InvalidInput(f"Invalid date format: {date_str}. Expected YYYY-MM-DD format.")


def parse_hhmm(time_str: str) -> time:
    """Parse a zero-padded 24h "HH:MM" time of day"""
    try:
        return datetime.strptime(time_str.strip(), "%H:%M").time()
    except (AttributeError, ValueError):
        raise InvalidInput(f"Invalid time format: {time_str}. Expected HH:MM format (e.g., '09:00', '14:30')")


def local_time_on_date(day: date, time_str: str, timezone_name: str) -> datetime:
    """UTC instant of an "HH:MM" wall-clock time on a given local date"""
    return to_utc_instant(datetime.combine(day, parse_hhmm(time_str)), timezone_name)


def local_day_bounds(day: date, timezone_name: str) -> Tuple[datetime, datetime]:
    """UTC instants of local midnight on `day` and of the following midnight"""
    start = to_utc_instant(datetime.combine(day, time.min), timezone_name)
    end = to_utc_instant(datetime.combine(day + timedelta(days=1), time.min), timezone_name)
    return start, end


def to_local(utc_instant: datetime, timezone_name: str) -> datetime:
    return ensure_utc(utc_instant).astimezone(get_timezone(timezone_name))


def day_of_week_for(utc_instant: datetime, timezone_name: str) -> DayOfWeek:
    """Local day of week of an instant"""
    return DayOfWeek.from_date(to_local(utc_instant, timezone_name))


def local_time_string(utc_instant: datetime, timezone_name: str) -> str:
    """Local "HH:MM" of an instant"""
    return to_local(utc_instant, timezone_name).strftime("%H:%M")


def format_timezone_name(tz_str: str) -> str:
    """
    Format timezone name for display

    Examples:
    - "America/New_York" -> "Eastern Time (ET)"
    - "UTC" -> "UTC"
    - "America/Argentina/Buenos_Aires" -> "America/Argentina/Buenos Aires"
    """
    for option in SUPPORTED_TIMEZONES:
        if option["value"] == tz_str:
            return option["label"]
    return tz_str.replace("_", " ")
