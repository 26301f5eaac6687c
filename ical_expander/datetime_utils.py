"""Date resolution utilities for ical_expander.

Turns document date values into absolute instants. Absolute instants are
timezone-aware datetimes normalised to UTC so that equality and hashing behave
the same regardless of the zone an instant was written in.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .components import DateLike, DateValue
from .exceptions import InvalidDateError
from .timezones import TimezoneRegistry

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "UTC"

# Subtracted from a date-only end boundary so the last included day ends on its
# final representable instant instead of the next day's midnight.
END_OF_DAY_EPSILON = timedelta(microseconds=1)


def get_zone(name: Optional[str], registry: Optional[TimezoneRegistry] = None) -> tzinfo:
    """Resolve a caller timezone name, falling back to UTC.

    Args:
        name: IANA identifier (or any TZID known to ``registry``)
        registry: Optional registry consulted before zoneinfo

    Returns:
        tzinfo for the name, or UTC if it cannot be resolved
    """
    if not name:
        return timezone.utc
    if registry is not None:
        zone = registry.get(name)
        if zone is not None:
            return zone
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r, falling back to %s", name, DEFAULT_TIMEZONE)
        return timezone.utc


def is_date_only(value: DateLike) -> bool:
    return not isinstance(value, datetime)


class DateResolver:
    """Resolves document dates against a registry and the caller's timezone.

    Floating datetimes and date-only values are interpreted in the caller's
    zone, never the host's.
    """

    def __init__(self, registry: TimezoneRegistry, zone: tzinfo):
        self.registry = registry
        self.zone = zone

    def localize(self, value: DateValue) -> DateLike:
        """Attach a tzinfo to a datetime value; dates are returned unchanged."""
        if value.is_date:
            return value.value
        if value.utc:
            return value.value.replace(tzinfo=timezone.utc)
        if value.tzid:
            zone = self.registry.get(value.tzid)
            if zone is not None:
                return value.value.replace(tzinfo=zone)
            logger.debug("TZID %r not resolvable, treating %s as floating", value.tzid, value.value)
        return value.value.replace(tzinfo=self.zone)

    def to_instant(self, value: DateLike) -> datetime:
        """Absolute UTC instant for a date (caller-local midnight) or datetime."""
        if is_date_only(value):
            return datetime.combine(value, time.min, tzinfo=self.zone).astimezone(timezone.utc)
        if value.tzinfo is None:
            value = value.replace(tzinfo=self.zone)
        return value.astimezone(timezone.utc)

    def resolve(
        self, value: Optional[DateLike], uid: Optional[str] = None, field: str = "DTSTART"
    ) -> Union[datetime, InvalidDateError]:
        """Resolve ``value`` to an instant, returning the error instead of raising."""
        if value is None:
            return InvalidDateError(f"Event {uid!r} has no usable {field}", uid=uid, field=field)
        try:
            return self.to_instant(value)
        except (OverflowError, ValueError) as e:
            return InvalidDateError(f"Event {uid!r} has invalid {field}: {e}", uid=uid, field=field)

    def normalize(self, start: DateLike, end: DateLike) -> tuple[datetime, datetime]:
        """Compute (start_time, end_time) used by range tests.

        A date-only end marks the start of the day after the last included day,
        so it is pulled back by END_OF_DAY_EPSILON when it lies after the start.
        """
        start_time = self.to_instant(start)
        end_time = self.to_instant(end)
        if is_date_only(end) and end_time > start_time:
            end_time -= END_OF_DAY_EPSILON
        return start_time, end_time

    def bound_instant(self, value: Optional[DateLike]) -> Optional[datetime]:
        """Interpret a caller-supplied range bound.

        Dates mean caller-local midnight and naive datetimes are read in the
        caller zone, matching how document values are resolved.
        """
        if value is None:
            return None
        return self.to_instant(value)


def add_to(value: DateLike, delta: timedelta) -> DateLike:
    """Add a duration to a date or datetime, keeping dates whole-day."""
    if is_date_only(value):
        return value + timedelta(days=delta.days)
    return value + delta
