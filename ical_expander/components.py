"""Typed component wrappers over the icalendar parse tree.

The icalendar library exposes components as case-insensitive dicts whose values
depend on the property type and on how often a property occurs. This module is
the only place that performs string-keyed property lookups; the rest of the
package works with the fixed accessor contracts below.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Any, NamedTuple, Optional, Union

from icalendar import Calendar
from icalendar.cal import Component

from .exceptions import ICSParseError

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime]


class DateValue(NamedTuple):
    """A date or wall-clock datetime as written in the document.

    ``value`` is either a ``date`` (all-day) or a naive ``datetime``. ``tzid``
    carries the TZID parameter when present and ``utc`` is set for values written
    with a trailing ``Z``. Zone resolution is left to datetime_utils.
    """

    value: DateLike
    tzid: Optional[str] = None
    utc: bool = False

    @property
    def is_date(self) -> bool:
        return not isinstance(self.value, datetime)


def _as_list(prop: Any) -> list[Any]:
    if prop is None:
        return []
    if isinstance(prop, list):
        return prop
    return [prop]


def _to_date_value(raw: Any, tzid: Optional[str]) -> DateValue:
    """Split a decoded icalendar value into wall-clock value and zone hints."""
    if isinstance(raw, tuple):
        # RDATE;VALUE=PERIOD -> (start, end | duration); the start is the instance
        raw = raw[0]
    if not isinstance(raw, datetime):
        return DateValue(raw)
    if raw.tzinfo is None:
        return DateValue(raw, tzid)
    if tzid is None and raw.utcoffset() == timedelta(0):
        return DateValue(raw.replace(tzinfo=None), None, True)
    if tzid is None:
        # Aware value without TZID param; keep the library's zone name if it has one
        tzid = getattr(raw.tzinfo, "key", None) or str(raw.tzinfo)
    return DateValue(raw.replace(tzinfo=None), tzid)


def _prop_tzid(prop: Any) -> Optional[str]:
    params = getattr(prop, "params", None)
    if not params:
        return None
    tzid = params.get("TZID")
    return str(tzid) if tzid else None


def _date_list(prop: Any) -> list[DateValue]:
    """Flatten EXDATE/RDATE properties (single, repeated, or comma-separated)."""
    values: list[DateValue] = []
    for entry in _as_list(prop):
        tzid = _prop_tzid(entry)
        for item in getattr(entry, "dts", []):
            values.append(_to_date_value(item.dt, tzid or _prop_tzid(item)))
    return values


class TimeZoneComponent:
    """A VTIMEZONE subcomponent."""

    def __init__(self, component: Component):
        self._component = component

    @property
    def tzid(self) -> Optional[str]:
        tzid = self._component.get("TZID")
        return str(tzid) if tzid else None

    def to_tzinfo(self) -> Any:
        """Build a tzinfo from the definition (icalendar's Timezone.to_tz)."""
        return self._component.to_tz()


class EventComponent:
    """A VEVENT subcomponent with a fixed accessor contract."""

    def __init__(self, component: Component):
        self._component = component

    def _date(self, name: str) -> Optional[DateValue]:
        prop = self._component.get(name)
        if prop is None:
            return None
        if isinstance(prop, list):
            prop = prop[0]
        value = getattr(prop, "dt", None)
        if value is None:
            return None
        return _to_date_value(value, _prop_tzid(prop))

    @property
    def uid(self) -> Optional[str]:
        uid = self._component.get("UID")
        return str(uid) if uid is not None else None

    @property
    def summary(self) -> str:
        summary = self._component.get("SUMMARY")
        return str(summary) if summary is not None else ""

    @property
    def dtstart(self) -> Optional[DateValue]:
        return self._date("DTSTART")

    @property
    def dtend(self) -> Optional[DateValue]:
        return self._date("DTEND")

    @property
    def duration(self) -> Optional[timedelta]:
        prop = self._component.get("DURATION")
        return getattr(prop, "dt", None)

    @property
    def recurrence_id(self) -> Optional[DateValue]:
        return self._date("RECURRENCE-ID")

    @property
    def rrules(self) -> list[Any]:
        """RRULE values as icalendar ``vRecur`` mappings."""
        return _as_list(self._component.get("RRULE"))

    @property
    def rdates(self) -> list[DateValue]:
        return _date_list(self._component.get("RDATE"))

    @property
    def exdates(self) -> list[DateValue]:
        return _date_list(self._component.get("EXDATE"))

    @property
    def errors(self) -> list[tuple[str, str]]:
        """Properties the parser dropped as (NAME, message) pairs."""
        return [(str(name).upper(), str(msg)) for name, msg in getattr(self._component, "errors", [])]

    def has_error(self, name: str) -> bool:
        return any(prop == name for prop, _ in self.errors)


class CalendarDocument:
    """Root VCALENDAR; immutable after parsing."""

    def __init__(self, calendar: Calendar):
        self._calendar = calendar
        self._timezones = [
            TimeZoneComponent(c) for c in calendar.subcomponents if c.name == "VTIMEZONE"
        ]
        self._events = [EventComponent(c) for c in calendar.subcomponents if c.name == "VEVENT"]

    @classmethod
    def parse(cls, ics: Union[str, bytes]) -> CalendarDocument:
        """Parse raw calendar text.

        Raises:
            ICSParseError: If the text is not a VCALENDAR document
        """
        if not ics or not str(ics).strip():
            raise ICSParseError("Empty calendar document")
        try:
            calendar = Calendar.from_ical(ics)
        except Exception as e:
            raise ICSParseError(f"Failed to parse calendar document: {e}") from e
        if getattr(calendar, "name", None) != "VCALENDAR":
            raise ICSParseError(
                f"Expected VCALENDAR root component, got {getattr(calendar, 'name', None)!r}"
            )
        document = cls(calendar)
        logger.debug(
            "Parsed calendar document: %d VEVENT, %d VTIMEZONE",
            len(document.events),
            len(document.timezones),
        )
        return document

    @property
    def timezones(self) -> list[TimeZoneComponent]:
        return list(self._timezones)

    @property
    def events(self) -> list[EventComponent]:
        return list(self._events)
