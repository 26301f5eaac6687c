"""Event, occurrence and query result models for ical_expander."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from functools import cached_property
from typing import Optional

from pydantic import BaseModel, Field, field_serializer

from .components import DateLike, EventComponent
from .datetime_utils import DateResolver, add_to, is_date_only
from .exceptions import InvalidDateError
from .recurrence import RecurrenceIterator


class Event:
    """A VEVENT with its dates resolved against the registry and caller zone.

    Exceptions (events carrying RECURRENCE-ID) reference their base series by
    ``uid`` and are never iterated themselves.
    """

    def __init__(self, component: EventComponent, resolver: DateResolver):
        self.component = component
        self._resolver = resolver

    def __repr__(self) -> str:
        return f"Event(uid={self.uid!r}, summary={self.summary!r}, start={self.start_date!r})"

    @property
    def uid(self) -> Optional[str]:
        return self.component.uid

    @property
    def summary(self) -> str:
        return self.component.summary

    @cached_property
    def start_date(self) -> Optional[DateLike]:
        dtstart = self.component.dtstart
        if dtstart is None:
            return None
        return self._resolver.localize(dtstart)

    @cached_property
    def end_date(self) -> Optional[DateLike]:
        """DTEND, else DTSTART + DURATION, else one day (dates) or DTSTART."""
        start = self.start_date
        if start is None:
            return None
        dtend = self.component.dtend
        if dtend is not None:
            return self._resolver.localize(dtend)
        duration = self.component.duration
        if duration is not None:
            return add_to(start, duration)
        if is_date_only(start):
            return add_to(start, timedelta(days=1))
        return start

    @property
    def duration(self) -> timedelta:
        if self.start_date is None or self.end_date is None:
            return timedelta(0)
        if is_date_only(self.start_date) != is_date_only(self.end_date):
            return self._resolver.to_instant(self.end_date) - self._resolver.to_instant(self.start_date)
        return self.end_date - self.start_date

    @property
    def is_all_day(self) -> bool:
        return self.start_date is not None and is_date_only(self.start_date)

    @property
    def is_recurring(self) -> bool:
        return bool(self.component.rrules or self.component.rdates)

    @property
    def is_recurrence_exception(self) -> bool:
        return self.component.recurrence_id is not None

    @cached_property
    def recurrence_id(self) -> Optional[DateLike]:
        recurrence_id = self.component.recurrence_id
        if recurrence_id is None:
            return None
        return self._resolver.localize(recurrence_id)

    @property
    def exdates(self) -> list[DateLike]:
        return [self._resolver.localize(value) for value in self.component.exdates]

    def validate(self) -> Optional[InvalidDateError]:
        """Check that both boundaries resolve to instants.

        Returns:
            The first InvalidDateError found, or None when the event is usable
        """
        for name in ("DTSTART", "DTEND", "DURATION"):
            if self.component.has_error(name):
                return InvalidDateError(f"Event {self.uid!r} has unparseable {name}", uid=self.uid, field=name)
        try:
            start, end = self.start_date, self.end_date
        except (OverflowError, ValueError) as e:
            return InvalidDateError(f"Event {self.uid!r} has invalid dates: {e}", uid=self.uid, field="DTEND")
        for name, value in (("DTSTART", start), ("DTEND", end)):
            resolved = self._resolver.resolve(value, uid=self.uid, field=name)
            if isinstance(resolved, InvalidDateError):
                return resolved
        return None

    def iterator(self, max_iterations: int = 0) -> RecurrenceIterator:
        """Create a fresh recurrence iterator over this event's series."""
        return RecurrenceIterator(
            self.start_date,
            rrules=self.component.rrules,
            rdates=[self._resolver.localize(value) for value in self.component.rdates],
            max_iterations=max_iterations,
            floating_zone=self._resolver.zone,
            label=self.uid or self.summary,
        )

    def normalized_times(self) -> tuple[datetime, datetime]:
        return self._resolver.normalize(self.start_date, self.end_date)

    def get_occurrence_details(self, candidate: DateLike) -> Occurrence:
        """Materialise the occurrence starting at ``candidate``."""
        end_date = add_to(candidate, self.duration)
        start_time, end_time = self._resolver.normalize(candidate, end_date)
        return Occurrence(
            item=self,
            recurrence_id=candidate,
            start_date=candidate,
            end_date=end_date,
            start_time=start_time,
            end_time=end_time,
        )


@dataclass(frozen=True)
class Occurrence:
    """One computed instance of a recurring Event."""

    item: Event
    recurrence_id: DateLike
    start_date: DateLike
    end_date: DateLike
    start_time: datetime
    end_time: datetime

    @property
    def is_all_day(self) -> bool:
        return is_date_only(self.start_date)


class ItemKind(str, Enum):
    """Kind of an expanded calendar item."""

    EVENT = "event"
    EXCEPTION = "exception"
    OCCURRENCE = "occurrence"


class ExpandedItem(BaseModel):
    """Serialisable view of an event or occurrence."""

    uid: Optional[str] = Field(default=None, description="Event UID")
    summary: str = Field(default="", description="Event summary")
    start: datetime = Field(..., description="Normalised start instant")
    end: datetime = Field(..., description="Normalised end instant")
    all_day: bool = Field(default=False, description="Date-only event flag")
    kind: ItemKind = Field(default=ItemKind.EVENT, description="Event, exception or occurrence")
    recurrence_id: Optional[str] = Field(default=None, description="Instance identifier")

    @field_serializer("start", "end")
    def serialize_datetime(self, dt: datetime) -> str:
        """Serialize datetime to ISO format."""
        return dt.isoformat()


@dataclass
class QueryResult:
    """Outcome of a range query, in discovery order."""

    events: list[Event] = field(default_factory=list)
    occurrences: list[Occurrence] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.events) + len(self.occurrences)

    def to_items(self) -> list[ExpandedItem]:
        """All results as ExpandedItem records sorted by start instant."""
        items: list[ExpandedItem] = []
        for event in self.events:
            start, end = event.normalized_times()
            items.append(
                ExpandedItem(
                    uid=event.uid,
                    summary=event.summary,
                    start=start,
                    end=end,
                    all_day=event.is_all_day,
                    kind=ItemKind.EXCEPTION if event.is_recurrence_exception else ItemKind.EVENT,
                    recurrence_id=_iso(event.recurrence_id),
                )
            )
        for occurrence in self.occurrences:
            items.append(
                ExpandedItem(
                    uid=occurrence.item.uid,
                    summary=occurrence.item.summary,
                    start=occurrence.start_time,
                    end=occurrence.end_time,
                    all_day=occurrence.is_all_day,
                    kind=ItemKind.OCCURRENCE,
                    recurrence_id=_iso(occurrence.recurrence_id),
                )
            )
        items.sort(key=lambda item: item.start)
        return items


def _iso(value: Optional[DateLike]) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat()
