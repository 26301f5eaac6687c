"""Occurrence expansion for parsed iCalendar documents."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Optional, Union

from .components import CalendarDocument, DateLike
from .config import DEFAULT_MAX_ITERATIONS, ExpanderConfig
from .datetime_utils import DateResolver, get_zone
from .models import Event, QueryResult
from .timezones import TimezoneRegistry, get_default_registry, register_document_timezones

logger = logging.getLogger(__name__)


class IcalExpander:
    """Expands the events of one calendar document into concrete occurrences.

    Construction parses the document, registers its unknown VTIMEZONEs and
    wraps every VEVENT. Queries only read that state and create their own
    recurrence iterators, so they can run concurrently once construction is
    done.

    Args:
        ics: Raw calendar text
        max_iterations: Cap on recurrence candidates per series; <= 0 or None
            means no cap
        skip_invalid_dates: Drop events whose dates cannot be resolved instead
            of raising InvalidDateError
        timezone: Caller timezone for floating times and all-day boundaries
        registry: Timezone registry; defaults to the process-wide one

    Raises:
        ICSParseError: If ``ics`` is not a calendar document
        InvalidDateError: If an event has unresolvable dates and
            ``skip_invalid_dates`` is false
    """

    def __init__(
        self,
        ics: Union[str, bytes],
        max_iterations: Optional[int] = DEFAULT_MAX_ITERATIONS,
        skip_invalid_dates: bool = False,
        timezone: Optional[str] = "UTC",
        registry: Optional[TimezoneRegistry] = None,
    ):
        self.max_iterations = max_iterations if max_iterations is not None else 0
        self.skip_invalid_dates = skip_invalid_dates
        self.registry = registry if registry is not None else get_default_registry()

        self.component = CalendarDocument.parse(ics)
        register_document_timezones(self.component, self.registry)

        self.zone = get_zone(timezone, self.registry)
        self.resolver = DateResolver(self.registry, self.zone)

        events = [Event(vevent, self.resolver) for vevent in self.component.events]
        self.events = self._check_dates(events)

        logger.debug(
            "IcalExpander initialized: events=%d, dropped=%d, max_iterations=%d, timezone=%s",
            len(self.events),
            len(events) - len(self.events),
            self.max_iterations,
            timezone,
        )

    @classmethod
    def from_config(
        cls,
        ics: Union[str, bytes],
        config: ExpanderConfig,
        registry: Optional[TimezoneRegistry] = None,
    ) -> IcalExpander:
        return cls(
            ics,
            max_iterations=config.max_iterations,
            skip_invalid_dates=config.skip_invalid_dates,
            timezone=config.timezone,
            registry=registry,
        )

    def _check_dates(self, events: list[Event]) -> list[Event]:
        valid: list[Event] = []
        for event in events:
            error = event.validate()
            if error is None:
                valid.append(event)
            elif self.skip_invalid_dates:
                logger.debug("Skipping event with invalid dates: %s", error)
            else:
                raise error
        return valid

    def between(
        self, after: Optional[DateLike] = None, before: Optional[DateLike] = None
    ) -> QueryResult:
        """Return events and occurrences intersecting [after, before].

        Both bounds are inclusive and either may be omitted. Date bounds mean
        caller-local midnight; naive datetimes are read in the caller zone.
        """
        after_time = self.resolver.bound_instant(after)
        before_time = self.resolver.bound_instant(before)

        def is_within_range(start_time: datetime, end_time: datetime) -> bool:
            return (after_time is None or end_time >= after_time) and (
                before_time is None or start_time <= before_time
            )

        # (uid, instant replaced) -> exception; the first exception for a key wins
        exceptions: dict[tuple[Optional[str], datetime], Event] = {}
        for event in self.events:
            if event.is_recurrence_exception:
                key = (event.uid, self.resolver.to_instant(event.recurrence_id))
                exceptions.setdefault(key, event)

        result = QueryResult()

        for event in self.events:
            if event.is_recurrence_exception:
                continue

            if event.is_recurring:
                self._expand_series(event, exceptions, result, before_time, is_within_range)
                continue

            start_time, end_time = event.normalized_times()
            if is_within_range(start_time, end_time):
                result.events.append(event)

        logger.debug(
            "Query after=%s before=%s: events=%d, occurrences=%d",
            after_time,
            before_time,
            len(result.events),
            len(result.occurrences),
        )
        return result

    def _expand_series(
        self,
        event: Event,
        exceptions: dict[tuple[Optional[str], datetime], Event],
        result: QueryResult,
        before_time: Optional[datetime],
        is_within_range: Callable[[datetime, datetime], bool],
    ) -> None:
        exdates = {self.resolver.to_instant(value) for value in event.exdates}

        for candidate in event.iterator(self.max_iterations):
            occurrence = event.get_occurrence_details(candidate)

            # Candidates ascend, so nothing later can start inside the window
            if before_time is not None and occurrence.start_time > before_time:
                break

            if not is_within_range(occurrence.start_time, occurrence.end_time):
                continue

            exception = exceptions.get((event.uid, self.resolver.to_instant(candidate)))
            if exception is not None:
                result.events.append(exception)
            elif occurrence.start_time not in exdates:
                result.occurrences.append(occurrence)

    def before(self, before: DateLike) -> QueryResult:
        return self.between(None, before)

    def after(self, after: DateLike) -> QueryResult:
        return self.between(after, None)

    def all(self) -> QueryResult:
        return self.between()
