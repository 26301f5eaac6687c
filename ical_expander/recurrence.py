"""Bounded recurrence iteration built on dateutil's rrule engine.

A series is the union of DTSTART, every RRULE and every RDATE. Candidates are
produced lazily in ascending order; rules without COUNT or UNTIL are never
materialised. EXDATE handling is left to the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from datetime import datetime, time, tzinfo
from typing import Any, Optional

from dateutil.rrule import rruleset, rrulestr

from .components import DateLike

logger = logging.getLogger(__name__)


class RecurrenceIterator:
    """Lazy, finite view over a recurrence series.

    Produces at most ``max_iterations`` candidates (non-positive means no
    limit) or stops earlier when the series is exhausted. Each instance owns
    its underlying dateutil iterator, so iterators are never shared between
    queries.

    Rules are evaluated on naive wall-clock values in the zone of DTSTART and
    the zone is re-attached to each candidate, so occurrences keep their local
    time across DST transitions.
    """

    def __init__(
        self,
        start: DateLike,
        rrules: Optional[list[Any]] = None,
        rdates: Optional[list[DateLike]] = None,
        max_iterations: int = 0,
        floating_zone: Optional[tzinfo] = None,
        label: str = "",
    ):
        self.start = start
        self.max_iterations = max_iterations
        self.label = label
        self.count = 0
        self._all_day = not isinstance(start, datetime)
        # Zone used to bring aware RDATE/UNTIL values into DTSTART's wall clock
        self._zone = floating_zone if self._all_day else start.tzinfo
        self._iterator: Iterator[datetime] = iter(self._build(rrules or [], rdates or []))
        self._exhausted = False

    def _wall_clock(self, value: DateLike, end_of_day: bool = False) -> datetime:
        if not isinstance(value, datetime):
            return datetime.combine(value, time.max if end_of_day else time.min)
        if value.tzinfo is not None and self._zone is not None:
            value = value.astimezone(self._zone)
        return value.replace(tzinfo=None)

    def _build(self, rrules: list[Any], rdates: list[DateLike]) -> rruleset:
        base = self._wall_clock(self.start)
        series = rruleset()
        series.rdate(base)

        for recur in rrules:
            try:
                rule_text = recur.to_ical().decode("utf-8") if hasattr(recur, "to_ical") else str(recur)
                rule = rrulestr(rule_text, dtstart=base, ignoretz=True)
                until = recur.get("UNTIL") if hasattr(recur, "get") else None
                if until:
                    # UNTIL may be UTC while DTSTART is zoned or floating
                    rule = rule.replace(until=self._wall_clock(until[0], end_of_day=True))
                count = recur.get("COUNT") if hasattr(recur, "get") else None
                if count and next(iter(rule), None) != base:
                    # DTSTART is the first instance and counts toward COUNT even
                    # when the rule itself would not produce it
                    remaining = int(count[0]) - 1
                    if remaining <= 0:
                        continue
                    rule = rule.replace(count=remaining)
                series.rrule(rule)
            except (ValueError, TypeError, OverflowError) as e:
                logger.warning("Skipping malformed RRULE for %s: %s", self.label or "<event>", e)
                continue

        for rdate in rdates:
            series.rdate(self._wall_clock(rdate))

        return series

    def _output(self, candidate: datetime) -> DateLike:
        if self._all_day:
            return candidate.date()
        return candidate.replace(tzinfo=self.start.tzinfo)

    def __iter__(self) -> RecurrenceIterator:
        return self

    def __next__(self) -> DateLike:
        if self._exhausted:
            raise StopIteration
        if self.max_iterations > 0 and self.count >= self.max_iterations:
            logger.debug(
                "Recurrence for %s stopped at max_iterations=%d", self.label, self.max_iterations
            )
            self._exhausted = True
            raise StopIteration
        try:
            candidate = next(self._iterator)
        except StopIteration:
            self._exhausted = True
            raise
        except (ValueError, OverflowError) as e:
            logger.warning("Recurrence for %s ended early: %s", self.label or "<event>", e)
            self._exhausted = True
            raise StopIteration from e
        self.count += 1
        return self._output(candidate)
