"""Unit tests for ical_expander.expander.IcalExpander."""

from datetime import date, datetime, timedelta, timezone

import pytest

from ical_expander import ExpanderConfig, IcalExpander
from ical_expander.exceptions import ICSParseError, InvalidDateError

pytestmark = pytest.mark.unit

UTC = timezone.utc


@pytest.fixture
def expander_for(registry, make_calendar, make_event):
    def _build(*blocks, **kwargs):
        kwargs.setdefault("registry", registry)
        return IcalExpander(make_calendar(*blocks), **kwargs)

    return _build


@pytest.fixture
def single_event(make_event):
    return make_event(
        "DTSTART:20240115T100000Z", "DTEND:20240115T110000Z", uid="single", summary="Meeting"
    )


class TestConstruction:
    def test_construct_when_invalid_text_then_parse_error(self, registry):
        with pytest.raises(ICSParseError):
            IcalExpander("garbage", registry=registry)

    def test_construct_when_invalid_date_then_raises(self, expander_for, make_event):
        with pytest.raises(InvalidDateError) as exc_info:
            expander_for(make_event("DTSTART:bogus", uid="broken"))

        assert exc_info.value.uid == "broken"

    def test_construct_when_skip_invalid_dates_then_event_dropped(
        self, expander_for, make_event, single_event
    ):
        expander = expander_for(
            single_event, make_event("DTSTART:bogus", uid="broken"), skip_invalid_dates=True
        )

        assert [event.uid for event in expander.events] == ["single"]

    def test_construct_when_max_iterations_none_then_unbounded(self, expander_for, single_event):
        assert expander_for(single_event, max_iterations=None).max_iterations == 0

    def test_construct_without_registry_then_default_used(self, make_calendar, single_event):
        expander = IcalExpander(make_calendar(single_event))

        assert expander.registry.has("America/New_York")

    def test_from_config(self, registry, make_calendar, single_event):
        config = ExpanderConfig(max_iterations=5, skip_invalid_dates=True, timezone="Asia/Tokyo")

        expander = IcalExpander.from_config(make_calendar(single_event), config, registry=registry)

        assert expander.max_iterations == 5
        assert expander.skip_invalid_dates is True
        assert datetime(2024, 1, 1, tzinfo=expander.zone).utcoffset() == timedelta(hours=9)


class TestRangeQueries:
    @pytest.mark.parametrize(
        ("after", "before", "included"),
        [
            (None, None, True),
            (datetime(2024, 1, 15, 11, 0, tzinfo=UTC), None, True),
            (datetime(2024, 1, 15, 11, 0, 0, 1, tzinfo=UTC), None, False),
            (None, datetime(2024, 1, 15, 10, 0, tzinfo=UTC), True),
            (None, datetime(2024, 1, 15, 9, 59, 59, tzinfo=UTC), False),
            (datetime(2024, 1, 15, 10, 30, tzinfo=UTC), datetime(2024, 1, 15, 10, 45, tzinfo=UTC), True),
        ],
    )
    def test_between_bounds_are_inclusive(self, expander_for, single_event, after, before, included):
        result = expander_for(single_event).between(after, before)

        assert (len(result.events) == 1) is included
        assert result.occurrences == []

    def test_before_and_after_delegate_to_between(self, expander_for, single_event):
        expander = expander_for(single_event)

        assert len(expander.after(datetime(2024, 1, 16, tzinfo=UTC)).events) == 0
        assert len(expander.before(datetime(2024, 1, 16, tzinfo=UTC)).events) == 1

    def test_date_bounds_mean_caller_midnight(self, expander_for, single_event):
        # 10:00Z on the 15th is already the 16th in Tokyo
        expander = expander_for(single_event, timezone="Asia/Tokyo")

        assert len(expander.between(date(2024, 1, 16), date(2024, 1, 16)).events) == 0
        assert len(expander.between(date(2024, 1, 15), date(2024, 1, 16)).events) == 1

    def test_naive_bounds_read_in_caller_zone(self, expander_for, single_event):
        expander = expander_for(single_event, timezone="America/New_York")

        # 06:00 New York == 11:00Z, the event's end
        assert len(expander.after(datetime(2024, 1, 15, 6, 0)).events) == 1
        assert len(expander.after(datetime(2024, 1, 15, 6, 1)).events) == 0

    def test_all_is_idempotent(self, expander_for, make_event):
        expander = expander_for(
            make_event("DTSTART:20240101T090000Z", "DTEND:20240101T100000Z", "RRULE:FREQ=DAILY;COUNT=4")
        )

        first = expander.all()
        second = expander.all()

        assert [o.start_time for o in first.occurrences] == [o.start_time for o in second.occurrences]
        assert len(first.occurrences) == 4


class TestRecurringExpansion:
    def test_max_iterations_caps_unbounded_series(self, expander_for, make_event):
        expander = expander_for(
            make_event("DTSTART:20240101T090000Z", "RRULE:FREQ=DAILY"), max_iterations=10
        )

        assert len(expander.all().occurrences) == 10

    def test_default_max_iterations_is_1000(self, expander_for, make_event):
        expander = expander_for(make_event("DTSTART;VALUE=DATE:20240101", "RRULE:FREQ=DAILY;COUNT=1500"))

        assert len(expander.all().occurrences) == 1000

    def test_max_iterations_zero_means_unbounded(self, expander_for, make_event):
        expander = expander_for(
            make_event("DTSTART;VALUE=DATE:20240101", "RRULE:FREQ=DAILY;COUNT=1500"), max_iterations=0
        )

        assert len(expander.all().occurrences) == 1500

    def test_unbounded_series_with_before_stops_early(self, expander_for, make_event):
        expander = expander_for(
            make_event("DTSTART:20240101T090000Z", "DTEND:20240101T100000Z", "RRULE:FREQ=DAILY"),
            max_iterations=0,
        )

        result = expander.before(datetime(2024, 1, 10, 12, 0, tzinfo=UTC))

        assert len(result.occurrences) == 10

    def test_count_includes_dtstart_off_rule(self, expander_for, make_event):
        expander = expander_for(
            make_event("DTSTART:20240103T090000Z", "RRULE:FREQ=WEEKLY;BYDAY=MO;COUNT=2")
        )

        starts = [o.start_time for o in expander.all().occurrences]

        assert starts == [
            datetime(2024, 1, 3, 9, 0, tzinfo=UTC),
            datetime(2024, 1, 8, 9, 0, tzinfo=UTC),
        ]

    def test_exdate_removes_occurrence(self, expander_for, make_event):
        expander = expander_for(
            make_event(
                "DTSTART:20240101T090000Z",
                "RRULE:FREQ=DAILY;COUNT=3",
                "EXDATE:20240102T090000Z",
            )
        )

        starts = [o.start_time for o in expander.all().occurrences]

        assert starts == [
            datetime(2024, 1, 1, 9, 0, tzinfo=UTC),
            datetime(2024, 1, 3, 9, 0, tzinfo=UTC),
        ]

    def test_exdate_in_other_zone_matches_same_instant(self, expander_for, make_event):
        expander = expander_for(
            make_event(
                "DTSTART:20240101T140000Z",
                "RRULE:FREQ=DAILY;COUNT=3",
                "EXDATE;TZID=America/New_York:20240102T090000",
            )
        )

        assert len(expander.all().occurrences) == 2

    def test_exception_replaces_occurrence_once(self, expander_for, make_event):
        expander = expander_for(
            make_event(
                "DTSTART:20240101T090000Z", "DTEND:20240101T100000Z", "RRULE:FREQ=DAILY;COUNT=3",
                uid="series",
            ),
            make_event(
                "RECURRENCE-ID:20240102T090000Z", "DTSTART:20240102T140000Z", "DTEND:20240102T150000Z",
                uid="series", summary="Moved",
            ),
        )

        result = expander.all()

        assert [event.summary for event in result.events] == ["Moved"]
        assert [o.start_time.day for o in result.occurrences] == [1, 3]

    def test_first_exception_for_a_key_wins(self, expander_for, make_event):
        expander = expander_for(
            make_event("DTSTART:20240101T090000Z", "RRULE:FREQ=DAILY;COUNT=2", uid="series"),
            make_event("RECURRENCE-ID:20240102T090000Z", "DTSTART:20240102T100000Z", uid="series", summary="First"),
            make_event("RECURRENCE-ID:20240102T090000Z", "DTSTART:20240102T110000Z", uid="series", summary="Second"),
        )

        assert [event.summary for event in expander.all().events] == ["First"]

    def test_exception_for_other_uid_is_ignored(self, expander_for, make_event):
        expander = expander_for(
            make_event("DTSTART:20240101T090000Z", "RRULE:FREQ=DAILY;COUNT=2", uid="series"),
            make_event("RECURRENCE-ID:20240102T090000Z", "DTSTART:20240102T100000Z", uid="other"),
        )

        result = expander.all()

        assert result.events == []
        assert len(result.occurrences) == 2

    def test_rdate_only_event_is_expanded(self, expander_for, make_event):
        expander = expander_for(
            make_event("DTSTART:20240101T090000Z", "RDATE:20240105T090000Z,20240103T090000Z")
        )

        starts = [o.start_time.day for o in expander.all().occurrences]

        assert starts == [1, 3, 5]

    def test_occurrences_are_monotonic(self, expander_for, make_event):
        expander = expander_for(
            make_event(
                "DTSTART:20240101T090000Z",
                "RRULE:FREQ=DAILY;INTERVAL=2;COUNT=6",
                "RRULE:FREQ=WEEKLY;COUNT=3",
                "RDATE:20240102T120000Z",
            )
        )

        starts = [o.start_time for o in expander.all().occurrences]

        assert starts == sorted(starts)
