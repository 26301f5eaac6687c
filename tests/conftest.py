"""Shared fixtures for ical_expander tests."""

from collections.abc import Generator
from pathlib import Path
from typing import Any, Callable

import pytest

from ical_expander import timezones
from ical_expander.timezones import TimezoneRegistry, register_timezones

FIXTURES_DIR = Path(__file__).parent / "fixtures" / "ics"

CALENDAR_TEMPLATE = """BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//ical-expander//tests//EN
{body}
END:VCALENDAR
"""


def pytest_configure(config: Any) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Fast unit tests")
    config.addinivalue_line("markers", "integration: End-to-end expansion over .ics fixtures")
    config.addinivalue_line("markers", "fast: Tests that finish in milliseconds")


@pytest.fixture
def registry() -> TimezoneRegistry:
    """Fresh registry loaded with the embedded timezone table.

    Each test gets its own registry so inline VTIMEZONE registrations from one
    document never leak into another test.
    """
    registry = TimezoneRegistry()
    register_timezones(registry)
    return registry


@pytest.fixture
def make_calendar() -> Callable[..., str]:
    """Build a VCALENDAR document from raw component blocks.

    Usage:
        make_calendar(vevent_block, other_block, ...)
    """

    def _make(*blocks: str) -> str:
        body = "\n".join(block.strip() for block in blocks)
        return CALENDAR_TEMPLATE.format(body=body)

    return _make


@pytest.fixture
def make_event() -> Callable[..., str]:
    """Build a VEVENT block from property lines.

    Usage:
        make_event("DTSTART;VALUE=DATE:20240101", uid="evt-1")
    """

    def _make(*lines: str, uid: str = "event-1", summary: str = "Event") -> str:
        props = "\n".join(lines)
        return f"BEGIN:VEVENT\nUID:{uid}\nSUMMARY:{summary}\n{props}\nEND:VEVENT"

    return _make


@pytest.fixture
def load_ics() -> Callable[[str], str]:
    """Read a fixture file from tests/fixtures/ics/."""

    def _load(name: str) -> str:
        return (FIXTURES_DIR / name).read_text(encoding="utf-8")

    return _load


@pytest.fixture(autouse=True)
def reset_default_registry() -> Generator[None, Any, None]:
    """Reset the process-wide registry so tests never share inline zones."""
    yield
    timezones._default_registry = None


@pytest.fixture(autouse=True)
def clean_test_environment(monkeypatch: pytest.MonkeyPatch) -> Generator[None, Any, None]:
    """Clear ICAL_EXPANDER_* overrides that would change config loading."""
    for name in (
        "ICAL_EXPANDER_MAX_ITERATIONS",
        "ICAL_EXPANDER_SKIP_INVALID_DATES",
        "ICAL_EXPANDER_TIMEZONE",
        "ICAL_EXPANDER_LOG_LEVEL",
        "ICAL_EXPANDER_DEBUG",
    ):
        monkeypatch.delenv(name, raising=False)
    yield
