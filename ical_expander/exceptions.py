"""Exception hierarchy for ical_expander.

Every error raised by the package derives from IcalExpanderError so callers can
handle expansion failures in one place while still distinguishing the cause.
"""

from __future__ import annotations

from typing import Optional


class IcalExpanderError(Exception):
    """Base exception for all ical_expander errors."""


class ICSParseError(IcalExpanderError):
    """Input text is not a well-formed iCalendar document.

    Raised when:
    - the text cannot be tokenised into components at all
    - the root component is not a VCALENDAR

    Fatal to expander construction.
    """


class InvalidDateError(IcalExpanderError):
    """An event boundary cannot be resolved to an absolute instant.

    Raised (or returned as a value by ``DateResolver.resolve``) when:
    - DTSTART is missing or failed to parse
    - DTEND or DURATION failed to parse
    - date arithmetic over the boundary overflows
    """

    def __init__(self, message: str, uid: Optional[str] = None, field: Optional[str] = None):
        super().__init__(message)
        self.uid = uid
        self.field = field


class TimezoneRegistrationError(IcalExpanderError):
    """A VTIMEZONE definition from the embedded table could not be registered."""
