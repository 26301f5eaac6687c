"""ical_expander - expand iCalendar events into concrete occurrences.

Typical use::

    from ical_expander import IcalExpander

    expander = IcalExpander(ics_text, max_iterations=1000, timezone="Europe/Berlin")
    result = expander.between(after, before)
    result.events       # standalone events and recurrence exceptions
    result.occurrences  # generated instances of recurring events
"""

__version__ = "0.1.0"

from .config import ExpanderConfig, load_config
from .exceptions import (
    ICSParseError,
    IcalExpanderError,
    InvalidDateError,
    TimezoneRegistrationError,
)
from .expander import IcalExpander
from .models import Event, ExpandedItem, ItemKind, Occurrence, QueryResult
from .timezones import (
    TIME_ZONES,
    TimezoneRegistry,
    get_default_registry,
    register_document_timezones,
    register_timezones,
)

__all__ = [
    "TIME_ZONES",
    "Event",
    "ExpandedItem",
    "ExpanderConfig",
    "ICSParseError",
    "IcalExpander",
    "IcalExpanderError",
    "InvalidDateError",
    "ItemKind",
    "Occurrence",
    "QueryResult",
    "TimezoneRegistrationError",
    "TimezoneRegistry",
    "get_default_registry",
    "load_config",
    "register_document_timezones",
    "register_timezones",
]
