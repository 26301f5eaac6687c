"""Timezone registration for ical_expander.

Two sources feed the registry:

- the embedded TimezoneTable (``data/zones.json`` merged with
  ``data/zones_extra.json``), registered once per registry by
  ``register_timezones()``
- VTIMEZONE components defined inline in a document being expanded, registered
  by ``register_document_timezones()`` only when the TZID is not known yet

The registry is a plain object passed to each expander. It has no internal
locking: construct expanders (which may register inline zones) from one thread
at a time. Reads through ``get()`` are safe once registration is done.
"""

from __future__ import annotations

import json
import logging
import threading
from datetime import tzinfo
from pathlib import Path
from types import MappingProxyType
from typing import ClassVar, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .components import CalendarDocument
from .exceptions import ICSParseError, TimezoneRegistrationError

logger = logging.getLogger(__name__)

_DATA_DIR = Path(__file__).parent / "data"

_CALENDAR_WRAPPER = (
    "BEGIN:VCALENDAR\nPRODID:-//tzurl.org//NONSGML Olson 2012h//EN\nVERSION:2.0\n"
    "{definition}\nEND:VCALENDAR"
)


def _load_table() -> dict[str, str]:
    table: dict[str, str] = {}
    for name in ("zones.json", "zones_extra.json"):
        table.update(json.loads((_DATA_DIR / name).read_text(encoding="utf-8")))
    return table


# Identifier -> raw VTIMEZONE text
TIME_ZONES = MappingProxyType(_load_table())


class TimezoneRegistry:
    """Maps TZID strings to tzinfo objects."""

    # Windows zone names emitted by Outlook/Exchange without an inline VTIMEZONE
    WINDOWS_TZ_MAP: ClassVar[dict[str, str]] = {
        "Pacific Standard Time": "America/Los_Angeles",
        "Mountain Standard Time": "America/Denver",
        "Central Standard Time": "America/Chicago",
        "Eastern Standard Time": "America/New_York",
        "Alaskan Standard Time": "America/Anchorage",
        "Hawaiian Standard Time": "Pacific/Honolulu",
        "US Mountain Standard Time": "America/Phoenix",
        "GMT Standard Time": "Europe/London",
        "W. Europe Standard Time": "Europe/Berlin",
        "Romance Standard Time": "Europe/Paris",
        "Central European Standard Time": "Europe/Warsaw",
        "Russian Standard Time": "Europe/Moscow",
        "India Standard Time": "Asia/Kolkata",
        "China Standard Time": "Asia/Shanghai",
        "Tokyo Standard Time": "Asia/Tokyo",
        "AUS Eastern Standard Time": "Australia/Sydney",
        "New Zealand Standard Time": "Pacific/Auckland",
        "UTC": "UTC",
    }

    def __init__(self) -> None:
        self._zones: dict[str, tzinfo] = {}

    def has(self, tzid: str) -> bool:
        return tzid in self._zones

    def register(self, tzid: str, zone: tzinfo) -> None:
        """Register ``zone`` under ``tzid``, replacing any previous entry."""
        if tzid in self._zones:
            logger.debug("Re-registering timezone %s", tzid)
        self._zones[tzid] = zone

    def ids(self) -> list[str]:
        return sorted(self._zones)

    def get(self, tzid: str) -> Optional[tzinfo]:
        """Resolve a TZID to a tzinfo.

        Registered zones win; otherwise the name is tried as an IANA key and then
        as a Windows zone name. Returns None when nothing matches.
        """
        zone = self._zones.get(tzid)
        if zone is not None:
            return zone
        for candidate in (tzid, self.WINDOWS_TZ_MAP.get(tzid)):
            if not candidate:
                continue
            zone = self._zones.get(candidate)
            if zone is not None:
                return zone
            try:
                return ZoneInfo(candidate)
            except (ZoneInfoNotFoundError, ValueError):
                continue
        logger.debug("Unknown timezone %r", tzid)
        return None

    def __len__(self) -> int:
        return len(self._zones)


def register_timezones(registry: TimezoneRegistry) -> None:
    """Register every entry of the embedded TimezoneTable.

    No existence check is made; entries are registered under their table key.

    Raises:
        TimezoneRegistrationError: If a table entry is not a usable VTIMEZONE
    """
    for key, definition in TIME_ZONES.items():
        try:
            document = CalendarDocument.parse(_CALENDAR_WRAPPER.format(definition=definition.strip()))
            vtimezone = document.timezones[0]
            registry.register(key, vtimezone.to_tzinfo())
        except (ICSParseError, IndexError, ValueError) as e:
            raise TimezoneRegistrationError(f"Failed to register timezone {key}: {e}") from e
    logger.debug("Registered %d embedded timezones", len(TIME_ZONES))


def register_document_timezones(document: CalendarDocument, registry: TimezoneRegistry) -> int:
    """Register inline VTIMEZONE components whose TZID is not yet known.

    Returns:
        Number of timezones added to the registry
    """
    added = 0
    for vtimezone in document.timezones:
        tzid = vtimezone.tzid
        if not tzid:
            logger.warning("Skipping VTIMEZONE without TZID")
            continue
        if registry.has(tzid):
            continue
        try:
            registry.register(tzid, vtimezone.to_tzinfo())
        except Exception as e:
            logger.warning("Failed to register inline timezone %s: %s", tzid, e)
            continue
        added += 1
        logger.debug("Registered inline timezone %s", tzid)
    return added


_default_registry: Optional[TimezoneRegistry] = None
_default_registry_lock = threading.Lock()


def get_default_registry() -> TimezoneRegistry:
    """Get or create the process-wide registry, loaded with the embedded table."""
    global _default_registry
    with _default_registry_lock:
        if _default_registry is None:
            registry = TimezoneRegistry()
            register_timezones(registry)
            _default_registry = registry
        return _default_registry
