"""Timezone conversion helpers.

Invalid or empty timezone identifiers fall back to UTC rather than failing
the caller's scan.
"""

import logging
from datetime import datetime, timezone, tzinfo
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)


@lru_cache(maxsize=512)
def _load_zone(name: str) -> tzinfo:
    return ZoneInfo(name)


def resolve_timezone(name: str) -> tzinfo:
    """Return the tzinfo for an IANA identifier, or UTC if it is invalid."""
    if not name or name.upper() == "UTC":
        return timezone.utc
    try:
        return _load_zone(name)
    except (ZoneInfoNotFoundError, ValueError, OSError) as exc:
        logger.warning("Invalid timezone %r, using UTC: %s", name, exc)
        return timezone.utc


def to_local(instant: datetime, tz_name: str) -> datetime:
    """Convert an instant to wall-clock time in the named timezone.

    Naive instants are treated as UTC.
    """
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(resolve_timezone(tz_name))
