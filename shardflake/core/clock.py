#!/usr/bin/env python3
"""
Clock source for the shardflake ID generator.

Elapsed time is measured from the custom epoch to the current wall-clock
instant *shifted by the local UTC offset*. Two machines in different
timezones therefore produce different elapsed values for the same instant.
The shift is part of the identifier format.
"""

import time
from datetime import datetime, timezone
from typing import Optional

import pytz
from loguru import logger

from shardflake.core.const import EPOCH_MS
from shardflake.core.interfaces import ClockInterface


def resolve_timezone(timezone_name: Optional[str]):
    """
    Resolve a timezone name to a tzinfo.

    Args:
        timezone_name: IANA timezone name, or None for the system local zone

    Returns:
        pytz timezone, or None to use the system local zone
    """
    if not timezone_name:
        return None
    try:
        return pytz.timezone(timezone_name)
    except pytz.exceptions.UnknownTimeZoneError:
        logger.error(f"Unknown timezone: {timezone_name}, using system local time instead")
        return None


def utc_offset_ms(instant: datetime, tz=None) -> int:
    """
    Get the UTC offset at the given instant in milliseconds.

    Offsets are truncated toward zero to whole minutes.

    Args:
        instant: Timezone-aware datetime
        tz: tzinfo to use, None for the system local zone

    Returns:
        Offset in milliseconds (positive east of UTC)
    """
    local = instant.astimezone(tz) if tz is not None else instant.astimezone()
    offset = local.utcoffset()
    if offset is None:
        return 0
    return int(offset.total_seconds() / 60) * 60000


class EpochClock(ClockInterface):
    """System clock reporting milliseconds since 2014-01-01 plus the local UTC offset."""

    def __init__(self, timezone_name: Optional[str] = None):
        self.timezone_name = timezone_name
        self._tz = resolve_timezone(timezone_name)

    def current_epoch(self) -> int:
        """Current wall-clock milliseconds, adjusted by the UTC offset."""
        now_ms = time.time_ns() // 1_000_000
        instant = datetime.fromtimestamp(now_ms / 1000, tz=timezone.utc)
        return now_ms + utc_offset_ms(instant, self._tz)

    def elapsed_ms(self) -> int:
        return self.current_epoch() - EPOCH_MS

    def __repr__(self):
        return f"<EpochClock(timezone={self.timezone_name or 'local'})>"
