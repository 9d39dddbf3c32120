"""
Clock-Time Parser
Parses "HH:MM" schedule entries and combines them with calendar days
"""

import logging
import math
from datetime import datetime, date, time
from typing import List, Optional, Tuple


logger = logging.getLogger(__name__)


class InvalidTimeFormat(ValueError):
    """Raised when a schedule entry is not a valid 24-hour HH:MM string"""

    def __init__(self, value, reason: str = "expected HH:MM"):
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid time format {value!r}: {reason}")


def parse_clock_time(value) -> time:
    """
    Parse an "HH:MM" string into a time of day.

    Raises:
        InvalidTimeFormat: non-string input, wrong number of parts,
            non-numeric parts, hours outside 0-23 or minutes outside 0-59
    """
    if not isinstance(value, str):
        raise InvalidTimeFormat(value, "not a string")

    parts = value.strip().split(":")
    if len(parts) != 2:
        raise InvalidTimeFormat(value)

    hour_part, minute_part = parts
    if not all(part.isascii() and part.isdigit() for part in parts):
        raise InvalidTimeFormat(value, "non-numeric component")

    hours, minutes = int(hour_part), int(minute_part)
    if not 0 <= hours <= 23:
        raise InvalidTimeFormat(value, "hours out of range")
    if not 0 <= minutes <= 59:
        raise InvalidTimeFormat(value, "minutes out of range")

    return time(hours, minutes)


def occurrence_instant(day: date, time_str: str) -> datetime:
    """Combine a calendar day with an "HH:MM" entry"""
    return datetime.combine(day, parse_clock_time(time_str))


def parsable_times(times: List[str], medication_id=None) -> List[Tuple[str, time]]:
    """
    Keep the valid entries of a schedule, in stored order.

    Malformed entries are logged and skipped so one bad entry never
    hides the medication's other times.
    """
    valid = []
    for entry in times or []:
        try:
            valid.append((entry, parse_clock_time(entry)))
        except InvalidTimeFormat as e:
            logger.warning(f"Skipping schedule entry for medication {medication_id}: {e}")
    return valid


def first_listed_time(times: List[str], medication_id=None) -> Optional[Tuple[str, time]]:
    """First valid entry in stored order (not the earliest numerically)"""
    valid = parsable_times(times, medication_id)
    return valid[0] if valid else None


def normalize_times(times: List[str]) -> List[str]:
    """
    Validate schedule entries for storage.

    Blank entries are dropped; every other entry must parse and is
    re-rendered zero-padded ("8:5" becomes "08:05").
    """
    normalized = []
    for entry in times or []:
        if entry is None or (isinstance(entry, str) and not entry.strip()):
            continue
        normalized.append(parse_clock_time(entry).strftime("%H:%M"))
    return normalized


def minutes_between(start: datetime, end: datetime) -> int:
    """Signed whole minutes from start to end, halves rounded up"""
    return math.floor((end - start).total_seconds() / 60 + 0.5)
