"""
Occurrence Resolver
Finds the next scheduled dose of a medication from a reference instant
"""

import logging
from datetime import datetime, date, timedelta
from typing import Iterator, Optional

from tools.clock import parsable_times, first_listed_time
from tools.medication_record import MedicationRecord


logger = logging.getLogger(__name__)


def is_in_window(medication: MedicationRecord, day: date) -> bool:
    """True when the day lies within [start_date, end_date]; no end date means open-ended"""
    if medication.start_date and day < medication.start_date:
        return False
    if medication.end_date and day > medication.end_date:
        return False
    return True


def is_schedulable(medication: MedicationRecord) -> bool:
    """Active and has at least one schedule entry"""
    return bool(medication.is_active and medication.times)


def next_occurrence(
    medication: MedicationRecord,
    reference: datetime
) -> Optional[datetime]:
    """
    Resolve the next occurrence on or after the reference instant.

    Before the start date the first listed time on the start date is used.
    Otherwise the earliest of today's times strictly after the reference wins,
    falling back to the first listed time tomorrow. A candidate past the end
    date means the medication has no further occurrences.

    Args:
        medication: Medication snapshot
        reference: Instant to resolve from

    Returns:
        The next occurrence, or None if there is none
    """
    if not medication.is_active:
        return None

    first = first_listed_time(medication.times, medication.id)
    if first is None:
        return None

    today = reference.date()

    if medication.start_date and medication.start_date > today:
        candidate = datetime.combine(medication.start_date, first[1])
    else:
        later_today = sorted(
            datetime.combine(today, t)
            for _, t in parsable_times(medication.times, medication.id)
            if datetime.combine(today, t) > reference
        )
        if later_today:
            candidate = later_today[0]
        else:
            candidate = datetime.combine(today + timedelta(days=1), first[1])

    if medication.end_date and candidate.date() > medication.end_date:
        logger.debug(f"Medication {medication.id} has no occurrences after {medication.end_date}")
        return None

    return candidate


def eligible_days(
    medication: MedicationRecord,
    first_day: date,
    days: int
) -> Iterator[date]:
    """Yield the days in [first_day, first_day + days) inside the medication window"""
    for offset in range(days):
        day = first_day + timedelta(days=offset)
        if is_in_window(medication, day):
            yield day
