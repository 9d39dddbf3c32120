"""
Due-Today Aggregator
Resolves the dose each medication is waiting on today, plus the
"due now" and "due soon" views derived from the same rules
"""

import logging
from dataclasses import dataclass
from datetime import datetime, date, timedelta
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from tools.clock import parsable_times, minutes_between
from tools.dismissal_ledger import is_dismissed
from tools.medication_record import MedicationRecord
from tools.occurrence_resolver import is_in_window, is_schedulable
from tools.taken_state import is_satisfied


logger = logging.getLogger(__name__)


class DueStatus(str, Enum):
    """Status of today's due dose"""
    UPCOMING = "upcoming"
    OVERDUE = "overdue"


@dataclass
class DueItem:
    """Earliest open occurrence of one medication today"""
    medication: MedicationRecord
    due_time: datetime
    time_str: str
    status: DueStatus
    minutes_until: int

    @property
    def display_name(self) -> str:
        return self.medication.display_name

    def to_dict(self) -> Dict[str, Any]:
        return {
            "medication": self.medication.to_dict(),
            "medication_id": self.medication.id,
            "medicine_name": self.display_name,
            "dosage": self.medication.dosage,
            "due_time": self.due_time.isoformat(),
            "time_str": self.time_str,
            "status": self.status.value,
            "minutes_until": self.minutes_until,
        }


@dataclass
class DueSoonItem:
    """An occurrence falling inside the reminder lookahead window"""
    medication_id: int
    medicine_name: str
    dosage: str
    due_time: datetime
    time_str: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "medication_id": self.medication_id,
            "medicine_name": self.medicine_name,
            "dosage": self.dosage,
            "due_time": self.due_time.isoformat(),
            "time_str": self.time_str,
        }


def open_occurrences(medication: MedicationRecord, day: date) -> List[tuple]:
    """
    Today's occurrences that are neither dismissed nor satisfied.

    Returns (time_str, instant) pairs in stored order. Malformed entries are
    skipped. Inactive or out-of-window medications have none.
    """
    if not is_schedulable(medication) or not is_in_window(medication, day):
        return []

    result = []
    for time_str, t in parsable_times(medication.times, medication.id):
        if is_dismissed(medication, day, time_str):
            continue
        if is_satisfied(medication, day, time_str):
            continue
        result.append((time_str, datetime.combine(day, t)))
    return result


def resolve_due_item(medication: MedicationRecord, now: datetime) -> Optional[DueItem]:
    """Earliest open occurrence today for one medication, ties keeping the first listed"""
    earliest = None
    for time_str, instant in open_occurrences(medication, now.date()):
        if earliest is None or instant < earliest[1]:
            earliest = (time_str, instant)

    if earliest is None:
        return None

    time_str, due_time = earliest
    return DueItem(
        medication=medication,
        due_time=due_time,
        time_str=time_str,
        status=DueStatus.OVERDUE if due_time <= now else DueStatus.UPCOMING,
        minutes_until=minutes_between(now, due_time),
    )


def todays_due(medications: Iterable[MedicationRecord], now: datetime) -> List[DueItem]:
    """
    Build today's due list: at most one item per medication, sorted by due time.

    Medications with nothing left to take today are omitted. A medication
    that fails to evaluate is logged and left out; the rest are still returned.
    """
    items = []
    seen = set()
    for medication in medications:
        if medication.id in seen:
            continue
        try:
            item = resolve_due_item(medication, now)
        except (ValueError, TypeError, AttributeError):
            logger.exception(f"Failed to resolve today's dose for medication {medication.id}")
            continue
        if item is not None:
            seen.add(medication.id)
            items.append(item)

    items.sort(key=lambda i: i.due_time)
    return items


def due_now(
    items: Iterable[DueItem],
    before_minutes: int = 15,
    after_minutes: int = 30
) -> List[DueItem]:
    """Items due within before_minutes, or missed no more than after_minutes ago"""
    return [
        item for item in items
        if -after_minutes <= item.minutes_until <= before_minutes
    ]


def due_soon(
    medications: Iterable[MedicationRecord],
    now: datetime,
    lookahead_minutes: int = 15
) -> List[DueSoonItem]:
    """
    Occurrences today with now < due time <= now + lookahead.

    Satisfied and dismissed occurrences are excluded. Every qualifying
    occurrence is reported, not only the earliest per medication. A
    medication that fails to evaluate is logged and skipped.
    """
    horizon = now + timedelta(minutes=lookahead_minutes)
    due = []
    for medication in medications:
        try:
            occurrences = open_occurrences(medication, now.date())
        except (ValueError, TypeError, AttributeError):
            logger.exception(f"Failed to resolve upcoming doses for medication {medication.id}")
            continue
        for time_str, instant in occurrences:
            if now < instant <= horizon:
                due.append(DueSoonItem(
                    medication_id=medication.id,
                    medicine_name=medication.display_name,
                    dosage=medication.dosage or "",
                    due_time=instant,
                    time_str=time_str,
                ))
    due.sort(key=lambda d: d.due_time)
    return due


def today_due_count(medications: Iterable[MedicationRecord], now: datetime) -> int:
    """Number of distinct medications with at least one open occurrence today"""
    count = 0
    for medication in medications:
        try:
            if open_occurrences(medication, now.date()):
                count += 1
        except (ValueError, TypeError, AttributeError):
            logger.exception(f"Failed to count today's doses for medication {medication.id}")
    return count
