"""
Dismissal Ledger
Per-occurrence skips keyed by exact (day, "HH:MM")
"""

from datetime import datetime, date
from typing import Optional, Tuple

from tools.medication_record import MedicationRecord, DismissalEntry


def is_dismissed(medication: MedicationRecord, day: date, time_str: str) -> bool:
    """Exact match on day and time string; no windowed matching"""
    return any(
        entry.date == day and entry.time == time_str
        for entry in medication.dismissed_reminders
    )


def record_dismissal(
    medication: MedicationRecord,
    day: date,
    time_str: str,
    dismissed_at: Optional[datetime] = None
) -> Tuple[MedicationRecord, bool]:
    """
    Add a dismissal to the ledger.

    Returns the updated record and whether an entry was added. Dismissing an
    occurrence that is already dismissed returns the record unchanged.
    """
    if is_dismissed(medication, day, time_str):
        return medication, False

    entry = DismissalEntry(date=day, time=time_str, dismissed_at=dismissed_at)
    updated = medication.with_changes(
        dismissed_reminders=medication.dismissed_reminders + (entry,)
    )
    return updated, True
