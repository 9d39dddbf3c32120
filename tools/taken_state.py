"""
Taken-State Evaluator
"""

from datetime import date

from tools.clock import occurrence_instant
from tools.medication_record import MedicationRecord


def is_satisfied(medication: MedicationRecord, day: date, time_str: str) -> bool:
    """
    Whether the occurrence is covered by the medication's last taken event.

    A taken event counts for every occurrence earlier the same day, up to and
    including its own instant. Later slots and other days stay open.

    Raises:
        InvalidTimeFormat: if time_str cannot be parsed
    """
    last_taken = medication.last_taken
    if last_taken is None or last_taken.date() != day:
        return False
    return last_taken >= occurrence_instant(day, time_str)
