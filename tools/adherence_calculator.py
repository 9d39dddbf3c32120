"""
Adherence Calculator
Trailing adherence percentage over a window of calendar days
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Iterable

from tools.medication_record import MedicationRecord
from tools.occurrence_resolver import is_in_window, is_schedulable


logger = logging.getLogger(__name__)


@dataclass
class AdherenceBreakdown:
    """Expected and credited dose counts behind a percentage"""
    expected: int
    satisfied: int
    window_days: int

    @property
    def percentage(self) -> int:
        if self.expected <= 0:
            return 0
        return math.floor(100 * self.satisfied / self.expected + 0.5)

    def to_dict(self) -> Dict[str, int]:
        return {
            "expected_doses": self.expected,
            "satisfied_doses": self.satisfied,
            "window_days": self.window_days,
            "adherence": self.percentage,
        }


def adherence_breakdown(
    medications: Iterable[MedicationRecord],
    now: datetime,
    window_days: int = 7
) -> AdherenceBreakdown:
    """
    Count expected and satisfied doses over the last window_days days, today included.

    Credit is per day, not per slot: a taken event on a day credits every
    dose scheduled that day. Only the latest taken event is known, so at most
    one day in the window can be credited per medication.
    """
    today = now.date()
    expected = 0
    satisfied = 0

    for medication in medications:
        if not is_schedulable(medication):
            continue

        doses_per_day = len(medication.times)
        taken_day = medication.last_taken.date() if medication.last_taken else None

        for offset in range(window_days):
            day = today - timedelta(days=offset)
            if not is_in_window(medication, day):
                continue
            expected += doses_per_day
            if taken_day == day:
                satisfied += doses_per_day

    logger.debug(f"Adherence over {window_days} days: {satisfied}/{expected}")
    return AdherenceBreakdown(expected=expected, satisfied=satisfied, window_days=window_days)


def adherence(
    medications: Iterable[MedicationRecord],
    now: datetime,
    window_days: int = 7
) -> int:
    """Rounded adherence percentage (0-100); 0 when nothing was expected"""
    return adherence_breakdown(medications, now, window_days).percentage
