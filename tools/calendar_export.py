"""
Calendar Export
Expands tracked medications into dated calendar events for a forward window
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List

from config import tracker_config
from tools.clock import parsable_times
from tools.medication_record import MedicationRecord
from tools.occurrence_resolver import eligible_days, is_schedulable


logger = logging.getLogger(__name__)


@dataclass
class CalendarEvent:
    """One dose as a calendar event"""
    medication_id: int
    title: str
    description: str
    start: datetime
    duration_minutes: int = tracker_config.CALENDAR_EVENT_DURATION_MINUTES
    alarm_offsets_minutes: List[int] = field(
        default_factory=lambda: list(tracker_config.CALENDAR_ALARM_OFFSETS_MINUTES)
    )
    status: str = "CONFIRMED"
    busy_status: str = "FREE"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "medication_id": self.medication_id,
            "title": self.title,
            "description": self.description,
            "start": self.start.isoformat(),
            "duration_minutes": self.duration_minutes,
            "alarms": [
                {"action": "display", "minutes_before": m} for m in self.alarm_offsets_minutes
            ],
            "status": self.status,
            "busy_status": self.busy_status,
        }


def _describe(medication: MedicationRecord) -> str:
    description = f"Dosage: {medication.dosage or tracker_config.CALENDAR_FALLBACK_DOSAGE}"
    if medication.notes:
        description += f"\nNotes: {medication.notes}"
    return description


def export_events(
    medications: Iterable[MedicationRecord],
    now: datetime,
    days: int = 30
) -> List[CalendarEvent]:
    """
    Every scheduled dose from now through the next `days` calendar days.

    Uses the same start/end window as the occurrence resolver. Dismissals and
    taken events are not applied; doses earlier than now are left out.
    """
    events = []
    for medication in medications:
        if not is_schedulable(medication):
            continue

        title = f"Take {medication.medicine_name or tracker_config.CALENDAR_FALLBACK_NAME}"
        description = _describe(medication)
        times = parsable_times(medication.times, medication.id)

        for day in eligible_days(medication, now.date(), days):
            for _, t in times:
                start = datetime.combine(day, t)
                if start < now:
                    continue
                events.append(CalendarEvent(
                    medication_id=medication.id,
                    title=title,
                    description=description,
                    start=start,
                ))

    logger.info(f"Generated {len(events)} calendar events over {days} days")
    return events
