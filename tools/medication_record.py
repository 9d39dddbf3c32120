"""
Medication Record
Immutable snapshot of a tracked medication as seen by the schedule engine
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, date
from typing import Any, Dict, List, Optional, Tuple

from config import tracker_config


@dataclass(frozen=True)
class DismissalEntry:
    """One skipped occurrence, keyed by exact day and "HH:MM" string"""
    date: date
    time: str
    dismissed_at: Optional[datetime] = None

    @property
    def key(self) -> Tuple[date, str]:
        return (self.date, self.time)


@dataclass(frozen=True)
class MedicationRecord:
    """
    Snapshot of a medication's scheduling fields.

    The engine functions take and return these records and never touch the
    database, so every evaluation sees one consistent view of the row.
    """
    id: int
    times: Tuple[str, ...]
    start_date: date
    end_date: Optional[date] = None
    is_active: bool = True
    last_taken: Optional[datetime] = None
    dismissed_reminders: Tuple[DismissalEntry, ...] = field(default_factory=tuple)
    medicine_id: Optional[int] = None
    medicine_name: Optional[str] = None
    dosage: Optional[str] = None
    frequency: str = "daily"
    notes: Optional[str] = None

    def __post_init__(self):
        # Stored as tuples
        object.__setattr__(self, "times", tuple(self.times or ()))
        object.__setattr__(self, "dismissed_reminders", tuple(self.dismissed_reminders or ()))

    @property
    def display_name(self) -> str:
        return self.medicine_name or tracker_config.FALLBACK_MEDICINE_NAME

    def with_changes(self, **changes) -> "MedicationRecord":
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "medicine_id": self.medicine_id,
            "medicine_name": self.display_name,
            "dosage": self.dosage,
            "frequency": self.frequency,
            "times": list(self.times),
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "is_active": self.is_active,
            "last_taken": self.last_taken.isoformat() if self.last_taken else None,
            "notes": self.notes,
            "dismissed_reminders": [
                {"date": d.date.isoformat(), "time": d.time} for d in self.dismissed_reminders
            ],
        }


def to_record(medication, medicine_name: Optional[str] = None) -> MedicationRecord:
    """Build a record from a Medication ORM row (or any object with the same fields)"""
    frequency = getattr(medication, "frequency", None)
    dismissed: List[DismissalEntry] = [
        DismissalEntry(date=d.date, time=d.time, dismissed_at=getattr(d, "dismissed_at", None))
        for d in (getattr(medication, "dismissed_reminders", None) or [])
        if d.date is not None and d.time
    ]
    return MedicationRecord(
        id=medication.id,
        times=tuple(medication.times or ()),
        start_date=medication.start_date,
        end_date=medication.end_date,
        is_active=bool(medication.is_active),
        last_taken=medication.last_taken,
        dismissed_reminders=tuple(dismissed),
        medicine_id=getattr(medication, "medicine_id", None),
        medicine_name=medicine_name or getattr(medication, "fallback_name", None),
        dosage=getattr(medication, "dosage", None),
        frequency=getattr(frequency, "value", frequency) or "daily",
        notes=getattr(medication, "notes", None),
    )
