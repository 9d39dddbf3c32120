"""
Tools Package
Schedule resolution engine for the PillTrack system
"""

from .clock import (
    InvalidTimeFormat,
    parse_clock_time,
    occurrence_instant,
    normalize_times,
    minutes_between,
)

from .medication_record import (
    MedicationRecord,
    DismissalEntry,
    to_record,
)

from .occurrence_resolver import (
    next_occurrence,
    is_in_window,
    eligible_days,
)

from .dismissal_ledger import (
    is_dismissed,
    record_dismissal,
)

from .taken_state import is_satisfied

from .due_today import (
    DueItem,
    DueSoonItem,
    DueStatus,
    todays_due,
    due_now,
    due_soon,
    today_due_count,
)

from .adherence_calculator import (
    AdherenceBreakdown,
    adherence,
    adherence_breakdown,
)

from .calendar_export import (
    CalendarEvent,
    export_events,
)

__all__ = [
    # Clock
    "InvalidTimeFormat",
    "parse_clock_time",
    "occurrence_instant",
    "normalize_times",
    "minutes_between",
    # Records
    "MedicationRecord",
    "DismissalEntry",
    "to_record",
    # Resolution
    "next_occurrence",
    "is_in_window",
    "eligible_days",
    "is_dismissed",
    "record_dismissal",
    "is_satisfied",
    # Due today
    "DueItem",
    "DueSoonItem",
    "DueStatus",
    "todays_due",
    "due_now",
    "due_soon",
    "today_due_count",
    # Adherence
    "AdherenceBreakdown",
    "adherence",
    "adherence_breakdown",
    # Calendar
    "CalendarEvent",
    "export_events",
]
