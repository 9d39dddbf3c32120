"""
Tests for Calendar Export
"""

import pytest
from datetime import timedelta

from tools.calendar_export import CalendarEvent, export_events
from tools.medication_record import DismissalEntry
from tests.conftest import TODAY, at


class TestExportEvents:
    """Tests for expanding medications into calendar events"""

    @pytest.mark.unit
    def test_days_times_product(self, make_record):
        """Test one event per eligible day and time"""
        med = make_record(times=("08:00", "20:00"))

        events = export_events([med], at(0, 0), days=30)

        assert len(events) == 60
        assert events[0].start == at(8, 0)
        assert events[-1].start == at(20, 0, TODAY + timedelta(days=29))

    @pytest.mark.unit
    def test_event_shape(self, make_record):
        """Test title, description, duration and alarms"""
        med = make_record(times=("08:00",), notes="With food")

        event = export_events([med], at(0, 0), days=1)[0]

        assert event.title == "Take Metformin"
        assert event.description == "Dosage: 500mg\nNotes: With food"
        assert event.duration_minutes == 15
        assert event.alarm_offsets_minutes == [15, 5]
        assert event.to_dict()["alarms"] == [
            {"action": "display", "minutes_before": 15},
            {"action": "display", "minutes_before": 5},
        ]

    @pytest.mark.unit
    def test_fallback_name_and_dosage(self, make_record):
        """Test missing name and dosage use calendar fallbacks"""
        med = make_record(times=("08:00",), medicine_name=None, dosage=None)

        event = export_events([med], at(0, 0), days=1)[0]

        assert event.title == "Take Medication"
        assert event.description == "Dosage: As prescribed"

    @pytest.mark.unit
    def test_window_matches_resolver(self, make_record):
        """Test start and end dates clip the export"""
        med = make_record(
            times=("08:00",),
            start_date=TODAY + timedelta(days=2),
            end_date=TODAY + timedelta(days=4)
        )

        events = export_events([med], at(0, 0), days=30)

        assert [e.start.date() for e in events] == [TODAY + timedelta(days=n) for n in (2, 3, 4)]

    @pytest.mark.unit
    def test_dismissed_and_taken_still_exported(self, make_record):
        """Test export ignores dismissals and taken events"""
        med = make_record(
            times=("08:00",),
            last_taken=at(7, 0),
            dismissed_reminders=(DismissalEntry(TODAY, "08:00"),)
        )

        events = export_events([med], at(7, 30), days=1)

        assert [e.start for e in events] == [at(8, 0)]

    @pytest.mark.unit
    def test_past_doses_today_skipped(self, make_record):
        """Test doses earlier than now are not exported"""
        med = make_record(times=("08:00", "20:00"))

        events = export_events([med], at(12, 0), days=1)

        assert [e.start for e in events] == [at(20, 0)]

    @pytest.mark.unit
    def test_inactive_not_exported(self, make_record):
        """Test inactive medications produce no events"""
        assert export_events([make_record(is_active=False)], at(0, 0)) == []

    @pytest.mark.unit
    def test_default_status(self):
        """Test events are confirmed and free"""
        event = CalendarEvent(medication_id=1, title="Take X", description="Dosage: 1", start=at(8, 0))

        assert event.to_dict()["status"] == "CONFIRMED"
        assert event.to_dict()["busy_status"] == "FREE"
