"""
Tests for Dismissal Ledger
"""

import pytest
from datetime import timedelta

from tools.dismissal_ledger import is_dismissed, record_dismissal
from tools.medication_record import DismissalEntry
from tests.conftest import TODAY, FIXED_NOW


class TestDismissalLedger:
    """Tests for per-occurrence skips"""

    @pytest.mark.unit
    def test_exact_match_only(self, make_record):
        """Test only the exact (day, time) pair is dismissed"""
        med = make_record(dismissed_reminders=(DismissalEntry(TODAY, "20:00"),))

        assert is_dismissed(med, TODAY, "20:00")
        assert not is_dismissed(med, TODAY, "08:00")
        assert not is_dismissed(med, TODAY + timedelta(days=1), "20:00")
        assert not is_dismissed(med, TODAY, "20:01")

    @pytest.mark.unit
    def test_record_dismissal_adds_entry(self, make_record):
        """Test a new dismissal is appended and the input record left untouched"""
        med = make_record()

        updated, added = record_dismissal(med, TODAY, "08:00", dismissed_at=FIXED_NOW)

        assert added is True
        assert is_dismissed(updated, TODAY, "08:00")
        assert updated.dismissed_reminders[0].dismissed_at == FIXED_NOW
        assert med.dismissed_reminders == ()

    @pytest.mark.unit
    def test_record_dismissal_idempotent(self, make_record):
        """Test dismissing twice leaves the same ledger as dismissing once"""
        once, _ = record_dismissal(make_record(), TODAY, "20:00")
        twice, added = record_dismissal(once, TODAY, "20:00")

        assert added is False
        assert twice.dismissed_reminders == once.dismissed_reminders
        assert len(twice.dismissed_reminders) == 1

    @pytest.mark.unit
    def test_other_occurrences_unaffected(self, make_record):
        """Test a dismissal never removes other days or times"""
        med, _ = record_dismissal(make_record(), TODAY, "20:00")

        assert not is_dismissed(med, TODAY, "08:00")
        assert not is_dismissed(med, TODAY - timedelta(days=1), "20:00")
