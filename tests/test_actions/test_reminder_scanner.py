"""
Tests for Reminder Scanner
Periodic sweep over notifiable users, failure isolation and scheduling
"""

import pytest
from contextlib import nullcontext
from unittest.mock import MagicMock

from sqlalchemy.orm import Session

from actions.reminder_scanner import ReminderScanner, ScannerState, SCAN_JOB_ID
from models import User, Medication, Frequency
from tests.conftest import TODAY, FIXED_NOW, at


# =============================================================================
# Test Fixtures
# =============================================================================

@pytest.fixture
def deliver():
    """Delivery collaborator double"""
    return MagicMock()


@pytest.fixture
def scanner(db_session: Session, deliver) -> ReminderScanner:
    """Scanner bound to the test session"""
    return ReminderScanner(
        session_factory=lambda: nullcontext(db_session),
        deliver=deliver,
        interval_minutes=5,
        lookahead_minutes=15,
        max_medications_per_user=50
    )


def add_user(db_session: Session, email: str, notify_push: bool = True) -> User:
    user = User(name=email.split("@")[0], email=email, notify_push=notify_push)
    db_session.add(user)
    db_session.commit()
    return user


def add_medication(db_session: Session, user: User, times, medicine_id=None) -> Medication:
    medication = Medication(
        user_id=user.id,
        medicine_id=medicine_id,
        fallback_name="Aspirin",
        dosage="81mg",
        frequency=Frequency.DAILY,
        times=list(times),
        start_date=TODAY,
        is_active=True
    )
    db_session.add(medication)
    db_session.commit()
    return medication


# =============================================================================
# Test Sweep
# =============================================================================

class TestScan:
    """Tests for one sweep"""

    @pytest.mark.integration
    def test_reports_due_soon_per_user(self, scanner, deliver, db_session, test_user, test_medication):
        """Test a dose ten minutes out is reported and delivered"""
        report = scanner.scan(now=FIXED_NOW)

        assert report.skipped is False
        assert report.users_scanned == 1
        assert report.due_count == 1
        assert [i.time_str for i in report.due[test_user.id]] == ["08:00"]
        deliver.assert_called_once()
        user_id, items = deliver.call_args.args
        assert user_id == test_user.id
        assert items[0].medicine_name == "Metformin"

    @pytest.mark.integration
    def test_nothing_due(self, scanner, deliver, test_user, test_medication):
        """Test an empty lookahead delivers nothing"""
        report = scanner.scan(now=at(12, 0))

        assert report.users_scanned == 1
        assert report.due == {}
        deliver.assert_not_called()

    @pytest.mark.integration
    def test_skips_users_without_push(self, scanner, deliver, db_session):
        """Test only users with push notifications are scanned"""
        muted = add_user(db_session, "muted@example.com", notify_push=False)
        add_medication(db_session, muted, ["08:00"])

        report = scanner.scan(now=FIXED_NOW)

        assert report.users_scanned == 0
        deliver.assert_not_called()

    @pytest.mark.integration
    def test_dismissed_dose_not_reported(self, scanner, deliver, test_user, test_medication, dismissed_evening):
        """Test a dismissed dose is excluded from the lookahead"""
        report = scanner.scan(now=at(19, 50))

        assert report.due == {}
        deliver.assert_not_called()

    @pytest.mark.integration
    def test_failure_isolated_per_user(self, scanner, deliver, db_session):
        """Test one user's failure does not stop the sweep"""
        first = add_user(db_session, "first@example.com")
        second = add_user(db_session, "second@example.com")
        add_medication(db_session, first, ["08:00"])
        add_medication(db_session, second, ["08:00"])

        deliver.side_effect = [RuntimeError("push gateway down"), None]

        report = scanner.scan(now=FIXED_NOW)

        assert report.failures == {first.id: "push gateway down"}
        assert second.id in report.due
        assert deliver.call_count == 2
        assert scanner.state == ScannerState.IDLE

    @pytest.mark.integration
    def test_evaluation_failure_isolated(self, scanner, deliver, db_session, monkeypatch):
        """Test a failing evaluation is recorded and the next user still scanned"""
        first = add_user(db_session, "first@example.com")
        second = add_user(db_session, "second@example.com")
        add_medication(db_session, second, ["08:00"])

        real_scan_user = scanner.scan_user

        def flaky_scan_user(session, user_id, now):
            if user_id == first.id:
                raise ValueError("corrupt record")
            return real_scan_user(session, user_id, now)

        monkeypatch.setattr(scanner, "scan_user", flaky_scan_user)

        report = scanner.scan(now=FIXED_NOW)

        assert first.id in report.failures
        assert report.users_scanned == 1
        assert list(report.due) == [second.id]

    @pytest.mark.integration
    def test_per_user_cap(self, db_session, deliver):
        """Test only the capped number of medications is read"""
        user = add_user(db_session, "busy@example.com")
        add_medication(db_session, user, ["08:00"])
        add_medication(db_session, user, ["07:55"])

        capped = ReminderScanner(
            session_factory=lambda: nullcontext(db_session),
            deliver=deliver,
            max_medications_per_user=1
        )
        report = capped.scan(now=FIXED_NOW)

        assert [i.time_str for i in report.due[user.id]] == ["08:00"]

    @pytest.mark.integration
    def test_inactive_medications_do_not_use_cap(self, db_session, deliver):
        """Test paused medications are not counted against the per-user cap"""
        user = add_user(db_session, "paused@example.com")
        paused = add_medication(db_session, user, ["07:55"])
        paused.is_active = False
        db_session.commit()
        add_medication(db_session, user, ["08:00"])

        capped = ReminderScanner(
            session_factory=lambda: nullcontext(db_session),
            deliver=deliver,
            max_medications_per_user=1
        )
        report = capped.scan(now=FIXED_NOW)

        assert [i.time_str for i in report.due[user.id]] == ["08:00"]

    @pytest.mark.unit
    def test_overlapping_tick_skipped(self, scanner, deliver):
        """Test a tick arriving mid-sweep is skipped"""
        scanner._lock.acquire()
        try:
            report = scanner.scan(now=FIXED_NOW)
        finally:
            scanner._lock.release()

        assert report.skipped is True
        assert report.users_scanned == 0
        deliver.assert_not_called()

    @pytest.mark.unit
    def test_report_to_dict(self, scanner, test_user, test_medication):
        """Test report serialization"""
        data = scanner.scan(now=FIXED_NOW).to_dict()

        assert data["users_scanned"] == 1
        assert data["due"][str(test_user.id)][0]["time_str"] == "08:00"
        assert data["skipped"] is False


# =============================================================================
# Test Scheduling
# =============================================================================

class TestScheduling:
    """Tests for the interval job"""

    @pytest.mark.asyncio
    async def test_start_and_shutdown(self, scanner):
        """Test the job is registered once and removed on shutdown"""
        scanner.start()
        try:
            assert scanner.is_running
            job = scanner._scheduler.get_job(SCAN_JOB_ID)
            assert job is not None
            assert job.max_instances == 1

            scanner.start()
            assert len(scanner._scheduler.get_jobs()) == 1
        finally:
            scanner.shutdown()

        assert not scanner.is_running

    @pytest.mark.asyncio
    async def test_run_tick_runs_scan(self, scanner):
        """Test the scheduler entry point delegates to scan"""
        scanner.scan = MagicMock(return_value="report")

        assert await scanner.run_tick() == "report"
        scanner.scan.assert_called_once_with()
