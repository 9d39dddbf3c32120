"""
Reminder Scanner
Periodic background sweep that finds doses coming due for users with
push notifications enabled
"""

import asyncio
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, ContextManager, Dict, List, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.orm import Session

from config import settings
from database import get_db_context
from services.tracker_service import tracker_service
from services.user_service import user_service
from tools.due_today import DueSoonItem, due_soon


logger = logging.getLogger(__name__)


SCAN_JOB_ID = "reminder_scan"


class ScannerState(str, Enum):
    """Scanner lifecycle: IDLE -> SCANNING -> IDLE"""
    IDLE = "idle"
    SCANNING = "scanning"


@dataclass
class ScanReport:
    """Outcome of one sweep"""
    started_at: datetime
    finished_at: Optional[datetime] = None
    users_scanned: int = 0
    due: Dict[int, List[DueSoonItem]] = field(default_factory=dict)
    failures: Dict[int, str] = field(default_factory=dict)
    skipped: bool = False

    @property
    def due_count(self) -> int:
        return sum(len(items) for items in self.due.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "users_scanned": self.users_scanned,
            "due": {
                str(user_id): [item.to_dict() for item in items]
                for user_id, items in self.due.items()
            },
            "failures": {str(k): v for k, v in self.failures.items()},
            "skipped": self.skipped,
        }


DeliverFn = Callable[[int, List[DueSoonItem]], None]
SessionFactory = Callable[[], ContextManager[Session]]


def log_delivery(user_id: int, items: List[DueSoonItem]) -> None:
    """Default delivery: record the reminder; clients poll for due doses"""
    names = ", ".join(f"{i.medicine_name} at {i.time_str}" for i in items)
    logger.info(f"User {user_id} has {len(items)} medication(s) due soon: {names}")


class ReminderScanner:
    """
    Finds doses due within the lookahead window for every notifiable user.

    Each sweep is independent: nothing is remembered between ticks, so
    whether a dose was already announced is the delivery callable's concern.
    One user's failure is logged and recorded without stopping the sweep.
    """

    def __init__(
        self,
        session_factory: SessionFactory = get_db_context,
        deliver: Optional[DeliverFn] = None,
        interval_minutes: Optional[int] = None,
        lookahead_minutes: Optional[int] = None,
        max_medications_per_user: Optional[int] = None
    ):
        self.session_factory = session_factory
        self.deliver = deliver or log_delivery
        self.interval_minutes = interval_minutes or settings.SCANNER_INTERVAL_MINUTES
        self.lookahead_minutes = (
            lookahead_minutes if lookahead_minutes is not None
            else settings.REMINDER_LOOKAHEAD_MINUTES
        )
        self.max_medications_per_user = (
            max_medications_per_user or settings.SCANNER_MAX_MEDICATIONS_PER_USER
        )
        self.state = ScannerState.IDLE
        self._lock = threading.Lock()
        self._scheduler: Optional[AsyncIOScheduler] = None

    # ==================== SWEEP ====================

    def scan_user(self, session: Session, user_id: int, now: datetime) -> List[DueSoonItem]:
        """Due-soon occurrences for one user, reading at most the per-user cap of active medications"""
        records = tracker_service.load_records(
            session, user_id, limit=self.max_medications_per_user, active_only=True
        )
        return due_soon(records, now, self.lookahead_minutes)

    def scan(self, now: Optional[datetime] = None) -> ScanReport:
        """
        Run one sweep over all users with push notifications enabled.

        Returns a skipped report if another sweep is still running.
        """
        now = now or datetime.now()
        report = ScanReport(started_at=now)

        if not self._lock.acquire(blocking=False):
            logger.warning("Reminder scan still running; skipping this tick")
            report.skipped = True
            report.finished_at = now
            return report

        self.state = ScannerState.SCANNING
        try:
            with self.session_factory() as session:
                user_ids = user_service.list_notifiable_user_ids(session)

            for user_id in user_ids:
                try:
                    with self.session_factory() as session:
                        items = self.scan_user(session, user_id, now)
                    report.users_scanned += 1
                    if items:
                        report.due[user_id] = items
                        self.deliver(user_id, items)
                except Exception as e:
                    logger.exception(f"Reminder scan failed for user {user_id}")
                    report.failures[user_id] = str(e)
        finally:
            self.state = ScannerState.IDLE
            self._lock.release()

        report.finished_at = datetime.now()
        logger.info(
            f"Reminder scan complete: {report.users_scanned} user(s), "
            f"{report.due_count} due soon, {len(report.failures)} failure(s)"
        )
        return report

    async def run_tick(self) -> ScanReport:
        """Scheduler entry point; the sweep runs in a worker thread off the event loop"""
        return await asyncio.to_thread(self.scan)

    # ==================== SCHEDULING ====================

    def start(self) -> None:
        """Start the interval job on the running event loop"""
        if self.is_running:
            return

        self._scheduler = AsyncIOScheduler()
        self._scheduler.add_job(
            self.run_tick,
            IntervalTrigger(minutes=self.interval_minutes),
            id=SCAN_JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True
        )
        self._scheduler.start()
        logger.info(f"Reminder scanner started (runs every {self.interval_minutes} minutes)")

    def shutdown(self) -> None:
        if self._scheduler is not None and self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("Reminder scanner stopped")
        self._scheduler = None

    @property
    def is_running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running


# Singleton instance
reminder_scanner = ReminderScanner()
