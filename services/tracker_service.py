"""
Tracker Service
Query surface and mutations for a user's tracked medications
"""

import logging
from typing import Dict, List, Optional, Any, Tuple
from datetime import datetime, date
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from config import settings, tracker_config
from database import get_db_context
import models
from services.catalog_service import catalog_service
from services.errors import MedicationNotFound
from services.user_service import require_user
from tools.clock import parse_clock_time, normalize_times
from tools.medication_record import MedicationRecord, to_record
from tools.occurrence_resolver import next_occurrence, is_in_window
from tools.dismissal_ledger import record_dismissal as ledger_record_dismissal
from tools.due_today import DueItem, DueSoonItem, todays_due, due_now, due_soon, today_due_count
from tools.adherence_calculator import adherence_breakdown
from tools.calendar_export import CalendarEvent, export_events


logger = logging.getLogger(__name__)


SCHEDULE_FIELDS = {'times', 'frequency', 'start_date', 'end_date', 'is_active'}
NULLABLE_FIELDS = {'end_date', 'dosage', 'notes'}


class TrackerService:
    """
    Service for the medication tracker.

    Every read converts the user's rows to MedicationRecord snapshots and runs
    the schedule engine on them with an explicit reference instant. Every
    mutation is a single commit on the owning user's medications.
    """

    # ==================== READS ====================

    def load_records(
        self,
        session: Session,
        user_id: int,
        limit: Optional[int] = None,
        active_only: bool = False
    ) -> List[MedicationRecord]:
        """Snapshot a user's medications, with catalog names resolved"""
        require_user(session, user_id)

        query = session.query(models.Medication).filter(
            models.Medication.user_id == user_id
        )
        if active_only:
            query = query.filter(models.Medication.is_active == True)
        query = query.order_by(models.Medication.id)
        if limit is not None:
            query = query.limit(limit)
        medications = query.all()

        names = catalog_service.resolve_names(session, (m.medicine_id for m in medications))
        return [to_record(m, names.get(m.medicine_id)) for m in medications]

    async def get_schedule(
        self,
        user_id: int,
        now: Optional[datetime] = None,
        db: Optional[Session] = None
    ) -> List[MedicationRecord]:
        """Active medications whose window contains today (no due-time resolution)"""
        now = now or datetime.now()

        def _get(session: Session) -> List[MedicationRecord]:
            return [
                r for r in self.load_records(session, user_id)
                if r.is_active and is_in_window(r, now.date())
            ]

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)

    async def get_today(
        self,
        user_id: int,
        now: Optional[datetime] = None,
        db: Optional[Session] = None
    ) -> List[DueItem]:
        """Earliest open dose per medication today, ordered by due time"""
        now = now or datetime.now()

        def _get(session: Session) -> List[DueItem]:
            return todays_due(self.load_records(session, user_id), now)

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)

    async def get_due_now(
        self,
        user_id: int,
        now: Optional[datetime] = None,
        db: Optional[Session] = None
    ) -> List[DueItem]:
        """Today's items that are imminent or were missed only recently"""
        items = await self.get_today(user_id, now=now, db=db)
        return due_now(
            items,
            before_minutes=settings.DUE_NOW_BEFORE_MINUTES,
            after_minutes=settings.DUE_NOW_AFTER_MINUTES
        )

    async def get_due_soon(
        self,
        user_id: int,
        now: Optional[datetime] = None,
        lookahead_minutes: Optional[int] = None,
        db: Optional[Session] = None
    ) -> List[DueSoonItem]:
        """Occurrences inside the reminder lookahead window"""
        now = now or datetime.now()
        lookahead = lookahead_minutes if lookahead_minutes is not None else settings.REMINDER_LOOKAHEAD_MINUTES

        def _get(session: Session) -> List[DueSoonItem]:
            return due_soon(self.load_records(session, user_id), now, lookahead)

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)

    async def get_stats(
        self,
        user_id: int,
        now: Optional[datetime] = None,
        window_days: Optional[int] = None,
        db: Optional[Session] = None
    ) -> Dict[str, Any]:
        """
        Adherence and counters for the dashboard

        Returns:
            adherence percentage, dose counts behind it, number of active
            medications and number of medications still due today
        """
        now = now or datetime.now()
        window = window_days or settings.ADHERENCE_WINDOW_DAYS

        def _get(session: Session) -> Dict[str, Any]:
            records = self.load_records(session, user_id)
            active = [r for r in records if r.is_active]
            breakdown = adherence_breakdown(active, now, window)

            stats = breakdown.to_dict()
            stats.update({
                "total_medications": len(active),
                "today_due_count": today_due_count(active, now),
            })
            return stats

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)

    async def get_taken_history(
        self,
        user_id: int,
        medication_id: int,
        db: Optional[Session] = None
    ) -> List[Dict[str, Any]]:
        """Taken events for one medication, oldest first"""
        def _get(session: Session) -> List[Dict[str, Any]]:
            medication = self._require_medication(session, user_id, medication_id)
            return [
                {"id": e.id, "medication_id": e.medication_id, "taken_at": e.taken_at}
                for e in medication.taken_events
            ]

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)

    async def export_calendar(
        self,
        user_id: int,
        now: Optional[datetime] = None,
        days: Optional[int] = None,
        db: Optional[Session] = None
    ) -> List[CalendarEvent]:
        """Calendar events for the forward export window"""
        now = now or datetime.now()
        horizon = days or settings.CALENDAR_EXPORT_DAYS

        def _get(session: Session) -> List[CalendarEvent]:
            return export_events(self.load_records(session, user_id), now, horizon)

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)

    # ==================== MUTATIONS ====================

    async def add_medication(
        self,
        user_id: int,
        medicine_id: int,
        times: List[str],
        dosage: Optional[str] = None,
        frequency: str = "daily",
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
        db: Optional[Session] = None
    ) -> MedicationRecord:
        """
        Enroll a catalog medicine in the user's tracker

        Args:
            user_id: Owner
            medicine_id: Catalog reference (must exist at enrollment)
            times: "HH:MM" entries; blank entries are dropped
            dosage: Free-text dosage
            frequency: Frequency tag
            start_date: First day of the schedule (defaults to today)
            end_date: Last day of the schedule, if any
            notes: Free text
            now: Reference instant for the cached next dose
            db: Database session

        Raises:
            UserNotFound, CatalogEntryMissing, InvalidTimeFormat,
            ValueError if no times remain
        """
        now = now or datetime.now()

        def _add(session: Session) -> MedicationRecord:
            require_user(session, user_id)
            medicine = catalog_service.resolve(session, medicine_id)

            normalized = normalize_times(times)
            if not normalized:
                raise ValueError("At least one dose time is required")
            self._check_window(start_date or now.date(), end_date)

            medication = models.Medication(
                user_id=user_id,
                medicine_id=medicine.id,
                fallback_name=medicine.name,
                dosage=dosage,
                frequency=models.Frequency(frequency),
                times=normalized,
                start_date=start_date or now.date(),
                end_date=end_date,
                notes=notes,
                is_active=True
            )
            medication.next_dose = next_occurrence(to_record(medication), now)

            session.add(medication)
            session.commit()
            session.refresh(medication)

            logger.info(
                f"Added medication {medication.id} ({medicine.name}) "
                f"at {normalized} for user {user_id}"
            )
            return to_record(medication, medicine.name)

        if db:
            return _add(db)

        with get_db_context() as session:
            return _add(session)

    async def import_prescription(
        self,
        user_id: int,
        medicines: List[Dict[str, Any]],
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
        db: Optional[Session] = None
    ) -> List[MedicationRecord]:
        """
        Enroll every medicine of a reviewed prescription in one commit.

        Each entry is matched to the catalog by name (case-insensitive), creating
        the catalog entry when missing. Entries without a name are skipped.
        Entries with explicit times start active; the rest get placeholder times
        for their frequency and start paused until the user sets a schedule.

        Args:
            user_id: Owner
            medicines: Dicts with name and optional dosage, frequency, times,
                timing and duration
            notes: Prescription-wide notes copied to every entry
            now: Reference instant (start date and cached next dose)
            db: Database session

        Raises:
            UserNotFound, InvalidTimeFormat,
            ValueError if the prescription has no usable entries
        """
        now = now or datetime.now()

        if not medicines:
            raise ValueError("No medicines provided")

        def _import(session: Session) -> List[MedicationRecord]:
            require_user(session, user_id)

            imported = []
            for item in medicines:
                name = (item.get("name") or "").strip()
                if not name:
                    continue

                medicine = catalog_service.find_or_create(session, name)
                frequency = models.Frequency(
                    item.get("frequency") or tracker_config.IMPORT_DEFAULT_FREQUENCY
                )
                times = normalize_times(item.get("times") or [])
                scheduled = bool(times)
                if not scheduled:
                    times = list(tracker_config.IMPORT_DEFAULT_TIMES[frequency.value])

                entry_notes = "\n".join(
                    f"{label}: {value}" for label, value in (
                        ("Timing", item.get("timing")),
                        ("Duration", item.get("duration")),
                        ("Notes", notes),
                    ) if value
                )

                medication = models.Medication(
                    user_id=user_id,
                    medicine_id=medicine.id,
                    fallback_name=medicine.name,
                    dosage=item.get("dosage") or None,
                    frequency=frequency,
                    times=times,
                    start_date=now.date(),
                    notes=entry_notes or None,
                    is_active=scheduled
                )
                medication.next_dose = next_occurrence(to_record(medication), now)
                session.add(medication)
                imported.append((medication, medicine.name))

            if not imported:
                raise ValueError("No valid medicines found")

            session.commit()
            for medication, _ in imported:
                session.refresh(medication)

            logger.info(f"Imported {len(imported)} medications from prescription for user {user_id}")
            return [to_record(m, name) for m, name in imported]

        if db:
            return _import(db)

        with get_db_context() as session:
            return _import(session)

    async def update_medication(
        self,
        user_id: int,
        medication_id: int,
        updates: Dict[str, Any],
        now: Optional[datetime] = None,
        db: Optional[Session] = None
    ) -> MedicationRecord:
        """Replace schedule and descriptive fields; unknown keys are ignored"""
        now = now or datetime.now()

        def _update(session: Session) -> MedicationRecord:
            medication = self._require_medication(session, user_id, medication_id)

            allowed_fields = SCHEDULE_FIELDS | {'dosage', 'notes'}
            # end_date, dosage and notes may be cleared with None; the rest are required columns
            changes = {
                k: v for k, v in updates.items()
                if k in allowed_fields and (v is not None or k in NULLABLE_FIELDS)
            }

            if 'times' in changes:
                changes['times'] = normalize_times(changes['times'])
                if not changes['times']:
                    raise ValueError("At least one dose time is required")
            if 'frequency' in changes:
                changes['frequency'] = models.Frequency(changes['frequency'])

            self._check_window(
                changes.get('start_date', medication.start_date),
                changes.get('end_date', medication.end_date)
            )

            for field, value in changes.items():
                setattr(medication, field, value)

            if SCHEDULE_FIELDS & changes.keys():
                medication.next_dose = next_occurrence(to_record(medication), now)

            medication.updated_at = now
            session.commit()
            session.refresh(medication)

            logger.info(f"Updated medication {medication_id} for user {user_id}: {sorted(changes)}")
            return self._record(session, medication)

        if db:
            return _update(db)

        with get_db_context() as session:
            return _update(session)

    async def delete_medication(
        self,
        user_id: int,
        medication_id: int,
        db: Optional[Session] = None
    ) -> bool:
        """Remove a medication from tracking; the catalog entry is untouched"""
        def _delete(session: Session) -> bool:
            medication = self._require_medication(session, user_id, medication_id)
            session.delete(medication)
            session.commit()
            logger.info(f"Removed medication {medication_id} from tracker of user {user_id}")
            return True

        if db:
            return _delete(db)

        with get_db_context() as session:
            return _delete(session)

    async def record_taken(
        self,
        user_id: int,
        medication_id: int,
        now: Optional[datetime] = None,
        db: Optional[Session] = None
    ) -> MedicationRecord:
        """
        Mark the medication taken as of now.

        Satisfies every occurrence earlier today; the cached next dose is
        recomputed from the same instant.
        """
        now = now or datetime.now()

        def _taken(session: Session) -> MedicationRecord:
            medication = self._require_medication(session, user_id, medication_id)

            medication.last_taken = now
            medication.next_dose = next_occurrence(to_record(medication), now)
            session.add(models.TakenEvent(
                medication_id=medication.id,
                user_id=user_id,
                taken_at=now
            ))
            session.commit()
            session.refresh(medication)

            logger.info(f"Medication {medication_id} taken at {now.isoformat()} by user {user_id}")
            return self._record(session, medication)

        if db:
            return _taken(db)

        with get_db_context() as session:
            return _taken(session)

    async def record_dismissal(
        self,
        user_id: int,
        medication_id: int,
        day: date,
        time_str: str,
        now: Optional[datetime] = None,
        db: Optional[Session] = None
    ) -> Tuple[MedicationRecord, bool]:
        """
        Skip one occurrence permanently.

        Returns the updated record and whether a new dismissal was stored;
        dismissing the same (day, time) again is a no-op.

        Raises:
            InvalidTimeFormat: time_str is not HH:MM
            MedicationNotFound: no such medication for this user
        """
        now = now or datetime.now()
        time_key = parse_clock_time(time_str).strftime("%H:%M")

        def _dismiss(session: Session) -> Tuple[MedicationRecord, bool]:
            medication = self._require_medication(session, user_id, medication_id)
            record, added = ledger_record_dismissal(
                to_record(medication), day, time_key, dismissed_at=now
            )
            if not added:
                return self._record(session, medication), False

            session.add(models.DismissedReminder(
                medication_id=medication.id,
                date=day,
                time=time_key,
                dismissed_at=now
            ))
            try:
                session.commit()
            except IntegrityError:
                # A concurrent request stored the same occurrence first
                session.rollback()
                logger.info(f"Dismissal {day} {time_key} for medication {medication_id} already stored")
                medication = self._require_medication(session, user_id, medication_id)
                return self._record(session, medication), False

            session.refresh(medication)
            logger.info(f"Dismissed {day.isoformat()} {time_key} for medication {medication_id}")
            return self._record(session, medication), True

        if db:
            return _dismiss(db)

        with get_db_context() as session:
            return _dismiss(session)

    # ==================== HELPERS ====================

    def _require_medication(
        self,
        session: Session,
        user_id: int,
        medication_id: int
    ) -> models.Medication:
        require_user(session, user_id)
        medication = session.query(models.Medication).filter(
            models.Medication.id == medication_id,
            models.Medication.user_id == user_id
        ).first()
        if not medication:
            raise MedicationNotFound(medication_id, user_id)
        return medication

    def _record(self, session: Session, medication: models.Medication) -> MedicationRecord:
        names = catalog_service.resolve_names(session, [medication.medicine_id])
        return to_record(medication, names.get(medication.medicine_id))

    @staticmethod
    def _check_window(start_date: Optional[date], end_date: Optional[date]) -> None:
        if start_date and end_date and end_date < start_date:
            raise ValueError("end_date must not be before start_date")


# Singleton instance
tracker_service = TrackerService()
