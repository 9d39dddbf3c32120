"""
Tracker API Router
Endpoints for a user's medication tracker: schedule, today's doses,
stats, prescription import and taken / dismiss mutations
"""

from typing import List, Optional
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from api.deps import get_db, get_now, http_error, services, SERVICE_ERRORS
from api.schemas.tracker import (
    MedicationCreate,
    MedicationUpdate,
    DismissRequest,
    PrescriptionImport,
    MedicationResponse,
    DueItemResponse,
    DueSoonResponse,
    TrackerStats,
    DismissResult,
    ImportResult,
    DeleteResult,
    TakenEventResponse,
)
from tools.medication_record import MedicationRecord


router = APIRouter(prefix="/users/{user_id}/tracker", tags=["tracker"])


def medication_response(record: MedicationRecord) -> MedicationResponse:
    return MedicationResponse(**record.to_dict())


# ==================== QUERIES ====================

@router.get("/schedule", response_model=List[MedicationResponse])
async def get_schedule(
    user_id: int,
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db)
):
    """
    All active medications whose date window contains today
    """
    tracker_service = services.get_tracker_service()

    try:
        records = await tracker_service.get_schedule(user_id, now=now, db=db)
    except SERVICE_ERRORS as e:
        raise http_error(e)

    return [medication_response(r) for r in records]


@router.get("/today", response_model=List[DueItemResponse])
async def get_today(
    user_id: int,
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db)
):
    """
    The next open dose of each medication today, earliest first

    - **status**: `overdue` once the due time has passed, else `upcoming`
    - **minutes_until**: negative when overdue
    """
    tracker_service = services.get_tracker_service()

    try:
        items = await tracker_service.get_today(user_id, now=now, db=db)
    except SERVICE_ERRORS as e:
        raise http_error(e)

    return [DueItemResponse(**item.to_dict()) for item in items]


@router.get("/due-now", response_model=List[DueItemResponse])
async def get_due_now(
    user_id: int,
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db)
):
    """
    Today's doses due within 15 minutes or missed within the last 30
    """
    tracker_service = services.get_tracker_service()

    try:
        items = await tracker_service.get_due_now(user_id, now=now, db=db)
    except SERVICE_ERRORS as e:
        raise http_error(e)

    return [DueItemResponse(**item.to_dict()) for item in items]


@router.get("/due-soon", response_model=List[DueSoonResponse])
async def get_due_soon(
    user_id: int,
    minutes: Optional[int] = Query(None, ge=1, le=24 * 60, description="Lookahead window in minutes (defaults to the reminder lookahead)"),
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db)
):
    """
    Every open occurrence due after now and within the lookahead window
    """
    tracker_service = services.get_tracker_service()

    try:
        items = await tracker_service.get_due_soon(
            user_id, now=now, lookahead_minutes=minutes, db=db
        )
    except SERVICE_ERRORS as e:
        raise http_error(e)

    return [DueSoonResponse(**item.to_dict()) for item in items]


@router.get("/stats", response_model=TrackerStats)
async def get_stats(
    user_id: int,
    days: Optional[int] = Query(None, ge=1, le=365, description="Adherence window in days (defaults to the configured window)"),
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db)
):
    """
    Adherence over the trailing window plus medication counters.

    A day with a taken event credits every dose scheduled that day.
    """
    tracker_service = services.get_tracker_service()

    try:
        stats = await tracker_service.get_stats(user_id, now=now, window_days=days, db=db)
    except SERVICE_ERRORS as e:
        raise http_error(e)

    return TrackerStats(**stats)


# ==================== MEDICATIONS ====================

@router.post("/medications", response_model=MedicationResponse, status_code=status.HTTP_201_CREATED)
async def add_medication(
    user_id: int,
    medication_data: MedicationCreate,
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db)
):
    """
    Enroll a catalog medicine

    - **medicine_id**: catalog entry
    - **times**: dose times, HH:MM
    """
    tracker_service = services.get_tracker_service()

    try:
        record = await tracker_service.add_medication(
            user_id=user_id,
            medicine_id=medication_data.medicine_id,
            times=medication_data.times,
            dosage=medication_data.dosage,
            frequency=medication_data.frequency,
            start_date=medication_data.start_date,
            end_date=medication_data.end_date,
            notes=medication_data.notes,
            now=now,
            db=db
        )
    except SERVICE_ERRORS as e:
        raise http_error(e)

    return medication_response(record)


@router.post("/import", response_model=ImportResult, status_code=status.HTTP_201_CREATED)
async def import_prescription(
    user_id: int,
    prescription: PrescriptionImport,
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db)
):
    """
    Enroll every medicine of a prescription

    - **medicines**: matched to the catalog by name, created when missing
    - **times**: optional; entries without times are imported paused
    - **frequency**: defaults to `as-needed`
    """
    tracker_service = services.get_tracker_service()

    try:
        records = await tracker_service.import_prescription(
            user_id=user_id,
            medicines=[m.model_dump() for m in prescription.medicines],
            notes=prescription.notes,
            now=now,
            db=db
        )
    except SERVICE_ERRORS as e:
        raise http_error(e)

    return ImportResult(
        imported_count=len(records),
        medications=[medication_response(r) for r in records]
    )


@router.put("/medications/{medication_id}", response_model=MedicationResponse)
async def update_medication(
    user_id: int,
    medication_id: int,
    medication_data: MedicationUpdate,
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db)
):
    """
    Update schedule fields of a tracked medication
    """
    tracker_service = services.get_tracker_service()

    updates = medication_data.model_dump(exclude_unset=True)
    if not updates:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No fields to update"
        )

    try:
        record = await tracker_service.update_medication(
            user_id, medication_id, updates, now=now, db=db
        )
    except SERVICE_ERRORS as e:
        raise http_error(e)

    return medication_response(record)


@router.delete("/medications/{medication_id}", response_model=DeleteResult)
async def delete_medication(
    user_id: int,
    medication_id: int,
    db: Session = Depends(get_db)
):
    """
    Remove a medication from the tracker
    """
    tracker_service = services.get_tracker_service()

    try:
        await tracker_service.delete_medication(user_id, medication_id, db=db)
    except SERVICE_ERRORS as e:
        raise http_error(e)

    return DeleteResult(message="Medication removed from tracker")


@router.post("/medications/{medication_id}/taken", response_model=MedicationResponse)
async def mark_taken(
    user_id: int,
    medication_id: int,
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db)
):
    """
    Record a taken event as of now
    """
    tracker_service = services.get_tracker_service()

    try:
        record = await tracker_service.record_taken(user_id, medication_id, now=now, db=db)
    except SERVICE_ERRORS as e:
        raise http_error(e)

    return medication_response(record)


@router.post("/medications/{medication_id}/dismiss", response_model=DismissResult)
async def dismiss_reminder(
    user_id: int,
    medication_id: int,
    dismiss_data: DismissRequest,
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db)
):
    """
    Skip one occurrence (exact date and time). Repeating the call is a no-op.
    """
    tracker_service = services.get_tracker_service()

    try:
        record, added = await tracker_service.record_dismissal(
            user_id,
            medication_id,
            dismiss_data.date,
            dismiss_data.time,
            now=now,
            db=db
        )
    except SERVICE_ERRORS as e:
        raise http_error(e)

    return DismissResult(
        added=added,
        message="Reminder dismissed" if added else "Reminder already dismissed",
        medication=medication_response(record)
    )


@router.get("/medications/{medication_id}/history", response_model=List[TakenEventResponse])
async def get_taken_history(
    user_id: int,
    medication_id: int,
    db: Session = Depends(get_db)
):
    """
    Taken events for a medication, oldest first
    """
    tracker_service = services.get_tracker_service()

    try:
        events = await tracker_service.get_taken_history(user_id, medication_id, db=db)
    except SERVICE_ERRORS as e:
        raise http_error(e)

    return [TakenEventResponse(**e) for e in events]
