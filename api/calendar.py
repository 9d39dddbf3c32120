"""
Calendar API Router
Export of upcoming doses as calendar events
"""

from typing import Optional
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from config import settings
from api.deps import get_db, get_now, http_error, services, SERVICE_ERRORS
from api.schemas.tracker import CalendarExport, CalendarEventResponse


router = APIRouter(prefix="/users/{user_id}/calendar", tags=["calendar"])


@router.get("/export", response_model=CalendarExport)
async def export_calendar(
    user_id: int,
    days: Optional[int] = Query(None, ge=1, le=365, description="Export horizon in days (defaults to the configured horizon)"),
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db)
):
    """
    One event per scheduled dose over the next `days` days.

    Each event lasts 15 minutes with reminders 15 and 5 minutes before.
    Dismissed and already-taken doses are still exported.
    """
    tracker_service = services.get_tracker_service()
    days = days or settings.CALENDAR_EXPORT_DAYS

    try:
        events = await tracker_service.export_calendar(user_id, now=now, days=days, db=db)
    except SERVICE_ERRORS as e:
        raise http_error(e)

    if not events:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No medications to export"
        )

    return CalendarExport(
        user_id=user_id,
        generated_at=now,
        days=days,
        events=[CalendarEventResponse(**e.to_dict()) for e in events]
    )
