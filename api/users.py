"""
Users API Router
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from api.deps import get_db, http_error, services, SERVICE_ERRORS
from api.schemas.user import UserCreate, UserResponse, NotificationPreferencesUpdate


router = APIRouter(prefix="/users", tags=["users"])


@router.post("/", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: UserCreate,
    db: Session = Depends(get_db)
):
    """
    Create a tracker user
    """
    user_service = services.get_user_service()

    try:
        return await user_service.create_user(
            name=user_data.name,
            email=user_data.email,
            notify_push=user_data.notify_push,
            notify_email=user_data.notify_email,
            notify_calendar=user_data.notify_calendar,
            db=db
        )
    except SERVICE_ERRORS as e:
        raise http_error(e)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: int,
    db: Session = Depends(get_db)
):
    user_service = services.get_user_service()

    try:
        return await user_service.get_user(user_id, db=db)
    except SERVICE_ERRORS as e:
        raise http_error(e)


@router.put("/{user_id}/notifications", response_model=UserResponse)
async def update_notifications(
    user_id: int,
    preferences: NotificationPreferencesUpdate,
    db: Session = Depends(get_db)
):
    """
    Toggle notification channels. `notify_push` controls background reminder scans.
    """
    user_service = services.get_user_service()

    try:
        return await user_service.update_notification_preferences(
            user_id,
            preferences.model_dump(exclude_unset=True),
            db=db
        )
    except SERVICE_ERRORS as e:
        raise http_error(e)
