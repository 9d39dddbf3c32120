"""
User Service
Business logic for tracker owners and their notification preferences
"""

import logging
from typing import Dict, List, Optional, Any
from datetime import datetime
from sqlalchemy.orm import Session

from database import get_db_context
import models
from services.errors import UserNotFound, DuplicateUser


logger = logging.getLogger(__name__)


class UserService:
    """
    Service for user-related operations
    """

    async def create_user(
        self,
        name: str,
        email: str,
        notify_push: bool = True,
        notify_email: bool = True,
        notify_calendar: bool = False,
        db: Optional[Session] = None
    ) -> models.User:
        """
        Create a new user

        Args:
            name: Display name
            email: Email address (unique)
            notify_push: Include the user in background reminder scans
            notify_email: Email notification preference
            notify_calendar: Calendar sync preference
            db: Database session (optional)

        Returns:
            Created User object
        """
        def _create(session: Session) -> models.User:
            email_normalized = email.strip().lower()
            existing = session.query(models.User).filter(
                models.User.email == email_normalized
            ).first()

            if existing:
                raise DuplicateUser(email_normalized)

            user = models.User(
                name=name.strip(),
                email=email_normalized,
                notify_push=notify_push,
                notify_email=notify_email,
                notify_calendar=notify_calendar,
                is_active=True
            )

            session.add(user)
            session.commit()
            session.refresh(user)

            logger.info(f"Created user {user.id}")
            return user

        if db:
            return _create(db)

        with get_db_context() as session:
            return _create(session)

    async def get_user(
        self,
        user_id: int,
        db: Optional[Session] = None
    ) -> models.User:
        """Get user by ID, raising UserNotFound if missing"""
        def _get(session: Session) -> models.User:
            return require_user(session, user_id)

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)

    async def update_notification_preferences(
        self,
        user_id: int,
        updates: Dict[str, Any],
        db: Optional[Session] = None
    ) -> models.User:
        """Update notification flags; unknown keys are ignored"""
        def _update(session: Session) -> models.User:
            user = require_user(session, user_id)

            allowed_fields = {'notify_push', 'notify_email', 'notify_calendar'}

            for field, value in updates.items():
                if field in allowed_fields and value is not None:
                    setattr(user, field, bool(value))

            user.updated_at = datetime.now()
            session.commit()
            session.refresh(user)

            logger.info(f"Updated notification preferences for user {user_id}")
            return user

        if db:
            return _update(db)

        with get_db_context() as session:
            return _update(session)

    def list_notifiable_user_ids(self, session: Session) -> List[int]:
        """Ids of active users with background push notifications enabled"""
        rows = session.query(models.User.id).filter(
            models.User.notify_push == True,
            models.User.is_active == True
        ).order_by(models.User.id).all()
        return [row[0] for row in rows]


def require_user(session: Session, user_id: int) -> models.User:
    user = session.query(models.User).filter(models.User.id == user_id).first()
    if not user:
        raise UserNotFound(user_id)
    return user


# Singleton instance
user_service = UserService()
