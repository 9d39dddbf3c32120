"""
API Dependencies
Common dependencies for FastAPI endpoints
"""

from datetime import datetime
from fastapi import HTTPException, status

from database import get_db  # noqa: F401
from services.errors import (
    TrackerError,
    UserNotFound,
    MedicationNotFound,
    DuplicateUser,
    DuplicateCatalogEntry,
)


def get_now() -> datetime:
    """
    Reference instant for schedule resolution.

    The wall clock is read here, once per request; everything below receives
    it explicitly. Tests override this dependency to pin the clock.
    """
    return datetime.now()


def http_error(exc: Exception) -> HTTPException:
    """
    Translate a service error into the HTTP error surfaced to the caller.

    Missing users and medications are 404, duplicates 409; a missing catalog
    entry on enrollment and invalid input (ValueError, InvalidTimeFormat) are 400.
    """
    if isinstance(exc, (UserNotFound, MedicationNotFound)):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, (DuplicateUser, DuplicateCatalogEntry)):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


SERVICE_ERRORS = (TrackerError, ValueError)


class ServiceDependency:
    """
    Dependency injection for services
    """

    @staticmethod
    def get_user_service():
        from services.user_service import user_service
        return user_service

    @staticmethod
    def get_catalog_service():
        from services.catalog_service import catalog_service
        return catalog_service

    @staticmethod
    def get_tracker_service():
        from services.tracker_service import tracker_service
        return tracker_service

    @staticmethod
    def get_reminder_scanner():
        from actions.reminder_scanner import reminder_scanner
        return reminder_scanner


# Service dependency instances
services = ServiceDependency()
