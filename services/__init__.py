"""
Services Module
Business logic layer for the PillTrack application
"""

from services.errors import (
    TrackerError,
    UserNotFound,
    MedicationNotFound,
    CatalogEntryMissing,
    DuplicateUser,
    DuplicateCatalogEntry,
)
from services.user_service import UserService, user_service
from services.catalog_service import CatalogService, catalog_service
from services.tracker_service import TrackerService, tracker_service


__all__ = [
    # Errors
    "TrackerError",
    "UserNotFound",
    "MedicationNotFound",
    "CatalogEntryMissing",
    "DuplicateUser",
    "DuplicateCatalogEntry",
    # Service classes
    "UserService",
    "CatalogService",
    "TrackerService",
    # Singleton instances
    "user_service",
    "catalog_service",
    "tracker_service",
]
