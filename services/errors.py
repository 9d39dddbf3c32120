"""
Service Errors
Failures surfaced by the tracker services to their callers
"""

from tools.clock import InvalidTimeFormat


class TrackerError(Exception):
    """Base class for tracker service errors"""


class UserNotFound(TrackerError):
    def __init__(self, user_id: int):
        self.user_id = user_id
        super().__init__(f"User {user_id} not found")


class MedicationNotFound(TrackerError):
    def __init__(self, medication_id: int, user_id: int = None):
        self.medication_id = medication_id
        self.user_id = user_id
        if user_id is None:
            super().__init__(f"Medication {medication_id} not found")
        else:
            super().__init__(f"Medication {medication_id} not found in tracker of user {user_id}")


class CatalogEntryMissing(TrackerError):
    """The referenced catalog entry does not exist (or no longer exists)"""

    def __init__(self, medicine_id):
        self.medicine_id = medicine_id
        super().__init__(f"Catalog medicine {medicine_id} not found")


class DuplicateUser(TrackerError):
    def __init__(self, email: str):
        self.email = email
        super().__init__(f"User with email {email} already exists")


class DuplicateCatalogEntry(TrackerError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Catalog medicine {name!r} already exists")


__all__ = [
    "TrackerError",
    "UserNotFound",
    "MedicationNotFound",
    "CatalogEntryMissing",
    "DuplicateUser",
    "DuplicateCatalogEntry",
    "InvalidTimeFormat",
]
