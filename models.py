"""
Database Models
SQLAlchemy ORM models for PillTrack
"""

from sqlalchemy import Column, Integer, String, Boolean, Float, DateTime, ForeignKey, Text, Date, Enum, Index, UniqueConstraint, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
from enum import Enum as PyEnum

from database import Base
from config import TableNames


# ==================== ENUMS ====================

class Frequency(str, PyEnum):
    """Dosing frequency tag (informational; the schedule is the list of times)"""
    DAILY = "daily"
    TWICE_DAILY = "twice-daily"
    THRICE_DAILY = "thrice-daily"
    WEEKLY = "weekly"
    AS_NEEDED = "as-needed"


# ==================== MODELS ====================

class User(Base):
    """Tracker owner with notification preferences"""
    __tablename__ = TableNames.USERS

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)

    # Notification preferences
    notify_push = Column(Boolean, default=True, nullable=False)
    notify_email = Column(Boolean, default=True, nullable=False)
    notify_calendar = Column(Boolean, default=False, nullable=False)

    # Status
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    # Relationships
    medications = relationship(
        "Medication",
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="Medication.id"
    )


class CatalogMedicine(Base):
    """Catalog entry a tracked medication refers to"""
    __tablename__ = TableNames.CATALOG_MEDICINES

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), unique=True, nullable=False, index=True)
    description = Column(Text)
    price = Column(Float, nullable=False, default=0.0)
    symptoms = Column(JSON, default=list)

    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)


class Medication(Base):
    """A medication enrolled in a user's tracker"""
    __tablename__ = TableNames.MEDICATIONS

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey(f"{TableNames.USERS}.id"), nullable=False)

    # Catalog reference, not a foreign key: may dangle after the catalog entry is deleted
    medicine_id = Column(Integer, index=True)
    fallback_name = Column(String(255))

    dosage = Column(String(100))
    frequency = Column(Enum(Frequency), default=Frequency.DAILY, nullable=False)
    # Ordered list of "HH:MM" strings, validated on write
    times = Column(JSON, default=list, nullable=False)

    start_date = Column(Date, nullable=False)
    end_date = Column(Date)

    is_active = Column(Boolean, default=True, nullable=False)
    last_taken = Column(DateTime)
    next_dose = Column(DateTime)
    notes = Column(Text)

    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    # Relationships
    user = relationship("User", back_populates="medications")
    dismissed_reminders = relationship(
        "DismissedReminder",
        back_populates="medication",
        cascade="all, delete-orphan",
        order_by="DismissedReminder.id"
    )
    taken_events = relationship(
        "TakenEvent",
        back_populates="medication",
        cascade="all, delete-orphan",
        order_by="TakenEvent.taken_at"
    )

    __table_args__ = (
        Index("ix_medications_user_active", "user_id", "is_active"),
    )


class DismissedReminder(Base):
    """One permanently skipped occurrence (exact day and time)"""
    __tablename__ = TableNames.DISMISSED_REMINDERS

    id = Column(Integer, primary_key=True, index=True)
    medication_id = Column(
        Integer,
        ForeignKey(f"{TableNames.MEDICATIONS}.id", ondelete="CASCADE"),
        nullable=False
    )
    date = Column(Date, nullable=False)
    time = Column(String(5), nullable=False)  # "08:00"
    dismissed_at = Column(DateTime, default=datetime.now)

    medication = relationship("Medication", back_populates="dismissed_reminders")

    __table_args__ = (
        UniqueConstraint("medication_id", "date", "time", name="uq_dismissal_occurrence"),
    )


class TakenEvent(Base):
    """History of taken events; Medication.last_taken holds the latest"""
    __tablename__ = TableNames.TAKEN_EVENTS

    id = Column(Integer, primary_key=True, index=True)
    medication_id = Column(
        Integer,
        ForeignKey(f"{TableNames.MEDICATIONS}.id", ondelete="CASCADE"),
        nullable=False
    )
    user_id = Column(Integer, ForeignKey(f"{TableNames.USERS}.id"), nullable=False)
    taken_at = Column(DateTime, nullable=False)

    medication = relationship("Medication", back_populates="taken_events")

    __table_args__ = (
        Index("ix_taken_events_medication_time", "medication_id", "taken_at"),
    )
