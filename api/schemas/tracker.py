"""
Tracker Schemas
Pydantic models for tracker requests and responses
"""

from typing import Optional, List
from datetime import datetime, date
from pydantic import BaseModel, Field, ConfigDict, field_validator

from models import Frequency
from tools.clock import normalize_times, parse_clock_time


# ==================== REQUEST SCHEMAS ====================

class MedicationCreate(BaseModel):
    """Schema for enrolling a catalog medicine in the tracker"""
    medicine_id: int
    times: List[str] = Field(..., min_length=1, description="Dose times in HH:MM format")
    dosage: Optional[str] = Field(None, max_length=100)
    frequency: Frequency = Frequency.DAILY
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    notes: Optional[str] = None

    @field_validator("times")
    @classmethod
    def validate_times(cls, value: List[str]) -> List[str]:
        normalized = normalize_times(value)
        if not normalized:
            raise ValueError("At least one dose time is required")
        return normalized


class MedicationUpdate(BaseModel):
    """Schema for replacing schedule fields; omitted fields are left as they are"""
    dosage: Optional[str] = Field(None, max_length=100)
    frequency: Optional[Frequency] = None
    times: Optional[List[str]] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    notes: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("times")
    @classmethod
    def validate_times(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        if value is None:
            return value
        normalized = normalize_times(value)
        if not normalized:
            raise ValueError("At least one dose time is required")
        return normalized


class DismissRequest(BaseModel):
    """Occurrence to skip"""
    date: date
    time: str = Field(..., description="Time in HH:MM format")

    @field_validator("time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        return parse_clock_time(value).strftime("%H:%M")


class PrescriptionItem(BaseModel):
    """One medicine read from a prescription; entries without a name are skipped"""
    name: Optional[str] = Field(None, max_length=255)
    dosage: Optional[str] = Field(None, max_length=100)
    frequency: Optional[Frequency] = None
    times: Optional[List[str]] = Field(None, description="Dose times in HH:MM format")
    timing: Optional[str] = None
    duration: Optional[str] = None

    @field_validator("times")
    @classmethod
    def validate_times(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        if value is None:
            return value
        return normalize_times(value)


class PrescriptionImport(BaseModel):
    """Reviewed prescription to enroll in the tracker"""
    medicines: List[PrescriptionItem] = []
    notes: Optional[str] = None


# ==================== RESPONSE SCHEMAS ====================

class DismissalResponse(BaseModel):
    date: date
    time: str


class MedicationResponse(BaseModel):
    """Tracked medication"""
    id: int
    medicine_id: Optional[int] = None
    medicine_name: str
    dosage: Optional[str] = None
    frequency: str
    times: List[str]
    start_date: date
    end_date: Optional[date] = None
    is_active: bool
    last_taken: Optional[datetime] = None
    notes: Optional[str] = None
    dismissed_reminders: List[DismissalResponse] = []


class DueItemResponse(BaseModel):
    """Today's due dose for one medication"""
    medication: MedicationResponse
    medication_id: int
    medicine_name: str
    dosage: Optional[str] = None
    due_time: datetime
    time_str: str
    status: str
    minutes_until: int


class DueSoonResponse(BaseModel):
    medication_id: int
    medicine_name: str
    dosage: str
    due_time: datetime
    time_str: str


class TrackerStats(BaseModel):
    """Dashboard counters"""
    adherence: int = Field(..., ge=0, le=100)
    expected_doses: int
    satisfied_doses: int
    window_days: int
    total_medications: int
    today_due_count: int


class DismissResult(BaseModel):
    success: bool = True
    added: bool
    message: str
    medication: MedicationResponse


class ImportResult(BaseModel):
    imported_count: int
    medications: List[MedicationResponse]


class DeleteResult(BaseModel):
    success: bool = True
    message: str


class TakenEventResponse(BaseModel):
    id: int
    medication_id: int
    taken_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CalendarAlarm(BaseModel):
    action: str
    minutes_before: int


class CalendarEventResponse(BaseModel):
    medication_id: int
    title: str
    description: str
    start: datetime
    duration_minutes: int
    alarms: List[CalendarAlarm]
    status: str
    busy_status: str


class CalendarExport(BaseModel):
    user_id: int
    generated_at: datetime
    days: int
    events: List[CalendarEventResponse]
