"""
Configuration management for PillTrack
"""

from typing import Optional
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    APP_NAME: str = "PillTrack"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENV: str = "development"

    # API
    API_PREFIX: str = "/api/v1"
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Database
    DATABASE_URL: str = "sqlite:///./pilltrack.db"
    DATABASE_ECHO: bool = False

    # Background reminder scanner
    SCANNER_ENABLED: bool = True
    SCANNER_INTERVAL_MINUTES: int = 5
    SCANNER_MAX_MEDICATIONS_PER_USER: int = 200
    REMINDER_LOOKAHEAD_MINUTES: int = 15

    # "Due now" surfacing window around the due time
    DUE_NOW_BEFORE_MINUTES: int = 15
    DUE_NOW_AFTER_MINUTES: int = 30

    # Adherence and export horizons
    ADHERENCE_WINDOW_DAYS: int = 7
    CALENDAR_EXPORT_DAYS: int = 30

    # CORS
    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # Optional default timezone label shown to clients; all calculations use local server time
    DISPLAY_TIMEZONE: Optional[str] = None

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


class TrackerConfig:
    """Fixed constants for schedule resolution and export"""

    FREQUENCIES: list[str] = [
        "daily", "twice-daily", "thrice-daily", "weekly", "as-needed"
    ]
    DEFAULT_FREQUENCY: str = "daily"

    # Display fallbacks when the catalog entry is gone
    FALLBACK_MEDICINE_NAME: str = "Unknown Medicine"
    CALENDAR_FALLBACK_NAME: str = "Medication"
    CALENDAR_FALLBACK_DOSAGE: str = "As prescribed"

    # Calendar export
    CALENDAR_EVENT_DURATION_MINUTES: int = 15
    CALENDAR_ALARM_OFFSETS_MINUTES: list[int] = [15, 5]

    # Prescription import
    IMPORT_DEFAULT_FREQUENCY: str = "as-needed"
    IMPORT_CATALOG_DESCRIPTION: str = "Imported from prescription"
    # Placeholder times for imported entries without explicit times; such entries start paused
    IMPORT_DEFAULT_TIMES: dict[str, list[str]] = {
        "daily": ["08:00"],
        "twice-daily": ["08:00", "20:00"],
        "thrice-daily": ["08:00", "14:00", "20:00"],
        "weekly": ["08:00"],
        "as-needed": ["08:00"],
    }


# Database table names
class TableNames:
    USERS = "users"
    CATALOG_MEDICINES = "catalog_medicines"
    MEDICATIONS = "medications"
    DISMISSED_REMINDERS = "dismissed_reminders"
    TAKEN_EVENTS = "taken_events"


settings = get_settings()
tracker_config = TrackerConfig()
