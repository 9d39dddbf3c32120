"""
Actions Module
Background reminder scanning
"""

from .reminder_scanner import (
    ScannerState,
    ScanReport,
    ReminderScanner,
    log_delivery,
    reminder_scanner
)


__all__ = [
    "ScannerState",
    "ScanReport",
    "ReminderScanner",
    "log_delivery",
    "reminder_scanner"
]
