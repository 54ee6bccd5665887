"""
Input validation utilities
"""
import re
from typing import Optional

TIME_PATTERN = re.compile(r"^(\d{2}):(\d{2})(?::(\d{2}))?$")

PRIORITIES = ("low", "medium", "high")
TIMELINE_STATUSES = ("scheduled", "in_progress", "completed", "delayed")
TASK_STATUSES = ("pending", "in_progress", "completed")
DOCUMENT_SOURCES = ("google_drive", "manual", "other")
USER_TYPES = ("person", "vendor")


def validate_time_string(value: str) -> str:
    """Accept 24h HH:MM or HH:MM:SS"""
    match = TIME_PATTERN.match(value or "")
    if not match:
        raise ValueError("Time must be formatted HH:MM")
    hours, minutes = int(match.group(1)), int(match.group(2))
    seconds = int(match.group(3) or 0)
    if hours > 23 or minutes > 59 or seconds > 59:
        raise ValueError("Time must be a valid 24h clock value")
    return value


def validate_duration(minutes: int) -> int:
    if minutes < 1:
        raise ValueError("Duration must be at least 1 minute")
    return minutes


def validate_choice(value: str, choices: tuple, field: str) -> str:
    if value not in choices:
        raise ValueError(f"Invalid {field}. Must be one of: {', '.join(choices)}")
    return value


def validate_title(value: str) -> str:
    if not value or not value.strip():
        raise ValueError("Title is required")
    return value.strip()


def blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    return value
