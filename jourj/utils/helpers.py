"""
Clock-time helpers shared by the timeline, the planning view and the dashboard
"""
import math
from datetime import date, datetime, time as dt_time
from typing import Optional

MINUTES_PER_DAY = 24 * 60
MS_PER_DAY = 1000 * 60 * 60 * 24


def parse_time(value: str) -> tuple[int, int]:
    """Split "HH:MM" or "HH:MM:SS" into (hours, minutes). Seconds are ignored."""
    parts = value.split(":")
    if len(parts) not in (2, 3):
        raise ValueError(f"Invalid time: {value!r}")
    return int(parts[0]), int(parts[1])


def to_minutes(value: str) -> int:
    hours, minutes = parse_time(value)
    return hours * 60 + minutes


def from_minutes(total: int) -> str:
    """Format minutes-since-midnight as HH:MM, wrapping past midnight"""
    total %= MINUTES_PER_DAY
    return f"{total // 60:02d}:{total % 60:02d}"


def format_time(value: str) -> str:
    """08:00:00 -> 08:00"""
    return value[:5]


def calculate_end_time(start: str, duration: int) -> str:
    """
    End of a slot starting at `start` lasting `duration` minutes.
    Wraps modulo 24h: "23:30" + 90 -> "01:00".
    """
    return from_minutes(to_minutes(start) + duration)


def format_time_range(start: str, duration: int) -> str:
    return f"{format_time(start)} - {calculate_end_time(start, duration)}"


def format_duration(minutes: int) -> str:
    """90 -> "1h30", 120 -> "2h", 45 -> "45min" """
    hours, mins = divmod(minutes, 60)
    if hours > 0:
        return f"{hours}h{mins if mins > 0 else ''}"
    return f"{mins}min"


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def percentage(part: int, total: int) -> int:
    """round(100 * part / total), 0 when total is 0"""
    if total <= 0:
        return 0
    return round_half_up(part * 100 / total)


def days_until(event_date: Optional[date], now: Optional[datetime] = None) -> int:
    """Whole days left before the event (ceil), never negative"""
    if event_date is None:
        return 0
    now = now or datetime.now()
    event_start = datetime.combine(event_date, dt_time.min)
    diff_ms = (event_start - now).total_seconds() * 1000
    return max(0, math.ceil(diff_ms / MS_PER_DAY))
