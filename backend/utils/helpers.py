"""
SmartParking - Helper Functions
Utility functions used across the application.
"""

from typing import Optional, Any, Dict
import math
import re
from datetime import datetime, timezone, date, time


def utcnow() -> datetime:
    """Server-side 'now', timezone-aware UTC."""
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Normalize a datetime to aware UTC.
    Naive values are interpreted as UTC (Firestore returns aware ones).
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def start_of_day(day: date) -> datetime:
    """Midnight UTC at the beginning of `day`."""
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def to_json_safe(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Convert Firestore timestamps of a document into ISO strings.
    Nested dictionaries are converted too.
    """
    safe = {}
    for key, value in data.items():
        if isinstance(value, dict):
            safe[key] = to_json_safe(value)
        elif hasattr(value, "isoformat"):
            safe[key] = value.isoformat()
        else:
            safe[key] = value
    return safe


def calculate_duration_minutes(start: datetime, end: datetime) -> int:
    """Whole minutes elapsed between two datetimes, never negative."""
    delta = ensure_utc(end) - ensure_utc(start)
    return max(0, int(delta.total_seconds() // 60))


def compute_parking_amount(
    duration_minutes: int,
    hourly_rate: float,
    grace_period_minutes: int = 0
) -> float:
    """
    Compute the parking fee for a stay.

    Stays within the grace period are free; otherwise every started hour
    is billed at `hourly_rate`.

    Args:
        duration_minutes: Length of the stay
        hourly_rate: Price of one hour
        grace_period_minutes: Free minutes

    Returns:
        float: Amount rounded to 2 decimals
    """
    if duration_minutes <= grace_period_minutes:
        return 0.0

    hours = math.ceil(duration_minutes / 60)
    return round(hours * hourly_rate, 2)


def format_duration(minutes: int) -> str:
    """
    Format duration in minutes to human-readable string.

    Args:
        minutes: Duration in minutes

    Returns:
        str: Human-readable duration (e.g., "2 hours 30 minutes")
    """
    if minutes < 60:
        return f"{minutes} minute{'s' if minutes != 1 else ''}"

    hours = minutes // 60
    remaining_minutes = minutes % 60

    parts = []
    if hours > 0:
        parts.append(f"{hours} hour{'s' if hours != 1 else ''}")
    if remaining_minutes > 0:
        parts.append(f"{remaining_minutes} minute{'s' if remaining_minutes != 1 else ''}")

    return " ".join(parts)


def generate_space_number(index: int, per_row: int = 10) -> str:
    """
    Generate a space number from a zero-based index.

    Rows are lettered, positions numbered from 1: 0 -> A1, 9 -> A10, 10 -> B1.
    """
    row = chr(ord("A") + index // per_row)
    return f"{row}{index % per_row + 1}"


def zone_for_space(number: str) -> str:
    """Zone name derived from the row letter of a space number."""
    return f"Zone {number[0].upper()}" if number else "Zone A"


# Letters and digits, with single inner blanks or hyphens
PLATE_PATTERN = re.compile(r"^[A-Z0-9]+(?:[ -][A-Z0-9]+)*$")


def is_valid_license_plate(plate: str) -> bool:
    """Check an upper-cased plate: 2 to 15 characters matching PLATE_PATTERN."""
    if not plate or not 2 <= len(plate) <= 15:
        return False
    return PLATE_PATTERN.match(plate) is not None


def normalize_plate(plate: str) -> str:
    """
    Canonical form of a license plate: upper-case, blanks collapsed.
    Used by every model that accepts a plate from a request.

    Raises:
        ValueError: If the plate contains other characters
    """
    normalized = " ".join(plate.upper().split())
    if not is_valid_license_plate(normalized):
        raise ValueError(f"Plaque invalide: {plate!r}")
    return normalized
