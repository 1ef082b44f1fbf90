"""
SmartParking - Utilities Package
Helper functions, error types and background task schedulers.
"""

from utils.helpers import (
    utcnow,
    ensure_utc,
    to_json_safe,
    calculate_duration_minutes,
    compute_parking_amount,
    format_duration,
    generate_space_number,
    is_valid_license_plate,
    normalize_plate,
)
from utils.errors import QueryError

__all__ = [
    "utcnow",
    "ensure_utc",
    "to_json_safe",
    "calculate_duration_minutes",
    "compute_parking_amount",
    "format_duration",
    "generate_space_number",
    "is_valid_license_plate",
    "normalize_plate",
    "QueryError",
]
