import math
import os
import re
from datetime import date, datetime
from typing import Any, Optional

# Scores above this are percentages (e.g. 87 -> 0.87)
PERCENT_CUTOFF = 1.5

MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}


def parse_date_of_birth(value: Optional[str]) -> Optional[date]:
    """
    Parse a date of birth as read off a document

    Accepts ISO dates (optionally with a time part), dd/MM/yyyy and
    d MMM yyyy. Returns None for anything else.
    """
    if not value:
        return None
    text = value.strip()

    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass

    parts = text.split("/")
    if len(parts) == 3:
        try:
            day, month, year = (int(p) for p in parts)
            return date(year, month, day)
        except ValueError:
            return None

    parts = re.split(r"\s+", text)
    if len(parts) == 3:
        month = MONTHS.get(parts[1][:3].lower())
        if month is None:
            return None
        try:
            return date(int(parts[2]), month, int(parts[0]))
        except ValueError:
            return None

    return None


def normalize_score(value: Any) -> float:
    """
    Coerce a score to 0..1

    Values above PERCENT_CUTOFF are read as percentages; a small overshoot
    above 1 is clamped. NaN and infinities count as 0.
    """
    if value is None:
        return 0.0
    v = float(value)
    if not math.isfinite(v):
        return 0.0
    if v > PERCENT_CUTOFF:
        v = v / 100.0
    return max(0.0, min(1.0, v))


def mask_name(name: Optional[str]) -> Optional[str]:
    """Mask name showing only first character and last name"""
    if not name:
        return None
    parts = name.strip().split()
    if not parts:
        return None
    if len(parts) == 1:
        return f"{parts[0][0]}XXXX"
    return f"{parts[0][0]}XXXX {parts[-1]}"


def mask_id_number(id_number: Optional[str]) -> Optional[str]:
    """Mask ID number showing only the last 4 characters"""
    if not id_number:
        return None
    clean = id_number.replace(" ", "")
    if len(clean) <= 4:
        return "XXXX"
    return f"{'X' * (len(clean) - 4)}{clean[-4:]}"


def get_file_extension(filename: str) -> str:
    """Get file extension from filename"""
    return os.path.splitext(filename)[1].lower()
