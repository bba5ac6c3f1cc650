"""
Profile Normalizer

Turns whatever the caller sent as a profile (partial, null, wrong types)
into a complete StudentProfile that is safe to score.

Never raises: a field that cannot be used is dropped, not rejected.
"""

import math
from typing import Any, Dict, List, Optional

from unibridge.schemas.schemas import StudentProfile

GPA_MIN = 0.0
GPA_MAX = 5.0


def _clean_text(value: Any) -> Optional[str]:
    """Trimmed string or None for blanks and non-strings."""
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def _clean_terms(value: Any) -> List[str]:
    """
    Lower-cased, trimmed, de-duplicated terms (first-seen order).
    Accepts a list of strings or a single comma-separated string.
    """
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, (list, tuple, set)):
        return []

    seen = []
    for item in value:
        if not isinstance(item, str):
            continue
        term = " ".join(item.lower().split())
        if term and term not in seen:
            seen.append(term)
    return seen


def _clean_gpa(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        gpa = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(gpa) or not GPA_MIN <= gpa <= GPA_MAX:
        return None
    return gpa


def normalize_profile(raw: Optional[Dict[str, Any]]) -> StudentProfile:
    """
    Coerce a caller-supplied profile into a complete StudentProfile.

    Args:
        raw: Partial profile dict (may be None or contain junk)

    Returns:
        StudentProfile with skills/interests always present
    """
    if not isinstance(raw, dict):
        raw = {}

    return StudentProfile(
        skills=_clean_terms(raw.get("skills")),
        interests=_clean_terms(raw.get("interests")),
        location=_clean_text(raw.get("location")),
        gpa=_clean_gpa(raw.get("gpa")),
        university=_clean_text(raw.get("university")),
        department=_clean_text(raw.get("department")),
        level=_clean_text(raw.get("level"))
    )
