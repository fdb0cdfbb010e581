# ================================
# LOCATION & LABEL UTILITIES (utils/location_utils.py)
# ================================

import re
from typing import Any, Iterable, Optional

_WHITESPACE_RE = re.compile(r"\s+")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")
_DISTRICT_WORD_RE = re.compile(r"\bdistrict\b", re.IGNORECASE)

GROUP_STAY_TAG = "group stay"

# Hotel class vocabulary used by customers and admins
HOTEL_STAR_LABELS = {
    'basic': 1,
    'simple': 2,
    'moderate': 3,
    'high': 4,
    'luxury': 5,
}

def normalize_text(value: Optional[str]) -> Optional[str]:
    """
    Lower-case and collapse whitespace.

    Args:
        value: Free text (region name, tag, ...)

    Returns:
        Normalised text, or None when empty
    """
    if value is None:
        return None
    normalized = _WHITESPACE_RE.sub(" ", str(value)).strip().lower()
    return normalized or None

def normalize_type_key(value: Optional[str]) -> Optional[str]:
    """'Guest House' / 'GUEST_HOUSE' / 'guest-house' -> 'guest_house'"""
    if value is None:
        return None
    key = _NON_ALNUM_RE.sub("_", str(value).strip().lower()).strip("_")
    return key or None

def normalize_region(value: Optional[str]) -> Optional[str]:
    return normalize_text(value)

def normalize_district(value: Optional[str]) -> Optional[str]:
    """Drops the literal word 'district' ('Arusha District' == 'arusha')"""
    if value is None:
        return None
    return normalize_text(_DISTRICT_WORD_RE.sub(" ", str(value)))

def iter_capability_tags(services: Any) -> Iterable[str]:
    """
    Yield normalised capability tags from a property's services field.

    The field is a JSON list of strings in practice; dict entries ({"name": ...})
    and a comma separated string are tolerated for older records.
    """
    if not services:
        return
    if isinstance(services, str):
        entries = services.split(",")
    elif isinstance(services, dict):
        entries = [key for key, enabled in services.items() if enabled]
    else:
        entries = services

    for entry in entries:
        if isinstance(entry, dict):
            entry = entry.get("name") or entry.get("label") or entry.get("value")
        tag = normalize_text(entry) if isinstance(entry, str) else None
        if tag:
            yield tag

def has_capability_tag(services: Any, tag: str = GROUP_STAY_TAG) -> bool:
    wanted = normalize_text(tag)
    return any(found == wanted for found in iter_capability_tags(services))

def hotel_star_rating(label: Any) -> Optional[int]:
    """
    Map a hotel class label to 1..5.

    Accepts the label vocabulary ('basic'..'luxury') and numeric values 1-5.
    Returns None for missing or unknown labels.
    """
    if label is None or isinstance(label, bool):
        return None
    if isinstance(label, int):
        return label if 1 <= label <= 5 else None
    text = normalize_text(str(label))
    if not text:
        return None
    if text in HOTEL_STAR_LABELS:
        return HOTEL_STAR_LABELS[text]
    if text.isdigit():
        number = int(text)
        return number if 1 <= number <= 5 else None
    return None
