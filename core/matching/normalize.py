"""
Normalisation helpers for the match engine.

Text comparisons are case-insensitive and whitespace-tolerant. Numeric
guards reject values that would otherwise compare silently wrong (NaN,
booleans, numeric strings).
"""

import math
import re
from typing import Any, Optional

_WHITESPACE = re.compile(r"\s+")


def fold_text(value: Optional[str]) -> str:
    """Lower-case, trim and collapse internal whitespace."""
    if not value:
        return ""
    return _WHITESPACE.sub(" ", value.strip()).lower()


def is_blank(value: Optional[str]) -> bool:
    """True when a text constraint carries nothing to match on."""
    return not fold_text(value)


def same_state(listing_state: Optional[str], criteria_state: str) -> bool:
    """Case-insensitive exact match of region codes."""
    return fold_text(listing_state) == fold_text(criteria_state)


def city_contains(listing_city: Optional[str], criteria_city: str) -> bool:
    """
    Case-insensitive substring match.

    The criteria city must appear within the listing city, so "bos"
    matches "Boston" and "Boston" matches "South Boston".
    """
    needle = fold_text(criteria_city)
    haystack = fold_text(listing_city)
    if not haystack:
        return False
    return needle in haystack


def normalise_zip(value: Optional[str]) -> str:
    """Trim a postal code and drop a ZIP+4 suffix."""
    if not value:
        return ""
    return value.strip().split("-")[0]


def is_number(value: Any) -> bool:
    """True for finite int/float values; bool is not a number here."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    if isinstance(value, float):
        return math.isfinite(value)
    return False


def check_number(
    value: Any,
    field_name: str,
    required: bool = False,
    non_negative: bool = True,
) -> Optional[str]:
    """
    Validate a numeric field.

    Returns an error message, or None when the value is acceptable.
    None passes unless the field is required.
    """
    if value is None:
        return f"{field_name} is required" if required else None
    if not is_number(value):
        return f"{field_name} must be a finite number, got {value!r}"
    if non_negative and value < 0:
        return f"{field_name} cannot be negative"
    return None

