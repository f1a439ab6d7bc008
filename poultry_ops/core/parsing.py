"""
Parsing of loosely typed values read from the realtime database.
"""
import math
from typing import Any, Optional


def parse_bool(value: Any) -> bool:
    """
    Parse a boolean-like flag written by the firmware or the dashboard.

    Accepted true values are True, "true", 1 and "1". Every other value,
    including None and "TRUE", is False.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value == 1
    if isinstance(value, str):
        return value in ("true", "1")
    return False


def parse_number(value: Any) -> Optional[float]:
    """
    Coerce a reading to a float.

    Numbers and numeric strings are accepted. Booleans, NaN, infinities,
    empty strings and anything else return None.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None

    if math.isnan(number) or math.isinf(number):
        return None
    return number


def parse_optional_bool(value: Any) -> Optional[bool]:
    """Like parse_bool but keeps None for a missing value."""
    if value is None:
        return None
    return parse_bool(value)
