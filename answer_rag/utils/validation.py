"""Validation helpers for values read back from external stores."""

from typing import Any, Optional


def parse_numeric_id(value: Any) -> Optional[int]:
    """Parse an identity stored as an integer or a numeric string.

    Returns None for anything else (booleans, floats, opaque strings such as
    ``"question-12"``), so callers can skip the value without failing.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        if text.isascii() and text.isdigit():
            return int(text)
    return None
