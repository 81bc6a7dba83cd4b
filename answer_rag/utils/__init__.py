"""Utility functions and helpers."""

from .async_utils import Deadline, backoff_delay, run_with_timeout
from .date_utils import format_timestamp, parse_timestamp
from .validation import parse_numeric_id

__all__ = [
    "Deadline",
    "backoff_delay",
    "run_with_timeout",
    "format_timestamp",
    "parse_timestamp",
    "parse_numeric_id",
]
