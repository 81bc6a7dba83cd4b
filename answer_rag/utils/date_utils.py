"""Date and time utility functions."""

from datetime import datetime, UTC
from typing import Optional


def format_timestamp(dt: datetime, include_microseconds: bool = True) -> str:
    """Format datetime to ISO string."""
    if include_microseconds:
        return dt.isoformat()
    return dt.replace(microsecond=0).isoformat()


def parse_timestamp(timestamp_str: str) -> datetime:
    """Parse ISO timestamp string to a timezone-aware datetime."""
    try:
        parsed = datetime.fromisoformat(timestamp_str.replace('Z', '+00:00'))
    except ValueError:
        formats = [
            '%Y-%m-%dT%H:%M:%S.%f',
            '%Y-%m-%dT%H:%M:%S',
            '%Y-%m-%d %H:%M:%S.%f',
            '%Y-%m-%d %H:%M:%S',
            '%Y-%m-%d',
        ]
        for fmt in formats:
            try:
                parsed = datetime.strptime(timestamp_str, fmt)
                break
            except ValueError:
                continue
        else:
            raise ValueError(f"Unable to parse timestamp: {timestamp_str}")

    # Naive timestamps are stored in UTC
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def parse_optional_timestamp(timestamp_str: Optional[str]) -> Optional[datetime]:
    return parse_timestamp(timestamp_str) if timestamp_str else None
