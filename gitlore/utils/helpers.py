"""Utility helper functions"""

import re
from datetime import UTC, datetime
from typing import Optional

SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")

RFC3339_PATTERN = re.compile(
    r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?(Z|[+-]\d{2}:\d{2})"
)


def truncate_string(text: str, max_length: int, suffix: str = "...") -> str:
    """
    Truncate string to maximum length

    The kept part is exactly ``max_length`` characters; the suffix is
    appended after it, so a truncated result is ``max_length + len(suffix)``
    long.

    Args:
        text: Text to truncate
        max_length: Number of characters to keep
        suffix: Suffix to add if truncated

    Returns:
        Truncated string
    """
    if len(text) <= max_length:
        return text

    return text[:max_length] + suffix


def human_size_from_kb(kb: int) -> str:
    """
    Format a size in kilobytes as a human-readable string

    Args:
        kb: Size in KB, as reported by GitHub

    Returns:
        e.g. "0 B", "512 KB", "1.5 MB"
    """
    size = float(kb) * 1024
    if size <= 0:
        return "0 B"

    index = 0
    while size >= 1024 and index < len(SIZE_UNITS) - 1:
        size /= 1024
        index += 1

    unit = SIZE_UNITS[index]
    if unit in ("B", "KB"):
        return f"{size:.0f} {unit}"
    return f"{size:.1f} {unit}"


def parse_timestamp(raw: object) -> Optional[datetime]:
    """
    Parse an RFC 3339 timestamp

    Only the full ``YYYY-MM-DDTHH:MM:SS[.fff](Z|+HH:MM)`` form is accepted;
    other ISO 8601 spellings such as basic format or missing offsets are
    rejected.

    Returns:
        Aware datetime, or None when the value does not parse
    """
    if not isinstance(raw, str):
        return None

    text = raw.strip()
    if not RFC3339_PATTERN.fullmatch(text):
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def format_timestamp(dt: datetime) -> str:
    """Format an aware datetime as RFC 3339 in UTC, second precision"""
    return dt.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")
