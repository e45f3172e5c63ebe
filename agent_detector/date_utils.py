"""Shared timestamp helpers for transcript parsing and session discovery."""
from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from pathlib import Path

# Fractional seconds; fromisoformat wants exactly microsecond precision.
_FRACTION_RE = re.compile(r"\.(\d+)")


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an RFC 3339 timestamp with fractional seconds and an offset.

    Returns None for empty, malformed, or offset-less values.
    """
    raw = (value or "").strip() if isinstance(value, str) else ""
    if not raw:
        return None
    raw = raw.replace("Z", "+00:00").replace("z", "+00:00")
    raw = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), raw, count=1)
    try:
        parsed = datetime.fromisoformat(raw)
    except (ValueError, TypeError):
        return None
    if parsed.tzinfo is None:
        return None
    return parsed


def file_modified_at(path: Path) -> datetime:
    """Return the filesystem modification time as an aware UTC datetime."""
    return datetime.fromtimestamp(float(path.stat().st_mtime), timezone.utc)


def cutoff_for(max_age: timedelta, now: datetime | None = None) -> datetime:
    reference = now or datetime.now(timezone.utc)
    return reference - max_age
