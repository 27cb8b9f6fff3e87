"""Duration and date normalization for heterogeneous upstream formats."""

import re
import time
from datetime import datetime, timezone

_DURATION_RE = re.compile(r"PT(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?")

_RELATIVE_RE = re.compile(
    r"^(\d+)\s+(second|minute|hour|day|week|month|year)s?\s+ago$",
    re.IGNORECASE,
)

# Approximate: months are 30 days, years 365 days.
_UNIT_SECONDS = {
    "second": 1,
    "minute": 60,
    "hour": 3600,
    "day": 86400,
    "week": 7 * 86400,
    "month": 30 * 86400,
    "year": 365 * 86400,
}

_SENTINELS = {"", "unknown", "n/a"}

_DATE_PREFIXES = ("premiered ", "streamed live on ", "published on ", "streamed ")

_ABSOLUTE_FORMATS = (
    "%Y%m%d",  # yt-dlp upload_date
    "%b %d, %Y",
    "%B %d, %Y",
    "%d %b %Y",
    "%Y/%m/%d",
)

_WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


def parse_duration(text: str | None) -> int:
    """Parse an ISO 8601 duration (e.g. 'PT1H5M10S') to total seconds.

    Missing components count as zero; anything that does not match
    yields 0 rather than raising.
    """
    if not text:
        return 0
    match = _DURATION_RE.search(text)
    if not match:
        return 0
    hours, minutes, seconds = (int(g or 0) for g in match.groups())
    return hours * 3600 + minutes * 60 + seconds


def parse_date_to_instant(text: str | None, now: float | None = None) -> float:
    """Convert an absolute or relative date string to epoch seconds.

    Accepts ISO 8601 timestamps and dates, yt-dlp's YYYYMMDD, display dates
    like 'Jan 5, 2024' and relative strings like '3 weeks ago'. Returns 0.0
    for empty, sentinel ('Unknown', 'N/A') or unparseable input, so unknown
    dates sort before every real one.
    """
    if text is None:
        return 0.0
    cleaned = text.strip()
    if cleaned.lower() in _SENTINELS:
        return 0.0

    lowered = cleaned.lower()
    for prefix in _DATE_PREFIXES:
        if lowered.startswith(prefix):
            cleaned = cleaned[len(prefix):].strip()
            break

    relative = _RELATIVE_RE.match(cleaned)
    if relative:
        amount = int(relative.group(1))
        unit = relative.group(2).lower()
        reference = time.time() if now is None else now
        return reference - amount * _UNIT_SECONDS[unit]

    parsed = _parse_absolute(cleaned)
    if parsed is None:
        return 0.0
    return parsed.timestamp()


def _parse_absolute(text: str) -> datetime | None:
    """Parse an absolute date string; naive values are taken as UTC."""
    iso = text[:-1] + "+00:00" if text.endswith("Z") else text
    try:
        parsed = datetime.fromisoformat(iso)
    except ValueError:
        parsed = None

    if parsed is None:
        for fmt in _ABSOLUTE_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue

    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_clock(seconds: int) -> str:
    """Format seconds as 'm:ss' (minutes are not wrapped into hours)."""
    minutes, secs = divmod(max(0, int(seconds)), 60)
    return f"{minutes}:{secs:02d}"


def day_of_week(instant: float) -> str:
    """Weekday name (UTC) for an instant, or 'Unknown' when the instant is 0."""
    if not instant:
        return "Unknown"
    return _WEEKDAYS[datetime.fromtimestamp(instant, tz=timezone.utc).weekday()]


def time_posted(timestamp: float | None) -> str:
    """'HH:MM UTC' for an exact upload timestamp, 'Unknown' otherwise."""
    if not timestamp:
        return "Unknown"
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%H:%M UTC")


def to_iso_date(upload_date: str | None) -> str:
    """Convert yt-dlp's YYYYMMDD to YYYY-MM-DD; other values pass through."""
    if upload_date and re.fullmatch(r"\d{8}", upload_date):
        return f"{upload_date[:4]}-{upload_date[4:6]}-{upload_date[6:]}"
    return upload_date or ""
