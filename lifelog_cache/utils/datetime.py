from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

API_DATE_FMT = "%Y-%m-%d"
API_DATETIME_FMT = "%Y-%m-%d %H:%M:%S"

_TZ_WITHOUT_COLON_RE = re.compile(r"([+-]\d{2})(\d{2})$")
_EXCESS_MICROS_RE = re.compile(r"(\.\d{6})\d+")


def _normalize_datetime_string(value: str) -> str:
    normalized = value.strip()
    if normalized.endswith(("Z", "z")):
        normalized = f"{normalized[:-1]}+00:00"
    normalized = normalized.replace(" UTC", "+00:00")
    normalized = normalized.replace(" GMT", "+00:00")

    if _TZ_WITHOUT_COLON_RE.search(normalized):
        normalized = _TZ_WITHOUT_COLON_RE.sub(r"\1:\2", normalized)

    # fromisoformat stops at microseconds; the provider sometimes sends nanoseconds.
    normalized = _EXCESS_MICROS_RE.sub(r"\1", normalized)
    return normalized


def parse_datetime(value: str) -> datetime | None:
    if not isinstance(value, str):
        return None

    normalized = _normalize_datetime_string(value)
    candidates = [normalized]
    if " " in normalized:
        candidates.append(normalized.replace(" ", "T", 1))

    for candidate in candidates:
        try:
            return datetime.fromisoformat(candidate)
        except ValueError:
            continue
    return None


def parse_date(value: str) -> date | None:
    if not isinstance(value, str):
        return None
    try:
        return datetime.strptime(value.strip(), API_DATE_FMT).date()
    except ValueError:
        return None


def get_zone(name: str | None) -> ZoneInfo | None:
    try:
        return ZoneInfo(name or "UTC")
    except (ZoneInfoNotFoundError, ValueError):
        return None


def ensure_aware(value: datetime, tz: timezone | ZoneInfo = timezone.utc) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value


def day_bounds(day: date, tz: timezone | ZoneInfo = timezone.utc) -> tuple[datetime, datetime]:
    """Return the first and last instant of ``day`` in ``tz``; both bounds are inclusive."""
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day, time.max, tzinfo=tz)
    return start, end


def format_api_datetime(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime(API_DATETIME_FMT)


def retention_cutoff(reference: datetime, *, window: timedelta) -> datetime:
    return ensure_aware(reference) - window
