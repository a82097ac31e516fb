from __future__ import annotations

from datetime import datetime, timedelta
import re
from zoneinfo import ZoneInfo

from actionagent.router.intent_router import normalize_text

DEFAULT_START_HOUR = 10
DEFAULT_DURATION_HOURS = 1
BUSINESS_DAY_START_HOUR = 9
BUSINESS_DAY_END_HOUR = 18

_WEEKDAYS = {
    "lunes": 0,
    "martes": 1,
    "miercoles": 2,
    "jueves": 3,
    "viernes": 4,
    "sabado": 5,
    "domingo": 6,
}

_SAME_DAY_PATTERN = re.compile(r"\b(hoy|esta tarde|esta noche|esta manana)\b")
_TOMORROW_PATTERN = re.compile(r"(?<!esta )(?<!la )\bmanana\b")
_DAY_AFTER_TOMORROW_PATTERN = re.compile(r"\bpasado manana\b")
_HOUR_PATTERN = re.compile(
    r"\ba (?:la|las) (\d{1,2})(?:[:.](\d{2}))?(?:\s*(am|pm|a\.m\.|p\.m\.))?"
)
_DURATION_PATTERN = re.compile(r"\bdurante (\d{1,2}) horas?\b")
_AFTERNOON_PATTERN = re.compile(r"\bde la (tarde|noche)\b")


def has_same_day_marker(text: str) -> bool:
    return bool(_SAME_DAY_PATTERN.search(normalize_text(text)))


def has_date_reference(text: str) -> bool:
    normalized = normalize_text(text)
    if _SAME_DAY_PATTERN.search(normalized) or _TOMORROW_PATTERN.search(normalized):
        return True
    if _DAY_AFTER_TOMORROW_PATTERN.search(normalized):
        return True
    if _HOUR_PATTERN.search(normalized):
        return True
    return any(re.search(rf"\b{day}\b", normalized) for day in _WEEKDAYS)


def interpret_date_reference(text: str, now: datetime) -> tuple[datetime, datetime]:
    """Derive a (start, end) pair from Spanish day/time phrases.

    Recognises "hoy", "mañana", "pasado mañana", weekday names (next
    occurrence, never today), "a las N[:MM]" with optional am/pm or
    "de la tarde"/"de la noche", and "durante N horas". Anything missing falls
    back to 10:00 with a one-hour duration. When no day is named and that time
    has already passed today, the next day is used.
    """
    normalized = normalize_text(text)
    day = now.replace(hour=0, minute=0, second=0, microsecond=0)
    day_named = True

    if _DAY_AFTER_TOMORROW_PATTERN.search(normalized):
        day += timedelta(days=2)
    elif _TOMORROW_PATTERN.search(normalized):
        day += timedelta(days=1)
    else:
        weekday = _first_weekday(normalized)
        if weekday is not None:
            days_ahead = (weekday - now.weekday()) % 7 or 7
            day += timedelta(days=days_ahead)
        else:
            day_named = bool(_SAME_DAY_PATTERN.search(normalized))

    hour, minute = DEFAULT_START_HOUR, 0
    hour_match = _HOUR_PATTERN.search(normalized)
    if hour_match:
        hour = int(hour_match.group(1))
        minute = int(hour_match.group(2) or 0)
        meridiem = (hour_match.group(3) or "").replace(".", "")
        if hour < 12 and (meridiem == "pm" or _AFTERNOON_PATTERN.search(normalized)):
            hour += 12
        if meridiem == "am" and hour == 12:
            hour = 0
        hour = min(hour, 23)
        minute = min(minute, 59)

    duration = DEFAULT_DURATION_HOURS
    duration_match = _DURATION_PATTERN.search(normalized)
    if duration_match:
        duration = max(1, int(duration_match.group(1)))

    start = day.replace(hour=hour, minute=minute)
    # A bare time that already passed today means the next day.
    if not day_named and start <= now:
        start += timedelta(days=1)
    return start, start + timedelta(hours=duration)


def _first_weekday(normalized: str) -> int | None:
    best: tuple[int, int] | None = None
    for name, index in _WEEKDAYS.items():
        match = re.search(rf"\b{name}\b", normalized)
        if match and (best is None or match.start() < best[0]):
            best = (match.start(), index)
    return best[1] if best else None


def parse_iso_datetime(value: object, timezone_name: str | None = None) -> datetime | None:
    """Parse an ISO-8601 string into a naive wall-clock datetime.

    Offset-aware values are converted to ``timezone_name`` (when given) before
    the offset is dropped.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        raw = value.strip()
        if raw.endswith(("Z", "z")):
            raw = raw[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is not None:
        if timezone_name:
            parsed = parsed.astimezone(ZoneInfo(timezone_name))
        parsed = parsed.replace(tzinfo=None)
    return parsed


def next_business_hour(now: datetime) -> datetime:
    candidate = now.replace(minute=0, second=0, microsecond=0) + timedelta(hours=1)
    if candidate.hour < BUSINESS_DAY_START_HOUR:
        candidate = candidate.replace(hour=BUSINESS_DAY_START_HOUR)
    elif candidate.hour >= BUSINESS_DAY_END_HOUR:
        candidate = (candidate + timedelta(days=1)).replace(hour=BUSINESS_DAY_START_HOUR)
    while candidate.weekday() >= 5:
        candidate += timedelta(days=1)
    return candidate


def local_now(timezone_name: str) -> datetime:
    return datetime.now(ZoneInfo(timezone_name)).replace(tzinfo=None)
