from __future__ import annotations

from datetime import datetime, time
from typing import Union
from zoneinfo import ZoneInfo

from .errors import TimeCalculationError

DEFAULT_TIMEZONE = "Asia/Jakarta"
DEFAULT_CUTOFF = time(13, 30)

Timestamp = Union[datetime, int, float]


def should_refresh(
    now: datetime,
    last_fetch: Timestamp,
    cutoff: time = DEFAULT_CUTOFF,
    timezone_name: str = DEFAULT_TIMEZONE,
) -> bool:
    """Return True once per day: after today's cutoff, if the last fetch predates it.

    Everything is compared in ``timezone_name`` so the daily boundary does not
    depend on the host clock's zone. Failures raise ``TimeCalculationError``.
    """
    tz = _load_zone(timezone_name)
    local_now = _to_zone(now, tz)
    cutoff_today = cutoff_instant(local_now, cutoff, timezone_name)
    local_last = _to_zone(last_fetch, tz)

    try:
        return local_now > cutoff_today and local_last < cutoff_today
    except TypeError as exc:
        raise TimeCalculationError(f"cannot compare fetch times: {exc}") from exc


def cutoff_instant(now: datetime, cutoff: time = DEFAULT_CUTOFF, timezone_name: str = DEFAULT_TIMEZONE) -> datetime:
    tz = _load_zone(timezone_name)
    local_now = _to_zone(now, tz)
    try:
        return datetime.combine(local_now.date(), cutoff.replace(tzinfo=None), tzinfo=tz)
    except (TypeError, ValueError) as exc:
        raise TimeCalculationError(f"invalid cutoff time: {cutoff!r}") from exc


def parse_cutoff(raw: str) -> time:
    try:
        hour_text, minute_text = raw.strip().split(":", 1)
        return time(int(hour_text), int(minute_text))
    except ValueError as exc:
        raise TimeCalculationError(f"cutoff must be HH:MM, got {raw!r}") from exc


def _load_zone(timezone_name: str) -> ZoneInfo:
    try:
        return ZoneInfo(timezone_name)
    except Exception as exc:
        raise TimeCalculationError(f"invalid timezone: {timezone_name}") from exc


def _to_zone(value: Timestamp, tz: ZoneInfo) -> datetime:
    if isinstance(value, datetime):
        if value.tzinfo is None or value.utcoffset() is None:
            raise TimeCalculationError("naive datetimes are not allowed")
        return value.astimezone(tz)

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TimeCalculationError(f"unsupported timestamp: {value!r}")

    try:
        return datetime.fromtimestamp(value, tz=tz)
    except (OverflowError, OSError, ValueError) as exc:
        raise TimeCalculationError(f"timestamp out of range: {value!r}") from exc
