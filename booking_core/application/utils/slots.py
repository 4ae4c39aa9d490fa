from __future__ import annotations

from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from booking_core.domain.entities.booking import AvailabilitySlot

DEFAULT_OPEN = time(8, 0)
DEFAULT_CLOSE = time(18, 0)


def _minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def generate_time_slots(
    day: date,
    duration_minutes: int,
    now: datetime,
    *,
    timezone: ZoneInfo,
    open_time: time = DEFAULT_OPEN,
    close_time: time = DEFAULT_CLOSE,
    step_minutes: int = 30,
) -> list[AvailabilitySlot]:
    """Candidate start times for ``day`` in the provider's timezone.

    Candidates are proposals only: they are not checked against other bookings.
    When ``day`` is today in ``timezone``, starts at or before the current
    minute are dropped.
    """
    if duration_minutes <= 0:
        raise ValueError("duration_minutes must be positive")
    if step_minutes <= 0:
        raise ValueError("step_minutes must be positive")

    local_now = now.astimezone(timezone) if now.tzinfo else now.replace(tzinfo=timezone)
    now_minutes = local_now.hour * 60 + local_now.minute if local_now.date() == day else None

    open_minutes = _minutes(open_time)
    close_minutes = _minutes(close_time)

    slots: list[AvailabilitySlot] = []
    for start in range(open_minutes, close_minutes, step_minutes):
        if start + duration_minutes > close_minutes:
            break
        if now_minutes is not None and start <= now_minutes:
            continue
        hour, minute = divmod(start, 60)
        slots.append(AvailabilitySlot(start_time=f"{hour:02d}:{minute:02d}", available=True))

    return slots


def parse_slot_time(value: str) -> time:
    try:
        hour_text, minute_text = value.split(":")
        return time(int(hour_text), int(minute_text))
    except (ValueError, AttributeError) as e:
        raise ValueError(f"invalid slot time: {value!r}") from e


def slot_start_instant(day: date, start_time: str, timezone: ZoneInfo) -> datetime:
    """Absolute start instant for a slot picked on ``day`` in ``timezone``."""
    return datetime.combine(day, parse_slot_time(start_time), tzinfo=timezone)


def slot_overlaps(slot_start: datetime, duration_minutes: int, busy_start: datetime, busy_end: datetime) -> bool:
    slot_end = slot_start + timedelta(minutes=duration_minutes)
    return not (slot_end <= busy_start or slot_start >= busy_end)
