"""
Tests for candidate slot generation.
"""

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from booking_core.application.utils.slots import (
    generate_time_slots,
    parse_slot_time,
    slot_overlaps,
    slot_start_instant,
)

SAST = ZoneInfo("Africa/Johannesburg")


def _starts(slots):
    return [s.start_time for s in slots]


def test_today_drops_elapsed_starts(now):
    """09:00 UTC is 11:00 in Johannesburg, so 11:00 itself is dropped."""
    slots = generate_time_slots(date(2026, 3, 10), 60, now, timezone=SAST)

    assert _starts(slots)[0] == "11:30"
    assert all(parse_slot_time(s.start_time) > time(11, 0) for s in slots)


def test_today_compares_to_the_minute():
    now = datetime(2026, 3, 10, 9, 0, 30, tzinfo=timezone.utc)
    slots = generate_time_slots(date(2026, 3, 10), 60, now, timezone=SAST)

    assert "11:00" not in _starts(slots)
    assert _starts(slots)[0] == "11:30"


def test_future_day_ignores_current_time(now):
    slots = generate_time_slots(date(2026, 3, 11), 60, now, timezone=SAST)

    assert _starts(slots)[0] == "08:00"
    assert _starts(slots)[-1] == "17:00"
    assert len(slots) == 19
    assert all(s.available for s in slots)


def test_today_is_judged_in_provider_timezone():
    """16:30 UTC is already past closing in Johannesburg."""
    now = datetime(2026, 3, 10, 16, 30, tzinfo=timezone.utc)

    assert generate_time_slots(date(2026, 3, 10), 60, now, timezone=SAST) == []


def test_early_morning_utc_is_next_day_locally():
    now = datetime(2026, 3, 10, 23, 30, tzinfo=timezone.utc)
    slots = generate_time_slots(date(2026, 3, 11), 60, now, timezone=SAST)

    assert _starts(slots)[0] == "08:00"


@pytest.mark.parametrize("duration", [30, 45, 60, 90, 180, 240, 600])
def test_no_slot_runs_past_closing(now, duration):
    slots = generate_time_slots(date(2026, 3, 12), duration, now, timezone=SAST)

    assert slots
    for slot in slots:
        start = parse_slot_time(slot.start_time)
        assert start.hour * 60 + start.minute + duration <= 18 * 60


def test_duration_longer_than_window_yields_nothing(now):
    assert generate_time_slots(date(2026, 3, 12), 601, now, timezone=SAST) == []
    assert _starts(generate_time_slots(date(2026, 3, 12), 600, now, timezone=SAST)) == ["08:00"]


def test_custom_window_and_step(now):
    slots = generate_time_slots(
        date(2026, 3, 12),
        60,
        now,
        timezone=SAST,
        open_time=time(9),
        close_time=time(12),
        step_minutes=60,
    )

    assert _starts(slots) == ["09:00", "10:00", "11:00"]


@pytest.mark.parametrize("duration,step", [(0, 30), (-30, 30), (60, 0)])
def test_non_positive_duration_or_step_rejected(now, duration, step):
    with pytest.raises(ValueError):
        generate_time_slots(date(2026, 3, 12), duration, now, timezone=SAST, step_minutes=step)


def test_slot_start_instant_uses_provider_timezone():
    start = slot_start_instant(date(2026, 3, 11), "11:00", SAST)

    assert start == datetime(2026, 3, 11, 9, 0, tzinfo=timezone.utc)


def test_parse_slot_time_rejects_garbage():
    with pytest.raises(ValueError):
        parse_slot_time("9am")


def test_adjacent_slots_do_not_overlap(now):
    busy_start = now
    busy_end = now + timedelta(hours=2)

    assert not slot_overlaps(now - timedelta(hours=1), 60, busy_start, busy_end)
    assert not slot_overlaps(busy_end, 60, busy_start, busy_end)
    assert slot_overlaps(now - timedelta(minutes=30), 60, busy_start, busy_end)
    assert slot_overlaps(now + timedelta(minutes=30), 30, busy_start, busy_end)
