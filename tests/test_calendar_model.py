from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, time, timezone

import pytest

from booking_engine.application.utils.calendar_model import (
    format_hhmm,
    local_datetime,
    operating_window,
    parse_hhmm,
    shop_local_now,
    slot_from_start,
    weekday_name,
)
from booking_engine.domain.entities.shop import OperatingHours
from booking_engine.domain.entities.time_slot import TimeSlot

from conftest import DAY


def test_open_weekday_gives_opening_window(shop):
    assert operating_window(shop, DAY) == TimeSlot(time(9, 0), time(17, 0))


def test_closed_weekday_has_no_window(shop):
    sunday = date(2030, 1, 6)
    assert weekday_name(sunday) == "Sunday"
    assert operating_window(shop, sunday) is None


def test_missing_weekday_entry_counts_as_closed(shop):
    shop = replace(shop, operating_hours=tuple(h for h in shop.operating_hours if h.day != "Monday"))
    assert operating_window(shop, DAY) is None


def test_closed_date_overrides_weekly_hours(shop):
    shop = replace(shop, closed_dates=frozenset({DAY}))
    assert operating_window(shop, DAY) is None


def test_close_before_open_counts_as_closed(shop):
    broken = OperatingHours(day="Monday", open=time(17, 0), close=time(9, 0))
    shop = replace(shop, operating_hours=(broken,))
    assert operating_window(shop, DAY) is None


def test_parse_and_format_hhmm():
    assert parse_hhmm("09:30") == time(9, 30)
    assert format_hhmm(time(16, 5)) == "16:05"
    with pytest.raises(ValueError):
        parse_hhmm("25:00")
    with pytest.raises(ValueError):
        parse_hhmm("nine")


def test_slot_from_start_rejects_overnight_and_empty_durations():
    assert slot_from_start(time(9, 0), 45) == TimeSlot(time(9, 0), time(9, 45))
    assert slot_from_start(time(23, 30), 60) is None
    assert slot_from_start(time(9, 0), 0) is None


def test_unknown_timezone_falls_back_to_utc(shop):
    shop = replace(shop, timezone="Not/AZone")
    now = datetime(2030, 1, 7, 8, 0, tzinfo=timezone.utc)
    assert shop_local_now(shop, now).utcoffset().total_seconds() == 0
    assert local_datetime(shop, DAY, time(9, 0)) == datetime(2030, 1, 7, 9, 0, tzinfo=timezone.utc)
