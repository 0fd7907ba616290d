from __future__ import annotations

from datetime import date, datetime, time
from zoneinfo import ZoneInfo

from booking_engine.domain.entities.shop import WEEKDAYS, Shop
from booking_engine.domain.entities.time_slot import TimeSlot


def parse_hhmm(value: str) -> time:
    """Parse a 24h "HH:MM" string."""
    try:
        hours, minutes = value.strip().split(":")
        return time(int(hours), int(minutes))
    except (ValueError, AttributeError) as e:
        raise ValueError(f"Invalid time {value!r}, expected HH:MM") from e


def format_hhmm(value: time) -> str:
    return value.strftime("%H:%M")


def minutes_to_time(minutes: int) -> time:
    return time(minutes // 60, minutes % 60)


def time_to_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def weekday_name(day: date) -> str:
    return WEEKDAYS[day.weekday()]


def operating_window(shop: Shop, day: date) -> TimeSlot | None:
    """
    Opening window of `shop` on `day`, or None when the shop does not open.

    Closed weekdays, weekdays without an entry, dates listed in
    `shop.closed_dates` and malformed entries (close not after open) all
    count as closed.
    """
    if day in shop.closed_dates:
        return None
    hours = shop.hours_for(weekday_name(day))
    if hours is None or hours.is_closed or hours.open is None or hours.close is None:
        return None
    if hours.close <= hours.open:
        return None
    return TimeSlot(hours.open, hours.close)


def shop_zone(shop: Shop) -> ZoneInfo:
    return _safe_timezone(shop.timezone)


def shop_local_now(shop: Shop, now: datetime) -> datetime:
    return now.astimezone(shop_zone(shop))


def local_datetime(shop: Shop, day: date, at: time) -> datetime:
    return datetime.combine(day, at, tzinfo=shop_zone(shop))


def slot_from_start(start: time, duration_minutes: int) -> TimeSlot | None:
    """Slot of `duration_minutes` beginning at `start`, None if it runs past midnight."""
    end_minutes = time_to_minutes(start) + duration_minutes
    if duration_minutes <= 0 or end_minutes >= 24 * 60:
        return None
    return TimeSlot(start, minutes_to_time(end_minutes))


def _safe_timezone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except Exception:
        return ZoneInfo("UTC")
