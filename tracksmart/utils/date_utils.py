"""Date manipulation utilities"""

from datetime import date, datetime
from zoneinfo import ZoneInfo


def local_now(timezone: str) -> datetime:
    """Current wall-clock time in the given IANA timezone"""
    return datetime.now(ZoneInfo(timezone))


def align_to(ts: datetime, now: datetime) -> datetime:
    """
    Express ts in the same timezone convention as now.

    Naive timestamps are taken to be in now's zone; aware timestamps are
    converted to it. A naive now means system local time.
    """
    if now.tzinfo is None:
        return ts if ts.tzinfo is None else ts.astimezone().replace(tzinfo=None)
    if ts.tzinfo is None:
        return ts.replace(tzinfo=now.tzinfo)
    return ts.astimezone(now.tzinfo)


def is_same_day(ts: datetime, now: datetime) -> bool:
    return align_to(ts, now).date() == now.date()


def start_of_month(now: datetime) -> datetime:
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def previous_month(day: date) -> tuple[int, int]:
    """(year, month) of the calendar month before day"""
    if day.month == 1:
        return day.year - 1, 12
    return day.year, day.month - 1
