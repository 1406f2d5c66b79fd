"""
Hours service: parse a contact's free-text hours once into a typed schedule,
then answer "is this contact open at this instant?" against Pacific civil time.

Recognized shapes:
  AlwaysOpen    - text mentions "24/7" or "24 hours"
  WeeklyHours   - a day range ("Mon-Fri", "Monday-Friday") followed by a time range
  Unparsed      - anything else ("Varies, call for intake."); treated as closed
"""

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Union

import pytz

from config import HOTLINE_TIMEZONE

PACIFIC = pytz.timezone(HOTLINE_TIMEZONE)

# First three letters of a day name -> Python weekday (Mon=0).
_DAYS = {"mon": 0, "tue": 1, "wed": 2, "thu": 3, "fri": 4, "sat": 5, "sun": 6}

# Any day-to-day range is accepted, including wrapping ones like "Sat-Mon",
# not only Mon-Fri.
_DAY_RANGE = re.compile(
    r"\b(mon|tue|wed|thu|fri|sat|sun)[a-z]*\.?\s*(?:-|–|to|through|thru)\s*"
    r"(mon|tue|wed|thu|fri|sat|sun)[a-z]*\.?"
)
_MERIDIEM = r"(a\.?m\.?|p\.?m\.?)?"
_TIME_RANGE = re.compile(
    r"(\d{1,2})(?::(\d{2}))?\s*" + _MERIDIEM + r"\s*(?:-|–|to)\s*"
    r"(\d{1,2})(?::(\d{2}))?\s*" + _MERIDIEM
)


@dataclass(frozen=True)
class AlwaysOpen:
    pass


@dataclass(frozen=True)
class WeeklyHours:
    first_day: int     # Python weekday, Mon=0
    last_day: int
    start_minute: int  # minutes after local midnight, inclusive
    end_minute: int    # exclusive

    def covers_day(self, weekday: int) -> bool:
        if self.first_day <= self.last_day:
            return self.first_day <= weekday <= self.last_day
        # Wrapping range such as Sat-Mon
        return weekday >= self.first_day or weekday <= self.last_day


@dataclass(frozen=True)
class Unparsed:
    raw: str


Schedule = Union[AlwaysOpen, WeeklyHours, Unparsed]


def _to_minutes(hour: str, minute: str, meridiem: str) -> int:
    h = int(hour)
    m = int(minute) if minute else 0
    if meridiem:
        if meridiem.startswith("p") and h < 12:
            h += 12
        elif meridiem.startswith("a") and h == 12:
            h = 0
    return h * 60 + m


def parse_hours(text: str) -> Schedule:
    """
    Turn an hours description into a Schedule. Never raises: anything we do
    not recognize comes back as Unparsed so availability defaults to closed.
    """
    raw = text or ""
    lowered = raw.lower().strip()

    if "24/7" in lowered or "24 hours" in lowered:
        return AlwaysOpen()

    days = _DAY_RANGE.search(lowered)
    if not days:
        return Unparsed(raw)

    times = _TIME_RANGE.search(lowered, days.end())
    if not times:
        return Unparsed(raw)

    sh, sm, smer, eh, em, emer = times.groups()
    if int(sh) > 24 or int(eh) > 24 or int(sm or 0) > 59 or int(em or 0) > 59:
        return Unparsed(raw)

    start = _to_minutes(sh, sm, smer)
    end = _to_minutes(eh, em, emer)
    # "Mon-Fri 8-5": a bare end hour at or before the start is an afternoon close.
    if not emer and end <= start and int(eh) < 12:
        end += 12 * 60
    if end <= start or end > 24 * 60:
        return Unparsed(raw)

    return WeeklyHours(
        first_day=_DAYS[days.group(1)],
        last_day=_DAYS[days.group(2)],
        start_minute=start,
        end_minute=end,
    )


def to_pacific(instant: datetime) -> datetime:
    """Convert an instant to Pacific civil time with real DST rules. Naive input is UTC."""
    if instant.tzinfo is None:
        instant = pytz.utc.localize(instant)
    return instant.astimezone(PACIFIC)


def schedule_is_open(schedule: Schedule, instant: datetime) -> bool:
    if isinstance(schedule, AlwaysOpen):
        return True
    if isinstance(schedule, WeeklyHours):
        local = to_pacific(instant)
        minute_of_day = local.hour * 60 + local.minute
        return (
            schedule.covers_day(local.weekday())
            and schedule.start_minute <= minute_of_day < schedule.end_minute
        )
    # Unparsed: we can't tell, so assume closed and let a 24/7 contact surface.
    return False


def is_open(contact, instant: datetime) -> bool:
    """True if the contact is reachable at *instant*."""
    return schedule_is_open(contact.schedule, instant)


def is_always_open(contact) -> bool:
    return isinstance(contact.schedule, AlwaysOpen)
