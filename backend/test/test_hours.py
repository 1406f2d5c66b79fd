"""
Hours parsing and open/closed evaluation in Pacific time.
Run from the repo root:  pytest backend/test/test_hours.py
"""

from datetime import datetime

import pytest
import pytz

from services.contacts import contact_from_dict
from services.hours import (
    AlwaysOpen,
    Unparsed,
    WeeklyHours,
    is_always_open,
    is_open,
    parse_hours,
    to_pacific,
)


def _contact(hours):
    return contact_from_dict({"name": "Test", "phone": "+15095550100", "hours": hours})


@pytest.mark.parametrize("text", [
    "24/7",
    "24 hours a day",
    "24/7 for emergency dispatch; shelter hours vary",
])
def test_always_open_forms(text):
    assert parse_hours(text) == AlwaysOpen()


@pytest.mark.parametrize("text, expected", [
    ("Mon-Fri, 8 AM - 5 PM", WeeklyHours(0, 4, 8 * 60, 17 * 60)),
    ("Mon-Fri 8-5", WeeklyHours(0, 4, 8 * 60, 17 * 60)),
    ("Monday-Friday 9:30am-4:30pm", WeeklyHours(0, 4, 9 * 60 + 30, 16 * 60 + 30)),
    ("Mon-Sun, 8 AM - 6 PM", WeeklyHours(0, 6, 8 * 60, 18 * 60)),
    ("Sat-Mon 10 AM - 2 PM", WeeklyHours(5, 0, 10 * 60, 14 * 60)),
])
def test_weekly_hours(text, expected):
    assert parse_hours(text) == expected


@pytest.mark.parametrize("text", ["Varies, call for intake.", "", None, "Mon-Fri", "By appointment"])
def test_unrecognized_hours_are_unparsed(text):
    assert isinstance(parse_hours(text), Unparsed)


def test_wrapping_day_range():
    weekend = WeeklyHours(5, 0, 9 * 60, 17 * 60)
    assert weekend.covers_day(5)
    assert weekend.covers_day(6)
    assert weekend.covers_day(0)
    assert not weekend.covers_day(2)


def test_business_hours_open_and_closed(wednesday_morning, wednesday_night, saturday_noon):
    office = _contact("Mon-Fri, 8 AM - 5 PM")
    assert is_open(office, wednesday_morning)
    assert not is_open(office, wednesday_night)
    assert not is_open(office, saturday_noon)


def test_start_inclusive_end_exclusive():
    office = _contact("Mon-Fri, 8 AM - 5 PM")
    # PDT is UTC-7
    assert is_open(office, datetime(2024, 7, 17, 15, 0, tzinfo=pytz.utc))       # 08:00
    assert is_open(office, datetime(2024, 7, 17, 23, 59, tzinfo=pytz.utc))      # 16:59
    assert not is_open(office, datetime(2024, 7, 18, 0, 0, tzinfo=pytz.utc))    # 17:00
    assert not is_open(office, datetime(2024, 7, 17, 14, 59, tzinfo=pytz.utc))  # 07:59


def test_daylight_saving_is_respected():
    office = _contact("Mon-Fri, 8 AM - 5 PM")
    # 15:30 UTC is 08:30 in July (PDT) but 07:30 in January (PST).
    assert is_open(office, datetime(2024, 7, 17, 15, 30, tzinfo=pytz.utc))
    assert not is_open(office, datetime(2024, 1, 17, 15, 30, tzinfo=pytz.utc))
    assert is_open(office, datetime(2024, 1, 17, 16, 30, tzinfo=pytz.utc))


def test_naive_instant_is_utc():
    assert to_pacific(datetime(2024, 7, 17, 17, 0)).hour == 10
    assert is_open(_contact("Mon-Fri 8-5"), datetime(2024, 7, 17, 17, 0))


def test_unparsed_is_never_open(wednesday_morning, saturday_noon):
    contact = _contact("Varies, call for intake.")
    assert not is_open(contact, wednesday_morning)
    assert not is_open(contact, saturday_noon)
    assert not is_always_open(contact)


def test_always_open_at_any_instant(wednesday_night, saturday_noon):
    contact = _contact("24/7")
    assert is_always_open(contact)
    assert is_open(contact, wednesday_night)
    assert is_open(contact, saturday_noon)
