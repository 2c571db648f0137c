from __future__ import annotations

from datetime import date, time

import pytest

from shift_attendance.schedules.model import (
    ScheduleAssignment,
    ShiftTemplate,
    active_assignment,
    match_template,
    parse_break_time,
    parse_day,
    parse_days,
)


@pytest.mark.parametrize(
    "value, expected",
    [
        ('["Mon", "Wed", "Fri"]', {0, 2, 4}),
        ("Monday, Tuesday, sunday", {0, 1, 6}),
        (["Sat", "Sun"], {5, 6}),
        ("", set()),
        (None, set()),
        ('["Funday"]', set()),
    ],
)
def test_parse_days(value, expected):
    assert parse_days(value) == frozenset(expected)


def test_parse_break_time_accepts_dash_variants():
    assert parse_break_time("12:00 pm - 01:00 pm") == (time(12, 0), time(13, 0))
    assert parse_break_time("12:00 pm – 1:00 pm") == (time(12, 0), time(13, 0))
    assert parse_break_time("12:00-13:00") == (time(12, 0), time(13, 0))
    assert parse_break_time("12:00 pm") == (None, None)
    assert parse_break_time(None) == (None, None)


def test_parse_day_formats():
    assert parse_day("2025/10/13") == date(2025, 10, 13)
    assert parse_day("2025-10-13T00:00:00") == date(2025, 10, 13)
    assert parse_day("not a date") is None


def test_open_ended_assignment_covers_later_days():
    a = ScheduleAssignment(schedule_id="1", user_name="ana", shift_name="Day", start_date=date(2025, 10, 1))

    assert a.covers(date(2030, 1, 1))
    assert not a.covers(date(2025, 9, 30))
    assert a.overlaps(date(2025, 9, 1), date(2025, 10, 1))
    assert not a.overlaps(date(2025, 9, 1), date(2025, 9, 30))


def test_latest_covering_assignment_wins():
    older = ScheduleAssignment(schedule_id="1", user_name="ana", shift_name="Day", start_date=date(2025, 1, 1))
    newer = ScheduleAssignment(
        schedule_id="2",
        user_name="ana",
        shift_name="Night",
        start_date=date(2025, 10, 1),
        end_date=date(2025, 10, 31),
    )

    assert active_assignment([older, newer], "ana", date(2025, 10, 15)) is newer
    assert active_assignment([older, newer], "ana", date(2025, 11, 1)) is older
    assert active_assignment([older, newer], "ben", date(2025, 10, 15)) is None


def test_template_match_prefers_project():
    plain = ShiftTemplate(template_id="1", shift_name="Day", project="")
    hq = ShiftTemplate(template_id="2", shift_name="Day", project="HQ")
    assignment = ScheduleAssignment(schedule_id="1", user_name="ana", shift_name="Day", project="HQ")

    assert match_template(assignment, [plain, hq]) is hq
    assert match_template(ScheduleAssignment(schedule_id="2", user_name="ben", shift_name="Day"), [plain, hq]) is plain
    assert match_template(ScheduleAssignment(schedule_id="3", user_name="ben", shift_name="Late"), [plain, hq]) is None
    assert match_template(None, [plain, hq]) is None


def test_template_workdays():
    t = ShiftTemplate(template_id="1", shift_name="Day", weekdays=parse_days("Mon,Tue"))

    assert t.is_workday(date(2025, 10, 13))
    assert not t.is_workday(date(2025, 10, 15))
