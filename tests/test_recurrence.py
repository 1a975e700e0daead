from datetime import date, datetime, timezone

import pytest

from chairbook.domain.scheduling.recurrence import build_rule, validate_description


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


ANCHOR = utc(2026, 3, 2, 10, 0)  # Monday


def instants(description, window_start, window_end, anchor=ANCHOR, tz_name="UTC"):
    result = build_rule(description, anchor, tz_name)
    assert result.ok, result.error
    return result.rule.between(window_start, window_end)


def test_weekly_on_selected_weekdays():
    found = instants(
        {"freq": "WEEKLY", "interval": 1, "byweekday": [0, 2, 4]},
        utc(2026, 3, 2),
        utc(2026, 3, 15, 23, 59),
    )
    assert found == [
        utc(2026, 3, 2, 10),
        utc(2026, 3, 4, 10),
        utc(2026, 3, 6, 10),
        utc(2026, 3, 9, 10),
        utc(2026, 3, 11, 10),
        utc(2026, 3, 13, 10),
    ]


def test_window_bounds_are_inclusive():
    found = instants({"freq": "DAILY"}, utc(2026, 3, 3, 10), utc(2026, 3, 4, 10))
    assert found == [utc(2026, 3, 3, 10), utc(2026, 3, 4, 10)]


def test_interval_skips_weeks():
    found = instants({"freq": "WEEKLY", "interval": 2}, utc(2026, 3, 1), utc(2026, 3, 31))
    assert found == [utc(2026, 3, 2, 10), utc(2026, 3, 16, 10), utc(2026, 3, 30, 10)]


def test_count_limits_occurrences():
    found = instants({"freq": "DAILY", "count": 3}, utc(2026, 1, 1), utc(2026, 12, 31))
    assert found == [utc(2026, 3, 2, 10), utc(2026, 3, 3, 10), utc(2026, 3, 4, 10)]


def test_date_only_until_includes_that_whole_day():
    found = instants({"freq": "DAILY", "until": "2026-03-04"}, utc(2026, 3, 1), utc(2026, 3, 31))
    assert found[-1] == utc(2026, 3, 4, 10)
    assert len(found) == 3


def test_until_accepts_date_objects():
    found = instants({"freq": "DAILY", "until": date(2026, 3, 3)}, utc(2026, 3, 1), utc(2026, 3, 31))
    assert found == [utc(2026, 3, 2, 10), utc(2026, 3, 3, 10)]


def test_until_and_count_both_bound_the_series():
    found = instants(
        {"freq": "DAILY", "count": 10, "until": "2026-03-04"}, utc(2026, 3, 1), utc(2026, 3, 31)
    )
    assert len(found) == 3

    found = instants(
        {"freq": "DAILY", "count": 2, "until": "2026-03-20"}, utc(2026, 3, 1), utc(2026, 3, 31)
    )
    assert len(found) == 2


def test_until_before_anchor_produces_nothing():
    found = instants({"freq": "DAILY", "until": "2026-02-01"}, utc(2026, 1, 1), utc(2026, 12, 31))
    assert found == []


def test_window_before_anchor_is_empty():
    assert instants({"freq": "DAILY"}, utc(2026, 1, 1), utc(2026, 2, 1)) == []


def test_empty_weekday_set_uses_anchor_weekday():
    found = instants({"freq": "WEEKLY", "byweekday": []}, utc(2026, 3, 1), utc(2026, 3, 14))
    assert found == [utc(2026, 3, 2, 10), utc(2026, 3, 9, 10)]


def test_monthly_keeps_day_of_month():
    anchor = utc(2026, 1, 15, 9, 30)
    found = instants({"freq": "MONTHLY"}, utc(2026, 1, 1), utc(2026, 3, 31), anchor=anchor)
    assert found == [utc(2026, 1, 15, 9, 30), utc(2026, 2, 15, 9, 30), utc(2026, 3, 15, 9, 30)]


def test_local_time_of_day_is_kept_across_dst():
    # 10:00 in New York is 15:00 UTC before March 8 2026 and 14:00 UTC after
    anchor = utc(2026, 3, 2, 15, 0)
    found = instants(
        {"freq": "WEEKLY"}, utc(2026, 3, 1), utc(2026, 3, 17), anchor=anchor, tz_name="America/New_York"
    )
    assert found == [utc(2026, 3, 2, 15), utc(2026, 3, 9, 14), utc(2026, 3, 16, 14)]


def test_lowercase_frequency_is_accepted():
    assert validate_description({"freq": "weekly"}) is None


@pytest.mark.parametrize(
    "description",
    [
        None,
        {},
        {"freq": "YEARLY"},
        {"freq": "DAILY", "interval": 0},
        {"freq": "DAILY", "interval": "often"},
        {"freq": "DAILY", "count": -1},
        {"freq": "WEEKLY", "byweekday": [7]},
        {"freq": "WEEKLY", "byweekday": ["MO"]},
        {"freq": "DAILY", "until": "not-a-date"},
        {"freq": "DAILY", "until": 20260301},
    ],
)
def test_malformed_descriptions_are_reported_not_raised(description):
    assert validate_description(description) is not None
    result = build_rule(description, ANCHOR, "UTC")
    assert not result.ok
    assert result.rule is None
    assert result.error
