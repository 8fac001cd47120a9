from datetime import datetime, timedelta, timezone

import pytest

from kubestatemetrics.cron import CronParseError, CronSchedule, parse_standard

UTC = timezone.utc
AFTER = datetime(2020, 6, 15, 12, 34, 56, 789000, tzinfo=UTC)


@pytest.mark.parametrize(
    "spec",
    [
        "*/15 * * * *",
        "0 */6 * * *",
        "25 * * * *",
        "5 4 * * sun",
        "0 12 1-7 * *",
        "30 2 * jan,jul *",
        "0 0 13 * fri",
        "@hourly",
        "@daily",
        "@weekly",
        "@monthly",
        "@yearly",
    ],
)
def test_next_is_later_whole_minute_and_stable(spec):
    schedule = parse_standard(spec)
    result = schedule.next(AFTER)
    assert result > AFTER
    assert result.second == 0 and result.microsecond == 0
    assert schedule.next(result - timedelta(seconds=1)) == result


def test_step_minutes():
    result = parse_standard("*/15 * * * *").next(AFTER)
    assert result.minute % 15 == 0
    assert result - AFTER <= timedelta(minutes=15)


def test_day_of_week_name():
    result = parse_standard("5 4 * * sun").next(AFTER)
    assert (result.weekday(), result.hour, result.minute) == (6, 4, 5)


def test_month_names():
    result = parse_standard("30 2 * jan,jul *").next(AFTER)
    assert result.month in (1, 7)
    assert (result.hour, result.minute) == (2, 30)


def test_restricted_dom_and_dow_match_either():
    result = parse_standard("0 0 13 * fri").next(AFTER)
    assert result.day == 13 or result.weekday() == 4


def test_stepped_dom_is_not_a_star():
    result = parse_standard("0 0 */2 * mon").next(AFTER)
    assert result.day % 2 == 1 or result.weekday() == 0


def test_dow_only_with_star_dom():
    result = parse_standard("0 12 * * mon").next(AFTER)
    assert result.weekday() == 0 and result.hour == 12


def test_hourly():
    result = parse_standard("@hourly").next(AFTER)
    assert result.minute == 0
    assert result - AFTER <= timedelta(hours=1)


def test_yearly_pinned():
    assert parse_standard("0 0 1 1 *").next(AFTER) == datetime(2021, 1, 1, tzinfo=UTC)


def test_strictly_after_matching_instant():
    midnight = datetime(2020, 6, 15, tzinfo=UTC)
    assert parse_standard("0 0 * * *").next(midnight) == midnight + timedelta(days=1)


def test_impossible_date_yields_none():
    assert parse_standard("0 0 30 2 *").next(AFTER) is None


def test_names_are_case_insensitive():
    assert parse_standard("0 0 1 JAN *") == parse_standard("0 0 1 1 *")


def test_descriptor_aliases():
    assert parse_standard("@annually") == parse_standard("@yearly")
    assert parse_standard("@midnight") == parse_standard("@daily")


def test_every_duration():
    assert parse_standard("@every 90m").next(AFTER) == AFTER.replace(microsecond=0) + timedelta(
        minutes=90
    )
    assert parse_standard("@every 1h30m") == parse_standard("@every 90m")


def test_every_rounds_up_to_one_second():
    assert parse_standard("@every 500ms").next(AFTER) == AFTER.replace(
        microsecond=0
    ) + timedelta(seconds=1)


def test_timezone_prefix():
    schedule = parse_standard("TZ=UTC 30 2 * * *")
    assert isinstance(schedule, CronSchedule)
    assert schedule.location == UTC
    plus_five = timezone(timedelta(hours=5))
    result = schedule.next(AFTER.astimezone(plus_five))
    assert result.astimezone(UTC).hour == 2
    assert result.utcoffset() == timedelta(hours=5)


def test_result_keeps_time_zone_of_input():
    plus_five = timezone(timedelta(hours=5))
    result = parse_standard("0 3 * * *").next(AFTER.astimezone(plus_five))
    assert result.utcoffset() == timedelta(hours=5)
    assert result.hour == 3


@pytest.mark.parametrize(
    "spec",
    [
        "",
        "* * * *",
        "* * * * * *",
        "60 * * * *",
        "* 24 * * *",
        "* * 0 * *",
        "* * * 13 *",
        "* * * * 7",
        "5-1 * * * *",
        "*/0 * * * *",
        "-1 * * * *",
        "1-2-3 * * * *",
        "1/2/3 * * * *",
        "x * * * *",
        "@bogus",
        "@every nonsense",
        "TZ=Nowhere/Place * * * * *",
        "TZ=UTC",
    ],
)
def test_invalid_specs(spec):
    with pytest.raises(CronParseError):
        parse_standard(spec)