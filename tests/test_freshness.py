from datetime import datetime, time, timedelta, timezone

import pytest

from conftest import jakarta
from remote_csv_display_v1.errors import TimeCalculationError
from remote_csv_display_v1.freshness import cutoff_instant, parse_cutoff, should_refresh


def test_refresh_due_after_cutoff_when_last_fetch_before_it() -> None:
    assert should_refresh(jakarta(2024, 5, 10, 14), jakarta(2024, 5, 10, 9)) is True


def test_no_refresh_before_cutoff() -> None:
    assert should_refresh(jakarta(2024, 5, 10, 13, 0), jakarta(2024, 5, 9, 9)) is False


def test_cutoff_instant_itself_is_exclusive() -> None:
    cutoff = jakarta(2024, 5, 10, 13, 30)

    assert should_refresh(cutoff, jakarta(2024, 5, 10, 9)) is False
    assert should_refresh(cutoff + timedelta(seconds=1), jakarta(2024, 5, 10, 9)) is True
    assert should_refresh(jakarta(2024, 5, 10, 15), cutoff) is False


def test_only_one_refresh_per_day() -> None:
    fetched_at = jakarta(2024, 5, 10, 13, 31)

    assert should_refresh(jakarta(2024, 5, 10, 13, 45), fetched_at) is False
    assert should_refresh(jakarta(2024, 5, 10, 23, 59), fetched_at) is False


def test_yesterday_late_fetch_does_not_block_today() -> None:
    yesterday_late = jakarta(2024, 5, 9, 22)

    assert should_refresh(jakarta(2024, 5, 10, 8), yesterday_late) is False
    assert should_refresh(jakarta(2024, 5, 10, 14), yesterday_late) is True


def test_times_are_compared_in_the_fixed_zone() -> None:
    # 07:00 UTC is 14:00 in Jakarta.
    now = datetime(2024, 5, 10, 7, 0, tzinfo=timezone.utc)
    last = datetime(2024, 5, 10, 6, 0, tzinfo=timezone.utc)

    assert should_refresh(now, last) is True
    assert cutoff_instant(now) == jakarta(2024, 5, 10, 13, 30)


def test_unix_timestamps_are_accepted() -> None:
    now = jakarta(2024, 5, 10, 14)

    assert should_refresh(now, 0) is True
    assert should_refresh(now, int(now.timestamp())) is False


def test_custom_cutoff_and_zone() -> None:
    now = datetime(2024, 5, 10, 9, 0, tzinfo=timezone.utc)
    last = datetime(2024, 5, 10, 7, 0, tzinfo=timezone.utc)

    assert should_refresh(now, last, cutoff=time(8, 0), timezone_name="UTC") is True
    assert should_refresh(now, last, cutoff=time(10, 0), timezone_name="UTC") is False


def test_invalid_timezone_is_a_hard_failure() -> None:
    with pytest.raises(TimeCalculationError):
        should_refresh(jakarta(2024, 5, 10, 14), 0, timezone_name="Not/AZone")


def test_naive_datetime_is_a_hard_failure() -> None:
    with pytest.raises(TimeCalculationError):
        should_refresh(datetime(2024, 5, 10, 14), 0)


def test_unusable_last_fetch_value_is_a_hard_failure() -> None:
    with pytest.raises(TimeCalculationError):
        should_refresh(jakarta(2024, 5, 10, 14), "yesterday")  # type: ignore[arg-type]

    with pytest.raises(TimeCalculationError):
        should_refresh(jakarta(2024, 5, 10, 14), 10**20)


def test_parse_cutoff() -> None:
    assert parse_cutoff("13:30") == time(13, 30)
    assert parse_cutoff(" 7:05 ") == time(7, 5)

    with pytest.raises(TimeCalculationError):
        parse_cutoff("half past one")

    with pytest.raises(TimeCalculationError):
        parse_cutoff("25:00")
