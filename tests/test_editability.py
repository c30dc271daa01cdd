import time
from datetime import date, datetime, timezone

import pytest

from shorelux_backoffice.editability import is_editable, to_date


TODAY = date(2024, 6, 10)


def test_window_is_today_plus_two_previous_days():
    assert is_editable("2024-06-10", today=TODAY)
    assert is_editable("2024-06-09", today=TODAY)
    assert is_editable("2024-06-08", today=TODAY)
    assert not is_editable("2024-06-07", today=TODAY)


def test_future_dates_are_not_editable():
    assert not is_editable("2024-06-11", today=TODAY)


def test_calendar_days_not_rolling_hours():
    # late evening two days back is still inside the window
    assert is_editable("2024-06-08T23:59:00", today=TODAY)
    assert is_editable(datetime(2024, 6, 8, 0, 1), today=TODAY)
    assert not is_editable("2024-06-07T23:59:59", today=TODAY)


@pytest.fixture
def kolkata_time(monkeypatch):
    if not hasattr(time, "tzset"):
        pytest.skip("needs time.tzset")
    monkeypatch.setenv("TZ", "Asia/Kolkata")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()


def test_utc_timestamps_use_the_local_calendar_day(kolkata_time):
    # 20:00Z on the 7th is 01:30 on the 8th in Kolkata
    assert is_editable("2024-06-07T20:00:00Z", today=TODAY)
    assert to_date(datetime(2024, 6, 7, 20, 0, tzinfo=timezone.utc)) == date(2024, 6, 8)
    # 18:00Z is still the 7th locally
    assert not is_editable("2024-06-07T18:00:00Z", today=TODAY)
    assert is_editable("2024-06-08T00:30:00+05:30", today=TODAY)


def test_missing_or_garbage_dates_are_not_editable():
    assert not is_editable(None, today=TODAY)
    assert not is_editable("", today=TODAY)
    assert not is_editable("not a date", today=TODAY)


def test_custom_window():
    assert is_editable("2024-06-05", today=TODAY, window_days=5)
    assert not is_editable("2024-06-09", today=TODAY, window_days=0)


def test_to_date_accepts_date_objects():
    assert to_date(TODAY) == TODAY
    assert to_date("2024-06-10") == TODAY
