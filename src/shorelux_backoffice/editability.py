from datetime import date, datetime
from typing import Optional, Union

EDIT_WINDOW_DAYS = 2

DateLike = Union[date, datetime, str, None]


def _local_day(value: datetime) -> date:
    # timestamps with an offset count on the local calendar, naive ones as written
    if value.tzinfo is not None:
        value = value.astimezone()
    return value.date()


def to_date(value: DateLike) -> Optional[date]:
    """Calendar day of a record date; None when it cannot be read."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return _local_day(value)
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return _local_day(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        pass
    try:
        return datetime.strptime(text[:10], "%Y-%m-%d").date()
    except ValueError:
        return None


def is_editable(record_date: DateLike, today: Optional[date] = None,
                window_days: int = EDIT_WINDOW_DAYS) -> bool:
    """True when the record date is today or at most ``window_days`` calendar days back.

    Whole calendar days, not a rolling 48h window; future dates are never editable.
    The server checks this again, it is only here to avoid pointless OTP requests.
    """
    d = to_date(record_date)
    if d is None:
        return False
    today = today or date.today()
    diff_days = (today - d).days
    return 0 <= diff_days <= window_days
