from datetime import date, datetime, timedelta, timezone
from typing import Optional, Union


def convert_date(d: Union[date, datetime]) -> str:
    """Day string used by task progress, e.g. 5-3-2024 (no zero padding)."""
    return f"{d.day}-{d.month}-{d.year}"


def end_date(start: datetime, duration_days: int) -> datetime:
    return start + timedelta(days=duration_days)


def today_string(today: Optional[date] = None) -> str:
    return convert_date(today or date.today())


def as_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value
