"""
Presentation formatting for dashboard responses.

Pure functions with no I/O:
- Money rounding (round-half-up; whole units for trend data, cents elsewhere)
- Calendar-day keys (YYYY-MM-DD in the reporting timezone) and day starts
- Customer display names
"""

from datetime import date, datetime, time, timedelta, timezone, tzinfo
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union

Number = Union[int, float, Decimal, str]

CENTS = Decimal("0.01")
WHOLE_UNITS = Decimal("1")


def to_decimal(value: Optional[Number]) -> Decimal:
    """Convert a stored or aggregated amount to Decimal. None becomes 0."""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    # str() first so floats keep their shortest repr (0.1 -> "0.1")
    return Decimal(str(value))


def round_money(value: Optional[Number], places: int = 2) -> Decimal:
    """
    Round an amount half-up to the given number of decimal places.

    Idempotent: rounding an already-rounded value returns it unchanged.
    """
    exponent = WHOLE_UNITS if places == 0 else Decimal(1).scaleb(-places)
    return to_decimal(value).quantize(exponent, rounding=ROUND_HALF_UP)


def money(value: Optional[Number]) -> float:
    """Amount rounded to cents, as a JSON number."""
    return float(round_money(value, 2))


def whole_units(value: Optional[Number]) -> int:
    """Amount rounded to whole currency units (revenue trend buckets)."""
    return int(round_money(value, 0))


def as_aware(timestamp: datetime) -> datetime:
    """Treat naive timestamps (e.g. from SQLite) as UTC."""
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=timezone.utc)
    return timestamp


def reference_date(timestamp: datetime, tz: tzinfo) -> date:
    """Calendar date of a timestamp in the reporting timezone."""
    return as_aware(timestamp).astimezone(tz).date()


def day_start(day: date, tz: tzinfo) -> datetime:
    """Local midnight of a calendar day in tz, as a UTC timestamp."""
    return datetime.combine(day, time.min, tzinfo=tz).astimezone(timezone.utc)


def date_key(timestamp: Union[datetime, date], tz: Optional[tzinfo] = None) -> str:
    """
    Bucket key for a timestamp: YYYY-MM-DD, time of day truncated.

    A plain date is formatted as-is; a datetime is first converted to tz
    (UTC when tz is not given).
    """
    if isinstance(timestamp, datetime):
        timestamp = reference_date(timestamp, tz or timezone.utc)
    return timestamp.isoformat()


def trailing_day_keys(today: date, days: int) -> list[str]:
    """
    Keys for the trailing window of `days` calendar days ending today.

    Oldest first; today is the last key.
    """
    return [
        (today - timedelta(days=offset)).isoformat()
        for offset in range(days - 1, -1, -1)
    ]


def display_name(
    first_name: Optional[str],
    last_name: Optional[str],
    email: Optional[str],
) -> Optional[str]:
    """
    Customer display name: "first last" trimmed, else the email.
    """
    name = f"{first_name or ''} {last_name or ''}".strip()
    return name or email


def isoformat_utc(timestamp: Optional[datetime]) -> Optional[str]:
    """Serialize a timestamp as ISO-8601 in UTC."""
    if timestamp is None:
        return None
    return as_aware(timestamp).astimezone(timezone.utc).isoformat()
