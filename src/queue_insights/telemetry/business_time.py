"""
Business-Time Resolver
======================

Maps absolute timestamps onto the contact center's business clock.

The business timezone is a fixed UTC+3 (Baghdad, no daylight saving).
A business day is a shift running from 09:00 to 03:00 the next morning,
so local hours 00:00-02:59 belong to the previous calendar day. Hours
03:00-08:59 are the overnight maintenance window and are excluded from
every aggregation.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone

BUSINESS_TZ = timezone(timedelta(hours=3), "Asia/Baghdad")

# Display order of the 18 operating hours: 09:00 through 02:00.
OPERATING_HOURS: list[int] = list(range(9, 24)) + [0, 1, 2]
MAINTENANCE_HOURS: frozenset[int] = frozenset(range(3, 9))
DAY_BOUNDARY_HOUR = 3

# Day-of-week indices run Sunday=0 .. Saturday=6.
DAY_NAMES: list[str] = [
    "Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday",
]


@dataclass(frozen=True)
class BusinessTime:
    """A timestamp resolved onto the business clock.

    Attributes:
        local: The timestamp converted to business-local time.
        hour: Business-local hour (0-23).
        minute: Business-local minute.
        bucket_key: Half-hour bucket, "YYYY-MM-DD HH:MM" with :00 or :30.
        business_day: "YYYY-MM-DD" of the shift the timestamp belongs to.
        day_of_week: Weekday of the business day (0=Sunday).
    """
    local: datetime
    hour: int
    minute: int
    bucket_key: str
    business_day: str
    day_of_week: int

    @property
    def is_operating(self) -> bool:
        return self.hour not in MAINTENANCE_HOURS


def to_utc(ts: datetime) -> datetime:
    """Attach UTC to naive datetimes; convert aware ones to UTC."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def day_of_week(local: datetime) -> int:
    """Weekday of the business day for a business-local timestamp."""
    # datetime.weekday() is Monday=0; shift to Sunday=0.
    dow = (local.weekday() + 1) % 7
    if local.hour < DAY_BOUNDARY_HOUR:
        dow = (dow - 1 + 7) % 7
    return dow


def resolve(ts: datetime) -> BusinessTime:
    """Resolve an absolute timestamp onto the business clock.

    Args:
        ts: Absolute timestamp. Naive values are taken as UTC.

    Returns:
        BusinessTime with hour, bucket key, business day and weekday.
    """
    local = to_utc(ts).astimezone(BUSINESS_TZ)
    half = "30" if local.minute >= 30 else "00"
    bucket_key = f"{local:%Y-%m-%d} {local.hour:02d}:{half}"

    business_date = local.date()
    if local.hour < DAY_BOUNDARY_HOUR:
        business_date -= timedelta(days=1)

    return BusinessTime(
        local=local,
        hour=local.hour,
        minute=local.minute,
        bucket_key=bucket_key,
        business_day=business_date.isoformat(),
        day_of_week=day_of_week(local),
    )


def is_operating(ts: datetime) -> bool:
    return resolve(ts).is_operating


def format_clock(ts: datetime) -> str:
    """Business-local wall-clock time as HH:MM:SS (24-hour)."""
    return f"{to_utc(ts).astimezone(BUSINESS_TZ):%H:%M:%S}"


def shift_window(day: date) -> tuple[datetime, datetime]:
    """UTC query window covering one business day.

    The shift opens at 09:00 local (06:00 UTC) and the window runs 21 hours,
    to 03:00 local the following morning.

    Args:
        day: Calendar date the shift starts on.

    Returns:
        (start, end) as aware UTC datetimes.
    """
    start = datetime.combine(day, time(6, 0), tzinfo=timezone.utc)
    return start, start + timedelta(hours=21)


def format_interval(start: datetime, end: datetime) -> str:
    """ISO-8601 interval string accepted by the upstream query API."""
    return f"{to_utc(start):%Y-%m-%dT%H:%M:%S}Z/{to_utc(end):%Y-%m-%dT%H:%M:%S}Z"
