import pytz
from datetime import date, datetime, time, timedelta

from matka.core.config import settings

TZ = pytz.timezone(settings.TZ)

def now_local() -> datetime:
    return datetime.now(TZ)

def to_naive(dt: datetime) -> datetime:
    if dt.tzinfo:
        return dt.astimezone(TZ).replace(tzinfo=None)
    return dt

def now_naive() -> datetime:
    # all DateTime columns hold naive local time
    return to_naive(now_local())

def day_window(day: date) -> tuple[datetime, datetime]:
    """[00:00 of day, 00:00 of next day) as naive local datetimes."""
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)

def parse_hhmm(value: str) -> time:
    return datetime.strptime(value, "%H:%M").time()
