import uuid
from datetime import datetime, date, time, timedelta
from dateutil import tz

from .config import settings

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
SHORT_DAY_NAMES = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]
TIME_RANGES = ("all", "daily", "weekly", "monthly", "annually")

def new_id() -> str:
    return uuid.uuid4().hex

def now_local() -> datetime:
    """Current wall-clock time in LOCAL_TZ, without tzinfo (the stored form)."""
    return datetime.now(tz.gettz(settings.local_tz)).replace(tzinfo=None)

def today_local() -> date:
    return now_local().date()

def to_local_naive(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(tz.gettz(settings.local_tz)).replace(tzinfo=None)

def iso_dt(dt: datetime | None) -> str | None:
    if dt is None:
        return None
    return to_local_naive(dt).isoformat(timespec="microseconds")

def now_iso() -> str:
    return iso_dt(now_local())

def parse_datetime(val) -> datetime | None:
    if val is None or val == "":
        return None
    if isinstance(val, datetime):
        return to_local_naive(val)
    if isinstance(val, date):
        return datetime.combine(val, time.min)
    text = str(val).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return to_local_naive(datetime.fromisoformat(text))
    except ValueError:
        pass
    return datetime.combine(date.fromisoformat(text), time.min)

def parse_date(val) -> date:
    if isinstance(val, datetime):
        return to_local_naive(val).date()
    if isinstance(val, date):
        return val
    dt = parse_datetime(val)
    if dt is None:
        raise ValueError("date required")
    return dt.date()

def day_bounds(d: date) -> tuple[str, str]:
    return (
        datetime.combine(d, time.min).isoformat(timespec="microseconds"),
        datetime.combine(d, time.max).isoformat(timespec="microseconds"),
    )

def sunday_index(d: date) -> int:
    # date.weekday() is Monday=0; weeks here start on Sunday
    return (d.weekday() + 1) % 7

def week_start(d: date) -> date:
    return d - timedelta(days=sunday_index(d))

def week_id(d: date) -> str:
    return week_start(d).isoformat()

def week_days(start: date) -> list[date]:
    return [start + timedelta(days=i) for i in range(7)]

def day_name(d: date) -> str:
    return DAY_NAMES[sunday_index(d)]

def round_money(val) -> float:
    return round(float(val or 0.0), 2)

def range_start(time_range: str | None, now: datetime | None = None) -> datetime | None:
    """Start of a list filter window; None means unbounded."""
    if not time_range or time_range == "all":
        return None
    now = now or now_local()
    today = datetime.combine(now.date(), time.min)
    if time_range == "daily":
        return today
    if time_range == "weekly":
        return datetime.combine(week_start(now.date()), time.min)
    if time_range == "monthly":
        return today.replace(day=1)
    if time_range == "annually":
        return today.replace(month=1, day=1)
    raise ValueError(f"time_range must be one of {'|'.join(TIME_RANGES)}")
