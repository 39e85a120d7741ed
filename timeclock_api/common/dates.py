# timeclock_api/common/dates.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from timeclock_api.common.errors import ValidationError

DEFAULT_RANGE_DAYS = 30


def utcnow() -> datetime:
    """Naive UTC; every timestamp column stores naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_date(s: str | None, field: str) -> Optional[date]:
    """'YYYY-MM-DD' -> date. Empty -> None."""
    if not s:
        return None
    try:
        return datetime.strptime(s.strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"{field} must be a date in YYYY-MM-DD format")


def parse_ts(s, field: str) -> datetime:
    """
    Full ISO-8601 / RFC 3339 date-time, e.g. '2025-03-01T09:00:00+02:00'.
    Offsets are converted to UTC; a value without offset is taken as UTC.
    """
    if not isinstance(s, str) or not s.strip():
        raise ValidationError(f"{field} is required")
    raw = s.strip()
    if raw.endswith(("Z", "z")):
        raw = raw[:-1] + "+00:00"
    try:
        ts = datetime.fromisoformat(raw.replace(" ", "T"))
    except ValueError:
        raise ValidationError(f"Invalid {field} time format")
    if ts.tzinfo is not None:
        ts = ts.astimezone(timezone.utc).replace(tzinfo=None)
    return ts


def day_start(d: date) -> datetime:
    return datetime.combine(d, datetime.min.time())


def month_window(now: datetime) -> tuple[datetime, datetime]:
    """[first of this month, first of next month)"""
    first = datetime(now.year, now.month, 1)
    if now.month == 12:
        nxt = datetime(now.year + 1, 1, 1)
    else:
        nxt = datetime(now.year, now.month + 1, 1)
    return first, nxt


@dataclass(frozen=True)
class DateRange:
    """
    A clock_in window. `end_inclusive` is set only for the default
    "last 30 days up to now" range; an explicit end date is turned into the
    exclusive bound end_date + 1 day so the whole calendar day is covered.
    """
    start: datetime
    end: datetime
    end_inclusive: bool = False
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @classmethod
    def resolve(cls, start_date: Optional[date] = None, end_date: Optional[date] = None,
                now: Optional[datetime] = None) -> "DateRange":
        now = now or utcnow()
        if end_date is not None:
            end, inclusive = day_start(end_date) + timedelta(days=1), False
            shown_end = end_date
        else:
            end, inclusive = now, True
            shown_end = now.date()
        if start_date is not None:
            start = day_start(start_date)
        else:
            start = now - timedelta(days=DEFAULT_RANGE_DAYS)
        return cls(start=start, end=end, end_inclusive=inclusive,
                   start_date=start.date(), end_date=shown_end)

    def clause(self, col):
        upper = (col <= self.end) if self.end_inclusive else (col < self.end)
        return (col >= self.start) & upper

    def meta(self):
        return {
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
        }
