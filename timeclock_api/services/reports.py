from __future__ import annotations

from collections import defaultdict
from dataclasses import asdict, dataclass
from typing import Dict, Iterable

from timeclock_api.models.shift import STATUS_COMPLETED, STATUS_IN_PROGRESS, shift_hours


@dataclass
class ShiftReport:
    total_shifts: int = 0
    completed_shifts: int = 0
    active_shifts: int = 0
    total_hours: float = 0.0
    average_hours: float = 0.0

    def to_dict(self):
        return asdict(self)


def build_report(rows: Iterable) -> ShiftReport:
    """
    One pass over (status, clock_in, clock_out) rows.

    Only rows with a clock_out add hours. average_hours is total_hours over
    completed shifts and stays 0 when there are none.
    """
    rep = ShiftReport()
    for status, clock_in, clock_out in rows:
        rep.total_shifts += 1
        if status == STATUS_COMPLETED:
            rep.completed_shifts += 1
        elif status == STATUS_IN_PROGRESS:
            rep.active_shifts += 1
        rep.total_hours += shift_hours(clock_in, clock_out)

    if rep.completed_shifts:
        rep.average_hours = rep.total_hours / rep.completed_shifts
    return rep


def hours_by_user(rows: Iterable) -> Dict[int, float]:
    """(user_id, clock_in, clock_out) rows -> {user_id: hours}"""
    out: Dict[int, float] = defaultdict(float)
    for user_id, clock_in, clock_out in rows:
        out[user_id] += shift_hours(clock_in, clock_out)
    return dict(out)
