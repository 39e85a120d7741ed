# timeclock_api/services/attendance.py
from __future__ import annotations

from datetime import date, datetime, timedelta
import logging
from typing import Any, Callable, Dict, List, Optional

from timeclock_api.common.dates import DateRange, month_window, day_start, utcnow
from timeclock_api.common.errors import ConflictError, NotFoundError, ValidationError
from timeclock_api.models.shift import Shift
from timeclock_api.models.user import EMPLOYMENT_TYPES, SHIFT_TYPES, User
from timeclock_api.rbac import operation
from timeclock_api.services.reports import ShiftReport, build_report, hours_by_user
from timeclock_api.services.shift_store import ShiftStore

log = logging.getLogger(__name__)

DEFAULT_MY_SHIFTS_LIMIT = 50
DEFAULT_COMPANY_SHIFTS_LIMIT = 100


class AttendanceService:
    """
    Shift lifecycle and reporting rules. Every public method takes the
    caller's verified Identity first; the @operation policy check runs before
    the body and all company scoping uses identity.company_id.

    Holds no mutable state of its own; the store carries all of it.
    """

    def __init__(self, store: ShiftStore, clock: Optional[Callable[[], datetime]] = None):
        self.store = store
        self.clock = clock or utcnow

    def resolve_range(self, start_date: Optional[date], end_date: Optional[date]) -> DateRange:
        return DateRange.resolve(start_date, end_date, now=self.clock())

    # ---------- clock-in / clock-out ----------

    @operation("clock-in")
    def clock_in(self, identity) -> Shift:
        shift = self.store.insert_active(identity.user_id, identity.company_id, self.clock())
        if shift is None:
            log.warning("clock-in rejected, active shift exists user=%s", identity.user_id)
            raise ConflictError("user already has an active shift")
        log.info("clock-in user=%s shift=%s", identity.user_id, shift.id)
        return shift

    @operation("clock-out")
    def clock_out(self, identity, notes: Optional[str] = "") -> Shift:
        shift = self.store.close_active(identity.user_id, notes or "", self.clock())
        if shift is None:
            raise NotFoundError("no active shift found")
        log.info("clock-out user=%s shift=%s", identity.user_id, shift.id)
        return shift

    # ---------- self-service ----------

    @operation("my-shifts")
    def get_my_shifts(self, identity, limit: int = 0, offset: int = 0) -> List[Shift]:
        return self.store.list_for_user(
            identity.user_id, limit or DEFAULT_MY_SHIFTS_LIMIT, offset or 0
        )

    @operation("active-shift")
    def get_active_shift(self, identity) -> Optional[Shift]:
        return self.store.active_for(identity.user_id)

    @operation("week-shifts")
    def get_week_shifts(self, identity, week_start: date) -> List[Shift]:
        if week_start is None:
            raise ValidationError("week_start parameter is required")
        start = day_start(week_start)
        return self.store.list_between(identity.company_id, start, start + timedelta(days=7))

    # ---------- manager / admin ----------

    @operation("all-shifts")
    def get_all_shifts(self, identity, start_date: Optional[date] = None,
                       end_date: Optional[date] = None,
                       limit: int = 0, offset: int = 0) -> List[Shift]:
        rng = self.resolve_range(start_date, end_date)
        return self.store.list_for_company(
            identity.company_id, rng, limit or DEFAULT_COMPANY_SHIFTS_LIMIT, offset or 0
        )

    @operation("report")
    def get_report(self, identity, start_date: Optional[date] = None,
                   end_date: Optional[date] = None) -> ShiftReport:
        rng = self.resolve_range(start_date, end_date)
        return build_report(self.store.report_rows(identity.company_id, rng))

    @operation("employees")
    def get_employees(self, identity) -> List[Dict[str, Any]]:
        """Active users of the company with completed hours for the current month."""
        first, nxt = month_window(self.clock())
        hours = hours_by_user(self.store.completed_rows(identity.company_id, first, nxt))
        out = []
        for u in self.store.active_users(identity.company_id):
            row = u.to_dict()
            row["monthly_hours"] = hours.get(u.id, 0.0)
            out.append(row)
        return out

    @operation("update-employee-schedule")
    def update_employee_schedule(self, identity, employee_id: int,
                                 employment_type: str, shift_type: str) -> User:
        user = self.store.find_user(identity.company_id, employee_id)
        if user is None:
            raise NotFoundError("employee not found")
        if employment_type not in EMPLOYMENT_TYPES:
            raise ValidationError("Invalid employment type")
        if shift_type not in SHIFT_TYPES:
            raise ValidationError("Invalid shift type")
        user = self.store.set_schedule(user, employment_type, shift_type)
        log.info(
            "schedule user=%s employment_type=%s shift_type=%s by=%s",
            user.id, employment_type, shift_type, identity.user_id,
        )
        return user

    @operation("assign-shift")
    def assign_shift(self, identity, user_id: int,
                     clock_in: datetime, clock_out: datetime) -> Shift:
        """
        Manager-created shift, stored already completed. No active-shift
        check is made: an assignment is a record of past work, not a live
        clock-in, so it never competes with an open shift.
        """
        _check_order(clock_in, clock_out)
        user = self.store.find_user(identity.company_id, user_id)
        if user is None:
            raise NotFoundError("employee not found")
        shift = self.store.insert_completed(user.id, user.company_id, clock_in, clock_out)
        log.info("assign shift=%s user=%s by=%s", shift.id, user.id, identity.user_id)
        return shift

    # update/delete on a missing or foreign shift id succeed with no effect;
    # the caller learns nothing about rows outside its company either way.

    @operation("update-shift")
    def update_shift(self, identity, shift_id: int,
                     clock_in: datetime, clock_out: datetime) -> int:
        _check_order(clock_in, clock_out)
        return self.store.rewrite_times(
            identity.company_id, shift_id, clock_in, clock_out, self.clock()
        )

    @operation("delete-shift")
    def delete_shift(self, identity, shift_id: int) -> int:
        return self.store.delete(identity.company_id, shift_id)


def _check_order(clock_in: datetime, clock_out: datetime):
    if clock_in is None or clock_out is None:
        raise ValidationError("clock_in and clock_out are required")
    if clock_out < clock_in:
        raise ValidationError("clock_out must not be before clock_in")
