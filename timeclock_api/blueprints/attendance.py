# timeclock_api/blueprints/attendance.py
from __future__ import annotations

from flask import Blueprint, current_app, request

from timeclock_api.common.auth import requires_operation
from timeclock_api.common.dates import parse_date, parse_ts
from timeclock_api.common.errors import ValidationError
from timeclock_api.common.http import ok, ok_list
from timeclock_api.common.paging import limit_offset

bp = Blueprint("attendance", __name__, url_prefix="/api/attendance")


# ---------- helpers ----------
def _svc():
    return current_app.extensions["attendance"]


def _json() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Invalid request body")
    return data


def _as_int(val, field) -> int:
    if val in (None, "", "null"):
        raise ValidationError(f"{field} is required")
    if isinstance(val, bool):
        raise ValidationError(f"{field} must be integer")
    try:
        return int(val)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field}")


def _range_args():
    return (
        parse_date(request.args.get("start_date"), "start_date"),
        parse_date(request.args.get("end_date"), "end_date"),
    )


# ---------- employee endpoints ----------

@bp.post("/clock-in")
@requires_operation("clock-in")
def clock_in(identity):
    shift = _svc().clock_in(identity)
    return ok({"message": "Clocked in successfully", "shift": shift.to_dict()}, 201)


@bp.post("/clock-out")
@requires_operation("clock-out")
def clock_out(identity):
    """
    POST /api/attendance/clock-out
    JSON: { "notes": "left early" }   // notes optional
    """
    notes = _json().get("notes") or ""
    if not isinstance(notes, str):
        raise ValidationError("notes must be a string")
    shift = _svc().clock_out(identity, notes)
    return ok({"message": "Clocked out successfully", "shift": shift.to_dict()})


@bp.get("/my-shifts")
@requires_operation("my-shifts")
def my_shifts(identity):
    limit, offset = limit_offset()
    rows = _svc().get_my_shifts(identity, limit, offset)
    return ok_list([s.to_dict() for s in rows])


@bp.get("/active-shift")
@requires_operation("active-shift")
def active_shift(identity):
    shift = _svc().get_active_shift(identity)
    if shift is None:
        return ok({"message": "No active shift", "shift": None})
    return ok({"shift": shift.to_dict()})


@bp.get("/shifts/week")
@requires_operation("week-shifts")
def week_shifts(identity):
    """GET /api/attendance/shifts/week?week_start=YYYY-MM-DD   [week_start, +7 days)"""
    week_start = parse_date(request.args.get("week_start"), "week_start")
    if week_start is None:
        raise ValidationError("week_start parameter is required")
    rows = _svc().get_week_shifts(identity, week_start)
    return ok_list([s.to_dict_with_user() for s in rows])


# ---------- manager / admin endpoints ----------

@bp.get("/shifts")
@requires_operation("all-shifts")
def all_shifts(identity):
    """
    GET /api/attendance/shifts?start_date=&end_date=&limit=&offset=

    Defaults to the last 30 days. end_date covers the whole calendar day.
    """
    start, end = _range_args()
    limit, offset = limit_offset()
    svc = _svc()
    rows = svc.get_all_shifts(identity, start, end, limit, offset)
    return ok_list([s.to_dict_with_user() for s in rows], **svc.resolve_range(start, end).meta())


@bp.get("/report")
@requires_operation("report")
def report(identity):
    start, end = _range_args()
    svc = _svc()
    rep = svc.get_report(identity, start, end)
    return ok(rep.to_dict(), **svc.resolve_range(start, end).meta())


@bp.get("/employees")
@requires_operation("employees")
def employees(identity):
    return ok_list(_svc().get_employees(identity))


@bp.put("/employees/<int:employee_id>/schedule")
@bp.put("/employees/schedule")
@requires_operation("update-employee-schedule")
def update_schedule(identity, employee_id=None):
    """
    PUT /api/attendance/employees/<id>/schedule   (or ?id=<id>)
    JSON: { "employment_type": "Full-Time", "shift_type": "First Shift" }
    """
    if employee_id is None:
        employee_id = _as_int(request.args.get("id"), "employee ID")
    data = _json()
    user = _svc().update_employee_schedule(
        identity,
        employee_id,
        data.get("employment_type"),
        data.get("shift_type"),
    )
    return ok({"message": "Employee schedule updated successfully", "employee": user.to_dict()})


@bp.post("/shifts")
@requires_operation("assign-shift")
def assign_shift(identity):
    """
    POST /api/attendance/shifts
    JSON: {
      "user_id": 12,
      "clock_in":  "2025-03-01T09:00:00+02:00",
      "clock_out": "2025-03-01T17:00:00+02:00"
    }
    """
    data = _json()
    user_id = _as_int(data.get("user_id"), "user_id")
    clock_in = parse_ts(data.get("clock_in"), "clock_in")
    clock_out = parse_ts(data.get("clock_out"), "clock_out")
    shift = _svc().assign_shift(identity, user_id, clock_in, clock_out)
    return ok({"message": "Shift assigned successfully", "shift": shift.to_dict()}, 201)


@bp.put("/shifts/<int:shift_id>")
@requires_operation("update-shift")
def update_shift(identity, shift_id: int):
    data = _json()
    clock_in = parse_ts(data.get("clock_in"), "clock_in")
    clock_out = parse_ts(data.get("clock_out"), "clock_out")
    _svc().update_shift(identity, shift_id, clock_in, clock_out)
    return ok({"message": "Shift updated successfully"})


@bp.delete("/shifts/<int:shift_id>")
@requires_operation("delete-shift")
def delete_shift(identity, shift_id: int):
    _svc().delete_shift(identity, shift_id)
    return ok({"message": "Shift deleted successfully"})
