# timeclock_api/common/paging.py
from flask import request

from timeclock_api.common.errors import ValidationError


def _as_int(val, field):
    if val in (None, "", "null"):
        return 0
    try:
        out = int(val)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be integer")
    if out < 0:
        raise ValidationError(f"{field} must not be negative")
    return out


def limit_offset():
    """
    ?limit=&offset=  -> (limit, offset)
    Missing values come back as 0; the service substitutes its own default
    limit for 0. There is no upper bound on limit.
    """
    return (
        _as_int(request.args.get("limit"), "limit"),
        _as_int(request.args.get("offset"), "offset"),
    )
