# timeclock_api/common/http.py
from flask import jsonify

def ok(data=None, status=200, **meta):
    payload = {"success": True, "data": data}
    if meta:
        payload["meta"] = meta
    return jsonify(payload), status

def ok_list(rows, status=200, **meta):
    """List envelope; `count` always reflects the rows actually returned."""
    return ok(rows, status=status, count=len(rows), **meta)

def fail(message="Bad Request", status=400, code=None, detail=None):
    err = {"message": message}
    if code: err["code"] = code
    if detail: err["detail"] = detail
    return jsonify({"success": False, "error": err}), status
