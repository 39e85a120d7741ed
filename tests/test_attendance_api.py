from datetime import datetime

from timeclock_api.extensions import db
from timeclock_api.models.shift import Shift
from timeclock_api.models.user import User

BASE = "/api/attendance"


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.get_json() == {"status": "healthy"}


# ---------- auth ----------

def test_register_admin_with_new_company_then_login(client):
    r = client.post("/api/auth/register", json={
        "company_name": "Initech",
        "username": "peter",
        "email": "Peter@Initech.test",
        "password": "tps-report",
        "full_name": "Peter Gibbons",
        "role": "admin",
    })
    assert r.status_code == 201
    body = r.get_json()
    assert body["success"] is True
    assert body["data"]["token"]
    assert body["data"]["user"]["email"] == "peter@initech.test"
    assert "password_hash" not in body["data"]["user"]

    r = client.post("/api/auth/login", json={"username": "peter", "password": "tps-report"})
    assert r.status_code == 200
    token = r.get_json()["data"]["token"]

    r = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 200
    assert r.get_json()["data"]["username"] == "peter"


def test_register_duplicate_username_conflicts(client, tenants):
    r = client.post("/api/auth/register", json={
        "company_id": tenants.company_a,
        "username": "a_bob",
        "email": "other@test.local",
        "password": "x",
        "full_name": "Other Bob",
        "role": "employee",
    })
    assert r.status_code == 409
    assert r.get_json()["error"]["code"] == "conflict"


def test_register_validation(client, tenants):
    r = client.post("/api/auth/register", json={"username": "only"})
    assert r.status_code == 422

    r = client.post("/api/auth/register", json={
        "company_id": tenants.company_a, "username": "z", "email": "z@test.local",
        "password": "x", "full_name": "Z", "role": "owner",
    })
    assert r.status_code == 422

    r = client.post("/api/auth/register", json={
        "company_id": 98765, "username": "z", "email": "z@test.local",
        "password": "x", "full_name": "Z", "role": "employee",
    })
    assert r.status_code == 404


def test_login_rejects_bad_password_and_inactive_user(client, tenants):
    r = client.post("/api/auth/login", json={"username": "a_bob", "password": "nope"})
    assert r.status_code == 401
    assert r.get_json() == {
        "success": False,
        "error": {"message": "Invalid credentials", "code": "auth.unauthenticated"},
    }

    r = client.post("/api/auth/login", json={"username": "a_gone", "password": "secret"})
    assert r.status_code == 401


def test_missing_or_garbage_token_is_401(client, tenants):
    r = client.post(f"{BASE}/clock-in")
    assert r.status_code == 401
    assert r.get_json()["success"] is False

    r = client.get(f"{BASE}/my-shifts", headers={"Authorization": "Bearer not.a.jwt"})
    assert r.status_code == 401
    assert r.get_json()["error"]["code"] == "auth.unauthenticated"


def test_employee_gets_403_on_manager_routes(client, tenants, auth_header):
    h = auth_header(tenants.a_bob)
    assert client.get(f"{BASE}/shifts", headers=h).status_code == 403
    assert client.get(f"{BASE}/report", headers=h).status_code == 403
    assert client.get(f"{BASE}/employees", headers=h).status_code == 403
    # denied before the body is looked at
    r = client.post(f"{BASE}/shifts", headers=h, data="not json")
    assert r.status_code == 403
    assert r.get_json()["error"]["message"] == "Insufficient permissions"


# ---------- clock-in / clock-out ----------

def test_clock_in_out_flow(client, tenants, auth_header):
    h = auth_header(tenants.a_bob)

    r = client.get(f"{BASE}/active-shift", headers=h)
    assert r.status_code == 200
    assert r.get_json()["data"] == {"message": "No active shift", "shift": None}

    r = client.post(f"{BASE}/clock-in", headers=h)
    assert r.status_code == 201
    shift = r.get_json()["data"]["shift"]
    assert shift["status"] == "in_progress"
    assert shift["clock_out"] is None

    r = client.post(f"{BASE}/clock-in", headers=h)
    assert r.status_code == 409

    r = client.get(f"{BASE}/active-shift", headers=h)
    assert r.get_json()["data"]["shift"]["id"] == shift["id"]

    r = client.post(f"{BASE}/clock-out", headers=h, json={"notes": "done"})
    assert r.status_code == 200
    closed = r.get_json()["data"]["shift"]
    assert closed["id"] == shift["id"]
    assert closed["status"] == "completed"
    assert closed["notes"] == "done"

    r = client.post(f"{BASE}/clock-out", headers=h)
    assert r.status_code == 404
    assert r.get_json()["error"]["code"] == "not_found"

    r = client.get(f"{BASE}/my-shifts", headers=h)
    body = r.get_json()
    assert body["meta"]["count"] == 1
    assert body["data"][0]["id"] == shift["id"]


def test_my_shifts_rejects_negative_limit(client, tenants, auth_header):
    r = client.get(f"{BASE}/my-shifts?limit=-1", headers=auth_header(tenants.a_bob))
    assert r.status_code == 422


# ---------- manager routes ----------

def test_week_requires_week_start(client, tenants, auth_header):
    h = auth_header(tenants.a_bob)
    assert client.get(f"{BASE}/shifts/week", headers=h).status_code == 422
    assert client.get(f"{BASE}/shifts/week?week_start=10/03/2025", headers=h).status_code == 422
    r = client.get(f"{BASE}/shifts/week?week_start=2025-03-10", headers=h)
    assert r.status_code == 200
    assert r.get_json()["data"] == []


def test_assign_converts_offset_to_utc(client, tenants, auth_header):
    h = auth_header(tenants.a_manager)
    r = client.post(f"{BASE}/shifts", headers=h, json={
        "user_id": tenants.a_bob.user_id,
        "clock_in": "2025-03-01T09:00:00+02:00",
        "clock_out": "2025-03-01T17:00:00Z",
    })
    assert r.status_code == 201
    sid = r.get_json()["data"]["shift"]["id"]

    db.session.expire_all()
    row = db.session.get(Shift, sid)
    assert row.clock_in == datetime(2025, 3, 1, 7, 0)
    assert row.clock_out == datetime(2025, 3, 1, 17, 0)
    assert row.status == "completed"

    r = client.get(f"{BASE}/shifts?start_date=2025-03-01&end_date=2025-03-01", headers=h)
    body = r.get_json()
    assert body["meta"] == {"count": 1, "start_date": "2025-03-01", "end_date": "2025-03-01"}
    assert body["data"][0]["username"] == "a_bob"


def test_assign_validation(client, tenants, auth_header):
    h = auth_header(tenants.a_manager)
    r = client.post(f"{BASE}/shifts", headers=h, json={
        "user_id": tenants.a_bob.user_id, "clock_in": "yesterday", "clock_out": "2025-03-01T17:00:00Z",
    })
    assert r.status_code == 422

    r = client.post(f"{BASE}/shifts", headers=h, json={
        "user_id": tenants.a_bob.user_id,
        "clock_in": "2025-03-01T17:00:00Z",
        "clock_out": "2025-03-01T09:00:00Z",
    })
    assert r.status_code == 422

    r = client.post(f"{BASE}/shifts", headers=h, json={
        "user_id": tenants.b_emp.user_id,
        "clock_in": "2025-03-01T09:00:00Z",
        "clock_out": "2025-03-01T17:00:00Z",
    })
    assert r.status_code == 404


def test_report_route(client, tenants, auth_header, svc):
    svc.assign_shift(tenants.a_manager, tenants.a_bob.user_id,
                     datetime(2025, 3, 10, 9), datetime(2025, 3, 10, 15))

    r = client.get(f"{BASE}/report?start_date=2025-03-01&end_date=2025-03-31",
                   headers=auth_header(tenants.a_admin))
    assert r.status_code == 200
    body = r.get_json()
    assert body["data"]["total_shifts"] == 1
    assert body["data"]["total_hours"] == 6.0
    assert body["meta"] == {"start_date": "2025-03-01", "end_date": "2025-03-31"}


def test_update_and_delete_shift_routes(client, tenants, auth_header, svc):
    shift = svc.assign_shift(tenants.a_manager, tenants.a_bob.user_id,
                             datetime(2025, 3, 10, 9), datetime(2025, 3, 10, 15))
    sid = shift.id
    h = auth_header(tenants.a_manager)

    r = client.put(f"{BASE}/shifts/{sid}", headers=h, json={
        "clock_in": "2025-03-10T08:00:00Z", "clock_out": "2025-03-10T12:00:00Z",
    })
    assert r.status_code == 200

    # foreign or missing ids are accepted with no effect
    r = client.put(f"{BASE}/shifts/99999", headers=h, json={
        "clock_in": "2025-03-10T08:00:00Z", "clock_out": "2025-03-10T12:00:00Z",
    })
    assert r.status_code == 200

    assert client.delete(f"{BASE}/shifts/{sid}", headers=h).status_code == 200
    assert client.delete(f"{BASE}/shifts/{sid}", headers=h).status_code == 200
    assert db.session.get(Shift, sid) is None


def test_schedule_by_path_and_query(client, tenants, auth_header):
    h = auth_header(tenants.a_manager)

    r = client.put(f"{BASE}/employees/{tenants.a_bob.user_id}/schedule", headers=h,
                   json={"employment_type": "Seasonal", "shift_type": "Third Shift"})
    assert r.status_code == 200
    assert r.get_json()["data"]["employee"]["employment_type"] == "Seasonal"

    r = client.put(f"{BASE}/employees/schedule?id={tenants.a_alice.user_id}", headers=h,
                   json={"employment_type": "On-Call", "shift_type": "First Shift"})
    assert r.status_code == 200
    db.session.expire_all()
    assert db.session.get(User, tenants.a_alice.user_id).employment_type == "On-Call"

    r = client.put(f"{BASE}/employees/schedule", headers=h,
                   json={"employment_type": "On-Call", "shift_type": "First Shift"})
    assert r.status_code == 422

    r = client.put(f"{BASE}/employees/{tenants.a_bob.user_id}/schedule", headers=h,
                   json={"employment_type": "Freelance", "shift_type": "First Shift"})
    assert r.status_code == 422


def test_employees_route(client, tenants, auth_header):
    r = client.get(f"{BASE}/employees", headers=auth_header(tenants.b_manager))
    assert r.status_code == 200
    body = r.get_json()
    assert [e["username"] for e in body["data"]] == ["b_emp", "b_manager"]
    assert body["meta"]["count"] == 2
    assert all(e["monthly_hours"] == 0 for e in body["data"])


def test_seed_core_is_idempotent(app):
    runner = app.test_cli_runner()

    r = runner.invoke(args=["seed-core", "--password", "pw", "--company", "Seeded"])
    assert r.exit_code == 0, r.output
    assert "created admin" in r.output

    r = runner.invoke(args=["seed-core", "--password", "pw", "--company", "Seeded"])
    assert r.exit_code == 0, r.output
    assert "created" not in r.output

    db.session.expire_all()
    u = db.session.execute(db.select(User).filter_by(username="manager")).scalar_one()
    assert u.role == "manager"
    assert u.check_password("pw")
