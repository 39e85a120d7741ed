import os
from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest

from timeclock_api import create_app
from timeclock_api.common.auth import Identity, issue_token
from timeclock_api.extensions import db
from timeclock_api.models.master import Company
from timeclock_api.models.user import User
from timeclock_api.services.attendance import AttendanceService
from timeclock_api.services.shift_store import ShiftStore


class _TestConfig:
    TESTING = True
    JWT_SECRET_KEY = "test-jwt-secret-with-enough-bytes-for-hs256"


class FrozenClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kw):
        self.now = self.now + timedelta(**kw)


@pytest.fixture(scope="function")
def app():
    os.environ["DATABASE_URL"] = "sqlite:///:memory:"
    app = create_app(_TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope="function")
def client(app):
    return app.test_client()


def _ident(u: User) -> Identity:
    return Identity(user_id=u.id, company_id=u.company_id, username=u.username, role=u.role)


def _mk_user(company, username, role, full_name, is_active=True):
    u = User(
        company_id=company.id,
        username=username,
        email=f"{username}@test.local",
        full_name=full_name,
        role=role,
        is_active=is_active,
    )
    u.set_password("secret")
    db.session.add(u)
    return u


@pytest.fixture(scope="function")
def tenants(app):
    """
    Company A: admin, manager, two employees (Bob, Alice) and an inactive one.
    Company B: manager and one employee.
    """
    a = Company(name="Acme")
    b = Company(name="Globex")
    db.session.add_all([a, b]); db.session.commit()

    users = {
        "a_admin": _mk_user(a, "a_admin", "admin", "Ada Admin"),
        "a_manager": _mk_user(a, "a_manager", "manager", "Mia Manager"),
        "a_bob": _mk_user(a, "a_bob", "employee", "Bob Builder"),
        "a_alice": _mk_user(a, "a_alice", "employee", "Alice Archer"),
        "a_gone": _mk_user(a, "a_gone", "employee", "Gone Person", is_active=False),
        "b_manager": _mk_user(b, "b_manager", "manager", "Ben Boss"),
        "b_emp": _mk_user(b, "b_emp", "employee", "Bea Worker"),
    }
    db.session.commit()

    ns = SimpleNamespace(company_a=a.id, company_b=b.id)
    for key, u in users.items():
        setattr(ns, key, _ident(u))
    return ns


@pytest.fixture(scope="function")
def clock():
    return FrozenClock(datetime(2025, 3, 20, 12, 0, 0))


@pytest.fixture(scope="function")
def svc(app, clock):
    return AttendanceService(ShiftStore(db), clock=clock)


@pytest.fixture(scope="function")
def auth_header(app):
    def _make(identity: Identity):
        u = db.session.get(User, identity.user_id)
        return {"Authorization": f"Bearer {issue_token(u)}"}
    return _make
