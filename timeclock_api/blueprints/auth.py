from flask import Blueprint, current_app, request
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from timeclock_api.common.auth import current_identity, issue_token
from timeclock_api.common.errors import (
    ConflictError,
    NotFoundError,
    Unauthenticated,
    ValidationError,
)
from timeclock_api.common.http import ok
from timeclock_api.extensions import db
from timeclock_api.models.master import Company
from timeclock_api.models.user import ROLE_ADMIN, ROLES, User

bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _json() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _text(data: dict, key: str) -> str:
    v = data.get(key)
    return v.strip() if isinstance(v, str) else ""


def _auth_payload(u: User):
    return {"token": issue_token(u), "user": u.to_dict()}


@bp.post("/login")
def login():
    data = _json()
    username = _text(data, "username")
    password = data.get("password") or ""
    if not username or not password:
        raise ValidationError("Username and password are required")

    u = db.session.execute(
        select(User).where(User.username == username, User.is_active.is_(True))
    ).scalar_one_or_none()
    if not u or not u.check_password(password):
        raise Unauthenticated("Invalid credentials")

    return ok(_auth_payload(u))


@bp.post("/register")
def register():
    """
    JSON: {
      "company_name": "Acme",     // creates the company; admin role only
      "company_id": 3,            // join an existing company instead
      "username": "...", "email": "...", "password": "...",
      "full_name": "...", "role": "admin" | "manager" | "employee"
    }
    """
    data = _json()
    username = _text(data, "username")
    email = _text(data, "email").lower()
    password = data.get("password") or ""
    full_name = _text(data, "full_name")
    role = _text(data, "role")
    company_name = _text(data, "company_name")

    if not (username and email and password and full_name):
        raise ValidationError("All fields are required")
    if role not in ROLES:
        raise ValidationError("Invalid role. Must be: admin, manager, or employee")

    if company_name and role == ROLE_ADMIN:
        company = Company(name=company_name)
        db.session.add(company)
        db.session.flush()
    else:
        try:
            company_id = int(data.get("company_id") or 0)
        except (TypeError, ValueError):
            raise ValidationError("Invalid company_id")
        if not company_id:
            raise ValidationError("Company ID or Company Name is required")
        company = db.session.get(Company, company_id)
        if company is None:
            raise NotFoundError("company not found")

    u = User(
        company_id=company.id,
        username=username,
        email=email,
        full_name=full_name,
        role=role,
        is_active=True,
    )
    u.set_password(password)
    db.session.add(u)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Username or email already exists")

    current_app.logger.info("registered user=%s company=%s role=%s", u.id, company.id, role)
    return ok(_auth_payload(u), 201)


@bp.get("/me")
def me():
    ident = current_identity()
    u = db.session.get(User, ident.user_id)
    if not u or u.company_id != ident.company_id:
        raise NotFoundError("User not found")
    return ok(u.to_dict())
