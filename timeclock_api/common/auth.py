# timeclock_api/common/auth.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from functools import wraps

from flask import current_app
from flask_jwt_extended import (
    create_access_token,
    get_jwt,
    get_jwt_identity,
    verify_jwt_in_request,
)

from timeclock_api.common.errors import Unauthenticated
from timeclock_api.common.http import fail
from timeclock_api.extensions import jwt
from timeclock_api.models.user import ROLES, User
from timeclock_api.rbac import authorize


@dataclass(frozen=True)
class Identity:
    """Verified caller, taken from the token and trusted as-is."""
    user_id: int
    company_id: int
    username: str
    role: str


# ---------- issuing ----------

def issue_token(u: User) -> str:
    claims = {"company_id": u.company_id, "username": u.username, "role": u.role}
    hours = int(current_app.config.get("JWT_EXPIRATION_HOURS", 24))
    return create_access_token(
        identity=str(u.id),
        additional_claims=claims,
        expires_delta=timedelta(hours=hours),
    )


# ---------- verifying ----------

def current_identity() -> Identity:
    """
    Verify the bearer token of the current request and return its identity.
    Raises Unauthenticated on a missing/invalid token or incomplete claims.
    """
    # token-level failures are rendered by the JWT loader callbacks below
    verify_jwt_in_request()

    claims = get_jwt() or {}
    try:
        user_id = int(get_jwt_identity())
        company_id = int(claims["company_id"])
    except (KeyError, TypeError, ValueError):
        raise Unauthenticated("Invalid token")

    role = claims.get("role")
    if role not in ROLES:
        raise Unauthenticated("Invalid token")

    return Identity(
        user_id=user_id,
        company_id=company_id,
        username=str(claims.get("username") or ""),
        role=role,
    )


def requires_operation(name: str):
    """
    Route decorator: verifies the token, checks the operation policy before
    any request parsing, then passes the Identity as first argument.
    """
    def outer(fn):
        @wraps(fn)
        def inner(*args, **kwargs):
            identity = current_identity()
            authorize(identity, name)
            return fn(identity, *args, **kwargs)
        return inner
    return outer


# ---------- JWT loader callbacks ----------

@jwt.unauthorized_loader
def _missing_token(reason: str):
    return fail("Authorization header required", status=401, code="auth.unauthenticated")

@jwt.invalid_token_loader
def _invalid_token(reason: str):
    return fail("Invalid token", status=401, code="auth.unauthenticated")

@jwt.expired_token_loader
def _expired_token(jwt_header, jwt_payload):
    return fail("Token has expired", status=401, code="auth.unauthenticated")
