# timeclock_api/rbac.py
"""
Declarative access policy for attendance operations.

Every operation is listed once with the roles allowed to call it. Tenant
scoping is the same for all of them: the company comes from the verified
identity, never from request input. Operations missing from the table are
denied.
"""
from __future__ import annotations

from dataclasses import dataclass
from functools import wraps
import logging
from typing import FrozenSet

from timeclock_api.common.errors import Forbidden
from timeclock_api.models.user import ROLES, ROLE_ADMIN, ROLE_MANAGER

log = logging.getLogger(__name__)

ANY_ROLE = frozenset(ROLES)
MANAGERS = frozenset((ROLE_MANAGER, ROLE_ADMIN))


@dataclass(frozen=True)
class Policy:
    roles: FrozenSet[str]
    scope: str = "own_company"


POLICIES = {
    "clock-in":                 Policy(ANY_ROLE),
    "clock-out":                Policy(ANY_ROLE),
    "my-shifts":                Policy(ANY_ROLE),
    "active-shift":             Policy(ANY_ROLE),
    "week-shifts":              Policy(ANY_ROLE),
    "all-shifts":               Policy(MANAGERS),
    "report":                   Policy(MANAGERS),
    "employees":                Policy(MANAGERS),
    "update-employee-schedule": Policy(MANAGERS),
    "assign-shift":             Policy(MANAGERS),
    "update-shift":             Policy(MANAGERS),
    "delete-shift":             Policy(MANAGERS),
}


def authorize(identity, operation: str) -> Policy:
    policy = POLICIES.get(operation)
    if policy is None or identity.role not in policy.roles:
        log.warning(
            "deny user=%s role=%s operation=%s",
            identity.user_id, identity.role, operation,
        )
        raise Forbidden("Insufficient permissions")
    return policy


def operation(name: str):
    """
    Usage (service methods taking the caller's Identity first):

      @operation("report")
      def get_report(self, identity, ...): ...
    """
    if name not in POLICIES:
        raise KeyError(f"no policy for operation {name!r}")

    def decorator(fn):
        @wraps(fn)
        def wrapper(self, identity, *args, **kwargs):
            authorize(identity, name)
            return fn(self, identity, *args, **kwargs)
        wrapper.operation = name
        return wrapper
    return decorator
