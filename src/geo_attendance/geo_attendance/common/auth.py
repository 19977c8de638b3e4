from __future__ import annotations

from functools import wraps
from typing import Iterable

from flask import session

from ..core.enums import Role
from .http import fail


def current_user_id() -> int:
    return int(session["user_id"])


def current_role() -> Role:
    return Role(session["role"])


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return fail("Authentication required", status=401, code="UNAUTHENTICATED")
        return view(*args, **kwargs)

    return wrapper


def roles_required(roles: Iterable[Role]):
    """Allow only the given roles; unauthenticated callers get 401."""

    allowed = {r.value for r in roles}

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                return fail("Authentication required", status=401, code="UNAUTHENTICATED")
            if session.get("role") not in allowed:
                return fail("You do not have permission for this action", status=403, code="FORBIDDEN")
            return view(*args, **kwargs)

        return wrapper

    return decorator
