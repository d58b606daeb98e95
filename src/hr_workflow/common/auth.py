from __future__ import annotations

from functools import wraps

from flask import session

from ..core.roles import normalize_role
from ..users.model import Actor
from .http import fail


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return fail("Please log in to continue", status=401)
        return view(*args, **kwargs)

    return wrapper


def current_actor() -> Actor:
    """Build the explicit actor for a service call from the session cookie."""
    return Actor(user_id=int(session["user_id"]), role=normalize_role(session.get("role")))
