"""Route guard: identity -> role -> allowed area."""

from __future__ import annotations

from functools import wraps
from typing import Optional

from flask import jsonify, session

from ..core.enums import Role
from ..storage.local_storage import FlaskSessionStorage
from .model import SessionUser
from .service import AuthSession

LOGIN_PATH = "/login"


def home_for(role: Role) -> str:
    return "/admin" if role == Role.ADMIN else "/employee"


def guard(user: Optional[SessionUser], required_role: Optional[Role] = None) -> Optional[str]:
    """Return the redirect target for a blocked request, or None when allowed."""
    if user is None:
        return LOGIN_PATH
    if required_role is not None and user.role != required_role:
        return home_for(user.role)
    return None


def current_auth() -> AuthSession:
    return AuthSession(FlaskSessionStorage(session))


def _blocked(target: str):
    if target == LOGIN_PATH:
        return jsonify({"success": False, "message": "Please sign in to continue", "redirect": target}), 401
    return jsonify({"success": False, "message": "Forbidden", "redirect": target}), 403


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        target = guard(current_auth().current_user)
        if target:
            return _blocked(target)
        return view(*args, **kwargs)

    return wrapper


def role_required(role: Role):
    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            target = guard(current_auth().current_user, role)
            if target:
                return _blocked(target)
            return view(*args, **kwargs)

        return wrapper

    return decorator
