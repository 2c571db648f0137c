"""JSON responses shared by the controllers."""

from __future__ import annotations

from datetime import date
from functools import wraps
from typing import Optional

import structlog
from flask import jsonify, request

from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    BackendError,
    DomainError,
    ValidationError,
)
from .datetime_utils import parse_iso_date

log = structlog.get_logger(__name__)

SYSTEM_ERROR = "Something went wrong. Please try again."


def ok(**data):
    return jsonify({"success": True, **data})


def fail(message: str, status: int = 400, /, **extra):
    return jsonify({"success": False, "message": message, **extra}), status


def status_for(error: DomainError) -> int:
    if isinstance(error, AuthenticationError):
        return 401
    if isinstance(error, AuthorizationError):
        return 403
    if isinstance(error, BackendError):
        return 503
    return 400


def domain_error_response(error: DomainError):
    extra = {}
    if isinstance(error, ValidationError):
        extra["field"] = error.field
        extra["errors"] = error.errors
    return fail(str(error), status_for(error), **extra)


def json_endpoint(view):
    """Translate domain errors into JSON error bodies; anything else is a 500."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            return view(*args, **kwargs)
        except DomainError as e:
            return domain_error_response(e)
        except Exception:
            log.exception("unhandled_error", view=view.__name__)
            return fail(SYSTEM_ERROR, 500)

    return wrapper


def request_payload() -> dict:
    """JSON body, or form fields for classic form posts."""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


def date_arg(name: str) -> Optional[date]:
    """Optional YYYY-MM-DD query parameter."""
    value = (request.args.get(name) or "").strip()
    if not value:
        return None
    try:
        return parse_iso_date(value)
    except ValueError:
        raise ValidationError(f"Invalid date: {value}", field=name) from None
