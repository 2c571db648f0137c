from __future__ import annotations

from typing import Optional


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules.

    `field` names the offending input; `errors` carries field-level messages
    when a whole form is validated at once.
    """

    def __init__(self, message: str, field: Optional[str] = None, errors: Optional[dict[str, str]] = None):
        super().__init__(message)
        self.field = field
        self.errors = dict(errors or ({field: message} if field else {}))


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class SessionStateError(DomainError):
    """Raised when a clock/break transition is not valid from the current state."""


class GeolocationUnavailable(DomainError):
    """Raised when no location fix could be obtained."""


class BackendError(DomainError):
    """Raised when the record store rejects or fails a query."""
