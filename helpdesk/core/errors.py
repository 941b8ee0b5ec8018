"""
Domain errors raised by the services layer.

Routers translate them to HTTP responses (see helpdesk.api.deps.http_error).
Anything that is not a HelpdeskError (store unavailable etc.) propagates as is.
"""

from __future__ import annotations


class HelpdeskError(Exception):
    """Base class for errors the core reports to its callers."""

    default_message = "Helpdesk error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFound(HelpdeskError):
    """Referenced ticket or user does not exist. Checked before permissions."""

    default_message = "Not found"


class Forbidden(HelpdeskError):
    """The actor is authenticated but the policy denies the operation."""

    default_message = "Forbidden"

    @property
    def reason(self) -> str:
        return self.message


class ValidationError(HelpdeskError):
    """Malformed input: unknown enum value, missing or empty field."""

    default_message = "Invalid input"


class Conflict(HelpdeskError):
    """Uniqueness violation (duplicate user email)."""

    default_message = "Conflict"
