"""
Error taxonomy for the realtime messaging socket.

Every failure a socket handler reports back to the client carries one of
the :class:`ErrorKind` codes alongside a human readable message, so
clients can branch on ``code`` instead of matching strings.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    PERSISTENCE = "persistence"
    INTERNAL = "internal"


class MessagingError(Exception):
    """Base class for errors converted into an ``error`` push."""

    kind: ErrorKind = ErrorKind.VALIDATION
    default_detail = "Request failed."

    def __init__(self, detail: Optional[str] = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)

    @property
    def code(self) -> str:
        return self.kind.value

    def as_payload(self, event: Optional[str] = None) -> dict[str, Any]:
        return {"code": self.code, "message": self.detail, "event": event}


class AuthenticationError(MessagingError):
    kind = ErrorKind.AUTHENTICATION
    default_detail = "Authentication failed."


class AuthorizationError(MessagingError):
    kind = ErrorKind.AUTHORIZATION
    default_detail = "Not allowed."


class ValidationError(MessagingError):
    kind = ErrorKind.VALIDATION
    default_detail = "Invalid payload."


class NotFoundError(MessagingError):
    kind = ErrorKind.NOT_FOUND
    default_detail = "Not found."


class PersistenceError(MessagingError):
    kind = ErrorKind.PERSISTENCE
    default_detail = "Failed to store message."


class InternalError(MessagingError):
    kind = ErrorKind.INTERNAL
    default_detail = "Something went wrong; please retry."
