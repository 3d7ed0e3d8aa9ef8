# Overview: Domain error taxonomy shared by services and routes.

"""
Typed domain errors.

Every error carries a stable ``kind`` (what clients switch on) and the HTTP
status a route should answer with. Services raise them; routes render them via
``error_response``. Anything that is not a DomainError is a 500.

Credential and session failures intentionally share one external message so a
caller cannot tell "no such user" from "wrong password", or "unknown token"
from "expired token".
"""

from __future__ import annotations


class DomainError(Exception):
    kind = "DomainError"
    status_code = 400
    public_message: str | None = None

    def __init__(self, message: str | None = None):
        super().__init__(message or self.public_message or self.kind)

    def to_dict(self) -> dict:
        return {"error": self.public_message or str(self), "kind": self.kind}


class ValidationError(DomainError):
    """400-level input problem."""
    kind = "ValidationError"
    status_code = 400


class InvalidCredentials(DomainError):
    kind = "InvalidCredentials"
    status_code = 401
    public_message = "Invalid credentials"


class SessionInvalid(DomainError):
    kind = "SessionInvalid"
    status_code = 401
    public_message = "Authentication required"


class Forbidden(DomainError):
    kind = "Forbidden"
    status_code = 403


class NotFound(DomainError):
    kind = "NotFound"
    status_code = 404


class DuplicateIdentity(DomainError):
    kind = "DuplicateIdentity"
    status_code = 409


class ConflictError(DomainError):
    """409-level uniqueness conflict outside of identities (e.g. duplicate catalog entry)."""
    kind = "Conflict"
    status_code = 409


class AlreadyDecided(DomainError):
    kind = "AlreadyDecided"
    status_code = 409


class NotApproved(DomainError):
    kind = "NotApproved"
    status_code = 409


class NotAssigned(DomainError):
    kind = "NotAssigned"
    status_code = 409


class InvalidTransition(DomainError):
    kind = "InvalidTransition"
    status_code = 409


def error_response(exc: DomainError):
    """Flask (body, status) tuple for a domain error."""
    return exc.to_dict(), exc.status_code
