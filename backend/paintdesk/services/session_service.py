# Overview: Session manager; issues, validates and revokes hashed bearer tokens.

"""
Session Token Management Service

WHY: Revocable bearer tokens. A token is only as good as the server-side
row backing it; logout deletes the row and the token is dead immediately.

SECURITY FEATURES:
- Cryptographically secure random tokens (32 bytes)
- Tokens hashed with SHA-256 before storage (fast, one-way)
- Fixed absolute lifetime (SESSION_TTL_HOURS, default 24h)
- Plaintext token is returned exactly once, at issue time
- "Unknown", "expired" and "identity deactivated" all fail the same way
"""

from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..errors import SessionInvalid
from ..models import SessionToken, User, Customer
from .auth_service import (
    PRINCIPAL_CUSTOMER,
    Principal,
    principal_for_customer,
    principal_for_user,
)
from paintdesk.time_utils import utcnow


DEFAULT_SESSION_TTL = timedelta(hours=24)


@dataclass
class SessionContext:
    """Validated session plus the identity it resolves to."""
    principal: Principal
    session: SessionToken


def session_ttl() -> timedelta:
    hours = current_app.config.get("SESSION_TTL_HOURS")
    return timedelta(hours=hours) if hours else DEFAULT_SESSION_TTL


def generate_token() -> str:
    """64-character hex string (32 bytes of entropy). Sent to the client, never stored."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """
    SHA-256 hex digest for storage.

    Tokens are already high-entropy, so a fast hash is sufficient here
    (unlike passwords, which go through bcrypt).
    """
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def create_session(principal: Principal) -> tuple[SessionToken, str]:
    """
    Issue a new session for an authenticated principal.

    Returns (session_record, plaintext_token). The database stores only the hash.
    """
    plaintext_token = generate_token()
    now = utcnow()

    session = SessionToken(
        token_hash=hash_token(plaintext_token),
        created_at=now,
        expires_at=now + session_ttl(),
    )
    if principal.kind == PRINCIPAL_CUSTOMER:
        session.customer_id = principal.id
    else:
        session.user_id = principal.id

    db.session.add(session)
    db.session.commit()

    return session, plaintext_token


def validate_session(token: str | None) -> SessionContext:
    """
    Resolve a presented bearer token to its SessionContext.

    Raises SessionInvalid if the token is unknown, expired, or its identity
    has since been deactivated. Expired rows are ignored here and removed by
    cleanup_expired_sessions().
    """
    if not token:
        raise SessionInvalid()

    session = db.session.query(SessionToken).filter(
        SessionToken.token_hash == hash_token(token),
        SessionToken.expires_at > utcnow(),
    ).first()

    if session is None:
        raise SessionInvalid()

    if session.user_id is not None:
        user = db.session.get(User, session.user_id)
        if user is None or not user.is_active:
            raise SessionInvalid()
        principal = principal_for_user(user)
    else:
        customer = db.session.get(Customer, session.customer_id)
        if customer is None or not customer.is_active or not customer.has_portal_access:
            raise SessionInvalid()
        principal = principal_for_customer(customer)

    return SessionContext(principal=principal, session=session)


def revoke_session(token: str | None) -> int:
    """
    Delete the session backing this token.

    Idempotent: revoking an unknown or already revoked token returns 0.
    """
    if not token:
        return 0
    deleted = db.session.query(SessionToken).filter(
        SessionToken.token_hash == hash_token(token)
    ).delete(synchronize_session=False)
    db.session.commit()
    return deleted


def revoke_all_sessions(*, user_id: int | None = None, customer_id: int | None = None) -> int:
    """
    Delete every session of one identity (all devices). Returns count removed.

    Used on logout-all, password change and deactivation.
    """
    if (user_id is None) == (customer_id is None):
        raise ValueError("Exactly one of user_id or customer_id is required")

    q = db.session.query(SessionToken)
    if user_id is not None:
        q = q.filter(SessionToken.user_id == user_id)
    else:
        q = q.filter(SessionToken.customer_id == customer_id)

    deleted = q.delete(synchronize_session=False)
    db.session.commit()
    return deleted


def cleanup_expired_sessions() -> int:
    """
    Delete expired sessions. Returns count deleted.

    Storage hygiene only; validate_session already ignores expired rows.
    Run periodically (flask maintenance cleanup-sessions).
    """
    deleted = db.session.query(SessionToken).filter(
        SessionToken.expires_at <= utcnow()
    ).delete(synchronize_session=False)
    db.session.commit()
    return deleted
