# Overview: Credential store; bcrypt password hashing, identity uniqueness and login verification.

"""
Authentication Service

WHY: Every action must be attributable. Staff users and portal customers
log in with username/password; passwords are stored as bcrypt hashes only.

SECURITY NOTES:
- Passwords hashed with bcrypt (work factor from BCRYPT_ROUNDS, default 12)
- Usernames are unique across staff users AND customer portal logins, so a
  login name always resolves to exactly one identity
- Unknown identity, wrong password and deactivated identity all raise the
  same InvalidCredentials; unknown identities are still checked against a
  dummy hash so response time does not reveal which case occurred
- Session tokens are managed separately (see session_service.py)
"""

from __future__ import annotations

import re
import secrets
from dataclasses import dataclass, field
from functools import lru_cache

import bcrypt
from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..errors import DuplicateIdentity, InvalidCredentials, NotFound, ValidationError
from ..models import User, Customer
from ..models.auth import ROLE_ADMIN, ROLE_CUSTOMER, STAFF_ROLES
from paintdesk.time_utils import utcnow


PRINCIPAL_USER = "user"
PRINCIPAL_CUSTOMER = "customer"

MIN_PASSWORD_LENGTH = 8


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""


@dataclass(frozen=True)
class Principal:
    """
    Authenticated identity as seen by the authorization guard.

    kind is "user" for staff and "customer" for portal logins; role is one of
    admin / user / customer.
    """
    kind: str
    id: int
    role: str
    username: str
    record: User | Customer = field(compare=False, repr=False)

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @property
    def is_customer(self) -> bool:
        return self.kind == PRINCIPAL_CUSTOMER

    def to_dict(self) -> dict:
        data = self.record.to_dict()
        data["role"] = self.role
        data["principal_type"] = self.kind
        return data


def principal_for_user(user: User) -> Principal:
    return Principal(kind=PRINCIPAL_USER, id=user.id, role=user.role, username=user.username, record=user)


def principal_for_customer(customer: Customer) -> Principal:
    return Principal(
        kind=PRINCIPAL_CUSTOMER,
        id=customer.id,
        role=ROLE_CUSTOMER,
        username=customer.username,
        record=customer,
    )


def validate_password_strength(password: str) -> None:
    """
    Minimum 8 characters with at least one letter and one digit.

    Raises PasswordValidationError if requirements not met.
    """
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

    if not re.search(r"[A-Za-z]", password):
        raise PasswordValidationError("Password must contain at least one letter")

    if not re.search(r"\d", password):
        raise PasswordValidationError("Password must contain at least one digit")


def _bcrypt_rounds() -> int:
    return int(current_app.config.get("BCRYPT_ROUNDS", 12))


def hash_password(password: str) -> str:
    """Validate strength, then hash with bcrypt at the configured work factor."""
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=_bcrypt_rounds())
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


@lru_cache(maxsize=4)
def _dummy_hash(rounds: int) -> bytes:
    return bcrypt.hashpw(secrets.token_bytes(16), bcrypt.gensalt(rounds=rounds))


def verify_password(password: str, password_hash: str | None) -> bool:
    """
    Verify password against bcrypt hash (bcrypt.checkpw is constant time).

    A missing hash is compared against a dummy hash so the call costs the same.
    """
    if not isinstance(password, str):
        return False
    candidate = password.encode("utf-8")
    if not password_hash:
        bcrypt.checkpw(candidate, _dummy_hash(_bcrypt_rounds()))
        return False
    try:
        return bcrypt.checkpw(candidate, password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def _normalize_username(username: str | None) -> str:
    return (username or "").strip()


def _normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def ensure_identity_available(
    *,
    username: str | None = None,
    email: str | None = None,
    exclude_user_id: int | None = None,
    exclude_customer_id: int | None = None,
) -> None:
    """
    Raise DuplicateIdentity if username or email is already taken.

    Staff log in by username or email and portal customers by username, so
    all three share one namespace: a customer username may not equal any
    staff email and a staff email may not equal any customer username.
    """
    def _taken(q, model, exclude_id):
        if exclude_id is not None:
            q = q.filter(model.id != exclude_id)
        return q.first() is not None

    if username:
        if _taken(db.session.query(User.id).filter(User.username == username), User, exclude_user_id):
            raise DuplicateIdentity("Username already exists")
        if _taken(db.session.query(Customer.id).filter(Customer.username == username), Customer, exclude_customer_id):
            raise DuplicateIdentity("Username already exists")
        if _taken(db.session.query(User.id).filter(User.email == username.lower()), User, exclude_user_id):
            raise DuplicateIdentity("Username already exists")

    if email:
        if _taken(db.session.query(User.id).filter(User.email == email), User, exclude_user_id):
            raise DuplicateIdentity("Email already exists")
        customer_match = db.session.query(Customer.id).filter(db.func.lower(Customer.username) == email)
        if _taken(customer_match, Customer, exclude_customer_id):
            raise DuplicateIdentity("Email already exists")


def _commit_identity() -> None:
    # The unique indexes are the last line of defence against a concurrent insert
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise DuplicateIdentity("Username or email already exists")


def create_user(
    username: str,
    email: str,
    password: str,
    role: str = "user",
    *,
    full_name: str | None = None,
    phone: str | None = None,
) -> User:
    """
    Create a staff user.

    Raises:
        ValidationError: bad role, blank username/email
        PasswordValidationError: weak password
        DuplicateIdentity: username or email already taken
    """
    username = _normalize_username(username)
    email = _normalize_email(email)

    if not username:
        raise ValidationError("username is required")
    if not email or "@" not in email:
        raise ValidationError("A valid email is required")
    if role not in STAFF_ROLES:
        raise ValidationError(f"role must be one of: {', '.join(sorted(STAFF_ROLES))}")

    ensure_identity_available(username=username, email=email)

    user = User(
        username=username,
        email=email,
        password_hash=hash_password(password),
        role=role,
        full_name=full_name,
        phone=phone,
        is_active=True,
    )
    db.session.add(user)
    _commit_identity()

    current_app.logger.info("Created %s user %s (id=%s)", role, username, user.id)
    return user


def update_user(user_id: int, patch: dict) -> User:
    """Apply a validated profile patch (username/email/full_name/phone/role)."""
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFound(f"User {user_id} not found")

    if "username" in patch:
        patch["username"] = _normalize_username(patch["username"])
    if "email" in patch:
        patch["email"] = _normalize_email(patch["email"])
    if "role" in patch and patch["role"] not in STAFF_ROLES:
        raise ValidationError(f"role must be one of: {', '.join(sorted(STAFF_ROLES))}")

    ensure_identity_available(
        username=patch.get("username"),
        email=patch.get("email"),
        exclude_user_id=user.id,
    )

    for key, value in patch.items():
        setattr(user, key, value)
    _commit_identity()
    return user


def set_user_active(user_id: int, is_active: bool) -> User:
    """
    Soft-(de)activate a user. Deactivation also revokes every session.

    Users are never hard-deleted; their ids stay referenced by orders.
    """
    from . import session_service

    user = db.session.get(User, user_id)
    if user is None:
        raise NotFound(f"User {user_id} not found")

    user.is_active = is_active
    db.session.commit()

    if not is_active:
        revoked = session_service.revoke_all_sessions(user_id=user.id)
        current_app.logger.info("Deactivated user %s, revoked %d sessions", user.username, revoked)
    return user


def change_password(user_id: int, current_password: str, new_password: str) -> User:
    """
    Change a staff user's password after re-verifying the current one.

    All existing sessions are revoked; the caller must log in again.
    """
    from . import session_service

    user = db.session.get(User, user_id)
    if user is None or not verify_password(current_password, user.password_hash):
        raise InvalidCredentials()

    user.password_hash = hash_password(new_password)
    db.session.commit()
    session_service.revoke_all_sessions(user_id=user.id)
    return user


def set_customer_credentials(customer_id: int, username: str, password: str) -> Customer:
    """Enable (or reset) portal login for a customer."""
    from . import session_service

    customer = db.session.get(Customer, customer_id)
    if customer is None:
        raise NotFound(f"Customer {customer_id} not found")

    username = _normalize_username(username)
    if not username:
        raise ValidationError("username is required")

    ensure_identity_available(username=username, exclude_customer_id=customer.id)
    password_hash = hash_password(password)

    customer.username = username
    customer.password_hash = password_hash
    _commit_identity()

    # Old portal sessions must not survive a credential reset
    session_service.revoke_all_sessions(customer_id=customer.id)
    return customer


def authenticate(identity: str, password: str) -> Principal:
    """
    Verify username/email + password and return the matching Principal.

    Staff users are matched by username or email; portal customers by
    username. Updates last_login_at for staff.

    Raises InvalidCredentials for every failure mode.
    """
    identity = (identity or "").strip()
    if not identity or not password:
        raise InvalidCredentials()

    user = db.session.query(User).filter(
        db.or_(User.username == identity, User.email == identity.lower())
    ).first()

    if user is not None:
        if verify_password(password, user.password_hash) and user.is_active:
            user.last_login_at = utcnow()
            db.session.commit()
            return principal_for_user(user)
        current_app.logger.info("Failed login for %r", identity)
        raise InvalidCredentials()

    customer = db.session.query(Customer).filter(Customer.username == identity).first()
    password_hash = customer.password_hash if customer is not None else None

    if verify_password(password, password_hash) and customer.is_active:
        return principal_for_customer(customer)

    current_app.logger.info("Failed login for %r", identity)
    raise InvalidCredentials()


def ensure_bootstrap_admin() -> User | None:
    """
    Create the default administrator when no admin exists yet.

    Returns the created User, or None if an admin was already present.

    SECURITY: The default credentials (admin / admin123 unless overridden
    by BOOTSTRAP_ADMIN_*) are well known. Rotate them before going live.
    """
    existing = db.session.query(User.id).filter(User.role == ROLE_ADMIN).first()
    if existing is not None:
        return None

    cfg = current_app.config
    user = create_user(
        cfg.get("BOOTSTRAP_ADMIN_USERNAME", "admin"),
        cfg.get("BOOTSTRAP_ADMIN_EMAIL", "admin@example.com"),
        cfg.get("BOOTSTRAP_ADMIN_PASSWORD", "admin123"),
        ROLE_ADMIN,
        full_name="System Administrator",
    )
    current_app.logger.warning(
        "Created bootstrap admin %r with default credentials; change the password before production use",
        user.username,
    )
    return user
