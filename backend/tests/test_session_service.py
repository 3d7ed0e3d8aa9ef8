"""
Session manager tests.

Verifies:
- Tokens are stored only as SHA-256 hashes
- A token validates until expires_at and never after
- Revocation is immediate and idempotent
- Deactivating an identity invalidates its sessions
"""

from datetime import timedelta

import pytest

from paintdesk.errors import SessionInvalid
from paintdesk.models import SessionToken
from paintdesk.services import auth_service, session_service
from paintdesk.services.auth_service import principal_for_customer, principal_for_user
from paintdesk.time_utils import utcnow


class TestCreateAndValidate:

    def test_plaintext_token_not_stored(self, db_session, tech):
        session, token = session_service.create_session(principal_for_user(tech))
        assert len(token) == 64
        assert session.token_hash == session_service.hash_token(token)
        assert db_session.query(SessionToken).filter_by(token_hash=token).count() == 0

    def test_validate_returns_principal(self, tech):
        _, token = session_service.create_session(principal_for_user(tech))
        context = session_service.validate_session(token)
        assert context.principal.id == tech.id
        assert context.principal.kind == "user"

    def test_customer_session(self, customer):
        session, token = session_service.create_session(principal_for_customer(customer))
        assert session.customer_id == customer.id
        assert session.user_id is None
        assert session_service.validate_session(token).principal.is_customer

    def test_default_ttl_is_24_hours(self, tech):
        session, _ = session_service.create_session(principal_for_user(tech))
        assert session.expires_at - session.created_at == timedelta(hours=24)

    def test_multiple_sessions_per_user(self, tech):
        _, token_a = session_service.create_session(principal_for_user(tech))
        _, token_b = session_service.create_session(principal_for_user(tech))
        assert token_a != token_b
        session_service.validate_session(token_a)
        session_service.validate_session(token_b)

    @pytest.mark.parametrize("token", [None, "", "deadbeef" * 8])
    def test_unknown_token(self, db_session, token):
        with pytest.raises(SessionInvalid):
            session_service.validate_session(token)


class TestExpiry:

    def test_expired_token_rejected(self, db_session, tech):
        session, token = session_service.create_session(principal_for_user(tech))
        session.expires_at = utcnow() - timedelta(seconds=1)
        db_session.commit()

        with pytest.raises(SessionInvalid):
            session_service.validate_session(token)

    def test_token_valid_just_before_expiry(self, db_session, tech):
        session, token = session_service.create_session(principal_for_user(tech))
        session.expires_at = utcnow() + timedelta(seconds=30)
        db_session.commit()

        assert session_service.validate_session(token).principal.id == tech.id

    def test_cleanup_removes_only_expired(self, db_session, tech):
        expired, _ = session_service.create_session(principal_for_user(tech))
        expired.expires_at = utcnow() - timedelta(hours=1)
        db_session.commit()
        _, live_token = session_service.create_session(principal_for_user(tech))

        assert session_service.cleanup_expired_sessions() == 1
        assert db_session.query(SessionToken).count() == 1
        session_service.validate_session(live_token)


class TestRevocation:

    def test_revoke_is_immediate(self, tech):
        _, token = session_service.create_session(principal_for_user(tech))
        assert session_service.revoke_session(token) == 1

        with pytest.raises(SessionInvalid):
            session_service.validate_session(token)

    def test_revoke_is_idempotent(self, tech):
        _, token = session_service.create_session(principal_for_user(tech))
        session_service.revoke_session(token)
        assert session_service.revoke_session(token) == 0

    def test_revoke_all_only_touches_one_identity(self, tech, other_tech):
        _, mine = session_service.create_session(principal_for_user(tech))
        session_service.create_session(principal_for_user(tech))
        _, theirs = session_service.create_session(principal_for_user(other_tech))

        assert session_service.revoke_all_sessions(user_id=tech.id) == 2
        with pytest.raises(SessionInvalid):
            session_service.validate_session(mine)
        session_service.validate_session(theirs)

    def test_revoke_all_requires_exactly_one_identity(self, db_session):
        with pytest.raises(ValueError):
            session_service.revoke_all_sessions()
        with pytest.raises(ValueError):
            session_service.revoke_all_sessions(user_id=1, customer_id=1)

    def test_deactivation_kills_sessions(self, tech):
        _, token = session_service.create_session(principal_for_user(tech))
        auth_service.set_user_active(tech.id, False)

        with pytest.raises(SessionInvalid):
            session_service.validate_session(token)

    def test_portal_reset_kills_customer_sessions(self, customer):
        _, token = session_service.create_session(principal_for_customer(customer))
        auth_service.set_customer_credentials(customer.id, "acme", "Another123")

        with pytest.raises(SessionInvalid):
            session_service.validate_session(token)
