"""
Credential store tests.

Verifies:
- Passwords are stored as bcrypt hashes and verified correctly
- Unknown user, wrong password and deactivated user all fail the same way
- Usernames are unique across staff users and portal customers
- Bootstrap admin is created exactly once
"""

import pytest

from paintdesk.errors import DuplicateIdentity, InvalidCredentials, ValidationError
from paintdesk.models import Customer, User
from paintdesk.services import auth_service
from paintdesk.services.auth_service import PasswordValidationError

from conftest import PASSWORD


class TestPasswordHashing:

    def test_hash_is_bcrypt_not_plaintext(self, app):
        hashed = auth_service.hash_password(PASSWORD)
        assert hashed != PASSWORD
        assert hashed.startswith("$2")
        assert auth_service.verify_password(PASSWORD, hashed)
        assert not auth_service.verify_password("Password124", hashed)

    @pytest.mark.parametrize("weak", ["short1", "lettersonly", "12345678"])
    def test_weak_passwords_rejected(self, app, weak):
        with pytest.raises(PasswordValidationError):
            auth_service.hash_password(weak)

    def test_missing_hash_never_verifies(self, app):
        assert not auth_service.verify_password(PASSWORD, None)

    def test_malformed_hash_never_verifies(self, app):
        assert not auth_service.verify_password(PASSWORD, "not-a-bcrypt-hash")


class TestAuthenticate:

    def test_success_by_username(self, tech):
        principal = auth_service.authenticate("tech7", PASSWORD)
        assert principal.id == tech.id
        assert principal.role == "user"
        assert principal.kind == "user"

    def test_success_by_email(self, tech):
        principal = auth_service.authenticate("TECH7@shop.local", PASSWORD)
        assert principal.id == tech.id

    def test_sets_last_login(self, db_session, tech):
        auth_service.authenticate("tech7", PASSWORD)
        assert db_session.get(User, tech.id).last_login_at is not None

    def test_wrong_password(self, tech):
        with pytest.raises(InvalidCredentials):
            auth_service.authenticate("tech7", "WrongPassword1")

    def test_unknown_user(self, db_session):
        with pytest.raises(InvalidCredentials):
            auth_service.authenticate("nobody", PASSWORD)

    def test_deactivated_user(self, tech):
        auth_service.set_user_active(tech.id, False)
        with pytest.raises(InvalidCredentials):
            auth_service.authenticate("tech7", PASSWORD)

    def test_failures_are_indistinguishable(self, tech):
        messages = set()
        for identity, password in [("tech7", "WrongPassword1"), ("nobody", PASSWORD)]:
            with pytest.raises(InvalidCredentials) as exc:
                auth_service.authenticate(identity, password)
            messages.add((exc.value.kind, str(exc.value), exc.value.status_code))
        assert len(messages) == 1

    def test_portal_customer(self, customer):
        principal = auth_service.authenticate("acme", PASSWORD)
        assert principal.is_customer
        assert principal.role == "customer"
        assert principal.id == customer.id

    def test_inactive_customer_cannot_log_in(self, db_session, customer):
        customer.status = "inactive"
        db_session.commit()
        with pytest.raises(InvalidCredentials):
            auth_service.authenticate("acme", PASSWORD)

    def test_customer_without_portal_access(self, db_session):
        db_session.add(Customer(name="No Portal"))
        db_session.commit()
        with pytest.raises(InvalidCredentials):
            auth_service.authenticate("No Portal", PASSWORD)


class TestUserManagement:

    def test_duplicate_username(self, tech):
        with pytest.raises(DuplicateIdentity):
            auth_service.create_user("tech7", "other@shop.local", PASSWORD)

    def test_duplicate_email(self, tech):
        with pytest.raises(DuplicateIdentity):
            auth_service.create_user("someone", "tech7@shop.local", PASSWORD)

    def test_username_shared_with_customer_login(self, customer):
        with pytest.raises(DuplicateIdentity):
            auth_service.create_user("acme", "acme@shop.local", PASSWORD)

    def test_customer_login_cannot_take_staff_username(self, customer, tech):
        with pytest.raises(DuplicateIdentity):
            auth_service.set_customer_credentials(customer.id, "tech7", PASSWORD)

    def test_customer_login_cannot_take_staff_email(self, customer, tech):
        with pytest.raises(DuplicateIdentity):
            auth_service.set_customer_credentials(customer.id, "Tech7@Shop.local", PASSWORD)
        assert auth_service.authenticate("acme", PASSWORD).kind == "customer"

    def test_staff_email_cannot_take_customer_login(self, db_session):
        customer = Customer(name="Mail Order")
        db_session.add(customer)
        db_session.commit()
        auth_service.set_customer_credentials(customer.id, "buyer@mail.test", PASSWORD)

        with pytest.raises(DuplicateIdentity):
            auth_service.create_user("buyer", "Buyer@mail.test", PASSWORD)

    def test_customer_role_not_allowed_for_staff(self, db_session):
        with pytest.raises(ValidationError):
            auth_service.create_user("cust", "cust@shop.local", PASSWORD, "customer")

    def test_change_password_requires_current(self, tech):
        with pytest.raises(InvalidCredentials):
            auth_service.change_password(tech.id, "WrongPassword1", "NewPassword1")

        auth_service.change_password(tech.id, PASSWORD, "NewPassword1")
        assert auth_service.authenticate("tech7", "NewPassword1").id == tech.id


class TestBootstrapAdmin:

    def test_creates_default_admin_once(self, db_session):
        created = auth_service.ensure_bootstrap_admin()
        assert created is not None
        assert created.username == "admin"
        assert created.role == "admin"
        assert auth_service.authenticate("admin", "admin123").is_admin

        assert auth_service.ensure_bootstrap_admin() is None
        assert db_session.query(User).filter_by(role="admin").count() == 1

    def test_skipped_when_admin_exists(self, admin):
        assert auth_service.ensure_bootstrap_admin() is None
