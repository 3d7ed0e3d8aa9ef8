"""
Workflow engine tests.

Verifies:
- approve/reject only while approval is pending (AlreadyDecided otherwise)
- assign only once approved (NotApproved otherwise)
- complete only by the assignee (NotAssigned when unassigned)
- completed is terminal; cancel is idempotent
- concurrent approvals produce exactly one winner
"""

import threading

import pytest

from paintdesk import create_app
from paintdesk.config import TestConfig
from paintdesk.errors import (
    AlreadyDecided,
    Forbidden,
    InvalidTransition,
    NotApproved,
    NotAssigned,
    NotFound,
    ValidationError,
)
from paintdesk.extensions import db
from paintdesk.models import Customer, PaintOrder, ServiceRequest, User
from paintdesk.services import auth_service, workflow_service

from conftest import PASSWORD


class TestSubmit:

    def test_initial_state(self, order, tech, customer):
        assert order.status == "pending_approval"
        assert order.approval_status == "pending"
        assert order.created_by == tech.id
        assert order.customer_id == customer.id
        assert order.approved_by is None
        assert order.assigned_to is None

    def test_unknown_customer(self, db_session, tech):
        with pytest.raises(NotFound):
            workflow_service.submit(
                PaintOrder, customer_id=999, created_by=tech.id,
                fields={"paint_type": "Enamel", "quantity": 1},
            )

    def test_inactive_customer(self, db_session, customer, tech):
        customer.status = "inactive"
        db_session.commit()
        with pytest.raises(ValidationError):
            workflow_service.submit(
                PaintOrder, customer_id=customer.id, created_by=tech.id,
                fields={"paint_type": "Enamel", "quantity": 1},
            )

    def test_service_request_shares_lifecycle(self, customer):
        request = workflow_service.submit(
            ServiceRequest, customer_id=customer.id, created_by=None,
            fields={"service_type": "Repair", "description": "Spray gun clogged"},
        )
        assert request.status == "pending_approval"
        assert request.priority == "medium"
        assert request.created_by is None


class TestApproval:

    def test_approve(self, order, admin):
        approved = workflow_service.approve(PaintOrder, order.id, admin.id)
        assert approved.approval_status == "approved"
        assert approved.approved_by == admin.id
        assert approved.approved_at is not None
        # approval does not move the execution status
        assert approved.status == "pending_approval"

    def test_second_approve_already_decided(self, order, admin):
        workflow_service.approve(PaintOrder, order.id, admin.id)
        with pytest.raises(AlreadyDecided):
            workflow_service.approve(PaintOrder, order.id, admin.id)

    def test_reject_requires_reason(self, order, admin):
        with pytest.raises(ValidationError):
            workflow_service.reject(PaintOrder, order.id, admin.id, "   ")

    def test_reject_then_approve(self, order, admin):
        rejected = workflow_service.reject(PaintOrder, order.id, admin.id, "no stock")
        assert rejected.approval_status == "rejected"
        assert rejected.rejection_reason == "no stock"
        with pytest.raises(AlreadyDecided):
            workflow_service.approve(PaintOrder, order.id, admin.id)

    def test_reject_after_assignment(self, order, admin, tech):
        workflow_service.approve(PaintOrder, order.id, admin.id)
        workflow_service.assign(PaintOrder, order.id, admin.id, tech.id)
        with pytest.raises(AlreadyDecided):
            workflow_service.reject(PaintOrder, order.id, admin.id, "changed mind")

    def test_approve_cancelled(self, order, admin):
        workflow_service.cancel(PaintOrder, order.id, user_id=admin.id)
        with pytest.raises(InvalidTransition):
            workflow_service.approve(PaintOrder, order.id, admin.id)

    def test_unknown_entity(self, db_session, admin):
        with pytest.raises(NotFound):
            workflow_service.approve(PaintOrder, 12345, admin.id)


class TestAssignment:

    def test_assign_before_approve(self, order, admin, tech):
        with pytest.raises(NotApproved):
            workflow_service.assign(PaintOrder, order.id, admin.id, tech.id)

    def test_assign_after_reject(self, order, admin, tech):
        workflow_service.reject(PaintOrder, order.id, admin.id, "no stock")
        with pytest.raises(NotApproved):
            workflow_service.assign(PaintOrder, order.id, admin.id, tech.id)

    def test_assign(self, order, admin, tech):
        workflow_service.approve(PaintOrder, order.id, admin.id)
        assigned = workflow_service.assign(PaintOrder, order.id, admin.id, tech.id)
        assert assigned.status == "assigned"
        assert assigned.assigned_to == tech.id
        assert assigned.assigned_at is not None

    def test_reassign_before_start(self, order, admin, tech, other_tech):
        workflow_service.approve(PaintOrder, order.id, admin.id)
        workflow_service.assign(PaintOrder, order.id, admin.id, tech.id)
        reassigned = workflow_service.assign(PaintOrder, order.id, admin.id, other_tech.id)
        assert reassigned.assigned_to == other_tech.id

    def test_cannot_reassign_after_start(self, order, admin, tech, other_tech):
        workflow_service.approve(PaintOrder, order.id, admin.id)
        workflow_service.assign(PaintOrder, order.id, admin.id, tech.id)
        workflow_service.start(PaintOrder, order.id, tech.id)
        with pytest.raises(InvalidTransition):
            workflow_service.assign(PaintOrder, order.id, admin.id, other_tech.id)

    def test_worker_must_be_active_staff(self, db_session, order, admin, tech):
        workflow_service.approve(PaintOrder, order.id, admin.id)
        auth_service.set_user_active(tech.id, False)
        with pytest.raises(ValidationError):
            workflow_service.assign(PaintOrder, order.id, admin.id, tech.id)
        with pytest.raises(ValidationError):
            workflow_service.assign(PaintOrder, order.id, admin.id, 999)

    def test_approved_but_unassigned_is_stable(self, db_session, order, admin):
        workflow_service.approve(PaintOrder, order.id, admin.id)
        reloaded = db_session.get(PaintOrder, order.id)
        assert reloaded.approval_status == "approved"
        assert reloaded.assigned_to is None
        assert reloaded.assigned_at is None


class TestCompletion:

    def test_complete_unassigned(self, order, tech):
        with pytest.raises(NotAssigned):
            workflow_service.complete(PaintOrder, order.id, tech.id)

    def test_only_assignee_completes(self, order, admin, tech, other_tech):
        workflow_service.approve(PaintOrder, order.id, admin.id)
        workflow_service.assign(PaintOrder, order.id, admin.id, tech.id)
        with pytest.raises(Forbidden):
            workflow_service.complete(PaintOrder, order.id, other_tech.id)

    def test_start_then_complete(self, order, admin, tech):
        workflow_service.approve(PaintOrder, order.id, admin.id)
        workflow_service.assign(PaintOrder, order.id, admin.id, tech.id)
        started = workflow_service.start(PaintOrder, order.id, tech.id)
        assert started.status == "in_progress"

        completed = workflow_service.complete(PaintOrder, order.id, tech.id)
        assert completed.status == "completed"
        assert completed.completion_date is not None

    def test_start_twice(self, order, admin, tech):
        workflow_service.approve(PaintOrder, order.id, admin.id)
        workflow_service.assign(PaintOrder, order.id, admin.id, tech.id)
        workflow_service.start(PaintOrder, order.id, tech.id)
        with pytest.raises(InvalidTransition):
            workflow_service.start(PaintOrder, order.id, tech.id)

    def test_completed_is_terminal(self, order, admin, tech):
        workflow_service.approve(PaintOrder, order.id, admin.id)
        workflow_service.assign(PaintOrder, order.id, admin.id, tech.id)
        workflow_service.complete(PaintOrder, order.id, tech.id)

        with pytest.raises(InvalidTransition):
            workflow_service.cancel(PaintOrder, order.id, user_id=admin.id)
        with pytest.raises(InvalidTransition):
            workflow_service.complete(PaintOrder, order.id, tech.id)


class TestCancel:

    def test_cancel_pending(self, order, tech):
        cancelled = workflow_service.cancel(PaintOrder, order.id, user_id=tech.id, only_if_pending=True)
        assert cancelled.status == "cancelled"
        assert cancelled.cancelled_by_user_id == tech.id
        assert cancelled.cancelled_at is not None

    def test_customer_cancel_records_customer(self, order, customer):
        cancelled = workflow_service.cancel(PaintOrder, order.id, customer_id=customer.id, only_if_pending=True)
        assert cancelled.cancelled_by_customer_id == customer.id
        assert cancelled.cancelled_by_user_id is None

    def test_admin_may_cancel_assigned(self, order, admin, tech):
        workflow_service.approve(PaintOrder, order.id, admin.id)
        workflow_service.assign(PaintOrder, order.id, admin.id, tech.id)
        assert workflow_service.cancel(PaintOrder, order.id, user_id=admin.id).status == "cancelled"

    def test_owner_cannot_cancel_assigned(self, order, admin, tech):
        workflow_service.approve(PaintOrder, order.id, admin.id)
        workflow_service.assign(PaintOrder, order.id, admin.id, tech.id)
        with pytest.raises(Forbidden):
            workflow_service.cancel(PaintOrder, order.id, user_id=tech.id, only_if_pending=True)

    def test_cancel_is_idempotent(self, order, admin, tech):
        workflow_service.cancel(PaintOrder, order.id, user_id=tech.id)
        again = workflow_service.cancel(PaintOrder, order.id, user_id=admin.id)
        assert again.status == "cancelled"
        assert again.cancelled_by_user_id == tech.id


class TestUpdateDetails:

    def test_edit_while_pending(self, order):
        updated = workflow_service.update_details(PaintOrder, order.id, {"notes": "deliver to gate 2"}, only_if_pending=True)
        assert updated.notes == "deliver to gate 2"

    def test_owner_edit_after_assignment_rejected(self, order, admin, tech):
        workflow_service.approve(PaintOrder, order.id, admin.id)
        workflow_service.assign(PaintOrder, order.id, admin.id, tech.id)
        with pytest.raises(InvalidTransition):
            workflow_service.update_details(PaintOrder, order.id, {"notes": "x"}, only_if_pending=True)


class TestScenarios:

    def test_happy_path(self, order, admin, tech):
        workflow_service.approve(PaintOrder, order.id, admin.id)
        workflow_service.assign(PaintOrder, order.id, admin.id, tech.id)
        done = workflow_service.complete(PaintOrder, order.id, tech.id)
        assert done.status == "completed"
        assert done.approved_by == admin.id
        assert done.assigned_to == tech.id

    def test_rejected_cannot_be_assigned(self, db_session, customer, admin, tech):
        o2 = workflow_service.submit(
            PaintOrder, customer_id=customer.id, created_by=tech.id,
            fields={"paint_type": "Enamel", "quantity": 5},
        )
        workflow_service.reject(PaintOrder, o2.id, admin.id, "no stock")
        with pytest.raises(NotApproved):
            workflow_service.assign(PaintOrder, o2.id, admin.id, tech.id)


class TestConcurrentApproval:
    """Two admins approving the same order at once: exactly one wins."""

    @pytest.fixture
    def file_app(self, tmp_path):
        class FileConfig(TestConfig):
            SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'race.sqlite3'}"

        app = create_app(FileConfig)
        with app.app_context():
            db.create_all()
        yield app
        with app.app_context():
            db.session.remove()
            db.engine.dispose()

    def test_exactly_one_winner(self, file_app):
        with file_app.app_context():
            admin_ids = [
                auth_service.create_user(f"admin{i}", f"admin{i}@shop.local", PASSWORD, "admin").id
                for i in range(2)
            ]
            customer = Customer(name="Race Co")
            db.session.add(customer)
            db.session.commit()
            order_id = workflow_service.submit(
                PaintOrder, customer_id=customer.id, created_by=admin_ids[0],
                fields={"paint_type": "Enamel", "quantity": 1},
            ).id

        barrier = threading.Barrier(len(admin_ids))
        outcomes = {}

        def approve_as(admin_id):
            with file_app.app_context():
                barrier.wait()
                try:
                    workflow_service.approve(PaintOrder, order_id, admin_id)
                    outcomes[admin_id] = "approved"
                except AlreadyDecided:
                    outcomes[admin_id] = "already_decided"
                finally:
                    db.session.remove()

        threads = [threading.Thread(target=approve_as, args=(a,)) for a in admin_ids]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)

        assert sorted(outcomes.values()) == ["already_decided", "approved"]
        winner = next(a for a, result in outcomes.items() if result == "approved")

        with file_app.app_context():
            final = db.session.get(PaintOrder, order_id)
            assert final.approval_status == "approved"
            assert final.approved_by == winner
            assert db.session.query(User).count() == 2
