# Overview: Workflow engine; approval/assignment lifecycle of paint orders and service requests.

"""
Order Workflow Service

================================================================================
PURPOSE: Enforce the approval + assignment lifecycle of workflow entities
================================================================================

Applies identically to PaintOrder and ServiceRequest (WorkflowMixin).

STATE MACHINE (two orthogonal axes):

    approval_status:  pending -> approved
                      pending -> rejected          (both terminal)

    status:           pending_approval -> assigned -> in_progress -> completed
                      any but completed -> cancelled

RULES:
1. approve/reject only while approval_status = pending (else AlreadyDecided)
2. assign only once approved (else NotApproved), and before work has started
3. start/complete only by the assignee (unassigned -> NotAssigned)
4. completed is terminal; everything else may be cancelled
5. approval and assignment are independent: approved-but-unassigned may
   stay that way indefinitely

CONCURRENCY:
Every transition is a single conditional UPDATE whose WHERE clause is the
precondition. Zero affected rows means the precondition failed, possibly
because a concurrent request won; the row is then re-read only to pick the
right error kind. Two concurrent approvals therefore produce exactly one
winner and one AlreadyDecided.

Authorization (who may call what) is checked by the routes through
authorization_service before calling in here; the only identity rule
enforced here is "only the assignee may start/complete".
================================================================================
"""

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..errors import (
    AlreadyDecided,
    Forbidden,
    InvalidTransition,
    NotApproved,
    NotAssigned,
    NotFound,
    ValidationError,
)
from ..models import Customer, User
from ..models.auth import STAFF_ROLES
from ..models.workflow import (
    APPROVAL_APPROVED,
    APPROVAL_PENDING,
    APPROVAL_REJECTED,
    STATUS_ASSIGNED,
    STATUS_CANCELLED,
    STATUS_COMPLETED,
    STATUS_IN_PROGRESS,
    STATUS_PENDING_APPROVAL,
)
from .concurrency import conditional_update
from paintdesk.time_utils import utcnow


TERMINAL_STATUSES = (STATUS_COMPLETED, STATUS_CANCELLED)
ASSIGNABLE_STATUSES = (STATUS_PENDING_APPROVAL, STATUS_ASSIGNED)
WORKABLE_STATUSES = (STATUS_ASSIGNED, STATUS_IN_PROGRESS)


def get_entity(model, entity_id: int):
    entity = db.session.get(model, entity_id)
    if entity is None:
        raise NotFound(f"{model.entity_label} {entity_id} not found")
    return entity


def _reload(model, entity_id: int):
    # Bulk UPDATEs bypass the identity map; force a fresh read
    db.session.expire_all()
    return get_entity(model, entity_id)


def _label(model, entity_id: int) -> str:
    return f"{model.entity_label} {entity_id}"


def submit(model, *, customer_id: int, created_by: int | None, fields: dict):
    """
    Create a workflow entity in its initial state:
    approval_status=pending, status=pending_approval.

    created_by is the staff user submitting it, or None when a portal
    customer submits their own order.
    """
    customer = db.session.get(Customer, customer_id)
    if customer is None:
        raise NotFound(f"Customer {customer_id} not found")
    if not customer.is_active:
        raise ValidationError(f"Customer {customer_id} is inactive")

    entity = model(**fields)
    entity.customer_id = customer_id
    entity.created_by = created_by
    entity.status = STATUS_PENDING_APPROVAL
    entity.approval_status = APPROVAL_PENDING

    db.session.add(entity)
    db.session.commit()

    current_app.logger.info("%s submitted for customer %s", _label(model, entity.id), customer_id)
    return entity


def _decide(model, entity_id: int, admin_id: int, approval_status: str, extra: dict | None = None):
    now = utcnow()
    values = {
        model.approval_status: approval_status,
        model.approved_by: admin_id,
        model.approved_at: now,
        model.updated_at: now,
    }
    for key, value in (extra or {}).items():
        values[getattr(model, key)] = value

    affected = conditional_update(
        model,
        entity_id,
        values,
        model.approval_status == APPROVAL_PENDING,
        model.status.notin_(TERMINAL_STATUSES),
    )
    if affected:
        return _reload(model, entity_id)

    entity = _reload(model, entity_id)
    if entity.approval_status != APPROVAL_PENDING:
        raise AlreadyDecided(f"{_label(model, entity_id)} is already {entity.approval_status}")
    raise InvalidTransition(f"{_label(model, entity_id)} is {entity.status}")


def approve(model, entity_id: int, admin_id: int):
    """pending -> approved. Raises AlreadyDecided if approved/rejected already."""
    entity = _decide(model, entity_id, admin_id, APPROVAL_APPROVED)
    current_app.logger.info("%s approved by user %s", _label(model, entity_id), admin_id)
    return entity


def reject(model, entity_id: int, admin_id: int, reason: str):
    """
    pending -> rejected. A rejected entity can never be assigned.

    Rejecting after approval (and therefore after assignment) raises
    AlreadyDecided; such an entity must be cancelled instead.
    """
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("A rejection reason is required")

    entity = _decide(model, entity_id, admin_id, APPROVAL_REJECTED, {"rejection_reason": reason})
    current_app.logger.info("%s rejected by user %s: %s", _label(model, entity_id), admin_id, reason)
    return entity


def assign(model, entity_id: int, admin_id: int, worker_id: int):
    """
    Delegate an approved entity to a staff user; status -> assigned.

    Re-assigning to another worker is allowed until work has started.
    """
    worker = db.session.get(User, worker_id)
    if worker is None or not worker.is_active or worker.role not in STAFF_ROLES:
        raise ValidationError(f"User {worker_id} is not an active staff user")

    now = utcnow()
    affected = conditional_update(
        model,
        entity_id,
        {
            model.assigned_to: worker_id,
            model.assigned_at: now,
            model.status: STATUS_ASSIGNED,
            model.updated_at: now,
        },
        model.approval_status == APPROVAL_APPROVED,
        model.status.in_(ASSIGNABLE_STATUSES),
    )

    entity = _reload(model, entity_id)
    if not affected:
        if entity.approval_status != APPROVAL_APPROVED:
            raise NotApproved(f"{_label(model, entity_id)} is not approved (approval status: {entity.approval_status})")
        raise InvalidTransition(f"{_label(model, entity_id)} cannot be assigned while {entity.status}")

    current_app.logger.info("%s assigned to user %s by user %s", _label(model, entity_id), worker_id, admin_id)
    return entity


def _raise_for_worker(model, entity, worker_id: int) -> None:
    if entity.assigned_to is None:
        raise NotAssigned(f"{_label(model, entity.id)} is not assigned")
    if entity.assigned_to != worker_id:
        raise Forbidden(f"{_label(model, entity.id)} is assigned to another user")
    raise InvalidTransition(f"{_label(model, entity.id)} is {entity.status}")


def start(model, entity_id: int, worker_id: int):
    """assigned -> in_progress, by the assignee."""
    affected = conditional_update(
        model,
        entity_id,
        {model.status: STATUS_IN_PROGRESS, model.updated_at: utcnow()},
        model.assigned_to == worker_id,
        model.status == STATUS_ASSIGNED,
    )
    entity = _reload(model, entity_id)
    if not affected:
        _raise_for_worker(model, entity, worker_id)

    current_app.logger.info("%s started by user %s", _label(model, entity_id), worker_id)
    return entity


def complete(model, entity_id: int, worker_id: int):
    """assigned | in_progress -> completed, by the assignee. Sets completion_date."""
    now = utcnow()
    affected = conditional_update(
        model,
        entity_id,
        {model.status: STATUS_COMPLETED, model.completion_date: now, model.updated_at: now},
        model.assigned_to == worker_id,
        model.status.in_(WORKABLE_STATUSES),
    )
    entity = _reload(model, entity_id)
    if not affected:
        _raise_for_worker(model, entity, worker_id)

    current_app.logger.info("%s completed by user %s", _label(model, entity_id), worker_id)
    return entity


def cancel(
    model,
    entity_id: int,
    *,
    user_id: int | None = None,
    customer_id: int | None = None,
    only_if_pending: bool = False,
):
    """
    Any state except completed -> cancelled.

    only_if_pending narrows the precondition to status = pending_approval;
    used for non-admin callers so an owner cannot cancel work that an admin
    assigned between the permission check and the write.
    """
    now = utcnow()
    conditions = [model.status.notin_(TERMINAL_STATUSES)]
    if only_if_pending:
        conditions.append(model.status == STATUS_PENDING_APPROVAL)

    affected = conditional_update(
        model,
        entity_id,
        {
            model.status: STATUS_CANCELLED,
            model.cancelled_by_user_id: user_id,
            model.cancelled_by_customer_id: customer_id,
            model.cancelled_at: now,
            model.updated_at: now,
        },
        *conditions,
    )
    entity = _reload(model, entity_id)
    if not affected:
        if entity.status == STATUS_CANCELLED:
            # Already cancelled; keep the original actor and timestamp
            return entity
        if entity.status == STATUS_COMPLETED:
            raise InvalidTransition(f"{_label(model, entity_id)} is completed and cannot be cancelled")
        raise Forbidden(f"{_label(model, entity_id)} can only be cancelled by an admin once it left pending approval")

    current_app.logger.info(
        "%s cancelled by %s",
        _label(model, entity_id),
        f"user {user_id}" if user_id is not None else f"customer {customer_id}",
    )
    return entity


def update_details(model, entity_id: int, patch: dict, *, only_if_pending: bool = False):
    """
    Edit descriptive (non-lifecycle) fields.

    Lifecycle columns are excluded by the route's validation policy; this
    only guards that non-admin edits happen while pending approval.
    """
    if not patch:
        return get_entity(model, entity_id)

    values = {getattr(model, key): value for key, value in patch.items()}
    values[model.updated_at] = utcnow()

    conditions = [model.status.notin_(TERMINAL_STATUSES)]
    if only_if_pending:
        conditions.append(model.status == STATUS_PENDING_APPROVAL)

    affected = conditional_update(model, entity_id, values, *conditions)
    entity = _reload(model, entity_id)
    if not affected:
        raise InvalidTransition(f"{_label(model, entity_id)} can no longer be edited ({entity.status})")
    return entity
