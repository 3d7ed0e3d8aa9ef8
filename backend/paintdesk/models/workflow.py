from __future__ import annotations

from sqlalchemy.orm import declared_attr

from ..extensions import db
from paintdesk.time_utils import to_utc_z


# Execution status (business axis)
STATUS_PENDING_APPROVAL = "pending_approval"
STATUS_ASSIGNED = "assigned"
STATUS_IN_PROGRESS = "in_progress"
STATUS_COMPLETED = "completed"
STATUS_CANCELLED = "cancelled"

VALID_STATUSES = {
    STATUS_PENDING_APPROVAL,
    STATUS_ASSIGNED,
    STATUS_IN_PROGRESS,
    STATUS_COMPLETED,
    STATUS_CANCELLED,
}

# Approval status (admin sign-off axis)
APPROVAL_PENDING = "pending"
APPROVAL_APPROVED = "approved"
APPROVAL_REJECTED = "rejected"

VALID_APPROVAL_STATUSES = {APPROVAL_PENDING, APPROVAL_APPROVED, APPROVAL_REJECTED}


class WorkflowMixin:
    """
    Approval/assignment lifecycle shared by paint orders and service requests.

    Two orthogonal axes:
        approval_status: pending -> approved | rejected   (set once)
        status: pending_approval -> assigned -> in_progress -> completed
                (cancelled from anything but completed)

    INVARIANTS:
    - approved_by is set iff approval_status != pending
    - assigned_at is set iff assigned_to is set
    Transitions live in services/workflow_service.py; nothing else writes these columns.
    """
    __ownership__ = {"created_by": "created_by", "assigned_to": "assigned_to", "customer_id": "customer_id"}

    id = db.Column(db.Integer, primary_key=True)

    status = db.Column(db.String(32), nullable=False, default=STATUS_PENDING_APPROVAL, index=True)
    approval_status = db.Column(db.String(16), nullable=False, default=APPROVAL_PENDING, index=True)
    approved_at = db.Column(db.DateTime(timezone=True), nullable=True)
    rejection_reason = db.Column(db.Text, nullable=True)
    assigned_at = db.Column(db.DateTime(timezone=True), nullable=True)
    completion_date = db.Column(db.DateTime(timezone=True), nullable=True)
    cancelled_at = db.Column(db.DateTime(timezone=True), nullable=True)
    admin_notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    @declared_attr
    def customer_id(cls):
        return db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)

    @declared_attr
    def created_by(cls):
        # NULL when a portal customer submitted it themselves
        return db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)

    @declared_attr
    def approved_by(cls):
        return db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    @declared_attr
    def assigned_to(cls):
        return db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)

    @declared_attr
    def cancelled_by_user_id(cls):
        return db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    @declared_attr
    def cancelled_by_customer_id(cls):
        return db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True)

    def lifecycle_dict(self) -> dict:
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "created_by": self.created_by,
            "status": self.status,
            "approval_status": self.approval_status,
            "approved_by": self.approved_by,
            "approved_at": to_utc_z(self.approved_at),
            "rejection_reason": self.rejection_reason,
            "assigned_to": self.assigned_to,
            "assigned_at": to_utc_z(self.assigned_at),
            "completion_date": to_utc_z(self.completion_date),
            "cancelled_by_user_id": self.cancelled_by_user_id,
            "cancelled_by_customer_id": self.cancelled_by_customer_id,
            "cancelled_at": to_utc_z(self.cancelled_at),
            "admin_notes": self.admin_notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class PaintOrder(WorkflowMixin, db.Model):
    """Paint order placed for a customer; delivered once completed."""
    __tablename__ = "paint_orders"
    __table_args__ = {"sqlite_autoincrement": True}

    entity_label = "Paint order"

    paint_brand = db.Column(db.String(128), nullable=True)
    paint_type = db.Column(db.String(128), nullable=False)
    paint_color = db.Column(db.String(128), nullable=True)
    quantity = db.Column(db.Numeric(12, 3), nullable=False)
    unit = db.Column(db.String(16), nullable=False, default="kg")
    payment_type = db.Column(db.String(32), nullable=True)
    order_date = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    delivery_date = db.Column(db.DateTime(timezone=True), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    def to_dict(self) -> dict:
        data = self.lifecycle_dict()
        data.update({
            "paint_brand": self.paint_brand,
            "paint_type": self.paint_type,
            "paint_color": self.paint_color,
            "quantity": float(self.quantity) if self.quantity is not None else None,
            "unit": self.unit,
            "payment_type": self.payment_type,
            "order_date": to_utc_z(self.order_date),
            "delivery_date": to_utc_z(self.delivery_date),
            "notes": self.notes,
        })
        return data


class ServiceRequest(WorkflowMixin, db.Model):
    """On-site service/repair request handled by a technician."""
    __tablename__ = "service_requests"
    __table_args__ = {"sqlite_autoincrement": True}

    entity_label = "Service request"

    service_type = db.Column(db.String(128), nullable=False)
    description = db.Column(db.Text, nullable=False)
    priority = db.Column(db.String(16), nullable=False, default="medium")
    request_date = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    scheduled_date = db.Column(db.DateTime(timezone=True), nullable=True)
    technician_notes = db.Column(db.Text, nullable=True)

    def to_dict(self) -> dict:
        data = self.lifecycle_dict()
        data.update({
            "service_type": self.service_type,
            "description": self.description,
            "priority": self.priority,
            "request_date": to_utc_z(self.request_date),
            "scheduled_date": to_utc_z(self.scheduled_date),
            "technician_notes": self.technician_notes,
        })
        return data


WORKFLOW_MODELS = (PaintOrder, ServiceRequest)
