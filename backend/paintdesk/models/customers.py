from __future__ import annotations

from ..extensions import db
from paintdesk.time_utils import to_utc_z


class Customer(db.Model):
    """
    Business contact. Optionally also a portal identity: when username and
    password_hash are set the customer can log in and see their own orders.

    Owned by the creating user (created_by) and optionally assigned to a
    user (assigned_user_id) who then sees it in their scoped lists.
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.Index("ix_customers_created_by", "created_by"),
        db.Index("ix_customers_assigned_user", "assigned_user_id"),
        {"sqlite_autoincrement": True},
    )

    # Ownership columns used by authorization_service.scope_query
    __ownership__ = {"created_by": "created_by", "assigned_to": "assigned_user_id", "customer_id": "id"}

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(32), nullable=True)
    address = db.Column(db.Text, nullable=True)
    company = db.Column(db.String(255), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    # Portal login (both NULL means no portal access)
    username = db.Column(db.String(64), nullable=True, unique=True)
    password_hash = db.Column(db.String(255), nullable=True)

    status = db.Column(db.String(16), nullable=False, default="active")

    assigned_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    assigned_user = db.relationship("User", foreign_keys=[assigned_user_id])
    creator = db.relationship("User", foreign_keys=[created_by])

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    @property
    def has_portal_access(self) -> bool:
        return bool(self.username and self.password_hash)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "company": self.company,
            "notes": self.notes,
            "username": self.username,
            "has_portal_access": self.has_portal_access,
            "status": self.status,
            "assigned_user_id": self.assigned_user_id,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class CustomerInteraction(db.Model):
    """Logged contact with a customer (call, visit, ...) and optional follow-up date."""
    __tablename__ = "customer_interactions"
    __table_args__ = {"sqlite_autoincrement": True}

    __ownership__ = {"created_by": "user_id", "customer_id": "customer_id"}

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    interaction_type = db.Column(db.String(32), nullable=False)
    description = db.Column(db.Text, nullable=True)
    interaction_date = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    follow_up_date = db.Column(db.DateTime(timezone=True), nullable=True)
    status = db.Column(db.String(16), nullable=False, default="completed")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    customer = db.relationship("Customer", backref=db.backref("interactions", lazy=True))
    user = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "user_id": self.user_id,
            "interaction_type": self.interaction_type,
            "description": self.description,
            "interaction_date": to_utc_z(self.interaction_date),
            "follow_up_date": to_utc_z(self.follow_up_date) if self.follow_up_date else None,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
        }
