from __future__ import annotations

from ..extensions import db
from paintdesk.time_utils import to_utc_z


def _money(value):
    return float(value) if value is not None else None


class PaintType(db.Model):
    """
    Paint catalog entry (brand/type/color) with stock on hand.

    Managed by admins; readable by every authenticated role so orders can
    be placed against it.
    """
    __tablename__ = "paint_types"
    __table_args__ = (
        db.UniqueConstraint("brand", "type", "color", name="uq_paint_types_brand_type_color"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    brand = db.Column(db.String(128), nullable=False)
    type = db.Column(db.String(128), nullable=False)
    color = db.Column(db.String(128), nullable=False)
    unit = db.Column(db.String(16), nullable=False, default="litre")
    price = db.Column(db.Numeric(12, 2), nullable=True)
    stock_quantity = db.Column(db.Integer, nullable=False, default=0)
    description = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(16), nullable=False, default="active", index=True)

    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "brand": self.brand,
            "type": self.type,
            "color": self.color,
            "unit": self.unit,
            "price": _money(self.price),
            "stock_quantity": self.stock_quantity,
            "description": self.description,
            "status": self.status,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Machine(db.Model):
    """Machine offered for sale (new or second hand)."""
    __tablename__ = "machines"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    machine_type = db.Column(db.String(128), nullable=False)
    machine_name = db.Column(db.String(255), nullable=False)
    brand = db.Column(db.String(128), nullable=False)
    model = db.Column(db.String(128), nullable=True)
    category = db.Column(db.String(128), nullable=False)
    price = db.Column(db.Numeric(12, 2), nullable=False)
    status = db.Column(db.String(16), nullable=False, default="available", index=True)
    production_year = db.Column(db.Integer, nullable=True)
    machine_condition = db.Column(db.String(64), nullable=True)
    description = db.Column(db.Text, nullable=True)
    # JSON-encoded list of image URLs or data URIs, stored as sent
    images = db.Column(db.Text, nullable=True)

    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "machine_type": self.machine_type,
            "machine_name": self.machine_name,
            "brand": self.brand,
            "model": self.model,
            "category": self.category,
            "price": _money(self.price),
            "status": self.status,
            "production_year": self.production_year,
            "machine_condition": self.machine_condition,
            "description": self.description,
            "images": self.images,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
