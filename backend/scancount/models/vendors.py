from __future__ import annotations

from ..extensions import db
from scancount.time_utils import to_utc_z


class Vendor(db.Model):
    """
    Supplier of inventory items.

    MULTI-TENANT: Vendors are scoped to a client via client_id.

    delivery_days is the contracted lead time; a completed order delivered
    later than order_date + delivery_days counts as late.
    """
    __tablename__ = "vendors"
    __table_args__ = (
        db.Index("ix_vendors_client_active", "client_id", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    client_id = db.Column(db.String(64), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    delivery_days = db.Column(db.Integer, nullable=False, default=1)
    is_preferred = db.Column(db.Boolean, nullable=False, default=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    items = db.relationship("VendorItem", back_populates="vendor", lazy=True)
    orders = db.relationship("PurchaseOrder", back_populates="vendor", lazy=True)

    def __repr__(self) -> str:
        return f"<Vendor id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "client_id": self.client_id,
            "name": self.name,
            "delivery_days": self.delivery_days,
            "is_preferred": self.is_preferred,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }


class VendorItem(db.Model):
    """Packaging and price terms under which a vendor supplies one inventory item."""
    __tablename__ = "vendor_items"
    __table_args__ = (
        db.UniqueConstraint("vendor_id", "inventory_item_id", name="uq_vendor_items_vendor_item"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    vendor_id = db.Column(db.Integer, db.ForeignKey("vendors.id"), nullable=False, index=True)
    inventory_item_id = db.Column(db.Integer, db.ForeignKey("inventory_items.id"), nullable=False, index=True)

    vendor_sku = db.Column(db.String(64), nullable=True)
    cost_per_unit_cents = db.Column(db.Integer, nullable=False, default=0)
    minimum_order_quantity = db.Column(db.Integer, nullable=False, default=1)
    case_size = db.Column(db.Integer, nullable=False, default=1)
    is_preferred = db.Column(db.Boolean, nullable=False, default=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    vendor = db.relationship("Vendor", back_populates="items")
    inventory_item = db.relationship("InventoryItem", backref=db.backref("vendor_items", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "vendor_id": self.vendor_id,
            "inventory_item_id": self.inventory_item_id,
            "vendor_sku": self.vendor_sku,
            "cost_per_unit_cents": self.cost_per_unit_cents,
            "minimum_order_quantity": self.minimum_order_quantity,
            "case_size": self.case_size,
            "is_preferred": self.is_preferred,
            "is_active": self.is_active,
        }


class PurchaseOrder(db.Model):
    """
    Historical order placed with a vendor.

    STATUS: pending, completed, cancelled. Only completed orders carry a
    delivery_date that feeds on-time statistics.
    """
    __tablename__ = "purchase_orders"
    __table_args__ = (
        db.Index("ix_purchase_orders_vendor_status", "vendor_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    vendor_id = db.Column(db.Integer, db.ForeignKey("vendors.id"), nullable=False, index=True)
    status = db.Column(db.String(16), nullable=False, default="pending")
    order_date = db.Column(db.DateTime(timezone=True), nullable=False)
    delivery_date = db.Column(db.DateTime(timezone=True), nullable=True)
    total_amount_cents = db.Column(db.Integer, nullable=False, default=0)

    vendor = db.relationship("Vendor", back_populates="orders")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "vendor_id": self.vendor_id,
            "status": self.status,
            "order_date": to_utc_z(self.order_date),
            "delivery_date": to_utc_z(self.delivery_date),
            "total_amount_cents": self.total_amount_cents,
        }
