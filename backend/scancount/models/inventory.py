from __future__ import annotations

from ..extensions import db
from scancount.time_utils import to_utc_z


class InventoryItem(db.Model):
    """
    Stocked item owned by the inventory subsystem.

    MULTI-TENANT: Items are scoped to a client via client_id.

    WRITE PATH:
    current_quantity is only changed through services.inventory_service,
    which records a StockMovement for every change. Scanning code never
    assigns it directly.
    """
    __tablename__ = "inventory_items"
    __table_args__ = (
        db.Index("ix_inventory_items_client_barcode", "client_id", "barcode"),
        db.Index("ix_inventory_items_client_active", "client_id", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    client_id = db.Column(db.String(64), nullable=False, index=True)

    item_name = db.Column(db.String(255), nullable=False)
    barcode = db.Column(db.String(32), nullable=True)
    category = db.Column(db.String(128), nullable=True)
    unit = db.Column(db.String(32), nullable=False, default="each")

    current_quantity = db.Column(db.Integer, nullable=False, default=0)
    # Reorder point and maximum desired stock
    par_level_low = db.Column(db.Integer, nullable=False, default=0)
    par_level_high = db.Column(db.Integer, nullable=False, default=0)

    # Authoritative storage in cents
    cost_per_unit_cents = db.Column(db.Integer, nullable=False, default=0)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    last_restocked_at = db.Column(db.DateTime(timezone=True), nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    __mapper_args__ = {"version_id_col": version_id}

    @property
    def effective_par_level_high(self) -> int:
        # Items without a configured maximum fall back to twice the reorder point
        return self.par_level_high or (self.par_level_low or 0) * 2

    def __repr__(self) -> str:
        return f"<InventoryItem id={self.id} name={self.item_name!r} qty={self.current_quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "client_id": self.client_id,
            "item_name": self.item_name,
            "barcode": self.barcode,
            "category": self.category,
            "unit": self.unit,
            "current_quantity": self.current_quantity,
            "par_level_low": self.par_level_low,
            "par_level_high": self.par_level_high,
            "cost_per_unit_cents": self.cost_per_unit_cents,
            "is_active": self.is_active,
            "last_restocked_at": to_utc_z(self.last_restocked_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class StockMovement(db.Model):
    """
    Append-only record of every inventory quantity change.

    reference_id carries the scanning session id, so the effect of a
    session can be found (and reversed on cancellation).
    """
    __tablename__ = "stock_movements"
    __table_args__ = (
        db.Index("ix_stock_movements_reference", "reference_id"),
        db.Index("ix_stock_movements_item_date", "inventory_item_id", "movement_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    client_id = db.Column(db.String(64), nullable=False, index=True)
    inventory_item_id = db.Column(db.Integer, db.ForeignKey("inventory_items.id"), nullable=False)

    # adjustment, receiving, count, reversal
    movement_type = db.Column(db.String(32), nullable=False)
    quantity_delta = db.Column(db.Integer, nullable=False)
    previous_quantity = db.Column(db.Integer, nullable=False)
    new_quantity = db.Column(db.Integer, nullable=False)

    reason = db.Column(db.String(255), nullable=True)
    reference_id = db.Column(db.String(64), nullable=True)
    created_by_user_id = db.Column(db.String(64), nullable=True)

    movement_date = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    inventory_item = db.relationship("InventoryItem", backref=db.backref("movements", lazy="dynamic"))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "inventory_item_id": self.inventory_item_id,
            "movement_type": self.movement_type,
            "quantity_delta": self.quantity_delta,
            "previous_quantity": self.previous_quantity,
            "new_quantity": self.new_quantity,
            "reason": self.reason,
            "reference_id": self.reference_id,
            "created_by_user_id": self.created_by_user_id,
            "movement_date": to_utc_z(self.movement_date),
        }
