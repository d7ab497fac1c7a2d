from __future__ import annotations

from ..extensions import db
from scancount.time_utils import to_utc_z


class ScanningSession(db.Model):
    """
    A bounded sequence of barcode scans sharing a workflow and location.

    LIFECYCLE:
    1. active: scans, quantity edits and batch entries are accepted
    2. completed: deferred inventory writes applied, summary frozen
    3. cancelled: any auto-applied inventory writes reversed

    completed and cancelled are terminal; nothing moves a session back to active.

    WORKFLOW CONFIG:
    The workflow flags are resolved once from services.workflows when the
    session starts and stored here, so later operations never re-derive
    behaviour from the workflow name.

    MULTI-TENANT: Sessions belong to the (client_id, user_id) that started them.
    """
    __tablename__ = "scanning_sessions"
    __table_args__ = (
        db.Index("ix_scanning_sessions_client_status", "client_id", "status"),
        db.Index("ix_scanning_sessions_user_started", "user_id", "started_at"),
    )

    # Opaque token, e.g. "scan_3f0c..."
    id = db.Column(db.String(64), primary_key=True)

    client_id = db.Column(db.String(64), nullable=False, index=True)
    user_id = db.Column(db.String(64), nullable=False)

    workflow_type = db.Column(db.String(32), nullable=False, index=True)
    status = db.Column(db.String(16), nullable=False, default="active", index=True)
    location = db.Column(db.String(255), nullable=True)

    allow_quantity_edit = db.Column(db.Boolean, nullable=False, default=True)
    require_location = db.Column(db.Boolean, nullable=False, default=False)
    auto_apply_changes = db.Column(db.Boolean, nullable=False, default=False)
    block_on_anomalies = db.Column(db.Boolean, nullable=False, default=False)
    # "set" (counts) or "add" (receiving)
    apply_mode = db.Column(db.String(8), nullable=False, default="set")

    started_at = db.Column(db.DateTime(timezone=True), nullable=False)
    last_activity_at = db.Column(db.DateTime(timezone=True), nullable=True)
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    cancelled_at = db.Column(db.DateTime(timezone=True), nullable=True)

    completion_summary = db.Column(db.JSON, nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    items = db.relationship(
        "ScanSessionItem",
        back_populates="session",
        lazy=True,
        order_by="ScanSessionItem.id",
        cascade="all, delete-orphan",
    )
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<ScanningSession id={self.id!r} workflow={self.workflow_type!r} status={self.status!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "workflowType": self.workflow_type,
            "status": self.status,
            "location": self.location,
            "startedAt": to_utc_z(self.started_at),
            "lastActivity": to_utc_z(self.last_activity_at),
            "completedAt": to_utc_z(self.completed_at),
            "cancelledAt": to_utc_z(self.cancelled_at),
        }


class ScanSessionItem(db.Model):
    """
    Accumulated result of every scan of one barcode within one session.

    INVARIANT: exactly one row per (session_id, barcode). Repeat scans add
    to quantity and scan_count in place; see services.quantity_reconciler.
    """
    __tablename__ = "scanning_session_items"
    __table_args__ = (
        db.UniqueConstraint("session_id", "barcode", name="uq_scan_items_session_barcode"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    session_id = db.Column(db.String(64), db.ForeignKey("scanning_sessions.id"), nullable=False, index=True)
    barcode = db.Column(db.String(32), nullable=False)

    quantity = db.Column(db.Integer, nullable=False, default=0)
    scan_count = db.Column(db.Integer, nullable=False, default=0)

    product_name = db.Column(db.String(255), nullable=False, default="Unknown Product")
    product_brand = db.Column(db.String(255), nullable=True)
    product_category = db.Column(db.String(255), nullable=True)
    inventory_item_id = db.Column(db.Integer, db.ForeignKey("inventory_items.id"), nullable=True)

    location = db.Column(db.String(255), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    scanned_at = db.Column(db.DateTime(timezone=True), nullable=False)
    last_scanned_at = db.Column(db.DateTime(timezone=True), nullable=False)

    session = db.relationship("ScanningSession", back_populates="items")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sessionId": self.session_id,
            "barcode": self.barcode,
            "quantity": self.quantity,
            "scanCount": self.scan_count,
            "productName": self.product_name,
            "productBrand": self.product_brand,
            "productCategory": self.product_category,
            "inventoryItemId": self.inventory_item_id,
            "location": self.location,
            "notes": self.notes,
            "scannedAt": to_utc_z(self.scanned_at),
            "lastScannedAt": to_utc_z(self.last_scanned_at),
        }
