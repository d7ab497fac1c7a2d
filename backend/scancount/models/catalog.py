from __future__ import annotations

from ..extensions import db
from scancount.time_utils import to_utc_z


class CatalogEntry(db.Model):
    """
    Local barcode catalog (lookup cache).

    Rows are written through after a successful external registry lookup so
    later lookups of the same code stay local. The catalog is shared by all
    clients: a barcode identifies the same manufactured product everywhere.

    VALUE NORMALIZATION:
    `barcode` holds the cleaned digit string produced by the barcode validator.
    """
    __tablename__ = "barcode_products"
    __table_args__ = (
        db.UniqueConstraint("barcode", name="uq_barcode_products_barcode"),
        db.Index("ix_barcode_products_category", "category"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    barcode = db.Column(db.String(32), nullable=False)

    product_name = db.Column(db.String(255), nullable=False)
    brand = db.Column(db.String(255), nullable=True)
    category = db.Column(db.String(255), nullable=True)
    description = db.Column(db.Text, nullable=True)
    size_info = db.Column(db.String(64), nullable=True)
    unit = db.Column(db.String(32), nullable=True)

    # Where the entry came from (registry source name or "manual")
    data_source = db.Column(db.String(64), nullable=False, default="manual")
    confidence_score = db.Column(db.Float, nullable=False, default=0.5)
    is_verified = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    last_accessed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<CatalogEntry barcode={self.barcode!r} name={self.product_name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "barcode": self.barcode,
            "name": self.product_name,
            "brand": self.brand,
            "category": self.category,
            "description": self.description,
            "size": self.size_info,
            "unit": self.unit,
            "dataSource": self.data_source,
            "confidenceScore": self.confidence_score,
            "isVerified": self.is_verified,
            "createdAt": to_utc_z(self.created_at),
            "lastAccessedAt": to_utc_z(self.last_accessed_at),
        }
