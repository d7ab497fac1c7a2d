from __future__ import annotations

from ..extensions import db
from scancount.time_utils import to_utc_z


class ApiToken(db.Model):
    """
    Bearer token establishing the caller's identity.

    SECURITY: Only the SHA-256 hash of the token is stored; the plaintext is
    shown once when the token is issued.

    MULTI-TENANT: Every request runs with the (client_id, user_id) captured
    on the token.
    """
    __tablename__ = "api_tokens"
    __table_args__ = (
        db.UniqueConstraint("token_hash", name="uq_api_tokens_hash"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    client_id = db.Column(db.String(64), nullable=False, index=True)
    user_id = db.Column(db.String(64), nullable=False)
    token_hash = db.Column(db.String(64), nullable=False)
    label = db.Column(db.String(128), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    last_used_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "client_id": self.client_id,
            "user_id": self.user_id,
            "label": self.label,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "last_used_at": to_utc_z(self.last_used_at),
        }
