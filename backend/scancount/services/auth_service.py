# Overview: Service-layer operations for API tokens; resolves the caller identity for each request.

"""
API Token Service

WHY: Every engine operation runs on behalf of a caller (client + user).
Login, roles and user management live outside this service; here a caller is
whatever an issued bearer token says it is.

SECURITY FEATURES:
- Cryptographically secure random tokens (32 bytes)
- Tokens hashed with SHA-256 before storage (fast, one-way)
- Revocable by deactivation
"""

import hashlib
import secrets
from dataclasses import dataclass

from ..extensions import db
from ..models import ApiToken
from scancount.time_utils import utcnow


@dataclass
class CallerContext:
    """
    Identity attached to an authenticated request.

    MULTI-TENANT: client_id scopes inventory, vendors and sessions;
    user_id owns sessions.
    """
    client_id: str
    user_id: str
    token_id: int


def generate_token() -> str:
    """
    Generate cryptographically secure random token.

    Returns 64-character hex string (32 bytes of entropy).
    This is the plaintext token sent to client (never stored).
    """
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def issue_token(client_id: str, user_id: str, label: str | None = None) -> tuple[ApiToken, str]:
    """
    Create a token for a caller.

    Returns (token_record, plaintext_token). Only the hash is stored.

    Raises ValueError if client_id or user_id is blank.
    """
    client_id = (client_id or "").strip()
    user_id = (user_id or "").strip()
    if not client_id or not user_id:
        raise ValueError("client_id and user_id are required")

    plaintext_token = generate_token()
    record = ApiToken(
        client_id=client_id,
        user_id=user_id,
        token_hash=hash_token(plaintext_token),
        label=label,
        is_active=True,
    )
    db.session.add(record)
    db.session.commit()
    return record, plaintext_token


def resolve_token(token: str) -> CallerContext | None:
    """
    Return the caller for a plaintext token, or None if unknown or revoked.

    Updates last_used_at on success.
    """
    if not token:
        return None

    record = db.session.query(ApiToken).filter_by(token_hash=hash_token(token)).first()
    if not record or not record.is_active:
        return None

    record.last_used_at = utcnow()
    db.session.commit()

    return CallerContext(client_id=record.client_id, user_id=record.user_id, token_id=record.id)


def revoke_token(token_id: int) -> ApiToken | None:
    record = db.session.query(ApiToken).filter_by(id=token_id).first()
    if not record:
        return None
    record.is_active = False
    db.session.commit()
    return record
