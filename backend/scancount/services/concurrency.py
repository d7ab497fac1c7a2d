# Overview: Locking, retry and upsert helpers shared by services that write concurrently.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from ..validation import ConflictError


# Dialects whose INSERT supports ON CONFLICT ... DO UPDATE ... RETURNING
_UPSERT_INSERTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def upsert_insert(table):
    """
    Dialect-specific INSERT construct with on_conflict_do_update support.

    Returns None when the bound database has no native upsert; callers then
    fall back to lock + update/insert inside a savepoint.
    """
    factory = _UPSERT_INSERTS.get(db.session.get_bind().dialect.name)
    if factory is None:
        return None
    return factory(table)


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts). The session is rolled back before each
    retry.

    Raises:
        ConflictError: optimistic lock still conflicting after the last attempt
    """
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            if attempt >= attempts - 1:
                if isinstance(exc, StaleDataError):
                    raise ConflictError("Session was modified concurrently; retry the operation") from exc
                raise
            current_app.logger.warning(
                "Retrying after concurrent write conflict (attempt %d/%d): %s",
                attempt + 1, attempts, exc.__class__.__name__,
            )
            time.sleep(backoff_base * (2 ** attempt))
