# Overview: Accumulates repeated scans of one barcode into a single session item.

"""
Quantity Reconciler

INVARIANT: one ScanSessionItem per (session_id, barcode). A repeat scan
adds its quantity and bumps scan_count on the existing row.

ATOMICITY: Two concurrent scans of the same barcode must both count.
On SQLite and PostgreSQL the accumulation is one statement:

    INSERT ... ON CONFLICT (session_id, barcode)
    DO UPDATE SET quantity = quantity + excluded.quantity,
                  scan_count = scan_count + 1
    RETURNING id, quantity, scan_count

A returned scan_count of 1 means the row was just created. Other dialects
take a row lock and update-or-insert inside a savepoint, retrying when a
concurrent insert wins the unique constraint.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import ScanSessionItem
from .concurrency import lock_for_update, upsert_insert
from scancount.time_utils import utcnow


UNKNOWN_PRODUCT_NAME = "Unknown Product"

# Savepoint attempts for dialects without native upsert
FALLBACK_ATTEMPTS = 3


@dataclass
class ReconciledItem:
    item_id: int
    barcode: str
    quantity: int
    scan_count: int
    previous_quantity: int

    @property
    def added_new(self) -> bool:
        return self.scan_count == 1

    @property
    def action(self) -> str:
        return "added_new" if self.added_new else "updated_existing"


@dataclass
class BatchOutcome:
    total: int
    results: list = field(default_factory=list)
    errors: list[dict] = field(default_factory=list)

    @property
    def success_rate(self) -> float:
        if not self.total:
            return 0.0
        return round(len(self.results) / self.total * 100, 2)

    def summary(self) -> dict:
        return {
            "totalItems": self.total,
            "successfulScans": len(self.results),
            "errors": len(self.errors),
            "successRate": self.success_rate,
        }


def _item_values(session_id: str, barcode: str, quantity: int, attrs: dict) -> dict:
    now = utcnow()
    return {
        "session_id": session_id,
        "barcode": barcode,
        "quantity": quantity,
        "scan_count": 1,
        "product_name": (attrs.get("product_name") or UNKNOWN_PRODUCT_NAME)[:255],
        "product_brand": attrs.get("product_brand"),
        "product_category": attrs.get("product_category"),
        "inventory_item_id": attrs.get("inventory_item_id"),
        "location": attrs.get("location"),
        "notes": attrs.get("notes"),
        "scanned_at": now,
        "last_scanned_at": now,
    }


def accumulate_scan(session_id: str, barcode: str, quantity: int, **attrs) -> ReconciledItem:
    """
    Add one scan to the session item for barcode, creating it if needed.

    attrs: product_name, product_brand, product_category,
    inventory_item_id, location, notes. On an existing row, product
    fields keep their first values; link, location and notes take the
    latest non-empty value.
    """
    values = _item_values(session_id, barcode, quantity, attrs)
    table = ScanSessionItem.__table__

    stmt = upsert_insert(table)
    if stmt is None:
        return _accumulate_locked(values)

    stmt = stmt.values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=[table.c.session_id, table.c.barcode],
        set_={
            "quantity": table.c.quantity + stmt.excluded.quantity,
            "scan_count": table.c.scan_count + 1,
            "last_scanned_at": stmt.excluded.last_scanned_at,
            "inventory_item_id": func.coalesce(stmt.excluded.inventory_item_id, table.c.inventory_item_id),
            "location": func.coalesce(stmt.excluded.location, table.c.location),
            "notes": func.coalesce(stmt.excluded.notes, table.c.notes),
        },
    ).returning(table.c.id, table.c.quantity, table.c.scan_count)

    row = db.session.execute(stmt).one()
    return ReconciledItem(
        item_id=row.id,
        barcode=barcode,
        quantity=row.quantity,
        scan_count=row.scan_count,
        previous_quantity=row.quantity - quantity,
    )


def _accumulate_locked(values: dict) -> ReconciledItem:
    quantity = values["quantity"]
    for attempt in range(FALLBACK_ATTEMPTS):
        try:
            with db.session.begin_nested():
                existing = lock_for_update(
                    db.session.query(ScanSessionItem)
                    .filter_by(session_id=values["session_id"], barcode=values["barcode"])
                    .populate_existing()
                ).first()

                if existing is None:
                    item = ScanSessionItem(**values)
                    db.session.add(item)
                    db.session.flush()
                    previous = 0
                else:
                    item = existing
                    previous = item.quantity
                    item.quantity = previous + quantity
                    item.scan_count = item.scan_count + 1
                    item.last_scanned_at = values["last_scanned_at"]
                    for key in ("inventory_item_id", "location", "notes"):
                        if values[key] is not None:
                            setattr(item, key, values[key])
                    db.session.flush()

            return ReconciledItem(
                item_id=item.id,
                barcode=item.barcode,
                quantity=item.quantity,
                scan_count=item.scan_count,
                previous_quantity=previous,
            )
        except IntegrityError:
            # Lost the insert race; the row exists now
            if attempt >= FALLBACK_ATTEMPTS - 1:
                raise


def set_quantity(session_id: str, barcode: str, quantity: int) -> ReconciledItem | None:
    """
    Replace the accumulated quantity of an item with an absolute value.

    Returns None when the barcode was never scanned in the session.
    """
    table = ScanSessionItem.__table__
    current = db.session.execute(
        select(table.c.id, table.c.quantity, table.c.scan_count)
        .where(table.c.session_id == session_id, table.c.barcode == barcode)
        .with_for_update()
    ).first()
    if current is None:
        return None

    db.session.execute(
        update(table)
        .where(table.c.id == current.id)
        .values(quantity=quantity, last_scanned_at=utcnow())
    )
    return ReconciledItem(
        item_id=current.id,
        barcode=barcode,
        quantity=quantity,
        scan_count=current.scan_count,
        previous_quantity=current.quantity,
    )


def load_item(item_id: int) -> ScanSessionItem | None:
    """Fresh ORM view of a row written through Core statements."""
    return db.session.get(ScanSessionItem, item_id, populate_existing=True)


def process_batch(entries: list, scan_fn) -> BatchOutcome:
    """
    Run scan_fn(index, entry) for each entry, each inside its own savepoint.

    scan_fn returns an object with `success` (and `error` when False) or
    raises. Either kind of failure rolls back that entry only, is recorded
    in errors with its index and barcode, and never stops the batch.
    """
    outcome = BatchOutcome(total=len(entries))

    for index, entry in enumerate(entries):
        barcode = entry.get("barcode") if isinstance(entry, dict) else None

        nested = db.session.begin_nested()
        try:
            result = scan_fn(index, entry)
            if not result.success:
                nested.rollback()
                outcome.errors.append({"index": index, "barcode": barcode, "error": result.error})
                continue
            nested.commit()
            outcome.results.append(result)
        except Exception as exc:  # noqa: BLE001
            nested.rollback()
            outcome.errors.append({"index": index, "barcode": barcode, "error": str(exc)})

    return outcome
