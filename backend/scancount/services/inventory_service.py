# Overview: Service-layer writes to inventory quantities; every change is recorded as a StockMovement.

"""
Inventory Write Path

Invariants:
- InventoryItem.current_quantity only changes through this module.
- Every change appends exactly one StockMovement carrying the signed delta,
  the previous and new quantity, and the session id in reference_id.
- Zero-delta changes are not recorded.
- Cancelling a session reverses the net delta of its movements per item,
  so the session leaves no trace on quantities (the history stays).

Callers flush; routes commit.
"""

from __future__ import annotations

from sqlalchemy import func

from ..extensions import db
from ..models import InventoryItem, StockMovement
from .concurrency import lock_for_update
from scancount.time_utils import utcnow


MOVEMENT_ADJUSTMENT = "adjustment"
MOVEMENT_RECEIVING = "receiving"
MOVEMENT_COUNT = "count"
MOVEMENT_REVERSAL = "reversal"


class InventoryItemNotFound(Exception):
    """Raised when an inventory item does not exist for the caller."""
    pass


def get_inventory_item(item_id: int, client_id: str, *, for_update: bool = False) -> InventoryItem:
    """
    Fetch an item scoped to the caller.

    Raises:
        InventoryItemNotFound: If the item is missing or belongs to another client
    """
    query = db.session.query(InventoryItem).filter_by(id=item_id, client_id=client_id)
    if for_update:
        query = lock_for_update(query)
    item = query.first()
    if not item:
        raise InventoryItemNotFound(f"Inventory item {item_id} not found")
    return item


def _record_movement(
    item: InventoryItem,
    new_quantity: int,
    movement_type: str,
    *,
    reason: str | None,
    reference_id: str | None,
    user_id: str | None,
) -> StockMovement | None:
    previous = item.current_quantity or 0
    delta = new_quantity - previous
    if delta == 0:
        return None

    movement = StockMovement(
        client_id=item.client_id,
        inventory_item_id=item.id,
        movement_type=movement_type,
        quantity_delta=delta,
        previous_quantity=previous,
        new_quantity=new_quantity,
        reason=reason,
        reference_id=reference_id,
        created_by_user_id=user_id,
        movement_date=utcnow(),
    )
    item.current_quantity = new_quantity
    db.session.add(movement)
    db.session.flush()
    return movement


def set_quantity(
    item_id: int,
    client_id: str,
    quantity: int,
    *,
    movement_type: str = MOVEMENT_COUNT,
    reason: str | None = None,
    reference_id: str | None = None,
    user_id: str | None = None,
) -> StockMovement | None:
    """Set on-hand to an absolute counted quantity."""
    item = get_inventory_item(item_id, client_id, for_update=True)
    return _record_movement(
        item, quantity, movement_type,
        reason=reason, reference_id=reference_id, user_id=user_id,
    )


def receive_quantity(
    item_id: int,
    client_id: str,
    quantity: int,
    *,
    reason: str | None = None,
    reference_id: str | None = None,
    user_id: str | None = None,
) -> StockMovement | None:
    """Add received units to on-hand and stamp last_restocked_at."""
    item = get_inventory_item(item_id, client_id, for_update=True)
    movement = _record_movement(
        item, (item.current_quantity or 0) + quantity, MOVEMENT_RECEIVING,
        reason=reason, reference_id=reference_id, user_id=user_id,
    )
    if movement is not None:
        item.last_restocked_at = movement.movement_date
    return movement


def revert_session_movements(client_id: str, session_id: str, user_id: str | None = None) -> list[StockMovement]:
    """
    Undo every quantity change a session made.

    Sums the session's non-reversal deltas per item and writes one reversal
    movement per item with a non-zero net.
    """
    net_rows = db.session.query(
        StockMovement.inventory_item_id,
        func.sum(StockMovement.quantity_delta),
    ).filter(
        StockMovement.client_id == client_id,
        StockMovement.reference_id == session_id,
        StockMovement.movement_type != MOVEMENT_REVERSAL,
    ).group_by(
        StockMovement.inventory_item_id,
    ).order_by(
        StockMovement.inventory_item_id.asc(),
    ).all()

    reversals = []
    for item_id, net_delta in net_rows:
        if not net_delta:
            continue
        item = get_inventory_item(item_id, client_id, for_update=True)
        movement = _record_movement(
            item, (item.current_quantity or 0) - int(net_delta), MOVEMENT_REVERSAL,
            reason=f"Session {session_id} cancelled",
            reference_id=session_id,
            user_id=user_id,
        )
        if movement is not None:
            reversals.append(movement)
    return reversals


def list_movements(client_id: str, *, reference_id: str | None = None, item_id: int | None = None, limit: int = 200):
    query = db.session.query(StockMovement).filter_by(client_id=client_id)
    if reference_id is not None:
        query = query.filter_by(reference_id=reference_id)
    if item_id is not None:
        query = query.filter_by(inventory_item_id=item_id)
    return query.order_by(StockMovement.id.desc()).limit(limit).all()
