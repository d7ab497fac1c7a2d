# Overview: Scanning session lifecycle; scans, quantity edits, batches, completion and cancellation.

"""
Scanning Session Manager

LIFECYCLE:
1. active: accepts scans, quantity edits and batch entries
2. completed: deferred inventory writes applied, summary frozen
3. cancelled: inventory writes already made by the session are reversed

completed and cancelled are terminal.

SCAN FAILURES:
A scan against a session that is absent, owned by someone else, or no
longer active is not an exception; scan() returns a ScanFailure so batch
and HTTP callers can report it next to successful scans. Bad input
(barcode format, checksum, quantity, missing location) raises
ValidationError.

CONCURRENCY:
Scans, edits, completion and cancellation all start with the same guarded
UPDATE of last_activity_at (WHERE status = 'active'). The write lock it
takes orders a scan against a concurrent cancel: a cancel that wins makes
the scan's UPDATE match nothing, and a scan that wins is seen (and
reversed) by the cancel. Status transitions go through lock_for_update +
version_id under run_with_retry.

INVENTORY WRITES:
- auto_apply_changes (quick_update): each scan sets the linked item to the
  quantity accumulated over every barcode linked to it, immediately.
- otherwise: nothing is written until completion, which applies per
  linked inventory item either the counted quantity ("set") or the
  received quantity ("add").
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field

from flask import current_app
from sqlalchemy import func, update

from ..extensions import db
from ..models import InventoryItem, ScanningSession, ScanSessionItem
from ..validation import MAX_SCAN_QUANTITY, ValidationError, coerce_int, coerce_quantity, optional_str
from .anomaly_service import detect_stock_anomaly
from .barcode_lookup_service import lookup_barcode
from .barcode_validator import clean_barcode, validate_barcode
from .concurrency import lock_for_update, run_with_retry
from .inventory_service import (
    MOVEMENT_ADJUSTMENT,
    MOVEMENT_COUNT,
    get_inventory_item,
    receive_quantity,
    revert_session_movements,
    set_quantity as set_inventory_quantity,
)
from .quantity_reconciler import (
    UNKNOWN_PRODUCT_NAME,
    accumulate_scan,
    load_item,
    process_batch,
    set_quantity as set_item_quantity,
)
from .workflows import APPLY_ADD, WORKFLOW_CONFIGS, get_workflow_config
from scancount.time_utils import utcnow


SESSION_STATUS_ACTIVE = "active"
SESSION_STATUS_COMPLETED = "completed"
SESSION_STATUS_CANCELLED = "cancelled"

SESSION_STATUSES = (SESSION_STATUS_ACTIVE, SESSION_STATUS_COMPLETED, SESSION_STATUS_CANCELLED)

# ScanFailure codes
FAILURE_SESSION_NOT_FOUND = "session_not_found"
FAILURE_SESSION_FORBIDDEN = "session_forbidden"
FAILURE_SESSION_INACTIVE = "session_inactive"

# Average units per product above which a count is flagged for review
HIGH_QUANTITY_RATIO = 5


class ScanningError(Exception):
    """Base class for session lifecycle failures."""
    pass


class InvalidSession(ScanningError):
    """Raised when a session is absent, foreign, or not in the required state."""

    def __init__(self, message: str, code: str = FAILURE_SESSION_NOT_FOUND):
        super().__init__(message)
        self.code = code


class ItemNotFound(ScanningError):
    """Raised when a barcode was never scanned in the session."""
    pass


@dataclass
class ScanSuccess:
    item: dict
    action: str
    previous_quantity: int
    product: dict | None = None
    inventory_matches: list = field(default_factory=list)
    requires_disambiguation: bool = False
    workflow_result: dict = field(default_factory=dict)
    session_summary: dict | None = None

    success = True
    error = None

    @property
    def barcode(self) -> str:
        return self.item["barcode"]

    def to_dict(self) -> dict:
        return {
            "scanResult": {
                "action": self.action,
                "item": self.item,
                "previousQuantity": self.previous_quantity,
                "newQuantity": self.item["quantity"],
                "requiresDisambiguation": self.requires_disambiguation,
            },
            "productData": self.product,
            "inventoryMatches": self.inventory_matches,
            "workflowResult": self.workflow_result,
            "sessionSummary": self.session_summary,
        }


@dataclass
class ScanFailure:
    code: str
    error: str

    success = False

    def to_dict(self) -> dict:
        return {"scanResult": {"error": self.error, "code": self.code}}


def generate_session_id() -> str:
    return f"scan_{uuid.uuid4().hex}"


def session_config(session: ScanningSession) -> dict:
    """Workflow flags as stored on the session at start."""
    return {
        "allowQuantityEdit": session.allow_quantity_edit,
        "requireLocation": session.require_location,
        "autoApplyChanges": session.auto_apply_changes,
        "blockOnAnomalies": session.block_on_anomalies,
    }


def _get_owned_session(
    session_id,
    client_id: str,
    user_id: str,
    *,
    for_update: bool = False,
    require_active: bool = True,
) -> ScanningSession:
    """
    Raises:
        InvalidSession: absent, owned by another caller, or (when
            require_active) not active
    """
    if not session_id or not isinstance(session_id, str):
        raise InvalidSession("Session ID is required")

    query = db.session.query(ScanningSession).filter_by(id=session_id).populate_existing()
    if for_update:
        query = lock_for_update(query)
    session = query.first()

    if session is None:
        raise InvalidSession(f"Scanning session {session_id} not found", FAILURE_SESSION_NOT_FOUND)
    if session.client_id != client_id or session.user_id != user_id:
        raise InvalidSession(f"Scanning session {session_id} not found", FAILURE_SESSION_FORBIDDEN)
    if require_active and session.status != SESSION_STATUS_ACTIVE:
        raise InvalidSession(f"Scanning session is {session.status}", FAILURE_SESSION_INACTIVE)
    return session


def _stamp_activity(session_id: str, *, client_id: str | None = None, user_id: str | None = None) -> bool:
    """
    Guarded UPDATE of last_activity_at; True when an active session matched.

    The write lock this takes is what orders scans against completion and
    cancellation, so those read session data only after stamping.
    """
    table = ScanningSession.__table__
    conditions = [table.c.id == session_id, table.c.status == SESSION_STATUS_ACTIVE]
    if client_id is not None:
        conditions.append(table.c.client_id == client_id)
    if user_id is not None:
        conditions.append(table.c.user_id == user_id)

    result = db.session.execute(update(table).where(*conditions).values(last_activity_at=utcnow()))
    return result.rowcount == 1


def _touch_active_session(session_id, client_id: str, user_id: str) -> ScanFailure | None:
    """Stamp activity on an active owned session; report why when it cannot."""
    if not session_id or not isinstance(session_id, str):
        return ScanFailure(FAILURE_SESSION_NOT_FOUND, "Session ID is required")

    if _stamp_activity(session_id, client_id=client_id, user_id=user_id):
        return None

    try:
        _get_owned_session(session_id, client_id, user_id)
    except InvalidSession as e:
        return ScanFailure(e.code, str(e))
    return ScanFailure(FAILURE_SESSION_INACTIVE, "Invalid or inactive scanning session")


def _session_items(session_id: str) -> list[ScanSessionItem]:
    return (
        db.session.query(ScanSessionItem)
        .filter_by(session_id=session_id)
        .order_by(ScanSessionItem.scanned_at.asc(), ScanSessionItem.id.asc())
        .populate_existing()
        .all()
    )


def _summarize(session: ScanningSession, items: list[ScanSessionItem]) -> dict:
    return {
        "sessionId": session.id,
        "status": session.status,
        "workflowType": session.workflow_type,
        "location": session.location,
        "startedAt": session.to_dict()["startedAt"],
        "lastActivity": session.to_dict()["lastActivity"],
        "totalItems": len(items),
        "totalQuantity": sum(item.quantity for item in items),
        "totalScans": sum(item.scan_count for item in items),
        "uniqueProducts": len({item.barcode for item in items}),
        "linkedItems": sum(1 for item in items if item.inventory_item_id is not None),
        "items": [item.to_dict() for item in items],
    }


def get_session_summary(session_id: str) -> dict:
    session = db.session.query(ScanningSession).filter_by(id=session_id).populate_existing().first()
    if session is None:
        raise InvalidSession(f"Scanning session {session_id} not found")
    return _summarize(session, _session_items(session_id))


def start_session(workflow_type, *, client_id: str, user_id: str, location=None) -> dict:
    """
    Open an active session with the workflow's flags resolved and stored.

    Raises:
        MissingWorkflowType / UnknownWorkflowType
        ValidationError: If location is not a string
    """
    config = get_workflow_config(workflow_type)
    location = optional_str(location, "location")
    now = utcnow()

    session = ScanningSession(
        id=generate_session_id(),
        client_id=client_id,
        user_id=user_id,
        workflow_type=config.name,
        status=SESSION_STATUS_ACTIVE,
        location=location,
        allow_quantity_edit=config.allow_quantity_edit,
        require_location=config.require_location,
        auto_apply_changes=config.auto_apply_changes,
        block_on_anomalies=config.block_on_anomalies,
        apply_mode=config.apply_mode,
        started_at=now,
        last_activity_at=now,
    )
    db.session.add(session)
    db.session.flush()

    current_app.logger.info("Started %s scanning session %s for user %s", config.name, session.id, user_id)

    return {
        "session": session.to_dict(),
        "workflowConfig": config.to_dict(),
        "instructions": list(config.instructions),
    }


def _resolve_link(lookup, client_id: str, inventory_item_id) -> tuple[InventoryItem | None, bool]:
    """
    Pick the inventory item a scan counts against.

    Explicit id > the only exact barcode match > none. Several exact
    matches leave the scan unlinked and flag it for disambiguation.
    """
    if inventory_item_id is not None:
        item_id = coerce_int(inventory_item_id, "inventory_item_id", minimum=1)
        return get_inventory_item(item_id, client_id), False

    barcode_matches = lookup.barcode_matches
    if len(barcode_matches) == 1:
        return get_inventory_item(barcode_matches[0].inventory_item_id, client_id), False
    return None, len(barcode_matches) > 1


def _linked_quantity(session_id: str, inventory_item_id: int) -> int:
    """Accumulated quantity over every barcode in the session linked to one inventory item."""
    total = (
        db.session.query(func.coalesce(func.sum(ScanSessionItem.quantity), 0))
        .filter(
            ScanSessionItem.session_id == session_id,
            ScanSessionItem.inventory_item_id == inventory_item_id,
        )
        .scalar()
    )
    return int(total)


def _apply_immediately(session: ScanningSession, item: ScanSessionItem, user_id: str) -> dict:
    inventory_item = get_inventory_item(item.inventory_item_id, session.client_id)
    previous = inventory_item.current_quantity
    counted = _linked_quantity(session.id, inventory_item.id)
    set_inventory_quantity(
        inventory_item.id,
        session.client_id,
        counted,
        movement_type=MOVEMENT_ADJUSTMENT,
        reason="Barcode scan adjustment",
        reference_id=session.id,
        user_id=user_id,
    )
    return {
        "inventoryUpdated": True,
        "inventoryItemId": inventory_item.id,
        "previousQuantity": previous,
        "newQuantity": counted,
        "difference": counted - previous,
    }


def _workflow_result(session: ScanningSession, item: ScanSessionItem, user_id: str) -> dict:
    if item.inventory_item_id is None:
        return {"processed": False, "reason": "No linked inventory item"}

    if session.auto_apply_changes:
        return _apply_immediately(session, item, user_id)

    if session.apply_mode == APPLY_ADD:
        return {
            "readyForReceiving": True,
            "inventoryItemId": item.inventory_item_id,
            "quantityToReceive": item.quantity,
        }
    return {
        "pendingCount": True,
        "inventoryItemId": item.inventory_item_id,
        "countedQuantity": item.quantity,
    }


def scan(
    session_id,
    barcode,
    quantity=1,
    *,
    client_id: str,
    user_id: str,
    location=None,
    notes=None,
    inventory_item_id=None,
    include_summary: bool = True,
) -> ScanSuccess | ScanFailure:
    """
    Record one scan into a session.

    Repeat scans of the same barcode accumulate on one item.

    Returns:
        ScanSuccess, or ScanFailure when the session cannot take scans

    Raises:
        ValidationError: Invalid barcode, quantity, or missing location
        InventoryItemNotFound: Explicit inventory_item_id is not the caller's
    """
    if not barcode or not isinstance(barcode, (str, int)) or isinstance(barcode, bool):
        raise ValidationError("Barcode is required for scan operation")
    code = validate_barcode(str(barcode))
    quantity = coerce_quantity(1 if quantity is None else quantity)
    location = optional_str(location, "location")
    notes = optional_str(notes, "notes", max_length=2000)

    failure = _touch_active_session(session_id, client_id, user_id)
    if failure is not None:
        return failure

    session = db.session.get(ScanningSession, session_id)

    location = location or session.location
    if session.require_location and not location:
        raise ValidationError(f"Location is required for {session.workflow_type} sessions")

    lookup = lookup_barcode(
        code,
        client_id=client_id,
        check_inventory=True,
        include_alternatives=False,
        enrich_product=False,
    )
    linked, requires_disambiguation = _resolve_link(lookup, client_id, inventory_item_id)

    product = lookup.product or {}
    reconciled = accumulate_scan(
        session.id,
        code.code,
        quantity,
        product_name=product.get("name") or (linked.item_name if linked else UNKNOWN_PRODUCT_NAME),
        product_brand=product.get("brand"),
        product_category=product.get("category") or (linked.category if linked else None),
        inventory_item_id=linked.id if linked else None,
        location=location,
        notes=notes,
    )
    item = load_item(reconciled.item_id)

    return ScanSuccess(
        item=item.to_dict(),
        action=reconciled.action,
        previous_quantity=reconciled.previous_quantity,
        product=lookup.product,
        inventory_matches=[m.to_dict() for m in lookup.inventory_matches],
        requires_disambiguation=requires_disambiguation,
        workflow_result=_workflow_result(session, item, user_id),
        session_summary=get_session_summary(session.id) if include_summary else None,
    )


def batch_scan(
    workflow_type,
    batch_data,
    *,
    client_id: str,
    user_id: str,
    location=None,
    session_id=None,
) -> dict:
    """
    Scan many entries into one session; a new session is started when
    session_id is not given.

    Each entry ({barcode, quantity?, location?, notes?, inventory_item_id?})
    runs in its own savepoint. Failed entries are reported in errors and
    never abort the rest.

    Raises:
        ValidationError: batch_data missing/empty, or bad workflow type
        InvalidSession: session_id given but not an active owned session
    """
    if not isinstance(batch_data, list) or not batch_data:
        raise ValidationError("Batch data is required for batch operations")

    if session_id:
        session = _get_owned_session(session_id, client_id, user_id)
    else:
        started = start_session(workflow_type, client_id=client_id, user_id=user_id, location=location)
        session = db.session.get(ScanningSession, started["session"]["id"])

    def _scan_entry(index, entry):
        if not isinstance(entry, dict):
            raise ValidationError("Batch entry must be an object")
        if not entry.get("barcode"):
            raise ValidationError("Barcode is required")
        return scan(
            session.id,
            entry["barcode"],
            entry.get("quantity", 1),
            client_id=client_id,
            user_id=user_id,
            location=entry.get("location") or location,
            notes=entry.get("notes"),
            inventory_item_id=entry.get("inventory_item_id"),
            include_summary=False,
        )

    outcome = process_batch(batch_data, _scan_entry)

    return {
        "sessionId": session.id,
        "session": session.to_dict(),
        "batchSummary": outcome.summary(),
        "results": [
            {
                "barcode": result.barcode,
                "success": True,
                "action": result.action,
                "item": result.item,
                "requiresDisambiguation": result.requires_disambiguation,
            }
            for result in outcome.results
        ],
        "errors": outcome.errors,
        "sessionSummary": get_session_summary(session.id),
    }


def update_quantity(session_id, barcode, quantity, *, client_id: str, user_id: str) -> dict:
    """
    Replace the accumulated quantity of a scanned item.

    Raises:
        ValidationError: quantity not an integer >= 0, or edits not allowed
        InvalidSession: session absent, foreign or not active
        ItemNotFound: barcode never scanned in this session
    """
    code = clean_barcode(barcode) if isinstance(barcode, (str, int)) and not isinstance(barcode, bool) else ""
    if not code:
        raise ValidationError("Barcode is required")
    if quantity is None:
        raise ValidationError("Quantity is required")
    quantity = coerce_int(quantity, "quantity", minimum=0, maximum=MAX_SCAN_QUANTITY)

    session = _get_owned_session(session_id, client_id, user_id, for_update=True)
    if not session.allow_quantity_edit:
        raise ValidationError(f"Quantity edits are not allowed for {session.workflow_type} sessions")
    if not _stamp_activity(session.id):
        raise InvalidSession("Scanning session is no longer active", FAILURE_SESSION_INACTIVE)

    reconciled = set_item_quantity(session.id, code, quantity)
    if reconciled is None:
        raise ItemNotFound(f"Barcode {code} has not been scanned in this session")

    item = load_item(reconciled.item_id)
    return {
        "item": item.to_dict(),
        "previousQuantity": reconciled.previous_quantity,
        "workflowResult": _workflow_result(session, item, user_id),
        "sessionSummary": get_session_summary(session.id),
    }


def _linked_totals(items: list[ScanSessionItem]) -> dict[int, int]:
    """Accumulated quantity per linked inventory item (several barcodes may share one)."""
    totals: dict[int, int] = {}
    for item in items:
        if item.inventory_item_id is not None:
            totals[item.inventory_item_id] = totals.get(item.inventory_item_id, 0) + item.quantity
    return totals


def _projected_anomalies(session: ScanningSession, totals: dict[int, int]) -> list[dict]:
    anomalies = []
    for inventory_item_id, quantity in sorted(totals.items()):
        inventory_item = get_inventory_item(inventory_item_id, session.client_id)
        if session.apply_mode == APPLY_ADD:
            projected = (inventory_item.current_quantity or 0) + quantity
        else:
            projected = quantity
        result = detect_stock_anomaly(
            projected,
            inventory_item.par_level_low,
            inventory_item.effective_par_level_high,
        )
        if result.has_anomaly:
            anomalies.append({
                "inventoryItemId": inventory_item.id,
                "itemName": inventory_item.item_name,
                "projectedQuantity": projected,
                **result.to_dict(),
            })
    return anomalies


def _apply_deferred(session: ScanningSession, totals: dict[int, int], user_id: str) -> list[dict]:
    updates = []
    for inventory_item_id, quantity in sorted(totals.items()):
        inventory_item = get_inventory_item(inventory_item_id, session.client_id)
        previous = inventory_item.current_quantity or 0

        if session.apply_mode == APPLY_ADD:
            movement = receive_quantity(
                inventory_item_id, session.client_id, quantity,
                reason="Barcode scan receiving", reference_id=session.id, user_id=user_id,
            )
        else:
            movement = set_inventory_quantity(
                inventory_item_id, session.client_id, quantity,
                movement_type=MOVEMENT_COUNT,
                reason=f"Barcode scan {session.workflow_type}",
                reference_id=session.id, user_id=user_id,
            )

        updates.append({
            "inventoryItemId": inventory_item_id,
            "itemName": inventory_item.item_name,
            "previousQuantity": previous,
            "newQuantity": inventory_item.current_quantity,
            "quantityDelta": inventory_item.current_quantity - previous,
            "movementId": movement.id if movement else None,
        })
    return updates


def generate_completion_recommendations(summary: dict, workflow_type: str) -> list[str]:
    """
    Workflow notes from the workflow table (formatted with the summary's
    counters), followed by checks that apply to every workflow.
    """
    if summary["totalItems"] == 0:
        return ["No items were scanned in this session"]

    workflow = WORKFLOW_CONFIGS.get(workflow_type)
    recommendations = []
    if workflow is not None:
        recommendations.extend(note.format(**summary) for note in workflow.completion_notes)
        if workflow.flag_high_quantities and summary["totalQuantity"] > summary["totalItems"] * HIGH_QUANTITY_RATIO:
            recommendations.append("High quantities detected - verify counts are accurate")

    if summary["totalScans"] > summary["totalItems"]:
        recommendations.append("Some products were scanned multiple times - verify this is intended")

    unlinked = summary["totalItems"] - summary["linkedItems"]
    if unlinked:
        recommendations.append(f"{unlinked} scanned product(s) are not linked to inventory items")

    return recommendations


def complete_session(session_id, *, client_id: str, user_id: str, override_anomalies: bool = False) -> dict:
    """
    Finish a session and apply its deferred inventory writes.

    Workflows that block on anomalies first project every linked item's
    resulting quantity through the anomaly detector. A blocking anomaly
    without override_anomalies leaves the session active and writes nothing.

    Raises:
        InvalidSession: session absent, foreign or not active
    """
    def _op():
        session = _get_owned_session(session_id, client_id, user_id, for_update=True)
        if not _stamp_activity(session.id):
            raise InvalidSession("Scanning session is no longer active", FAILURE_SESSION_INACTIVE)
        items = _session_items(session.id)
        totals = _linked_totals(items)
        summary = _summarize(session, items)

        anomalies = _projected_anomalies(session, totals) if session.block_on_anomalies else []
        blocking = [a for a in anomalies if not a["canProceed"]]

        if blocking and not override_anomalies:
            current_app.logger.info(
                "Completion of session %s blocked by %d anomalies", session.id, len(blocking)
            )
            return {
                "sessionSummary": summary,
                "completionResult": {
                    "accepted": False,
                    "canProceed": False,
                    "inventoryUpdates": [],
                    "processedItems": summary["totalItems"],
                    "processedQuantity": summary["totalQuantity"],
                    "anomalies": anomalies,
                },
                "recommendations": [
                    "Resolve flagged counts or complete with override_anomalies to accept them",
                ],
            }

        updates = [] if session.auto_apply_changes else _apply_deferred(session, totals, user_id)

        now = utcnow()
        session.status = SESSION_STATUS_COMPLETED
        session.completed_at = now
        session.last_activity_at = now

        completion = {
            "accepted": True,
            "canProceed": True,
            "inventoryUpdates": updates,
            "processedItems": summary["totalItems"],
            "processedQuantity": summary["totalQuantity"],
            "anomalies": anomalies,
        }
        session.completion_summary = {
            "totalItems": summary["totalItems"],
            "totalQuantity": summary["totalQuantity"],
            "totalScans": summary["totalScans"],
            "inventoryUpdates": len(updates),
            "anomalies": len(anomalies),
            "overridden": bool(blocking),
        }
        db.session.flush()

        current_app.logger.info(
            "Completed %s session %s: %d items, %d inventory updates",
            session.workflow_type, session.id, summary["totalItems"], len(updates),
        )

        final_summary = get_session_summary(session.id)
        return {
            "sessionSummary": final_summary,
            "completionResult": completion,
            "recommendations": generate_completion_recommendations(final_summary, session.workflow_type),
        }

    return run_with_retry(_op)


def cancel_session(session_id, *, client_id: str, user_id: str) -> dict:
    """
    Cancel an active session and reverse any inventory writes it made.

    Raises:
        InvalidSession: session absent, foreign or not active
    """
    def _op():
        session = _get_owned_session(session_id, client_id, user_id, for_update=True)
        if not _stamp_activity(session.id):
            raise InvalidSession("Scanning session is no longer active", FAILURE_SESSION_INACTIVE)
        reversals = revert_session_movements(client_id, session.id, user_id)

        now = utcnow()
        session.status = SESSION_STATUS_CANCELLED
        session.cancelled_at = now
        session.last_activity_at = now
        db.session.flush()

        current_app.logger.info(
            "Cancelled session %s; reversed %d inventory movements", session.id, len(reversals)
        )

        return {
            "message": "Scanning session cancelled",
            "session": session.to_dict(),
            "reversedMovements": [movement.to_dict() for movement in reversals],
            "sessionSummary": get_session_summary(session.id),
        }

    return run_with_retry(_op)


def get_session_details(session_id, *, client_id: str, user_id: str) -> dict:
    """
    Summary plus workflow flags, instructions and completion summary.

    Raises:
        InvalidSession: session absent or foreign
    """
    session = _get_owned_session(session_id, client_id, user_id, require_active=False)
    details = _summarize(session, _session_items(session.id))
    workflow = WORKFLOW_CONFIGS.get(session.workflow_type)

    details["completedAt"] = session.to_dict()["completedAt"]
    details["cancelledAt"] = session.to_dict()["cancelledAt"]
    details["workflowConfig"] = session_config(session)
    details["instructions"] = list(workflow.instructions) if workflow else []
    details["completionSummary"] = session.completion_summary
    return details


def list_sessions(
    *,
    client_id: str,
    user_id: str,
    status: str | None = SESSION_STATUS_ACTIVE,
    workflow_type: str | None = None,
    limit: int | None = None,
) -> list[dict]:
    """
    The caller's sessions, most recently started first.

    status=None lists every status.

    Raises:
        ValidationError: unknown status
    """
    if status is not None and status not in SESSION_STATUSES:
        raise ValidationError(f"Invalid status: {status}. Must be one of: {', '.join(SESSION_STATUSES)}")
    if limit is None:
        limit = current_app.config.get("SESSION_LIST_LIMIT", 50)

    query = db.session.query(ScanningSession).filter_by(client_id=client_id, user_id=user_id)
    if status is not None:
        query = query.filter_by(status=status)
    if workflow_type:
        query = query.filter_by(workflow_type=workflow_type)

    sessions = query.order_by(ScanningSession.started_at.desc(), ScanningSession.id.desc()).limit(limit).all()
    if not sessions:
        return []

    stats = {
        row.session_id: row
        for row in db.session.query(
            ScanSessionItem.session_id,
            func.count(ScanSessionItem.id).label("item_count"),
            func.coalesce(func.sum(ScanSessionItem.quantity), 0).label("total_quantity"),
        ).filter(
            ScanSessionItem.session_id.in_([s.id for s in sessions])
        ).group_by(ScanSessionItem.session_id).all()
    }

    results = []
    for session in sessions:
        row = stats.get(session.id)
        data = session.to_dict()
        data["scannedItemsCount"] = row.item_count if row else 0
        data["totalQuantityScanned"] = int(row.total_quantity) if row else 0
        results.append(data)
    return results
