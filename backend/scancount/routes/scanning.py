# Overview: Flask API routes for scanning sessions; parses input and returns JSON responses.

# backend/scancount/routes/scanning.py
"""
Scanning session API routes

One POST endpoint dispatches on `operation`, matching how handheld
scanners talk to the server:
start_session, scan, batch_scan, update_quantity, complete_session, cancel_session

SECURITY: Sessions are owned by the (client, user) of the bearer token.
Another caller's session id behaves as unknown.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..extensions import db
from ..decorators import require_auth
from ..services import scanning_service
from ..services.inventory_service import InventoryItemNotFound
from ..validation import ConflictError, ValidationError, parse_bool
from scancount.time_utils import to_utc_z, utcnow


scanning_bp = Blueprint("scanning", __name__, url_prefix="/api/barcode/scan")


def _start_session(data: dict) -> dict:
    return scanning_service.start_session(
        data.get("workflow_type"),
        client_id=g.client_id,
        user_id=g.user_id,
        location=data.get("location"),
    )


def _scan(data: dict) -> dict:
    outcome = scanning_service.scan(
        data.get("session_id"),
        data.get("barcode"),
        data.get("quantity", 1),
        client_id=g.client_id,
        user_id=g.user_id,
        location=data.get("location"),
        notes=data.get("notes"),
        inventory_item_id=data.get("inventory_item_id"),
    )
    result = outcome.to_dict()
    result["success"] = outcome.success
    return result


def _batch_scan(data: dict) -> dict:
    return scanning_service.batch_scan(
        data.get("workflow_type"),
        data.get("batch_data"),
        client_id=g.client_id,
        user_id=g.user_id,
        location=data.get("location"),
        session_id=data.get("session_id"),
    )


def _update_quantity(data: dict) -> dict:
    return scanning_service.update_quantity(
        data.get("session_id"),
        data.get("barcode"),
        data.get("quantity"),
        client_id=g.client_id,
        user_id=g.user_id,
    )


def _complete_session(data: dict) -> dict:
    return scanning_service.complete_session(
        data.get("session_id"),
        client_id=g.client_id,
        user_id=g.user_id,
        override_anomalies=parse_bool(data.get("override_anomalies"), False),
    )


def _cancel_session(data: dict) -> dict:
    return scanning_service.cancel_session(
        data.get("session_id"),
        client_id=g.client_id,
        user_id=g.user_id,
    )


OPERATIONS = {
    "start_session": _start_session,
    "scan": _scan,
    "batch_scan": _batch_scan,
    "update_quantity": _update_quantity,
    "complete_session": _complete_session,
    "cancel_session": _cancel_session,
}


def _workflow_of(result: dict):
    for key in ("sessionSummary", "session"):
        section = result.get(key)
        if isinstance(section, dict) and section.get("workflowType"):
            return section["workflowType"]
    return None


@scanning_bp.post("")
@require_auth
def scan_operation_route():
    """
    Run one scanning operation.

    Request body:
    {
        "operation": str,            // see OPERATIONS
        "workflow_type": str,        // start_session, batch_scan without session_id
        "session_id": str,
        "barcode": str,
        "quantity": int,
        "location": str,
        "notes": str,
        "inventory_item_id": int,
        "batch_data": [{barcode, quantity, location, notes, inventory_item_id}],
        "override_anomalies": bool
    }

    Returns:
        200: {success, operation, workflowType, timestamp, ...operation result}
             (a scan against an unusable session reports scanResult.error)
        400: Invalid request
        404: Unknown session, item or inventory item
    """
    data = request.get_json(silent=True) or {}
    operation = data.get("operation")

    handler = OPERATIONS.get(operation) if isinstance(operation, str) else None
    if handler is None:
        return jsonify({
            "error": f"Invalid operation. Use {', '.join(OPERATIONS)}"
        }), 400

    try:
        result = handler(data)
        db.session.commit()

        response = {
            "success": result.pop("success", True),
            "operation": operation,
            "workflowType": data.get("workflow_type") or _workflow_of(result),
            "timestamp": to_utc_z(utcnow()),
        }
        response.update(result)
        return jsonify(response), 200

    except ValidationError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 400
    except scanning_service.InvalidSession as e:
        db.session.rollback()
        return jsonify({"error": str(e), "code": e.code}), 404
    except (scanning_service.ItemNotFound, InventoryItemNotFound) as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 409
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Scan operation %s failed", operation)
        return jsonify({"error": "Internal server error"}), 500


@scanning_bp.get("/sessions")
@require_auth
def sessions_route():
    """
    Session details (session_id given) or the caller's sessions.

    Query params:
        session_id: return one session with items and workflow config
        status: active (default), completed, cancelled, or all
        workflow_type: filter

    Returns:
        200: Session details, or {sessions, totalSessions}
        400: Invalid status
        404: Unknown session
    """
    session_id = request.args.get("session_id")

    try:
        if session_id:
            details = scanning_service.get_session_details(
                session_id, client_id=g.client_id, user_id=g.user_id,
            )
            return jsonify(details), 200

        status = request.args.get("status", scanning_service.SESSION_STATUS_ACTIVE)
        sessions = scanning_service.list_sessions(
            client_id=g.client_id,
            user_id=g.user_id,
            status=None if status == "all" else status,
            workflow_type=request.args.get("workflow_type"),
        )
        return jsonify({"sessions": sessions, "totalSessions": len(sessions)}), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except scanning_service.InvalidSession as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to load scanning sessions")
        return jsonify({"error": "Internal server error"}), 500
