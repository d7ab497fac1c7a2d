# Overview: Flask API routes for barcode lookup; parses input and returns JSON responses.

# backend/scancount/routes/barcode.py
"""
Barcode lookup API routes

SECURITY: All routes require a bearer token; inventory matches are scoped
to the caller's client.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..extensions import db
from ..decorators import require_auth
from ..services import barcode_lookup_service
from ..services.barcode_validator import BarcodeError, inspect_barcode, validate_barcode
from ..validation import ValidationError, parse_bool
from scancount.time_utils import to_utc_z, utcnow


barcode_bp = Blueprint("barcode", __name__, url_prefix="/api/barcode")


@barcode_bp.get("/lookup")
@require_auth
def lookup_route():
    """
    Look up a single barcode.

    Query params:
        barcode (required)
        check_inventory, include_alternatives, enrich_product (default true)

    Returns:
        200: Lookup result (found may be false)
        400: Missing or invalid barcode
    """
    raw = request.args.get("barcode")
    if not raw:
        return jsonify({"error": "Barcode parameter is required"}), 400

    try:
        barcode = validate_barcode(raw)
        result = barcode_lookup_service.lookup_barcode(
            barcode,
            client_id=g.client_id,
            check_inventory=parse_bool(request.args.get("check_inventory"), True),
            include_alternatives=parse_bool(request.args.get("include_alternatives"), True),
            enrich_product=parse_bool(request.args.get("enrich_product"), True),
        )
        db.session.commit()

        payload = result.to_dict()
        payload["lookupTime"] = to_utc_z(utcnow())
        return jsonify(payload), 200

    except BarcodeError as e:
        db.session.rollback()
        return jsonify({
            "error": f"Invalid barcode: {e}",
            "barcode": inspect_barcode(raw).to_dict(),
        }), 400
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to look up barcode")
        return jsonify({"error": "Internal server error"}), 500


@barcode_bp.post("/lookup/batch")
@require_auth
def batch_lookup_route():
    """
    Look up several barcodes at once.

    Request body:
    {
        "barcodes": [str],           // 1..BARCODE_BATCH_LIMIT
        "check_inventory": bool,     // default true
        "enrich_products": bool      // default false
    }

    Returns:
        200: Per-barcode results and per-barcode errors
        400: Missing array or over the batch limit
    """
    data = request.get_json(silent=True) or {}

    try:
        result = barcode_lookup_service.batch_lookup(
            data.get("barcodes"),
            client_id=g.client_id,
            check_inventory=parse_bool(data.get("check_inventory"), True),
            enrich_products=parse_bool(data.get("enrich_products"), False),
        )
        db.session.commit()

        result["lookupTime"] = to_utc_z(utcnow())
        return jsonify(result), 200

    except ValidationError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 400
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed batch barcode lookup")
        return jsonify({"error": "Internal server error"}), 500
