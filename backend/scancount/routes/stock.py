# Overview: Flask API routes for stock checks; parses input and returns JSON responses.

# backend/scancount/routes/stock.py
"""
Stock API routes: count validation and reorder suggestions.

Both are read-only over the caller's inventory.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth
from ..services import anomaly_service, reorder_service
from ..services.inventory_service import InventoryItemNotFound
from ..validation import ValidationError, coerce_int


stock_bp = Blueprint("stock", __name__, url_prefix="/api/stock")


@stock_bp.post("/count/validate")
@require_auth
def validate_count_route():
    """
    Check a counted quantity against an item's par levels.

    Request body:
    {
        "inventory_item_id": int,
        "counted_quantity": int
    }

    Returns:
        200: Anomaly result
        400: Invalid request
        404: Inventory item not found
    """
    data = request.get_json(silent=True) or {}

    try:
        if data.get("inventory_item_id") is None or data.get("counted_quantity") is None:
            raise ValidationError("inventory_item_id and counted_quantity are required")

        item_id = coerce_int(data["inventory_item_id"], "inventory_item_id", minimum=1)
        counted = coerce_int(data["counted_quantity"], "counted_quantity", minimum=0)

        item, result = anomaly_service.evaluate_count(item_id, counted, g.client_id)

        payload = result.to_dict()
        payload["inventoryItemId"] = item.id
        payload["itemName"] = item.item_name
        payload["currentQuantity"] = item.current_quantity
        payload["countedQuantity"] = counted
        payload["variance"] = counted - item.current_quantity
        return jsonify(payload), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except InventoryItemNotFound as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to validate count")
        return jsonify({"error": "Internal server error"}), 500


@stock_bp.get("/reorder-suggestions")
@require_auth
def reorder_suggestions_route():
    """
    Items at or below their reorder point with suggested order quantities.

    Query params:
        vendor_id: only items this vendor supplies (optional)

    Returns:
        200: {suggestions, totalSuggestions, totalCostCents}
        400: Invalid vendor_id
    """
    try:
        suggestions = reorder_service.generate_reorder_suggestions(
            g.client_id,
            vendor_id=request.args.get("vendor_id"),
        )
        return jsonify({
            "suggestions": [s.to_dict() for s in suggestions],
            "totalSuggestions": len(suggestions),
            "totalCostCents": sum(s.total_cost_cents for s in suggestions),
        }), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to generate reorder suggestions")
        return jsonify({"error": "Internal server error"}), 500
