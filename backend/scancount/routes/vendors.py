# Overview: Flask API routes for vendor performance; parses input and returns JSON responses.

# backend/scancount/routes/vendors.py
"""
Vendor performance API routes.

Ratings are computed from order history on every request; nothing is cached.
"""

from flask import Blueprint, jsonify, current_app, g

from ..decorators import require_auth
from ..services import vendor_rating_service


vendors_bp = Blueprint("vendors", __name__, url_prefix="/api/vendors")


@vendors_bp.get("/<int:vendor_id>/performance")
@require_auth
def vendor_performance_route(vendor_id: int):
    """
    Order, delivery and spend metrics plus the 1-5 rating for one vendor.

    Returns:
        200: Performance metrics
        404: Vendor not found
    """
    try:
        return jsonify(vendor_rating_service.get_vendor_performance(vendor_id, g.client_id)), 200
    except vendor_rating_service.VendorNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to compute vendor performance")
        return jsonify({"error": "Internal server error"}), 500


@vendors_bp.get("/analytics")
@require_auth
def vendor_analytics_route():
    """
    All active vendors ranked by rating.

    Returns:
        200: {vendors, summary, insights}
    """
    try:
        return jsonify(vendor_rating_service.get_vendor_analytics(g.client_id)), 200
    except Exception:
        current_app.logger.exception("Failed to compute vendor analytics")
        return jsonify({"error": "Internal server error"}), 500
