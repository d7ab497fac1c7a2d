# Overview: Vendor performance metrics and the 1-5 rating derived from order history.

"""
Vendor Rating

Rating starts at 3.0 and is adjusted by:
- on-time delivery %:   >=95 +1.5, >=85 +1.0, >=75 +0.5, <50 -1.0
- completion rate %:    >=95 +1.0, >=85 +0.5, <70 -0.5
- cancellation rate %:  0 +0.5, >20 -1.0, >10 -0.5
- completed orders:     >=50 +0.3, >=20 +0.2, >=10 +0.1

then clamped to [1, 5]. A vendor with no orders is rated 0.0 (unrated).

On time: a completed order whose delivery_date is no later than
order_date + vendor.delivery_days.
"""

from __future__ import annotations

from ..extensions import db
from ..models import PurchaseOrder, Vendor
from scancount.time_utils import add_days


ORDER_STATUS_PENDING = "pending"
ORDER_STATUS_COMPLETED = "completed"
ORDER_STATUS_CANCELLED = "cancelled"

HIGH_PERFORMER_RATING = 4.5
LOW_PERFORMER_RATING = 2.5
DELIVERY_ISSUE_PERCENTAGE = 80

MIN_RATING = 1.0
MAX_RATING = 5.0


class VendorNotFoundError(Exception):
    """Raised when a vendor does not exist for the caller."""
    pass


def calculate_vendor_rating(
    on_time_percentage: float,
    completion_rate: float,
    cancellation_rate: float,
    completed_orders: int,
    total_orders: int,
) -> float:
    if total_orders == 0:
        return 0.0

    rating = 3.0

    if on_time_percentage >= 95:
        rating += 1.5
    elif on_time_percentage >= 85:
        rating += 1.0
    elif on_time_percentage >= 75:
        rating += 0.5
    elif on_time_percentage < 50:
        rating -= 1.0

    if completion_rate >= 95:
        rating += 1.0
    elif completion_rate >= 85:
        rating += 0.5
    elif completion_rate < 70:
        rating -= 0.5

    if cancellation_rate == 0:
        rating += 0.5
    elif cancellation_rate > 20:
        rating -= 1.0
    elif cancellation_rate > 10:
        rating -= 0.5

    if completed_orders >= 50:
        rating += 0.3
    elif completed_orders >= 20:
        rating += 0.2
    elif completed_orders >= 10:
        rating += 0.1

    return round(max(MIN_RATING, min(MAX_RATING, rating)), 2)


def _is_on_time(order: PurchaseOrder, delivery_days: int) -> bool:
    if order.status != ORDER_STATUS_COMPLETED or order.delivery_date is None:
        return False
    return order.delivery_date <= add_days(order.order_date, delivery_days)


def _percentage(part: int, whole: int) -> float:
    if not whole:
        return 0.0
    return round(part / whole * 100, 2)


def compute_vendor_performance(vendor: Vendor, orders: list[PurchaseOrder]) -> dict:
    """Metrics for one vendor from its order history. Pure; no queries."""
    total = len(orders)
    completed = [o for o in orders if o.status == ORDER_STATUS_COMPLETED]
    cancelled = sum(1 for o in orders if o.status == ORDER_STATUS_CANCELLED)
    pending = sum(1 for o in orders if o.status == ORDER_STATUS_PENDING)

    on_time = sum(1 for o in completed if _is_on_time(o, vendor.delivery_days))
    on_time_percentage = _percentage(on_time, len(completed))
    completion_rate = _percentage(len(completed), total)
    cancellation_rate = _percentage(cancelled, total)

    delivered = [o for o in completed if o.delivery_date is not None]
    average_delivery_days = (
        round(sum((o.delivery_date - o.order_date).total_seconds() for o in delivered) / 86400 / len(delivered), 1)
        if delivered else 0.0
    )

    total_spent_cents = sum(o.total_amount_cents or 0 for o in completed)
    average_order_value_cents = round(total_spent_cents / len(completed)) if completed else 0

    items = [vi for vi in vendor.items if vi.is_active]
    average_item_cost_cents = (
        round(sum(vi.cost_per_unit_cents or 0 for vi in items) / len(items)) if items else 0
    )

    return {
        "vendor": vendor.to_dict(),
        "orderMetrics": {
            "total": total,
            "completed": len(completed),
            "pending": pending,
            "cancelled": cancelled,
            "completionRate": completion_rate,
            "cancellationRate": cancellation_rate,
        },
        "deliveryMetrics": {
            "onTimeDeliveries": on_time,
            "onTimePercentage": on_time_percentage,
            "averageDeliveryDays": average_delivery_days,
            "contractedDeliveryDays": vendor.delivery_days,
        },
        "financialMetrics": {
            "totalSpentCents": total_spent_cents,
            "averageOrderValueCents": average_order_value_cents,
            "averageItemCostCents": average_item_cost_cents,
        },
        "itemMetrics": {
            "activeItems": len(items),
            "preferredItems": sum(1 for vi in items if vi.is_preferred),
        },
        "rating": calculate_vendor_rating(
            on_time_percentage,
            completion_rate,
            cancellation_rate,
            len(completed),
            total,
        ),
    }


def _orders_for(vendor_id: int) -> list[PurchaseOrder]:
    return db.session.query(PurchaseOrder).filter_by(vendor_id=vendor_id).order_by(PurchaseOrder.order_date.asc()).all()


def get_vendor_performance(vendor_id: int, client_id: str) -> dict:
    """
    Raises:
        VendorNotFoundError: If the vendor does not belong to client_id
    """
    vendor = db.session.query(Vendor).filter_by(id=vendor_id, client_id=client_id).first()
    if not vendor:
        raise VendorNotFoundError(f"Vendor {vendor_id} not found")
    return compute_vendor_performance(vendor, _orders_for(vendor.id))


def generate_vendor_insights(vendors: list[dict]) -> list[str]:
    insights = []

    high = sum(1 for v in vendors if v["rating"] >= HIGH_PERFORMER_RATING)
    low = sum(1 for v in vendors if v["orderMetrics"]["total"] and v["rating"] <= LOW_PERFORMER_RATING)
    if high:
        insights.append(f"{high} vendor(s) are high performers (rating >= {HIGH_PERFORMER_RATING})")
    if low:
        insights.append(f"{low} vendor(s) need attention (rating <= {LOW_PERFORMER_RATING})")

    late = sum(
        1 for v in vendors
        if v["orderMetrics"]["completed"] and v["deliveryMetrics"]["onTimePercentage"] < DELIVERY_ISSUE_PERCENTAGE
    )
    if late:
        insights.append(f"{late} vendor(s) have delivery issues (< {DELIVERY_ISSUE_PERCENTAGE}% on-time)")

    unrated = sum(1 for v in vendors if not v["orderMetrics"]["total"])
    if unrated:
        insights.append(f"{unrated} vendor(s) have no order history yet")

    return insights


def get_vendor_analytics(client_id: str) -> dict:
    """All active vendors of a client, best rated first, plus summary and insights."""
    vendors = db.session.query(Vendor).filter_by(client_id=client_id, is_active=True).order_by(Vendor.id.asc()).all()

    performance = [compute_vendor_performance(vendor, _orders_for(vendor.id)) for vendor in vendors]
    performance.sort(key=lambda v: (-v["rating"], v["vendor"]["id"]))

    rated = [v["rating"] for v in performance if v["orderMetrics"]["total"]]
    total_orders = sum(v["orderMetrics"]["total"] for v in performance)
    total_spent_cents = sum(v["financialMetrics"]["totalSpentCents"] for v in performance)

    summary = {
        "totalVendors": len(performance),
        "totalOrders": total_orders,
        "totalSpentCents": total_spent_cents,
        "averageRating": round(sum(rated) / len(rated), 2) if rated else 0.0,
        "highPerformers": sum(1 for r in rated if r >= HIGH_PERFORMER_RATING),
        "lowPerformers": sum(1 for r in rated if r <= LOW_PERFORMER_RATING),
        "topBySpending": [
            {"id": v["vendor"]["id"], "name": v["vendor"]["name"], "totalSpentCents": v["financialMetrics"]["totalSpentCents"]}
            for v in sorted(performance, key=lambda v: -v["financialMetrics"]["totalSpentCents"])[:3]
        ],
    }

    return {
        "vendors": performance,
        "summary": summary,
        "insights": generate_vendor_insights(performance),
    }
