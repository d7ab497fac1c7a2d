# Overview: Pytest coverage for vendor ratings, performance metrics, analytics and vendor routes.

from datetime import datetime, timedelta

import pytest

from conftest import add_vendor_item
from scancount.models import PurchaseOrder, Vendor
from scancount.services.vendor_rating_service import (
    VendorNotFoundError,
    calculate_vendor_rating,
    get_vendor_analytics,
    get_vendor_performance,
)


ORDER_DAY = datetime(2026, 3, 2, 9, 0)


def add_order(db_session, vendor, *, status="completed", days_to_deliver=None, amount=10_000, offset=0):
    ordered = ORDER_DAY + timedelta(days=offset)
    delivered = None
    if status == "completed":
        delivered = ordered + timedelta(days=vendor.delivery_days if days_to_deliver is None else days_to_deliver)
    order = PurchaseOrder(
        vendor_id=vendor.id,
        status=status,
        order_date=ordered,
        delivery_date=delivered,
        total_amount_cents=amount,
    )
    db_session.add(order)
    return order


@pytest.fixture
def mixed_vendor(db_session, vendor):
    """3 on-time, 1 late, 1 cancelled order against a 2 day window."""
    for n in range(3):
        add_order(db_session, vendor, offset=n)
    add_order(db_session, vendor, days_to_deliver=5, offset=3)
    add_order(db_session, vendor, status="cancelled", amount=5_000, offset=4)
    db_session.commit()
    return vendor


@pytest.fixture
def great_vendor(db_session):
    v = Vendor(client_id="acme", name="Speedy Foods", delivery_days=1)
    db_session.add(v)
    db_session.commit()
    for n in range(10):
        add_order(db_session, v, amount=20_000, offset=n)
    db_session.commit()
    return v


class TestCalculateRating:

    def test_excellent_vendor_is_capped(self):
        assert calculate_vendor_rating(96, 96, 0, 60, 60) == 5.0

    def test_no_orders_is_unrated(self):
        assert calculate_vendor_rating(0, 0, 0, 0, 0) == 0.0

    def test_poor_vendor_is_floored(self):
        # 3.0 - 1.0 - 0.5 - 1.0
        assert calculate_vendor_rating(40, 60, 30, 6, 20) == 1.0

    def test_middling_vendor(self):
        # 3.0 - 0.5 (cancellations) + 0.1 (volume)
        assert calculate_vendor_rating(60, 80, 15, 12, 15) == 2.6

    @pytest.mark.parametrize("on_time", [0, 49, 50, 75, 85, 95, 100])
    @pytest.mark.parametrize("completion", [0, 69, 70, 85, 95, 100])
    @pytest.mark.parametrize("cancellation", [0, 5, 11, 21, 100])
    def test_always_in_range(self, on_time, completion, cancellation):
        rating = calculate_vendor_rating(on_time, completion, cancellation, 25, 30)
        assert 1.0 <= rating <= 5.0


class TestVendorPerformance:

    def test_metrics(self, db_session, mixed_vendor, towels):
        add_vendor_item(db_session, mixed_vendor, towels, cost=800, preferred=True)

        performance = get_vendor_performance(mixed_vendor.id, "acme")

        assert performance["orderMetrics"] == {
            "total": 5,
            "completed": 4,
            "pending": 0,
            "cancelled": 1,
            "completionRate": 80.0,
            "cancellationRate": 20.0,
        }
        assert performance["deliveryMetrics"]["onTimeDeliveries"] == 3
        assert performance["deliveryMetrics"]["onTimePercentage"] == 75.0
        assert performance["deliveryMetrics"]["averageDeliveryDays"] == pytest.approx(2.75, abs=0.05)
        assert performance["financialMetrics"] == {
            "totalSpentCents": 40_000,
            "averageOrderValueCents": 10_000,
            "averageItemCostCents": 800,
        }
        assert performance["itemMetrics"] == {"activeItems": 1, "preferredItems": 1}
        # 3.0 + 0.5 (on time >= 75) - 0.5 (cancellations > 10)
        assert performance["rating"] == 3.0

    def test_pending_orders_count_toward_total_only(self, db_session, vendor):
        add_order(db_session, vendor)
        add_order(db_session, vendor, status="pending", offset=1)
        db_session.commit()

        performance = get_vendor_performance(vendor.id, "acme")

        assert performance["orderMetrics"]["pending"] == 1
        assert performance["orderMetrics"]["completionRate"] == 50.0
        assert performance["deliveryMetrics"]["onTimePercentage"] == 100.0

    def test_vendor_without_orders(self, db_session, vendor):
        performance = get_vendor_performance(vendor.id, "acme")
        assert performance["rating"] == 0.0
        assert performance["deliveryMetrics"]["averageDeliveryDays"] == 0.0

    def test_other_clients_vendor(self, db_session, vendor):
        with pytest.raises(VendorNotFoundError):
            get_vendor_performance(vendor.id, "beta")


class TestVendorAnalytics:

    def test_ranking_summary_and_insights(self, db_session, mixed_vendor, great_vendor):
        unrated = Vendor(client_id="acme", name="New Supplier", delivery_days=3)
        retired = Vendor(client_id="acme", name="Retired", delivery_days=3, is_active=False)
        foreign = Vendor(client_id="beta", name="Foreign", delivery_days=3)
        db_session.add_all([unrated, retired, foreign])
        db_session.commit()

        analytics = get_vendor_analytics("acme")

        assert [v["vendor"]["id"] for v in analytics["vendors"]] == [great_vendor.id, mixed_vendor.id, unrated.id]
        assert [v["rating"] for v in analytics["vendors"]] == [5.0, 3.0, 0.0]

        summary = analytics["summary"]
        assert summary["totalVendors"] == 3
        assert summary["totalOrders"] == 15
        assert summary["totalSpentCents"] == 240_000
        assert summary["averageRating"] == 4.0
        assert summary["highPerformers"] == 1
        assert summary["lowPerformers"] == 0
        assert summary["topBySpending"][0]["id"] == great_vendor.id

        assert analytics["insights"] == [
            "1 vendor(s) are high performers (rating >= 4.5)",
            "1 vendor(s) have delivery issues (< 80% on-time)",
            "1 vendor(s) have no order history yet",
        ]

    def test_no_vendors(self, db_session):
        analytics = get_vendor_analytics("acme")
        assert analytics["vendors"] == []
        assert analytics["summary"]["averageRating"] == 0.0
        assert analytics["insights"] == []


class TestVendorRoutes:

    def test_performance(self, client, alice, mixed_vendor):
        response = client.get(f"/api/vendors/{mixed_vendor.id}/performance", headers=alice.headers)

        assert response.status_code == 200
        assert response.json["vendor"]["name"] == "Reliable Supply Co"
        assert response.json["rating"] == 3.0

    def test_performance_of_foreign_vendor(self, client, mallory, vendor):
        response = client.get(f"/api/vendors/{vendor.id}/performance", headers=mallory.headers)
        assert response.status_code == 404

    def test_unknown_vendor(self, client, alice):
        response = client.get("/api/vendors/999/performance", headers=alice.headers)
        assert response.status_code == 404

    def test_analytics(self, client, alice, great_vendor):
        response = client.get("/api/vendors/analytics", headers=alice.headers)

        assert response.status_code == 200
        assert response.json["summary"]["totalVendors"] == 1
        assert response.json["vendors"][0]["rating"] == 5.0
