# Overview: Pytest coverage for reorder quantity rules, urgency, vendor selection and the suggestions route.

import pytest

from conftest import add_vendor_item
from scancount.models import InventoryItem, Vendor
from scancount.services.reorder_service import (
    ReorderSuggestion,
    calculate_suggested_quantity,
    calculate_urgency,
    generate_reorder_suggestions,
    sort_suggestions,
)
from scancount.validation import ValidationError


def make_suggestion(item_id, urgency, quantity, cost):
    return ReorderSuggestion(
        inventory_item_id=item_id,
        item_name=f"Item {item_id}",
        category=None,
        current_quantity=0,
        reorder_point=10,
        max_level=40,
        suggested_quantity=quantity,
        unit_cost_cents=cost,
        urgency=urgency,
        vendor_id=1,
        vendor_name="Vendor",
        delivery_days=1,
        vendor_item_id=item_id,
        vendor_sku=None,
        minimum_order_quantity=1,
        case_size=1,
    )


class TestSuggestedQuantity:

    def test_tops_up_in_whole_cases(self):
        # 30 short of max, rounded up to three cases of 12
        assert calculate_suggested_quantity(10, 40, 6, 12) == 36

    def test_minimum_order_wins_when_nearly_full(self):
        assert calculate_suggested_quantity(38, 40, 6, 1) == 6

    def test_minimum_rounded_to_cases(self):
        assert calculate_suggested_quantity(38, 40, 6, 4) == 8

    def test_non_positive_terms_treated_as_one(self):
        assert calculate_suggested_quantity(5, 8, 0, 0) == 3
        assert calculate_suggested_quantity(8, 8, -3, None) == 1

    @pytest.mark.parametrize("current", [0, 1, 7, 15, 39])
    @pytest.mark.parametrize("moq,case", [(1, 1), (6, 12), (24, 24), (5, 3), (50, 7)])
    def test_order_properties(self, current, moq, case):
        quantity = calculate_suggested_quantity(current, 40, moq, case)

        assert quantity % case == 0
        assert quantity >= moq
        assert current + quantity >= 40


class TestUrgency:

    @pytest.mark.parametrize("current,expected", [
        (0, 5),
        (-1, 5),
        (5, 4),
        (7, 3),
        (10, 2),
        (11, 1),
    ])
    def test_levels(self, current, expected):
        assert calculate_urgency(current, 10) == expected

    def test_sort_order(self):
        suggestions = [
            make_suggestion(1, 2, 10, 100),
            make_suggestion(2, 5, 1, 100),
            make_suggestion(3, 2, 10, 500),
            make_suggestion(4, 2, 10, 500),
        ]
        assert [s.inventory_item_id for s in sort_suggestions(suggestions)] == [2, 3, 4, 1]


class TestGenerateSuggestions:

    def test_preferred_vendor_item(self, db_session, towels, highlighter, vendor):
        budget = Vendor(client_id="acme", name="Budget Wholesale", delivery_days=5)
        db_session.add(budget)
        db_session.commit()
        add_vendor_item(db_session, budget, towels, cost=700, moq=24, case=24)
        add_vendor_item(db_session, vendor, towels, cost=800, moq=6, case=12, preferred=True)
        add_vendor_item(db_session, vendor, highlighter)

        suggestions = generate_reorder_suggestions("acme")

        # highlighter (25 on hand) is above its reorder point
        assert len(suggestions) == 1
        suggestion = suggestions[0]
        assert suggestion.inventory_item_id == towels.id
        assert suggestion.vendor_id == vendor.id
        assert suggestion.suggested_quantity == 48
        assert suggestion.urgency == 4
        assert suggestion.total_cost_cents == 48 * 800
        assert suggestion.to_dict()["vendorItem"]["caseSize"] == 12

    def test_first_vendor_item_without_preference(self, db_session, towels, vendor):
        other = Vendor(client_id="acme", name="Other", delivery_days=3)
        db_session.add(other)
        db_session.commit()
        first = add_vendor_item(db_session, other, towels, moq=1, case=1)
        add_vendor_item(db_session, vendor, towels)

        suggestion = generate_reorder_suggestions("acme")[0]
        assert suggestion.vendor_item_id == first.id
        assert suggestion.suggested_quantity == 37

    def test_vendor_filter(self, db_session, towels, vendor):
        budget = Vendor(client_id="acme", name="Budget Wholesale", delivery_days=5)
        db_session.add(budget)
        db_session.commit()
        add_vendor_item(db_session, vendor, towels, preferred=True)
        add_vendor_item(db_session, budget, towels, cost=700, moq=24, case=24)

        suggestions = generate_reorder_suggestions("acme", vendor_id=str(budget.id))

        assert [s.vendor_id for s in suggestions] == [budget.id]
        assert suggestions[0].suggested_quantity == 48
        assert suggestions[0].unit_cost_cents == 700

    def test_items_without_active_vendor_are_skipped(self, db_session, towels, vendor):
        add_vendor_item(db_session, vendor, towels)
        vendor.is_active = False
        db_session.commit()

        assert generate_reorder_suggestions("acme") == []

    def test_other_clients_vendor_ignored(self, db_session, towels):
        foreign = Vendor(client_id="beta", name="Foreign", delivery_days=1)
        db_session.add(foreign)
        db_session.commit()
        add_vendor_item(db_session, foreign, towels)

        assert generate_reorder_suggestions("acme") == []

    def test_inactive_items_skipped(self, db_session, towels, vendor):
        add_vendor_item(db_session, vendor, towels)
        towels.is_active = False
        db_session.commit()

        assert generate_reorder_suggestions("acme") == []

    def test_most_urgent_first(self, db_session, towels, vendor):
        coffee = InventoryItem(
            client_id="acme", item_name="Coffee Beans", unit="kg",
            current_quantity=0, par_level_low=5, par_level_high=12,
        )
        db_session.add(coffee)
        db_session.commit()
        add_vendor_item(db_session, vendor, towels, preferred=True)
        add_vendor_item(db_session, vendor, coffee, cost=1899, moq=1, case=1)

        suggestions = generate_reorder_suggestions("acme")

        assert [s.inventory_item_id for s in suggestions] == [coffee.id, towels.id]
        assert suggestions[0].urgency == 5
        assert suggestions[0].suggested_quantity == 12

    def test_missing_maximum_uses_twice_reorder_point(self, db_session, vendor):
        item = InventoryItem(client_id="acme", item_name="Napkins", current_quantity=2, par_level_low=10)
        db_session.add(item)
        db_session.commit()
        add_vendor_item(db_session, vendor, item, moq=1, case=1)

        suggestion = generate_reorder_suggestions("acme")[0]
        assert suggestion.max_level == 20
        assert suggestion.suggested_quantity == 18

    def test_invalid_vendor_id(self, db_session):
        with pytest.raises(ValidationError):
            generate_reorder_suggestions("acme", vendor_id="abc")


class TestReorderRoute:

    def test_suggestions(self, client, alice, towels, vendor, db_session):
        add_vendor_item(db_session, vendor, towels, preferred=True)

        response = client.get("/api/stock/reorder-suggestions", headers=alice.headers)

        assert response.status_code == 200
        assert response.json["totalSuggestions"] == 1
        assert response.json["totalCostCents"] == 48 * 800
        assert response.json["suggestions"][0]["vendor"]["name"] == "Reliable Supply Co"

    def test_tenant_scope(self, client, mallory, towels, vendor, db_session):
        add_vendor_item(db_session, vendor, towels)

        response = client.get("/api/stock/reorder-suggestions", headers=mallory.headers)

        assert response.status_code == 200
        assert response.json["suggestions"] == []

    def test_invalid_vendor_id(self, client, alice):
        response = client.get("/api/stock/reorder-suggestions?vendor_id=abc", headers=alice.headers)
        assert response.status_code == 400
