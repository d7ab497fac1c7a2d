# Overview: Suggests purchase quantities for items at or below their reorder point.

"""
Reorder Suggestions

An active item is suggested when current_quantity <= par_level_low and at
least one active vendor item supplies it. The preferred vendor item wins,
otherwise the first active one (lowest id).

Suggested quantity tops the item up to par_level_high, never orders less
than the vendor minimum, and rounds up to whole cases:

    base = max(par_high - current, minimum_order_quantity)
    suggested = ceil(base / case_size) * case_size
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from ..extensions import db
from ..models import InventoryItem, Vendor, VendorItem
from ..validation import coerce_int


@dataclass
class ReorderSuggestion:
    inventory_item_id: int
    item_name: str
    category: str | None
    current_quantity: int
    reorder_point: int
    max_level: int
    suggested_quantity: int
    unit_cost_cents: int
    urgency: int
    vendor_id: int
    vendor_name: str
    delivery_days: int
    vendor_item_id: int
    vendor_sku: str | None
    minimum_order_quantity: int
    case_size: int

    @property
    def total_cost_cents(self) -> int:
        return self.suggested_quantity * self.unit_cost_cents

    def to_dict(self) -> dict:
        return {
            "inventoryItemId": self.inventory_item_id,
            "itemName": self.item_name,
            "category": self.category,
            "currentQuantity": self.current_quantity,
            "reorderPoint": self.reorder_point,
            "maxLevel": self.max_level,
            "suggestedQuantity": self.suggested_quantity,
            "unitCostCents": self.unit_cost_cents,
            "totalCostCents": self.total_cost_cents,
            "urgency": self.urgency,
            "vendor": {
                "id": self.vendor_id,
                "name": self.vendor_name,
                "deliveryDays": self.delivery_days,
            },
            "vendorItem": {
                "id": self.vendor_item_id,
                "sku": self.vendor_sku,
                "minimumOrderQty": self.minimum_order_quantity,
                "caseSize": self.case_size,
            },
        }


def calculate_suggested_quantity(
    current_quantity: int,
    par_level_high: int,
    minimum_order_quantity: int,
    case_size: int,
) -> int:
    """
    Units to order; always a positive multiple of case_size and >= the minimum.

    Non-positive case_size or minimum_order_quantity are treated as 1.
    """
    case_size = case_size if case_size and case_size > 0 else 1
    minimum_order_quantity = minimum_order_quantity if minimum_order_quantity and minimum_order_quantity > 0 else 1

    base = max((par_level_high or 0) - (current_quantity or 0), minimum_order_quantity)
    return math.ceil(base / case_size) * case_size


def calculate_urgency(current_quantity: int, reorder_point: int) -> int:
    """5 = out of stock ... 1 = above reorder point."""
    if current_quantity <= 0:
        return 5
    if current_quantity <= reorder_point * 0.5:
        return 4
    if current_quantity <= reorder_point * 0.75:
        return 3
    if current_quantity <= reorder_point:
        return 2
    return 1


def sort_suggestions(suggestions: list[ReorderSuggestion]) -> list[ReorderSuggestion]:
    """Most urgent first, then largest order value, then item id."""
    return sorted(
        suggestions,
        key=lambda s: (-s.urgency, -s.total_cost_cents, s.inventory_item_id),
    )


def _pick_vendor_item(vendor_items: list[VendorItem]) -> VendorItem | None:
    for vendor_item in vendor_items:
        if vendor_item.is_preferred:
            return vendor_item
    return vendor_items[0] if vendor_items else None


def generate_reorder_suggestions(client_id: str, vendor_id=None) -> list[ReorderSuggestion]:
    """
    Build sorted reorder suggestions for a client.

    Args:
        client_id: Tenant scope
        vendor_id: Restrict to items this vendor supplies (optional)
    """
    if vendor_id is not None:
        vendor_id = coerce_int(vendor_id, "vendor_id", minimum=1)

    items = db.session.query(InventoryItem).filter(
        InventoryItem.client_id == client_id,
        InventoryItem.is_active.is_(True),
        InventoryItem.current_quantity <= InventoryItem.par_level_low,
    ).order_by(InventoryItem.id.asc()).all()

    if not items:
        return []

    vendor_query = db.session.query(VendorItem).join(Vendor).filter(
        VendorItem.inventory_item_id.in_([item.id for item in items]),
        VendorItem.is_active.is_(True),
        Vendor.is_active.is_(True),
        Vendor.client_id == client_id,
    )
    if vendor_id is not None:
        vendor_query = vendor_query.filter(VendorItem.vendor_id == vendor_id)

    by_item: dict[int, list[VendorItem]] = {}
    for vendor_item in vendor_query.order_by(VendorItem.id.asc()).all():
        by_item.setdefault(vendor_item.inventory_item_id, []).append(vendor_item)

    suggestions = []
    for item in items:
        vendor_item = _pick_vendor_item(by_item.get(item.id, []))
        if vendor_item is None:
            continue

        current = item.current_quantity or 0
        reorder_point = item.par_level_low or 0
        max_level = item.effective_par_level_high
        vendor = vendor_item.vendor

        suggestions.append(ReorderSuggestion(
            inventory_item_id=item.id,
            item_name=item.item_name,
            category=item.category,
            current_quantity=current,
            reorder_point=reorder_point,
            max_level=max_level,
            suggested_quantity=calculate_suggested_quantity(
                current, max_level,
                vendor_item.minimum_order_quantity,
                vendor_item.case_size,
            ),
            unit_cost_cents=vendor_item.cost_per_unit_cents or 0,
            urgency=calculate_urgency(current, reorder_point),
            vendor_id=vendor.id,
            vendor_name=vendor.name,
            delivery_days=vendor.delivery_days,
            vendor_item_id=vendor_item.id,
            vendor_sku=vendor_item.vendor_sku,
            minimum_order_quantity=vendor_item.minimum_order_quantity,
            case_size=vendor_item.case_size,
        ))

    return sort_suggestions(suggestions)
