# Overview: Resolves validated barcodes to catalog products and inventory matches.

"""
Barcode Lookup Service

RESOLUTION ORDER:
1. Local catalog (barcode_products) by exact code
2. External registries in configured order, first hit wins
3. External hits are written through to the local catalog, so the next
   lookup of the same code stays local
4. No hit anywhere is a normal outcome (found=False), not an error

OPTIONAL STEPS (each independently toggled by the caller):
- check_inventory: match the barcode against the caller's inventory items
- include_alternatives: other catalog products in the same category
- enrich_product: infer unit / pack quantity / category

AMBIGUITY: Several inventory items may carry the same barcode. All of them
are returned as matches; picking one is the caller's decision.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import CatalogEntry, InventoryItem
from ..validation import ValidationError
from .barcode_validator import Barcode, BarcodeError, validate_barcode
from .product_enrichment import enrich_product_data
from .product_registries import ProductRecord, get_registries
from scancount.time_utils import utcnow


DATA_SOURCE_LOCAL = "local_database"

MAX_INVENTORY_MATCHES = 5
MAX_ALTERNATIVES = 10
NAME_SEARCH_CANDIDATES = 25

# Weights for name-based inventory matching
NAME_SIMILARITY_WEIGHT = 0.6
BRAND_MATCH_WEIGHT = 0.3
UNIT_MATCH_WEIGHT = 0.1

MATCH_REASON_BARCODE = "barcode"
MATCH_REASON_NAME = "name_similarity"


class BatchLimitExceeded(ValidationError):
    """Raised when a batch lookup asks for more barcodes than allowed."""


@dataclass
class InventoryMatch:
    inventory_item_id: int
    item_name: str
    barcode: str | None
    current_quantity: int
    unit: str
    cost_per_unit_cents: int
    match_score: float
    match_reason: str

    @classmethod
    def from_item(cls, item: InventoryItem, score: float, reason: str) -> "InventoryMatch":
        return cls(
            inventory_item_id=item.id,
            item_name=item.item_name,
            barcode=item.barcode,
            current_quantity=item.current_quantity,
            unit=item.unit,
            cost_per_unit_cents=item.cost_per_unit_cents,
            match_score=round(score, 4),
            match_reason=reason,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.inventory_item_id,
            "itemName": self.item_name,
            "barcode": self.barcode,
            "currentQuantity": self.current_quantity,
            "unit": self.unit,
            "costPerUnitCents": self.cost_per_unit_cents,
            "matchScore": self.match_score,
            "matchReason": self.match_reason,
        }


@dataclass
class LookupResult:
    barcode: Barcode
    product: dict | None = None
    data_source: str | None = None
    inventory_matches: list[InventoryMatch] = field(default_factory=list)
    alternatives: list[dict] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return self.product is not None

    @property
    def barcode_matches(self) -> list[InventoryMatch]:
        return [m for m in self.inventory_matches if m.match_reason == MATCH_REASON_BARCODE]

    def to_dict(self) -> dict:
        return {
            "barcode": self.barcode.to_dict(),
            "found": self.found,
            "product": self.product,
            "inventoryMatches": [m.to_dict() for m in self.inventory_matches],
            "alternatives": self.alternatives,
            "dataSource": self.data_source,
        }


def find_local_entry(code: str) -> CatalogEntry | None:
    """Exact-code catalog hit; records the access time."""
    entry = db.session.query(CatalogEntry).filter_by(barcode=code).first()
    if entry:
        entry.last_accessed_at = utcnow()
    return entry


def query_registries(code: str) -> ProductRecord | None:
    """Walk the registry list in order and return the first hit."""
    for registry in get_registries():
        record = registry.lookup_by_code(code)
        if record is not None:
            return record
    return None


def store_catalog_entry(code: str, record: ProductRecord) -> CatalogEntry:
    """
    Write an external hit through to the local catalog.

    Runs in a savepoint; if a concurrent lookup stored the same code first,
    the unique constraint fires and the stored row is returned instead.
    """
    entry = CatalogEntry(
        barcode=code,
        product_name=record.name[:255],
        brand=record.brand,
        category=record.category,
        description=record.description,
        size_info=record.size,
        unit=record.unit,
        data_source=record.source,
        confidence_score=record.confidence_score,
        is_verified=False,
        last_accessed_at=utcnow(),
    )
    try:
        with db.session.begin_nested():
            db.session.add(entry)
            db.session.flush()
    except IntegrityError:
        existing = db.session.query(CatalogEntry).filter_by(barcode=code).first()
        if existing is None:
            raise
        return existing

    current_app.logger.info("Stored barcode %s from %s in local catalog", code, record.source)
    return entry


def _words(text: str | None) -> set[str]:
    return {word for word in (text or "").lower().split() if len(word) > 2}


def string_similarity(first: str | None, second: str | None) -> float:
    """Jaccard similarity over words longer than two characters."""
    set1, set2 = _words(first), _words(second)
    union = set1 | set2
    if not union:
        return 0.0
    return len(set1 & set2) / len(union)


def calculate_match_score(product: dict, item: InventoryItem) -> float:
    score = 0.0
    item_name = (item.item_name or "").lower()

    if product.get("name") and item_name:
        score += string_similarity(product["name"], item_name) * NAME_SIMILARITY_WEIGHT

    brand = (product.get("brand") or "").lower()
    if brand and brand in item_name:
        score += BRAND_MATCH_WEIGHT

    unit = (product.get("unit") or "").lower()
    if unit and item.unit and unit == item.unit.lower():
        score += UNIT_MATCH_WEIGHT

    return min(1.0, score)


def find_inventory_matches(client_id: str, code: str, product: dict | None) -> list[InventoryMatch]:
    """
    Inventory items of this client that correspond to the barcode.

    Exact barcode matches come first (score 1.0); when the product is known,
    name-similar items follow, best score first. At most five are returned.
    """
    base = db.session.query(InventoryItem).filter(
        InventoryItem.client_id == client_id,
        InventoryItem.is_active.is_(True),
    )

    exact = base.filter(InventoryItem.barcode == code).order_by(InventoryItem.id.asc()).all()
    matches = [InventoryMatch.from_item(item, 1.0, MATCH_REASON_BARCODE) for item in exact]
    seen = {item.id for item in exact}

    if product and len(matches) < MAX_INVENTORY_MATCHES:
        terms = [product.get("name"), product.get("brand")]
        if product.get("brand") and product.get("name"):
            terms.append(f"{product['brand']} {product['name']}")
        terms = [term.strip() for term in terms if term and term.strip()]

        if terms:
            candidates = base.filter(
                db.or_(*[InventoryItem.item_name.ilike(f"%{term}%") for term in terms])
            ).limit(NAME_SEARCH_CANDIDATES).all()

            scored = [
                InventoryMatch.from_item(item, calculate_match_score(product, item), MATCH_REASON_NAME)
                for item in candidates
                if item.id not in seen
            ]
            scored.sort(key=lambda m: (-m.match_score, m.inventory_item_id))
            matches.extend(scored)

    return matches[:MAX_INVENTORY_MATCHES]


def find_alternatives(code: str, product: dict) -> list[dict]:
    """Other catalog products in the same category."""
    category = product.get("category")
    if not category:
        return []

    rows = db.session.query(CatalogEntry).filter(
        CatalogEntry.barcode != code,
        CatalogEntry.category == category,
    ).order_by(CatalogEntry.product_name.asc()).limit(MAX_ALTERNATIVES).all()

    return [
        {
            "barcode": row.barcode,
            "name": row.product_name,
            "brand": row.brand,
            "category": row.category,
            "size": row.size_info,
            "dataSource": row.data_source,
        }
        for row in rows
    ]


def lookup_barcode(
    barcode: Barcode,
    *,
    client_id: str,
    check_inventory: bool = True,
    include_alternatives: bool = True,
    enrich_product: bool = True,
) -> LookupResult:
    """
    Resolve a validated barcode.

    Args:
        barcode: Output of validate_barcode
        client_id: Caller tenant (scopes inventory matching)
        check_inventory: Include inventory matches
        include_alternatives: Include same-category catalog products
        enrich_product: Add inferred unit/category fields to the product

    Returns:
        LookupResult (found=False when nothing knows the code)
    """
    code = barcode.code
    result = LookupResult(barcode=barcode)

    entry = find_local_entry(code)
    if entry is not None:
        result.product = entry.to_dict()
        result.data_source = DATA_SOURCE_LOCAL
    else:
        record = query_registries(code)
        if record is not None:
            stored = store_catalog_entry(code, record)
            result.product = {**record.to_dict(), "id": stored.id, "barcode": code}
            result.data_source = record.source

    if check_inventory:
        result.inventory_matches = find_inventory_matches(client_id, code, result.product)

    if enrich_product and result.product is not None:
        result.product = enrich_product_data(result.product)

    if include_alternatives and result.product is not None:
        result.alternatives = find_alternatives(code, result.product)

    return result


def batch_lookup(
    raw_codes,
    *,
    client_id: str,
    check_inventory: bool = True,
    include_alternatives: bool = False,
    enrich_products: bool = False,
) -> dict:
    """
    Look up several barcodes, validating each independently.

    Invalid barcodes land in errors[]; they never fail the whole batch.

    Raises:
        ValidationError: If raw_codes is not a non-empty list
        BatchLimitExceeded: If more than BARCODE_BATCH_LIMIT codes are given
    """
    if not isinstance(raw_codes, list) or not raw_codes:
        raise ValidationError("Barcodes array is required")

    limit = current_app.config.get("BARCODE_BATCH_LIMIT", 50)
    if len(raw_codes) > limit:
        raise BatchLimitExceeded(f"Maximum {limit} barcodes per batch request")

    results = []
    errors = []

    for raw in raw_codes:
        if not isinstance(raw, (str, int)) or isinstance(raw, bool):
            errors.append({"barcode": raw, "error": "Barcode must be a string"})
            continue
        try:
            barcode = validate_barcode(str(raw))
        except BarcodeError as e:
            errors.append({"barcode": raw, "error": f"Invalid barcode: {e}"})
            continue

        result = lookup_barcode(
            barcode,
            client_id=client_id,
            check_inventory=check_inventory,
            include_alternatives=include_alternatives,
            enrich_product=enrich_products,
        )
        results.append(result.to_dict())

    return {
        "totalRequested": len(raw_codes),
        "successfulLookups": sum(1 for r in results if r["found"]),
        "results": results,
        "errors": errors,
    }
