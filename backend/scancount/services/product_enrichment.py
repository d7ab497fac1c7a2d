# Overview: Heuristics that fill in unit, pack quantity and category for catalog products.

from __future__ import annotations

import re

from scancount.time_utils import to_utc_z, utcnow


DEFAULT_UNIT = "each"
DEFAULT_CATEGORY = "general"

# Checked in order; the first matching token wins, so "kg" must precede "g"
# and "ml" must precede "l".
UNIT_TOKENS = [
    ("oz", ("oz", "ounce")),
    ("lb", ("lb", "pound")),
    ("kg", ("kg", "kilogram")),
    ("g", ("g", "gram")),
    ("ml", ("ml", "milliliter", "millilitre")),
    ("l", ("l", "liter", "litre")),
    ("gal", ("gal", "gallon")),
    ("qt", ("qt", "quart")),
    ("pt", ("pt", "pint")),
    ("cup", ("cup",)),
    ("pack", ("pack", "count", "ct")),
]

CATEGORY_KEYWORDS = [
    ("meat_poultry", ("meat", "chicken", "beef", "pork", "lamb", "turkey")),
    ("seafood", ("fish", "salmon", "tuna", "prawn", "shrimp")),
    ("produce", ("vegetable", "produce", "lettuce", "tomato", "onion", "fruit")),
    ("dairy", ("dairy", "milk", "cheese", "butter", "cream", "yoghurt", "yogurt")),
    ("grains_bakery", ("bread", "flour", "grain", "pasta", "rice")),
    ("condiments_spices", ("sauce", "spice", "seasoning", "oil", "vinegar", "salt")),
    ("beverages", ("beverage", "drink", "juice", "soda", "water", "coffee", "tea", "wine", "beer")),
]

_WORDS = re.compile(r"[a-z]+")
_NUMBER = re.compile(r"(\d+(?:\.\d+)?)")


def parse_unit_from_size(size: str | None) -> str:
    """
    Unit of measure named in a registry size string ("500 ml", "12 oz", "6 pack").

    Tokens are matched as whole words so "gal" is not read as "g".
    """
    if not size:
        return DEFAULT_UNIT

    # "500ml" yields the word "ml"
    words = set(_WORDS.findall(size.lower()))
    for unit, tokens in UNIT_TOKENS:
        if any(token in words or f"{token}s" in words for token in tokens):
            return unit
    return DEFAULT_UNIT


def parse_quantity_from_size(size: str | None) -> float:
    if not size:
        return 1.0
    match = _NUMBER.search(size)
    return float(match.group(1)) if match else 1.0


def categorize_product(name: str | None, description: str | None = None) -> str:
    words = set(_WORDS.findall(f"{name or ''} {description or ''}".lower()))
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in words or f"{keyword}s" in words for keyword in keywords):
            return category
    return DEFAULT_CATEGORY


def enrich_product_data(product: dict) -> dict:
    """
    Return a copy of a product dict with inferred fields added.

    Existing values are never overwritten; only missing unit/category are filled.
    """
    enriched = dict(product)
    enriched["enriched"] = True
    enriched["enrichedAt"] = to_utc_z(utcnow())

    size = enriched.get("size")
    if size:
        enriched["estimatedQuantity"] = parse_quantity_from_size(size)
        if not enriched.get("unit"):
            enriched["unit"] = parse_unit_from_size(size)

    if not enriched.get("category"):
        enriched["category"] = categorize_product(enriched.get("name"), enriched.get("description"))

    return enriched
