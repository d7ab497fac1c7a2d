# Overview: HTTP clients for external product registries used after a local catalog miss.

"""
External Product Registries

Each registry exposes one operation, lookup_by_code(code) -> ProductRecord | None.
The lookup service walks the configured list in order and stops at the first hit,
so adding or reordering registries is a configuration change (BARCODE_REGISTRIES),
not a code change.

FAILURE POLICY: A registry that times out, returns a non-2xx status, or returns
an unexpected payload is logged and treated as "not found". External outages
never fail a lookup.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import httpx
from flask import current_app

from .product_enrichment import parse_unit_from_size


@dataclass
class ProductRecord:
    name: str
    source: str
    brand: str | None = None
    category: str | None = None
    description: str | None = None
    size: str | None = None
    unit: str | None = None
    images: list[str] = field(default_factory=list)
    confidence_score: float = 0.5

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "brand": self.brand,
            "category": self.category,
            "description": self.description,
            "size": self.size,
            "unit": self.unit,
            "images": list(self.images),
            "confidenceScore": self.confidence_score,
            "dataSource": self.source,
        }


class ProductRegistry:
    """Base class for an HTTP registry client."""

    source = "registry"

    def __init__(self, base_url: str, *, timeout: float = 5.0, client: httpx.Client | None = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    def lookup_by_code(self, code: str) -> ProductRecord | None:
        try:
            payload = self._fetch(code)
            if payload is None:
                return None
            return self._parse(payload)
        except httpx.HTTPError as exc:
            current_app.logger.warning("%s lookup failed for %s: %s", self.source, code, exc)
            return None
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            current_app.logger.warning("%s returned an unreadable payload for %s: %s", self.source, code, exc)
            return None

    def _fetch(self, code: str) -> dict | None:
        url, params = self._request_for(code)
        if self._client is not None:
            response = self._client.get(url, params=params, timeout=self.timeout)
        else:
            response = httpx.get(url, params=params, timeout=self.timeout)

        if response.status_code == 404:
            return None
        response.raise_for_status()
        return response.json()

    def _request_for(self, code: str) -> tuple[str, dict | None]:
        raise NotImplementedError

    def _parse(self, payload: dict) -> ProductRecord | None:
        raise NotImplementedError


class UpcItemDbRegistry(ProductRegistry):
    """UPCitemdb trial API: broad retail coverage."""

    source = "upc_database"

    def _request_for(self, code: str) -> tuple[str, dict | None]:
        return f"{self.base_url}/lookup", {"upc": code}

    def _parse(self, payload: dict) -> ProductRecord | None:
        if payload.get("code") != "OK" or not payload.get("items"):
            return None

        item = payload["items"][0]
        name = (item.get("title") or "").strip()
        if not name:
            return None

        size = item.get("size") or None
        return ProductRecord(
            name=name,
            source=self.source,
            brand=item.get("brand") or None,
            category=item.get("category") or None,
            description=item.get("description") or None,
            size=size,
            unit=parse_unit_from_size(size) if size else None,
            images=list(item.get("images") or []),
            confidence_score=0.8,
        )


class OpenFoodFactsRegistry(ProductRegistry):
    """Open Food Facts: strongest coverage for food and beverage items."""

    source = "open_food_facts"

    def _request_for(self, code: str) -> tuple[str, dict | None]:
        return f"{self.base_url}/product/{code}.json", None

    def _parse(self, payload: dict) -> ProductRecord | None:
        if payload.get("status") != 1 or not payload.get("product"):
            return None

        product = payload["product"]
        name = (product.get("product_name") or product.get("product_name_en") or "").strip()
        if not name:
            return None

        size = product.get("quantity") or None
        categories = product.get("categories_tags") or []
        images = [
            product.get("image_url"),
            product.get("image_front_url"),
            product.get("image_ingredients_url"),
            product.get("image_nutrition_url"),
        ]
        return ProductRecord(
            name=name,
            source=self.source,
            brand=product.get("brands") or None,
            category=", ".join(categories) or None,
            description=product.get("generic_name") or None,
            size=size,
            unit=parse_unit_from_size(size) if size else None,
            images=[url for url in images if url],
            confidence_score=0.9,
        )


REGISTRY_FACTORIES = {
    "upcitemdb": lambda config: UpcItemDbRegistry(
        config["UPCITEMDB_BASE_URL"],
        timeout=config["BARCODE_REGISTRY_TIMEOUT"],
    ),
    "open_food_facts": lambda config: OpenFoodFactsRegistry(
        config["OPEN_FOOD_FACTS_BASE_URL"],
        timeout=config["BARCODE_REGISTRY_TIMEOUT"],
    ),
}


def build_registries(config) -> list[ProductRegistry]:
    """
    Instantiate the configured registries in fallback order.

    Raises:
        ValueError: If BARCODE_REGISTRIES names an unknown registry
    """
    registries = []
    for name in config.get("BARCODE_REGISTRIES", []):
        factory = REGISTRY_FACTORIES.get(name)
        if factory is None:
            raise ValueError(f"Unknown barcode registry: {name}")
        registries.append(factory(config))
    return registries


def get_registries() -> list:
    return current_app.extensions.get("barcode_registries", [])
