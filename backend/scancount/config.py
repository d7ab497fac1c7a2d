# backend/scancount/config.py
from __future__ import annotations
import os


def _csv_env(name: str, default: str) -> list[str]:
    raw = os.environ.get(name, default)
    return [part.strip() for part in raw.split(",") if part.strip()]


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/scancount.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///scancount.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # External product registries, queried in this order after a local catalog miss
    BARCODE_REGISTRIES = _csv_env("BARCODE_REGISTRIES", "upcitemdb,open_food_facts")
    BARCODE_REGISTRY_TIMEOUT = float(os.environ.get("BARCODE_REGISTRY_TIMEOUT", "5.0"))
    UPCITEMDB_BASE_URL = os.environ.get("UPCITEMDB_BASE_URL", "https://api.upcitemdb.com/prod/trial")
    OPEN_FOOD_FACTS_BASE_URL = os.environ.get("OPEN_FOOD_FACTS_BASE_URL", "https://world.openfoodfacts.org/api/v0")

    BARCODE_BATCH_LIMIT = int(os.environ.get("BARCODE_BATCH_LIMIT", "50"))
    SESSION_LIST_LIMIT = int(os.environ.get("SESSION_LIST_LIMIT", "50"))

    CORS_ALLOWED_ORIGINS = _csv_env(
        "CORS_ALLOWED_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000",
    )
