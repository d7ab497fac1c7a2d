"""
Pytest fixtures for scancount backend tests.

Provides test database setup, callers with bearer tokens, a fake product
registry, and sample inventory/vendor data.
"""

import pytest
from scancount import create_app
from scancount.extensions import db
from scancount.models import CatalogEntry, InventoryItem, Vendor, VendorItem
from scancount.services.auth_service import issue_token


TEST_CONFIG = {
    'TESTING': True,
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    # No network in tests; the registry fixture installs a fake
    'BARCODE_REGISTRIES': [],
}

# Valid check digits
TOWELS_UPC = "036000291452"
HIGHLIGHTER_EAN = "4006381333931"
WATER_EAN8 = "96385074"


class FakeRegistry:
    """In-memory stand-in for an external product registry."""

    def __init__(self, source="fake_registry", records=None):
        self.source = source
        self.records = dict(records or {})
        self.calls = []

    def lookup_by_code(self, code):
        self.calls.append(code)
        return self.records.get(code)


class Caller:
    def __init__(self, client_id, user_id, token):
        self.client_id = client_id
        self.user_id = user_id
        self.token = token

    @property
    def headers(self):
        return auth_headers(self.token)

    @property
    def ids(self):
        """Keyword arguments for service calls."""
        return {"client_id": self.client_id, "user_id": self.user_id}


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TEST_CONFIG)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def registry(app):
    """Install a single fake registry for the duration of a test."""
    fake = FakeRegistry()
    app.extensions["barcode_registries"] = [fake]
    yield fake
    app.extensions["barcode_registries"] = []


@pytest.fixture(scope='function')
def alice(db_session):
    """Caller alice in client acme."""
    _, token = issue_token("acme", "alice", "test")
    return Caller("acme", "alice", token)


@pytest.fixture(scope='function')
def bob(db_session):
    """Caller bob, same client as alice."""
    _, token = issue_token("acme", "bob", "test")
    return Caller("acme", "bob", token)


@pytest.fixture(scope='function')
def mallory(db_session):
    """Caller in another client (beta)."""
    _, token = issue_token("beta", "mallory", "test")
    return Caller("beta", "mallory", token)


@pytest.fixture(scope='function')
def towels(db_session):
    """Inventory item in acme: 3 on hand, par 10/40."""
    item = InventoryItem(
        client_id="acme",
        item_name="Bounty Paper Towels",
        barcode=TOWELS_UPC,
        category="household",
        unit="pack",
        current_quantity=3,
        par_level_low=10,
        par_level_high=40,
        cost_per_unit_cents=899,
    )
    db_session.add(item)
    db_session.commit()
    return item


@pytest.fixture(scope='function')
def highlighter(db_session):
    """Inventory item in acme above its reorder point."""
    item = InventoryItem(
        client_id="acme",
        item_name="Stabilo Highlighter",
        barcode=HIGHLIGHTER_EAN,
        category="office",
        unit="each",
        current_quantity=25,
        par_level_low=10,
        par_level_high=30,
        cost_per_unit_cents=149,
    )
    db_session.add(item)
    db_session.commit()
    return item


@pytest.fixture(scope='function')
def towels_entry(db_session):
    """Local catalog entry for the towels barcode."""
    entry = CatalogEntry(
        barcode=TOWELS_UPC,
        product_name="Paper Towels",
        brand="Bounty",
        category="household",
        size_info="6 rolls",
        data_source="manual",
        confidence_score=1.0,
        is_verified=True,
    )
    db_session.add(entry)
    db_session.commit()
    return entry


@pytest.fixture(scope='function')
def vendor(db_session):
    """Active acme vendor with a 2 day delivery window."""
    v = Vendor(client_id="acme", name="Reliable Supply Co", delivery_days=2, is_preferred=True)
    db_session.add(v)
    db_session.commit()
    return v


def add_vendor_item(db_session, vendor, item, *, cost=800, moq=6, case=12, preferred=False):
    vendor_item = VendorItem(
        vendor_id=vendor.id,
        inventory_item_id=item.id,
        cost_per_unit_cents=cost,
        minimum_order_quantity=moq,
        case_size=case,
        is_preferred=preferred,
    )
    db_session.add(vendor_item)
    db_session.commit()
    return vendor_item


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}
