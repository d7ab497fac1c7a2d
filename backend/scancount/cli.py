# Overview: Flask CLI command groups for bootstrap, tokens, and demo data.

# backend/scancount/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to scancount (PowerShell: $env:FLASK_APP="scancount"); Flask finds create_app().
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create any missing tables (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# API tokens:
# - python -m flask tokens issue --client-id acme --user-id alice [--label "Dock scanner"]
#   Issue a bearer token; the plaintext is printed once and never stored.
# - python -m flask tokens list [--client-id acme]
#   List tokens (hashes are never shown).
# - python -m flask tokens revoke 3
#   Deactivate a token by id.
#
# Demo data:
# - python -m flask demo seed --client-id demo
#   Sample catalog, inventory, vendors and order history for one client.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import ApiToken, CatalogEntry, InventoryItem, PurchaseOrder, Vendor, VendorItem
from .services.auth_service import issue_token, revoke_token
from .time_utils import add_days, utcnow


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Schema ready.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask tokens issue' to create a caller.")


@click.group('tokens')
def tokens_group():
    """API token management."""


@tokens_group.command('issue')
@click.option('--client-id', required=True, help='Tenant the token acts for')
@click.option('--user-id', required=True, help='User that owns scanning sessions')
@click.option('--label', default=None, help='Free-text label, e.g. device name')
@with_appcontext
def issue_token_command(client_id, user_id, label):
    """Issue a bearer token and print it once."""
    try:
        record, plaintext = issue_token(client_id, user_id, label)
    except ValueError as e:
        raise click.ClickException(str(e))

    click.echo(f"PASS Token {record.id} issued for client={record.client_id} user={record.user_id}")
    click.echo(plaintext)


@tokens_group.command('list')
@click.option('--client-id', default=None, help='Only tokens for this client')
@with_appcontext
def list_tokens(client_id):
    """List tokens."""
    query = db.session.query(ApiToken)
    if client_id:
        query = query.filter_by(client_id=client_id)
    tokens = query.order_by(ApiToken.id.asc()).all()

    if not tokens:
        click.echo("No tokens found.")
        return

    for token in tokens:
        state = "active" if token.is_active else "revoked"
        last_used = token.last_used_at.isoformat() if token.last_used_at else "never"
        click.echo(
            f"{token.id:>4}  {token.client_id:<16} {token.user_id:<16} {state:<8} "
            f"last used: {last_used}  {token.label or ''}"
        )


@tokens_group.command('revoke')
@click.argument('token_id', type=int)
@with_appcontext
def revoke_token_command(token_id):
    """Deactivate a token."""
    record = revoke_token(token_id)
    if record is None:
        raise click.ClickException(f"Token {token_id} not found")
    click.echo(f"PASS Token {token_id} revoked")


@click.group('demo')
def demo_group():
    """Sample data for local development."""


DEMO_CATALOG = [
    ("036000291452", "Paper Towels 6 Roll", "Bounty", "household", "6 rolls"),
    ("4006381333931", "Highlighter Yellow", "Stabilo", "office", "1 each"),
    ("96385074", "Sparkling Water 500ml", "Fizz", "beverages", "500 ml"),
]

DEMO_INVENTORY = [
    # name, barcode, category, unit, qty, par low, par high, cost cents
    ("Bounty Paper Towels", "036000291452", "household", "pack", 3, 10, 40, 899),
    ("Stabilo Highlighter", "4006381333931", "office", "each", 25, 10, 30, 149),
    ("Fizz Sparkling Water", "96385074", "beverages", "bottle", 0, 24, 96, 59),
    ("House Coffee Beans", None, "beverages", "kg", 6, 5, 12, 1899),
]


@demo_group.command('seed')
@click.option('--client-id', default='demo', help='Tenant to seed')
@with_appcontext
def seed_demo(client_id):
    """Seed catalog entries, inventory, two vendors and their order history."""
    click.echo(f"START Seeding demo data for client '{client_id}'...")

    for barcode, name, brand, category, size in DEMO_CATALOG:
        if db.session.query(CatalogEntry).filter_by(barcode=barcode).first():
            continue
        db.session.add(CatalogEntry(
            barcode=barcode,
            product_name=name,
            brand=brand,
            category=category,
            size_info=size,
            data_source="manual",
            confidence_score=1.0,
            is_verified=True,
        ))

    items = []
    for name, barcode, category, unit, qty, low, high, cost in DEMO_INVENTORY:
        item = db.session.query(InventoryItem).filter_by(client_id=client_id, item_name=name).first()
        if item is None:
            item = InventoryItem(
                client_id=client_id,
                item_name=name,
                barcode=barcode,
                category=category,
                unit=unit,
                current_quantity=qty,
                par_level_low=low,
                par_level_high=high,
                cost_per_unit_cents=cost,
            )
            db.session.add(item)
        items.append(item)
    db.session.flush()

    if db.session.query(Vendor).filter_by(client_id=client_id).count() == 0:
        reliable = Vendor(client_id=client_id, name="Reliable Supply Co", delivery_days=2, is_preferred=True)
        slow = Vendor(client_id=client_id, name="Budget Wholesale", delivery_days=5)
        db.session.add_all([reliable, slow])
        db.session.flush()

        for item in items:
            db.session.add(VendorItem(
                vendor_id=reliable.id,
                inventory_item_id=item.id,
                cost_per_unit_cents=item.cost_per_unit_cents,
                minimum_order_quantity=6,
                case_size=12,
                is_preferred=True,
            ))
            db.session.add(VendorItem(
                vendor_id=slow.id,
                inventory_item_id=item.id,
                cost_per_unit_cents=int(item.cost_per_unit_cents * 0.9),
                minimum_order_quantity=24,
                case_size=24,
            ))

        start = add_days(utcnow(), -120)
        for n in range(12):
            ordered = add_days(start, n * 10)
            db.session.add(PurchaseOrder(
                vendor_id=reliable.id,
                status="completed",
                order_date=ordered,
                delivery_date=add_days(ordered, 2),
                total_amount_cents=25_000 + n * 500,
            ))
            status = "cancelled" if n % 4 == 0 else "completed"
            db.session.add(PurchaseOrder(
                vendor_id=slow.id,
                status=status,
                order_date=ordered,
                delivery_date=add_days(ordered, 8) if status == "completed" else None,
                total_amount_cents=18_000,
            ))

    db.session.commit()
    click.echo(f"PASS Seeded {len(DEMO_CATALOG)} catalog entries and {len(items)} inventory items")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(tokens_group)
    app.cli.add_command(demo_group)
