# Overview: Pytest coverage for bearer token auth, CLI commands, health and CORS.

"""
Auth, CLI and System Tests

Covers:
- Bearer token resolution (missing, malformed, unknown, revoked)
- flask tokens issue/list/revoke
- flask demo seed (idempotent, feeds vendor analytics and reorder suggestions)
- flask system init-db / reset-db confirmation
- GET /api/health
"""

import pytest

from conftest import auth_headers
from scancount.extensions import db
from scancount.models import ApiToken, CatalogEntry, InventoryItem, PurchaseOrder, Vendor
from scancount.services.auth_service import hash_token, issue_token, resolve_token, revoke_token
from scancount.services.reorder_service import generate_reorder_suggestions
from scancount.services.vendor_rating_service import get_vendor_analytics


SESSIONS_URL = "/api/barcode/scan/sessions"


def token_id(caller):
    return db.session.query(ApiToken).filter_by(token_hash=hash_token(caller.token)).one().id


class TestTokenAuth:

    def test_missing_header(self, client, db_session):
        response = client.get(SESSIONS_URL)
        assert response.status_code == 401
        assert response.json["error"] == "Authentication required"

    def test_malformed_header(self, client, alice):
        response = client.get(SESSIONS_URL, headers={"Authorization": f"Token {alice.token}"})
        assert response.status_code == 401

    def test_unknown_token(self, client, db_session):
        response = client.get(SESSIONS_URL, headers=auth_headers("0" * 64))
        assert response.status_code == 401
        assert response.json["error"] == "Invalid or revoked token"

    def test_valid_token(self, client, alice):
        response = client.get(SESSIONS_URL, headers=alice.headers)
        assert response.status_code == 200

    def test_revoked_token(self, client, db_session):
        record, token = issue_token("acme", "carol", "handheld 2")
        revoke_token(record.id)

        response = client.get(SESSIONS_URL, headers=auth_headers(token))
        assert response.status_code == 401

    def test_only_hash_is_stored(self, db_session):
        record, token = issue_token("acme", "carol")
        assert record.token_hash == hash_token(token)
        assert token not in record.token_hash

    def test_resolve_records_last_use(self, db_session):
        record, token = issue_token("acme", "carol")
        assert record.last_used_at is None

        caller = resolve_token(token)

        assert caller.client_id == "acme"
        assert caller.user_id == "carol"
        assert db_session.get(ApiToken, record.id).last_used_at is not None

    @pytest.mark.parametrize("client_id,user_id", [("", "alice"), ("acme", "  "), (None, "alice")])
    def test_blank_identity_rejected(self, db_session, client_id, user_id):
        with pytest.raises(ValueError):
            issue_token(client_id, user_id)


class TestTokenCommands:

    def test_issue_prints_usable_token(self, app, client, db_session):
        runner = app.test_cli_runner()
        result = runner.invoke(args=["tokens", "issue", "--client-id", "acme", "--user-id", "dana", "--label", "Dock"])

        assert result.exit_code == 0, result.output
        lines = result.output.strip().splitlines()
        assert lines[0].startswith("PASS Token")
        token = lines[-1]
        assert len(token) == 64

        response = client.get(SESSIONS_URL, headers=auth_headers(token))
        assert response.status_code == 200

    def test_issue_requires_user(self, app, db_session):
        result = app.test_cli_runner().invoke(args=["tokens", "issue", "--client-id", "acme"])
        assert result.exit_code != 0

    def test_issue_rejects_blank_client(self, app, db_session):
        result = app.test_cli_runner().invoke(args=["tokens", "issue", "--client-id", " ", "--user-id", "dana"])
        assert result.exit_code == 1
        assert "client_id and user_id are required" in result.output

    def test_list(self, app, alice, mallory):
        runner = app.test_cli_runner()
        revoke_token(token_id(mallory))

        result = runner.invoke(args=["tokens", "list"])
        assert result.exit_code == 0
        assert "alice" in result.output
        assert "revoked" in result.output

        result = runner.invoke(args=["tokens", "list", "--client-id", "beta"])
        assert "alice" not in result.output
        assert "mallory" in result.output

    def test_list_empty(self, app, db_session):
        result = app.test_cli_runner().invoke(args=["tokens", "list"])
        assert "No tokens found." in result.output

    def test_revoke(self, app, client, alice):
        result = app.test_cli_runner().invoke(args=["tokens", "revoke", str(token_id(alice))])

        assert result.exit_code == 0
        assert client.get(SESSIONS_URL, headers=alice.headers).status_code == 401

    def test_revoke_unknown(self, app, db_session):
        result = app.test_cli_runner().invoke(args=["tokens", "revoke", "999"])
        assert result.exit_code == 1
        assert "Token 999 not found" in result.output


class TestDemoSeed:

    def test_seed_is_idempotent(self, app, db_session):
        runner = app.test_cli_runner()
        for _ in range(2):
            result = runner.invoke(args=["demo", "seed", "--client-id", "demo"])
            assert result.exit_code == 0, result.output

        assert db_session.query(CatalogEntry).count() == 3
        assert db_session.query(InventoryItem).filter_by(client_id="demo").count() == 4
        assert db_session.query(Vendor).filter_by(client_id="demo").count() == 2
        assert db_session.query(PurchaseOrder).count() == 24

    def test_seeded_data_feeds_reports(self, app, db_session):
        app.test_cli_runner().invoke(args=["demo", "seed", "--client-id", "demo"])

        analytics = get_vendor_analytics("demo")
        assert [v["vendor"]["name"] for v in analytics["vendors"]] == ["Reliable Supply Co", "Budget Wholesale"]
        assert [v["rating"] for v in analytics["vendors"]] == [5.0, 1.0]

        suggestions = generate_reorder_suggestions("demo")
        assert [s.item_name for s in suggestions] == ["Fizz Sparkling Water", "Bounty Paper Towels"]


class TestSystemCommands:

    def test_init_db(self, app, db_session):
        result = app.test_cli_runner().invoke(args=["system", "init-db"])
        assert result.exit_code == 0
        assert "Schema ready" in result.output

    def test_reset_requires_confirmation(self, app, alice):
        result = app.test_cli_runner().invoke(args=["system", "reset-db"], input="n\n")

        assert result.exit_code == 1
        assert token_id(alice)


class TestHealth:

    def test_degraded_without_registries(self, client, db_session):
        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.json["status"] == "degraded"
        assert response.json["checks"]["database"]["status"] == "healthy"
        assert response.json["checks"]["barcode_registries"]["details"]["registries"] == []

    def test_healthy_with_registries(self, client, db_session, registry):
        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.json["status"] == "healthy"
        assert response.json["checks"]["barcode_registries"]["details"]["registries"] == ["fake_registry"]

    def test_cors_headers(self, client, db_session):
        response = client.get("/api/health", headers={"Origin": "http://localhost:3000"})
        assert response.headers["Access-Control-Allow-Origin"] == "http://localhost:3000"

        response = client.get("/api/health", headers={"Origin": "https://evil.example"})
        assert "Access-Control-Allow-Origin" not in response.headers
