# Overview: Threaded tests for concurrent scans and scan/cancel races against a file-backed database.

"""
Concurrency tests

Each worker runs in its own app context (and so its own DB session and
connection). A file-backed SQLite database is used because the in-memory
one shares a single connection between threads.
"""

import os
import threading

import pytest
from sqlalchemy.orm.exc import StaleDataError

from conftest import TOWELS_UPC
from scancount import create_app
from scancount.extensions import db
from scancount.models import InventoryItem, ScanSessionItem
from scancount.services import scanning_service
from scancount.services.concurrency import run_with_retry
from scancount.services.inventory_service import list_movements
from scancount.services.scanning_service import FAILURE_SESSION_INACTIVE
from scancount.validation import ConflictError


CALLER = {"client_id": "acme", "user_id": "alice"}

WORKERS = 6
SCANS_PER_WORKER = 5


@pytest.fixture
def threaded_app(tmp_path):
    db_path = os.path.join(tmp_path, "concurrency.db")
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{db_path}",
        'SQLALCHEMY_ENGINE_OPTIONS': {"connect_args": {"timeout": 30, "check_same_thread": False}},
        'BARCODE_REGISTRIES': [],
    })

    with app.app_context():
        db.create_all()
        item = InventoryItem(
            client_id="acme",
            item_name="Bounty Paper Towels",
            barcode=TOWELS_UPC,
            current_quantity=3,
            par_level_low=10,
            par_level_high=40,
        )
        db.session.add(item)
        db.session.commit()
        app.config["TEST_ITEM_ID"] = item.id

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.session.remove()
        db.engine.dispose()


def start_session(app, workflow):
    with app.app_context():
        result = scanning_service.start_session(workflow, **CALLER)
        db.session.commit()
        return result["session"]["id"]


def run_threads(targets):
    barrier = threading.Barrier(len(targets))

    def wrap(target):
        def run():
            barrier.wait()
            target()
        return run

    threads = [threading.Thread(target=wrap(t)) for t in targets]
    for t in threads:
        t.start()
    for t in threads:
        t.join()


class TestConcurrentScans:

    def test_no_scan_is_lost(self, threaded_app):
        session_id = start_session(threaded_app, "inventory_count")
        errors = []
        lock = threading.Lock()

        def worker():
            with threaded_app.app_context():
                try:
                    for _ in range(SCANS_PER_WORKER):
                        outcome = scanning_service.scan(
                            session_id, TOWELS_UPC, 2, include_summary=False, **CALLER,
                        )
                        if not outcome.success:
                            raise AssertionError(outcome.error)
                        db.session.commit()
                except Exception as exc:
                    db.session.rollback()
                    with lock:
                        errors.append(exc)
                finally:
                    db.session.remove()

        run_threads([worker] * WORKERS)

        assert errors == []
        with threaded_app.app_context():
            items = db.session.query(ScanSessionItem).filter_by(session_id=session_id).all()
            assert len(items) == 1
            assert items[0].scan_count == WORKERS * SCANS_PER_WORKER
            assert items[0].quantity == 2 * WORKERS * SCANS_PER_WORKER

    def test_cancel_racing_quick_update_scans(self, threaded_app):
        session_id = start_session(threaded_app, "quick_update")
        outcomes = []
        errors = []
        lock = threading.Lock()

        def scanner():
            with threaded_app.app_context():
                try:
                    for _ in range(SCANS_PER_WORKER):
                        outcome = scanning_service.scan(
                            session_id, TOWELS_UPC, 1, include_summary=False, **CALLER,
                        )
                        db.session.commit()
                        with lock:
                            outcomes.append(outcome)
                except Exception as exc:
                    db.session.rollback()
                    with lock:
                        errors.append(exc)
                finally:
                    db.session.remove()

        def canceller():
            with threaded_app.app_context():
                try:
                    scanning_service.cancel_session(session_id, **CALLER)
                    db.session.commit()
                except Exception as exc:
                    db.session.rollback()
                    with lock:
                        errors.append(exc)
                finally:
                    db.session.remove()

        run_threads([scanner] * (WORKERS - 1) + [canceller])

        assert errors == []
        failures = [o for o in outcomes if not o.success]
        assert all(o.code == FAILURE_SESSION_INACTIVE for o in failures)

        with threaded_app.app_context():
            item = db.session.get(InventoryItem, threaded_app.config["TEST_ITEM_ID"])
            # Every scan that landed before the cancel was reversed
            assert item.current_quantity == 3
            movements = list_movements("acme", reference_id=session_id)
            assert sum(m.quantity_delta for m in movements) == 0


class TestRunWithRetry:

    def test_retries_stale_writes(self, db_session):
        calls = []

        def op():
            calls.append(1)
            if len(calls) < 3:
                raise StaleDataError("stale")
            return "done"

        assert run_with_retry(op, backoff_base=0) == "done"
        assert len(calls) == 3

    def test_exhausted_stale_write_is_conflict(self, db_session):
        def op():
            raise StaleDataError("stale")

        with pytest.raises(ConflictError):
            run_with_retry(op, attempts=2, backoff_base=0)

    def test_other_errors_are_not_retried(self, db_session):
        calls = []

        def op():
            calls.append(1)
            raise KeyError("boom")

        with pytest.raises(KeyError):
            run_with_retry(op, backoff_base=0)
        assert len(calls) == 1
