"""Test configuration and fixtures."""
import pytest

from moneyflow import create_app
from moneyflow.core.extensions import db
from moneyflow.modules.allocation.service import AllocationService
from moneyflow.modules.backup.service import BackupService
from moneyflow.modules.carryover.service import CarryoverService
from moneyflow.modules.ledger.service import LedgerService
from moneyflow.modules.ledger.store import get_store
from moneyflow.modules.reports.service import ReportService


@pytest.fixture
def app():
    """Application in testing config with a fresh in-memory database."""
    app = create_app('testing')
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def store(app):
    return get_store()


@pytest.fixture
def ledger(store):
    return LedgerService(store)


@pytest.fixture
def allocation(store, ledger):
    return AllocationService(store, ledger)


@pytest.fixture
def carryover(store, ledger):
    return CarryoverService(store, ledger)


@pytest.fixture
def reports(store, ledger):
    return ReportService(store, ledger)


@pytest.fixture
def backup(store):
    return BackupService(store)


@pytest.fixture
def envelope(ledger):
    return ledger.create_envelope('Daily', 'Everyday spending')


@pytest.fixture
def meals(ledger, envelope):
    return ledger.create_category(envelope['id'], 'Meals')


@pytest.fixture
def household(ledger, envelope):
    return ledger.create_category(envelope['id'], 'Household', display_order=1)
