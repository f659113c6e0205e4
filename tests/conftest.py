"""
Shared fixtures for the billing test suite.

Every test gets its own SQLite file under tmp_path; the cached engine is
reset so service calls and API routes both pick it up.
"""

from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from billing.db.engine import get_engine
from billing.db.schema import metadata
from billing.main import app
from billing.models.clients import ClientCreate
from billing.models.invoices import InvoiceCreate, InvoiceLineIn
from billing.models.items import ItemCreate
from billing.services.clients import create_client
from billing.services.items import create_item


@pytest.fixture
def engine(tmp_path, monkeypatch):
    monkeypatch.setenv("BILLING_DATABASE_URL", f"sqlite:///{tmp_path / 'test.sqlite'}")
    get_engine.cache_clear()
    eng = get_engine()
    metadata.create_all(eng)
    yield eng
    eng.dispose()
    get_engine.cache_clear()


@pytest.fixture
def api(engine):
    """FastAPI test client bound to the per-test database."""
    with TestClient(app) as c:
        yield c


# ---------------------------------------------------------------------------
# Data fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def client_row(engine):
    return create_client(
        engine,
        ClientCreate(
            name="Acme Corp",
            email="billing@acme.com",
            phone="123-456-7890",
            address="123 Test St",
        ),
    )


@pytest.fixture
def item_rows(engine):
    return [
        create_item(engine, ItemCreate(name="Consulting", price=Decimal("10.00"), unit="hour")),
        create_item(engine, ItemCreate(name="Support", price=Decimal("15.00"), unit="month")),
    ]


def make_invoice_payload(client_id, item_rows, discount="5.00", notes="Test invoice"):
    """Two lines: 2 x 10.00 and 1 x 15.00."""
    return InvoiceCreate(
        client_id=client_id,
        invoice_date=date(2024, 1, 15),
        due_date=date(2024, 2, 15),
        discount=Decimal(discount),
        notes=notes,
        items=[
            InvoiceLineIn(item_id=item_rows[0]["id"], quantity=Decimal("2"), unit_price=Decimal("10.00")),
            InvoiceLineIn(item_id=item_rows[1]["id"], quantity=Decimal("1"), unit_price=Decimal("15.00")),
        ],
    )


@pytest.fixture
def invoice_payload(client_row, item_rows):
    def _make(**kwargs):
        return make_invoice_payload(client_row["id"], item_rows, **kwargs)
    return _make
