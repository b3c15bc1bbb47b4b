import pytest
from unittest.mock import AsyncMock, MagicMock
from fastapi.testclient import TestClient

from receiptwiser.main import app
from receiptwiser.db.mongo import get_db
from receiptwiser.models.receipt import ReceiptItem
from receiptwiser.services.reconciliation import build_receipt


def _mock_collection():
    collection = MagicMock()
    collection.find_one = AsyncMock(return_value=None)
    collection.insert_one = AsyncMock()

    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.to_list = AsyncMock(return_value=[])
    collection.find.return_value = cursor
    return collection


@pytest.fixture
def mock_db():
    """Motor database stand-in with one mocked collection per name."""
    collections = {}

    def _collection(name):
        if name not in collections:
            collections[name] = _mock_collection()
        return collections[name]

    db = MagicMock()
    db.__getitem__.side_effect = _collection
    return db


@pytest.fixture
def client(mock_db):
    """Test client with the database dependency overridden; the lifespan is not run."""
    app.dependency_overrides[get_db] = lambda: mock_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def dinner_items():
    return [
        ReceiptItem(id="pasta", name="Pasta", quantity=2, unit_price=12.5, total_price=25.0),
        ReceiptItem(id="wine", name="Wine", quantity=1, unit_price=30.0, total_price=30.0),
        ReceiptItem(id="bread", name="Bread", quantity=3, unit_price=2.5, total_price=7.5),
    ]


@pytest.fixture
def dinner_receipt(dinner_items):
    """Subtotal 62.50, 10% service, 8% tax."""
    return build_receipt(
        dinner_items,
        service_charge_percent=10,
        tax_percent=8,
        creator_name="Ana",
        creator_phone="+6591234567",
    )
