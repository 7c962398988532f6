import pytest
from fastapi.testclient import TestClient
from pydantic import SecretStr

from api.dependencies import get_order_service
from api.main import app
from models.inventory import Product
from services.orders import OrderService
from services.store import InMemoryOrderRepository, InMemoryProductRepository
from tests.helpers import TEST_KEY_ID, TEST_SECRET, FakeGateway, FakeNotifier
from utils.config import Settings


@pytest.fixture
def settings():
    return Settings(
        razorpay_key_id=TEST_KEY_ID,
        razorpay_key_secret=SecretStr(TEST_SECRET),
        notification_enqueue_timeout=0.2,
        store_timeout=2.0,
        gateway_timeout=2.0,
    )


@pytest.fixture
def products():
    return InMemoryProductRepository([
        Product(id="abc123", name="Widget", price=100.0, stock=5),
        Product(id="def456", name="Gadget", price=50.0, stock=1),
    ])


@pytest.fixture
def orders():
    return InMemoryOrderRepository()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def service(orders, products, gateway, notifier, settings):
    return OrderService(orders, products, gateway, notifier, settings)


@pytest.fixture
def client(service):
    app.dependency_overrides[get_order_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()
