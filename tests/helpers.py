import asyncio

from services.exceptions import UpstreamError
from services.gateway import GatewayOrder, PaymentGateway
from services.notifications import NotificationDispatcher

TEST_SECRET = "test_key_secret"
TEST_KEY_ID = "rzp_test_key"

CUSTOMER = {
    "name": "Asha Rao",
    "email": "asha@example.com",
    "phone": "9876543210",
    "address": "12 MG Road",
    "city": "Bengaluru",
    "state": "KA",
    "zipCode": "560001",
}


def order_payload(items=None, total=200.0, **overrides):
    payload = {
        "customerDetails": dict(CUSTOMER),
        "items": items if items is not None else [{"productId": "abc123", "name": "Widget", "price": 100.0, "quantity": 2}],
        "totalAmount": total,
    }
    payload.update(overrides)
    return payload


class FakeGateway(PaymentGateway):
    def __init__(self):
        self.calls = []
        self.should_fail = False

    async def create_order(self, amount, currency, receipt, notes):
        self.calls.append({"amount": amount, "currency": currency, "receipt": receipt, "notes": notes})
        if self.should_fail:
            raise UpstreamError("Failed to create payment order", error="Payment gateway unreachable")
        return GatewayOrder(id=f"order_fake{len(self.calls)}", amount=amount, currency=currency, receipt=receipt, notes=notes)


class FakeNotifier(NotificationDispatcher):
    def __init__(self):
        self.orders = []
        self.error = None
        self.delay = 0

    async def order_created(self, order):
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        self.orders.append(order)


class FakeMailer:
    """Records messages; raises the queued errors first, one per send"""

    def __init__(self, configured=True, errors=None):
        self.configured = configured
        self.sender = "shop@example.com"
        self.errors = list(errors or [])
        self.sent = []

    def send(self, message):
        if self.errors:
            raise self.errors.pop(0)
        self.sent.append(message)
