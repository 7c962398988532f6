import hashlib
import hmac
import logging

from models.payment import PaymentDetails, VerifiedPayment
from services.exceptions import ForbiddenError, OrderNotFoundError, SignatureMismatchError
from services.store import OrderRepository

logger = logging.getLogger(__name__)


def compute_signature(secret: str, gateway_order_id: str, gateway_payment_id: str) -> str:
    """hex(HMAC-SHA256(secret, "<gateway order id>|<gateway payment id>"))"""
    body = f"{gateway_order_id}|{gateway_payment_id}"
    return hmac.new(secret.encode(), body.encode(), hashlib.sha256).hexdigest()


class PaymentVerifier:
    def __init__(self, orders: OrderRepository, key_secret: str):
        self._orders = orders
        self._key_secret = key_secret

    def signature_matches(self, gateway_order_id: str, gateway_payment_id: str, signature: str) -> bool:
        expected = compute_signature(self._key_secret, gateway_order_id, gateway_payment_id)
        return hmac.compare_digest(expected.encode(), (signature or "").encode())

    async def verify(
        self,
        gateway_order_id: str,
        gateway_payment_id: str,
        signature: str,
        order_id: str,
        caller_identity: str,
    ) -> VerifiedPayment:
        if not self.signature_matches(gateway_order_id, gateway_payment_id, signature):
            logger.warning(f"Signature mismatch for order {order_id}, gateway order {gateway_order_id}")
            raise SignatureMismatchError()

        order = await self._orders.find_by_order_id(order_id)
        if order is None:
            raise OrderNotFoundError()
        if not order.is_owned_by(caller_identity):
            logger.warning(f"User {caller_identity} attempted to verify payment for order {order_id}")
            raise ForbiddenError()

        order.mark_paid(PaymentDetails(
            razorpay_order_id=gateway_order_id,
            razorpay_payment_id=gateway_payment_id,
            razorpay_signature=signature,
        ))
        await self._orders.update(order)

        logger.info(f"Payment {gateway_payment_id} verified for order {order_id}")
        return VerifiedPayment(order_id=order.order_id, payment_id=gateway_payment_id)
