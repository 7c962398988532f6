from typing import Any, Awaitable, Dict, List, Optional
import asyncio
import logging
import math

from pydantic import ValidationError as PydanticValidationError

from models.order import Order, OrderCreateRequest, first_error, validate_order_input
from models.payment import PaymentDetails, PaymentIntent, PaymentStatus, VerifiedPayment
from services.exceptions import DuplicateOrderIdError, ForbiddenError, OrderNotFoundError, UpstreamError, ValidationError
from services.gateway import PaymentGateway
from services.inventory import InventoryGuard
from services.notifications import NotificationDispatcher
from services.payment_verifier import PaymentVerifier
from services.store import OrderRepository, ProductRepository
from utils.config import Settings

logger = logging.getLogger(__name__)

MAX_ORDER_ID_ATTEMPTS = 3


def js_round(amount: float) -> int:
    """Round half up, the way the gateway's JS SDK rounds amounts"""
    return int(math.floor(amount + 0.5))


class OrderService:
    """Drives an order from creation through payment confirmation"""

    def __init__(
        self,
        orders: OrderRepository,
        products: ProductRepository,
        gateway: PaymentGateway,
        notifier: NotificationDispatcher,
        settings: Settings,
    ):
        self._orders = orders
        self._gateway = gateway
        self._notifier = notifier
        self._settings = settings
        self._inventory = InventoryGuard(products)
        self._verifier = PaymentVerifier(orders, settings.razorpay_key_secret.get_secret_value())

    async def _bounded(self, awaitable: Awaitable, timeout: float, operation: str) -> Any:
        try:
            return await asyncio.wait_for(awaitable, timeout=timeout)
        except asyncio.TimeoutError as e:
            logger.error(f"{operation} timed out after {timeout}s")
            raise UpstreamError(f"{operation} timed out") from e

    async def _load_owned(self, order_id: str, caller: str) -> Order:
        order = await self._bounded(self._orders.find_by_order_id(order_id), self._settings.store_timeout, "Order lookup")
        if order is None:
            raise OrderNotFoundError()
        if not order.is_owned_by(caller):
            logger.warning(f"User {caller} denied access to order {order_id}")
            raise ForbiddenError()
        return order

    # --- Creation ---

    async def create_order(self, request: OrderCreateRequest, caller: str) -> Order:
        details, items = validate_order_input(request.customer_details, request.items, request.total_amount)

        reserved = await self._bounded(self._inventory.reserve(items), self._settings.store_timeout, "Stock reservation")
        try:
            order = await self._insert_new_order(request, details, items, caller)
        except Exception:
            logger.error("Order creation failed after stock was reserved; releasing stock")
            await self._release_quietly(reserved)
            raise

        logger.info(f"Order {order.order_id} created for user {caller} with {len(order.items)} item(s)")
        await self._dispatch_notifications(order)
        return order

    async def _insert_new_order(self, request: OrderCreateRequest, details, items, caller: str) -> Order:
        extra = {
            key: value
            for key, value in {
                "payment_method": request.payment_method,
                "shipping_method": request.shipping_method,
                "shipping_cost": request.shipping_cost,
                "notes": request.notes,
            }.items()
            if value is not None
        }
        for attempt in range(1, MAX_ORDER_ID_ATTEMPTS + 1):
            order = Order.create(
                details,
                items,
                request.total_amount,
                owner_id=caller,
                order_date=request.order_date,
                order_id_prefix=self._settings.order_id_prefix,
                **extra,
            )
            try:
                return await self._bounded(self._orders.insert(order), self._settings.store_timeout, "Order insert")
            except DuplicateOrderIdError:
                logger.warning(f"Order id {order.order_id} already taken (attempt {attempt}), generating a new one")
        raise UpstreamError("Failed to create order", error="Could not allocate a unique order id")

    async def _release_quietly(self, reserved):
        try:
            await self._bounded(self._inventory.release(reserved), self._settings.store_timeout, "Stock release")
        except Exception as e:
            logger.error(f"Failed to release reserved stock {[line.product_id for line in reserved]}: {type(e).__name__}: {e}")

    async def _dispatch_notifications(self, order: Order):
        # Mail problems never fail the order
        try:
            await asyncio.wait_for(
                self._notifier.order_created(order),
                timeout=self._settings.notification_enqueue_timeout,
            )
        except Exception as e:
            logger.error(f"Email notification error for order {order.order_id}: {type(e).__name__}: {e}")

    # --- Payment ---

    async def initiate_payment(self, order_id: Optional[str], amount: Optional[float], currency: str, caller: str) -> PaymentIntent:
        if not amount or not order_id:
            raise ValidationError("Amount and order ID are required")

        order = await self._load_owned(order_id, caller)
        gateway_order = await self._bounded(
            self._gateway.create_order(
                amount=js_round(amount),
                currency=currency or "INR",
                receipt=order.order_id,
                notes={"orderId": order.order_id, "userId": caller},
            ),
            self._settings.gateway_timeout,
            "Payment gateway request",
        )
        return PaymentIntent(
            gateway_order_id=gateway_order.id,
            amount=gateway_order.amount,
            currency=gateway_order.currency,
            key=self._settings.razorpay_key_id,
        )

    async def confirm_payment(
        self,
        gateway_order_id: Optional[str],
        gateway_payment_id: Optional[str],
        signature: Optional[str],
        order_id: Optional[str],
        caller: str,
    ) -> VerifiedPayment:
        if not gateway_order_id or not gateway_payment_id or not signature or not order_id:
            raise ValidationError("All payment details are required")
        return await self._bounded(
            self._verifier.verify(gateway_order_id, gateway_payment_id, signature, order_id, caller),
            self._settings.store_timeout,
            "Payment verification",
        )

    async def update_payment_status(
        self,
        order_id: str,
        status: PaymentStatus,
        details: Optional[Dict[str, Any]],
        caller: str,
    ) -> Order:
        order = await self._load_owned(order_id, caller)
        try:
            payment_details = PaymentDetails.model_validate(details) if details else None
        except PydanticValidationError as e:
            raise ValidationError("Invalid payment details", error=first_error(e)) from e
        order.set_payment_status(status, payment_details)
        await self._bounded(self._orders.update(order), self._settings.store_timeout, "Order update")
        logger.info(f"Payment status of order {order_id} set to {status.value}, order status {order.order_status.value}")
        return order

    # --- Reads ---

    async def get_order(self, order_id: str, caller: str) -> Order:
        return await self._load_owned(order_id, caller)

    async def list_orders_for_user(self, caller: str) -> List[Order]:
        return await self._bounded(self._orders.find_by_owner(caller), self._settings.store_timeout, "Order listing")

    async def get_payment_status(self, order_id: str, caller: str) -> Dict:
        order = await self._load_owned(order_id, caller)
        return {
            "paymentStatus": order.payment_status.value,
            "paymentDetails": order.payment_details.model_dump(by_alias=True) if order.payment_details else None,
            "orderStatus": order.order_status.value,
        }
