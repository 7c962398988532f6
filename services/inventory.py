from typing import List
import logging

from models.inventory import ReservationLine
from models.order import OrderItem
from services.exceptions import ProductNotFoundError
from services.store import ProductRepository

logger = logging.getLogger(__name__)


class InventoryGuard:
    """Validates and reserves stock for the catalog items of an order.

    Synthetic (numeric id) items are demo entries and are never looked up
    or decremented.
    """

    def __init__(self, products: ProductRepository):
        self._products = products

    async def reserve(self, items: List[OrderItem]) -> List[ReservationLine]:
        lines = []
        for item in items:
            if not item.is_stock_tracked:
                logger.debug(f"Skipping stock check for synthetic product {item.product_id.id}")
                continue

            product_id = item.product_id.id
            product = await self._products.find_by_id(product_id)
            if product is None:
                logger.error(f"Product {product_id} not found")
                raise ProductNotFoundError(f"Product not found: {item.name}")
            lines.append(ReservationLine(product_id=product_id, quantity=item.quantity, name=item.name))

        if lines:
            await self._products.reserve_stock(lines)
            logger.info(f"Reserved stock for {len(lines)} line item(s)")
        return lines

    async def release(self, lines: List[ReservationLine]):
        """Give reserved stock back after a later step of order creation failed"""
        if not lines:
            return
        logger.warning(f"Releasing stock for {len(lines)} line item(s)")
        await self._products.release_stock(lines)
