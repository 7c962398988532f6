from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional
import asyncio
import logging

from models.inventory import Product, ReservationLine
from models.order import Order
from services.exceptions import DuplicateOrderIdError, InsufficientStockError, OrderNotFoundError

logger = logging.getLogger(__name__)

# Seed catalog for the in-process product store
DEMO_PRODUCTS = [
    Product(id="PROD-001", name="Laptop XPS 15", price=149999.0, stock=45),
    Product(id="PROD-002", name="iPhone 15 Pro", price=134900.0, stock=90),
    Product(id="PROD-003", name="Sony Headphones XM5", price=29990.0, stock=28),
    Product(id="PROD-004", name="Samsung TV 65\"", price=89990.0, stock=10),
    Product(id="PROD-005", name="Gaming Mouse", price=2499.0, stock=5),
]


class ProductRepository(ABC):
    """Product storage. Stock changes must be atomic in the backing store."""

    @abstractmethod
    async def find_by_id(self, product_id: str) -> Optional[Product]:
        ...

    @abstractmethod
    async def reserve_stock(self, lines: List[ReservationLine]) -> None:
        """All-or-nothing decrement of every line, raising InsufficientStockError"""
        ...

    @abstractmethod
    async def release_stock(self, lines: List[ReservationLine]) -> None:
        ...


class OrderRepository(ABC):

    @abstractmethod
    async def find_by_order_id(self, order_id: str) -> Optional[Order]:
        ...

    @abstractmethod
    async def find_by_owner(self, user_id: str) -> List[Order]:
        """Orders owned by user_id, newest order_date first"""
        ...

    @abstractmethod
    async def insert(self, order: Order) -> Order:
        """Persist a new order; raises DuplicateOrderIdError on an id clash"""
        ...

    @abstractmethod
    async def update(self, order: Order) -> Order:
        ...


def _merge_lines(lines: Iterable[ReservationLine]) -> Dict[str, ReservationLine]:
    merged: Dict[str, ReservationLine] = {}
    for line in lines:
        if line.product_id in merged:
            current = merged[line.product_id]
            merged[line.product_id] = current.model_copy(update={"quantity": current.quantity + line.quantity})
        else:
            merged[line.product_id] = line
    return merged


class InMemoryProductRepository(ProductRepository):
    def __init__(self, products: Optional[Iterable[Product]] = None):
        self._products: Dict[str, Product] = {p.id: p.model_copy() for p in (products or [])}
        self._lock = asyncio.Lock()

    async def find_by_id(self, product_id: str) -> Optional[Product]:
        product = self._products.get(product_id)
        return product.model_copy() if product else None

    async def reserve_stock(self, lines: List[ReservationLine]) -> None:
        merged = _merge_lines(lines)
        async with self._lock:
            # Check every product before touching any of them
            for product_id, line in merged.items():
                product = self._products.get(product_id)
                available = product.stock if product else 0
                if available < line.quantity:
                    logger.warning(f"Cannot reserve {line.quantity} units of product {product_id}. Only {available} available")
                    raise InsufficientStockError(product_id, line.quantity, available, name=line.name)

            now = datetime.now(timezone.utc)
            for product_id, line in merged.items():
                product = self._products[product_id]
                product.stock -= line.quantity
                product.last_updated = now
                logger.info(f"Reserved {line.quantity} units of product {product_id}. Remaining stock: {product.stock}")

    async def release_stock(self, lines: List[ReservationLine]) -> None:
        async with self._lock:
            now = datetime.now(timezone.utc)
            for product_id, line in _merge_lines(lines).items():
                product = self._products.get(product_id)
                if product is None:
                    logger.warning(f"Cannot release stock for unknown product {product_id}")
                    continue
                product.stock += line.quantity
                product.last_updated = now
                logger.info(f"Released {line.quantity} units of product {product_id}. Stock: {product.stock}")


class InMemoryOrderRepository(OrderRepository):
    def __init__(self):
        self._orders: Dict[str, Order] = {}
        self._lock = asyncio.Lock()

    async def find_by_order_id(self, order_id: str) -> Optional[Order]:
        order = self._orders.get(order_id)
        return order.model_copy(deep=True) if order else None

    async def find_by_owner(self, user_id: str) -> List[Order]:
        orders = [o.model_copy(deep=True) for o in self._orders.values() if o.is_owned_by(user_id)]
        return sorted(orders, key=lambda o: o.order_date, reverse=True)

    async def insert(self, order: Order) -> Order:
        async with self._lock:
            if order.order_id in self._orders:
                raise DuplicateOrderIdError(order.order_id)
            order.touch()
            self._orders[order.order_id] = order.model_copy(deep=True)
        return order

    async def update(self, order: Order) -> Order:
        async with self._lock:
            if order.order_id not in self._orders:
                raise OrderNotFoundError()
            order.touch()
            self._orders[order.order_id] = order.model_copy(deep=True)
        return order
