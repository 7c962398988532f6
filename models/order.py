from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel
from typing import Annotated, Any, Dict, List, Literal, Optional, Tuple, Union
from datetime import datetime, timezone
from enum import Enum
import math
import random
import string
import time

from models.payment import PaymentDetails, PaymentMethod, PaymentStatus
from services.exceptions import ValidationError

TAX_RATE = 0.18

REQUIRED_CUSTOMER_FIELDS = ["name", "email", "phone", "address", "city", "state", "zip_code"]

_BASE36 = string.digits + string.ascii_uppercase


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_order_id(prefix: str = "DAISY") -> str:
    """prefix + last 6 digits of the epoch-ms timestamp + 5 random base-36 chars"""
    timestamp = str(int(time.time() * 1000))
    suffix = "".join(random.choices(_BASE36, k=5))
    return f"{prefix}{timestamp[-6:]}{suffix}"


class CatalogProduct(BaseModel):
    """A stock-tracked product from the catalog"""
    kind: Literal["catalog"] = "catalog"
    id: str


class SyntheticProduct(BaseModel):
    """A numeric demo product that is never looked up or decremented"""
    kind: Literal["synthetic"] = "synthetic"
    id: str


ProductRef = Annotated[Union[CatalogProduct, SyntheticProduct], Field(discriminator="kind")]


def _is_numeric_text(text: str) -> bool:
    """Whether a JS client would read text as a number (Number(text) is not NaN)"""
    # float() and int() also take digit separators
    if "_" in text:
        return False
    if text[:2].lower() in ("0x", "0o", "0b"):
        try:
            int(text, 0)
            return True
        except ValueError:
            return False
    try:
        number = float(text)
    except ValueError:
        return False
    if math.isnan(number):
        return False
    if text.lstrip("+-").lower() in ("inf", "infinity"):
        return text.lstrip("+-") == "Infinity"
    return True


def parse_product_ref(raw: Any) -> Union[CatalogProduct, SyntheticProduct]:
    if isinstance(raw, (CatalogProduct, SyntheticProduct)):
        return raw
    if isinstance(raw, dict):
        if raw.get("kind") == "synthetic":
            return SyntheticProduct(id=str(raw["id"]))
        return CatalogProduct(id=str(raw["id"]))
    if isinstance(raw, bool):
        raise ValueError("productId must be a string or a number")
    if isinstance(raw, (int, float)):
        return SyntheticProduct(id=str(raw))
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            raise ValueError("productId must not be empty")
        return SyntheticProduct(id=raw) if _is_numeric_text(text) else CatalogProduct(id=raw)
    raise ValueError("productId must be a string or a number")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OrderItem(CamelModel):
    product_id: ProductRef
    name: str = Field(min_length=1)
    price: float = Field(ge=0)
    quantity: int = Field(ge=1)
    color: Optional[str] = None
    size: Optional[str] = None
    image: Optional[str] = None

    @field_validator("product_id", mode="before")
    @classmethod
    def _parse_product_id(cls, value):
        return parse_product_ref(value)

    @field_serializer("product_id")
    def _serialize_product_id(self, value) -> str:
        return value.id

    @property
    def is_stock_tracked(self) -> bool:
        return isinstance(self.product_id, CatalogProduct)


class CustomerDetails(CamelModel):
    user_id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: str = "India"

    def missing_fields(self) -> List[str]:
        return [to_camel(f) for f in REQUIRED_CUSTOMER_FIELDS if not getattr(self, f)]


class Order(CamelModel):
    """
    Order aggregate.

    total_amount is supplied by the client and is NOT recomputed from the
    line items; whether to trust it is an open product decision. tax_amount
    is always derived from the last total_amount that was set.
    """
    order_id: str
    customer_details: CustomerDetails
    items: List[OrderItem] = Field(min_length=1)
    total_amount: float
    tax_amount: float = 0.0
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_method: PaymentMethod = PaymentMethod.GATEWAY
    payment_details: Optional[PaymentDetails] = None
    order_status: OrderStatus = OrderStatus.PENDING
    shipping_method: str = "standard"
    shipping_cost: float = 0
    tracking_number: Optional[str] = None
    notes: Optional[str] = None
    order_date: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator("order_date", "updated_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @model_validator(mode="after")
    def _derive_tax(self):
        self.tax_amount = self.total_amount * TAX_RATE
        return self

    @classmethod
    def create(
        cls,
        customer_details: Optional[Dict],
        items: Optional[List],
        total_amount,
        owner_id: str,
        order_date: Optional[datetime] = None,
        order_id_prefix: str = "DAISY",
        **extra,
    ) -> "Order":
        details, line_items = validate_order_input(customer_details, items, total_amount)
        details = details.model_copy(update={"user_id": owner_id})
        fields = dict(
            order_id=generate_order_id(order_id_prefix),
            customer_details=details,
            items=line_items,
            total_amount=total_amount,
            **extra,
        )
        if order_date is not None:
            fields["order_date"] = order_date
        try:
            return cls.model_validate(fields)
        except PydanticValidationError as e:
            raise ValidationError("Invalid order data", error=first_error(e)) from e

    @property
    def owner_id(self) -> Optional[str]:
        return self.customer_details.user_id

    def is_owned_by(self, identity: str) -> bool:
        return self.owner_id is not None and str(self.owner_id) == str(identity)

    def set_total_amount(self, amount: float):
        self.total_amount = amount
        self.tax_amount = amount * TAX_RATE

    def set_payment_status(self, status: PaymentStatus, details: Optional[PaymentDetails] = None):
        self.payment_status = status
        if details is not None:
            self.payment_details = details
        if status == PaymentStatus.PAID:
            self.order_status = OrderStatus.CONFIRMED

    def mark_paid(self, details: PaymentDetails):
        self.set_payment_status(PaymentStatus.PAID, details)

    def touch(self):
        self.updated_at = utcnow()

    def to_dict(self) -> Dict:
        return self.model_dump(mode="json", by_alias=True)


class OrderCreateRequest(CamelModel):
    """Body of POST /orders/create; kept loose so the service reports missing fields itself"""
    customer_details: Optional[Dict[str, Any]] = None
    items: Optional[List[Dict[str, Any]]] = None
    total_amount: Optional[float] = None
    order_date: Optional[datetime] = None
    payment_method: Optional[PaymentMethod] = None
    shipping_method: Optional[str] = None
    shipping_cost: Optional[float] = None
    notes: Optional[str] = None


def first_error(exc: PydanticValidationError) -> str:
    error = exc.errors()[0]
    location = ".".join(str(part) for part in error.get("loc", ()))
    return f"{location}: {error.get('msg')}" if location else error.get("msg", "")


def validate_order_input(customer_details, items, total_amount) -> Tuple[CustomerDetails, List[OrderItem]]:
    """Check the creation payload and parse line items into typed OrderItems"""
    if not customer_details or not items or not total_amount:
        raise ValidationError("Missing required order details")

    try:
        details = CustomerDetails.model_validate(customer_details)
    except PydanticValidationError as e:
        raise ValidationError("Invalid customer details", error=first_error(e)) from e
    missing = details.missing_fields()
    if missing:
        raise ValidationError(f"Missing customer detail: {missing[0]}")

    if not isinstance(items, list) or len(items) == 0:
        raise ValidationError("Order must contain at least one item")
    try:
        line_items = [OrderItem.model_validate(item) for item in items]
    except PydanticValidationError as e:
        raise ValidationError("Invalid item data", error=first_error(e)) from e
    return details, line_items
