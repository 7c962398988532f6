from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from enum import Enum
from typing import Any, Dict, Optional


class PaymentMethod(str, Enum):
    GATEWAY = "razorpay"
    CASH_ON_DELIVERY = "cod"
    DIRECT_TRANSFER = "upi"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentDetails(BaseModel):
    """Gateway identifiers plus the signature that proved the payment"""
    razorpay_order_id: Optional[str] = None
    razorpay_payment_id: Optional[str] = None
    razorpay_signature: Optional[str] = None

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


class PaymentIntent(BaseModel):
    gateway_order_id: str
    amount: int
    currency: str
    key: str

    def to_dict(self) -> Dict:
        return {
            "razorpayOrderId": self.gateway_order_id,
            "amount": self.amount,
            "currency": self.currency,
            "key": self.key,
        }


class VerifiedPayment(BaseModel):
    order_id: str
    payment_id: str

    def to_dict(self) -> Dict:
        return {"orderId": self.order_id, "paymentId": self.payment_id}


class PaymentCreateRequest(BaseModel):
    amount: Optional[float] = None
    currency: str = "INR"
    order_id: Optional[str] = Field(default=None, alias="orderId")

    model_config = ConfigDict(populate_by_name=True)


class PaymentVerifyRequest(BaseModel):
    """Checkout callback fields exactly as the gateway posts them"""
    razorpay_order_id: Optional[str] = None
    razorpay_payment_id: Optional[str] = None
    razorpay_signature: Optional[str] = None
    order_id: Optional[str] = Field(default=None, alias="orderId")

    model_config = ConfigDict(populate_by_name=True)


class PaymentStatusUpdateRequest(BaseModel):
    payment_status: PaymentStatus = Field(alias="paymentStatus")
    payment_details: Optional[Dict[str, Any]] = Field(default=None, alias="paymentDetails")

    model_config = ConfigDict(populate_by_name=True)
