from fastapi import APIRouter, Depends
import logging

from api.dependencies import get_caller_identity, get_order_service
from models.payment import PaymentCreateRequest, PaymentVerifyRequest
from services.exceptions import OrderServiceError
from services.orders import OrderService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/create-order")
async def create_payment_order(
    payment_data: PaymentCreateRequest,
    caller: str = Depends(get_caller_identity),
    service: OrderService = Depends(get_order_service),
):
    """Creates a gateway payment intent for an order the caller owns"""
    try:
        intent = await service.initiate_payment(payment_data.order_id, payment_data.amount, payment_data.currency, caller)
    except OrderServiceError:
        raise
    except Exception as e:
        logger.exception(f"Create payment order error: {e}")
        raise OrderServiceError("Failed to create payment order") from e

    return {"success": True, "data": intent.to_dict()}


@router.post("/verify")
async def verify_payment(
    payment_data: PaymentVerifyRequest,
    caller: str = Depends(get_caller_identity),
    service: OrderService = Depends(get_order_service),
):
    try:
        verified = await service.confirm_payment(
            payment_data.razorpay_order_id,
            payment_data.razorpay_payment_id,
            payment_data.razorpay_signature,
            payment_data.order_id,
            caller,
        )
    except OrderServiceError:
        raise
    except Exception as e:
        logger.exception(f"Payment verification error: {e}")
        raise OrderServiceError("Failed to verify payment") from e

    return {
        "success": True,
        "message": "Payment verified successfully",
        "data": verified.to_dict(),
    }


@router.get("/status/{order_id}")
async def get_payment_status(
    order_id: str,
    caller: str = Depends(get_caller_identity),
    service: OrderService = Depends(get_order_service),
):
    try:
        payment_status = await service.get_payment_status(order_id, caller)
    except OrderServiceError:
        raise
    except Exception as e:
        logger.exception(f"Get payment status error: {e}")
        raise OrderServiceError("Failed to get payment status") from e

    return {"success": True, "data": payment_status}
