from fastapi import APIRouter, Depends, status
import logging

from api.dependencies import get_caller_identity, get_order_service
from models.order import OrderCreateRequest
from models.payment import PaymentStatusUpdateRequest
from services.exceptions import OrderServiceError
from services.orders import OrderService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/create", status_code=status.HTTP_201_CREATED)
async def create_order(
    order_data: OrderCreateRequest,
    caller: str = Depends(get_caller_identity),
    service: OrderService = Depends(get_order_service),
):
    """Validates the order, reserves stock and persists it"""
    try:
        order = await service.create_order(order_data, caller)
    except OrderServiceError:
        raise
    except Exception as e:
        logger.exception(f"Order creation error: {e}")
        raise OrderServiceError("Failed to create order") from e

    return {
        "success": True,
        "message": "Order created successfully",
        "data": {"orderId": order.order_id, "order": order.to_dict()},
    }


@router.get("/mine")
@router.get("/my-orders")
async def get_my_orders(
    caller: str = Depends(get_caller_identity),
    service: OrderService = Depends(get_order_service),
):
    """Orders of the calling user, newest first"""
    try:
        orders = await service.list_orders_for_user(caller)
    except OrderServiceError:
        raise
    except Exception as e:
        logger.exception(f"Get user orders error: {e}")
        raise OrderServiceError("Failed to get orders") from e

    return {"success": True, "data": [order.to_dict() for order in orders]}


@router.get("/{order_id}")
async def get_order(
    order_id: str,
    caller: str = Depends(get_caller_identity),
    service: OrderService = Depends(get_order_service),
):
    try:
        order = await service.get_order(order_id, caller)
    except OrderServiceError:
        raise
    except Exception as e:
        logger.exception(f"Get order error: {e}")
        raise OrderServiceError("Failed to get order") from e

    return {"success": True, "data": order.to_dict()}


@router.put("/{order_id}/payment")
async def update_payment_status(
    order_id: str,
    update: PaymentStatusUpdateRequest,
    caller: str = Depends(get_caller_identity),
    service: OrderService = Depends(get_order_service),
):
    """Direct status update for flows that bypass the gateway, e.g. cash on delivery"""
    try:
        order = await service.update_payment_status(order_id, update.payment_status, update.payment_details, caller)
    except OrderServiceError:
        raise
    except Exception as e:
        logger.exception(f"Update payment error: {e}")
        raise OrderServiceError("Failed to update payment status") from e

    return {
        "success": True,
        "message": "Payment status updated successfully",
        "data": order.to_dict(),
    }
