from typing import Optional


class OrderServiceError(Exception):
    """Base class for errors that are reported to the caller"""
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, error: Optional[str] = None):
        self.message = message or self.default_message
        self.error = error
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body = {"success": False, "message": self.message}
        if self.error:
            body["error"] = self.error
        return body


class ValidationError(OrderServiceError):
    status_code = 400
    default_message = "Invalid request"


class NotFoundError(OrderServiceError):
    status_code = 404
    default_message = "Not found"


class OrderNotFoundError(NotFoundError):
    default_message = "Order not found"


class ProductNotFoundError(NotFoundError):
    default_message = "Product not found"


class AuthenticationError(OrderServiceError):
    status_code = 401
    default_message = "Access token required"


class ForbiddenError(OrderServiceError):
    status_code = 403
    default_message = "Access denied"


class InsufficientStockError(OrderServiceError):
    status_code = 400
    default_message = "Insufficient stock"

    def __init__(self, product_id: str, requested: int, available: int, name: Optional[str] = None):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(f"Insufficient stock for {name or product_id}. Available: {available}")


class SignatureMismatchError(OrderServiceError):
    status_code = 400
    default_message = "Invalid payment signature"


class UpstreamError(OrderServiceError):
    """A gateway, store or notification transport failed or timed out"""
    status_code = 500
    default_message = "Upstream service failure"


class DuplicateOrderIdError(Exception):
    """Raised by the store when an orderId is already taken"""

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Order {order_id} already exists")
