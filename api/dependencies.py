from fastapi import Header, Request
from typing import Optional

from services.exceptions import AuthenticationError, UpstreamError
from services.orders import OrderService


async def get_caller_identity(x_user_id: Optional[str] = Header(default=None)) -> str:
    """Identity of the caller, as verified and forwarded by the auth proxy"""
    if not x_user_id or not x_user_id.strip():
        raise AuthenticationError()
    return x_user_id.strip()


def get_order_service(request: Request) -> OrderService:
    service = getattr(request.app.state, "order_service", None)
    if service is None:
        raise UpstreamError("Order service is not ready")
    return service
