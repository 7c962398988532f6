from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import logging

from api.orders import router as orders_router
from api.payments import router as payments_router
from services.exceptions import OrderServiceError
from services.gateway import RazorpayGateway
from services.notifications import TemporalNotificationDispatcher
from services.orders import OrderService
from services.store import DEMO_PRODUCTS, InMemoryOrderRepository, InMemoryProductRepository
from utils.config import Settings
from utils.logging import configure_logging
from utils.temporal import get_temporal_client

logger = logging.getLogger(__name__)

app = FastAPI(title="Order Payment Service")

# Include routers
app.include_router(orders_router, prefix="/orders", tags=["orders"])
app.include_router(payments_router, prefix="/payments", tags=["payments"])


@app.exception_handler(OrderServiceError)
async def order_service_error_handler(request: Request, exc: OrderServiceError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    detail = None
    if errors:
        location = ".".join(str(part) for part in errors[0].get("loc", ()))
        detail = f"{location}: {errors[0].get('msg')}"
    body = {"success": False, "message": "Invalid request"}
    if detail:
        body["error"] = detail
    return JSONResponse(status_code=400, content=body)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"success": False, "message": "Internal server error"})


def build_order_service(settings: Settings, temporal_client=None) -> OrderService:
    gateway = RazorpayGateway(
        key_id=settings.razorpay_key_id,
        key_secret=settings.razorpay_key_secret.get_secret_value(),
        api_url=settings.razorpay_api_url,
        timeout=settings.gateway_timeout,
    )
    return OrderService(
        orders=InMemoryOrderRepository(),
        products=InMemoryProductRepository(DEMO_PRODUCTS),
        gateway=gateway,
        notifier=TemporalNotificationDispatcher(temporal_client, task_queue=settings.notification_task_queue),
        settings=settings,
    )


@app.on_event("startup")
async def startup_event():
    settings = Settings.from_env()
    configure_logging(settings.log_level, log_file="api.log")

    temporal_client = None
    try:
        temporal_client = await get_temporal_client(settings)
        logger.info(f"Connected to Temporal server at {settings.temporal_address} in namespace '{settings.temporal_namespace}'")
    except Exception as e:
        # Orders still work; notifications are skipped until Temporal is reachable
        logger.error(f"Failed to connect to Temporal: {e}")

    app.state.order_service = build_order_service(settings, temporal_client)


@app.get("/health")
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    settings = Settings.from_env()
    # Use reload=True for development convenience
    uvicorn.run("api.main:app", host=settings.api_host, port=settings.api_port, reload=True)
