from pydantic import BaseModel, Field
from datetime import datetime, timezone
from typing import Optional


class Product(BaseModel):
    id: str
    name: str
    price: float = Field(default=0, ge=0)
    stock: int = Field(default=0, ge=0)
    last_updated: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ReservationLine(BaseModel):
    """Quantity of one catalog product held for an order"""
    product_id: str
    quantity: int = Field(ge=1)
    name: Optional[str] = None
