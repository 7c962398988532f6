from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Optional
import asyncio
import logging

import requests

from services.exceptions import UpstreamError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GatewayOrder:
    """Payment intent as returned by the gateway"""
    id: str
    amount: int
    currency: str
    receipt: Optional[str] = None
    status: Optional[str] = None
    notes: Dict[str, str] = field(default_factory=dict)


class PaymentGateway(ABC):

    @abstractmethod
    async def create_order(self, amount: int, currency: str, receipt: str, notes: Dict[str, str]) -> GatewayOrder:
        """Create a payment intent for amount (smallest currency unit)."""
        ...


class RazorpayGateway(PaymentGateway):
    """Creates orders through the Razorpay REST API"""

    def __init__(self, key_id: str, key_secret: str, api_url: str = "https://api.razorpay.com/v1", timeout: float = 10.0):
        self.key_id = key_id
        self._key_secret = key_secret
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout

    def _post_order(self, payload: Dict) -> Dict:
        response = requests.post(
            f"{self.api_url}/orders",
            json=payload,
            auth=(self.key_id, self._key_secret),
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()

    async def create_order(self, amount: int, currency: str, receipt: str, notes: Dict[str, str]) -> GatewayOrder:
        payload = {"amount": amount, "currency": currency, "receipt": receipt, "notes": notes}
        logger.info(f"Creating gateway order for receipt {receipt}, amount {amount} {currency}")
        try:
            data = await asyncio.to_thread(self._post_order, payload)
        except requests.Timeout as e:
            logger.error(f"Gateway timed out creating order for receipt {receipt}")
            raise UpstreamError("Failed to create payment order", error="Payment gateway timed out") from e
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else "unknown"
            logger.error(f"Gateway rejected order for receipt {receipt} with status {status}")
            raise UpstreamError("Failed to create payment order", error=f"Payment gateway returned HTTP {status}") from e
        except requests.RequestException as e:
            logger.error(f"Gateway request failed for receipt {receipt}: {type(e).__name__}")
            raise UpstreamError("Failed to create payment order", error="Payment gateway unreachable") from e

        logger.info(f"Gateway order {data.get('id')} created for receipt {receipt}")
        return GatewayOrder(
            id=data["id"],
            amount=data.get("amount", amount),
            currency=data.get("currency", currency),
            receipt=data.get("receipt", receipt),
            status=data.get("status"),
            notes=data.get("notes") or {},
        )
