"""
Payment gateway adapters.

The payment service only needs a binary outcome and an opaque transaction id
from a gateway; how the charge happens is the adapter's business.
"""
import time
from dataclasses import dataclass
from decimal import Decimal
from functools import lru_cache
from typing import Optional

import httpx
import structlog

from shared.config.settings import (
    PAYMENT_GATEWAY_API_KEY,
    PAYMENT_GATEWAY_TIMEOUT_SECONDS,
    PAYMENT_GATEWAY_URL,
)

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class GatewayResult:
    success: bool
    transaction_id: Optional[str] = None


class GatewayUnavailableError(Exception):
    """The gateway could not be reached or answered garbage."""


class PaymentGateway:

    async def charge(self, amount: Decimal) -> GatewayResult:
        raise NotImplementedError


class SimulatedPaymentGateway(PaymentGateway):
    """Approves every charge. Used when no gateway URL is configured."""

    async def charge(self, amount: Decimal) -> GatewayResult:
        logger.info("simulated_gateway_charge", amount=str(amount))
        return GatewayResult(success=True, transaction_id=f"TXN_{int(time.time() * 1000)}")


class HttpPaymentGateway(PaymentGateway):
    """
    Remote gateway speaking JSON over HTTP.

    POST {base_url}/charges with {"amount": "<decimal string>"}; expects
    {"success": bool, "transaction_id": str}. Any non-2xx answer is a decline.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout: float = PAYMENT_GATEWAY_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport

    async def charge(self, amount: Decimal) -> GatewayResult:
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                headers=headers,
                timeout=self.timeout,
                transport=self.transport,
            ) as client:
                resp = await client.post("/charges", json={"amount": str(amount)})
        except httpx.HTTPError as exc:
            raise GatewayUnavailableError(str(exc)) from exc

        try:
            body = resp.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        transaction_id = body.get("transaction_id")
        if resp.is_error:
            logger.warning("gateway_declined", status_code=resp.status_code)
            return GatewayResult(success=False, transaction_id=transaction_id)
        # Only a JSON true approves; "false", 1 or "yes" do not
        return GatewayResult(success=body.get("success") is True, transaction_id=transaction_id)


@lru_cache
def get_payment_gateway() -> PaymentGateway:
    """FastAPI dependency; override it in tests to script gateway outcomes."""
    if PAYMENT_GATEWAY_URL:
        return HttpPaymentGateway(PAYMENT_GATEWAY_URL, api_key=PAYMENT_GATEWAY_API_KEY)
    return SimulatedPaymentGateway()
