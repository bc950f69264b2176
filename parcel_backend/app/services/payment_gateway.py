"""
Payment gateway client.

Creates payment intents through a Stripe-compatible REST API. Calls go
through the shared circuit breaker so a failing gateway is not hammered.
"""

import logging
from typing import Optional

import httpx

from parcel_backend.app.core.config import settings
from parcel_backend.app.core.exceptions import UpstreamFailureError
from parcel_backend.app.core.reliability import CircuitBreaker, CircuitOpenError, payment_circuit_breaker

logger = logging.getLogger("parcel_backend.payments.gateway")


class PaymentGateway:
    """
    Thin async client for `POST /v1/payment_intents`.

    `transport` lets tests plug in an httpx.MockTransport.
    """

    def __init__(
        self,
        api_base: str = None,
        secret_key: str = None,
        timeout: float = None,
        breaker: CircuitBreaker = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.api_base = (api_base or settings.payment_api_base).rstrip("/")
        self.secret_key = secret_key or settings.payment_secret_key
        self.timeout = timeout if timeout is not None else settings.payment_timeout_seconds
        self.breaker = breaker or payment_circuit_breaker
        self.transport = transport

    async def create_intent(self, amount_in_cents: int, currency: str = None) -> str:
        """
        Create a payment intent and return its client secret.

        Raises:
            UpstreamFailureError: Gateway unreachable, erroring, or circuit open
        """
        currency = (currency or settings.payment_default_currency).lower()
        try:
            return await self.breaker.call(self._post_intent, amount_in_cents, currency)
        except CircuitOpenError as e:
            logger.warning("Payment intent skipped: %s", e)
            raise UpstreamFailureError("payment_gateway", "Payment gateway temporarily unavailable")
        except httpx.HTTPError as e:
            logger.error("Payment intent creation failed: %s", e)
            raise UpstreamFailureError("payment_gateway", "Payment gateway request failed")

    async def _post_intent(self, amount_in_cents: int, currency: str) -> str:
        async with httpx.AsyncClient(
            base_url=self.api_base,
            timeout=self.timeout,
            transport=self.transport
        ) as client:
            response = await client.post(
                "/v1/payment_intents",
                data={"amount": str(amount_in_cents), "currency": currency},
                headers={"Authorization": f"Bearer {self.secret_key}"},
            )
            response.raise_for_status()
            client_secret = response.json().get("client_secret")

        if not client_secret:
            raise httpx.DecodingError("Payment intent response has no client_secret")
        return client_secret


def get_payment_gateway() -> PaymentGateway:
    """FastAPI dependency; overridden in tests."""
    return PaymentGateway()
