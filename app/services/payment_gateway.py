"""
Payment gateway client.

Thin aiohttp client for a NOWPayments-compatible crypto gateway. Every
call carries a bounded timeout; timeouts and HTTP errors surface as
UpstreamFailureError and are never retried here.
"""

import asyncio
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

import aiohttp
from loguru import logger

from app.config.settings import settings
from app.utils.exceptions import UpstreamFailureError


@dataclass(frozen=True)
class GatewayPayment:
    """Payment created at the gateway."""

    payment_id: str
    pay_address: str
    pay_currency: str
    status: str


class PaymentGatewayClient:
    """NOWPayments-compatible gateway client."""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout_seconds: float | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        """
        Initialize gateway client.

        Args:
            base_url: API base URL (defaults to settings)
            api_key: API key (defaults to settings)
            timeout_seconds: Per-call timeout (defaults to settings)
            session: Optional shared aiohttp session
        """
        self.base_url = (base_url or settings.payment_gateway_url).rstrip("/")
        self.api_key = api_key or settings.payment_gateway_api_key
        self.timeout = aiohttp.ClientTimeout(
            total=timeout_seconds or settings.payment_gateway_timeout_seconds
        )
        self._session = session
        self._owns_session = session is None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the session if this client created it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    async def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        if not self.api_key:
            raise UpstreamFailureError("Payment gateway is not configured")

        url = f"{self.base_url}/{path.lstrip('/')}"
        session = await self._get_session()

        try:
            async with session.post(
                url,
                json=payload,
                headers={"x-api-key": self.api_key},
                timeout=self.timeout,
            ) as response:
                if response.status >= 400:
                    body = await response.text()
                    logger.error(
                        "Payment gateway returned an error",
                        extra={
                            "url": url,
                            "status": response.status,
                            "body": body[:500],
                        },
                    )
                    raise UpstreamFailureError(
                        f"Payment gateway error: HTTP {response.status}"
                    )
                return await response.json()
        except asyncio.TimeoutError as e:
            logger.error("Payment gateway timed out", extra={"url": url})
            raise UpstreamFailureError("Payment gateway timed out") from e
        except aiohttp.ClientError as e:
            logger.error(
                "Payment gateway request failed",
                extra={"url": url, "error": str(e)},
            )
            raise UpstreamFailureError(
                f"Payment gateway request failed: {e}"
            ) from e

    async def create_payment(
        self,
        order_id: str,
        amount: Decimal,
        price_currency: str,
        pay_currency: str,
        callback_url: str | None = None,
    ) -> GatewayPayment:
        """
        Create a payment at the gateway.

        Args:
            order_id: Our reference (user ID)
            amount: Price amount
            price_currency: Price currency, e.g. USD
            pay_currency: Network/currency the user pays with
            callback_url: IPN callback URL

        Returns:
            GatewayPayment

        Raises:
            UpstreamFailureError: On timeout, HTTP error or malformed response
        """
        payload: dict[str, Any] = {
            "price_amount": float(amount),
            "price_currency": price_currency,
            "pay_currency": pay_currency,
            "order_id": order_id,
        }
        if callback_url:
            payload["ipn_callback_url"] = callback_url

        data = await self._post("payment", payload)

        payment_id = data.get("payment_id")
        pay_address = data.get("pay_address")
        if not payment_id or not pay_address:
            raise UpstreamFailureError("Invalid response from payment gateway")

        return GatewayPayment(
            payment_id=str(payment_id),
            pay_address=str(pay_address),
            pay_currency=str(data.get("pay_currency") or pay_currency).upper(),
            status=str(data.get("payment_status") or "waiting"),
        )
