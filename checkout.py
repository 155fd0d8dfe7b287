"""Stripe Checkout over its REST API."""
import logging
from typing import Optional
from urllib.parse import quote

import httpx
from pydantic import BaseModel

import config
from errors import InvalidInput, Upstream

logger = logging.getLogger(__name__)


class CheckoutOutcome(BaseModel):
    paid: bool
    transaction_id: Optional[str] = None
    amount: int = 0  # minor units, as reported by the provider
    payer_email: Optional[str] = None


def _safe_json(resp: httpx.Response) -> dict:
    try:
        return resp.json()
    except ValueError:
        txt = (resp.text or "")[:600]
        raise Upstream(f"Non-JSON response from payment provider. HTTP {resp.status_code}. Body: {txt}")


class StripeCheckout:
    def __init__(self, secret_key: str, api_base: str = "https://api.stripe.com/v1",
                 currency: str = "usd", timeout: float = 25.0,
                 transport: Optional[httpx.BaseTransport] = None):
        self.secret_key = secret_key
        self.api_base = api_base.rstrip("/")
        self.currency = currency
        self.timeout = timeout
        self.transport = transport

    def _request(self, method: str, path: str, data: Optional[dict] = None) -> dict:
        if not self.secret_key:
            raise Upstream("STRIPE_SECRET_KEY missing")
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                resp = client.request(
                    method,
                    f"{self.api_base}{path}",
                    data=data,
                    headers={"Authorization": f"Bearer {self.secret_key}"},
                )
        except httpx.HTTPError as exc:
            logger.error("Payment provider call %s %s failed: %s", method, path, exc)
            raise Upstream("Payment provider unavailable")

        body = _safe_json(resp)
        if resp.status_code in (400, 404):
            message = body.get("error", {}).get("message", "Rejected by payment provider")
            raise InvalidInput(message)
        if resp.status_code >= 400:
            logger.error("Payment provider returned HTTP %s: %s", resp.status_code, body)
            raise Upstream(f"Payment provider failed. HTTP {resp.status_code}")
        return body

    def create_checkout(self, amount: int, payer_email: Optional[str],
                        success_url: str, cancel_url: str) -> str:
        """Open a one-item checkout session and return its redirect URL.

        ``amount`` is in minor units (cents).
        """
        data = {
            "mode": "payment",
            "payment_method_types[0]": "card",
            "line_items[0][quantity]": "1",
            "line_items[0][price_data][currency]": self.currency,
            "line_items[0][price_data][unit_amount]": str(amount),
            "line_items[0][price_data][product_data][name]": "Donation",
            "success_url": success_url,
            "cancel_url": cancel_url,
        }
        if payer_email:
            data["customer_email"] = payer_email
        session = self._request("POST", "/checkout/sessions", data=data)
        return session["url"]

    def retrieve_outcome(self, session_id: str) -> CheckoutOutcome:
        session = self._request("GET", f"/checkout/sessions/{quote(session_id, safe='')}")
        email = session.get("customer_email") or (session.get("customer_details") or {}).get("email")
        return CheckoutOutcome(
            paid=session.get("payment_status") == "paid",
            transaction_id=session.get("payment_intent"),
            amount=session.get("amount_total") or 0,
            payer_email=email,
        )


def get_checkout_provider() -> StripeCheckout:
    return StripeCheckout(
        config.STRIPE_SECRET_KEY,
        api_base=config.STRIPE_API_BASE,
        currency=config.CURRENCY,
    )
