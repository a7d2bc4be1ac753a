# storefront/core/paypal_client.py
import logging
import uuid
from decimal import Decimal
from typing import Any

import requests
from pydantic import BaseModel
from requests import ConnectionError as RequestsConnectionError, Timeout
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from storefront.core.config import get_settings
from storefront.core.errors import PaymentGatewayError

logger = logging.getLogger(__name__)

settings = get_settings()


def http_retry():
    # Only transport failures are retried; a PayPal 4xx/5xx answer is final.
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.3, min=0.3, max=3),
        retry=retry_if_exception_type((RequestsConnectionError, Timeout)),
    )


class GatewayOrder(BaseModel):
    """Remote payment order created at the gateway."""

    id: str
    status: str


class GatewayCapture(BaseModel):
    """Outcome of capturing a remote payment order."""

    id: str
    status: str
    payer_email: str = ""
    amount: str = "0"


class PayPalClient:
    """
    Minimal PayPal Orders v2 client.

      - generate_access_token(): OAuth2 client-credentials token
      - create_order(price): POST /v2/checkout/orders (intent CAPTURE)
      - capture_payment(order_id): POST /v2/checkout/orders/<id>/capture

    Every POST carries a PayPal-Request-Id so a retried call is not
    executed twice on PayPal's side.
    """

    def __init__(
        self,
        base_url: str | None = None,
        client_id: str | None = None,
        app_secret: str | None = None,
        timeout: float | None = None,
    ):
        self.base_url = (base_url or settings.PAYPAL_API_URL).rstrip("/")
        self.client_id = client_id if client_id is not None else settings.PAYPAL_CLIENT_ID
        self.app_secret = app_secret if app_secret is not None else settings.PAYPAL_APP_SECRET
        self.timeout = timeout or settings.PAYPAL_TIMEOUT_SECONDS

    @staticmethod
    def _handle_response(resp: requests.Response) -> dict[str, Any]:
        if resp.ok:
            return resp.json()
        logger.warning("PayPal responded %s: %s", resp.status_code, resp.text)
        raise PaymentGatewayError(resp.text or f"PayPal error {resp.status_code}")

    def _post(
        self,
        path: str,
        request_id: str,
        json: dict[str, Any] | None = None,
    ) -> requests.Response:
        # One token per call; only the POST itself is retried.
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.generate_access_token()}",
            "PayPal-Request-Id": request_id,
        }
        return self._send(f"{self.base_url}{path}", headers, json)

    @http_retry()
    def _send(
        self,
        url: str,
        headers: dict[str, str],
        json: dict[str, Any] | None,
    ) -> requests.Response:
        logger.info("PayPalClient POST %s", url)
        return requests.post(url, json=json, headers=headers, timeout=self.timeout)

    @http_retry()
    def generate_access_token(self) -> str:
        if not (self.client_id and self.app_secret):
            raise PaymentGatewayError("PayPal credentials are not configured")

        resp = requests.post(
            f"{self.base_url}/v1/oauth2/token",
            data={"grant_type": "client_credentials"},
            auth=(self.client_id, self.app_secret),
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            timeout=self.timeout,
        )
        return self._handle_response(resp)["access_token"]

    def create_order(self, price: Decimal) -> GatewayOrder:
        body = {
            "intent": "CAPTURE",
            "purchase_units": [
                {"amount": {"currency_code": "USD", "value": f"{price:.2f}"}},
            ],
        }
        resp = self._post("/v2/checkout/orders", str(uuid.uuid4()), json=body)
        data = self._handle_response(resp)
        return GatewayOrder(id=data["id"], status=data.get("status", ""))

    def capture_payment(self, order_id: str) -> GatewayCapture:
        resp = self._post(
            f"/v2/checkout/orders/{order_id}/capture", str(uuid.uuid4())
        )
        data = self._handle_response(resp)

        amount = "0"
        units = data.get("purchase_units") or []
        if units:
            captures = (units[0].get("payments") or {}).get("captures") or []
            if captures:
                amount = str((captures[0].get("amount") or {}).get("value", "0"))

        return GatewayCapture(
            id=data["id"],
            status=data.get("status", ""),
            payer_email=(data.get("payer") or {}).get("email_address", ""),
            amount=amount,
        )
