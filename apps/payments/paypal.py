# apps/payments/paypal.py
"""
Thin PayPal Orders v2 client.

Every transport or API failure surfaces as ``UpstreamPaymentFailure``;
callers decide whether that fails an Order.
"""
import base64
import hashlib
import hmac
import logging
import time
from decimal import Decimal
from functools import lru_cache
from typing import Any, Dict, Optional

import requests
from django.conf import settings
from django.core.signals import setting_changed
from django.dispatch import receiver
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from core.exceptions import UpstreamPaymentFailure

logger = logging.getLogger("payments.paypal")

HTTP_TIMEOUT = 20


# =====================================================
# HTTP SESSION (SAFE, SHARED)
# =====================================================
def get_http_session() -> requests.Session:
    session = requests.Session()

    retries = Retry(
        total=3,
        backoff_factor=0.5,
        status_forcelist=[429, 500, 502, 503, 504],
        allowed_methods=["GET", "POST"],
    )

    adapter = HTTPAdapter(max_retries=retries)
    session.mount("https://", adapter)
    session.mount("http://", adapter)

    session.headers.update({
        "User-Agent": "ProMo-G/1.0",
        "Accept": "application/json",
    })

    return session


# =====================================================
# SECURITY HELPERS
# =====================================================
def sign_webhook_body(body: bytes, secret: str) -> str:
    digest = hmac.new(secret.encode(), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode()


def verify_webhook_signature(body: bytes, secret: str, signature: Optional[str]) -> bool:
    if not secret or not signature:
        return False
    return hmac.compare_digest(sign_webhook_body(body, secret), signature)


# =====================================================
# RESPONSE PARSING
# =====================================================
def parse_order_capture(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Flatten a captured order (capture response or CHECKOUT.ORDER.COMPLETED resource)."""
    capture: Dict[str, Any] = {}
    for unit in payload.get("purchase_units") or []:
        captures = (unit.get("payments") or {}).get("captures") or []
        if captures:
            capture = captures[0]
            break

    payer = payload.get("payer") or {}
    amount = capture.get("amount") or {}
    return {
        "order_status": payload.get("status"),
        "capture_id": capture.get("id"),
        "capture_status": capture.get("status"),
        "capture_time": capture.get("create_time"),
        "payer_id": payer.get("payer_id"),
        "payer_email": payer.get("email_address"),
        "amount": amount.get("value"),
        "currency": amount.get("currency_code"),
    }


def parse_capture_resource(resource: Dict[str, Any]) -> Dict[str, Any]:
    """Flatten a PAYMENT.CAPTURE.* webhook resource."""
    payer = resource.get("payer") or {}
    amount = resource.get("amount") or {}
    return {
        "order_status": None,
        "capture_id": resource.get("id"),
        "capture_status": resource.get("status"),
        "capture_time": resource.get("create_time"),
        "payer_id": payer.get("payer_id"),
        "payer_email": payer.get("email_address"),
        "amount": amount.get("value"),
        "currency": amount.get("currency_code"),
    }


def is_capture_completed(capture: Dict[str, Any]) -> bool:
    if capture.get("capture_status"):
        return capture["capture_status"] == "COMPLETED"
    return capture.get("order_status") == "COMPLETED"


# =====================================================
# CLIENT
# =====================================================
class PayPalClient:
    def __init__(self, client_id: str, client_secret: str, base_url: str, session: Optional[requests.Session] = None):
        self.client_id = client_id
        self.client_secret = client_secret
        self.base_url = base_url.rstrip("/")
        self.session = session or get_http_session()
        self._token: Optional[str] = None
        self._token_expires_at = 0.0

    # -------------------------
    # Transport
    # -------------------------
    def _access_token(self) -> str:
        if self._token and time.monotonic() < self._token_expires_at:
            return self._token

        if not self.client_id or not self.client_secret:
            raise UpstreamPaymentFailure("PayPal credentials are not configured")

        data = self._send(
            "POST",
            "/v1/oauth2/token",
            auth=(self.client_id, self.client_secret),
            data={"grant_type": "client_credentials"},
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
        self._token = data["access_token"]
        # refresh a minute early
        self._token_expires_at = time.monotonic() + max(int(data.get("expires_in", 0)) - 60, 0)
        return self._token

    def _send(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            resp = self.session.request(method, url, timeout=HTTP_TIMEOUT, **kwargs)
        except requests.RequestException as exc:
            logger.warning("PayPal %s %s failed: %s", method, path, exc)
            raise UpstreamPaymentFailure("Payment provider unreachable", {"path": path})

        try:
            body = resp.json()
        except ValueError:
            body = {}

        if resp.status_code >= 400:
            logger.warning("PayPal %s %s returned %s: %s", method, path, resp.status_code, body)
            raise UpstreamPaymentFailure(
                body.get("message") or "Payment provider rejected the request",
                {"status": resp.status_code, "name": body.get("name"), "debugId": body.get("debug_id")},
            )

        return body

    def _api(self, method: str, path: str, payload: Optional[dict] = None) -> Dict[str, Any]:
        headers = {
            "Authorization": f"Bearer {self._access_token()}",
            "Content-Type": "application/json",
        }
        return self._send(method, path, json=payload, headers=headers)

    # -------------------------
    # Orders v2
    # -------------------------
    def create_order(self, amount: Decimal, currency: str, tier: str, reference: str) -> Dict[str, Any]:
        payload = {
            "intent": "CAPTURE",
            "purchase_units": [{
                "reference_id": reference,
                "custom_id": tier,
                "description": f"ProMo-G {tier} subscription",
                "amount": {"currency_code": currency, "value": f"{amount:.2f}"},
            }],
            "application_context": {
                "brand_name": "ProMo-G",
                "user_action": "PAY_NOW",
                "return_url": settings.PAYPAL_RETURN_URL,
                "cancel_url": settings.PAYPAL_CANCEL_URL,
            },
        }
        data = self._api("POST", "/v2/checkout/orders", payload)
        if not data.get("id"):
            raise UpstreamPaymentFailure("Payment provider returned no order id")
        return data

    def capture_order(self, order_id: str) -> Dict[str, Any]:
        return self._api("POST", f"/v2/checkout/orders/{order_id}/capture", {})

    def get_order(self, order_id: str) -> Dict[str, Any]:
        return self._api("GET", f"/v2/checkout/orders/{order_id}")


def approve_url(order_payload: Dict[str, Any]) -> Optional[str]:
    for link in order_payload.get("links") or []:
        if link.get("rel") in ("approve", "payer-action"):
            return link.get("href")
    return None


@lru_cache(maxsize=1)
def get_paypal_client() -> PayPalClient:
    return PayPalClient(
        settings.PAYPAL_CLIENT_ID,
        settings.PAYPAL_CLIENT_SECRET,
        settings.PAYPAL_BASE_URL,
    )


@receiver(setting_changed)
def _reset_client(sender, setting, **kwargs):
    if setting.startswith("PAYPAL_"):
        get_paypal_client.cache_clear()
