import json
from decimal import Decimal

import pytest
import responses

from apps.payments import paypal
from apps.payments.paypal import PayPalClient
from core.exceptions import UpstreamPaymentFailure

BASE = "https://api-m.sandbox.paypal.test"


@pytest.fixture
def client():
    return PayPalClient("client-id", "client-secret", BASE)


def _token():
    responses.add(
        responses.POST,
        f"{BASE}/v1/oauth2/token",
        json={"access_token": "TOKEN-1", "expires_in": 32400},
    )


# -------------------------
# Signatures
# -------------------------
def test_signature_round_trip():
    body = b'{"id": "WH-1"}'
    signature = paypal.sign_webhook_body(body, "secret")
    assert paypal.verify_webhook_signature(body, "secret", signature)


def test_signature_mismatch_is_rejected():
    body = b'{"id": "WH-1"}'
    signature = paypal.sign_webhook_body(body, "secret")
    assert not paypal.verify_webhook_signature(b'{"id": "WH-2"}', "secret", signature)
    assert not paypal.verify_webhook_signature(body, "other", signature)
    assert not paypal.verify_webhook_signature(body, "secret", None)
    assert not paypal.verify_webhook_signature(body, "", signature)


# -------------------------
# Client
# -------------------------
@responses.activate
def test_create_order_authenticates_and_posts(client, settings):
    settings.PAYPAL_RETURN_URL = "https://promog.test/return"
    _token()
    responses.add(
        responses.POST,
        f"{BASE}/v2/checkout/orders",
        json={"id": "ORDER-1", "status": "CREATED", "links": [
            {"rel": "self", "href": f"{BASE}/v2/checkout/orders/ORDER-1"},
            {"rel": "approve", "href": "https://www.sandbox.paypal.test/checkoutnow?token=ORDER-1"},
        ]},
        status=201,
    )

    payload = client.create_order(Decimal("75"), "USD", "gold", reference="user-1")

    assert payload["id"] == "ORDER-1"
    assert paypal.approve_url(payload).endswith("token=ORDER-1")

    order_call = responses.calls[1]
    assert order_call.request.headers["Authorization"] == "Bearer TOKEN-1"
    sent = json.loads(order_call.request.body)
    assert sent["intent"] == "CAPTURE"
    assert sent["purchase_units"][0]["amount"] == {"currency_code": "USD", "value": "75.00"}
    assert sent["purchase_units"][0]["custom_id"] == "gold"
    assert sent["application_context"]["return_url"] == "https://promog.test/return"


@responses.activate
def test_token_is_reused(client):
    _token()
    responses.add(responses.GET, f"{BASE}/v2/checkout/orders/ORDER-1", json={"id": "ORDER-1", "status": "APPROVED"})

    client.get_order("ORDER-1")
    client.get_order("ORDER-1")

    token_calls = [c for c in responses.calls if c.request.url.endswith("/v1/oauth2/token")]
    assert len(token_calls) == 1


@responses.activate
def test_api_errors_become_upstream_failures(client):
    _token()
    responses.add(
        responses.POST,
        f"{BASE}/v2/checkout/orders/ORDER-1/capture",
        json={"name": "UNPROCESSABLE_ENTITY", "message": "Instrument declined", "debug_id": "abc"},
        status=422,
    )

    with pytest.raises(UpstreamPaymentFailure) as excinfo:
        client.capture_order("ORDER-1")
    assert excinfo.value.message == "Instrument declined"
    assert excinfo.value.details["status"] == 422


@responses.activate
def test_unreachable_provider_is_an_upstream_failure(client):
    with pytest.raises(UpstreamPaymentFailure):
        client.get_order("ORDER-1")


def test_missing_credentials_fail_without_a_request():
    with pytest.raises(UpstreamPaymentFailure):
        PayPalClient("", "", BASE).get_order("ORDER-1")


# -------------------------
# Parsing
# -------------------------
def test_parse_order_capture():
    details = paypal.parse_order_capture({
        "id": "ORDER-1",
        "status": "COMPLETED",
        "payer": {"payer_id": "P-1", "email_address": "buyer@example.com"},
        "purchase_units": [{"payments": {"captures": [{
            "id": "CAP-1",
            "status": "COMPLETED",
            "create_time": "2026-01-01T10:00:00Z",
            "amount": {"value": "75.00", "currency_code": "USD"},
        }]}}],
    })
    assert details["capture_id"] == "CAP-1"
    assert details["payer_email"] == "buyer@example.com"
    assert details["amount"] == "75.00"
    assert paypal.is_capture_completed(details)


def test_pending_capture_is_not_completed():
    details = paypal.parse_capture_resource({"id": "CAP-1", "status": "PENDING"})
    assert not paypal.is_capture_completed(details)
    assert paypal.is_capture_completed({"order_status": "COMPLETED"})


def test_client_is_rebuilt_when_settings_change(settings):
    settings.PAYPAL_CLIENT_ID = "first"
    assert paypal.get_paypal_client().client_id == "first"
    settings.PAYPAL_CLIENT_ID = "second"
    assert paypal.get_paypal_client().client_id == "second"
