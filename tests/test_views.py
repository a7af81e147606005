import json
from decimal import Decimal
from functools import lru_cache

import pytest
from django.utils import timezone

from apps.accounts.models import User
from apps.dashboard.models import Notification
from apps.gigs.models import Task, UserTask
from apps.payments import paypal as paypal_module
from apps.payments.models import Order
from apps.wallet.models import Wallet

from .conftest import WEBHOOK_SECRET
from .test_bridge import FakePayPal, capture_event

pytestmark = pytest.mark.django_db


def post_json(client, url, data=None, **extra):
    return client.post(url, data=json.dumps(data or {}), content_type="application/json", **extra)


SIGNUP = {
    "name": "Jane Doe",
    "email": "Jane@Example.com",
    "phone": "+254 700 123456",
    "gender": "female",
    "password": "Str0ng!Pass",
    "confirm_password": "Str0ng!Pass",
}


# -----------------------------
# Auth
# -----------------------------
def test_register_starts_in_orientation(client):
    resp = post_json(client, "/api/auth/register/", SIGNUP)

    assert resp.status_code == 201
    body = resp.json()
    assert body["success"] is True
    assert "timestamp" in body
    assert body["data"]["user"]["email"] == "jane@example.com"
    assert body["data"]["user"]["phone"] == "+254700123456"
    assert body["data"]["user"]["approvalStatus"] == "pending"
    assert body["data"]["access"]["rule"] == "orientation"

    user = User.objects.get(email="jane@example.com")
    assert Wallet.objects.filter(user=user).exists()
    assert user.check_password("Str0ng!Pass")


def test_register_with_referral_code(client, new_user):
    resp = post_json(client, "/api/auth/register/", {**SIGNUP, "referral_code": new_user.referral_code.lower()})
    assert resp.status_code == 201
    assert User.objects.get(email="jane@example.com").referred_by == new_user


def test_register_validation_errors(client, new_user):
    resp = post_json(client, "/api/auth/register/", {**SIGNUP, "password": "weak", "confirm_password": "weak"})
    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["error"]["code"] == "VALIDATION_ERROR"
    assert "password" in body["error"]["details"]
    assert body["path"] == "/api/auth/register/"

    resp = post_json(client, "/api/auth/register/", {**SIGNUP, "referral_code": "PMG-NOPE"})
    assert "referral_code" in resp.json()["error"]["details"]

    resp = post_json(client, "/api/auth/register/", {**SIGNUP, "email": new_user.email})
    assert "email" in resp.json()["error"]["details"]


def test_malformed_json_is_a_bad_request(client):
    resp = client.post("/api/auth/register/", data="{not json", content_type="application/json")
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "BAD_REQUEST"


def test_login_and_me(client, new_user):
    resp = post_json(client, "/api/auth/login/", {"email": new_user.email, "password": "Str0ng!Pass"})
    assert resp.status_code == 200
    assert resp.json()["data"]["user"]["id"] == new_user.id

    me = client.get("/api/auth/me/")
    assert me.status_code == 200
    assert me.json()["data"]["access"]["rule"] == "orientation"


def test_login_with_wrong_password(client, new_user):
    resp = post_json(client, "/api/auth/login/", {"email": new_user.email, "password": "wrong"})
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "INVALID_CREDENTIALS"


def test_anonymous_requests_are_unauthorized(client):
    for url in ("/api/auth/me/", "/api/wallet/", "/api/tasks/", "/api/admin/stats/"):
        resp = client.get(url)
        assert resp.status_code == 401, url
        assert resp.json()["error"]["code"] == "UNAUTHORIZED"


def test_plans_are_public(client):
    resp = client.get("/api/auth/plans/")
    assert resp.status_code == 200
    assert [p["tier"] for p in resp.json()["data"]["plans"]][-1] == "vip"


# -----------------------------
# Gating
# -----------------------------
def test_orientation_user_is_kept_out_of_wallet(client, new_user):
    client.force_login(new_user)
    resp = client.get("/api/wallet/")
    assert resp.status_code == 403
    assert resp.json()["error"]["code"] == "ACCESS_DENIED"
    assert resp.json()["error"]["details"] == {"rule": "orientation"}


def test_awaiting_user_cannot_list_tasks(client, make_user):
    client.force_login(make_user(tier="gold", oriented=True))
    resp = client.get("/api/tasks/")
    assert resp.status_code == 403
    assert resp.json()["error"]["details"]["rule"] == "awaiting_approval"


def test_full_user_reaches_wallet_and_home(client, silver_user):
    client.force_login(silver_user)
    assert client.get("/api/wallet/").status_code == 200

    home = client.get("/api/dashboard/").json()["data"]
    assert home["access"]["dailyQuota"] == 5
    assert home["wallet"]["availableBalance"] is not None


def test_orientation_flow_over_http(client, new_user, make_task):
    task = make_task(category="main", is_orientation=True)
    client.force_login(new_user)

    listing = client.get("/api/tasks/?category=main").json()["data"]
    assert listing["orientationMode"] is True
    assert [t["id"] for t in listing["tasks"]] == [task.id]
    assert listing["tasks"][0]["completed"] is False

    resp = post_json(client, f"/api/tasks/{task.id}/start/")
    assert resp.status_code == 201
    assert resp.json()["data"]["orientationStatus"]["main"]["completed_tasks"] == [task.id]


def test_quota_exceeded_maps_to_429(client, silver_user, make_task):
    task = make_task(category="main")
    for _ in range(5):
        UserTask.objects.create(user=silver_user, task=task, started_at=timezone.now())

    client.force_login(silver_user)
    resp = post_json(client, f"/api/tasks/{task.id}/start/")
    assert resp.status_code == 429
    assert resp.json()["error"]["code"] == "QUOTA_EXCEEDED"


def test_withdrawal_request_over_http(client, silver_user):
    client.force_login(silver_user)
    resp = post_json(client, "/api/wallet/withdrawals/", {
        "amount": "10.00", "method": "paypal", "account_details": {"email": "me@example.com"},
    })
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "INSUFFICIENT_FUNDS"


def test_notifications_can_be_marked_read(client, silver_user):
    note = Notification.objects.create(user=silver_user, title="Hello", message="World")
    client.force_login(silver_user)

    assert len(client.get("/api/dashboard/notifications/?unread=1").json()["data"]["notifications"]) == 1
    assert post_json(client, f"/api/dashboard/notifications/{note.id}/read/").status_code == 200
    assert client.get("/api/dashboard/notifications/?unread=1").json()["data"]["notifications"] == []
    assert post_json(client, "/api/dashboard/notifications/999999/read/").status_code == 404


# -----------------------------
# Admin
# -----------------------------
def test_admin_endpoints_reject_regular_users(client, silver_user):
    client.force_login(silver_user)
    resp = client.get("/api/admin/stats/")
    assert resp.status_code == 403
    assert resp.json()["error"]["code"] == "ACCESS_DENIED"


def test_admin_approves_user(client, admin_user, make_user):
    pending = make_user(tier="gold", oriented=True)
    client.force_login(admin_user)

    stats = client.get("/api/admin/stats/").json()["data"]
    assert stats["pendingApprovals"] == 1

    resp = post_json(client, f"/api/admin/users/{pending.id}/approve/")
    assert resp.status_code == 200
    assert resp.json()["data"]["approvalStatus"] == "approved"
    assert Notification.objects.filter(user=pending, title="Account Approved").exists()

    assert post_json(client, "/api/admin/users/999999/approve/").status_code == 404


def test_admin_creates_and_deactivates_task(client, admin_user):
    client.force_login(admin_user)
    resp = post_json(client, "/api/admin/tasks/", {
        "title": "Rate a playlist", "category": "social", "reward": "3.50", "min_tier": "silver",
    })
    assert resp.status_code == 201
    task_id = resp.json()["data"]["id"]
    assert Task.objects.get(pk=task_id).min_duration == 150

    resp = post_json(client, f"/api/admin/tasks/{task_id}/", {"reward": "4.00"})
    assert resp.json()["data"]["reward"] == "4.00"

    post_json(client, f"/api/admin/tasks/{task_id}/deactivate/")
    assert Task.objects.get(pk=task_id).is_active is False


def test_replayed_task_approval_is_a_conflict(client, admin_user, silver_user, make_task):
    attempt = UserTask.objects.create(
        user=silver_user, task=make_task(category="main", reward="25.00"), started_at=timezone.now()
    )
    client.force_login(admin_user)

    assert post_json(client, f"/api/admin/user-tasks/{attempt.id}/approve/").status_code == 200
    resp = post_json(client, f"/api/admin/user-tasks/{attempt.id}/approve/")
    assert resp.status_code == 409
    assert resp.json()["error"]["code"] == "ALREADY_PROCESSED"


# -----------------------------
# Payments
# -----------------------------
def test_checkout_over_http(client, make_user, monkeypatch):
    fake = FakePayPal()
    monkeypatch.setattr(paypal_module, "get_paypal_client", lru_cache(maxsize=1)(lambda: fake))
    user = make_user(oriented=True)
    client.force_login(user)

    resp = post_json(client, "/api/payments/checkout/", {"tier": "gold"})
    assert resp.status_code == 201
    data = resp.json()["data"]
    assert Decimal(data["order"]["amount"]) == Decimal("75")
    assert data["approveUrl"].endswith("ORDER-1")

    resp = post_json(client, f"/api/payments/orders/{data['order']['orderId']}/capture/")
    assert resp.status_code == 200
    assert resp.json()["data"]["order"]["status"] == "completed"


def test_checkout_rejects_unknown_tier(client, make_user):
    client.force_login(make_user(oriented=True))
    resp = post_json(client, "/api/payments/checkout/", {"tier": "platinum"})
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"


def test_webhook_requires_valid_signature(client):
    body = json.dumps(capture_event("WH-1", "ORDER-1"))
    resp = client.post(
        "/api/payments/webhooks/paypal/", data=body, content_type="application/json",
        HTTP_PAYPAL_TRANSMISSION_SIG="forged",
    )
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "INVALID_SIGNATURE"


def test_signed_webhook_is_processed(client, make_user):
    user = make_user(oriented=True)
    Order.objects.create(order_id="ORDER-77", user=user, amount="75.00", subscription_tier="gold")
    body = json.dumps(capture_event("WH-77", "ORDER-77")).encode()
    signature = paypal_module.sign_webhook_body(body, WEBHOOK_SECRET)

    resp = client.post(
        "/api/payments/webhooks/paypal/", data=body, content_type="application/json",
        HTTP_PAYPAL_TRANSMISSION_SIG=signature,
    )
    assert resp.status_code == 200
    assert resp.json()["data"] == {"received": True, "result": "processed"}
    assert User.objects.get(pk=user.pk).subscription_tier == "gold"
