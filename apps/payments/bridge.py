# apps/payments/bridge.py
"""
Payment-to-Subscription Bridge.

Order state machine: pending -> completed | failed | refunded, plus
failed -> pending on an explicit retry. Confirming a completed capture
writes the Order, the Subscription, the user's tier and approval reset,
the payment Transaction and any referral bonus in one transaction, and
does nothing on a replay.
"""
import logging
from datetime import timedelta
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.accounts.models import ApprovalStatus, Role, User
from apps.accounts.tiers import get_catalog, parse_tier
from apps.dashboard.notifications import notify_user
from apps.wallet.models import Transaction
from apps.wallet.services import credit_wallet, record_transaction
from core.exceptions import InvalidTransition, NotFound, UpstreamPaymentFailure

from . import paypal
from .models import Order, Subscription, WebhookEvent

logger = logging.getLogger("payments.bridge")

CENTS = Decimal("0.01")

# webhook outcomes
PROCESSED = "processed"
DUPLICATE = "duplicate"
IGNORED = "ignored"
UNKNOWN_ORDER = "unknown_order"


def _locked_order(order_id) -> Order:
    order = Order.objects.select_for_update().filter(order_id=order_id).first()
    if order is None:
        raise NotFound("Order not found", {"orderId": order_id})
    return order


# =====================================================
# CHECKOUT
# =====================================================
def create_checkout(user, tier, client=None):
    """Open a provider order for the tier's catalog price. Returns (order, approve_url)."""
    tier = parse_tier(tier)
    price = get_catalog().price(tier)
    currency = settings.PAYMENT_CURRENCY
    client = client or paypal.get_paypal_client()

    payload = client.create_order(price, currency, tier, reference=f"user-{user.pk}")
    url = paypal.approve_url(payload)

    order = Order.objects.create(
        order_id=payload["id"],
        user=user,
        amount=price,
        currency=currency,
        subscription_tier=tier,
        metadata={"providerStatus": payload.get("status"), "approveUrl": url},
    )
    logger.info("Checkout %s opened for user %s (%s, %s %s)", order.order_id, user.pk, tier, price, currency)
    return order, url


def capture(user, order_id, client=None) -> Order:
    """
    Capture an approved order on behalf of its owner.

    A provider failure marks the Order failed and notifies the user; the
    failed Order is returned rather than raised.
    """
    order = Order.objects.filter(order_id=order_id, user=user).first()
    if order is None:
        raise NotFound("Order not found", {"orderId": order_id})

    if order.status == Order.Status.COMPLETED:
        return order

    if order.status != Order.Status.PENDING:
        raise InvalidTransition(
            f"Order is {order.status} and cannot be captured",
            {"orderId": order_id, "status": order.status},
        )

    client = client or paypal.get_paypal_client()
    try:
        payload = client.capture_order(order_id)
    except UpstreamPaymentFailure as exc:
        fail_order(order_id, reason=exc.message)
        order.refresh_from_db()
        return order

    details = paypal.parse_order_capture(payload)
    if paypal.is_capture_completed(details):
        order, _ = confirm_capture(order_id, details)
    elif details.get("capture_status") in ("DECLINED", "FAILED"):
        fail_order(order_id, reason=details["capture_status"])
        order.refresh_from_db()
    else:
        logger.info("Order %s captured with status %s; awaiting provider confirmation", order_id, details)

    return order


# =====================================================
# CONFIRMATION
# =====================================================
def confirm_capture(order_id, capture: dict):
    """
    Apply a completed capture. Returns ``(order, applied)``; ``applied`` is
    False when the Order had already been completed (or left pending).
    """
    with transaction.atomic():
        order = _locked_order(order_id)

        if order.status == Order.Status.COMPLETED:
            logger.info("Capture for order %s replayed; nothing to do", order_id)
            return order, False

        if order.status != Order.Status.PENDING:
            raise InvalidTransition(
                f"Order is {order.status} and cannot complete",
                {"orderId": order_id, "status": order.status},
            )

        if capture.get("amount") and Decimal(str(capture["amount"])) != order.amount:
            logger.warning(
                "Order %s captured %s but was opened for %s", order_id, capture["amount"], order.amount
            )

        order.status = Order.Status.COMPLETED
        order.capture_id = capture.get("capture_id") or ""
        order.payer_id = capture.get("payer_id") or order.payer_id
        order.payer_email = capture.get("payer_email") or order.payer_email
        order.metadata = {
            **order.metadata,
            "captureId": capture.get("capture_id"),
            "captureTime": capture.get("capture_time"),
            "captureAmount": capture.get("amount"),
        }
        order.save()

        subscription = _activate_subscription(order)

    logger.info(
        "Order %s completed: user %s now %s until %s (pending approval)",
        order.order_id, order.user_id, subscription.tier, subscription.expires_at,
    )
    notify_user(
        order.user,
        "Payment Successful",
        f"Your {order.subscription_tier} subscription has been activated successfully. "
        "An administrator will review your account shortly.",
        "success",
    )
    return order, True


def _activate_subscription(order) -> Subscription:
    """Caller holds the transaction and the Order lock."""
    user = User.objects.select_for_update().get(pk=order.user_id)
    now = timezone.now()
    expires_at = now + timedelta(days=settings.SUBSCRIPTION_PERIOD_DAYS)

    Subscription.objects.filter(user=user, is_active=True).update(is_active=False)
    subscription = Subscription.objects.create(
        user=user,
        order=order,
        tier=order.subscription_tier,
        amount=order.amount,
        payment_method="paypal",
        payment_reference=order.capture_id or order.order_id,
        expires_at=expires_at,
    )

    user.subscription_tier = order.subscription_tier
    user.subscription_expiry = expires_at
    update_fields = ["subscription_tier", "subscription_expiry", "updated_at"]
    if user.role != Role.ADMIN:
        # a fresh purchase always goes back through admin review
        user.approval_status = ApprovalStatus.PENDING
        user.approval_updated_at = now
        update_fields += ["approval_status", "approval_updated_at"]
    user.save(update_fields=update_fields)

    record_transaction(
        user,
        order.amount,
        Transaction.Type.SUBSCRIPTION,
        description=f"{order.subscription_tier} subscription",
        reference=f"subscription-{order.order_id}",
        metadata={"order_id": order.order_id},
    )

    if user.referred_by_id:
        _credit_referral_bonus(user, order)

    return subscription


def _credit_referral_bonus(user, order):
    rate = Decimal(str(settings.REFERRAL_BONUS_RATE))
    bonus = (order.amount * rate).quantize(CENTS, rounding=ROUND_HALF_UP)
    if bonus <= 0:
        return

    credit_wallet(
        user.referred_by,
        bonus,
        type=Transaction.Type.REFERRAL,
        description=f"Referral bonus for {user.name or user.email}",
        reference=f"referral-{order.order_id}",
        metadata={"order_id": order.order_id, "referred_user_id": user.id},
    )
    notify_user(
        user.referred_by,
        "Referral Bonus",
        f"You earned {bonus} {order.currency} because {user.name or user.email} subscribed.",
        "success",
    )


# =====================================================
# FAILURE, REFUND, RETRY
# =====================================================
def fail_order(order_id, reason: str = "") -> bool:
    """pending -> failed. The user's tier is left untouched."""
    with transaction.atomic():
        order = _locked_order(order_id)
        if order.status != Order.Status.PENDING:
            logger.info("Order %s is %s; failure ignored", order_id, order.status)
            return False

        order.status = Order.Status.FAILED
        order.metadata = {
            **order.metadata,
            "failureReason": reason,
            "failureTime": timezone.now().isoformat(),
        }
        order.save(update_fields=["status", "metadata", "updated_at"])

    logger.warning("Order %s failed: %s", order_id, reason)
    notify_user(
        order.user,
        "Payment Failed",
        "Your payment was declined. Please try again with a different payment method.",
        "error",
    )
    return True


def refund_order(order_id, reason: str = "") -> bool:
    """completed -> refunded; the linked subscription stops granting its tier."""
    with transaction.atomic():
        order = _locked_order(order_id)
        if order.status != Order.Status.COMPLETED:
            logger.info("Order %s is %s; refund ignored", order_id, order.status)
            return False

        order.status = Order.Status.REFUNDED
        order.metadata = {**order.metadata, "refundReason": reason, "refundTime": timezone.now().isoformat()}
        order.save(update_fields=["status", "metadata", "updated_at"])

        subscription = Subscription.objects.select_for_update().filter(order=order).first()
        if subscription is not None and subscription.is_active:
            subscription.is_active = False
            subscription.save(update_fields=["is_active"])

            user = User.objects.select_for_update().get(pk=order.user_id)
            if not Subscription.objects.filter(user=user, is_active=True).exists() and user.role != Role.ADMIN:
                user.subscription_tier = None
                user.subscription_expiry = None
                user.save(update_fields=["subscription_tier", "subscription_expiry", "updated_at"])

    logger.info("Order %s refunded", order_id)
    notify_user(
        order.user,
        "Payment Refunded",
        f"Your payment for the {order.subscription_tier} subscription was refunded.",
        "warning",
    )
    return True


def retry_failed_payment(user, order_id) -> Order:
    with transaction.atomic():
        order = Order.objects.select_for_update().filter(order_id=order_id, user=user).first()
        if order is None:
            raise NotFound("Order not found", {"orderId": order_id})
        if order.status != Order.Status.FAILED:
            raise InvalidTransition("Only failed orders can be retried", {"status": order.status})

        attempt = int(order.metadata.get("retryAttempt", 0)) + 1
        order.status = Order.Status.PENDING
        order.metadata = {**order.metadata, "retryAttempt": attempt, "retryTime": timezone.now().isoformat()}
        order.save(update_fields=["status", "metadata", "updated_at"])

    logger.info("Order %s reset for retry #%s", order_id, attempt)
    notify_user(
        user,
        "Payment Retry",
        "Your payment is being retried. Please complete the checkout again.",
        "info",
    )
    return order


# =====================================================
# WEBHOOKS
# =====================================================
def _order_id_of_capture(resource) -> str:
    return (((resource.get("supplementary_data") or {}).get("related_ids") or {}).get("order_id")) or ""


def _on_capture_completed(resource):
    order_id = _order_id_of_capture(resource)
    if not order_id:
        return IGNORED
    if not Order.objects.filter(order_id=order_id).exists():
        return UNKNOWN_ORDER
    _, applied = confirm_capture(order_id, paypal.parse_capture_resource(resource))
    return PROCESSED if applied else DUPLICATE


def _on_capture_denied(resource):
    order_id = _order_id_of_capture(resource)
    if not order_id:
        return IGNORED
    if not Order.objects.filter(order_id=order_id).exists():
        return UNKNOWN_ORDER
    reason = (resource.get("status_details") or {}).get("reason") or "DENIED"
    return PROCESSED if fail_order(order_id, reason=reason) else IGNORED


def _on_capture_refunded(resource):
    order_id = _order_id_of_capture(resource)
    if not order_id:
        capture_id = ""
        for link in resource.get("links") or []:
            if link.get("rel") == "up":
                capture_id = (link.get("href") or "").rstrip("/").split("/")[-1]
        order = Order.objects.filter(capture_id=capture_id).first() if capture_id else None
        order_id = order.order_id if order else ""

    if not order_id or not Order.objects.filter(order_id=order_id).exists():
        return UNKNOWN_ORDER
    return PROCESSED if refund_order(order_id, reason="PAYMENT.CAPTURE.REFUNDED") else IGNORED


def _on_order_approved(resource):
    with transaction.atomic():
        order = Order.objects.select_for_update().filter(order_id=resource.get("id")).first()
        if order is None:
            return UNKNOWN_ORDER
        order.metadata = {
            **order.metadata,
            "approvedTime": timezone.now().isoformat(),
            "payerInfo": resource.get("payer") or {},
        }
        order.save(update_fields=["metadata", "updated_at"])
    return PROCESSED


def _on_order_completed(resource):
    order_id = resource.get("id")
    if not Order.objects.filter(order_id=order_id).exists():
        return UNKNOWN_ORDER
    details = paypal.parse_order_capture(resource)
    if not paypal.is_capture_completed(details):
        return IGNORED
    _, applied = confirm_capture(order_id, details)
    return PROCESSED if applied else DUPLICATE


WEBHOOK_HANDLERS = {
    "PAYMENT.CAPTURE.COMPLETED": _on_capture_completed,
    "PAYMENT.CAPTURE.DENIED": _on_capture_denied,
    "PAYMENT.CAPTURE.REFUNDED": _on_capture_refunded,
    "CHECKOUT.ORDER.APPROVED": _on_order_approved,
    "CHECKOUT.ORDER.COMPLETED": _on_order_completed,
}


def handle_webhook_event(event: dict) -> str:
    """
    Process one provider event at most once. The event record and its
    effects commit together, so a failed delivery can be retried.
    """
    event_id = event.get("id")
    event_type = event.get("event_type") or ""
    if not event_id:
        raise ValueError("webhook event without id")

    handler = WEBHOOK_HANDLERS.get(event_type)

    with transaction.atomic():
        try:
            with transaction.atomic():
                record = WebhookEvent.objects.create(event_id=event_id, event_type=event_type, payload=event)
        except IntegrityError:
            logger.info("Webhook %s (%s) already processed", event_id, event_type)
            return DUPLICATE

        if handler is None:
            logger.info("Unhandled webhook event type: %s", event_type)
            result = IGNORED
        else:
            try:
                result = handler(event.get("resource") or {})
            except InvalidTransition as exc:
                logger.warning("Webhook %s (%s) not applied: %s", event_id, event_type, exc.message)
                result = IGNORED

        record.result = result
        record.save(update_fields=["result"])

    logger.info("Webhook %s (%s): %s", event_id, event_type, result)
    return result


# =====================================================
# MAINTENANCE
# =====================================================
def reconcile(client=None) -> dict:
    """
    Settle pending orders older than STALE_ORDER_MINUTES against the
    provider, and repair completed orders that never got a Subscription.
    """
    client = client or paypal.get_paypal_client()
    cutoff = timezone.now() - timedelta(minutes=settings.STALE_ORDER_MINUTES)
    summary = {"checked": 0, "completed": 0, "failed": 0, "repaired": 0, "errors": 0}

    for order in Order.objects.filter(status=Order.Status.PENDING, created_at__lt=cutoff):
        summary["checked"] += 1
        try:
            payload = client.get_order(order.order_id)
            status = payload.get("status")

            if status == "APPROVED":
                payload = client.capture_order(order.order_id)
                status = payload.get("status")

            details = paypal.parse_order_capture(payload)
            if status == "COMPLETED" and paypal.is_capture_completed(details):
                _, applied = confirm_capture(order.order_id, details)
                summary["completed"] += applied
            elif status == "VOIDED" or details.get("capture_status") in ("DECLINED", "FAILED"):
                summary["failed"] += fail_order(order.order_id, reason=f"Provider status {status}")
        except UpstreamPaymentFailure as exc:
            summary["errors"] += 1
            logger.warning("Reconcile of order %s deferred: %s", order.order_id, exc.message)

    for order in Order.objects.filter(status=Order.Status.COMPLETED, subscription__isnull=True):
        with transaction.atomic():
            locked = _locked_order(order.order_id)
            if Subscription.objects.filter(order=locked).exists():
                continue
            _activate_subscription(locked)
        summary["repaired"] += 1
        logger.warning("Order %s was completed without a subscription; repaired", order.order_id)

    logger.info("Reconcile finished: %s", summary)
    return summary


def expire_subscriptions() -> int:
    now = timezone.now()
    expired = 0

    for subscription in Subscription.objects.filter(is_active=True, expires_at__lte=now).select_related("user"):
        with transaction.atomic():
            locked = Subscription.objects.select_for_update().get(pk=subscription.pk)
            if not locked.is_active:
                continue
            locked.is_active = False
            locked.save(update_fields=["is_active"])

            user = User.objects.select_for_update().get(pk=locked.user_id)
            still_active = Subscription.objects.filter(user=user, is_active=True, expires_at__gt=now).exists()
            if not still_active and user.role != Role.ADMIN:
                user.subscription_tier = None
                user.subscription_expiry = None
                user.save(update_fields=["subscription_tier", "subscription_expiry", "updated_at"])

        expired += 1
        notify_user(
            subscription.user,
            "Subscription Expired",
            f"Your {subscription.tier} subscription has expired. Renew to keep earning.",
            "warning",
        )

    logger.info("Expired %s subscriptions", expired)
    return expired
