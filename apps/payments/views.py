import logging

from django.conf import settings
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from apps.accounts.decorators import capability_required
from core.responses import api_endpoint, api_error, api_success, read_json, validated

from . import bridge, paypal
from .forms import CheckoutForm
from .models import Order, Subscription

logger = logging.getLogger("payments.views")


# =====================================================
# CHECKOUT & CAPTURE
# =====================================================
@require_POST
@capability_required("subscription")
@api_endpoint
def checkout_view(request):
    data = validated(CheckoutForm(read_json(request)))
    order, url = bridge.create_checkout(request.user, data["tier"])
    return api_success({"order": order.to_dict(), "approveUrl": url}, "Order created", status=201)


@require_POST
@capability_required("subscription")
@api_endpoint
def capture_view(request, order_id):
    order = bridge.capture(request.user, order_id)
    if order.status == Order.Status.FAILED:
        return api_error(
            request,
            "Payment could not be completed",
            502,
            "UPSTREAM_PAYMENT_FAILURE",
            {"order": order.to_dict()},
        )
    return api_success({"order": order.to_dict()}, "Payment processed")


@require_POST
@capability_required("subscription")
@api_endpoint
def retry_view(request, order_id):
    order = bridge.retry_failed_payment(request.user, order_id)
    return api_success({"order": order.to_dict()}, "Order reset for retry")


@require_GET
@capability_required("subscription")
@api_endpoint
def orders_view(request):
    orders = Order.objects.filter(user=request.user)[:50]
    current = Subscription.objects.filter(user=request.user, is_active=True).first()
    return api_success({
        "orders": [o.to_dict() for o in orders],
        "subscription": current.to_dict() if current else None,
    })


# =====================================================
# PROVIDER WEBHOOK (SIGNED, IDEMPOTENT)
# =====================================================
@csrf_exempt
@require_POST
@api_endpoint
def paypal_webhook_view(request):
    signature = request.headers.get("Paypal-Transmission-Sig")
    if not paypal.verify_webhook_signature(request.body, settings.PAYPAL_WEBHOOK_SECRET, signature):
        logger.warning("Rejected PayPal webhook with invalid signature")
        return api_error(request, "Invalid webhook signature", 401, "INVALID_SIGNATURE")

    result = bridge.handle_webhook_event(read_json(request))
    return api_success({"received": True, "result": result}, "Webhook processed successfully")
