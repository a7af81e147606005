import logging

from django.views.decorators.http import require_GET, require_http_methods, require_POST

from apps.accounts.decorators import capability_required
from core.responses import api_endpoint, api_success, read_json, validated

from . import services
from .forms import PaymentMethodForm, WithdrawalRequestForm
from .models import PaymentMethod, Transaction, Withdrawal

logger = logging.getLogger("wallet.views")

RECENT_LIMIT = 50


# ============================================================
# BALANCE & LEDGER
# ============================================================
@require_GET
@capability_required("wallet")
@api_endpoint
def wallet_view(request):
    wallet = services.get_wallet(request.user)
    recent = Transaction.objects.filter(user=request.user)[:10]
    return api_success({
        "wallet": wallet.to_dict(),
        "reserved": str(services.reserved_amount(request.user)),
        "recentTransactions": [t.to_dict() for t in recent],
    })


@require_GET
@capability_required("wallet")
@api_endpoint
def transactions_view(request):
    qs = Transaction.objects.filter(user=request.user)
    tx_type = request.GET.get("type")
    if tx_type:
        qs = qs.filter(type=tx_type)
    return api_success({"transactions": [t.to_dict() for t in qs[:RECENT_LIMIT]]})


# ============================================================
# WITHDRAWALS
# ============================================================
@require_http_methods(["GET", "POST"])
@capability_required("wallet")
@api_endpoint
def withdrawals_view(request):
    if request.method == "GET":
        qs = Withdrawal.objects.filter(user=request.user)[:RECENT_LIMIT]
        return api_success({"withdrawals": [w.to_dict() for w in qs]})

    data = validated(WithdrawalRequestForm(read_json(request)))
    withdrawal = services.request_withdrawal(
        request.user,
        data["amount"],
        data["method"],
        data["account_details"],
    )
    return api_success(withdrawal.to_dict(), "Withdrawal request submitted", status=201)


# ============================================================
# PAYMENT METHODS
# ============================================================
@require_http_methods(["GET", "POST"])
@capability_required("wallet")
@api_endpoint
def payment_methods_view(request):
    if request.method == "GET":
        qs = PaymentMethod.objects.filter(user=request.user)
        return api_success({"paymentMethods": [m.to_dict() for m in qs]})

    data = validated(PaymentMethodForm(read_json(request)))
    method = services.add_payment_method(request.user, data["type"], data["details"], data["is_primary"])
    return api_success(method.to_dict(), "Payment method added", status=201)


@require_POST
@capability_required("wallet")
@api_endpoint
def payment_method_primary_view(request, method_id):
    method = services.set_primary_payment_method(request.user, method_id)
    return api_success(method.to_dict(), "Primary payment method updated")


@require_http_methods(["DELETE", "POST"])
@capability_required("wallet")
@api_endpoint
def payment_method_delete_view(request, method_id):
    services.remove_payment_method(request.user, method_id)
    return api_success(None, "Payment method removed")
