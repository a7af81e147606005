# apps/wallet/services.py
"""
Ledger operations. Every balance change locks the wallet row and writes
its Transaction inside the same atomic block.
"""
import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from django.db import transaction as db_transaction
from django.db.models import Sum

from core.exceptions import InsufficientFunds, NotFound

from .models import PaymentMethod, Transaction, Wallet, Withdrawal

logger = logging.getLogger("wallet.services")

CENTS = Decimal("0.01")


def to_amount(value) -> Decimal:
    try:
        amount = Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValueError("invalid_amount")
    if amount <= 0:
        raise ValueError("amount_must_be_positive")
    return amount


def get_wallet(user) -> Wallet:
    wallet, _ = Wallet.objects.get_or_create(user=user)
    return wallet


def _locked_wallet(user) -> Wallet:
    Wallet.objects.get_or_create(user=user)
    return Wallet.objects.select_for_update().get(user=user)


# -------------------------
# Credits
# -------------------------
def credit_wallet(user, amount, type=Transaction.Type.EARNING, description="", reference=None, metadata=None):
    """Add ``amount`` to the available balance and record a completed Transaction."""
    amount = to_amount(amount)

    with db_transaction.atomic():
        wallet = _locked_wallet(user)
        wallet.available_balance += amount
        wallet.total_earnings += amount
        wallet.save(update_fields=["available_balance", "total_earnings", "updated_at"])

        tx = Transaction(
            user=user,
            type=type,
            amount=amount,
            status=Transaction.Status.COMPLETED,
            description=description,
            metadata=metadata or {},
        )
        if reference:
            tx.reference = reference
        tx.save()

    logger.info("Credited %s (%s) to user %s, tx=%s", amount, type, user.pk, tx.reference)
    return tx


def record_transaction(user, amount, type, description="", reference=None, metadata=None):
    """Record a completed Transaction that does not move the wallet balance (e.g. a subscription payment)."""
    tx = Transaction(
        user=user,
        type=type,
        amount=to_amount(amount),
        status=Transaction.Status.COMPLETED,
        description=description,
        metadata=metadata or {},
    )
    if reference:
        tx.reference = reference
    tx.save()
    return tx


# -------------------------
# Withdrawals
# -------------------------
def reserved_amount(user) -> Decimal:
    total = Withdrawal.objects.filter(user=user, status=Withdrawal.Status.PENDING).aggregate(s=Sum("amount"))["s"]
    return total or Decimal("0.00")


def request_withdrawal(user, amount, method, account_details=None) -> Withdrawal:
    """
    Queue a withdrawal for admin review. Funds stay in the wallet until an
    admin completes it, but open requests count against the balance.
    """
    amount = to_amount(amount)

    with db_transaction.atomic():
        wallet = _locked_wallet(user)
        spendable = wallet.available_balance - reserved_amount(user)
        if amount > spendable:
            raise InsufficientFunds(
                "Insufficient balance",
                {"requested": str(amount), "available": str(max(spendable, Decimal("0.00")))},
            )

        withdrawal = Withdrawal.objects.create(
            user=user,
            amount=amount,
            method=method,
            account_details=account_details or {},
        )

    logger.info("Withdrawal %s of %s requested by user %s", withdrawal.id, amount, user.pk)
    return withdrawal


def debit_for_withdrawal(withdrawal: Withdrawal) -> Transaction:
    """Take a completed withdrawal's amount out of the wallet. Caller holds the transaction."""
    wallet = _locked_wallet(withdrawal.user)
    if wallet.available_balance < withdrawal.amount:
        raise InsufficientFunds(
            "Insufficient balance to complete withdrawal",
            {"withdrawalId": withdrawal.id, "available": str(wallet.available_balance)},
        )

    wallet.available_balance -= withdrawal.amount
    wallet.total_withdrawn += withdrawal.amount
    wallet.save(update_fields=["available_balance", "total_withdrawn", "updated_at"])

    return Transaction.objects.create(
        user=withdrawal.user,
        type=Transaction.Type.WITHDRAWAL,
        amount=withdrawal.amount,
        status=Transaction.Status.COMPLETED,
        description=f"Withdrawal via {withdrawal.method}",
        reference=f"withdrawal-{withdrawal.id}",
        metadata={"withdrawal_id": withdrawal.id},
    )


# -------------------------
# Payment methods
# -------------------------
def add_payment_method(user, type, details, is_primary=False) -> PaymentMethod:
    with db_transaction.atomic():
        has_any = PaymentMethod.objects.select_for_update().filter(user=user).exists()
        method = PaymentMethod.objects.create(
            user=user,
            type=type,
            details=details,
            is_primary=is_primary or not has_any,
        )
        if method.is_primary:
            PaymentMethod.objects.filter(user=user).exclude(pk=method.pk).update(is_primary=False)
    return method


def set_primary_payment_method(user, method_id) -> PaymentMethod:
    with db_transaction.atomic():
        method = PaymentMethod.objects.select_for_update().filter(pk=method_id, user=user).first()
        if method is None:
            raise NotFound("Payment method not found")

        method.is_primary = True
        method.save(update_fields=["is_primary"])
        PaymentMethod.objects.filter(user=user).exclude(pk=method.pk).update(is_primary=False)
    return method


def remove_payment_method(user, method_id):
    with db_transaction.atomic():
        method = PaymentMethod.objects.select_for_update().filter(pk=method_id, user=user).first()
        if method is None:
            raise NotFound("Payment method not found")

        was_primary = method.is_primary
        method.delete()

        if was_primary:
            successor = PaymentMethod.objects.filter(user=user).order_by("created_at").first()
            if successor:
                successor.is_primary = True
                successor.save(update_fields=["is_primary"])
