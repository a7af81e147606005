from decimal import Decimal

import pytest
from django.db import IntegrityError

from apps.wallet import services
from apps.wallet.models import PaymentMethod, Transaction, Wallet

pytestmark = pytest.mark.django_db


def test_wallet_is_created_with_the_user(new_user):
    wallet = Wallet.objects.get(user=new_user)
    assert wallet.available_balance == Decimal("0.00")
    assert new_user.referral_code.startswith("PMG-")


def test_credit_updates_balance_and_ledger(silver_user):
    tx = services.credit_wallet(silver_user, "12.345", description="Bonus")

    wallet = services.get_wallet(silver_user)
    assert wallet.available_balance == Decimal("12.35")
    assert wallet.total_earnings == Decimal("12.35")
    assert tx.amount == Decimal("12.35")
    assert tx.status == Transaction.Status.COMPLETED


def test_duplicate_reference_is_refused(silver_user):
    services.credit_wallet(silver_user, "5", reference="task-1")
    with pytest.raises(IntegrityError):
        services.credit_wallet(silver_user, "5", reference="task-1")
    assert services.get_wallet(silver_user).available_balance == Decimal("5.00")


@pytest.mark.parametrize("value", ["0", "-3", "abc"])
def test_amounts_must_be_positive_numbers(value):
    with pytest.raises(ValueError):
        services.to_amount(value)


def test_pending_withdrawals_reserve_funds(silver_user):
    services.credit_wallet(silver_user, "50.00")
    services.request_withdrawal(silver_user, "30.00", "paypal")

    assert services.reserved_amount(silver_user) == Decimal("30.00")
    with pytest.raises(services.InsufficientFunds):
        services.request_withdrawal(silver_user, "30.00", "paypal")
    assert services.get_wallet(silver_user).available_balance == Decimal("50.00")


def test_withdrawal_larger_than_balance_is_refused(silver_user):
    with pytest.raises(services.InsufficientFunds):
        services.request_withdrawal(silver_user, "1.00", "bank")


def test_first_payment_method_becomes_primary(silver_user):
    first = services.add_payment_method(silver_user, "paypal", {"email": "a@example.com"})
    second = services.add_payment_method(silver_user, "bank", {"iban": "DE89"})
    assert first.is_primary
    assert not second.is_primary


def test_only_one_primary_method(silver_user):
    first = services.add_payment_method(silver_user, "paypal", {"email": "a@example.com"})
    second = services.add_payment_method(silver_user, "mobile_money", {"phone": "+254700000000"}, is_primary=True)

    assert PaymentMethod.objects.filter(user=silver_user, is_primary=True).get() == second

    services.set_primary_payment_method(silver_user, first.id)
    assert PaymentMethod.objects.filter(user=silver_user, is_primary=True).get() == first


def test_removing_primary_promotes_the_oldest(silver_user):
    first = services.add_payment_method(silver_user, "paypal", {"email": "a@example.com"})
    second = services.add_payment_method(silver_user, "bank", {"iban": "DE89"})
    services.add_payment_method(silver_user, "mobile_money", {"phone": "+254700000000"})

    services.remove_payment_method(silver_user, first.id)

    second.refresh_from_db()
    assert second.is_primary
    assert PaymentMethod.objects.filter(user=silver_user, is_primary=True).count() == 1


def test_other_users_methods_are_not_found(silver_user, make_user):
    other = make_user()
    method = services.add_payment_method(other, "paypal", {"email": "b@example.com"})
    with pytest.raises(services.NotFound):
        services.set_primary_payment_method(silver_user, method.id)
    with pytest.raises(services.NotFound):
        services.remove_payment_method(silver_user, method.id)
