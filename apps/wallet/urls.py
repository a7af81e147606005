from django.urls import path
from . import views

app_name = "wallet"

urlpatterns = [
    path("", views.wallet_view, name="wallet"),
    path("transactions/", views.transactions_view, name="transactions"),
    path("withdrawals/", views.withdrawals_view, name="withdrawals"),
    path("payment-methods/", views.payment_methods_view, name="payment_methods"),
    path("payment-methods/<int:method_id>/primary/", views.payment_method_primary_view, name="payment_method_primary"),
    path("payment-methods/<int:method_id>/delete/", views.payment_method_delete_view, name="payment_method_delete"),
]
