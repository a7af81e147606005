from django.urls import path
from . import views

app_name = "payments"

urlpatterns = [
    path("checkout/", views.checkout_view, name="checkout"),
    path("orders/", views.orders_view, name="orders"),
    path("orders/<str:order_id>/capture/", views.capture_view, name="capture"),
    path("orders/<str:order_id>/retry/", views.retry_view, name="retry"),
    path("webhooks/paypal/", views.paypal_webhook_view, name="paypal_webhook"),
]
