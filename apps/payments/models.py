from django.conf import settings
from django.db import models

from apps.accounts.tiers import Tier


# =============================================================
# PROVIDER ORDERS
# =============================================================
class Order(models.Model):
    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        COMPLETED = "completed", "Completed"
        FAILED = "failed", "Failed"
        REFUNDED = "refunded", "Refunded"

    order_id = models.CharField(max_length=64, unique=True)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="orders")
    payer_id = models.CharField(max_length=64, blank=True, default="")
    payer_email = models.EmailField(blank=True, default="")
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    currency = models.CharField(max_length=3, default="USD")
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.PENDING, db_index=True)
    subscription_tier = models.CharField(max_length=10, choices=Tier.choices)
    capture_id = models.CharField(max_length=64, blank=True, default="", db_index=True)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"Order {self.order_id} ({self.subscription_tier}, {self.status})"

    def to_dict(self):
        return {
            "id": self.id,
            "orderId": self.order_id,
            "amount": str(self.amount),
            "currency": self.currency,
            "status": self.status,
            "subscriptionTier": self.subscription_tier,
            "captureId": self.capture_id or None,
            "metadata": self.metadata,
            "createdAt": self.created_at.isoformat(),
        }


# =============================================================
# SUBSCRIPTIONS
# =============================================================
class Subscription(models.Model):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="subscriptions")
    # one subscription per paid order
    order = models.OneToOneField(
        Order, on_delete=models.SET_NULL, null=True, blank=True, related_name="subscription"
    )
    tier = models.CharField(max_length=10, choices=Tier.choices)
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    payment_method = models.CharField(max_length=20, default="paypal")
    payment_reference = models.CharField(max_length=64, blank=True, default="")
    is_active = models.BooleanField(default=True)
    expires_at = models.DateTimeField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [models.Index(fields=["user", "is_active"], name="payments_su_user_id_9a4e2b_idx")]

    def __str__(self):
        return f"{self.user} {self.tier} until {self.expires_at:%Y-%m-%d}"

    def to_dict(self):
        return {
            "id": self.id,
            "tier": self.tier,
            "amount": str(self.amount),
            "paymentMethod": self.payment_method,
            "paymentReference": self.payment_reference,
            "isActive": self.is_active,
            "expiresAt": self.expires_at.isoformat(),
            "createdAt": self.created_at.isoformat(),
        }


# =============================================================
# WEBHOOK DE-DUPLICATION
# =============================================================
class WebhookEvent(models.Model):
    """One row per provider event id; a replayed delivery hits the unique constraint."""

    event_id = models.CharField(max_length=128, unique=True)
    event_type = models.CharField(max_length=64)
    payload = models.JSONField()
    result = models.CharField(max_length=32, blank=True, default="")
    received_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-received_at"]

    def __str__(self):
        return f"{self.event_type} {self.event_id}"
