import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models


def generate_reference():
    return uuid.uuid4().hex


# ---------- WALLET ----------
class Wallet(models.Model):
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="wallet")
    available_balance = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    pending_balance = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    total_earnings = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    total_withdrawn = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Wallet of {self.user} ({self.available_balance})"

    def to_dict(self):
        return {
            "availableBalance": str(self.available_balance),
            "pendingBalance": str(self.pending_balance),
            "totalEarnings": str(self.total_earnings),
            "totalWithdrawn": str(self.total_withdrawn),
        }


# ---------- TRANSACTION ----------
class Transaction(models.Model):
    class Type(models.TextChoices):
        EARNING = "earning", "Earning"
        WITHDRAWAL = "withdrawal", "Withdrawal"
        REFERRAL = "referral", "Referral"
        SUBSCRIPTION = "subscription", "Subscription"

    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        COMPLETED = "completed", "Completed"
        FAILED = "failed", "Failed"

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="transactions")
    type = models.CharField(max_length=20, choices=Type.choices)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.PENDING)
    description = models.CharField(max_length=255, blank=True, default="")
    reference = models.CharField(max_length=64, unique=True, default=generate_reference)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.type} {self.amount} for {self.user} ({self.status})"

    def to_dict(self):
        return {
            "id": self.id,
            "type": self.type,
            "amount": str(self.amount),
            "status": self.status,
            "description": self.description,
            "reference": self.reference,
            "createdAt": self.created_at.isoformat(),
        }

    class Meta:
        ordering = ["-created_at"]


# ---------- WITHDRAWAL ----------
class Withdrawal(models.Model):
    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        COMPLETED = "completed", "Completed"
        FAILED = "failed", "Failed"

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="withdrawals")
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    method = models.CharField(max_length=20)
    account_details = models.JSONField(default=dict, blank=True)
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.PENDING)
    admin_notes = models.TextField(blank=True, default="")
    processed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"Withdrawal {self.id} of {self.amount} ({self.status})"

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "amount": str(self.amount),
            "method": self.method,
            "accountDetails": self.account_details,
            "status": self.status,
            "adminNotes": self.admin_notes or None,
            "processedAt": self.processed_at.isoformat() if self.processed_at else None,
            "createdAt": self.created_at.isoformat(),
        }

    class Meta:
        ordering = ["-created_at"]


# ---------- PAYMENT METHODS ----------
class PaymentMethod(models.Model):
    METHOD_TYPES = (
        ("paypal", "PayPal"),
        ("bank", "Bank Transfer"),
        ("mobile_money", "Mobile Money"),
    )

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="payment_methods")
    type = models.CharField(max_length=20, choices=METHOD_TYPES)
    details = models.JSONField(default=dict)
    is_primary = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.type} for {self.user}{' (primary)' if self.is_primary else ''}"

    def to_dict(self):
        return {
            "id": self.id,
            "type": self.type,
            "details": self.details,
            "isPrimary": self.is_primary,
            "createdAt": self.created_at.isoformat(),
        }

    class Meta:
        ordering = ["-is_primary", "created_at"]
