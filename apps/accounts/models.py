import uuid
from datetime import timedelta

from django.contrib.auth.models import AbstractUser, UserManager as DjangoUserManager
from django.db import models
from django.utils import timezone

from .tiers import Tier
from .orientation import default_orientation_status


# -------------------------------------------
#  CHOICES
# -------------------------------------------
class Role(models.TextChoices):
    USER = "user", "User"
    ADMIN = "admin", "Admin"


class ApprovalStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    APPROVED = "approved", "Approved"
    REJECTED = "rejected", "Rejected"


GENDER_CHOICES = (
    ("male", "Male"),
    ("female", "Female"),
    ("other", "Other"),
)


# -------------------------------------------
#  HELPERS
# -------------------------------------------
def generate_referral_code():
    """Generate a referral code like PMG-3X8FD9A1"""
    return f"PMG-{uuid.uuid4().hex[:8].upper()}"


class UserManager(DjangoUserManager):
    """Accounts sign in with their email, which doubles as the username."""

    def create_user(self, username=None, email=None, password=None, **extra_fields):
        return super().create_user(username or email, email, password, **extra_fields)

    def create_superuser(self, username=None, email=None, password=None, **extra_fields):
        # admins are provisioned past every gate explicitly
        extra_fields.setdefault("role", Role.ADMIN)
        extra_fields.setdefault("approval_status", ApprovalStatus.APPROVED)
        extra_fields.setdefault("subscription_tier", Tier.VIP)
        extra_fields.setdefault("subscription_expiry", timezone.now() + timedelta(days=365))
        extra_fields.setdefault("orientation_waived", True)
        extra_fields.setdefault("name", "System Administrator")
        return super().create_superuser(username or email, email, password, **extra_fields)


# -------------------------------------------
#  USER MODEL
# -------------------------------------------
class User(AbstractUser):
    name = models.CharField(max_length=150)
    email = models.EmailField(unique=True)
    phone = models.CharField(max_length=16, blank=True, default="")
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES, default="other")
    role = models.CharField(max_length=10, choices=Role.choices, default=Role.USER)

    # Subscription
    subscription_tier = models.CharField(max_length=10, choices=Tier.choices, null=True, blank=True)
    subscription_expiry = models.DateTimeField(null=True, blank=True)

    # Referrals
    referral_code = models.CharField(max_length=32, unique=True, blank=True, null=True)
    referred_by = models.ForeignKey(
        "self",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="referred_users",
    )

    # Progression
    approval_status = models.CharField(
        max_length=10, choices=ApprovalStatus.choices, default=ApprovalStatus.PENDING
    )
    rejection_reason = models.TextField(blank=True, default="")
    approval_updated_at = models.DateTimeField(null=True, blank=True)
    orientation_status = models.JSONField(default=default_orientation_status)
    orientation_waived = models.BooleanField(default=False)

    updated_at = models.DateTimeField(auto_now=True)

    objects = UserManager()

    class Meta:
        verbose_name = "User"
        verbose_name_plural = "Users"
        indexes = [
            models.Index(fields=["email"], name="accounts_us_email_74c8d6_idx"),
            models.Index(fields=["approval_status"], name="accounts_us_approva_0b6f3c_idx"),
            models.Index(fields=["subscription_tier"], name="accounts_us_subscri_5e1a2d_idx"),
        ]

    def __str__(self):
        return self.email

    @property
    def is_admin(self):
        return self.role == Role.ADMIN

    def assign_referral_code(self):
        """Assign a unique referral code if not already set."""
        if not self.referral_code:
            code = generate_referral_code()
            while User.objects.filter(referral_code=code).exists():
                code = generate_referral_code()
            self.referral_code = code
            self.save(update_fields=["referral_code"])
        return self.referral_code

    def to_public_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "gender": self.gender,
            "role": self.role,
            "subscriptionTier": self.subscription_tier,
            "subscriptionExpiry": self.subscription_expiry.isoformat() if self.subscription_expiry else None,
            "referralCode": self.referral_code,
            "referredBy": self.referred_by.referral_code if self.referred_by_id else None,
            "isActive": self.is_active,
            "approvalStatus": self.approval_status,
            "rejectionReason": self.rejection_reason or None,
            "orientationStatus": self.orientation_status,
            "createdAt": self.date_joined.isoformat(),
        }
