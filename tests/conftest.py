from decimal import Decimal

import pytest

from apps.accounts.models import ApprovalStatus, User
from apps.accounts.orientation import default_orientation_status, record_completion
from apps.accounts.tiers import CATEGORIES
from apps.gigs.models import Task

WEBHOOK_SECRET = "whsec-test"


def completed_orientation():
    state = default_orientation_status()
    for i, category in enumerate(CATEGORIES):
        for j in range(2):
            state, _ = record_completion(state, category, 9000 + i * 10 + j)
    return state


@pytest.fixture(autouse=True)
def _test_settings(settings):
    settings.SECURE_SSL_REDIRECT = False
    settings.NOTIFICATION_EMAILS_ENABLED = False
    settings.PAYPAL_WEBHOOK_SECRET = WEBHOOK_SECRET
    settings.PAYMENT_CURRENCY = "USD"
    settings.SUBSCRIPTION_PERIOD_DAYS = 30
    settings.REFERRAL_BONUS_RATE = "0.10"


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def factory(approval=ApprovalStatus.PENDING, tier=None, oriented=False, **extra):
        counter["n"] += 1
        return User.objects.create_user(
            email=extra.pop("email", f"user{counter['n']}@example.com"),
            password=extra.pop("password", "Str0ng!Pass"),
            name=extra.pop("name", f"User {counter['n']}"),
            approval_status=approval,
            subscription_tier=tier,
            orientation_status=completed_orientation() if oriented else default_orientation_status(),
            **extra,
        )

    return factory


@pytest.fixture
def new_user(make_user):
    return make_user()


@pytest.fixture
def silver_user(make_user):
    return make_user(approval=ApprovalStatus.APPROVED, tier="silver", oriented=True)


@pytest.fixture
def admin_user(db):
    return User.objects.create_superuser(email="admin@example.com", password="Adm1n!Pass")


@pytest.fixture
def make_task(db):
    def factory(category="main", min_tier="member", reward="10.00", is_orientation=False, **extra):
        return Task.objects.create(
            title=extra.pop("title", f"{category} task"),
            category=category,
            min_tier=min_tier,
            reward=Decimal(reward),
            is_orientation=is_orientation,
            min_duration=extra.pop("min_duration", 150),
            **extra,
        )

    return factory
