# apps/accounts/tiers.py
"""
Tier Catalog: the six ordered subscription tiers and what each unlocks.

The table is configuration, not data: it is built once from
``settings.TIER_CATALOG`` (or the defaults below), validated, and frozen.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from functools import lru_cache
from typing import Dict, FrozenSet, Tuple

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.core.signals import setting_changed
from django.db import models
from django.dispatch import receiver

from core.exceptions import UnknownTier

logger = logging.getLogger("accounts.tiers")


# -------------------------------------------
#  ENUMS
# -------------------------------------------
class Tier(models.TextChoices):
    """Declaration order is rank order."""
    MEMBER = "member", "Member"
    SILVER = "silver", "Silver"
    BRONZE = "bronze", "Bronze"
    DIAMOND = "diamond", "Diamond"
    GOLD = "gold", "Gold"
    VIP = "vip", "VIP"


class TaskCategory(models.TextChoices):
    MAIN = "main", "Main"
    SOCIAL = "social", "Social Engagement"
    SURVEYS = "surveys", "Surveys"
    TESTING = "testing", "App Testing"
    AI = "ai", "AI Labeling"


TIER_ORDER: Tuple[str, ...] = tuple(Tier.values)
CATEGORIES: Tuple[str, ...] = tuple(TaskCategory.values)

DEFAULT_TIERS = {
    Tier.MEMBER: {"price": "5", "daily_tasks": 2, "categories": ["main"]},
    Tier.SILVER: {"price": "10", "daily_tasks": 5, "categories": ["main", "social"]},
    Tier.BRONZE: {"price": "25", "daily_tasks": 10, "categories": ["main", "social"]},
    Tier.DIAMOND: {"price": "50", "daily_tasks": 15, "categories": ["main", "social", "surveys"]},
    Tier.GOLD: {"price": "75", "daily_tasks": 20, "categories": ["main", "social", "surveys", "testing"]},
    Tier.VIP: {"price": "100", "daily_tasks": 25, "categories": ["main", "social", "surveys", "testing", "ai"]},
}


@dataclass(frozen=True)
class TierLimits:
    tier: str
    price: Decimal
    daily_tasks: int
    categories: FrozenSet[str]

    def as_dict(self) -> dict:
        return {
            "tier": self.tier,
            "price": str(self.price),
            "dailyTasks": self.daily_tasks,
            "categories": [c for c in CATEGORIES if c in self.categories],
        }


def parse_tier(value) -> Tier:
    """Strict conversion: malformed tier strings raise instead of downgrading."""
    try:
        return Tier(value)
    except ValueError:
        raise UnknownTier(f"Unknown subscription tier: {value!r}")


def parse_category(value) -> TaskCategory:
    try:
        return TaskCategory(value)
    except ValueError:
        raise ValueError(f"Unknown task category: {value!r}")


# -------------------------------------------
#  CATALOG
# -------------------------------------------
class TierCatalog:
    def __init__(self, table: Dict[str, dict]):
        self._limits: Dict[str, TierLimits] = {}
        previous = None

        for tier in TIER_ORDER:
            row = table.get(tier)
            if row is None:
                raise ImproperlyConfigured(f"Tier catalog is missing tier '{tier}'")

            categories = frozenset(row["categories"])
            unknown = categories - set(CATEGORIES)
            if unknown:
                raise ImproperlyConfigured(f"Tier '{tier}' lists unknown categories {sorted(unknown)}")

            limits = TierLimits(
                tier=tier,
                price=Decimal(str(row["price"])),
                daily_tasks=int(row["daily_tasks"]),
                categories=categories,
            )

            if previous is not None:
                if not limits.categories >= previous.categories:
                    raise ImproperlyConfigured(f"Tier '{tier}' must unlock every category of '{previous.tier}'")
                if limits.daily_tasks < previous.daily_tasks or limits.price < previous.price:
                    raise ImproperlyConfigured(f"Tier '{tier}' must not rank below '{previous.tier}'")

            self._limits[tier] = limits
            previous = limits

    def rank(self, tier) -> int:
        return TIER_ORDER.index(parse_tier(tier))

    def limits_for(self, tier) -> TierLimits:
        return self._limits[parse_tier(tier)]

    def price(self, tier) -> Decimal:
        return self.limits_for(tier).price

    def top_tier(self) -> str:
        return TIER_ORDER[-1]

    def can_access(self, user_tier, task_tier) -> bool:
        return self.rank(user_tier) >= self.rank(task_tier)

    def plans(self):
        return [self._limits[t].as_dict() for t in TIER_ORDER]


@lru_cache(maxsize=1)
def get_catalog() -> TierCatalog:
    table = getattr(settings, "TIER_CATALOG", None) or DEFAULT_TIERS
    return TierCatalog(table)


@receiver(setting_changed)
def _reset_catalog(sender, setting, **kwargs):
    if setting == "TIER_CATALOG":
        get_catalog.cache_clear()


def rank(tier) -> int:
    return get_catalog().rank(tier)


def limits_for(tier) -> TierLimits:
    return get_catalog().limits_for(tier)
