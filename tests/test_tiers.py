from decimal import Decimal

import pytest
from django.core.exceptions import ImproperlyConfigured

from apps.accounts.tiers import CATEGORIES, TIER_ORDER, get_catalog, parse_tier
from core.exceptions import UnknownTier


def test_tiers_are_ranked_in_declaration_order():
    catalog = get_catalog()
    assert TIER_ORDER == ("member", "silver", "bronze", "diamond", "gold", "vip")
    assert [catalog.rank(t) for t in TIER_ORDER] == list(range(6))
    assert catalog.top_tier() == "vip"


def test_default_limits():
    catalog = get_catalog()
    assert catalog.limits_for("member").daily_tasks == 2
    assert catalog.limits_for("member").categories == {"main"}
    assert catalog.limits_for("silver").categories == {"main", "social"}
    assert catalog.limits_for("silver").daily_tasks == 5
    assert catalog.limits_for("gold").price == Decimal("75")
    assert catalog.limits_for("vip").categories == set(CATEGORIES)


def test_higher_tiers_unlock_at_least_as_much():
    catalog = get_catalog()
    for lower, higher in zip(TIER_ORDER, TIER_ORDER[1:]):
        assert catalog.limits_for(higher).categories >= catalog.limits_for(lower).categories
        assert catalog.limits_for(higher).daily_tasks >= catalog.limits_for(lower).daily_tasks


def test_can_access_compares_ranks():
    catalog = get_catalog()
    assert catalog.can_access("gold", "silver")
    assert catalog.can_access("silver", "silver")
    assert not catalog.can_access("silver", "bronze")


def test_unknown_tier_is_rejected_not_downgraded():
    with pytest.raises(UnknownTier):
        parse_tier("platinum")
    with pytest.raises(ValueError):
        get_catalog().limits_for("")


def test_plans_are_listed_in_rank_order():
    plans = get_catalog().plans()
    assert [p["tier"] for p in plans] == list(TIER_ORDER)
    assert plans[0] == {"tier": "member", "price": "5", "dailyTasks": 2, "categories": ["main"]}


def test_non_monotonic_override_is_refused(settings):
    table = {t: {"price": "10", "daily_tasks": 5, "categories": ["main", "social"]} for t in TIER_ORDER}
    table["bronze"] = {"price": "10", "daily_tasks": 5, "categories": ["main"]}
    settings.TIER_CATALOG = table

    with pytest.raises(ImproperlyConfigured):
        get_catalog()


def test_override_is_picked_up(settings):
    table = {t: {"price": str(i + 1), "daily_tasks": i + 1, "categories": ["main"]} for i, t in enumerate(TIER_ORDER)}
    settings.TIER_CATALOG = table

    assert get_catalog().limits_for("vip").daily_tasks == 6
    assert get_catalog().price("silver") == Decimal("2")
