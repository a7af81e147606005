import itertools

import pytest

from apps.accounts.access import (
    RULE_AWAITING_APPROVAL,
    RULE_FULL,
    RULE_ORIENTATION,
    RULE_REJECTED,
    RULE_SUBSCRIBE,
    access_for_user,
    evaluate_access,
    matching_rules,
)
from apps.accounts.models import ApprovalStatus, Role
from apps.accounts.orientation import default_orientation_status
from apps.accounts.tiers import CATEGORIES
from core.exceptions import UnknownTier

from .conftest import completed_orientation


def test_exactly_one_rule_matches_every_state():
    for approval, oriented, has_tier in itertools.product(ApprovalStatus.values, (False, True), (False, True)):
        rules = matching_rules(approval, oriented, has_tier)
        assert len(rules) == 1, (approval, oriented, has_tier, rules)

        state = completed_orientation() if oriented else default_orientation_status()
        access = evaluate_access(state, "silver" if has_tier else None, approval)
        assert access.rule == rules[0]


def test_rejected_users_see_only_public_routes():
    access = evaluate_access(completed_orientation(), "gold", ApprovalStatus.REJECTED)
    assert access.rule == RULE_REJECTED
    assert access.routes == {"landing", "auth"}
    assert not access.task_categories


def test_orientation_mode_opens_every_category():
    access = evaluate_access(default_orientation_status(), None, ApprovalStatus.PENDING)
    assert access.rule == RULE_ORIENTATION
    assert access.orientation_mode
    assert access.task_categories == set(CATEGORIES)
    assert access.daily_quota is None
    assert access.allows("orientation")
    assert not access.allows("wallet")


def test_oriented_user_without_tier_must_subscribe():
    access = evaluate_access(completed_orientation(), None, ApprovalStatus.APPROVED)
    assert access.rule == RULE_SUBSCRIBE
    assert access.allows("subscription")
    assert not access.allows("tasks")


def test_paid_user_waits_for_approval():
    access = evaluate_access(completed_orientation(), "gold", ApprovalStatus.PENDING)
    assert access.rule == RULE_AWAITING_APPROVAL
    assert access.routes == {"landing", "auth", "waiting_approval"}
    assert not access.allows("tasks")
    assert not access.allows("wallet")


def test_full_access_follows_the_tier():
    access = evaluate_access(completed_orientation(), "silver", ApprovalStatus.APPROVED)
    assert access.rule == RULE_FULL
    assert access.task_categories == {"main", "social"}
    assert access.daily_quota == 5
    assert not access.is_admin
    assert not access.allows("admin")
    assert access.may_work_in("social")
    assert not access.may_work_in("surveys")


def test_waived_orientation_counts_as_complete():
    access = evaluate_access(default_orientation_status(), "vip", ApprovalStatus.APPROVED, orientation_waived=True)
    assert access.rule == RULE_FULL


def test_admin_route_needs_full_access():
    full = evaluate_access(completed_orientation(), "vip", ApprovalStatus.APPROVED, role=Role.ADMIN)
    assert full.is_admin
    assert full.allows("admin")

    pending = evaluate_access(completed_orientation(), "vip", ApprovalStatus.PENDING, role=Role.ADMIN)
    assert not pending.allows("admin")


def test_unknown_stored_tier_raises():
    with pytest.raises(UnknownTier):
        evaluate_access(completed_orientation(), "platinum", ApprovalStatus.APPROVED)


def test_as_dict_is_serialisable():
    data = evaluate_access(completed_orientation(), "silver", ApprovalStatus.APPROVED).as_dict()
    assert data["rule"] == "full"
    assert data["taskCategories"] == ["main", "social"]
    assert data["routes"] == sorted(data["routes"])


@pytest.mark.django_db
def test_new_signup_lands_in_orientation_not_approval(new_user):
    access = access_for_user(new_user)
    assert new_user.approval_status == ApprovalStatus.PENDING
    assert access.rule == RULE_ORIENTATION
    assert not access.allows("waiting_approval")


@pytest.mark.django_db
def test_superuser_has_full_admin_access(admin_user):
    access = access_for_user(admin_user)
    assert access.rule == RULE_FULL
    assert access.is_admin
    assert access.task_categories == set(CATEGORIES)
