# apps/accounts/access.py
"""
Access Evaluator.

One pure function decides what a user may see and do. The same result is
used by server-side view decorators and returned to the client for
rendering, so the two can never disagree.

Rules, first match wins (the predicates are also pairwise disjoint):

    rejected      approval == rejected                       -> landing/auth only
    orientation   orientation incomplete                     -> onboarding tasks, any category
    subscribe     orientation done, no tier                  -> plan purchase only
    awaiting      orientation done, tier, approval pending   -> waiting view only
    full          orientation done, tier, approval approved  -> everything the tier unlocks
"""
from dataclasses import dataclass, field
from typing import FrozenSet, Optional

from . import orientation
from .models import ApprovalStatus, Role
from .tiers import CATEGORIES, get_catalog, parse_tier

# -------------------------------------------
#  RULES & ROUTES
# -------------------------------------------
RULE_REJECTED = "rejected"
RULE_ORIENTATION = "orientation"
RULE_SUBSCRIBE = "subscribe"
RULE_AWAITING_APPROVAL = "awaiting_approval"
RULE_FULL = "full"

PUBLIC_ROUTES = frozenset({"landing", "auth"})

RULE_ROUTES = {
    RULE_REJECTED: PUBLIC_ROUTES,
    RULE_ORIENTATION: PUBLIC_ROUTES | {"orientation", "home", "tasks", "profile", "subscription"},
    RULE_SUBSCRIBE: PUBLIC_ROUTES | {"subscription"},
    RULE_AWAITING_APPROVAL: PUBLIC_ROUTES | {"waiting_approval"},
    RULE_FULL: PUBLIC_ROUTES | {"home", "tasks", "profile", "wallet", "notifications", "subscription"},
}

RULES = (
    (RULE_REJECTED, lambda approval, oriented, has_tier: approval == ApprovalStatus.REJECTED),
    (RULE_ORIENTATION, lambda approval, oriented, has_tier: approval != ApprovalStatus.REJECTED and not oriented),
    (RULE_SUBSCRIBE, lambda approval, oriented, has_tier: (
        approval != ApprovalStatus.REJECTED and oriented and not has_tier)),
    (RULE_AWAITING_APPROVAL, lambda approval, oriented, has_tier: (
        approval == ApprovalStatus.PENDING and oriented and has_tier)),
    (RULE_FULL, lambda approval, oriented, has_tier: (
        approval == ApprovalStatus.APPROVED and oriented and has_tier)),
)


@dataclass(frozen=True)
class Access:
    rule: str
    routes: FrozenSet[str]
    task_categories: FrozenSet[str] = field(default_factory=frozenset)
    daily_quota: Optional[int] = None
    orientation_mode: bool = False
    is_admin: bool = False

    def allows(self, route: str) -> bool:
        return route in self.routes

    def may_work_in(self, category: str) -> bool:
        return category in self.task_categories

    def as_dict(self) -> dict:
        return {
            "rule": self.rule,
            "routes": sorted(self.routes),
            "taskCategories": [c for c in CATEGORIES if c in self.task_categories],
            "dailyQuota": self.daily_quota,
            "orientationMode": self.orientation_mode,
            "isAdmin": self.is_admin,
        }


def matching_rules(approval_status, orientation_complete: bool, has_tier: bool):
    return [name for name, predicate in RULES if predicate(approval_status, orientation_complete, has_tier)]


def evaluate_access(orientation_status, subscription_tier, approval_status,
                    role: str = Role.USER, orientation_waived: bool = False) -> Access:
    approval = ApprovalStatus(approval_status)
    oriented = orientation_waived or orientation.is_overall_completed(orientation_status)
    tier = parse_tier(subscription_tier) if subscription_tier else None

    rule = next(name for name, predicate in RULES if predicate(approval, oriented, tier is not None))
    routes = RULE_ROUTES[rule]

    if rule == RULE_ORIENTATION:
        return Access(
            rule=rule,
            routes=routes,
            task_categories=frozenset(CATEGORIES),
            orientation_mode=True,
        )

    if rule == RULE_FULL:
        limits = get_catalog().limits_for(tier)
        is_admin = role == Role.ADMIN
        return Access(
            rule=rule,
            routes=routes | {"admin"} if is_admin else routes,
            task_categories=limits.categories,
            daily_quota=limits.daily_tasks,
            is_admin=is_admin,
        )

    return Access(rule=rule, routes=routes)


def access_for_user(user) -> Access:
    return evaluate_access(
        user.orientation_status,
        user.subscription_tier,
        user.approval_status,
        role=user.role,
        orientation_waived=user.orientation_waived,
    )
