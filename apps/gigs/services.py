# apps/gigs/services.py
"""
Task Assignment Service.

Decides which tasks a user may see and admits new attempts. Admission
locks the user row so the daily quota check and the insert happen as one
step, and in orientation mode the attempt and the orientation record are
written in the same transaction.
"""
import logging
from datetime import timedelta

from django.db import transaction
from django.utils import timezone

from apps.accounts import orientation
from apps.accounts.access import RULE_FULL, access_for_user
from apps.accounts.models import User
from apps.accounts.tiers import TIER_ORDER, get_catalog, parse_category
from core.exceptions import (
    AccessDenied,
    AlreadyProcessed,
    CategoryAlreadyComplete,
    MinimumDurationNotMet,
    NotFound,
    QuotaExceeded,
)

from .models import Task, UserTask

logger = logging.getLogger("gigs.services")


def start_of_today():
    """Local midnight of the server's configured time zone."""
    return timezone.localtime().replace(hour=0, minute=0, second=0, microsecond=0)


def tasks_started_today(user) -> int:
    """Attempts of any kind started since local midnight."""
    return UserTask.objects.filter(user=user, started_at__gte=start_of_today()).count()


# -----------------------------
# Listing
# -----------------------------
def list_eligible(user, category):
    category = parse_category(category)
    access = access_for_user(user)
    tasks = Task.objects.filter(is_active=True, category=category)

    if access.orientation_mode:
        return tasks.filter(is_orientation=True)

    if not access.may_work_in(category):
        return tasks.none()

    allowed_tiers = TIER_ORDER[: get_catalog().rank(user.subscription_tier) + 1]
    return tasks.filter(is_orientation=False, min_tier__in=allowed_tiers)


# -----------------------------
# Admission
# -----------------------------
def start_task(user, task_id) -> UserTask:
    with transaction.atomic():
        locked = User.objects.select_for_update().get(pk=user.pk)

        task = Task.objects.filter(pk=task_id, is_active=True).first()
        if task is None:
            raise NotFound("Task not found or inactive", {"taskId": task_id})

        access = access_for_user(locked)

        if access.orientation_mode:
            user_task = _start_orientation_task(locked, task)
        else:
            user_task = _start_paid_task(locked, task, access)

    # keep the caller's instance in step with what was persisted
    user.orientation_status = locked.orientation_status
    return user_task


def _start_orientation_task(user, task) -> UserTask:
    if not task.is_orientation:
        raise AccessDenied(
            "Complete orientation before starting paid tasks",
            {"taskId": task.id, "rule": "orientation"},
        )

    state = user.orientation_status

    if orientation.has_completed_task(state, task.category, task.id):
        existing = UserTask.objects.filter(user=user, task=task).first()
        if existing is not None:
            return existing

    new_state, outcome = orientation.record_completion(state, task.category, task.id)
    if outcome == orientation.ALREADY_COMPLETE:
        raise CategoryAlreadyComplete(
            f"Orientation for '{task.category}' is already complete",
            {"category": task.category},
        )

    user_task = UserTask.objects.create(user=user, task=task, started_at=timezone.now())

    if outcome == orientation.RECORDED:
        user.orientation_status = new_state
        user.save(update_fields=["orientation_status", "updated_at"])

    logger.info(
        "User %s started orientation task %s (%s); overall_completed=%s",
        user.id, task.id, task.category, new_state["overall_completed"],
    )
    return user_task


def _start_paid_task(user, task, access) -> UserTask:
    if access.rule != RULE_FULL:
        raise AccessDenied("Tasks are not available at this stage", {"rule": access.rule})

    if task.is_orientation:
        raise AccessDenied("Orientation tasks are closed once orientation is complete", {"taskId": task.id})

    if not access.may_work_in(task.category) or not get_catalog().can_access(user.subscription_tier, task.min_tier):
        raise AccessDenied(
            "Your plan does not include this task",
            {"taskId": task.id, "category": task.category, "minTier": task.min_tier},
        )

    used = tasks_started_today(user)
    if used >= access.daily_quota:
        raise QuotaExceeded(
            "Daily task limit reached",
            {"limit": access.daily_quota, "used": used},
        )

    user_task = UserTask.objects.create(user=user, task=task, started_at=timezone.now())
    logger.info("User %s started task %s (%s/%s today)", user.id, task.id, used + 1, access.daily_quota)
    return user_task


# -----------------------------
# Submission
# -----------------------------
def submit_task(user, user_task_id, metadata=None) -> UserTask:
    """Mark an attempt finished once the task's minimum time on task has elapsed."""
    with transaction.atomic():
        user_task = (
            UserTask.objects.select_for_update()
            .select_related("task")
            .filter(pk=user_task_id, user=user)
            .first()
        )
        if user_task is None:
            raise NotFound("Task attempt not found", {"userTaskId": user_task_id})

        if user_task.completed_at is not None or user_task.status != UserTask.Status.PENDING:
            raise AlreadyProcessed("Task already submitted", {"userTaskId": user_task.id})

        now = timezone.now()
        elapsed = now - user_task.started_at
        required = timedelta(seconds=user_task.task.min_duration)
        if elapsed < required:
            raise MinimumDurationNotMet(
                "Please spend more time on the task before submitting",
                {"requiredSeconds": user_task.task.min_duration, "elapsedSeconds": int(elapsed.total_seconds())},
            )

        user_task.completed_at = now
        if metadata:
            user_task.metadata = {**user_task.metadata, **metadata}
        user_task.save(update_fields=["completed_at", "metadata"])

    logger.info("User %s submitted attempt %s", user.pk, user_task.id)
    return user_task
