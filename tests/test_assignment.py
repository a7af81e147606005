import threading
from datetime import timedelta

import pytest
from django.core.management import call_command
from django.db import DatabaseError, connection
from django.utils import timezone

from apps.accounts.models import ApprovalStatus, User
from apps.accounts.orientation import is_overall_completed
from apps.gigs import services
from apps.gigs.models import Task, UserTask
from core.exceptions import (
    AccessDenied,
    AlreadyProcessed,
    CategoryAlreadyComplete,
    MinimumDurationNotMet,
    NotFound,
    QuotaExceeded,
)

pytestmark = pytest.mark.django_db


# -----------------------------
# Orientation mode
# -----------------------------
def test_orientation_user_sees_only_onboarding_tasks(new_user, make_task):
    onboarding = make_task(category="ai", is_orientation=True)
    make_task(category="ai", min_tier="member")

    assert list(services.list_eligible(new_user, "ai")) == [onboarding]


def test_orientation_user_cannot_start_paid_task(new_user, make_task):
    paid = make_task(category="main")
    with pytest.raises(AccessDenied):
        services.start_task(new_user, paid.id)
    assert not UserTask.objects.filter(user=new_user).exists()


def test_starting_seeded_orientation_tasks_finishes_onboarding(new_user):
    call_command("seed_tasks")
    tasks = list(Task.objects.filter(is_orientation=True).order_by("id"))
    assert len(tasks) == 10

    for n, task in enumerate(tasks, start=1):
        services.start_task(new_user, task.id)
        stored = User.objects.get(pk=new_user.pk).orientation_status
        assert is_overall_completed(stored) is (n == 10)

    assert new_user.orientation_status == User.objects.get(pk=new_user.pk).orientation_status


def test_third_task_in_completed_category_is_refused(new_user, make_task):
    first, second, third = (make_task(category="social", is_orientation=True) for _ in range(3))
    services.start_task(new_user, first.id)
    services.start_task(new_user, second.id)

    with pytest.raises(CategoryAlreadyComplete):
        services.start_task(new_user, third.id)
    assert UserTask.objects.filter(user=new_user).count() == 2


def test_restarting_an_orientation_task_returns_the_same_attempt(new_user, make_task):
    task = make_task(category="main", is_orientation=True)
    first = services.start_task(new_user, task.id)
    again = services.start_task(new_user, task.id)

    assert again.pk == first.pk
    new_user.refresh_from_db()
    assert new_user.orientation_status["main"]["completed_tasks"] == [task.id]


# -----------------------------
# Paid tasks
# -----------------------------
def test_silver_user_hits_daily_quota(silver_user, make_task):
    main = make_task(category="main")
    social = make_task(category="social", min_tier="silver")

    for task in (main, social, main, social, main):
        services.start_task(silver_user, task.id)

    with pytest.raises(QuotaExceeded) as excinfo:
        services.start_task(silver_user, social.id)
    assert excinfo.value.details == {"limit": 5, "used": 5}
    assert services.tasks_started_today(silver_user) == 5


def test_orientation_attempts_count_toward_quota(silver_user, make_task):
    for category in ("main", "social", "surveys", "testing", "ai"):
        UserTask.objects.create(
            user=silver_user,
            task=make_task(category=category, is_orientation=True),
            started_at=timezone.now(),
        )
    paid = make_task(category="main")

    with pytest.raises(QuotaExceeded):
        services.start_task(silver_user, paid.id)
    assert services.tasks_started_today(silver_user) == 5


def test_silver_user_cannot_work_surveys(silver_user, make_task):
    survey = make_task(category="surveys", min_tier="member")

    assert not services.list_eligible(silver_user, "surveys").exists()
    with pytest.raises(AccessDenied):
        services.start_task(silver_user, survey.id)


def test_listing_respects_task_min_tier(silver_user, make_task):
    silver = make_task(category="social", min_tier="silver")
    make_task(category="social", min_tier="bronze")
    make_task(category="social", is_orientation=True)

    assert list(services.list_eligible(silver_user, "social")) == [silver]


def test_task_above_users_tier_is_refused(silver_user, make_task):
    bronze = make_task(category="main", min_tier="bronze")
    with pytest.raises(AccessDenied):
        services.start_task(silver_user, bronze.id)


def test_attempts_before_midnight_do_not_count(silver_user, make_task):
    task = make_task(category="main")
    UserTask.objects.create(
        user=silver_user, task=task, started_at=services.start_of_today() - timedelta(minutes=1)
    )
    assert services.tasks_started_today(silver_user) == 0


def test_inactive_or_missing_task_is_not_found(silver_user, make_task):
    inactive = make_task(category="main", is_active=False)
    with pytest.raises(NotFound):
        services.start_task(silver_user, inactive.id)
    with pytest.raises(NotFound):
        services.start_task(silver_user, 987654)


def test_awaiting_approval_user_cannot_start(make_user, make_task):
    user = make_user(approval=ApprovalStatus.PENDING, tier="gold", oriented=True)
    task = make_task(category="main")
    with pytest.raises(AccessDenied) as excinfo:
        services.start_task(user, task.id)
    assert excinfo.value.details["rule"] == "awaiting_approval"


# -----------------------------
# Submission
# -----------------------------
def test_submission_waits_for_minimum_duration(silver_user, make_task):
    task = make_task(category="main", min_duration=150)
    user_task = services.start_task(silver_user, task.id)

    with pytest.raises(MinimumDurationNotMet):
        services.submit_task(silver_user, user_task.id)

    UserTask.objects.filter(pk=user_task.pk).update(started_at=timezone.now() - timedelta(seconds=151))
    submitted = services.submit_task(silver_user, user_task.id, {"proof": "screenshot.png"})
    assert submitted.completed_at is not None
    assert submitted.metadata == {"proof": "screenshot.png"}
    assert submitted.status == UserTask.Status.PENDING

    with pytest.raises(AlreadyProcessed):
        services.submit_task(silver_user, user_task.id)


def test_users_cannot_submit_each_others_attempts(silver_user, make_user, make_task):
    other = make_user(approval=ApprovalStatus.APPROVED, tier="silver", oriented=True)
    user_task = services.start_task(silver_user, make_task(category="main").id)
    with pytest.raises(NotFound):
        services.submit_task(other, user_task.id)


# -----------------------------
# Concurrency
# -----------------------------
@pytest.mark.django_db(transaction=True)
def test_concurrent_starts_never_exceed_quota(silver_user, make_task):
    task = make_task(category="main")
    for _ in range(4):
        UserTask.objects.create(user=silver_user, task=task, started_at=timezone.now())

    barrier = threading.Barrier(6)
    outcomes = []

    def worker():
        try:
            barrier.wait()
            services.start_task(silver_user, task.id)
            outcomes.append("started")
        except QuotaExceeded:
            outcomes.append("quota")
        except DatabaseError:
            outcomes.append("locked")
        finally:
            connection.close()

    threads = [threading.Thread(target=worker) for _ in range(6)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(outcomes) == 6
    assert outcomes.count("started") <= 1
    assert UserTask.objects.filter(user=silver_user).count() <= 5
