import pytest
from django.core.management import CommandError, call_command

from apps.accounts.access import RULE_FULL, access_for_user
from apps.accounts.models import User
from apps.dashboard import notifications as dashboard_notifications
from apps.dashboard import tasks as dashboard_tasks
from apps.dashboard.notifications import notify_user
from apps.gigs.models import Task
from apps.payments import bridge
from apps.payments import tasks as payment_tasks

pytestmark = pytest.mark.django_db


# -----------------------------
# Celery tasks
# -----------------------------
def test_notification_email_is_sent(new_user, mailoutbox):
    note = notify_user(new_user, "Welcome", "Start your orientation")

    result = dashboard_tasks.send_notification_email(note.id)

    assert result == {"status": "sent"}
    assert len(mailoutbox) == 1
    assert mailoutbox[0].subject == "Welcome"
    assert mailoutbox[0].to == [new_user.email]


def test_missing_notification_is_skipped(db, mailoutbox):
    assert dashboard_tasks.send_notification_email(424242) == {"status": "missing"}
    assert mailoutbox == []


def test_email_copy_is_queued_after_commit(new_user, settings, monkeypatch, django_capture_on_commit_callbacks):
    settings.NOTIFICATION_EMAILS_ENABLED = True
    queued = []
    monkeypatch.setattr(dashboard_notifications, "_queue_email", queued.append)

    with django_capture_on_commit_callbacks(execute=True):
        note = notify_user(new_user, "Task Approved", "Nice work", "success")

    assert queued == [note.id]


def test_email_copy_is_off_by_default(new_user, monkeypatch, django_capture_on_commit_callbacks):
    queued = []
    monkeypatch.setattr(dashboard_notifications, "_queue_email", queued.append)

    with django_capture_on_commit_callbacks(execute=True):
        notify_user(new_user, "Task Approved", "Nice work")

    assert queued == []


def test_reconcile_task_reports_summary(monkeypatch):
    monkeypatch.setattr(bridge, "reconcile", lambda: {"checked": 2, "completed": 1})
    result = payment_tasks.reconcile_stale_orders()
    assert result["checked"] == 2
    assert "run_at" in result


def test_expiry_task_counts(db):
    assert payment_tasks.expire_subscriptions()["expired"] == 0


# -----------------------------
# Management commands
# -----------------------------
def test_ensure_admin_creates_once(settings):
    settings.ADMIN_EMAIL = "Root@Example.com"
    settings.ADMIN_PASSWORD = "Adm1n!Pass"

    call_command("ensure_admin")
    call_command("ensure_admin")

    admin = User.objects.get(email="root@example.com")
    assert User.objects.filter(is_superuser=True).count() == 1
    assert admin.check_password("Adm1n!Pass")
    assert access_for_user(admin).rule == RULE_FULL
    assert access_for_user(admin).is_admin


def test_ensure_admin_needs_credentials(settings):
    settings.ADMIN_EMAIL = ""
    settings.ADMIN_PASSWORD = ""
    with pytest.raises(CommandError):
        call_command("ensure_admin")


def test_seed_tasks_is_idempotent():
    call_command("seed_tasks")
    call_command("seed_tasks")

    assert Task.objects.filter(is_orientation=True).count() == 10
    assert Task.objects.filter(is_orientation=False).count() == 4
    for category in ("main", "social", "surveys", "testing", "ai"):
        assert Task.objects.filter(is_orientation=True, category=category).count() == 2
