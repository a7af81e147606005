# apps/dashboard/notifications.py
import logging

from django.conf import settings
from django.db import transaction

from .models import Notification

logger = logging.getLogger("dashboard.notifications")


# -----------------------------
# User notifications
# -----------------------------
def notify_user(user, title: str, message: str, type: str = "info"):
    """
    Stores a notification for ``user`` and, when enabled, queues an email copy.

    Delivery is best-effort: failures are logged and never propagate to the
    workflow that triggered the notification.
    """
    try:
        with transaction.atomic():
            notification = Notification.objects.create(
                user=user,
                title=title,
                message=message,
                type=type,
            )
    except Exception:
        logger.exception("Failed to create notification '%s' for user %s", title, user.pk)
        return None

    if settings.NOTIFICATION_EMAILS_ENABLED and user.email:
        transaction.on_commit(lambda: _queue_email(notification.pk))

    return notification


def _queue_email(notification_id):
    from .tasks import send_notification_email

    try:
        send_notification_email.delay(notification_id)
    except Exception:
        logger.exception("Could not queue email for notification %s", notification_id)
