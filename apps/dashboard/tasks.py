# apps/dashboard/tasks.py

import logging

from celery import shared_task
from django.conf import settings
from django.core.mail import send_mail

from .models import Notification

logger = logging.getLogger("dashboard.tasks")


# -----------------------------------------------------
# NOTIFICATION EMAIL COPY
# -----------------------------------------------------
@shared_task(bind=True, autoretry_for=(Exception,), retry_backoff=30, retry_kwargs={"max_retries": 3})
def send_notification_email(self, notification_id):
    notification = Notification.objects.select_related("user").filter(pk=notification_id).first()
    if notification is None:
        logger.warning("Notification %s vanished before its email was sent", notification_id)
        return {"status": "missing"}

    send_mail(
        subject=notification.title,
        message=notification.message,
        from_email=settings.DEFAULT_FROM_EMAIL,
        recipient_list=[notification.user.email],
    )
    logger.info("Notification email %s sent to user %s", notification_id, notification.user_id)
    return {"status": "sent"}
