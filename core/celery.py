import os
from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "core.settings")

# Beat schedule lives in settings.CELERY_BEAT_SCHEDULE (order reconciliation, subscription expiry)
app = Celery("promog")

app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()
