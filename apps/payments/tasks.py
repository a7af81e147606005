# apps/payments/tasks.py

import logging

from celery import shared_task
from django.utils import timezone

from . import bridge

logger = logging.getLogger("payments.tasks")


# -----------------------------------------------------
# STALE ORDER RECONCILIATION
# -----------------------------------------------------
@shared_task(bind=True, autoretry_for=(Exception,), retry_backoff=60, retry_kwargs={"max_retries": 5})
def reconcile_stale_orders(self):
    """
    Runs every 10 minutes.
    Settles orders the provider never reported back on.
    """
    logger.info("Reconciling stale orders")
    summary = bridge.reconcile()
    return {**summary, "run_at": timezone.now().isoformat()}


# -----------------------------------------------------
# SUBSCRIPTION EXPIRY
# -----------------------------------------------------
@shared_task(bind=True, autoretry_for=(Exception,), retry_backoff=30, retry_kwargs={"max_retries": 3})
def expire_subscriptions(self):
    expired = bridge.expire_subscriptions()
    return {"expired": expired, "run_at": timezone.now().isoformat()}
