import logging

from django.conf import settings
from django.db.models.signals import post_save
from django.dispatch import receiver

from .models import Wallet

logger = logging.getLogger("wallet.signals")


# -------------------------------
# Every user gets a wallet at creation
# -------------------------------
@receiver(post_save, sender=settings.AUTH_USER_MODEL)
def create_user_wallet(sender, instance, created, **kwargs):
    if created:
        Wallet.objects.get_or_create(user=instance)
        logger.info("Wallet created for user %s", instance.id)
