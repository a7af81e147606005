import logging

from django.db.models.signals import post_save
from django.dispatch import receiver

from .models import User

logger = logging.getLogger("accounts.signals")


# -----------------------------
# AUTO-GENERATE REFERRAL CODE AFTER USER CREATION
# -----------------------------
@receiver(post_save, sender=User)
def assign_referral_code_signal(sender, instance, created, **kwargs):
    if created and not instance.referral_code:
        instance.assign_referral_code()
        logger.info("Referral code %s assigned to user %s", instance.referral_code, instance.id)
