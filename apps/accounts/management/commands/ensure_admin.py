from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from apps.accounts.models import User


class Command(BaseCommand):
    help = "Creates the platform administrator (approved, top tier, orientation waived) if missing"

    def add_arguments(self, parser):
        parser.add_argument("--email", default=None)
        parser.add_argument("--password", default=None)

    def handle(self, *args, **options):
        email = (options["email"] or settings.ADMIN_EMAIL or "").strip().lower()
        password = options["password"] or settings.ADMIN_PASSWORD

        if not email or not password:
            raise CommandError("ADMIN_EMAIL and ADMIN_PASSWORD must be set (or pass --email/--password)")

        if User.objects.filter(email__iexact=email).exists():
            self.stdout.write(f"Admin account {email} already exists")
            return

        with transaction.atomic():
            User.objects.create_superuser(email=email, password=password)

        self.stdout.write(self.style.SUCCESS(f"✔ Admin account {email} created"))
