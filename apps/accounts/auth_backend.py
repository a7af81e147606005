from django.contrib.auth.backends import ModelBackend
from django.contrib.auth import get_user_model
from django.db.models import Q

User = get_user_model()


class EmailAuthBackend(ModelBackend):
    """Sign in with email (or the username, which defaults to the email)."""

    def authenticate(self, request, username=None, password=None, email=None, **kwargs):
        identifier = email or username
        if not identifier or not password:
            return None

        try:
            user = User.objects.get(Q(email__iexact=identifier) | Q(username=identifier))
        except (User.DoesNotExist, User.MultipleObjectsReturned):
            return None

        if not self.user_can_authenticate(user):
            return None

        if user.check_password(password):
            return user

        return None
