import logging

from django.contrib.auth import login, logout
from django.db import transaction
from django.views.decorators.csrf import ensure_csrf_cookie
from django.views.decorators.http import require_GET, require_POST

from core.responses import api_endpoint, api_error, api_success, read_json, validated

from .access import access_for_user
from .decorators import login_required_json
from .forms import LoginForm, SignupForm
from .tiers import get_catalog

logger = logging.getLogger("accounts.views")


def user_payload(user):
    return {"user": user.to_public_dict(), "access": access_for_user(user).as_dict()}


# ---------------------------------------------------
# CSRF COOKIE (SPA bootstrap)
# ---------------------------------------------------
@require_GET
@ensure_csrf_cookie
def csrf_view(request):
    return api_success({"csrf": True})


# ---------------------------------------------------
# SIGNUP
# ---------------------------------------------------
@require_POST
@api_endpoint
def register_view(request):
    """
    New users start pending approval with every orientation category open.
    """
    form = SignupForm(read_json(request))
    validated(form)

    with transaction.atomic():
        user = form.save()

    logger.info("User %s registered (referred_by=%s)", user.id, user.referred_by_id)
    return api_success(user_payload(user), "User registered successfully", status=201)


# ---------------------------------------------------
# LOGIN / LOGOUT
# ---------------------------------------------------
@require_POST
@api_endpoint
def login_view(request):
    form = LoginForm(request, data=read_json(request))

    if not form.is_valid():
        return api_error(request, "Invalid credentials", 401, "INVALID_CREDENTIALS")

    user = form.get_user()
    login(request, user)
    return api_success(user_payload(user), "Login successful")


@require_POST
def logout_view(request):
    logout(request)
    return api_success(None, "Logged out successfully")


# ---------------------------------------------------
# CURRENT USER
# ---------------------------------------------------
@require_GET
@login_required_json
@api_endpoint
def me_view(request):
    return api_success(user_payload(request.user))


@require_GET
def plans_view(request):
    return api_success({"plans": get_catalog().plans()})
