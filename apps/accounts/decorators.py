# apps/accounts/decorators.py
"""
Server-side enforcement of the Access Evaluator.

Every gated endpoint declares the route it belongs to; the request user's
access is evaluated on each call and the view receives it as
``request.access``.
"""
import logging
from functools import wraps

from core.responses import api_error

from .access import access_for_user

logger = logging.getLogger("accounts.decorators")


def login_required_json(view):
    @wraps(view)
    def wrapper(request, *args, **kwargs):
        if not request.user.is_authenticated:
            return api_error(request, "Unauthorized", 401, "UNAUTHORIZED")
        return view(request, *args, **kwargs)

    return wrapper


def capability_required(route: str):
    def decorator(view):
        @wraps(view)
        def wrapper(request, *args, **kwargs):
            if not request.user.is_authenticated:
                return api_error(request, "Unauthorized", 401, "UNAUTHORIZED")

            access = access_for_user(request.user)
            if not access.allows(route):
                logger.info(
                    "User %s denied '%s' (rule=%s)", request.user.id, route, access.rule
                )
                return api_error(
                    request,
                    f"Access to '{route}' is not available at this stage",
                    403,
                    "ACCESS_DENIED",
                    {"rule": access.rule},
                )

            request.access = access
            return view(request, *args, **kwargs)

        return wrapper

    return decorator


admin_required = capability_required("admin")
