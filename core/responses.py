# core/responses.py
import json
import logging
from functools import wraps

from django.http import JsonResponse
from django.utils import timezone

from .exceptions import PromogError

logger = logging.getLogger("core.responses")


def _timestamp():
    return timezone.now().isoformat()


def api_success(data=None, message: str = "", status: int = 200) -> JsonResponse:
    payload = {"success": True, "data": data, "timestamp": _timestamp()}
    if message:
        payload["message"] = message
    return JsonResponse(payload, status=status)


def api_error(request, message: str, status: int = 400, code: str = "", details=None) -> JsonResponse:
    error = {"message": message}
    if code:
        error["code"] = code
    if details:
        error["details"] = details
    return JsonResponse(
        {"success": False, "error": error, "timestamp": _timestamp(), "path": request.path},
        status=status,
    )


def read_json(request) -> dict:
    """Decode a JSON request body; an empty body reads as {}."""
    if not request.body:
        return {}
    data = json.loads(request.body)
    if not isinstance(data, dict):
        raise ValueError("JSON object expected")
    return data


class FormInvalid(Exception):
    def __init__(self, form):
        super().__init__("Validation Error")
        self.errors = form.errors.get_json_data()


def validated(form):
    if not form.is_valid():
        raise FormInvalid(form)
    return form.cleaned_data


# -----------------------------
# View decorator
# -----------------------------
def api_endpoint(view):
    """
    Wraps a JSON view: business errors map to their status code,
    malformed input to 400, anything else is logged and becomes a 500.
    """

    @wraps(view)
    def wrapper(request, *args, **kwargs):
        try:
            return view(request, *args, **kwargs)
        except PromogError as exc:
            logger.info("%s rejected (%s): %s", view.__name__, exc.code, exc.message)
            return api_error(request, exc.message, exc.status_code, exc.code, exc.details)
        except FormInvalid as exc:
            return api_error(request, "Validation Error", 400, "VALIDATION_ERROR", exc.errors)
        except ValueError as exc:
            return api_error(request, f"Invalid request body: {exc}", 400, "BAD_REQUEST")
        except Exception:
            logger.exception("%s failed (args=%s)", view.__name__, kwargs)
            return api_error(request, "Internal Server Error", 500, "INTERNAL_ERROR")

    return wrapper
