# core/exceptions.py
"""
Error taxonomy shared by every app.

Business-rule errors are expected and user-facing; the API layer turns
them into the error envelope with the status code declared here.
"""


class PromogError(Exception):
    status_code = 400
    code = "ERROR"

    def __init__(self, message: str = "", details=None):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__
        self.details = details


class NotFound(PromogError):
    status_code = 404
    code = "NOT_FOUND"


class AccessDenied(PromogError):
    status_code = 403
    code = "ACCESS_DENIED"


class QuotaExceeded(PromogError):
    status_code = 429
    code = "QUOTA_EXCEEDED"


class CategoryAlreadyComplete(PromogError):
    status_code = 409
    code = "CATEGORY_ALREADY_COMPLETE"


class AlreadyProcessed(PromogError):
    status_code = 409
    code = "ALREADY_PROCESSED"


class InvalidTransition(PromogError):
    status_code = 409
    code = "INVALID_TRANSITION"


class InsufficientFunds(PromogError):
    status_code = 400
    code = "INSUFFICIENT_FUNDS"


class MinimumDurationNotMet(PromogError):
    status_code = 400
    code = "MIN_DURATION_NOT_MET"


class UpstreamPaymentFailure(PromogError):
    status_code = 502
    code = "UPSTREAM_PAYMENT_FAILURE"


class UnknownTier(PromogError, ValueError):
    code = "UNKNOWN_TIER"
