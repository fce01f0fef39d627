import logging

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class ServiceError(APIException):
    """
    Base class for errors raised by the service layer.
    The status code travels with the error so views never translate it by hand.
    """
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Request failed"
    default_code = "error"


class NotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"
    default_code = "not_found"


class InvalidInput(ServiceError):
    default_detail = "Invalid input"
    default_code = "invalid_input"


class InvalidTransition(ServiceError):
    default_detail = "Status transition not allowed"
    default_code = "invalid_transition"


class InvalidState(ServiceError):
    default_detail = "Operation not allowed in the current state"
    default_code = "invalid_state"


class InsufficientAmount(ServiceError):
    default_detail = "Insufficient payment"
    default_code = "insufficient_amount"


class Gone(ServiceError):
    status_code = status.HTTP_410_GONE
    default_detail = "Resource has expired"
    default_code = "gone"


def api_exception_handler(exc, context):
    response = exception_handler(exc, context)
    if response is None:
        return response

    if isinstance(exc, ServiceError):
        view = context.get("view")
        logger.warning("%s in %s: %s", type(exc).__name__, type(view).__name__ if view else "-", exc.detail)

    if isinstance(response.data, dict):
        message = response.data.get("detail", "Request failed")
        fields = {k: v for k, v in response.data.items() if k != "detail"}
    elif isinstance(response.data, list):
        message = " ".join(str(item) for item in response.data) or "Request failed"
        fields = {}
    else:
        message = "Request failed"
        fields = {}

    code = getattr(exc, "default_code", "error")
    if hasattr(exc, "get_codes") and not isinstance(exc, ServiceError):
        codes = exc.get_codes()
        if isinstance(codes, str):
            code = codes

    response.data = {
        "success": False,
        "error": {
            "code": code,
            "message": str(message),
            "fields": fields,
        },
    }
    return response
