"""Map domain and framework errors to the API error shape.

Every error body is ``{"error": <message>, "code": <ERROR_CODE>}``. Domain
messages are user-safe; anything unexpected is logged and reported
generically.
"""

import logging

from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from cohorts.domain.errors import DomainError, ErrorCode

logger = logging.getLogger(__name__)

STATUS_BY_CODE: dict[ErrorCode, int] = {
    ErrorCode.WORKSHOP_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.COHORT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.SESSION_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.ENROLLMENT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.INVALID_ID: status.HTTP_400_BAD_REQUEST,
    ErrorCode.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_STATUS_TRANSITION: status.HTTP_400_BAD_REQUEST,
    ErrorCode.COHORT_NOT_DELETABLE: status.HTTP_400_BAD_REQUEST,
    ErrorCode.ALREADY_ENROLLED: status.HTTP_409_CONFLICT,
    ErrorCode.ALREADY_CANCELLED: status.HTTP_400_BAD_REQUEST,
    ErrorCode.COHORT_FULL: status.HTTP_400_BAD_REQUEST,
    ErrorCode.WAITLIST_FULL: status.HTTP_400_BAD_REQUEST,
}

_CODE_BY_EXCEPTION = (
    (exceptions.ValidationError, ErrorCode.VALIDATION_ERROR.value),
    (exceptions.NotAuthenticated, "NOT_AUTHENTICATED"),
    (exceptions.AuthenticationFailed, "AUTHENTICATION_FAILED"),
    (exceptions.PermissionDenied, "PERMISSION_DENIED"),
    (exceptions.NotFound, "NOT_FOUND"),
    (Http404, "NOT_FOUND"),
    (exceptions.MethodNotAllowed, "METHOD_NOT_ALLOWED"),
    (exceptions.ParseError, "PARSE_ERROR"),
)


def _first_message(detail) -> str:
    """Flatten DRF error detail into one readable sentence."""
    if isinstance(detail, dict):
        for field, value in detail.items():
            message = _first_message(value)
            return message if field in ("non_field_errors", "detail") else f"{field}: {message}"
        return "Invalid request data"
    if isinstance(detail, list):
        return _first_message(detail[0]) if detail else "Invalid request data"
    return str(detail)


def api_exception_handler(exc, context):
    """DRF EXCEPTION_HANDLER hook."""
    if isinstance(exc, DomainError):
        http_status = STATUS_BY_CODE.get(exc.code, status.HTTP_400_BAD_REQUEST)
        logger.warning(
            "Domain error: %s",
            exc.message,
            extra={"error_code": exc.code.value, "path": context["request"].path},
        )
        return Response({"error": exc.message, "code": exc.code.value}, status=http_status)

    response = exception_handler(exc, context)
    if response is None:
        logger.error("Unhandled exception on %s", context["request"].path, exc_info=exc)
        return Response(
            {"error": "An unexpected error occurred", "code": "INTERNAL_ERROR"},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    code = next(
        (name for exc_type, name in _CODE_BY_EXCEPTION if isinstance(exc, exc_type)),
        "REQUEST_ERROR",
    )
    body = {"error": _first_message(response.data), "code": code}
    if isinstance(exc, exceptions.ValidationError):
        body["details"] = response.data
    response.data = body
    return response
