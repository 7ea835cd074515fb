import logging
from rest_framework.views import exception_handler
from rest_framework.exceptions import (
    APIException,
    ValidationError,
    NotAuthenticated,
    AuthenticationFailed,
    PermissionDenied
)
from rest_framework import status
from campus.utils.response import api_response

logger = logging.getLogger(__name__)


def format_validation_error(error_detail):
    """
    Convert DRF ValidationError detail into a readable error message.

    Handles:
    - Dict format: {'code': [ErrorDetail(...)]} -> "Code: Invalid role code."
    - List format: [ErrorDetail(...)] -> "Invalid role code."
    - String format: "error message" -> "error message"
    """
    if isinstance(error_detail, dict):
        messages = []
        for field, errors in error_detail.items():
            if not isinstance(errors, (list, tuple)):
                errors = [errors]
            error_strings = [format_validation_error(error) for error in errors]
            field_name = str(field).replace('_', ' ').title()
            messages.append(f"{field_name}: {', '.join(error_strings)}")
        return ". ".join(messages)

    elif isinstance(error_detail, list):
        return ". ".join(format_validation_error(error) for error in error_detail)

    return str(error_detail)


def _error_code(exc, fallback):
    # Authorization errors carry upper-case codes; DRF built-ins use snake_case.
    code = getattr(exc, 'default_code', None)
    if isinstance(code, str) and code.isupper():
        return code
    return fallback


def custom_exception_handler(exc, context):
    """
    Global exception handler.
    Ensures ALL API errors use the api_response() format.
    """
    exception_handler(exc, context)

    view = context.get('view', None)
    view_name = view.__class__.__name__ if view else 'UnknownView'

    if not isinstance(exc, APIException):
        logger.exception(f"[{view_name}] Unhandled exception", exc_info=exc)
        return api_response(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            status="failure",
            data={},
            error_code="INTERNAL_SERVER_ERROR",
            error_message="An unexpected error occurred. Please try again later."
        )

    if exc.status_code >= 500:
        logger.error(f"[{view_name}] {exc.__class__.__name__}: {exc}")
    else:
        logger.info(f"[{view_name}] {exc.__class__.__name__}: {exc}")

    extra = exc.get_extra() if hasattr(exc, 'get_extra') else {}

    # --- Handle Auth Errors ---
    if isinstance(exc, (NotAuthenticated, AuthenticationFailed)):
        return api_response(
            status_code=status.HTTP_401_UNAUTHORIZED,
            status="failure",
            data={},
            error_code=_error_code(exc, "AUTH_ERROR"),
            error_message=str(exc.detail)
        )

    # --- Handle Permission Denied ---
    if isinstance(exc, PermissionDenied):
        return api_response(
            status_code=status.HTTP_403_FORBIDDEN,
            status="failure",
            data={},
            error_code="PERMISSION_DENIED",
            error_message="You do not have permission to perform this action."
        )

    # --- Handle Validation Errors ---
    if isinstance(exc, ValidationError):
        return api_response(
            status_code=status.HTTP_400_BAD_REQUEST,
            status="failure",
            data={},
            error_code="VALIDATION_ERROR",
            error_message=format_validation_error(exc.detail)
        )

    # --- Everything else: NotFound, access denials, integrity faults ---
    return api_response(
        status_code=exc.status_code,
        status="failure",
        data=extra,
        error_code=_error_code(exc, "API_EXCEPTION"),
        error_message=format_validation_error(exc.detail)
    )
