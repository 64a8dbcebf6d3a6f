"""
API exception handlers.

This module renders every error as {"success": false, "message", "code"},
the same envelope clients already parse for verification results.
"""

import logging
from typing import Any, Dict, Optional

from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler

from core.domain.exceptions import (
    DomainException,
    KeyAlreadyExistsError,
    KeyIntegrityError,
    KeyNotFoundError,
    StoreException,
)
from core.metrics import errors_total

logger = logging.getLogger(__name__)

RETRY_AFTER_SECONDS = 1


def error_response(message: str, status_code: int, code: Optional[str] = None) -> Response:
    """Build the standard error envelope."""
    body = {"success": False, "message": message}
    if code:
        body["code"] = code
    return Response(body, status=status_code)


def custom_exception_handler(exc: Exception, context: Dict[str, Any]) -> Response:
    """Custom exception handler for REST API."""
    trace_id = _get_trace_id(context)

    if isinstance(exc, DomainException):
        response = _handle_domain_exception(exc, context, trace_id)
    elif isinstance(exc, APIException):
        response = exception_handler(exc, context)
        data = response.data if response else None
        detail = data.get("detail", exc.default_detail) if isinstance(data, dict) else exc.default_detail
        code = exc.default_code.upper().replace("-", "_")
        response = error_response(str(detail), exc.status_code, code)
    elif isinstance(exc, Http404):
        response = error_response("resource not found", status.HTTP_404_NOT_FOUND, "NOT_FOUND")
    else:
        response = _handle_unexpected_exception(exc, context, trace_id)

    if trace_id:
        response["X-Trace-ID"] = trace_id
    return response


def _get_trace_id(context: Dict[str, Any]) -> Optional[str]:
    """Extract trace ID from request context."""
    request = context.get("request")
    if not request:
        return None
    return getattr(request, "trace_id", None) or getattr(request, "correlation_id", None)


def _endpoint(context: Dict[str, Any]) -> str:
    request = context.get("request")
    return request.path if request else "unknown"


def _handle_domain_exception(
    exc: DomainException, context: Dict[str, Any], trace_id: Optional[str]
) -> Response:
    """Handle domain-specific exceptions."""
    if isinstance(exc, StoreException):
        # Could not determine an outcome: distinct from a negative outcome
        logger.warning(
            "Transient store error: %s - %s", exc.code, exc.message,
            extra={"trace_id": trace_id}, exc_info=True,
        )
        errors_total.labels(error_type=exc.code, endpoint=_endpoint(context)).inc()
        response = error_response("server error", status.HTTP_503_SERVICE_UNAVAILABLE, exc.code)
        response["Retry-After"] = str(RETRY_AFTER_SECONDS)
        return response

    if isinstance(exc, KeyIntegrityError):
        logger.error(
            "Key integrity violation: %s", exc.message,
            extra={"trace_id": trace_id},
        )
        errors_total.labels(error_type=exc.code, endpoint=_endpoint(context)).inc()
        return error_response("key integrity error", status.HTTP_500_INTERNAL_SERVER_ERROR, exc.code)

    status_code = status.HTTP_400_BAD_REQUEST
    if isinstance(exc, KeyNotFoundError):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, KeyAlreadyExistsError):
        status_code = status.HTTP_409_CONFLICT

    logger.warning("Domain exception: %s - %s", exc.code, exc.message, extra={"trace_id": trace_id})
    return error_response(exc.message, status_code, exc.code)


def _handle_unexpected_exception(
    exc: Exception, context: Dict[str, Any], trace_id: Optional[str]
) -> Response:
    """Handle unexpected or untracked exceptions."""
    logger.error("Unexpected error: %s", exc, extra={"trace_id": trace_id}, exc_info=True)
    errors_total.labels(error_type=type(exc).__name__, endpoint=_endpoint(context)).inc()
    return error_response("server error", status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR")
