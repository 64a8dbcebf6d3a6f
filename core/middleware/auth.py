"""
Admin authentication middleware.

This middleware is the single capability check for the admin
control plane. Every request under /api/v1/admin/ passes through it
once; the admin views themselves never compare credentials.
"""

import logging
import secrets
from typing import Callable, Optional

from django.conf import settings
from django.http import HttpRequest, HttpResponse, JsonResponse
from django.middleware.csrf import CsrfViewMiddleware

logger = logging.getLogger(__name__)

ADMIN_API_PREFIX = "/api/v1/admin/"


class _CSRFCheck(CsrfViewMiddleware):
    def _reject(self, request, reason):
        return reason


class AdminAuthenticationMiddleware:
    """
    Middleware for admin authentication.

    Accepted credentials:
    1. Static admin token (X-Admin-Token header, Bearer token, or
       token query parameter) compared in constant time
    2. An authenticated Django staff session (session cookie)

    Returns 403 if neither is present.
    """

    def __init__(self, get_response: Callable):
        """Initialize middleware."""
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        """
        Process request and validate admin capability.

        Args:
            request: HTTP request

        Returns:
            HttpResponse with 403 if authentication fails, the view's response otherwise
        """
        if not request.path.startswith(ADMIN_API_PREFIX):
            return self.get_response(request)

        if self._has_valid_token(request):
            request.admin_principal = "token"  # type: ignore
            return self.get_response(request)

        user = getattr(request, "user", None)
        if user is not None and user.is_authenticated and user.is_staff:
            reason = self._csrf_failure(request)
            if reason:
                logger.warning("CSRF check failed for admin session request: %s", reason)
                return JsonResponse({"success": False, "message": "unauthorized"}, status=403)
            request.admin_principal = user.get_username()  # type: ignore
            return self.get_response(request)

        logger.warning(
            "Unauthorized admin request: %s %s from %s",
            request.method,
            request.path,
            request.META.get("REMOTE_ADDR"),
        )
        return JsonResponse({"success": False, "message": "unauthorized"}, status=403)

    def _extract_token(self, request: HttpRequest) -> Optional[str]:
        """
        Extract the admin token from the request.

        Args:
            request: HTTP request

        Returns:
            Token string or None
        """
        token = request.headers.get("X-Admin-Token")
        if token:
            return token

        auth_header = request.headers.get("Authorization", "")
        if auth_header.startswith("Bearer "):
            return auth_header[7:]

        return request.GET.get("token")

    def _has_valid_token(self, request: HttpRequest) -> bool:
        """Compare the supplied token with the configured one."""
        expected = getattr(settings, "KEYGATE_ADMIN_TOKEN", "")
        if not expected:
            return False
        supplied = self._extract_token(request)
        if not supplied:
            return False
        return secrets.compare_digest(supplied.encode(), expected.encode())

    def _csrf_failure(self, request: HttpRequest) -> Optional[str]:
        """Return the CSRF rejection reason for a session-authenticated request, if any."""
        check = _CSRFCheck(lambda _request: None)
        check.process_request(request)
        return check.process_view(request, None, (), {})
