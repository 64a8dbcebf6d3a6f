"""
Rate limiting middleware.

Limits verification and gate callback requests per client address,
so keys cannot be enumerated by brute force. Counters live in the
Django cache (Redis in production).
"""

import hashlib
import time
from typing import Callable, Optional, Tuple

from django.conf import settings
from django.core.cache import cache
from django.http import HttpRequest, HttpResponse, JsonResponse

from core.metrics import errors_total

RATE_LIMITED_PATHS = ("/verify", "/api/v1/verify", "/api/v1/gate/")


class RateLimitMiddleware:
    """
    Fixed-window rate limiting per client address.

    Default limit: KEYGATE_VERIFY_RATE_LIMIT requests per minute.
    """

    RATE_LIMIT_WINDOW = 60  # seconds

    def __init__(self, get_response: Callable):
        """Initialize middleware."""
        self.get_response = get_response

    def _get_client_address(self, request: HttpRequest) -> Optional[str]:
        """
        Extract the client address.

        Uses the first X-Forwarded-For hop when present.

        Args:
            request: HTTP request

        Returns:
            Client address or None
        """
        forwarded = request.META.get("HTTP_X_FORWARDED_FOR")
        if forwarded:
            return forwarded.split(",")[0].strip()
        return request.META.get("REMOTE_ADDR")

    def _get_rate_limit_key(self, client: str) -> str:
        """
        Generate cache key for rate limiting.

        Args:
            client: Client address

        Returns:
            Cache key string
        """
        client_hash = hashlib.sha256(client.encode()).hexdigest()[:16]
        return f"rate_limit:{client_hash}"

    def _check_rate_limit(self, client: str, limit: int) -> Tuple[bool, int, int]:
        """
        Check if request is within rate limit.

        Args:
            client: Client address
            limit: Requests allowed per window

        Returns:
            Tuple of (is_allowed, remaining, reset_time)
        """
        window_start = int(time.time() / self.RATE_LIMIT_WINDOW)
        full_key = f"{self._get_rate_limit_key(client)}:{window_start}"
        reset_time = (window_start + 1) * self.RATE_LIMIT_WINDOW

        current_count = cache.get(full_key, 0)
        if current_count >= limit:
            return False, 0, reset_time

        # add() is a no-op when the key exists, so concurrent first hits do not reset it
        cache.add(full_key, 0, timeout=self.RATE_LIMIT_WINDOW)
        new_count = cache.incr(full_key, 1)

        return True, max(0, limit - new_count), reset_time

    def __call__(self, request: HttpRequest) -> HttpResponse:
        """
        Process request with rate limiting.

        Args:
            request: HTTP request

        Returns:
            HTTP response with rate limit headers
        """
        if not request.path.startswith(RATE_LIMITED_PATHS):
            return self.get_response(request)

        limit = getattr(settings, "KEYGATE_VERIFY_RATE_LIMIT", 0)
        client = self._get_client_address(request)
        if not limit or not client:
            return self.get_response(request)

        is_allowed, remaining, reset_time = self._check_rate_limit(client, limit)

        if not is_allowed:
            errors_total.labels(error_type="rate_limit_exceeded", endpoint=request.path).inc()
            response = JsonResponse(
                {"success": False, "message": "rate limit exceeded"},
                status=429,
            )
        else:
            response = self.get_response(request)

        response["X-RateLimit-Limit"] = str(limit)
        response["X-RateLimit-Remaining"] = str(remaining)
        response["X-RateLimit-Reset"] = str(reset_time)
        if not is_allowed:
            response["Retry-After"] = str(max(0, reset_time - int(time.time())))

        return response
