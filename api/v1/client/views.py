"""
Client API views.

These endpoints are used by client software to:
- Verify a key against a device (HWID), binding it on first use
- Return from the external unlock gate
"""

from asgiref.sync import async_to_sync
from django.conf import settings
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from api.exceptions import error_response
from api.v1.client.serializers import (
    GateCallbackRequestSerializer,
    VerificationResponseSerializer,
    VerifyKeyRequestSerializer,
)
from core.instrumentation import Status, StatusCode, get_tracer
from keys.application.commands.unlock_key import UnlockKeyCommand
from keys.application.commands.verify_key import VerifyKeyCommand
from keys.application.handlers.unlock_key_handler import UnlockKeyHandler
from keys.application.handlers.verify_key_handler import VerifyKeyHandler
from keys.application.services.gate_service import GateService
from keys.infrastructure.repositories.django_key_repository import DjangoKeyRepository

# Initialize repositories (in production, use DI container)
_key_repo = DjangoKeyRepository()

tracer = get_tracer(__name__)


class VerifyKeyView(APIView):
    """View for verifying a key against a device."""

    @extend_schema(
        operation_id="verify_key",
        summary="Verify Key",
        description=(
            "Check a key for a device. An unbound key is bound to the first "
            "HWID that verifies it; later verifies must present the same HWID. "
            "Lifecycle outcomes are reported with HTTP 200 and success=false."
        ),
        tags=["Client API"],
        parameters=[
            OpenApiParameter(name="key", type=str, required=True, description="Access key"),
            OpenApiParameter(name="hwid", type=str, required=True, description="Hardware identifier"),
        ],
        responses={
            200: VerificationResponseSerializer,
            400: {"description": "Missing or malformed key or hwid"},
            429: {"description": "Rate limit exceeded"},
            500: {"description": "Key integrity error"},
            503: {"description": "Transient store failure, retry later"},
        },
    )
    def get(self, request: Request) -> Response:
        """Verify a key for a device."""
        return async_to_sync(self._handle_verify_key)(request)

    async def _handle_verify_key(self, request: Request) -> Response:
        """Async handler for verify key."""
        with tracer.start_as_current_span("verify_key") as span:
            span.set_attribute("operation", "verify_key")

            serializer = VerifyKeyRequestSerializer(data=request.query_params)
            if not serializer.is_valid():
                missing = serializer.has_missing_fields()
                span.set_attribute("error", "missing_input" if missing else "invalid_input")
                span.set_status(Status(StatusCode.ERROR, "Validation failed"))
                message = "missing key or hwid" if missing else "invalid key or hwid"
                return error_response(message, status.HTTP_400_BAD_REQUEST)

            key = serializer.validated_data["key"]
            span.set_attribute("key_prefix", key[:8])

            handler = VerifyKeyHandler(
                key_repository=_key_repo,
                gate_service=GateService(),
                max_attempts=settings.KEYGATE_VERIFY_ATTEMPTS,
            )
            command = VerifyKeyCommand(key=key, hwid=serializer.validated_data["hwid"])

            result = await handler.handle(command)

            span.set_attribute("outcome", result.outcome.value)
            span.set_status(Status(StatusCode.OK))
            return Response(VerificationResponseSerializer(result).data, status=status.HTTP_200_OK)


class GateCallbackView(APIView):
    """View the external unlock gate redirects back to."""

    @extend_schema(
        operation_id="gate_callback",
        summary="Gate Callback",
        description=(
            "Called by the gate provider to unlock the single key named by a "
            "gate token. The provider proves itself with an HMAC-SHA256 of the "
            "token keyed by the shared callback secret."
        ),
        tags=["Client API"],
        parameters=[
            OpenApiParameter(name="token", type=str, required=True, description="Signed gate token"),
            OpenApiParameter(
                name="signature", type=str, required=True,
                description="Provider HMAC-SHA256 of the token (hex)",
            ),
        ],
        responses={
            200: {"description": "Key unlocked"},
            400: {"description": "Invalid or expired gate token, or bad provider signature"},
            404: {"description": "Key not found"},
        },
    )
    def get(self, request: Request) -> Response:
        """Unlock the key named by the gate token."""
        return async_to_sync(self._handle_gate_callback)(request)

    async def _handle_gate_callback(self, request: Request) -> Response:
        """Async handler for gate callback."""
        with tracer.start_as_current_span("gate_callback") as span:
            span.set_attribute("operation", "gate_callback")

            serializer = GateCallbackRequestSerializer(data=request.query_params)
            if not serializer.is_valid():
                span.set_status(Status(StatusCode.ERROR, "Validation failed"))
                return error_response(
                    "invalid gate token", status.HTTP_400_BAD_REQUEST, "INVALID_GATE_TOKEN"
                )

            handler = UnlockKeyHandler(key_repository=_key_repo, gate_service=GateService())
            command = UnlockKeyCommand(
                token=serializer.validated_data["token"],
                signature=serializer.validated_data["signature"],
            )

            record = await handler.handle(command)

            span.set_attribute("key_prefix", record.key[:8])
            span.set_status(Status(StatusCode.OK))
            return Response({"success": True, "message": "unlocked"}, status=status.HTTP_200_OK)
