"""
Admin API views.

These endpoints are used by the key administrator to:
- Create and list keys
- Ban, unban, and reset the device binding of a key
- Delete keys

Authorization is enforced once, by AdminAuthenticationMiddleware.
"""

from asgiref.sync import async_to_sync
from django.conf import settings
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from api.v1.admin.serializers import (
    CreateKeyRequestSerializer,
    KeyListResponseSerializer,
    KeyRecordSerializer,
    KeyResponseSerializer,
    ListKeysQuerySerializer,
)
from core.instrumentation import Status, StatusCode, get_tracer
from keys.application.commands.ban_key import BanKeyCommand
from keys.application.commands.create_key import CreateKeyCommand
from keys.application.commands.delete_key import DeleteKeyCommand
from keys.application.commands.reset_hwid import ResetHwidCommand
from keys.application.commands.unban_key import UnbanKeyCommand
from keys.application.handlers.create_key_handler import CreateKeyHandler
from keys.application.handlers.key_admin_handlers import (
    BanKeyHandler,
    DeleteKeyHandler,
    ResetHwidHandler,
    UnbanKeyHandler,
)
from keys.application.handlers.list_keys_handler import GetKeyHandler, ListKeysHandler
from keys.application.queries.get_key import GetKeyQuery
from keys.application.queries.list_keys import ListKeysQuery
from keys.infrastructure.repositories.django_key_repository import DjangoKeyRepository

# Initialize repositories (in production, use DI container)
_key_repo = DjangoKeyRepository()

tracer = get_tracer(__name__)

KEY_NOT_FOUND_RESPONSE = {"description": "Key not found"}
UNAUTHORIZED_RESPONSE = {"description": "Unauthorized - Missing or invalid admin credential"}


def _key_response(record, status_code=status.HTTP_200_OK) -> Response:
    return Response(
        {"success": True, "key": KeyRecordSerializer(record).data},
        status=status_code,
    )


class KeyCollectionView(APIView):
    """View for creating and listing keys."""

    @extend_schema(
        operation_id="create_key",
        summary="Create Key",
        description=(
            "Issue a key. Without a key in the body a random one is generated. "
            "expireDays sets an expiry relative to now; omit it for a key that never expires."
        ),
        tags=["Admin API"],
        request=CreateKeyRequestSerializer,
        responses={
            201: KeyResponseSerializer,
            400: {"description": "Bad Request"},
            403: UNAUTHORIZED_RESPONSE,
            409: {"description": "Key already exists"},
        },
    )
    def post(self, request: Request) -> Response:
        """Create a key."""
        return async_to_sync(self._handle_create_key)(request)

    async def _handle_create_key(self, request: Request) -> Response:
        """Async handler for create key."""
        with tracer.start_as_current_span("create_key") as span:
            span.set_attribute("operation", "create_key")

            serializer = CreateKeyRequestSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)

            handler = CreateKeyHandler(
                key_repository=_key_repo,
                key_prefix=settings.KEYGATE_KEY_PREFIX,
                gating_enabled=settings.KEYGATE_GATING_ENABLED,
                max_attempts=settings.KEYGATE_KEY_GENERATION_ATTEMPTS,
            )
            command = CreateKeyCommand(
                key=serializer.validated_data.get("key") or None,
                expire_days=serializer.validated_data.get("expireDays"),
            )
            span.set_attribute("key_supplied", command.key is not None)

            record = await handler.handle(command)

            span.set_attribute("key_prefix", record.key[:8])
            span.set_status(Status(StatusCode.OK))
            return _key_response(record, status.HTTP_201_CREATED)

    @extend_schema(
        operation_id="list_keys",
        summary="List Keys",
        description="List keys, newest first, optionally filtered by banned and bound.",
        tags=["Admin API"],
        parameters=[
            OpenApiParameter(name="banned", type=bool, required=False),
            OpenApiParameter(name="bound", type=bool, required=False),
        ],
        responses={
            200: KeyListResponseSerializer,
            403: UNAUTHORIZED_RESPONSE,
        },
    )
    def get(self, request: Request) -> Response:
        """List keys."""
        return async_to_sync(self._handle_list_keys)(request)

    async def _handle_list_keys(self, request: Request) -> Response:
        """Async handler for list keys."""
        with tracer.start_as_current_span("list_keys") as span:
            span.set_attribute("operation", "list_keys")

            serializer = ListKeysQuerySerializer(data=request.query_params)
            serializer.is_valid(raise_exception=True)

            handler = ListKeysHandler(key_repository=_key_repo)
            query = ListKeysQuery(
                banned=serializer.validated_data.get("banned"),
                bound=serializer.validated_data.get("bound"),
            )

            records = await handler.handle(query)

            span.set_attribute("keys.count", len(records))
            span.set_status(Status(StatusCode.OK))
            return Response(
                {
                    "success": True,
                    "count": len(records),
                    "keys": KeyRecordSerializer(records, many=True).data,
                },
                status=status.HTTP_200_OK,
            )


class KeyDetailView(APIView):
    """View for reading and deleting one key."""

    @extend_schema(
        operation_id="get_key",
        summary="Get Key",
        tags=["Admin API"],
        responses={
            200: KeyResponseSerializer,
            403: UNAUTHORIZED_RESPONSE,
            404: KEY_NOT_FOUND_RESPONSE,
        },
    )
    def get(self, request: Request, key: str) -> Response:
        """Get a key."""
        return async_to_sync(self._handle_get_key)(request, key)

    async def _handle_get_key(self, request: Request, key: str) -> Response:
        """Async handler for get key."""
        with tracer.start_as_current_span("get_key") as span:
            span.set_attribute("operation", "get_key")
            span.set_attribute("key_prefix", key[:8])

            record = await GetKeyHandler(key_repository=_key_repo).handle(GetKeyQuery(key=key))

            span.set_status(Status(StatusCode.OK))
            return _key_response(record)

    @extend_schema(
        operation_id="delete_key",
        summary="Delete Key",
        tags=["Admin API"],
        responses={
            200: {"description": "Key deleted"},
            403: UNAUTHORIZED_RESPONSE,
            404: KEY_NOT_FOUND_RESPONSE,
        },
    )
    def delete(self, request: Request, key: str) -> Response:
        """Delete a key."""
        return async_to_sync(self._handle_delete_key)(request, key)

    async def _handle_delete_key(self, request: Request, key: str) -> Response:
        """Async handler for delete key."""
        with tracer.start_as_current_span("delete_key") as span:
            span.set_attribute("operation", "delete_key")
            span.set_attribute("key_prefix", key[:8])

            await DeleteKeyHandler(key_repository=_key_repo).handle(DeleteKeyCommand(key=key))

            span.set_status(Status(StatusCode.OK))
            return Response({"success": True, "message": "deleted"}, status=status.HTTP_200_OK)


class BanKeyView(APIView):
    """View for banning a key."""

    @extend_schema(
        operation_id="ban_key",
        summary="Ban Key",
        description="Ban a key. Every later verify reports it banned until it is unbanned.",
        tags=["Admin API"],
        request=None,
        responses={
            200: KeyResponseSerializer,
            403: UNAUTHORIZED_RESPONSE,
            404: KEY_NOT_FOUND_RESPONSE,
        },
    )
    def post(self, request: Request, key: str) -> Response:
        """Ban a key."""
        return async_to_sync(self._handle_ban_key)(request, key)

    async def _handle_ban_key(self, request: Request, key: str) -> Response:
        """Async handler for ban key."""
        with tracer.start_as_current_span("ban_key") as span:
            span.set_attribute("operation", "ban_key")
            span.set_attribute("key_prefix", key[:8])

            record = await BanKeyHandler(key_repository=_key_repo).handle(BanKeyCommand(key=key))

            span.set_status(Status(StatusCode.OK))
            return _key_response(record)


class UnbanKeyView(APIView):
    """View for lifting a ban."""

    @extend_schema(
        operation_id="unban_key",
        summary="Unban Key",
        tags=["Admin API"],
        request=None,
        responses={
            200: KeyResponseSerializer,
            403: UNAUTHORIZED_RESPONSE,
            404: KEY_NOT_FOUND_RESPONSE,
        },
    )
    def post(self, request: Request, key: str) -> Response:
        """Unban a key."""
        return async_to_sync(self._handle_unban_key)(request, key)

    async def _handle_unban_key(self, request: Request, key: str) -> Response:
        """Async handler for unban key."""
        with tracer.start_as_current_span("unban_key") as span:
            span.set_attribute("operation", "unban_key")
            span.set_attribute("key_prefix", key[:8])

            record = await UnbanKeyHandler(key_repository=_key_repo).handle(
                UnbanKeyCommand(key=key)
            )

            span.set_status(Status(StatusCode.OK))
            return _key_response(record)


class ResetHwidView(APIView):
    """View for clearing the device binding of a key."""

    @extend_schema(
        operation_id="reset_hwid",
        summary="Reset HWID",
        description=(
            "Clear the device binding of a key. The next successful verify binds "
            "whichever device asks first. Ban and expiry are left untouched."
        ),
        tags=["Admin API"],
        request=None,
        responses={
            200: KeyResponseSerializer,
            403: UNAUTHORIZED_RESPONSE,
            404: KEY_NOT_FOUND_RESPONSE,
        },
    )
    def post(self, request: Request, key: str) -> Response:
        """Reset the HWID of a key."""
        return async_to_sync(self._handle_reset_hwid)(request, key)

    async def _handle_reset_hwid(self, request: Request, key: str) -> Response:
        """Async handler for reset hwid."""
        with tracer.start_as_current_span("reset_hwid") as span:
            span.set_attribute("operation", "reset_hwid")
            span.set_attribute("key_prefix", key[:8])

            record = await ResetHwidHandler(key_repository=_key_repo).handle(
                ResetHwidCommand(key=key)
            )

            span.set_status(Status(StatusCode.OK))
            return _key_response(record)
