"""
Key admin handlers.

Handlers for ban, unban, reset-hwid, and delete commands. Each is a
field-level mutation; none is atomic with an in-flight verification.
"""
import logging

from django.utils import timezone

from core.infrastructure.events import event_bus
from core.metrics import key_admin_actions_total
from keys.application.commands.ban_key import BanKeyCommand
from keys.application.commands.delete_key import DeleteKeyCommand
from keys.application.commands.reset_hwid import ResetHwidCommand
from keys.application.commands.unban_key import UnbanKeyCommand
from keys.application.dto.key_dto import KeyRecordDTO
from keys.domain.events import KeyBanned, KeyDeleted, KeyHwidReset, KeyUnbanned
from keys.domain.services import KeyLifecycleManager
from keys.ports.key_repository import KeyRepository

logger = logging.getLogger(__name__)


class BanKeyHandler:
    """Handler for BanKeyCommand."""

    def __init__(self, key_repository: KeyRepository):
        """Initialize handler with repository."""
        self.key_repository = key_repository

    async def handle(self, command: BanKeyCommand) -> KeyRecordDTO:
        """
        Handle ban key command.

        Args:
            command: BanKeyCommand

        Returns:
            Updated KeyRecordDTO

        Raises:
            KeyNotFoundError: If key not found
        """
        record = await KeyLifecycleManager.ban(command.key, self.key_repository)
        key_admin_actions_total.labels(action="ban").inc()
        logger.info("Banned key %s...", command.key[:8])

        await event_bus.publish(KeyBanned(aggregate_id=command.key))

        return KeyRecordDTO.from_entity(record, timezone.now())


class UnbanKeyHandler:
    """Handler for UnbanKeyCommand."""

    def __init__(self, key_repository: KeyRepository):
        """Initialize handler with repository."""
        self.key_repository = key_repository

    async def handle(self, command: UnbanKeyCommand) -> KeyRecordDTO:
        """
        Handle unban key command.

        Raises:
            KeyNotFoundError: If key not found
        """
        record = await KeyLifecycleManager.unban(command.key, self.key_repository)
        key_admin_actions_total.labels(action="unban").inc()
        logger.info("Unbanned key %s...", command.key[:8])

        await event_bus.publish(KeyUnbanned(aggregate_id=command.key))

        return KeyRecordDTO.from_entity(record, timezone.now())


class ResetHwidHandler:
    """Handler for ResetHwidCommand."""

    def __init__(self, key_repository: KeyRepository):
        """Initialize handler with repository."""
        self.key_repository = key_repository

    async def handle(self, command: ResetHwidCommand) -> KeyRecordDTO:
        """
        Handle reset hwid command.

        The next successful verify binds whichever device asks first.

        Raises:
            KeyNotFoundError: If key not found
        """
        record = await KeyLifecycleManager.reset_hwid(command.key, self.key_repository)
        key_admin_actions_total.labels(action="reset_hwid").inc()
        logger.info("Reset hwid of key %s...", command.key[:8])

        await event_bus.publish(KeyHwidReset(aggregate_id=command.key))

        return KeyRecordDTO.from_entity(record, timezone.now())


class DeleteKeyHandler:
    """Handler for DeleteKeyCommand."""

    def __init__(self, key_repository: KeyRepository):
        """Initialize handler with repository."""
        self.key_repository = key_repository

    async def handle(self, command: DeleteKeyCommand) -> None:
        """
        Handle delete key command.

        Raises:
            KeyNotFoundError: If key not found
        """
        await KeyLifecycleManager.delete(command.key, self.key_repository)
        key_admin_actions_total.labels(action="delete").inc()
        logger.info("Deleted key %s...", command.key[:8])

        await event_bus.publish(KeyDeleted(aggregate_id=command.key))
