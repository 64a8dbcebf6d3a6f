"""
CreateKeyHandler.

Handler for issuing a key.
"""

import logging

from django.utils import timezone

from core.domain.exceptions import InvalidKeyError
from core.domain.value_objects import AccessKey
from core.infrastructure.events import event_bus
from core.metrics import keys_created_total
from keys.application.commands.create_key import CreateKeyCommand
from keys.application.dto.key_dto import KeyRecordDTO
from keys.domain.events import KeyCreated
from keys.domain.services import KeyIssuer
from keys.ports.key_repository import KeyRepository

logger = logging.getLogger(__name__)


class CreateKeyHandler:
    """Handler for CreateKeyCommand."""

    def __init__(
        self,
        key_repository: KeyRepository,
        key_prefix: str = "KEY",
        gating_enabled: bool = False,
        max_attempts: int = 5,
    ):
        """Initialize handler with repository and issuing policy."""
        self.key_repository = key_repository
        self.key_prefix = key_prefix
        self.gating_enabled = gating_enabled
        self.max_attempts = max_attempts

    async def handle(self, command: CreateKeyCommand) -> KeyRecordDTO:
        """
        Handle create key command.

        Args:
            command: CreateKeyCommand

        Returns:
            KeyRecordDTO for the new key

        Raises:
            InvalidKeyError: If the supplied key or expiry is malformed
            KeyAlreadyExistsError: If the supplied key already exists
        """
        if command.key:
            try:
                AccessKey(command.key)
            except ValueError as e:
                raise InvalidKeyError(str(e)) from e
        if command.expire_days is not None and command.expire_days < 1:
            raise InvalidKeyError("expireDays must be at least 1")

        now = timezone.now()
        record = await KeyIssuer.issue(
            repository=self.key_repository,
            prefix=self.key_prefix,
            key=command.key,
            expire_days=command.expire_days,
            gating_enabled=self.gating_enabled,
            max_attempts=self.max_attempts,
            now=now,
        )
        keys_created_total.inc()
        logger.info("Issued key %s...", record.key[:8])

        await event_bus.publish(
            KeyCreated(
                aggregate_id=record.key,
                expire_at=record.expire_at,
                unlocked=record.unlocked,
            )
        )

        return KeyRecordDTO.from_entity(record, now)
