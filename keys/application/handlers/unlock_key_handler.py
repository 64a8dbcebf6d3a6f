"""
UnlockKeyHandler.

Handler for the gate callback. The provider-signed token names exactly one key;
no other record is ever touched.
"""
import logging

from django.utils import timezone

from core.infrastructure.events import event_bus
from keys.application.commands.unlock_key import UnlockKeyCommand
from keys.application.dto.key_dto import KeyRecordDTO
from keys.application.services.gate_service import GateService
from keys.domain.events import KeyUnlocked
from keys.domain.services import KeyLifecycleManager
from keys.ports.key_repository import KeyRepository

logger = logging.getLogger(__name__)


class UnlockKeyHandler:
    """Handler for UnlockKeyCommand."""

    def __init__(self, key_repository: KeyRepository, gate_service: GateService):
        """Initialize handler with repository and gate service."""
        self.key_repository = key_repository
        self.gate_service = gate_service

    async def handle(self, command: UnlockKeyCommand) -> KeyRecordDTO:
        """
        Handle unlock key command.

        Args:
            command: UnlockKeyCommand

        Returns:
            Unlocked KeyRecordDTO

        Raises:
            InvalidGateTokenError: If the token or provider signature is bad
            KeyNotFoundError: If the key was deleted meanwhile
        """
        key = self.gate_service.read_callback(command.token, command.signature)
        record = await KeyLifecycleManager.unlock(key, self.key_repository)
        logger.info("Unlocked key %s... via gate", key[:8])

        await event_bus.publish(KeyUnlocked(aggregate_id=key))

        return KeyRecordDTO.from_entity(record, timezone.now())
