"""
VerifyKeyHandler.

Handler for verifying a key against a device. Owns the retry policy
for transient store errors; the domain service never retries.
"""

import logging

from django.utils import timezone

from core.domain.exceptions import BindConflictError, StoreUnavailableError
from core.infrastructure.events import event_bus
from core.metrics import key_verifications_total
from keys.application.commands.verify_key import VerifyKeyCommand
from keys.application.dto.key_dto import VerificationResultDTO
from keys.application.services.gate_service import GateService
from keys.domain.events import KeyActivated
from keys.domain.lifecycle import Outcome
from keys.domain.services import KeyActivationService
from keys.ports.key_repository import KeyRepository

logger = logging.getLogger(__name__)


class VerifyKeyHandler:
    """Handler for VerifyKeyCommand."""

    def __init__(
        self,
        key_repository: KeyRepository,
        gate_service: GateService,
        max_attempts: int = 1,
    ):
        """Initialize handler with repository and gate service."""
        self.key_repository = key_repository
        self.gate_service = gate_service
        self.max_attempts = max(1, max_attempts)

    async def handle(self, command: VerifyKeyCommand) -> VerificationResultDTO:
        """
        Handle verify key command.

        Args:
            command: VerifyKeyCommand

        Returns:
            VerificationResultDTO with the outcome and, when gated, the gate URL

        Raises:
            StoreUnavailableError: If the store stays unavailable
            BindConflictError: If binding stays contended
            KeyIntegrityError: If the stored record is inconsistent
        """
        outcome = await self._verify(command)
        key_verifications_total.labels(outcome=outcome.value).inc()

        if outcome is Outcome.ACTIVATED:
            await event_bus.publish(KeyActivated(aggregate_id=command.key, hwid=command.hwid))

        gate_url = None
        if outcome is Outcome.NEEDS_GATE:
            gate_url = self.gate_service.gate_url_for(command.key)

        return VerificationResultDTO(outcome=outcome, gate_url=gate_url)

    async def _verify(self, command: VerifyKeyCommand) -> Outcome:
        """Run verification, retrying transient failures from a fresh read."""
        for attempt in range(1, self.max_attempts + 1):
            try:
                return await KeyActivationService.verify(
                    key=command.key,
                    hwid=command.hwid,
                    repository=self.key_repository,
                    now=timezone.now(),
                )
            except (StoreUnavailableError, BindConflictError) as e:
                if attempt >= self.max_attempts:
                    raise
                logger.warning(
                    "Transient failure verifying key %s... (attempt %d/%d): %s",
                    command.key[:8],
                    attempt,
                    self.max_attempts,
                    e.code,
                )
