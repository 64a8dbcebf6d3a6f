"""
Key domain services.

Domain services contain business logic that doesn't naturally
fit within a single entity.
"""

import logging
from datetime import datetime
from typing import Optional

from core.domain.exceptions import (
    BindConflictError,
    KeyAlreadyExistsError,
    KeyNotFoundError,
)
from keys.domain.key_record import KeyRecord, generate_key
from keys.domain.lifecycle import Outcome, check_binding, evaluate
from keys.ports.key_repository import KeyRepository

logger = logging.getLogger(__name__)


class KeyActivationService:
    """Domain service running verification and the atomic bind protocol."""

    @staticmethod
    async def verify(
        key: str,
        hwid: str,
        repository: KeyRepository,
        now: datetime,
    ) -> Outcome:
        """
        Verify a key for a device, binding it on first use.

        Args:
            key: Key string
            hwid: Hardware identifier supplied by the client
            repository: Key repository
            now: Current time

        Returns:
            Final Outcome

        Raises:
            StoreUnavailableError: If the store fails (never retried here)
            BindConflictError: If a lost bind cannot be resolved
            KeyIntegrityError: If the stored record is inconsistent
        """
        record = await repository.find_by_key(key)
        if record is None:
            return Outcome.NOT_FOUND

        decision = evaluate(record, hwid, now)
        if not decision.requires_bind:
            return decision.outcome

        bound = await repository.bind_hwid(
            key, decision.bind.hwid, decision.bind.activated_at
        )
        if bound:
            logger.info("Key %s... bound to device", key[:8])
            return Outcome.ACTIVATED

        return await KeyActivationService._resolve_lost_bind(key, hwid, repository)

    @staticmethod
    async def _resolve_lost_bind(
        key: str,
        hwid: str,
        repository: KeyRepository,
    ) -> Outcome:
        """Re-read after another writer won the bind and check against it."""
        from core.metrics import key_bind_conflicts_total

        key_bind_conflicts_total.inc()
        current = await repository.find_by_key(key)
        if current is None:
            return Outcome.NOT_FOUND
        if current.hwid is None:
            # A reset landed between the competing bind and this read.
            raise BindConflictError()
        current.check_integrity()

        outcome = check_binding(current, hwid)
        logger.info("Key %s... lost bind race, resolved as %s", key[:8], outcome)
        return outcome


class KeyIssuer:
    """Domain service for issuing keys."""

    @staticmethod
    async def issue(
        repository: KeyRepository,
        prefix: str,
        key: Optional[str] = None,
        expire_days: Optional[int] = None,
        gating_enabled: bool = False,
        max_attempts: int = 5,
        now: Optional[datetime] = None,
    ) -> KeyRecord:
        """
        Issue a new key.

        Generated keys are regenerated on collision; a supplied key
        that already exists is rejected.

        Args:
            repository: Key repository
            prefix: Prefix for generated keys
            key: Optional admin-supplied key
            expire_days: Days until expiry (None for never)
            gating_enabled: Whether the key starts locked behind the gate
            max_attempts: Generation attempts before giving up
            now: Creation time

        Returns:
            Inserted KeyRecord

        Raises:
            KeyAlreadyExistsError: If the supplied key exists, or every
                generated candidate collided
        """
        if key:
            record = KeyRecord.create(key, expire_days, gating_enabled, now)
            return await repository.insert(record)

        for attempt in range(1, max_attempts + 1):
            record = KeyRecord.create(generate_key(prefix), expire_days, gating_enabled, now)
            try:
                return await repository.insert(record)
            except KeyAlreadyExistsError:
                logger.warning("Generated key collided (attempt %d/%d)", attempt, max_attempts)

        raise KeyAlreadyExistsError(f"Could not generate a unique key in {max_attempts} attempts")


class KeyLifecycleManager:
    """Domain service for administrative key mutations."""

    @staticmethod
    async def ban(key: str, repository: KeyRepository) -> KeyRecord:
        """Ban a key."""
        if not await repository.set_banned(key, True):
            raise KeyNotFoundError()
        return await KeyLifecycleManager._reload(key, repository)

    @staticmethod
    async def unban(key: str, repository: KeyRepository) -> KeyRecord:
        """Lift a ban."""
        if not await repository.set_banned(key, False):
            raise KeyNotFoundError()
        return await KeyLifecycleManager._reload(key, repository)

    @staticmethod
    async def reset_hwid(key: str, repository: KeyRepository) -> KeyRecord:
        """
        Clear the device binding so the key can bind again.

        Leaves banned and expire_at untouched.
        """
        if not await repository.reset_hwid(key):
            raise KeyNotFoundError()
        return await KeyLifecycleManager._reload(key, repository)

    @staticmethod
    async def unlock(key: str, repository: KeyRepository) -> KeyRecord:
        """Mark exactly this key as having passed the gate."""
        if not await repository.mark_unlocked(key):
            raise KeyNotFoundError()
        return await KeyLifecycleManager._reload(key, repository)

    @staticmethod
    async def delete(key: str, repository: KeyRepository) -> None:
        """Delete a key."""
        if not await repository.delete(key):
            raise KeyNotFoundError()

    @staticmethod
    async def _reload(key: str, repository: KeyRepository) -> KeyRecord:
        record = await repository.find_by_key(key)
        if record is None:
            raise KeyNotFoundError()
        return record
