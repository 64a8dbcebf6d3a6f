"""
KeyRecord domain entity.

This is the core domain entity representing one issued access key.
It contains business logic and is independent of infrastructure.
"""

import secrets
import string
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Optional

from core.domain.exceptions import KeyIntegrityError
from core.domain.value_objects import AccessKey, KeyState


def generate_key(prefix: str) -> str:
    """
    Generate a key in format: PREFIX-XXXX-XXXX-XXXX-XXXX.

    Args:
        prefix: Key prefix (e.g., 'KEY')

    Returns:
        Generated key string
    """
    chars = string.ascii_uppercase + string.digits
    parts = ["".join(secrets.choice(chars) for _ in range(4)) for _ in range(4)]
    return f"{prefix}-{'-'.join(parts)}"


@dataclass(frozen=True)
class KeyRecord:
    """
    KeyRecord domain entity.

    The key string is the record's own identifier. Once hwid is set it
    only returns to None through an explicit admin reset.
    """

    key: str
    hwid: Optional[str]
    banned: bool
    unlocked: bool
    expire_at: Optional[datetime]
    created_at: datetime
    activated_at: Optional[datetime]

    def __post_init__(self):
        """Validate key record entity."""
        AccessKey(self.key)

    @classmethod
    def create(
        cls,
        key: str,
        expire_days: Optional[int] = None,
        gating_enabled: bool = False,
        now: Optional[datetime] = None,
    ) -> "KeyRecord":
        """
        Create a new, unbound KeyRecord.

        Args:
            key: Key string
            expire_days: Days until expiry (None for never)
            gating_enabled: Whether the key must pass the unlock gate first
            now: Creation time (defaults to current UTC time)

        Returns:
            KeyRecord entity instance
        """
        now = now or datetime.now(timezone.utc)
        expire_at = now + timedelta(days=expire_days) if expire_days else None
        return cls(
            key=key,
            hwid=None,
            banned=False,
            unlocked=not gating_enabled,
            expire_at=expire_at,
            created_at=now,
            activated_at=None,
        )

    @property
    def is_bound(self) -> bool:
        """Whether a device is bound to this key."""
        return self.hwid is not None

    def is_expired(self, now: datetime) -> bool:
        """Whether the key's absolute expiry has passed."""
        return self.expire_at is not None and self.expire_at < now

    def check_integrity(self) -> None:
        """
        Enforce that hwid and activated_at are set together.

        Raises:
            KeyIntegrityError: If exactly one of them is set
        """
        if (self.hwid is None) != (self.activated_at is None):
            raise KeyIntegrityError(
                f"Key {self.key[:8]}... has hwid/activated_at out of sync"
            )

    def state(self, now: datetime) -> KeyState:
        """
        Derived state, using the same priority as verification.

        Args:
            now: Current time

        Returns:
            KeyState for display
        """
        if self.banned:
            return KeyState.BANNED
        if self.is_expired(now):
            return KeyState.EXPIRED
        if not self.unlocked:
            return KeyState.GATED
        if self.is_bound:
            return KeyState.BOUND
        return KeyState.UNBOUND

    def bind(self, hwid: str, now: datetime) -> "KeyRecord":
        """
        Return a copy bound to hwid.

        Persistence must go through the conditional bind of the
        repository; this only builds the post-bind value.
        """
        return replace(self, hwid=hwid, activated_at=now)
