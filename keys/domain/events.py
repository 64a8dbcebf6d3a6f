"""
Key domain events.

Domain events represent something that happened to an access key.
The aggregate id of every event is the key string itself.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from core.domain.events import DomainEvent


@dataclass(frozen=True, kw_only=True)
class KeyCreated(DomainEvent):
    """Event raised when a key is issued."""

    expire_at: Optional[datetime] = None
    unlocked: bool = True


@dataclass(frozen=True, kw_only=True)
class KeyActivated(DomainEvent):
    """Event raised when a key is bound to a device."""

    hwid: str


@dataclass(frozen=True, kw_only=True)
class KeyBanned(DomainEvent):
    """Event raised when a key is banned."""


@dataclass(frozen=True, kw_only=True)
class KeyUnbanned(DomainEvent):
    """Event raised when a key is unbanned."""


@dataclass(frozen=True, kw_only=True)
class KeyHwidReset(DomainEvent):
    """Event raised when a key's device binding is cleared."""


@dataclass(frozen=True, kw_only=True)
class KeyUnlocked(DomainEvent):
    """Event raised when a key passes the unlock gate."""


@dataclass(frozen=True, kw_only=True)
class KeyDeleted(DomainEvent):
    """Event raised when a key is deleted."""
