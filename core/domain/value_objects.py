"""
Value objects for the domain.

Value objects are immutable objects that are defined by their attributes
rather than their identity. They have no identity and are compared by value.
"""
import re
from abc import ABC
from dataclasses import dataclass
from enum import Enum

KEY_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,100}$")
MAX_HWID_LENGTH = 256


@dataclass(frozen=True)
class ValueObject(ABC):
    """
    Base class for value objects.

    Value objects are immutable and compared by value.
    """

    def __eq__(self, other):
        """Compare value objects by their attributes."""
        if not isinstance(other, self.__class__):
            return False
        return self.__dict__ == other.__dict__

    def __hash__(self):
        """Make value objects hashable."""
        return hash(tuple(sorted(self.__dict__.items())))


@dataclass(frozen=True)
class AccessKey(ValueObject):
    """Access key string value object."""

    value: str

    def __post_init__(self):
        """Validate key format."""
        if not self.value:
            raise ValueError("Key cannot be empty")
        if not KEY_PATTERN.match(self.value):
            raise ValueError(f"Invalid key format: {self.value[:16]}")

    def __str__(self) -> str:
        """Return key as string."""
        return self.value


@dataclass(frozen=True)
class HardwareId(ValueObject):
    """Client-supplied hardware fingerprint."""

    value: str

    def __post_init__(self):
        """Validate hardware identifier."""
        if not self.value or len(self.value.strip()) == 0:
            raise ValueError("Hardware identifier cannot be empty")
        if len(self.value) > MAX_HWID_LENGTH:
            raise ValueError("Hardware identifier too long")

    def __str__(self) -> str:
        """Return identifier as string."""
        return self.value


class KeyState(Enum):
    """Derived key state, for display and filtering only."""

    BANNED = "banned"
    EXPIRED = "expired"
    GATED = "gated"
    UNBOUND = "unbound"
    BOUND = "bound"

    def __str__(self) -> str:
        """Return state as string."""
        return self.value
