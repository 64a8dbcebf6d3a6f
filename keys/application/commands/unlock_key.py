"""
UnlockKeyCommand.

Command sent by the gate callback to unlock the key named in its token.
"""
from dataclasses import dataclass


@dataclass
class UnlockKeyCommand:
    """Command to unlock a key from a provider-signed gate token."""

    token: str
    signature: str
