"""
BanKeyCommand.

Command to ban a key.
"""
from dataclasses import dataclass


@dataclass
class BanKeyCommand:
    """Command to ban a key."""

    key: str
