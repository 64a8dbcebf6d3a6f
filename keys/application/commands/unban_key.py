"""
UnbanKeyCommand.

Command to lift a ban.
"""
from dataclasses import dataclass


@dataclass
class UnbanKeyCommand:
    """Command to unban a key."""

    key: str
