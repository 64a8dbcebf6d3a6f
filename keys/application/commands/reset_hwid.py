"""
ResetHwidCommand.

Command to clear a key's device binding.
"""
from dataclasses import dataclass


@dataclass
class ResetHwidCommand:
    """Command to reset the hwid of a key."""

    key: str
