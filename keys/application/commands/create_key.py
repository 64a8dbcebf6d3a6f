"""
CreateKeyCommand.

Command to issue a new key.
"""
from dataclasses import dataclass
from typing import Optional


@dataclass
class CreateKeyCommand:
    """Command to create a key, generated unless one is supplied."""

    key: Optional[str] = None
    expire_days: Optional[int] = None
