"""
VerifyKeyCommand.

Command to verify a key for a device, binding it on first use.
"""

from dataclasses import dataclass


@dataclass
class VerifyKeyCommand:
    """Command to verify a key against a hardware identifier."""

    key: str
    hwid: str
