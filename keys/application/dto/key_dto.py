"""
Key DTOs for API responses.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from keys.domain.key_record import KeyRecord
from keys.domain.lifecycle import Outcome


@dataclass
class KeyRecordDTO:
    """DTO for key record information."""

    key: str
    hwid: Optional[str]
    banned: bool
    unlocked: bool
    expire_at: Optional[datetime]
    created_at: datetime
    activated_at: Optional[datetime]
    state: str

    @classmethod
    def from_entity(cls, record: KeyRecord, now: datetime) -> "KeyRecordDTO":
        """Build the DTO from a domain entity."""
        return cls(
            key=record.key,
            hwid=record.hwid,
            banned=record.banned,
            unlocked=record.unlocked,
            expire_at=record.expire_at,
            created_at=record.created_at,
            activated_at=record.activated_at,
            state=record.state(now).value,
        )


@dataclass
class VerificationResultDTO:
    """DTO for a verification outcome."""

    outcome: Outcome
    gate_url: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.outcome.is_success
