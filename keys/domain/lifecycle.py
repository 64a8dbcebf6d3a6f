"""
Key lifecycle engine.

Pure decision logic mapping (record, supplied hwid, now) to an outcome.
Nothing here performs I/O; persisting a bind is the job of
KeyActivationService and the repository's conditional bind.

Priority chain: banned > expired > needs gate > bind-or-check hwid.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from keys.domain.key_record import KeyRecord


class Outcome(Enum):
    """Closed set of verification outcomes."""

    NOT_FOUND = "not_found"
    BANNED = "banned"
    EXPIRED = "expired"
    NEEDS_GATE = "needs_gate"
    ACTIVATED = "activated"
    HWID_MISMATCH = "hwid_mismatch"
    VALID = "valid"

    @property
    def is_success(self) -> bool:
        """Whether the client may proceed."""
        return self in (Outcome.ACTIVATED, Outcome.VALID)

    def __str__(self) -> str:
        """Return outcome as string."""
        return self.value


@dataclass(frozen=True)
class BindRequest:
    """Conditional bind the engine asks the caller to perform."""

    hwid: str
    activated_at: datetime


@dataclass(frozen=True)
class Decision:
    """
    Result of evaluating a record.

    When bind is set, outcome is ACTIVATED only if the conditional
    bind commits; a lost bind must fall back to check_binding.
    """

    outcome: Outcome
    bind: Optional[BindRequest] = None

    @property
    def requires_bind(self) -> bool:
        return self.bind is not None


def check_binding(record: KeyRecord, supplied_hwid: str) -> Outcome:
    """
    Compare a bound record's hwid with the supplied one.

    Args:
        record: Bound key record
        supplied_hwid: Hardware identifier from the client

    Returns:
        VALID or HWID_MISMATCH
    """
    if record.hwid == supplied_hwid:
        return Outcome.VALID
    return Outcome.HWID_MISMATCH


def evaluate(record: KeyRecord, supplied_hwid: str, now: datetime) -> Decision:
    """
    Decide the verification outcome for an existing record.

    Args:
        record: Key record (existence already checked by the caller)
        supplied_hwid: Hardware identifier from the client
        now: Current time

    Returns:
        Decision, possibly carrying a BindRequest

    Raises:
        KeyIntegrityError: If hwid and activated_at are out of sync
    """
    record.check_integrity()

    if record.banned:
        return Decision(Outcome.BANNED)
    if record.is_expired(now):
        return Decision(Outcome.EXPIRED)
    if not record.unlocked:
        return Decision(Outcome.NEEDS_GATE)
    if record.hwid is None:
        return Decision(
            Outcome.ACTIVATED,
            bind=BindRequest(hwid=supplied_hwid, activated_at=now),
        )
    return Decision(check_binding(record, supplied_hwid))
