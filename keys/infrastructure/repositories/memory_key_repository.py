"""
In-memory implementation of KeyRepository port.

Suitable for development and tests. Reads snapshot a record and then
yield to the event loop, so concurrent callers act on stale reads as
they would against a database. The conditional bind runs under a lock.
"""

import asyncio
from dataclasses import replace
from datetime import datetime
from typing import Dict, List, Optional

from core.domain.exceptions import KeyAlreadyExistsError
from keys.domain.key_record import KeyRecord
from keys.ports.key_repository import KeyRepository


class InMemoryKeyRepository(KeyRepository):
    """
    In-memory KeyRepository.

    bind_writes counts committed binds, so tests can assert that
    exactly one writer executed the bind body.
    """

    def __init__(self):
        """Initialize the store."""
        self._records: Dict[str, KeyRecord] = {}
        self._lock = asyncio.Lock()
        self.bind_writes = 0

    async def find_by_key(self, key: str) -> Optional[KeyRecord]:
        """Find a record by its key."""
        record = self._records.get(key)
        await asyncio.sleep(0)
        return record

    async def insert(self, record: KeyRecord) -> KeyRecord:
        """Insert a new record; never overwrites."""
        async with self._lock:
            if record.key in self._records:
                raise KeyAlreadyExistsError(f"Key {record.key} already exists")
            self._records[record.key] = record
        return record

    async def bind_hwid(self, key: str, hwid: str, activated_at: datetime) -> bool:
        """Conditionally bind a device to a key."""
        async with self._lock:
            record = self._records.get(key)
            if record is None or record.hwid is not None:
                return False
            self._records[key] = record.bind(hwid, activated_at)
            self.bind_writes += 1
            return True

    async def _update(self, key: str, **fields) -> bool:
        async with self._lock:
            record = self._records.get(key)
            if record is None:
                return False
            self._records[key] = replace(record, **fields)
            return True

    async def set_banned(self, key: str, banned: bool) -> bool:
        """Set the banned flag."""
        return await self._update(key, banned=banned)

    async def reset_hwid(self, key: str) -> bool:
        """Clear hwid and activated_at together."""
        return await self._update(key, hwid=None, activated_at=None)

    async def mark_unlocked(self, key: str) -> bool:
        """Set unlocked to true."""
        return await self._update(key, unlocked=True)

    async def delete(self, key: str) -> bool:
        """Delete a record."""
        async with self._lock:
            return self._records.pop(key, None) is not None

    async def list_all(
        self,
        banned: Optional[bool] = None,
        bound: Optional[bool] = None,
    ) -> List[KeyRecord]:
        """List records, newest first."""
        records = sorted(self._records.values(), key=lambda r: r.created_at, reverse=True)
        if banned is not None:
            records = [r for r in records if r.banned == banned]
        if bound is not None:
            records = [r for r in records if r.is_bound == bound]
        return records

    def put(self, record: KeyRecord) -> None:
        """Store a record as-is, bypassing validation of invariants."""
        self._records[record.key] = record
