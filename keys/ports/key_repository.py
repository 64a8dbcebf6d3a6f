"""
Key repository port (interface).

This defines the contract of the record store holding one record per key.
Implementations are in the infrastructure layer.

Every mutation is field-level. No operation writes a whole record back,
so an admin update can never clobber a concurrently bound hwid.
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from keys.domain.key_record import KeyRecord


class KeyRepository(ABC):
    """
    Abstract repository for KeyRecord entities.

    This is a port in hexagonal architecture - it defines
    what operations are available, not how they're implemented.
    Implementations raise StoreUnavailableError on transient failures.
    """

    @abstractmethod
    async def find_by_key(self, key: str) -> Optional[KeyRecord]:
        """
        Find a record by its key.

        Args:
            key: Key string

        Returns:
            KeyRecord entity or None if not found
        """
        pass

    @abstractmethod
    async def insert(self, record: KeyRecord) -> KeyRecord:
        """
        Insert a new record; never overwrites.

        Args:
            record: KeyRecord entity to insert

        Returns:
            Inserted KeyRecord entity

        Raises:
            KeyAlreadyExistsError: If the key is already taken
        """
        pass

    @abstractmethod
    async def bind_hwid(self, key: str, hwid: str, activated_at: datetime) -> bool:
        """
        Conditionally bind a device to a key.

        Sets hwid and activated_at if and only if the stored hwid is
        currently null, atomically with respect to any other bind.

        Args:
            key: Key string
            hwid: Hardware identifier to bind
            activated_at: Activation timestamp

        Returns:
            True if this call committed the bind, False if the precondition
            no longer held (already bound, or the key is gone)
        """
        pass

    @abstractmethod
    async def set_banned(self, key: str, banned: bool) -> bool:
        """
        Set the banned flag.

        Returns:
            True if the key exists, False otherwise
        """
        pass

    @abstractmethod
    async def reset_hwid(self, key: str) -> bool:
        """
        Clear hwid and activated_at together, re-enabling binding.

        Returns:
            True if the key exists, False otherwise
        """
        pass

    @abstractmethod
    async def mark_unlocked(self, key: str) -> bool:
        """
        Set unlocked to true. There is no operation setting it back.

        Returns:
            True if the key exists, False otherwise
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """
        Delete a record.

        Returns:
            True if a record was deleted, False otherwise
        """
        pass

    @abstractmethod
    async def list_all(
        self,
        banned: Optional[bool] = None,
        bound: Optional[bool] = None,
    ) -> List[KeyRecord]:
        """
        List records, newest first.

        Args:
            banned: Optional filter on the banned flag
            bound: Optional filter on whether a hwid is bound

        Returns:
            List of KeyRecord entities
        """
        pass
