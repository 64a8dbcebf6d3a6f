"""
Key query handlers.

Handlers for listing keys and fetching a single key.
"""
from typing import List

from django.utils import timezone

from core.domain.exceptions import KeyNotFoundError
from keys.application.dto.key_dto import KeyRecordDTO
from keys.application.queries.get_key import GetKeyQuery
from keys.application.queries.list_keys import ListKeysQuery
from keys.ports.key_repository import KeyRepository


class ListKeysHandler:
    """Handler for ListKeysQuery."""

    def __init__(self, key_repository: KeyRepository):
        """Initialize handler with repository."""
        self.key_repository = key_repository

    async def handle(self, query: ListKeysQuery) -> List[KeyRecordDTO]:
        """
        Handle list keys query.

        Args:
            query: ListKeysQuery

        Returns:
            List of KeyRecordDTO, newest first
        """
        records = await self.key_repository.list_all(banned=query.banned, bound=query.bound)
        now = timezone.now()
        return [KeyRecordDTO.from_entity(record, now) for record in records]


class GetKeyHandler:
    """Handler for GetKeyQuery."""

    def __init__(self, key_repository: KeyRepository):
        """Initialize handler with repository."""
        self.key_repository = key_repository

    async def handle(self, query: GetKeyQuery) -> KeyRecordDTO:
        """
        Handle get key query.

        Raises:
            KeyNotFoundError: If key not found
        """
        record = await self.key_repository.find_by_key(query.key)
        if record is None:
            raise KeyNotFoundError()
        return KeyRecordDTO.from_entity(record, timezone.now())
