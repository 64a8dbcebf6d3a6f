"""
Django implementation of KeyRepository port.

This adapter converts between domain entities and Django ORM models.
"""
import logging
from datetime import datetime
from typing import List, Optional

from asgiref.sync import sync_to_async
from django.db import DatabaseError, IntegrityError, transaction

from core.domain.exceptions import KeyAlreadyExistsError, StoreUnavailableError
from keys.domain.key_record import KeyRecord
from keys.infrastructure.models import KeyRecord as KeyRecordModel
from keys.ports.key_repository import KeyRepository

logger = logging.getLogger(__name__)


class DjangoKeyRepository(KeyRepository):
    """
    Django ORM implementation of KeyRepository.

    This adapter:
    1. Converts Django models to domain entities
    2. Performs field-level updates, never full-row saves
    3. Translates database failures into StoreUnavailableError
    """

    def _to_domain(self, model: KeyRecordModel) -> KeyRecord:
        """
        Convert Django model to domain entity.

        Args:
            model: Django KeyRecord model

        Returns:
            KeyRecord domain entity
        """
        return model.to_entity()

    def _update(self, key: str, **fields) -> bool:
        """Apply a single UPDATE to one record; True if it exists."""
        try:
            # pylint: disable=no-member
            updated = KeyRecordModel.objects.filter(key=key).update(**fields)
        except DatabaseError as e:
            logger.error("Key update failed: %s", e, exc_info=True)
            raise StoreUnavailableError() from e
        return updated == 1

    @sync_to_async
    def find_by_key(self, key: str) -> Optional[KeyRecord]:
        """
        Find a record by its key.

        Args:
            key: Key string

        Returns:
            KeyRecord entity or None if not found
        """
        try:
            # pylint: disable=no-member
            model = KeyRecordModel.objects.get(key=key)
            return self._to_domain(model)
        except KeyRecordModel.DoesNotExist:  # pylint: disable=no-member
            return None
        except DatabaseError as e:
            logger.error("Key lookup failed: %s", e, exc_info=True)
            raise StoreUnavailableError() from e

    @sync_to_async
    def insert(self, record: KeyRecord) -> KeyRecord:
        """
        Insert a new record; never overwrites.

        Args:
            record: KeyRecord entity to insert

        Returns:
            Inserted KeyRecord entity
        """
        try:
            with transaction.atomic():
                # pylint: disable=no-member
                model = KeyRecordModel.objects.create(
                    key=record.key,
                    hwid=record.hwid,
                    banned=record.banned,
                    unlocked=record.unlocked,
                    expire_at=record.expire_at,
                    created_at=record.created_at,
                    activated_at=record.activated_at,
                )
        except IntegrityError as e:
            raise KeyAlreadyExistsError(f"Key {record.key} already exists") from e
        except DatabaseError as e:
            logger.error("Key insert failed: %s", e, exc_info=True)
            raise StoreUnavailableError() from e
        return self._to_domain(model)

    @sync_to_async
    def bind_hwid(self, key: str, hwid: str, activated_at: datetime) -> bool:
        """
        Conditionally bind a device to a key.

        A single UPDATE ... WHERE hwid IS NULL: the database serializes
        concurrent writers on the row, and a writer that waited re-checks
        the predicate and matches zero rows.

        Returns:
            True if this call committed the bind
        """
        try:
            with transaction.atomic():
                # pylint: disable=no-member
                updated = KeyRecordModel.objects.filter(
                    key=key, hwid__isnull=True
                ).update(hwid=hwid, activated_at=activated_at)
        except DatabaseError as e:
            logger.error("Conditional bind failed: %s", e, exc_info=True)
            raise StoreUnavailableError() from e
        return updated == 1

    @sync_to_async
    def set_banned(self, key: str, banned: bool) -> bool:
        """Set the banned flag."""
        return self._update(key, banned=banned)

    @sync_to_async
    def reset_hwid(self, key: str) -> bool:
        """Clear hwid and activated_at together."""
        return self._update(key, hwid=None, activated_at=None)

    @sync_to_async
    def mark_unlocked(self, key: str) -> bool:
        """Set unlocked to true."""
        return self._update(key, unlocked=True)

    @sync_to_async
    def delete(self, key: str) -> bool:
        """Delete a record."""
        try:
            # pylint: disable=no-member
            deleted, _ = KeyRecordModel.objects.filter(key=key).delete()
        except DatabaseError as e:
            raise StoreUnavailableError() from e
        return deleted > 0

    @sync_to_async
    def list_all(
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
        # pylint: disable=no-member
        queryset = KeyRecordModel.objects.all()
        if banned is not None:
            queryset = queryset.filter(banned=banned)
        if bound is not None:
            queryset = queryset.filter(hwid__isnull=not bound)
        try:
            return [self._to_domain(model) for model in queryset]
        except DatabaseError as e:
            raise StoreUnavailableError() from e
