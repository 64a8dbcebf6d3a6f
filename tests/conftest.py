"""
Pytest configuration and shared fixtures.
"""

from datetime import timedelta

import pytest
from asgiref.sync import async_to_sync
from django.utils import timezone

from keys.domain.key_record import KeyRecord
from keys.infrastructure.repositories.django_key_repository import DjangoKeyRepository
from keys.infrastructure.repositories.memory_key_repository import InMemoryKeyRepository

ADMIN_TOKEN = "test-admin-token"


@pytest.fixture
def key_repository():
    """Fixture for the Django KeyRepository."""
    return DjangoKeyRepository()


@pytest.fixture
def memory_repository():
    """Fixture for an empty in-memory KeyRepository."""
    return InMemoryKeyRepository()


@pytest.fixture
def now():
    """Fixture for a fixed, timezone-aware 'now'."""
    return timezone.now()


@pytest.fixture
def sample_record(now):
    """Fixture for an unbound, unlocked, never-expiring key."""
    return KeyRecord.create("ABC", now=now)


@pytest.fixture
def bound_record(now):
    """Fixture for a key already bound to HWID-1."""
    return KeyRecord.create("BOUND-KEY", now=now - timedelta(days=2)).bind(
        "HWID-1", now - timedelta(days=1)
    )


@pytest.fixture
def db_record(db, key_repository, now):
    """Fixture for an unbound key saved in database."""
    record = KeyRecord.create("DB-KEY-1", expire_days=30, now=now)
    return async_to_sync(key_repository.insert)(record)


@pytest.fixture
def api_client():
    """Fixture for DRF API client."""
    from rest_framework.test import APIClient

    return APIClient()


@pytest.fixture
def token_client(api_client):
    """Fixture for an API client carrying the admin token."""
    api_client.credentials(HTTP_X_ADMIN_TOKEN=ADMIN_TOKEN)
    return api_client
