"""
Unit tests for key application handlers.
"""
from dataclasses import replace
from urllib.parse import parse_qs, urlparse

import pytest

from core.domain.exceptions import (
    InvalidGateTokenError,
    InvalidKeyError,
    KeyAlreadyExistsError,
    KeyNotFoundError,
    StoreUnavailableError,
)
from keys.application.commands.ban_key import BanKeyCommand
from keys.application.commands.create_key import CreateKeyCommand
from keys.application.commands.delete_key import DeleteKeyCommand
from keys.application.commands.reset_hwid import ResetHwidCommand
from keys.application.commands.unban_key import UnbanKeyCommand
from keys.application.commands.unlock_key import UnlockKeyCommand
from keys.application.commands.verify_key import VerifyKeyCommand
from keys.application.handlers.create_key_handler import CreateKeyHandler
from keys.application.handlers.key_admin_handlers import (
    BanKeyHandler,
    DeleteKeyHandler,
    ResetHwidHandler,
    UnbanKeyHandler,
)
from keys.application.handlers.list_keys_handler import GetKeyHandler, ListKeysHandler
from keys.application.handlers.unlock_key_handler import UnlockKeyHandler
from keys.application.handlers.verify_key_handler import VerifyKeyHandler
from keys.application.queries.get_key import GetKeyQuery
from keys.application.queries.list_keys import ListKeysQuery
from keys.application.services.gate_service import GateService
from keys.domain.key_record import KeyRecord
from keys.domain.lifecycle import Outcome
from keys.infrastructure.repositories.memory_key_repository import InMemoryKeyRepository

CALLBACK_SECRET = "provider-secret"


class FlakyRepository(InMemoryKeyRepository):
    """Repository whose first N reads fail."""

    def __init__(self, failures):
        super().__init__()
        self.failures = failures
        self.reads = 0

    async def find_by_key(self, key):
        self.reads += 1
        if self.reads <= self.failures:
            raise StoreUnavailableError()
        return await super().find_by_key(key)


@pytest.fixture
def gate_service():
    return GateService(
        gate_url="https://gate.test/unlock?token={token}", max_age=60, callback_secret=CALLBACK_SECRET
    )


def provider_command(token):
    """Build the callback the gate provider sends for a token."""
    return UnlockKeyCommand(
        token=token, signature=GateService.callback_signature(token, CALLBACK_SECRET)
    )


@pytest.mark.asyncio
class TestVerifyKeyHandler:
    """Tests for VerifyKeyHandler."""

    async def test_activated(self, memory_repository, gate_service, sample_record):
        """Test first verify activates."""
        await memory_repository.insert(sample_record)
        handler = VerifyKeyHandler(memory_repository, gate_service)

        result = await handler.handle(VerifyKeyCommand(key=sample_record.key, hwid="PC1"))

        assert result.outcome == Outcome.ACTIVATED
        assert result.success is True
        assert result.gate_url is None

    async def test_needs_gate_then_unlock(self, memory_repository, gate_service, now):
        """Test a gated key gets a gate URL whose token unlocks exactly that key."""
        await memory_repository.insert(KeyRecord.create("GATE-A", gating_enabled=True, now=now))
        await memory_repository.insert(KeyRecord.create("GATE-B", gating_enabled=True, now=now))
        verify = VerifyKeyHandler(memory_repository, gate_service)

        result = await verify.handle(VerifyKeyCommand(key="GATE-A", hwid="PC1"))
        assert result.outcome == Outcome.NEEDS_GATE
        assert result.success is False
        token = parse_qs(urlparse(result.gate_url).query)["token"][0]

        unlocked = await UnlockKeyHandler(memory_repository, gate_service).handle(
            provider_command(token)
        )

        assert unlocked.key == "GATE-A"
        assert unlocked.unlocked is True
        assert (await memory_repository.find_by_key("GATE-B")).unlocked is False
        result = await verify.handle(VerifyKeyCommand(key="GATE-A", hwid="PC1"))
        assert result.outcome == Outcome.ACTIVATED

    async def test_retries_transient_failure(self, gate_service, sample_record):
        """Test a transient store error is retried from a fresh read."""
        repository = FlakyRepository(failures=1)
        repository.put(sample_record)
        handler = VerifyKeyHandler(repository, gate_service, max_attempts=2)

        result = await handler.handle(VerifyKeyCommand(key=sample_record.key, hwid="PC1"))

        assert result.outcome == Outcome.ACTIVATED
        assert repository.reads == 2

    async def test_gives_up_after_max_attempts(self, gate_service, sample_record):
        """Test persistent store errors surface to the caller."""
        repository = FlakyRepository(failures=5)
        repository.put(sample_record)
        handler = VerifyKeyHandler(repository, gate_service, max_attempts=2)

        with pytest.raises(StoreUnavailableError):
            await handler.handle(VerifyKeyCommand(key=sample_record.key, hwid="PC1"))

        assert repository.reads == 2


@pytest.mark.asyncio
class TestUnlockKeyHandler:
    """Tests for UnlockKeyHandler."""

    async def test_bad_token(self, memory_repository, gate_service):
        """Test bad tokens are rejected."""
        with pytest.raises(InvalidGateTokenError):
            await UnlockKeyHandler(memory_repository, gate_service).handle(
                provider_command("garbage")
            )

    async def test_client_cannot_skip_gate(self, memory_repository, gate_service, now):
        """Test the token from gateUrl alone does not unlock the key."""
        await memory_repository.insert(KeyRecord.create("GATE-A", gating_enabled=True, now=now))
        result = await VerifyKeyHandler(memory_repository, gate_service).handle(
            VerifyKeyCommand(key="GATE-A", hwid="PC1")
        )
        token = parse_qs(urlparse(result.gate_url).query)["token"][0]
        handler = UnlockKeyHandler(memory_repository, gate_service)

        for signature in ("", token, GateService.callback_signature(token, "guessed-secret")):
            with pytest.raises(InvalidGateTokenError):
                await handler.handle(UnlockKeyCommand(token=token, signature=signature))

        assert (await memory_repository.find_by_key("GATE-A")).unlocked is False

    async def test_key_deleted_meanwhile(self, memory_repository, gate_service):
        """Test a valid token for a deleted key reports not found."""
        token = gate_service.issue_token("GONE")

        with pytest.raises(KeyNotFoundError):
            await UnlockKeyHandler(memory_repository, gate_service).handle(
                provider_command(token)
            )


@pytest.mark.asyncio
class TestCreateKeyHandler:
    """Tests for CreateKeyHandler."""

    async def test_create_generated(self, memory_repository):
        """Test a generated key uses the configured prefix."""
        handler = CreateKeyHandler(memory_repository, key_prefix="ACME")

        dto = await handler.handle(CreateKeyCommand(expire_days=30))

        assert dto.key.startswith("ACME-")
        assert dto.expire_at is not None
        assert dto.state == "unbound"

    async def test_create_gated(self, memory_repository):
        """Test keys start gated when gating is enabled."""
        handler = CreateKeyHandler(memory_repository, gating_enabled=True)

        dto = await handler.handle(CreateKeyCommand(key="GATED"))

        assert dto.unlocked is False
        assert dto.state == "gated"

    async def test_create_duplicate(self, memory_repository):
        """Test a supplied key that exists is rejected."""
        handler = CreateKeyHandler(memory_repository)
        await handler.handle(CreateKeyCommand(key="ABC"))

        with pytest.raises(KeyAlreadyExistsError):
            await handler.handle(CreateKeyCommand(key="ABC"))

    async def test_create_invalid_key(self, memory_repository):
        """Test malformed supplied keys are rejected."""
        with pytest.raises(InvalidKeyError):
            await CreateKeyHandler(memory_repository).handle(CreateKeyCommand(key="bad key"))

    async def test_create_invalid_expiry(self, memory_repository):
        """Test non-positive expiry is rejected."""
        with pytest.raises(InvalidKeyError):
            await CreateKeyHandler(memory_repository).handle(CreateKeyCommand(expire_days=0))


@pytest.mark.asyncio
class TestAdminHandlers:
    """Tests for ban, unban, reset and delete handlers."""

    async def test_ban_unban(self, memory_repository, sample_record):
        """Test ban and unban flip the flag."""
        await memory_repository.insert(sample_record)

        banned = await BanKeyHandler(memory_repository).handle(BanKeyCommand(key="ABC"))
        assert banned.banned is True
        assert banned.state == "banned"

        unbanned = await UnbanKeyHandler(memory_repository).handle(UnbanKeyCommand(key="ABC"))
        assert unbanned.banned is False

    async def test_reset_hwid(self, memory_repository, bound_record):
        """Test reset clears the binding."""
        await memory_repository.insert(bound_record)

        dto = await ResetHwidHandler(memory_repository).handle(
            ResetHwidCommand(key=bound_record.key)
        )

        assert dto.hwid is None
        assert dto.activated_at is None
        assert dto.state == "unbound"

    async def test_delete(self, memory_repository, sample_record):
        """Test delete removes the key and a second delete is not found."""
        await memory_repository.insert(sample_record)
        handler = DeleteKeyHandler(memory_repository)

        await handler.handle(DeleteKeyCommand(key="ABC"))

        with pytest.raises(KeyNotFoundError):
            await handler.handle(DeleteKeyCommand(key="ABC"))


@pytest.mark.asyncio
class TestQueryHandlers:
    """Tests for list and get handlers."""

    async def test_list_filters(self, memory_repository, sample_record, bound_record):
        """Test banned and bound filters."""
        await memory_repository.insert(sample_record)
        await memory_repository.insert(replace(bound_record, banned=True))
        handler = ListKeysHandler(memory_repository)

        assert len(await handler.handle(ListKeysQuery())) == 2
        assert [d.key for d in await handler.handle(ListKeysQuery(banned=True))] == ["BOUND-KEY"]
        assert [d.key for d in await handler.handle(ListKeysQuery(bound=False))] == ["ABC"]

    async def test_get_missing(self, memory_repository):
        """Test get on a missing key."""
        with pytest.raises(KeyNotFoundError):
            await GetKeyHandler(memory_repository).handle(GetKeyQuery(key="MISSING"))
