"""
Integration tests for the verify and gate callback endpoints.
"""
from datetime import timedelta
from urllib.parse import parse_qs, urlparse

import pytest
from asgiref.sync import async_to_sync
from django.core.cache import cache

from api.v1.client import views
from core.domain.exceptions import StoreUnavailableError
from keys.application.services.gate_service import GateService
from keys.domain.key_record import KeyRecord
from keys.infrastructure.models import KeyRecord as KeyRecordModel

VERIFY_URL = "/api/v1/verify"
GATE_CALLBACK_URL = "/api/v1/gate/callback"
CALLBACK_SECRET = "test-gate-callback-secret"


def provider_params(token):
    """Query parameters the gate provider sends back for a token."""
    return {"token": token, "signature": GateService.callback_signature(token, CALLBACK_SECRET)}


@pytest.mark.django_db
@pytest.mark.integration
class TestVerifyAPI:
    """Integration tests for GET /verify."""

    def verify(self, client, key, hwid, url=VERIFY_URL):
        return client.get(url, {"key": key, "hwid": hwid})

    def test_activate_valid_mismatch(self, api_client, db_record):
        """Test activate, repeat from the same device, then another device."""
        response = self.verify(api_client, db_record.key, "PC1")
        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "activated"}

        response = self.verify(api_client, db_record.key, "PC1")
        assert response.status_code == 200
        assert response.json() == {"success": True}

        response = self.verify(api_client, db_record.key, "XYZ")
        assert response.status_code == 200
        assert response.json() == {"success": False, "message": "hwid mismatch"}

        stored = KeyRecordModel.objects.get(key=db_record.key)  # pylint: disable=no-member
        assert stored.hwid == "PC1"
        assert stored.activated_at is not None

    def test_hwid_is_not_trimmed(self, api_client, db_record):
        """Test the HWID is bound and compared exactly as supplied."""
        response = self.verify(api_client, db_record.key, "  ABC  ")
        assert response.json() == {"success": True, "message": "activated"}
        assert KeyRecordModel.objects.get(key=db_record.key).hwid == "  ABC  "  # pylint: disable=no-member

        response = self.verify(api_client, db_record.key, "ABC")
        assert response.json() == {"success": False, "message": "hwid mismatch"}

        response = self.verify(api_client, db_record.key, "  ABC  ")
        assert response.json() == {"success": True}

    def test_root_path(self, api_client, db_record):
        """Test verify is also served at /verify."""
        response = self.verify(api_client, db_record.key, "PC1", url="/verify")

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "activated"}

    def test_not_found(self, api_client):
        """Test unknown keys."""
        response = self.verify(api_client, "NOPE", "PC1")

        assert response.status_code == 200
        assert response.json() == {"success": False, "message": "key not found"}

    def test_banned(self, api_client, key_repository, db_record):
        """Test banned keys."""
        async_to_sync(key_repository.set_banned)(db_record.key, True)

        response = self.verify(api_client, db_record.key, "PC1")

        assert response.json() == {"success": False, "message": "key banned"}
        assert KeyRecordModel.objects.get(key=db_record.key).hwid is None  # pylint: disable=no-member

    def test_expired_never_binds(self, api_client, key_repository, now):
        """Test expired keys are rejected and stay unbound."""
        record = KeyRecord.create("OLD-KEY", expire_days=1, now=now - timedelta(days=2))
        async_to_sync(key_repository.insert)(record)

        response = self.verify(api_client, "OLD-KEY", "PC1")

        assert response.json() == {"success": False, "message": "key expired"}
        assert KeyRecordModel.objects.get(key="OLD-KEY").hwid is None  # pylint: disable=no-member

    @pytest.mark.parametrize(
        "params",
        [{}, {"key": "ABC"}, {"hwid": "PC1"}, {"key": "", "hwid": "PC1"}, {"key": "ABC", "hwid": ""}],
    )
    def test_missing_input(self, api_client, params):
        """Test absent or empty parameters."""
        response = api_client.get(VERIFY_URL, params)

        assert response.status_code == 400
        assert response.json()["success"] is False
        assert response.json()["message"] == "missing key or hwid"

    @pytest.mark.parametrize(
        "params",
        [{"key": "K" * 101, "hwid": "PC1"}, {"key": "ABC", "hwid": "H" * 257}],
    )
    def test_malformed_input(self, api_client, params):
        """Test oversized parameters."""
        response = api_client.get(VERIFY_URL, params)

        assert response.status_code == 400
        assert response.json()["message"] == "invalid key or hwid"

    def test_store_failure(self, api_client, monkeypatch):
        """Test a store failure is a retryable server error, not an outcome."""

        async def unavailable(key):
            raise StoreUnavailableError()

        monkeypatch.setattr(views._key_repo, "find_by_key", unavailable)

        response = self.verify(api_client, "ABC", "PC1")

        assert response.status_code == 503
        assert response["Retry-After"] == "1"
        assert response.json()["success"] is False
        assert response.json()["message"] == "server error"

    def test_integrity_error(self, api_client, monkeypatch, sample_record):
        """Test an inconsistent record is reported, never bound."""
        broken = KeyRecord(
            key=sample_record.key,
            hwid="PC1",
            banned=False,
            unlocked=True,
            expire_at=None,
            created_at=sample_record.created_at,
            activated_at=None,
        )

        async def find(key):
            return broken

        monkeypatch.setattr(views._key_repo, "find_by_key", find)

        response = self.verify(api_client, sample_record.key, "PC1")

        assert response.status_code == 500
        assert response.json()["message"] == "key integrity error"

    def test_rate_limit(self, api_client, settings):
        """Test the verify endpoint is rate limited per client."""
        settings.KEYGATE_VERIFY_RATE_LIMIT = 2
        cache.clear()

        for _ in range(2):
            assert self.verify(api_client, "NOPE", "PC1").status_code == 200
        response = self.verify(api_client, "NOPE", "PC1")

        assert response.status_code == 429
        assert response.json() == {"success": False, "message": "rate limit exceeded"}
        assert "Retry-After" in response
        cache.clear()


@pytest.mark.django_db
@pytest.mark.integration
class TestGateAPI:
    """Integration tests for the gating bridge."""

    def test_gate_flow(self, api_client, key_repository, now):
        """Test gated key: gate URL, callback unlocks only that key, then activate."""
        for key in ("GATE-A", "GATE-B"):
            async_to_sync(key_repository.insert)(KeyRecord.create(key, gating_enabled=True, now=now))

        response = api_client.get(VERIFY_URL, {"key": "GATE-A", "hwid": "PC1"})
        body = response.json()
        assert response.status_code == 200
        assert body["success"] is False
        assert body["gateUrl"].startswith("https://gate.test/unlock?token=")
        token = parse_qs(urlparse(body["gateUrl"]).query)["token"][0]

        response = api_client.get(GATE_CALLBACK_URL, provider_params(token))
        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "unlocked"}

        # pylint: disable=no-member
        assert KeyRecordModel.objects.get(key="GATE-A").unlocked is True
        assert KeyRecordModel.objects.get(key="GATE-B").unlocked is False

        response = api_client.get(VERIFY_URL, {"key": "GATE-A", "hwid": "PC1"})
        assert response.json() == {"success": True, "message": "activated"}

    def test_client_cannot_skip_gate(self, api_client, key_repository, now):
        """Test the bare token from gateUrl is rejected and the key stays gated."""
        async_to_sync(key_repository.insert)(KeyRecord.create("GATE-A", gating_enabled=True, now=now))
        body = api_client.get(VERIFY_URL, {"key": "GATE-A", "hwid": "PC1"}).json()
        token = parse_qs(urlparse(body["gateUrl"]).query)["token"][0]

        for params in (
            {"token": token},
            {"token": token, "signature": ""},
            {"token": token, "signature": GateService.callback_signature(token, "guessed")},
        ):
            response = api_client.get(GATE_CALLBACK_URL, params)
            assert response.status_code == 400
            assert response.json()["message"] == "invalid gate token"

        assert KeyRecordModel.objects.get(key="GATE-A").unlocked is False  # pylint: disable=no-member
        response = api_client.get(VERIFY_URL, {"key": "GATE-A", "hwid": "PC1"})
        assert "gateUrl" in response.json()

    @pytest.mark.parametrize(
        "params", [{}, {"token": "forged:token", "signature": "0" * 64}]
    )
    def test_invalid_token(self, api_client, params):
        """Test missing or forged tokens."""
        response = api_client.get(GATE_CALLBACK_URL, params)

        assert response.status_code == 400
        assert response.json()["message"] == "invalid gate token"

    def test_forged_token_with_provider_signature(self, api_client):
        """Test a provider-signed token that we never issued."""
        response = api_client.get(GATE_CALLBACK_URL, provider_params("GATE-A:forged"))

        assert response.status_code == 400
        assert response.json()["message"] == "invalid gate token"

    def test_deleted_key(self, api_client):
        """Test a valid token for a key that no longer exists."""
        token = views.GateService().issue_token("GONE")

        response = api_client.get(GATE_CALLBACK_URL, provider_params(token))

        assert response.status_code == 404
        assert response.json()["message"] == "key not found"
