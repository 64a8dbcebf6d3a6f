"""
Integration tests for the admin API endpoints.
"""
import pytest
from django.contrib.auth import get_user_model

ADMIN_TOKEN = "test-admin-token"
KEYS_URL = "/api/v1/admin/keys"


def key_url(key, action=None):
    url = f"{KEYS_URL}/{key}"
    return f"{url}/{action}" if action else url


@pytest.mark.django_db
@pytest.mark.integration
class TestAdminAuthentication:
    """Tests for the single admin guard."""

    def test_no_credential(self, api_client):
        """Test requests without a credential are rejected."""
        response = api_client.get(KEYS_URL)

        assert response.status_code == 403
        assert response.json() == {"success": False, "message": "unauthorized"}

    def test_wrong_token(self, api_client):
        """Test a wrong token is rejected."""
        response = api_client.get(KEYS_URL, HTTP_X_ADMIN_TOKEN="wrong")
        assert response.status_code == 403

    def test_bearer_token(self, api_client):
        """Test the token is accepted as a bearer token."""
        response = api_client.get(KEYS_URL, HTTP_AUTHORIZATION=f"Bearer {ADMIN_TOKEN}")
        assert response.status_code == 200

    def test_query_token(self, api_client):
        """Test the token is accepted as a query parameter."""
        response = api_client.get(KEYS_URL, {"token": ADMIN_TOKEN})
        assert response.status_code == 200

    def test_every_operation_is_guarded(self, api_client, db_record):
        """Test mutations are rejected before reaching the store."""
        for action in ("ban", "unban", "reset-hwid"):
            assert api_client.post(key_url(db_record.key, action)).status_code == 403
        assert api_client.delete(key_url(db_record.key)).status_code == 403
        assert api_client.post(KEYS_URL, {"key": "NEW"}, format="json").status_code == 403

    def test_staff_session(self, api_client):
        """Test a logged-in staff user is accepted."""
        user = get_user_model().objects.create_user("staff", password="pw", is_staff=True)
        api_client.force_login(user)

        assert api_client.get(KEYS_URL).status_code == 200

    def test_non_staff_session(self, api_client):
        """Test a logged-in non-staff user is rejected."""
        user = get_user_model().objects.create_user("user", password="pw")
        api_client.force_login(user)

        assert api_client.get(KEYS_URL).status_code == 403

    def test_empty_configured_token_disables_token_auth(self, api_client, settings):
        """Test an empty configured token never matches."""
        settings.KEYGATE_ADMIN_TOKEN = ""

        response = api_client.get(KEYS_URL, HTTP_X_ADMIN_TOKEN="")
        assert response.status_code == 403


@pytest.mark.django_db
@pytest.mark.integration
class TestAdminKeysAPI:
    """Tests for key administration."""

    def test_create_supplied_key(self, token_client):
        """Test creating a key with a chosen value and expiry."""
        response = token_client.post(KEYS_URL, {"key": "ABC", "expireDays": 30}, format="json")

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["key"]["key"] == "ABC"
        assert body["key"]["hwid"] is None
        assert body["key"]["banned"] is False
        assert body["key"]["unlocked"] is True
        assert body["key"]["expireAt"] is not None
        assert body["key"]["activatedAt"] is None
        assert body["key"]["state"] == "unbound"

    def test_create_generated_key(self, token_client):
        """Test creating a random key without expiry."""
        response = token_client.post(KEYS_URL, {}, format="json")

        assert response.status_code == 201
        assert response.json()["key"]["key"].startswith("KEY-")
        assert response.json()["key"]["expireAt"] is None

    def test_create_existing_key(self, token_client, db_record):
        """Test an existing key is never overwritten."""
        response = token_client.post(KEYS_URL, {"key": db_record.key}, format="json")

        assert response.status_code == 409
        assert response.json()["success"] is False

    @pytest.mark.parametrize("payload", [{"key": "bad key"}, {"expireDays": 0}])
    def test_create_invalid(self, token_client, payload):
        """Test malformed keys and expiries."""
        response = token_client.post(KEYS_URL, payload, format="json")

        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_list_and_filter(self, token_client, db_record):
        """Test listing keys with filters."""
        token_client.post(KEYS_URL, {"key": "OTHER"}, format="json")
        token_client.post(key_url("OTHER", "ban"))

        response = token_client.get(KEYS_URL)
        assert response.status_code == 200
        assert response.json()["count"] == 2

        response = token_client.get(KEYS_URL, {"banned": "true"})
        assert [k["key"] for k in response.json()["keys"]] == ["OTHER"]

        response = token_client.get(KEYS_URL, {"bound": "true"})
        assert response.json() == {"success": True, "count": 0, "keys": []}

    def test_get_key(self, token_client, db_record):
        """Test reading one key."""
        response = token_client.get(key_url(db_record.key))

        assert response.status_code == 200
        assert response.json()["key"]["key"] == db_record.key

    def test_ban_unban(self, token_client, db_record):
        """Test ban blocks verification and unban restores it."""
        response = token_client.post(key_url(db_record.key, "ban"))
        assert response.status_code == 200
        assert response.json()["key"]["banned"] is True
        assert response.json()["key"]["state"] == "banned"

        verify = token_client.get("/api/v1/verify", {"key": db_record.key, "hwid": "PC1"})
        assert verify.json() == {"success": False, "message": "key banned"}

        response = token_client.post(key_url(db_record.key, "unban"))
        assert response.json()["key"]["banned"] is False

        verify = token_client.get("/api/v1/verify", {"key": db_record.key, "hwid": "PC1"})
        assert verify.json() == {"success": True, "message": "activated"}

    def test_reset_hwid_allows_rebind(self, token_client, db_record):
        """Test reset-hwid lets a new device bind."""
        token_client.get("/api/v1/verify", {"key": db_record.key, "hwid": "PC1"})

        response = token_client.post(key_url(db_record.key, "reset-hwid"))
        assert response.status_code == 200
        assert response.json()["key"]["hwid"] is None
        assert response.json()["key"]["activatedAt"] is None

        verify = token_client.get("/api/v1/verify", {"key": db_record.key, "hwid": "PC2"})
        assert verify.json() == {"success": True, "message": "activated"}

    def test_delete(self, token_client, db_record):
        """Test deleting a key."""
        response = token_client.delete(key_url(db_record.key))
        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "deleted"}

        response = token_client.get(key_url(db_record.key))
        assert response.status_code == 404
        assert response.json()["message"] == "key not found"

    @pytest.mark.parametrize("action", ["ban", "unban", "reset-hwid"])
    def test_missing_key(self, token_client, action):
        """Test admin operations on a missing key."""
        response = token_client.post(key_url("MISSING", action))

        assert response.status_code == 404
        assert response.json()["code"] == "KEY_NOT_FOUND"
